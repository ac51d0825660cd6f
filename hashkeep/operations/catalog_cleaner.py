"""
Removal of catalog rows whose files no longer exist.
"""

import logging
import os
import time
from typing import Callable, List, Optional

from hashkeep.catalog import CatalogStore
from hashkeep.models import CatalogEntry, CleanSummary

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]


class CatalogCleaner:
    """
    Drops catalog entries pointing at files that are gone from disk.

    Only a path that definitely does not exist is removed. A path that cannot
    be checked (permissions, I/O errors) keeps its row and is reported.
    """

    def __init__(self, store: CatalogStore, on_progress: Optional[ProgressCallback] = None) -> None:
        self._store = store
        self._on_progress = on_progress

    def run(self) -> CleanSummary:
        """
        Check every cataloged path and delete the rows of missing files.

        Returns:
            CleanSummary: Records checked and removed.

        Raises:
            StoreError: If the catalog cannot be read or a delete fails.
        """
        started = time.monotonic()
        summary = CleanSummary()

        entries = self._store.all()
        total = len(entries)
        logger.info("Validating %d catalog records", total)

        missing: List[CatalogEntry] = []
        for idx, entry in enumerate(entries, start=1):
            summary.records_checked += 1
            if self._on_progress is not None:
                self._on_progress(idx, total, entry.path)

            try:
                os.stat(entry.path)
            except FileNotFoundError:
                missing.append(entry)
            except OSError as e:
                message = f"{entry.path}: {e.strerror or e}"
                logger.warning("Could not check %s", message)
                summary.errors.append(message)

        logger.info("Found %d records pointing to missing files", len(missing))

        for entry in missing:
            self._store.delete(entry.key)
            summary.records_removed += 1
            logger.info("Removed catalog record for missing file: %s", entry.path)

        summary.duration_seconds = time.monotonic() - started
        return summary
