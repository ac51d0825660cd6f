"""
Content-aware one-way merge of a source tree into a target tree.

Every file of the source whose content does not already exist somewhere in
the target is copied into a dated folder inside the target, keeping its path
relative to the source. Existing target files are never modified.
"""

import logging
import os
import time
from datetime import date
from pathlib import Path
from typing import Callable, List, Optional, Set, Tuple

from hashkeep.catalog import CatalogStore
from hashkeep.errors import ConfigError, MergeAbortedError
from hashkeep.models import CatalogEntry, Fingerprint, MergeSummary
from hashkeep.scanning import CatalogHasher, TreeWalker, build_entry

from .file_moves import copy_file_durably, relative_destination

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]

BACKUP_DIR_PREFIX = "hashkeep_"


def backup_dir_name(day: date) -> str:
    """Name of the folder novel files are copied into, e.g. ``hashkeep_250131``."""
    return f"{BACKUP_DIR_PREFIX}{day:%y%m%d}"


def validate_merge_dirs(source: str, target: str) -> Tuple[str, str]:
    """
    Check that source and target are distinct, unrelated directories.

    Returns:
        The canonical source and target paths.

    Raises:
        ConfigError: If either is not a directory, or one contains the other.
    """
    resolved = []
    for label, path in (("Source", source), ("Target", target)):
        real = os.path.realpath(os.fspath(path))
        if not os.path.isdir(real):
            raise ConfigError(f"{label} is not a directory: {path}")
        resolved.append(real)

    source_real, target_real = resolved
    common = os.path.commonpath([source_real, target_real])
    if common in (source_real, target_real):
        raise ConfigError(
            f"Source and target must not contain each other: {source_real}, {target_real}"
        )
    return source_real, target_real


class MergeEngine:
    """
    Copies source files with no content match in the target.

    Fingerprints come from the catalog where present and are recorded there
    otherwise. The first failed copy stops the merge with MergeAbortedError;
    copies completed before it stay in place and are cataloged.
    """

    def __init__(
        self,
        store: CatalogStore,
        walker: TreeWalker,
        on_progress: Optional[ProgressCallback] = None,
        today: Optional[date] = None,
    ) -> None:
        self._store = store
        self._walker = walker
        self._on_progress = on_progress
        self._today = today

    def run(self, source: str, target: str) -> MergeSummary:
        """
        Merge ``source`` into ``target``.

        Returns:
            MergeSummary: File counts on both sides, novel files and copies.

        Raises:
            ConfigError: If the directories are invalid; nothing is read.
            MergeAbortedError: If a copy fails.
            StoreError: If the catalog fails.
        """
        source, target = validate_merge_dirs(source, target)

        started = time.monotonic()
        backup_dir = Path(target) / backup_dir_name(self._today or date.today())
        summary = MergeSummary(backup_dir=backup_dir)
        hasher = CatalogHasher(self._store)

        source_entries = self._fingerprint_tree(source, hasher)
        summary.source_files = len(source_entries)
        logger.info("Found %d files in source directory", summary.source_files)

        target_entries = self._fingerprint_tree(target, hasher)
        summary.target_files = len(target_entries)
        logger.info("Found %d files in target directory", summary.target_files)

        summary.errors.extend(self._walker.get_errors())
        summary.errors.extend(hasher.get_errors())
        self._walker.clear_errors()

        # Both digests must match for content to count as present
        target_fingerprints: Set[Fingerprint] = {entry.fingerprint for entry in target_entries}
        novel = [entry for entry in source_entries if entry.fingerprint not in target_fingerprints]
        summary.novel_files = len(novel)
        logger.info("Found %d files to copy into %s", len(novel), backup_dir)

        for idx, entry in enumerate(novel, start=1):
            dest = relative_destination(entry.path, Path(source), backup_dir)
            self._copy(entry, dest)
            summary.files_copied += 1
            if self._on_progress is not None:
                self._on_progress(idx, len(novel), entry.path)

        summary.duration_seconds = time.monotonic() - started
        return summary

    def _fingerprint_tree(self, root: str, hasher: CatalogHasher) -> List[CatalogEntry]:
        entries = []
        for path in self._walker.walk([root]):
            entry = hasher.fingerprint(path)
            if entry is not None:
                entries.append(entry)
        return entries

    def _copy(self, entry: CatalogEntry, dest: Path) -> None:
        """Copy one file durably and catalog the copy."""
        try:
            written = copy_file_durably(entry.path, dest)
            copied = build_entry(str(written))
        except OSError as e:
            raise MergeAbortedError(
                f"Merge aborted copying {entry.path} to {dest}: {e.strerror or e}"
            ) from e

        self._store.upsert(copied)
        logger.info("Copied %s -> %s", entry.path, written)
