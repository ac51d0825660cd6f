"""
Interactive removal of duplicate files.

This module contains the DuplicateResolver class. It fingerprints every file
under a set of roots (reusing catalog entries where present), groups them by
content, and asks a Selector which copies of each group to remove. Removed
copies are moved into a "deleted" folder rather than unlinked, and their
catalog rows are dropped.
"""

import logging
import os
import time
from collections import defaultdict
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional

from hashkeep.catalog import CatalogStore
from hashkeep.errors import StoreError
from hashkeep.models import CatalogEntry, DuplicateGroup, DuplicateSummary, Fingerprint
from hashkeep.scanning import CatalogHasher, TreeWalker

from .file_moves import move_file, relative_destination

if TYPE_CHECKING:
    from hashkeep.ui.selector import Selector

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]

# Called before each group is offered for selection
GroupCallback = Callable[[DuplicateGroup, int, int], None]


def format_option(entry: CatalogEntry) -> str:
    """Render a group member the way it is offered for selection."""
    return f"{entry.path} | ({entry.size} bytes)"


def common_anchor(roots: Iterable[str]) -> Optional[Path]:
    """
    Return the common parent directory of ``roots``.

    Moved files keep their path relative to this anchor, so the root folder
    name survives in the deleted folder. Returns None when the roots share no
    common path (e.g. different drives on Windows).
    """
    parents = [os.path.dirname(os.path.realpath(root)) for root in roots]
    if not parents:
        return None
    try:
        return Path(os.path.commonpath(parents))
    except ValueError:
        return None


class DuplicateResolver:
    """
    Finds content-identical files and moves the copies the user picks.

    All fingerprinting finishes before the first prompt. Groups are offered
    in order of their first member's path, and each group's moves happen
    right after its selection, so an interrupted run keeps what was done.
    """

    def __init__(
        self,
        store: CatalogStore,
        walker: TreeWalker,
        selector: "Selector",
        deleted_dir: Path,
        on_progress: Optional[ProgressCallback] = None,
        on_group: Optional[GroupCallback] = None,
    ) -> None:
        """
        Create a DuplicateResolver.

        Parameters:
            store (CatalogStore): Catalog used to reuse fingerprints and to
                drop rows of moved files.
            walker (TreeWalker): Source of candidate paths.
            selector (Selector): Decides which members of each group go.
            deleted_dir (Path): Where removed copies are moved.
            on_progress (callable): Called as ``(done, total, path)`` while
                fingerprinting.
            on_group (callable): Called as ``(group, number, total)`` before
                each selection prompt.
        """
        self._store = store
        self._walker = walker
        self._selector = selector
        self._deleted_dir = Path(deleted_dir)
        self._on_progress = on_progress
        self._on_group = on_group

    def find_groups(self, roots: Iterable[str], summary: Optional[DuplicateSummary] = None) -> List[DuplicateGroup]:
        """
        Fingerprint everything under ``roots`` and return the duplicate groups.

        Groups are sorted by the path of their first member; members are
        sorted by path.
        """
        roots = list(roots)
        summary = summary if summary is not None else DuplicateSummary()
        hasher = CatalogHasher(self._store)

        total = self._walker.count(roots)
        self._walker.clear_errors()
        logger.info("Fingerprinting %d files for duplicate detection", total)

        by_fingerprint: Dict[Fingerprint, List[CatalogEntry]] = defaultdict(list)
        for idx, path in enumerate(self._walker.walk(roots), start=1):
            entry = hasher.fingerprint(path)
            if entry is not None:
                summary.files_scanned += 1
                by_fingerprint[entry.fingerprint].append(entry)
            if self._on_progress is not None:
                self._on_progress(idx, total, path)

        summary.errors.extend(self._walker.get_errors())
        summary.errors.extend(hasher.get_errors())

        stats = hasher.get_cache_stats()
        logger.debug("Catalog hits: %d, misses: %d", stats["hits"], stats["misses"])

        groups = [
            DuplicateGroup(fingerprint=fingerprint, members=members)
            for fingerprint, members in by_fingerprint.items()
            if len(members) > 1
        ]
        groups.sort(key=lambda group: group.members[0].path)
        summary.duplicate_groups = len(groups)
        return groups

    def run(self, roots: Iterable[str]) -> DuplicateSummary:
        """
        Find duplicates under ``roots`` and move the selected copies.

        Returns:
            DuplicateSummary: Files scanned, groups found, files moved.

        Raises:
            StoreError: If the catalog cannot be read or written while
                fingerprinting.
        """
        started = time.monotonic()
        roots = list(roots)
        summary = DuplicateSummary(deleted_dir=self._deleted_dir)

        groups = self.find_groups(roots, summary)
        self.resolve_groups(groups, roots, summary)

        summary.duration_seconds = time.monotonic() - started
        return summary

    def resolve_groups(
        self, groups: List[DuplicateGroup], roots: Iterable[str], summary: DuplicateSummary
    ) -> None:
        """
        Offer each group to the selector and move the chosen members.
        """
        logger.info("Found %d duplicate group(s)", len(groups))
        anchor = common_anchor(roots)
        for number, group in enumerate(groups, start=1):
            if self._on_group is not None:
                self._on_group(group, number, len(groups))
            self._resolve_group(group, number, len(groups), anchor, summary)

    def _resolve_group(
        self,
        group: DuplicateGroup,
        number: int,
        total: int,
        anchor: Optional[Path],
        summary: DuplicateSummary,
    ) -> None:
        """Ask which members to remove, then move them."""
        options = [format_option(entry) for entry in group.members]
        chosen = set(
            self._selector.select_many(
                f"Duplicate group {number}/{total}: select files to delete", options
            )
        )

        for entry, option in zip(group.members, options):
            if option not in chosen:
                continue

            dest = relative_destination(entry.path, anchor, self._deleted_dir)
            try:
                moved_to = move_file(entry.path, dest)
            except OSError as e:
                message = f"{entry.path}: {e.strerror or e}"
                logger.warning("Could not move duplicate %s", message)
                summary.errors.append(message)
                continue
            summary.files_moved += 1
            logger.info("Moved duplicate %s to %s", entry.path, moved_to)

            # The file is already gone; a stale row is cleaned by `clean info`
            try:
                self._store.delete(entry.key)
            except StoreError as e:
                logger.warning("Moved %s but could not drop its catalog row: %s", entry.path, e)
                continue
            summary.records_removed += 1
