"""
Detection and removal of clutter files and folders.

Dirty paths are classified into DirtyKind categories: empty and tiny files,
OS metadata files, hidden files, Office temporary files and empty folders.
The user picks which kinds to clean; matches are then listed and, after
confirmation, moved into a holding directory.
"""

import logging
import os
import time
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional, Set

from hashkeep.errors import ConfigError
from hashkeep.models import DirtyKind, DirtySummary

from .file_moves import move_file

if TYPE_CHECKING:
    from hashkeep.ui.selector import Selector

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]
ListingCallback = Callable[[Dict[DirtyKind, List[str]]], None]

SMALL_FILE_LIMIT = 1024

OFFICE_TEMP_EXTENSIONS = {".tmp", ".temp", ".asd", ".wbk", ".xlk", ".tmp2"}


def is_office_temp(file_name: str) -> bool:
    """Return True for Office lock/backup/autosave file names."""
    if file_name.startswith("~$"):
        return True
    stem, ext = os.path.splitext(file_name)
    if ext.lower() in OFFICE_TEMP_EXTENSIONS:
        return True
    return stem.endswith("~")


def classify_file(file_name: str, size: int) -> Set[DirtyKind]:
    """Return every DirtyKind a regular file belongs to."""
    kinds: Set[DirtyKind] = set()
    if size == 0:
        kinds.add(DirtyKind.EMPTY_FILE)
    elif size < SMALL_FILE_LIMIT:
        kinds.add(DirtyKind.SMALL_FILE)
    if file_name.startswith("."):
        kinds.add(DirtyKind.HIDDEN_FILE)
    if file_name == ".DS_Store":
        kinds.add(DirtyKind.MAC_METADATA)
    if file_name == "Thumbs.db":
        kinds.add(DirtyKind.WINDOWS_THUMBNAILS)
    if is_office_temp(file_name):
        kinds.add(DirtyKind.OFFICE_TEMP)
    return kinds


def is_empty_folder(path: str) -> bool:
    """A folder is empty if it holds no files, only (recursively) empty folders."""
    try:
        with os.scandir(path) as entries:
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    if not is_empty_folder(entry.path):
                        return False
                else:
                    return False
    except OSError:
        return False
    return True


class DirtyCleaner:
    """
    Finds dirty paths under a set of roots and moves the selected kinds away.

    A path matching several selected kinds is moved once. A folder is moved
    together with its contents, so paths inside an already moved folder are
    not moved again. Per-path failures are reported and do not stop the run.
    """

    def __init__(
        self,
        selector: "Selector",
        on_progress: Optional[ProgressCallback] = None,
        on_listing: Optional[ListingCallback] = None,
    ) -> None:
        """
        Create a DirtyCleaner.

        Parameters:
            selector (Selector): Picks the kinds to clean and confirms moves.
            on_progress (callable): Called as ``(done, total, path)`` per move.
            on_listing (callable): Receives the matches before confirmation.
        """
        self._selector = selector
        self._on_progress = on_progress
        self._on_listing = on_listing
        self._errors: List[str] = []

    def find(self, roots: Iterable[str]) -> Dict[DirtyKind, List[str]]:
        """
        Classify every path under ``roots``.

        The roots themselves are never reported. Symlinks are not followed.

        Returns:
            dict: Sorted paths per kind, for kinds with at least one match.
        """
        found: Dict[DirtyKind, List[str]] = {}

        for root in roots:
            root_path = os.path.abspath(os.fspath(root))
            for dirpath, dirnames, filenames in os.walk(root_path, onerror=self._on_walk_error):
                if dirpath != root_path and is_empty_folder(dirpath):
                    found.setdefault(DirtyKind.EMPTY_FOLDER, []).append(dirpath)

                for filename in filenames:
                    full_path = os.path.join(dirpath, filename)
                    try:
                        size = os.lstat(full_path).st_size
                    except OSError as e:
                        self._record_error(full_path, e)
                        continue
                    for kind in classify_file(filename, size):
                        found.setdefault(kind, []).append(full_path)

        for paths in found.values():
            paths.sort()
        return {kind: found[kind] for kind in DirtyKind if kind in found}

    def run(
        self,
        roots: Iterable[str],
        list_only: bool = False,
        delete_to_dir: Optional[Path] = None,
    ) -> DirtySummary:
        """
        Ask which kinds to clean, list the matches and move them if confirmed.

        Args:
            roots: Directories to scan.
            list_only: Only list matches; nothing is moved.
            delete_to_dir: Where matches are moved; required unless listing.

        Returns:
            DirtySummary: Paths found and moved.

        Raises:
            ConfigError: If ``delete_to_dir`` is missing when not listing.
        """
        if not list_only and delete_to_dir is None:
            raise ConfigError("A delete-to directory is required unless listing only")

        started = time.monotonic()
        roots = [os.path.abspath(os.fspath(root)) for root in roots]
        summary = DirtySummary(list_only=list_only)
        self._errors = []

        kinds = self._select_kinds()
        found = self.find(roots)
        matches = {kind: paths for kind, paths in found.items() if kind in kinds}

        # A path can match several kinds
        targets = sorted({path for paths in matches.values() for path in paths})
        summary.files_found = len(targets)
        logger.info("Found %d dirty path(s)", len(targets))

        if self._on_listing is not None:
            self._on_listing(matches)

        if targets and not list_only:
            if self._selector.confirm("Do you want to proceed with moving these files?", default=False):
                self._move_all(targets, roots, Path(delete_to_dir), summary)
            else:
                summary.cancelled = True
                logger.info("Dirty file cleanup cancelled by user")

        summary.errors.extend(self._errors)
        summary.duration_seconds = time.monotonic() - started
        return summary

    def _select_kinds(self) -> Set[DirtyKind]:
        """Ask which kinds to clean; choosing none means all."""
        labels = [kind.label for kind in DirtyKind]
        chosen = self._selector.select_many(
            "Select types of dirty files to clean (none selected means all)", labels
        )
        if not chosen:
            return set(DirtyKind)
        return {DirtyKind.from_label(label) for label in chosen}

    def _move_all(
        self, targets: List[str], roots: List[str], delete_to_dir: Path, summary: DirtySummary
    ) -> None:
        moved_dirs: List[str] = []
        total = len(targets)

        for idx, path in enumerate(targets, start=1):
            # Sorted order puts a folder before its contents
            if any(path.startswith(os.path.join(folder, "")) for folder in moved_dirs):
                continue

            is_dir = os.path.isdir(path)
            dest = delete_to_dir / self._relative_to_root(path, roots)
            try:
                move_file(path, dest)
            except OSError as e:
                message = f"{path}: {e.strerror or e}"
                logger.warning("Could not move dirty path %s", message)
                summary.errors.append(message)
                continue

            summary.files_moved += 1
            if is_dir:
                moved_dirs.append(path)
            if self._on_progress is not None:
                self._on_progress(idx, total, path)

    @staticmethod
    def _relative_to_root(path: str, roots: List[str]) -> str:
        """Path relative to the root containing it, keeping the root's name."""
        for root in roots:
            if path.startswith(os.path.join(root, "")):
                return os.path.join(os.path.basename(root), os.path.relpath(path, root))
        return os.path.basename(path)

    def _on_walk_error(self, error: OSError) -> None:
        self._record_error(error.filename or "<unknown>", error)

    def _record_error(self, path: str, error: OSError) -> None:
        message = f"{path}: {error.strerror or error}"
        logger.warning("Skipping unreadable entry %s", message)
        self._errors.append(message)
