"""Lazy traversal of one or more directory trees.

This module provides the TreeWalker class, which yields the canonical path of
every regular file under a set of roots, skipping excluded paths and any entry
that cannot be inspected.

Example:
    >>> from hashkeep.scanning import TreeWalker, ExclusionRules
    >>> walker = TreeWalker(ExclusionRules.from_lines(["/\\.tmp$/"]))
    >>> for path in walker.walk(["/data/photos"]):
    ...     print(path)
"""

import logging
import os
import stat
from typing import Callable, Iterable, Iterator, List, Optional, Set, Tuple

from .fingerprint import canonical_path

logger = logging.getLogger(__name__)

ExclusionPredicate = Callable[[str], bool]


class TreeWalker:
    """Yields candidate file paths under a set of roots.

    Traversal is best-effort: unreadable directories, broken symlinks and
    files that cannot be stat'd are recorded in ``get_errors()`` and skipped.
    Symlinked directories are followed, with cycles cut by tracking visited
    ``(st_dev, st_ino)`` pairs. Each canonical file path is yielded at most
    once per ``walk()`` call, and each call starts a fresh traversal.

    Attributes:
        _exclusion: Predicate returning True for paths to skip.
        _skip_paths: Canonical paths that are never yielded.
        _errors: Error messages from all traversals so far.
    """

    def __init__(
        self,
        exclusion: Optional[ExclusionPredicate] = None,
        skip_paths: Iterable[str] = (),
    ) -> None:
        """Initialize the TreeWalker.

        Args:
            exclusion: Optional predicate; a path for which it returns True
                is skipped silently.
            skip_paths: Paths that must never be yielded, such as the
                catalog's own database files.
        """
        self._exclusion = exclusion
        self._skip_paths: Set[str] = {canonical_path(p) for p in skip_paths}
        self._errors: List[str] = []

    def walk(self, roots: Iterable[str]) -> Iterator[str]:
        """Yield canonical absolute paths of regular files under ``roots``."""
        seen_files: Set[str] = set()
        visited_dirs: Set[Tuple[int, int]] = set()

        for root in roots:
            root_path = os.path.abspath(os.fspath(root))

            if os.path.isfile(root_path):
                candidate = self._accept(root_path, seen_files)
                if candidate is not None:
                    yield candidate
                continue

            try:
                root_stat = os.stat(root_path)
            except OSError as e:
                self._record_error(root_path, e)
                continue
            visited_dirs.add((root_stat.st_dev, root_stat.st_ino))

            for dirpath, dirnames, filenames in os.walk(
                root_path, followlinks=True, onerror=self._on_walk_error
            ):
                self._prune_visited(dirpath, dirnames, visited_dirs)

                for filename in sorted(filenames):
                    candidate = self._accept(os.path.join(dirpath, filename), seen_files)
                    if candidate is not None:
                        yield candidate

    def count(self, roots: Iterable[str]) -> int:
        """Count the files ``walk(roots)`` would yield."""
        return sum(1 for _ in self.walk(roots))

    def _accept(self, walked_path: str, seen_files: Set[str]) -> Optional[str]:
        """Return the canonical path if this file should be yielded."""
        if self._is_excluded(walked_path):
            return None

        resolved = canonical_path(walked_path)
        if resolved != walked_path and self._is_excluded(resolved):
            return None
        if resolved in seen_files or resolved in self._skip_paths:
            return None

        try:
            stat_result = os.stat(resolved)
        except OSError as e:
            self._record_error(walked_path, e)
            return None

        # Sockets, FIFOs and devices are not content we can fingerprint
        if not stat.S_ISREG(stat_result.st_mode):
            return None

        seen_files.add(resolved)
        return resolved

    def _is_excluded(self, path: str) -> bool:
        return self._exclusion is not None and self._exclusion(path)

    def _prune_visited(
        self, dirpath: str, dirnames: List[str], visited_dirs: Set[Tuple[int, int]]
    ) -> None:
        """Drop subdirectories already visited, in place, to stop cycles."""
        keep = []
        for dirname in sorted(dirnames):
            full_path = os.path.join(dirpath, dirname)
            try:
                dir_stat = os.stat(full_path)
            except OSError as e:
                self._record_error(full_path, e)
                continue
            dir_id = (dir_stat.st_dev, dir_stat.st_ino)
            if dir_id in visited_dirs:
                logger.debug("Skipping already visited directory: %s", full_path)
                continue
            visited_dirs.add(dir_id)
            keep.append(dirname)
        dirnames[:] = keep

    def _on_walk_error(self, error: OSError) -> None:
        self._record_error(error.filename or "<unknown>", error)

    def _record_error(self, path: str, error: OSError) -> None:
        message = f"{path}: {error.strerror or error}"
        logger.warning("Skipping unreadable entry %s", message)
        self._errors.append(message)

    def get_errors(self) -> List[str]:
        """Get list of errors encountered during traversal.

        Returns:
            List of error message strings.
        """
        return self._errors.copy()

    def clear_errors(self) -> None:
        """Clear the list of accumulated errors."""
        self._errors.clear()
