"""Catalog-accelerated fingerprinting.

This module provides the CatalogHasher class, which returns the catalog's
stored fingerprint for a path when one exists and otherwise fingerprints the
file and records it in the catalog.

Example:
    >>> from hashkeep.scanning import CatalogHasher
    >>> hasher = CatalogHasher(store)
    >>> entry = hasher.fingerprint("/path/to/file.txt")
    >>> if entry:
    ...     print(f"BLAKE3: {entry.fingerprint.blake3}")
"""

import logging
from typing import Dict, List, Optional

from hashkeep.catalog import CatalogStore
from hashkeep.errors import EntryNotFoundError
from hashkeep.models import CatalogEntry

from .fingerprint import build_entry, canonical_path

logger = logging.getLogger(__name__)


class CatalogHasher:
    """Fingerprints files, using the catalog as a cache.

    A path already cataloged with both digests is a cache hit and its stored
    entry is returned without reading the file. Any other path is read,
    fingerprinted and upserted, so later scans can reuse it.

    Attributes:
        _store: Catalog used as cache and written on misses.
        _tag: Tag stamped onto entries created here.
        _errors: List of error messages encountered during hashing.
        _cache_hits: Counter for catalog hits.
        _cache_misses: Counter for catalog misses.
    """

    def __init__(self, store: CatalogStore, tag: str = "") -> None:
        """Initialize the CatalogHasher.

        Args:
            store: Catalog to read from and write to.
            tag: Tag stamped onto newly created entries.
        """
        self._store = store
        self._tag = tag
        self._errors: List[str] = []
        self._cache_hits: int = 0
        self._cache_misses: int = 0

    def fingerprint(self, path: str) -> Optional[CatalogEntry]:
        """Return the catalog entry for a file, creating it if needed.

        Args:
            path: File to fingerprint.

        Returns:
            The cached or freshly created entry, or None if the file could
            not be read (the error is recorded).

        Raises:
            StoreError: If the catalog fails; this is never swallowed.
        """
        resolved = canonical_path(path)

        try:
            cached = self._store.get(resolved)
        except EntryNotFoundError:
            cached = None

        if cached is not None and cached.fingerprint.is_complete():
            self._cache_hits += 1
            return cached

        self._cache_misses += 1
        try:
            entry = build_entry(resolved, tag=self._tag)
        except OSError as e:
            message = f"{resolved}: {e.strerror or e}"
            logger.warning("Could not fingerprint %s", message)
            self._errors.append(message)
            return None

        self._store.upsert(entry)
        return entry

    def get_cache_stats(self) -> Dict[str, int]:
        """Get catalog hit/miss counts.

        Returns:
            Dictionary containing 'hits' and 'misses'.
        """
        return {
            "hits": self._cache_hits,
            "misses": self._cache_misses,
        }

    def get_errors(self) -> List[str]:
        """Get list of errors encountered during hashing operations.

        Returns:
            List of error message strings.
        """
        return self._errors.copy()

    def clear_errors(self) -> None:
        """Clear the list of accumulated errors."""
        self._errors.clear()
