"""Catalog store contract.

A catalog store is a durable mapping from a path-derived key to the last known
metadata and fingerprint of a file. Any backend implementing CatalogStore can
be used by the operations; SqliteCatalogStore is the one shipped.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from hashkeep.errors import EntryNotFoundError
from hashkeep.models import CatalogEntry


class CatalogStore(ABC):
    """Abstract catalog of CatalogEntry rows keyed by ``entry.key``.

    Implementations must make each call all-or-nothing. They do not need to
    arbitrate concurrent writers: every operation funnels its writes through
    a single owner.
    """

    @abstractmethod
    def get(self, path: str) -> CatalogEntry:
        """Return the entry whose path equals ``path``.

        Raises:
            EntryNotFoundError: If no row has this path.
            StoreError: On backend failure.
        """

    @abstractmethod
    def upsert(self, entry: CatalogEntry) -> None:
        """Insert ``entry``, or overwrite every field of the row with its key."""

    @abstractmethod
    def upsert_many(self, entries: Iterable[CatalogEntry]) -> None:
        """Upsert a batch of entries as one transaction."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete the row with ``key``; deleting a missing key is a no-op."""

    @abstractmethod
    def all(self) -> List[CatalogEntry]:
        """Return every entry, ordered by insertion."""

    @abstractmethod
    def count(self) -> int:
        """Return the number of rows."""

    @abstractmethod
    def close(self) -> None:
        """Release the backend."""

    def find(self, path: str) -> Optional[CatalogEntry]:
        """Like ``get`` but returns None on a miss."""
        try:
            return self.get(path)
        except EntryNotFoundError:
            return None

    def __enter__(self) -> "CatalogStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
