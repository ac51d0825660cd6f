"""Catalog persistence package for hashkeep.

- CatalogStore: Abstract contract every catalog backend implements.
- SqliteCatalogStore: SQLite implementation used by the CLI.

Example:
    >>> from hashkeep.catalog import SqliteCatalogStore
    >>> with SqliteCatalogStore(Path("hashkeep.db")) as store:
    ...     print(store.count())
"""

from .sqlite_store import SqliteCatalogStore
from .store import CatalogStore

__all__ = ["CatalogStore", "SqliteCatalogStore"]
