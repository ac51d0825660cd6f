"""Operations package for hashkeep.

Each operation is a class taking its collaborators in the constructor and
exposing ``run()``, which returns a summary dataclass:

- SyncPipeline: Bring the catalog up to date for a set of trees.
- CatalogCleaner: Drop catalog rows whose files are gone.
- DuplicateResolver: Move selected copies of duplicate files away.
- DirtyCleaner: Move clutter files and empty folders away.
- MergeEngine: Copy content missing from a target tree into it.
"""

from .catalog_cleaner import CatalogCleaner
from .dirty_cleaner import DirtyCleaner
from .duplicate_resolver import DuplicateResolver
from .file_moves import copy_file_durably, move_file, unique_destination
from .merge_engine import MergeEngine
from .sync_pipeline import SyncPipeline

__all__ = [
    "CatalogCleaner",
    "DirtyCleaner",
    "DuplicateResolver",
    "MergeEngine",
    "SyncPipeline",
    "copy_file_durably",
    "move_file",
    "unique_destination",
]
