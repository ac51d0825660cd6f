"""
Models package for hashkeep.

This package provides convenient imports for all data models:
- Fingerprint: Content digests of a file
- CatalogEntry: Cataloged file metadata
- EntryStatus: Existence marker for catalog rows
- DuplicateGroup: Content-identical files
- DirtyKind: Categories of dirty files
- SyncOptions: Sync run settings
- SyncSummary, CleanSummary, DuplicateSummary, DirtySummary, MergeSummary:
  Operation results
"""

from .dirty_kind import DirtyKind
from .data_models import (
    CatalogEntry,
    CleanSummary,
    DirtySummary,
    DuplicateGroup,
    DuplicateSummary,
    EntryStatus,
    Fingerprint,
    MergeSummary,
    SyncOptions,
    SyncSummary,
)

__all__ = [
    "CatalogEntry",
    "CleanSummary",
    "DirtyKind",
    "DirtySummary",
    "DuplicateGroup",
    "DuplicateSummary",
    "EntryStatus",
    "Fingerprint",
    "MergeSummary",
    "SyncOptions",
    "SyncSummary",
]
