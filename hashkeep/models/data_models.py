"""
Core data models for hashkeep.

This module contains the following dataclasses:
- Fingerprint: The pair of digests identifying a file's content
- CatalogEntry: One cataloged file with its metadata and fingerprint
- DuplicateGroup: Content-identical files found by the duplicate scan
- SyncOptions: Settings for one sync run
- SyncSummary, CleanSummary, DuplicateSummary, DirtySummary, MergeSummary:
  Results of each operation
"""

from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import List, Optional, Tuple


class EntryStatus(IntEnum):
    """Existence marker stored with each catalog row."""
    EXISTS = 0
    MISSING = 1


@dataclass(frozen=True)
class Fingerprint:
    """Pair of independently computed digests of a file's bytes."""
    md5: str                          # 128-bit legacy digest, lowercase hex
    blake3: str                       # 256-bit strong digest, lowercase hex

    def is_complete(self) -> bool:
        return bool(self.md5) and bool(self.blake3)


@dataclass
class CatalogEntry:
    """One row of the catalog."""
    key: str                          # BLAKE3 of the canonical path
    name: str                         # Basename
    path: str                         # Canonical absolute path
    fingerprint: Fingerprint          # Content digests
    size: int                         # Bytes
    modified_time: float              # st_mtime
    changed_time: float               # Birth time where available, else st_ctime
    tag: str = ""                     # Sync batch label
    status: EntryStatus = EntryStatus.EXISTS


@dataclass
class DuplicateGroup:
    """Files sharing one fingerprint, sorted by path."""
    fingerprint: Fingerprint
    members: List[CatalogEntry]

    def __post_init__(self) -> None:
        self.members = sorted(self.members, key=lambda entry: entry.path)


@dataclass
class SyncOptions:
    """Settings for a sync run."""
    workers: int = 1                  # Fingerprinting threads
    tag: str = ""                     # Stamped onto every new entry
    force: bool = False               # Re-fingerprint paths already cataloged
    batch_size: int = 10              # Entries per catalog transaction

    def __post_init__(self) -> None:
        if self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {self.batch_size}")


@dataclass
class SyncSummary:
    """Results of a sync run."""
    total_files: int = 0              # Candidates found by the counting walk
    files_upserted: int = 0           # Entries committed to the catalog
    files_skipped: int = 0            # Already cataloged (force off)
    files_failed: int = 0             # Stat or fingerprint failures
    errors: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    def as_rows(self) -> List[Tuple[str, str]]:
        return [
            ("Files found", f"{self.total_files:,}"),
            ("Entries written", f"{self.files_upserted:,}"),
            ("Skipped (already cataloged)", f"{self.files_skipped:,}"),
            ("Failed", f"{self.files_failed:,}"),
        ]


@dataclass
class CleanSummary:
    """Results of a catalog cleaning pass."""
    records_checked: int = 0
    records_removed: int = 0
    errors: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    def as_rows(self) -> List[Tuple[str, str]]:
        return [
            ("Records checked", f"{self.records_checked:,}"),
            ("Records removed", f"{self.records_removed:,}"),
        ]


@dataclass
class DuplicateSummary:
    """Results of a duplicate scan and removal."""
    files_scanned: int = 0
    duplicate_groups: int = 0
    files_moved: int = 0
    records_removed: int = 0
    deleted_dir: Optional[Path] = None
    errors: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    def as_rows(self) -> List[Tuple[str, str]]:
        return [
            ("Files scanned", f"{self.files_scanned:,}"),
            ("Duplicate groups", f"{self.duplicate_groups:,}"),
            ("Files moved", f"{self.files_moved:,}"),
            ("Catalog records removed", f"{self.records_removed:,}"),
        ]


@dataclass
class DirtySummary:
    """Results of a dirty file cleanup."""
    files_found: int = 0
    files_moved: int = 0
    list_only: bool = False
    cancelled: bool = False
    errors: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    def as_rows(self) -> List[Tuple[str, str]]:
        return [
            ("Dirty paths found", f"{self.files_found:,}"),
            ("Paths moved", f"{self.files_moved:,}"),
        ]


@dataclass
class MergeSummary:
    """Results of merging a source tree into a target tree."""
    source_files: int = 0
    target_files: int = 0
    novel_files: int = 0              # Source files whose content is absent from target
    files_copied: int = 0
    backup_dir: Optional[Path] = None
    errors: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    def as_rows(self) -> List[Tuple[str, str]]:
        return [
            ("Source files", f"{self.source_files:,}"),
            ("Target files", f"{self.target_files:,}"),
            ("Novel files", f"{self.novel_files:,}"),
            ("Files copied", f"{self.files_copied:,}"),
        ]
