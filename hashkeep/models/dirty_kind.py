"""
DirtyKind enum for the categories of clutter the dirty cleaner can remove.

Each member's value is the label shown to the user when choosing which
categories to clean.
"""

from enum import Enum


class DirtyKind(Enum):
    """Encodes the categories of dirty files and folders."""
    EMPTY_FILE = "Files with size 0"
    SMALL_FILE = "Files smaller than 1KB"
    MAC_METADATA = "macOS .DS_Store files"
    WINDOWS_THUMBNAILS = "Windows Thumbs.db files"
    EMPTY_FOLDER = "Empty folders"
    HIDDEN_FILE = "Hidden files (starting with .)"
    OFFICE_TEMP = "Office temporary files"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def from_label(cls, label: str) -> "DirtyKind":
        for kind in cls:
            if kind.value == label:
                return kind
        raise ValueError(f"Unknown dirty file kind: {label}")
