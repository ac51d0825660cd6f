"""hashkeep - Content-hash file catalog.

Keeps a persistent catalog of file fingerprints (MD5 and BLAKE3) and uses it
to find duplicates, clean clutter and merge directory trees by content.
"""

__version__ = "0.1.0"

from .models import (
    CatalogEntry,
    DirtyKind,
    DuplicateGroup,
    Fingerprint,
    SyncOptions,
)

__all__ = [
    "__version__",
    "CatalogEntry",
    "DirtyKind",
    "DuplicateGroup",
    "Fingerprint",
    "SyncOptions",
]


def main() -> None:
    """Entry point for the hashkeep CLI application.

    Imports and runs the Typer app from the hashkeep.cli module.
    """
    from hashkeep.cli import app
    app()
