"""File scanning package for hashkeep.

This package provides the building blocks for discovering and fingerprinting
files:

- fingerprint_file: Computes the MD5 and BLAKE3 digests of a file in one read.
- path_key / canonical_path: Derive the stable catalog key of a path.
- ExclusionRules: Blacklist patterns loaded from a file.
- TreeWalker: Lazily yields candidate file paths under a set of roots.
- CatalogHasher: Fingerprints files, reusing catalog entries where present.

Example:
    >>> from hashkeep.scanning import TreeWalker, fingerprint_file
    >>>
    >>> walker = TreeWalker()
    >>> for path in walker.walk(["/data"]):
    ...     print(path, fingerprint_file(path).blake3)
"""

from .catalog_hasher import CatalogHasher
from .exclusion import ExclusionRules
from .fingerprint import build_entry, canonical_path, fingerprint_file, path_key
from .tree_walker import TreeWalker

__all__ = [
    "CatalogHasher",
    "ExclusionRules",
    "TreeWalker",
    "build_entry",
    "canonical_path",
    "fingerprint_file",
    "path_key",
]
