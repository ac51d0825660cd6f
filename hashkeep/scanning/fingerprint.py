"""Single-pass dual-hash fingerprinting.

This module computes a file's MD5 and BLAKE3 digests from one sequential read
and derives the stable catalog key of a path.

Example:
    >>> from hashkeep.scanning import fingerprint_file
    >>> fp = fingerprint_file("/path/to/file.txt")
    >>> print(fp.md5, fp.blake3)
"""

import hashlib
import os
from typing import Union

from blake3 import blake3

from hashkeep.models import CatalogEntry, Fingerprint

# Buffer size for chunked file reading (1MB)
CHUNK_SIZE = 1024 * 1024

PathLike = Union[str, "os.PathLike[str]"]


def canonical_path(path: PathLike) -> str:
    """Return the absolute path with symlinks resolved.

    Every catalog key and every catalog lookup goes through this form, so a
    file reached through a symlinked directory maps to the same row.
    """
    return os.path.realpath(os.fspath(path))


def path_key(path: PathLike) -> str:
    """Return the catalog key of a path: BLAKE3 of its canonical form."""
    return blake3(os.fsencode(canonical_path(path))).hexdigest()


def fingerprint_file(path: PathLike, chunk_size: int = CHUNK_SIZE) -> Fingerprint:
    """Compute the MD5 and BLAKE3 digests of a file in one pass.

    Each chunk read from disk is fed to both hash accumulators, so the file
    is read exactly once.

    Args:
        path: File to fingerprint.
        chunk_size: Bytes per read.

    Returns:
        Fingerprint with both digests as lowercase hex strings.

    Raises:
        OSError: If the file cannot be opened or a read fails. No partial
            digest is ever returned.
    """
    md5_hash = hashlib.md5()
    blake3_hash = blake3()

    with open(path, "rb") as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            md5_hash.update(chunk)
            blake3_hash.update(chunk)

    return Fingerprint(md5=md5_hash.hexdigest(), blake3=blake3_hash.hexdigest())


def build_entry(path: PathLike, tag: str = "") -> CatalogEntry:
    """Stat and fingerprint a file and return a fresh catalog entry.

    Raises:
        OSError: If the stat or the read fails.
    """
    resolved = canonical_path(path)
    stat_result = os.stat(resolved)
    fingerprint = fingerprint_file(resolved)

    return CatalogEntry(
        key=path_key(resolved),
        name=os.path.basename(resolved),
        path=resolved,
        fingerprint=fingerprint,
        size=stat_result.st_size,
        modified_time=stat_result.st_mtime,
        # st_birthtime exists on macOS and BSD; elsewhere ctime is the closest
        changed_time=getattr(stat_result, "st_birthtime", stat_result.st_ctime),
        tag=tag,
    )
