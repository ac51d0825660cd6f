"""
Filesystem primitives shared by the destructive operations.

Moves are a rename when source and destination share a filesystem and fall
back to copy-then-delete otherwise. Copies are only complete once the
destination has been fsync'd.
"""

import errno
import logging
import os
import shutil
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def unique_destination(dest: Path) -> Path:
    """
    Return ``dest`` or, if it already exists, the first free ``name_N.ext`` next to it.
    """
    if not os.path.lexists(dest):
        return dest

    stem = dest.stem
    suffix = dest.suffix
    counter = 1
    while True:
        candidate = dest.with_name(f"{stem}_{counter}{suffix}")
        if not os.path.lexists(candidate):
            return candidate
        counter += 1


def relative_destination(path: PathLike, anchor: Optional[Path], base_dir: Path) -> Path:
    """
    Map ``path`` under ``base_dir``, keeping its position relative to ``anchor``.

    Paths outside the anchor keep only their file name.
    """
    path = Path(path)
    if anchor is not None:
        try:
            return base_dir / path.relative_to(anchor)
        except ValueError:
            pass
    return base_dir / path.name


def move_file(source: PathLike, dest: Path) -> Path:
    """
    Move a file or directory to ``dest``, creating parent directories as needed.

    An existing destination is never overwritten; a numeric suffix is added
    instead.

    Returns:
        Path: Where the file ended up.

    Raises:
        OSError: If the move fails. A failed rename leaves the source untouched.
    """
    dest = unique_destination(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)

    try:
        os.rename(source, dest)
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise
        # Different filesystem: copy then delete
        logger.debug("Cross-device move, copying %s -> %s", source, dest)
        shutil.move(str(source), str(dest))

    logger.info("Moved %s -> %s", source, dest)
    return dest


def copy_file_durably(source: PathLike, dest: Path, chunk_size: int = 1024 * 1024) -> Path:
    """
    Copy a file's bytes and metadata, flushing the destination to disk.

    Creates parent directories as needed and adds a numeric suffix instead of
    overwriting an existing destination.

    Returns:
        Path: The destination written.

    Raises:
        OSError: If any step fails; a partially written destination is removed.
    """
    dest = unique_destination(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)

    created = False
    try:
        with open(source, "rb") as src_file:
            with open(dest, "xb") as dst_file:
                created = True
                shutil.copyfileobj(src_file, dst_file, chunk_size)
                dst_file.flush()
                os.fsync(dst_file.fileno())
        shutil.copystat(source, dest)
    except OSError:
        if created:
            try:
                dest.unlink()
            except OSError as cleanup_error:
                logger.warning("Could not remove partial copy %s: %s", dest, cleanup_error)
        raise

    logger.debug("Copied %s -> %s", source, dest)
    return dest
