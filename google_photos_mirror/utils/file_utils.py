"""File utilities for Google Photos Mirror."""

import logging
import os
import tempfile

from google_photos_mirror.models import DecodeError, MediaItem, StorageError

logger = logging.getLogger(__name__)

PATH_SEPARATORS = frozenset(sep for sep in ("/", os.sep, os.altsep) if sep)
UNUSABLE_NAMES = ("", ".", "..")


def sanitize_filename(filename: str) -> str:
    """Replace every path separator in a filename with an underscore.

    Args:
        filename: Filename as reported by the API

    Returns:
        Filename safe to use as a single path component
    """
    for sep in PATH_SEPARATORS:
        filename = filename.replace(sep, "_")
    return filename


def local_filename(item: MediaItem) -> str:
    """Get the local filename for a media item.

    Falls back to the item id when the sanitized filename would name a
    directory instead of a file.

    Raises:
        DecodeError: If neither the filename nor the id is usable
    """
    name = sanitize_filename(item.filename)
    if name in UNUSABLE_NAMES:
        logger.warning("Item %s has unusable filename %r, using its id", item.id, item.filename)
        name = sanitize_filename(item.id)
    if name in UNUSABLE_NAMES:
        raise DecodeError(f"Media item has no usable filename or id: {item!r}")
    return name


def file_exists(path: str) -> bool:
    """Check whether a regular file already exists at path."""
    return os.path.isfile(path)


def ensure_directory(path: str) -> None:
    """Create a directory (and parents) if it does not exist.

    Raises:
        StorageError: If the directory cannot be created
    """
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise StorageError(f"Cannot create directory {path}: {e}") from e


def write_file_atomic(path: str, content: bytes) -> None:
    """Write content to path through a temporary file in the same directory.

    The final name only appears once all bytes are on disk, so an
    interrupted write never looks like a finished download.

    Args:
        path: Destination path, replaced if it exists
        content: Bytes to write

    Raises:
        StorageError: If the file cannot be written
    """
    directory = os.path.dirname(path) or "."
    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            "wb", dir=directory, prefix=".", suffix=".part", delete=False
        ) as tmp:
            tmp_path = tmp.name
            tmp.write(content)
        os.chmod(tmp_path, 0o644)
        os.replace(tmp_path, path)
    except OSError as e:
        if tmp_path and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise StorageError(f"Failed to write {path}: {e}") from e
