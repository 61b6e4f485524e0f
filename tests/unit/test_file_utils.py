"""Unit tests for file utilities."""

import os

import pytest

from google_photos_mirror.models import DecodeError, MediaItem, StorageError
from google_photos_mirror.utils.file_utils import (
    file_exists,
    local_filename,
    sanitize_filename,
    write_file_atomic,
)


def test_sanitize_filename():
    """Test filename sanitization."""
    test_cases = [
        ("photo.jpg", "photo.jpg"),
        ("b/c.jpg", "b_c.jpg"),
        ("/abs/path/x.png", "_abs_path_x.png"),
        ("a//b", "a__b"),
        ("Vacation! 2023 (1).JPEG", "Vacation! 2023 (1).JPEG"),
        ("ünïcødé/名前.heic", "ünïcødé_名前.heic"),
        ("", ""),
    ]

    for input_name, expected in test_cases:
        assert sanitize_filename(input_name) == expected


@pytest.mark.parametrize(
    "filename, expected",
    [("a/b.jpg", "a_b.jpg"), ("", "item_1"), (".", "item_1"), ("..", "item_1")],
)
def test_local_filename(filename, expected):
    """Test local names, falling back to the id for unusable filenames."""
    item = MediaItem(id="item_1", description="", base_url="", mime_type="", filename=filename)
    assert local_filename(item) == expected


@pytest.mark.parametrize("item_id", ["", ".", ".."])
def test_local_filename_without_name_or_id(item_id):
    """Test that an item with no usable filename or id is rejected."""
    item = MediaItem(id=item_id, description="", base_url="http://x/a", mime_type="", filename="")
    with pytest.raises(DecodeError):
        local_filename(item)


def test_file_exists(tmp_path):
    """Test that only regular files count as existing."""
    (tmp_path / "photo.jpg").write_bytes(b"data")
    (tmp_path / "folder.jpg").mkdir()

    assert file_exists(str(tmp_path / "photo.jpg"))
    assert not file_exists(str(tmp_path / "folder.jpg"))
    assert not file_exists(str(tmp_path / "missing.jpg"))
    assert not file_exists(str(tmp_path))


def test_write_file_atomic(tmp_path):
    """Test writing and overwriting a file."""
    path = tmp_path / "photo.jpg"

    write_file_atomic(str(path), b"first")
    assert path.read_bytes() == b"first"

    write_file_atomic(str(path), b"second")
    assert path.read_bytes() == b"second"

    # No temporary files left behind
    assert os.listdir(tmp_path) == ["photo.jpg"]


def test_write_file_atomic_missing_directory(tmp_path):
    """Test that writing into a missing directory raises a storage error."""
    with pytest.raises(StorageError):
        write_file_atomic(str(tmp_path / "missing" / "photo.jpg"), b"data")


def test_write_file_atomic_cleans_up(tmp_path, mocker):
    """Test that a failed rename removes the temporary file."""
    mocker.patch("os.replace", side_effect=OSError("disk full"))

    with pytest.raises(StorageError):
        write_file_atomic(str(tmp_path / "photo.jpg"), b"data")

    assert os.listdir(tmp_path) == []
