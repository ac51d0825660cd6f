"""
Unit tests for hashkeep.scanning.fingerprint.

Tests cover:
- MD5 and BLAKE3 digests from one read
- Known digests of the empty file
- Chunk boundaries
- Path keys and canonicalization
- Catalog entry construction
- Error handling (missing file)
"""

import hashlib
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from blake3 import blake3

from hashkeep.models import EntryStatus
from hashkeep.scanning import build_entry, canonical_path, fingerprint_file, path_key

EMPTY_MD5 = "d41d8cd98f00b204e9800998ecf8427e"
EMPTY_BLAKE3 = "af1349b9f5f9a1a6a0404dea36dcc9499bcb25c9adc112b7cc9a93cae41f3262"


@pytest.mark.unit
class TestFingerprintFile:
    """Tests for fingerprint_file()."""

    def test_digests_match_reference_implementations(self, temp_dir: Path):
        """Both digests equal those computed directly over the bytes."""
        content = b"Hello, World! This is test content."
        test_file = temp_dir / "test.txt"
        test_file.write_bytes(content)

        fingerprint = fingerprint_file(test_file)

        assert fingerprint.md5 == hashlib.md5(content).hexdigest()
        assert fingerprint.blake3 == blake3(content).hexdigest()
        assert len(fingerprint.md5) == 32
        assert len(fingerprint.blake3) == 64

    def test_empty_file(self, temp_dir: Path):
        """Empty files have the well-known empty digests."""
        test_file = temp_dir / "empty.txt"
        test_file.touch()

        fingerprint = fingerprint_file(test_file)

        assert fingerprint.md5 == EMPTY_MD5
        assert fingerprint.blake3 == EMPTY_BLAKE3
        assert fingerprint.is_complete()

    def test_chunk_size_does_not_change_result(self, temp_dir: Path):
        """Reading in small chunks gives the same digests as one read."""
        content = os.urandom(10_000)
        test_file = temp_dir / "random.bin"
        test_file.write_bytes(content)

        assert fingerprint_file(test_file, chunk_size=7) == fingerprint_file(test_file)

    def test_file_is_opened_once(self, temp_dir: Path):
        """Both digests come from a single open of the file."""
        test_file = temp_dir / "once.txt"
        test_file.write_bytes(b"x" * 5000)

        with patch("builtins.open", wraps=open) as mock_open:
            fingerprint_file(test_file, chunk_size=1024)

        assert mock_open.call_count == 1

    def test_missing_file_raises(self, temp_dir: Path):
        """A missing file raises OSError rather than returning a partial result."""
        with pytest.raises(OSError):
            fingerprint_file(temp_dir / "missing.txt")


@pytest.mark.unit
class TestPathKey:
    """Tests for path_key() and canonical_path()."""

    def test_key_is_blake3_of_canonical_path(self, temp_dir: Path):
        """The key is the BLAKE3 hex digest of the absolute path string."""
        path = temp_dir / "file.txt"
        expected = blake3(str(path).encode("utf-8")).hexdigest()

        assert path_key(path) == expected

    def test_key_is_stable(self, temp_dir: Path):
        """The same path always maps to the same key."""
        path = temp_dir / "file.txt"
        assert path_key(path) == path_key(str(path))

    def test_relative_and_absolute_forms_agree(self, temp_dir: Path, monkeypatch):
        """A relative path is made absolute before hashing."""
        monkeypatch.chdir(temp_dir)
        assert path_key("file.txt") == path_key(temp_dir / "file.txt")

    def test_symlink_resolves_to_target(self, temp_dir: Path):
        """A symlink and its target share one canonical path and key."""
        target = temp_dir / "target.txt"
        target.write_text("content")
        link = temp_dir / "link.txt"
        try:
            link.symlink_to(target)
        except OSError:
            pytest.skip("Symlinks not supported")

        assert canonical_path(link) == str(target)
        assert path_key(link) == path_key(target)


@pytest.mark.unit
class TestBuildEntry:
    """Tests for build_entry()."""

    def test_entry_fields(self, temp_dir: Path):
        """Entry carries canonical path, name, key, size and digests."""
        test_file = temp_dir / "photo.jpg"
        test_file.write_bytes(b"abc")

        entry = build_entry(test_file, tag="weekly")

        assert entry.path == str(test_file)
        assert entry.name == "photo.jpg"
        assert entry.key == path_key(test_file)
        assert entry.size == 3
        assert entry.tag == "weekly"
        assert entry.status == EntryStatus.EXISTS
        assert entry.fingerprint == fingerprint_file(test_file)
        assert entry.modified_time == pytest.approx(test_file.stat().st_mtime)

    def test_missing_file_raises(self, temp_dir: Path):
        with pytest.raises(OSError):
            build_entry(temp_dir / "missing.bin")
