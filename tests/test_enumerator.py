"""Tests for local file discovery."""

from unittest.mock import patch

import pytest

from bucketsync.enumerator import get_all_local_files
from bucketsync.errors import EnumerationError


class TestGetAllLocalFiles:
    """Tests for get_all_local_files."""

    def test_finds_files_recursively(self, sample_tree):
        files = get_all_local_files(sample_tree)

        assert sorted(files) == sorted([sample_tree / "a.txt", sample_tree / "b" / "c.txt"])

    def test_excludes_directories(self, sample_tree):
        (sample_tree / "empty_dir").mkdir()

        files = get_all_local_files(sample_tree)

        assert all(f.is_file() for f in files)
        assert sample_tree / "b" not in files
        assert len(files) == 2

    def test_empty_directory_returns_empty_list(self, temp_dir):
        assert get_all_local_files(temp_dir) == []

    def test_missing_root_raises(self, temp_dir):
        with pytest.raises(EnumerationError, match="not a directory"):
            get_all_local_files(temp_dir / "nope")

    def test_file_as_root_raises(self, sample_tree):
        with pytest.raises(EnumerationError):
            get_all_local_files(sample_tree / "a.txt")

    def test_unreadable_directory_aborts_whole_walk(self, sample_tree):
        """A traversal error discards everything found so far."""

        def failing_walk(top, onerror=None, **kwargs):
            yield str(top), ["locked"], ["a.txt"]
            onerror(PermissionError(13, "Permission denied", str(sample_tree / "locked")))

        with patch("bucketsync.enumerator.os.walk", side_effect=failing_walk):
            with pytest.raises(EnumerationError, match="Permission denied") as exc_info:
                get_all_local_files(sample_tree)

        assert exc_info.value.path.endswith("locked")
        assert isinstance(exc_info.value.__cause__, PermissionError)

    def test_exclude_patterns(self, sample_tree):
        (sample_tree / "b" / "scratch.tmp").write_text("tmp")
        (sample_tree / "keep.tmp.txt").write_text("keep")

        files = get_all_local_files(sample_tree, exclude_patterns=["*.tmp"])

        names = sorted(f.name for f in files)
        assert names == ["a.txt", "c.txt", "keep.tmp.txt"]

    def test_exclude_pattern_with_directory(self, sample_tree):
        files = get_all_local_files(sample_tree, exclude_patterns=["b/*"])

        assert files == [sample_tree / "a.txt"]
