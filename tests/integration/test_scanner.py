"""Integration tests for file enumeration."""

import os
from pathlib import Path

import pytest

from dir_merkle.hashing import FileReadFailure
from dir_merkle.scanner import list_files


def names(paths: list[Path]) -> set[str]:
    return {p.name for p in paths}


class TestListFiles:
    """Tests for listing files with and without recursion."""

    def test_top_level_only(self, nested_dir: Path):
        files = list_files(nested_dir)

        assert names(files) == {"top00.txt", "top01.txt", "top02.txt"}

    def test_recursive_any_depth(self, nested_dir: Path):
        files = list_files(nested_dir, recursive=True)

        assert names(files) == {
            "top00.txt",
            "top01.txt",
            "top02.txt",
            "inner00.txt",
            "deep00.txt",
        }

    def test_directories_never_listed(self, nested_dir: Path):
        for path in list_files(nested_dir, recursive=True):
            assert path.is_file()

    def test_empty_directory(self, tmp_path: Path):
        assert list_files(tmp_path) == []
        assert list_files(tmp_path, recursive=True) == []

    def test_only_subdirectories(self, tmp_path: Path):
        (tmp_path / "a" / "b").mkdir(parents=True)
        (tmp_path / "a" / "b" / "leaf.txt").write_text("leaf\n")

        assert list_files(tmp_path) == []
        assert names(list_files(tmp_path, recursive=True)) == {"leaf.txt"}

    def test_not_a_directory(self, tmp_path: Path):
        path = tmp_path / "file.txt"
        path.write_text("x")

        with pytest.raises(FileReadFailure):
            list_files(path)

    def test_missing_directory(self, tmp_path: Path):
        with pytest.raises(FileReadFailure) as exc_info:
            list_files(tmp_path / "missing")
        assert exc_info.value.path == tmp_path / "missing"

    def test_unknown_policy_rejected(self, nested_dir: Path):
        with pytest.raises(ValueError):
            list_files(nested_dir, recursive=True, on_read_error="Skip")

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_symlinked_directory_not_followed(self, tmp_path: Path):
        root = tmp_path / "root"
        root.mkdir()
        (root / "real.txt").write_text("real\n")
        (root / "loop").symlink_to(root, target_is_directory=True)

        files = list_files(root, recursive=True)

        assert names(files) == {"real.txt"}
