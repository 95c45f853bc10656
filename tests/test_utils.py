"""Tests for shared helpers."""

from __future__ import annotations

import os

import pytest

from hollow.utils import format_elapsed, plural, remove_tree


class TestRemoveTree:
    def test_removes_nested_files_and_directories(self, make_tree):
        root = make_tree("a/b/c/", "a/b/file.txt", "a/.hidden", "sibling/")
        remove_tree(root / "a")
        assert not (root / "a").exists()
        assert (root / "sibling").is_dir()

    def test_removes_chain_deeper_than_recursion_limit(self, deep_chain):
        base, _ = deep_chain
        remove_tree(base / "d")
        assert os.listdir(base) == []

    def test_symlink_inside_is_unlinked_not_followed(self, make_tree):
        root = make_tree("a/", "target/keep.txt")
        os.symlink(root / "target", root / "a" / "link")
        remove_tree(root / "a")
        assert not (root / "a").exists()
        assert (root / "target" / "keep.txt").exists()

    def test_refuses_symlink_root(self, make_tree):
        root = make_tree("target/")
        os.symlink(root / "target", root / "link")
        with pytest.raises(OSError, match="symbolic link"):
            remove_tree(root / "link")
        assert (root / "target").is_dir()

    def test_missing_path_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            remove_tree(tmp_path / "gone")


class TestFormatting:
    @pytest.mark.parametrize("count, expected", [(0, "0 folders"), (1, "1 folder"), (1200, "1,200 folders")])
    def test_plural(self, count, expected):
        assert plural(count, "folder") == expected

    @pytest.mark.parametrize("seconds, expected", [(0.25, "250 ms"), (2.5, "2.5s"), (125, "2m 5s")])
    def test_format_elapsed(self, seconds, expected):
        assert format_elapsed(seconds) == expected
