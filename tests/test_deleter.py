"""Tests for single and batch deletion."""

from __future__ import annotations

import json
import shutil
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from hollow.core.deleter import ElevationError, delete_all, delete_hierarchy
from hollow.core.privileges import PrivilegeError, make_pkexec_delete
from hollow.models.hierarchy import DirectoryHierarchy


class FakeElevation:
    """Elevated-delete stand-in that records calls and removes paths itself."""

    def __init__(self, fail: set[str] | None = None, leave_behind: set[str] | None = None, error: str | None = None):
        self.calls: list[list[str]] = []
        self._fail = fail or set()
        self._leave_behind = leave_behind or set()
        self._error = error

    def __call__(self, paths):
        self.calls.append([str(p) for p in paths])
        if self._error:
            raise PrivilegeError(self._error)
        failures = {}
        for path in paths:
            key = str(path)
            if key in self._fail:
                failures[key] = "Operation not permitted"
            elif key not in self._leave_behind:
                shutil.rmtree(path)
        return failures


def _deny(monkeypatch, protected: set[Path]):
    """Make ordinary removal raise PermissionError for *protected* paths."""
    real_rmtree = shutil.rmtree

    def fake_remove(path):
        if Path(path) in protected:
            raise PermissionError(13, "Permission denied", str(path))
        real_rmtree(path)

    monkeypatch.setattr("hollow.core.deleter.remove_tree", fake_remove)


def _hierarchies(root: Path, names: list[str]) -> list[DirectoryHierarchy]:
    return [DirectoryHierarchy.leaf(root / name) for name in names]


class TestDeleteHierarchy:
    def test_removes_tree_but_not_siblings(self, make_tree):
        root = make_tree("a/b/c/", "sibling/")
        delete_hierarchy(DirectoryHierarchy.leaf(root / "a"))
        assert not (root / "a").exists()
        assert (root / "sibling").is_dir()

    def test_permission_error_propagates_without_elevation(self, make_tree, monkeypatch):
        root = make_tree("a/")
        _deny(monkeypatch, {root / "a"})
        elevation = FakeElevation()
        with pytest.raises(PermissionError):
            delete_hierarchy(DirectoryHierarchy.leaf(root / "a"), elevated_delete=elevation)
        assert elevation.calls == []
        assert (root / "a").exists()

    def test_elevated_retry_succeeds(self, make_tree, monkeypatch):
        root = make_tree("a/")
        _deny(monkeypatch, {root / "a"})
        elevation = FakeElevation()
        delete_hierarchy(DirectoryHierarchy.leaf(root / "a"), allow_elevation=True, elevated_delete=elevation)
        assert elevation.calls == [[str(root / "a")]]
        assert not (root / "a").exists()

    def test_elevated_retry_reports_failure(self, make_tree, monkeypatch):
        root = make_tree("a/")
        _deny(monkeypatch, {root / "a"})
        elevation = FakeElevation(fail={str(root / "a")})
        with pytest.raises(ElevationError, match="not permitted"):
            delete_hierarchy(DirectoryHierarchy.leaf(root / "a"), allow_elevation=True, elevated_delete=elevation)

    def test_elevated_retry_path_still_exists(self, make_tree, monkeypatch):
        root = make_tree("a/")
        _deny(monkeypatch, {root / "a"})
        elevation = FakeElevation(leave_behind={str(root / "a")})
        with pytest.raises(ElevationError, match="still exists"):
            delete_hierarchy(DirectoryHierarchy.leaf(root / "a"), allow_elevation=True, elevated_delete=elevation)

    def test_elevation_mechanism_error(self, make_tree, monkeypatch):
        root = make_tree("a/")
        _deny(monkeypatch, {root / "a"})
        elevation = FakeElevation(error="Authentication dismissed by user")
        with pytest.raises(ElevationError, match="dismissed"):
            delete_hierarchy(DirectoryHierarchy.leaf(root / "a"), allow_elevation=True, elevated_delete=elevation)

    def test_other_errors_propagate_unchanged(self, tmp_path):
        elevation = FakeElevation()
        with pytest.raises(FileNotFoundError):
            delete_hierarchy(
                DirectoryHierarchy.leaf(tmp_path / "vanished"),
                allow_elevation=True,
                elevated_delete=elevation,
            )
        assert elevation.calls == []


class TestDeleteAll:
    NAMES = ["a", "b", "c", "d", "e"]

    def test_all_succeed(self, make_tree):
        root = make_tree(*(f"{n}/" for n in self.NAMES))
        deleted: list[Path] = []
        stats, message = delete_all(
            _hierarchies(root, self.NAMES),
            elevated_delete=FakeElevation(),
            on_deleted=lambda h: deleted.append(h.path),
        )
        assert (stats.deleted, stats.failed) == (5, 0)
        assert message is None
        assert deleted == [root / n for n in self.NAMES]

    def test_permission_failures_without_elevation(self, make_tree, monkeypatch):
        root = make_tree(*(f"{n}/" for n in self.NAMES))
        _deny(monkeypatch, {root / "b", root / "c", root / "e"})
        elevation = FakeElevation()

        stats, message = delete_all(_hierarchies(root, self.NAMES), ask_for_elevation=False, elevated_delete=elevation)

        assert (stats.deleted, stats.failed) == (2, 3)
        assert elevation.calls == []
        assert "insufficient permissions" in message
        assert "3 folders" in message

    def test_permission_failures_recovered_with_elevation(self, make_tree, monkeypatch):
        root = make_tree(*(f"{n}/" for n in self.NAMES))
        _deny(monkeypatch, {root / "b", root / "c", root / "e"})
        elevation = FakeElevation()

        stats, message = delete_all(_hierarchies(root, self.NAMES), ask_for_elevation=True, elevated_delete=elevation)

        assert (stats.deleted, stats.failed) == (5, 0)
        assert message is None
        # one batched call covering exactly the denied items
        assert elevation.calls == [[str(root / "b"), str(root / "c"), str(root / "e")]]

    def test_elevation_partial_failure(self, make_tree, monkeypatch):
        root = make_tree(*(f"{n}/" for n in self.NAMES))
        _deny(monkeypatch, {root / "b", root / "c"})
        elevation = FakeElevation(fail={str(root / "c")})

        stats, message = delete_all(_hierarchies(root, self.NAMES), elevated_delete=elevation)

        assert (stats.deleted, stats.failed) == (4, 1)
        assert "even with administrator privileges" in message

    def test_elevation_cancelled_fails_all_pending(self, make_tree, monkeypatch):
        root = make_tree(*(f"{n}/" for n in self.NAMES))
        _deny(monkeypatch, {root / "a", root / "b"})
        elevation = FakeElevation(error="Authentication dismissed by user")

        stats, message = delete_all(_hierarchies(root, self.NAMES), elevated_delete=elevation)

        assert (stats.deleted, stats.failed) == (3, 2)
        assert "even with administrator privileges" in message

    def test_vanished_before_second_pass_counts_as_deleted(self, make_tree, monkeypatch):
        root = make_tree("a/", "b/")

        def remove_then_deny(path):
            shutil.rmtree(path)
            raise PermissionError(13, "Permission denied", str(path))

        monkeypatch.setattr("hollow.core.deleter.remove_tree", remove_then_deny)
        elevation = FakeElevation()

        stats, message = delete_all(_hierarchies(root, ["a", "b"]), elevated_delete=elevation)

        assert (stats.deleted, stats.failed) == (2, 0)
        assert elevation.calls == []

    def test_other_errors_counted_not_raised(self, make_tree):
        root = make_tree("a/")
        hierarchies = _hierarchies(root, ["a", "missing"])
        elevation = FakeElevation()

        stats, message = delete_all(hierarchies, elevated_delete=elevation)

        assert (stats.deleted, stats.failed) == (1, 1)
        assert "filesystem errors" in message
        assert elevation.calls == []

    def test_malformed_helper_response_counts_as_elevation_failure(self, make_tree, monkeypatch):
        root = make_tree(*(f"{n}/" for n in self.NAMES))
        _deny(monkeypatch, {root / "b", root / "d"})
        monkeypatch.setattr("hollow.core.privileges.is_root", lambda: False)
        monkeypatch.setattr("shutil.which", lambda name: f"/usr/bin/{name}")
        response = json.dumps([{"path": str(root / "b")}, {"path": str(root / "d"), "error": ""}])

        with patch("hollow.core.privileges.subprocess.run") as mock_run:
            mock_run.return_value = subprocess.CompletedProcess(args=[], returncode=0, stdout=response, stderr="")
            stats, message = delete_all(_hierarchies(root, self.NAMES), elevated_delete=make_pkexec_delete())

        assert (stats.deleted, stats.failed) == (3, 2)
        assert "even with administrator privileges" in message
        assert (root / "b").is_dir()
        assert not (root / "a").exists()
