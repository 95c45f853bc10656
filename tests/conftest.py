"""Shared test fixtures."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from hollow.settings import Settings
from hollow.utils import remove_tree


@pytest.fixture(autouse=True)
def isolate_settings(tmp_path, monkeypatch):
    """Redirect settings to a temp directory and reset the singleton."""
    config_home = tmp_path / "config"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.setattr(Settings, "_instance", None)
    return config_home / "hollow" / "settings.json"


@pytest.fixture
def make_tree(tmp_path):
    """Build a directory layout under ``tmp_path / "root"``.

    Entries ending in ``/`` are directories, everything else is a file::

        root = make_tree("a/", "b/c/", "d/file.txt")
    """

    def _make(*entries: str) -> Path:
        root = tmp_path / "root"
        root.mkdir(exist_ok=True)
        for entry in entries:
            target = root / entry
            if entry.endswith("/"):
                target.mkdir(parents=True, exist_ok=True)
            else:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text("content")
        return root

    return _make


CHAIN_LENGTH = 1100


@pytest.fixture
def deep_chain(tmp_path):
    """Create ``tmp_path / "deep" / d / d / ...`` nested ``CHAIN_LENGTH`` levels.

    Returns the parent directory and the innermost directory of the chain.
    """
    base = tmp_path / "deep"
    base.mkdir()
    current = base
    for _ in range(CHAIN_LENGTH):
        current = current / "d"
        os.mkdir(current)
    yield base, current
    # pytest's recursive tmp-dir cleanup cannot handle a chain this deep.
    if base.exists():
        remove_tree(base)
