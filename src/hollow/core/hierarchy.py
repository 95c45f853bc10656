"""Assemble nested hierarchies from a flat set of empty directories."""

from __future__ import annotations

import logging
import os
from collections.abc import Collection
from pathlib import Path

from hollow.models.hierarchy import DirectoryHierarchy, path_depth

log = logging.getLogger(__name__)


def build_hierarchy(path: Path | str, empty_set: Collection[str]) -> DirectoryHierarchy:
    """Build the tree of empty directories rooted at *path*.

    A child is included when it is a real directory whose path string is
    a member of *empty_set*.  Children are sorted by path.  A directory
    that can no longer be listed becomes a leaf.

    The subtree is first collected top-down with an explicit stack, then
    nodes are created deepest first so every parent receives finished
    children.
    """
    root = os.fspath(path)
    order: list[str] = []
    children_of: dict[str, list[str]] = {}

    stack = [root]
    while stack:
        current = stack.pop()
        order.append(current)
        subdirs = sorted(_empty_subdirs(current, empty_set))
        children_of[current] = subdirs
        stack.extend(subdirs)

    built: dict[str, DirectoryHierarchy] = {}
    for current in reversed(order):
        built[current] = DirectoryHierarchy(
            path=Path(current),
            depth=path_depth(current),
            children=tuple(built.pop(child) for child in children_of[current]),
        )
    return built[root]


def _empty_subdirs(path: str, empty_set: Collection[str]) -> list[str]:
    try:
        with os.scandir(path) as it:
            return [entry.path for entry in it if entry.path in empty_set and _is_real_dir(entry)]
    except OSError as e:
        log.debug("Cannot list %s while building hierarchy: %s", path, e)
        return []


def _is_real_dir(entry: os.DirEntry) -> bool:
    try:
        return entry.is_dir(follow_symlinks=False)
    except OSError:
        return False
