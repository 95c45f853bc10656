"""Shared utility functions."""

from __future__ import annotations

import os
import stat
from pathlib import Path


def remove_tree(path: Path | str) -> None:
    """Remove a directory and everything beneath it.

    Walks with an explicit stack and removes entries deepest first, so
    arbitrarily deep chains are handled.  Symlinks are unlinked, never
    followed.  The first ``OSError`` (``PermissionError`` included)
    propagates; entries removed before it stay removed.
    """
    root = os.fspath(path)
    if stat.S_ISLNK(os.lstat(root).st_mode):
        raise OSError(f"Cannot remove a symbolic link as a directory tree: {root}")

    directories: list[str] = []
    stack = [root]
    while stack:
        current = stack.pop()
        directories.append(current)
        with os.scandir(current) as it:
            for entry in it:
                if entry.is_dir(follow_symlinks=False):
                    stack.append(entry.path)
                else:
                    os.unlink(entry.path)

    for directory in reversed(directories):
        os.rmdir(directory)


def plural(count: int, noun: str) -> str:
    """Format a count with a naively pluralized noun ('1 folder', '2 folders')."""
    return f"{count:,} {noun}{'s' if count != 1 else ''}"


def format_elapsed(seconds: float) -> str:
    """Format an elapsed time as a human-readable string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f} ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds) // 60
    secs = seconds - minutes * 60
    return f"{minutes}m {secs:.0f}s"
