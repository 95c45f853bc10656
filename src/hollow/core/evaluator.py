"""Recursive emptiness check for directories."""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path

log = logging.getLogger(__name__)

# Windows FILE_ATTRIBUTE_HIDDEN; stat only defines it on Windows.
_FILE_ATTRIBUTE_HIDDEN = getattr(stat, "FILE_ATTRIBUTE_HIDDEN", 0x2)
_UF_HIDDEN = getattr(stat, "UF_HIDDEN", 0x8000)


def is_hidden(entry: os.DirEntry) -> bool:
    """Check whether a directory entry is hidden.

    Dot-prefixed names are hidden everywhere.  The Windows hidden
    attribute and the BSD/macOS ``UF_HIDDEN`` flag are honoured where
    the platform reports them.
    """
    if entry.name.startswith("."):
        return True
    try:
        st = entry.stat(follow_symlinks=False)
    except OSError:
        return False
    attributes = getattr(st, "st_file_attributes", 0)
    if attributes & _FILE_ATTRIBUTE_HIDDEN:
        return True
    return bool(getattr(st, "st_flags", 0) & _UF_HIDDEN)


def is_empty(
    path: Path | str,
    include_hidden: bool = True,
    cache: dict[str, bool] | None = None,
) -> bool:
    """Check whether *path* contains no files anywhere beneath it.

    Every entry must be a real directory that is itself empty.  Files,
    symlinks and entries whose type cannot be read make the directory
    non-empty.  When *include_hidden* is False, hidden entries are
    ignored as if they were not there.

    Never raises: a directory that cannot be listed is reported as not
    empty, so unverified content is never offered for deletion.  The
    subtree is walked with an explicit stack, so nesting depth is only
    bounded by the filesystem.

    Args:
        path: Directory to check.
        include_hidden: Whether hidden entries count as content.
        cache: Optional verdicts keyed by path string.  Known verdicts
            short-circuit the walk; new ones are recorded.
    """
    key = os.fspath(path)
    if cache is not None and key in cache:
        return cache[key]

    result = _evaluate(key, include_hidden, cache)
    if cache is not None:
        cache[key] = result
    return result


def _evaluate(root: str, include_hidden: bool, cache: dict[str, bool] | None) -> bool:
    visited: list[str] = []
    stack: list[str] = [root]

    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                entries = [e for e in it if include_hidden or not is_hidden(e)]
        except OSError as e:
            log.debug("Cannot read %s: %s", current, e)
            return False

        for entry in entries:
            try:
                if not entry.is_dir(follow_symlinks=False):
                    return False
            except OSError:
                log.debug("Cannot access: %s", entry.path)
                return False
            if cache is not None and entry.path in cache:
                if not cache[entry.path]:
                    return False
                continue
            stack.append(entry.path)
        visited.append(current)

    # Every directory reached is empty once the whole subtree checked out.
    if cache is not None:
        cache.update(dict.fromkeys(visited, True))
    return True
