"""Find the topmost empty directories beneath a root."""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Iterable, Iterator
from pathlib import Path

from hollow.core.evaluator import is_empty
from hollow.core.hierarchy import build_hierarchy
from hollow.models.hierarchy import DirectoryHierarchy, path_depth

log = logging.getLogger(__name__)

# Package-like directories that are treated as a single unit by the walk.
DEFAULT_BUNDLE_SUFFIXES: tuple[str, ...] = (
    ".app",
    ".appex",
    ".bundle",
    ".framework",
    ".kext",
    ".pkg",
    ".plugin",
    ".photoslibrary",
    ".xcodeproj",
    ".xcworkspace",
)


def is_bundle(name: str, bundle_suffixes: Iterable[str] = DEFAULT_BUNDLE_SUFFIXES) -> bool:
    """Check whether a directory name marks an opaque bundle."""
    lowered = name.lower()
    return any(lowered.endswith(suffix.lower()) for suffix in bundle_suffixes)


def iter_directories(
    root: Path | str,
    bundle_suffixes: Iterable[str] = DEFAULT_BUNDLE_SUFFIXES,
) -> Iterator[str]:
    """Yield every directory strictly below *root*.

    Symlinks are never followed.  Bundle directories are yielded but not
    descended into.  Directories that cannot be listed are skipped.
    """
    suffixes = tuple(bundle_suffixes)
    stack: list[str] = [os.fspath(root)]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                for entry in it:
                    try:
                        if not entry.is_dir(follow_symlinks=False):
                            continue
                    except OSError:
                        continue
                    yield entry.path
                    if not is_bundle(entry.name, suffixes):
                        stack.append(entry.path)
        except OSError as e:
            log.debug("Cannot read %s: %s", current, e)


def minimal_roots(empty_dirs: Iterable[str]) -> list[str]:
    """Reduce a set of empty directories to the topmost ones.

    Candidates are visited shallowest first; one is kept only if no kept
    path is its ancestor.  The result never holds two paths where one
    contains the other.
    """
    kept: list[str] = []
    kept_set: set[str] = set()
    for candidate in sorted(set(empty_dirs), key=lambda p: (path_depth(p), p)):
        if any(str(parent) in kept_set for parent in Path(candidate).parents):
            continue
        kept.append(candidate)
        kept_set.add(candidate)
    return kept


def find_empty_directories(
    root: Path | str,
    include_hidden: bool = True,
    bundle_suffixes: Iterable[str] = DEFAULT_BUNDLE_SUFFIXES,
) -> set[str]:
    """Return every empty directory below *root* as a flat set of paths.

    Directories are evaluated deepest first so each verdict reuses the
    ones already computed for its subdirectories.
    """
    directories = list(iter_directories(root, bundle_suffixes))
    directories.sort(key=path_depth, reverse=True)

    cache: dict[str, bool] = {}
    return {d for d in directories if is_empty(d, include_hidden, cache)}


def scan(
    root: Path | str,
    include_hidden: bool = True,
    bundle_suffixes: Iterable[str] = DEFAULT_BUNDLE_SUFFIXES,
) -> list[DirectoryHierarchy]:
    """Scan *root* for empty directory trees.

    Args:
        root: Directory to scan.  The root itself is never reported.
        include_hidden: Whether hidden entries count as content.  With the
            default, a directory holding only ``.DS_Store`` is not empty.
        bundle_suffixes: Name suffixes of directories not descended into.

    Returns:
        One hierarchy per topmost empty directory, sorted by path.
    """
    start = time.monotonic()
    empty = find_empty_directories(root, include_hidden, bundle_suffixes)
    roots = minimal_roots(empty)
    hierarchies = [build_hierarchy(r, empty) for r in roots]
    hierarchies.sort(key=lambda h: str(h.path))

    log.info(
        "Scanned %s: %d empty directories in %d trees (%.2fs)",
        root,
        len(empty),
        len(hierarchies),
        time.monotonic() - start,
    )
    return hierarchies
