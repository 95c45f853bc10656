"""Deletion of empty hierarchies with an elevated fallback."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Callable

from hollow.core.privileges import ElevatedDelete, PrivilegeError, pkexec_delete
from hollow.models.deletion_stats import DeletionStats
from hollow.models.hierarchy import DirectoryHierarchy
from hollow.utils import plural, remove_tree

log = logging.getLogger(__name__)

DeletedCallback = Callable[[DirectoryHierarchy], None]


class ElevationError(Exception):
    """Raised when a privileged delete failed or left the path behind."""


def delete_hierarchy(
    hierarchy: DirectoryHierarchy,
    allow_elevation: bool = False,
    elevated_delete: ElevatedDelete = pkexec_delete,
) -> None:
    """Delete the directory tree of *hierarchy*.

    Raises:
        PermissionError: Access was denied and *allow_elevation* is False.
        ElevationError: The elevated retry failed or the path survived it.
        OSError: Any other filesystem error, propagated unchanged.
    """
    try:
        remove_tree(hierarchy.path)
    except PermissionError:
        if not allow_elevation:
            raise
        log.info("Permission denied for %s, retrying with elevation", hierarchy.path)
        failures = _elevated_remove([hierarchy.path], elevated_delete)
        if failures:
            raise ElevationError(f"{hierarchy.path}: {failures[str(hierarchy.path)]}")
    log.debug("Deleted %s", hierarchy.path)


def delete_all(
    hierarchies: Iterable[DirectoryHierarchy],
    ask_for_elevation: bool = True,
    elevated_delete: ElevatedDelete = pkexec_delete,
    on_deleted: DeletedCallback | None = None,
) -> tuple[DeletionStats, str | None]:
    """Delete every hierarchy, retrying permission failures with elevation.

    The first pass removes items without elevation.  When
    *ask_for_elevation* is set, items that failed for lack of permission
    and still exist are handed to *elevated_delete* in one call, so a
    single authentication covers the whole batch.  No item aborts the
    batch; failures are counted.

    Returns:
        The final stats and, when anything failed, a summary message.
    """
    stats = DeletionStats()
    denied: list[DirectoryHierarchy] = []
    other_failures = 0

    def _deleted(hierarchy: DirectoryHierarchy) -> None:
        stats.deleted += 1
        if on_deleted:
            on_deleted(hierarchy)

    for hierarchy in hierarchies:
        try:
            delete_hierarchy(hierarchy, allow_elevation=False)
        except PermissionError as e:
            log.info("Permission denied deleting %s: %s", hierarchy.path, e)
            denied.append(hierarchy)
        except OSError as e:
            log.warning("Failed to delete %s: %s", hierarchy.path, e)
            other_failures += 1
        else:
            _deleted(hierarchy)

    denied_failures = 0
    elevation_failures = 0

    if denied and ask_for_elevation:
        pending: list[DirectoryHierarchy] = []
        for hierarchy in denied:
            if os.path.lexists(hierarchy.path):
                pending.append(hierarchy)
            else:
                _deleted(hierarchy)

        if pending:
            try:
                failures = _elevated_remove([h.path for h in pending], elevated_delete)
            except ElevationError as e:
                log.warning("Elevated delete failed: %s", e)
                failures = {str(h.path): str(e) for h in pending}
            for hierarchy in pending:
                if str(hierarchy.path) in failures:
                    elevation_failures += 1
                else:
                    _deleted(hierarchy)
    else:
        denied_failures = len(denied)

    stats.failed = denied_failures + elevation_failures + other_failures
    log.info("Deleted %d empty folder trees, %d failed", stats.deleted, stats.failed)

    if not stats.failed:
        return stats, None
    return stats, _summarize(denied_failures, elevation_failures, other_failures)


def _elevated_remove(paths: Sequence[Path], elevated_delete: ElevatedDelete) -> dict[str, str]:
    """Run the elevated capability and verify each path is gone.

    Returns ``{path: error}`` for every path that survived.

    Raises:
        ElevationError: The privileged mechanism itself failed.
    """
    try:
        reported = elevated_delete(paths)
    except PrivilegeError as e:
        raise ElevationError(str(e)) from e

    failures: dict[str, str] = {}
    for path in paths:
        key = str(path)
        if key in reported:
            failures[key] = reported[key]
        elif os.path.lexists(path):
            failures[key] = "still exists after privileged delete"
    return failures


def _summarize(denied: int, elevation: int, other: int) -> str:
    parts = []
    if denied:
        parts.append(f"{plural(denied, 'folder')} could not be deleted due to insufficient permissions")
    if elevation:
        parts.append(f"{plural(elevation, 'folder')} could not be deleted even with administrator privileges")
    if other:
        parts.append(f"{plural(other, 'folder')} could not be deleted due to filesystem errors")
    return "; ".join(parts) + "."
