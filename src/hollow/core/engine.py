"""Scanning and deletion orchestration engine."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable

from hollow.core.deleter import delete_all, delete_hierarchy
from hollow.core.privileges import ElevatedDelete, make_pkexec_delete
from hollow.core.scanner import DEFAULT_BUNDLE_SUFFIXES, scan
from hollow.models.deletion_stats import DeletionStats
from hollow.models.hierarchy import DirectoryHierarchy
from hollow.models.scan_state import ScanState

log = logging.getLogger(__name__)

Dispatch = Callable[[Callable[[], None]], None]  # hands work to the owning thread
StateCallback = Callable[[ScanState], None]


def _call_inline(fn: Callable[[], None]) -> None:
    fn()


class HollowEngine:
    """Owns the scan state and runs scans and batch deletions in the background.

    Background work never touches ``state`` directly.  Every update is
    wrapped in a callable and passed to *dispatch*, which must run it on
    the thread that owns the state (``GLib.idle_add``,
    ``loop.call_soon_threadsafe``...).  The default runs it inline, which
    suits callers that simply block on the returned futures.

    A single worker runs one operation at a time.  Each scan is tagged
    with a generation; a completion whose generation is no longer current
    is dropped.
    """

    def __init__(
        self,
        include_hidden: bool = True,
        bundle_suffixes: Iterable[str] = DEFAULT_BUNDLE_SUFFIXES,
        elevated_delete: ElevatedDelete | None = None,
        dispatch: Dispatch | None = None,
        on_state_changed: StateCallback | None = None,
    ) -> None:
        self.include_hidden = include_hidden
        self.bundle_suffixes = tuple(bundle_suffixes)
        self.elevated_delete = elevated_delete or make_pkexec_delete(include_hidden)
        self.state = ScanState()
        self._dispatch = dispatch or _call_inline
        self._on_state_changed = on_state_changed
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="hollow")

    # -- Scanning --

    def start_scan(self, root: Path | str) -> Future:
        """Start scanning *root* in the background.

        Previous results are cleared immediately.  The returned future
        resolves once the worker has handed its results to ``dispatch``.
        """
        root = Path(root)
        state = self.state
        state.generation += 1
        generation = state.generation
        state.selected_path = root
        state.is_scanning = True
        state.empty_folders = []
        state.last_error = None
        state.deletion_stats = None
        self._notify()

        def _work() -> None:
            try:
                results = scan(root, self.include_hidden, self.bundle_suffixes)
            except Exception as e:
                log.exception("Scan of %s failed", root)
                message = f"Scan failed: {e}"
                self._dispatch(lambda: self._publish_scan(generation, [], message))
                return
            self._dispatch(lambda: self._publish_scan(generation, results, None))

        return self._executor.submit(_work)

    def _publish_scan(self, generation: int, results: list[DirectoryHierarchy], error: str | None) -> None:
        state = self.state
        if generation != state.generation:
            log.debug("Discarding stale scan results (generation %d, current %d)", generation, state.generation)
            return
        state.empty_folders = results
        state.last_error = error
        state.is_scanning = False
        self._notify()

    # -- Deletion --

    def delete_one(self, hierarchy: DirectoryHierarchy, allow_elevation: bool = False) -> None:
        """Delete a single hierarchy on the calling thread.

        Raises the precise error (``PermissionError``, ``ElevationError``
        or another ``OSError``) so the caller can decide whether to retry
        with elevation.
        """
        delete_hierarchy(hierarchy, allow_elevation, self.elevated_delete)
        if self.state.remove(hierarchy.path):
            self._notify()

    def start_delete_all(self, ask_for_elevation: bool = True) -> Future:
        """Delete every top-level hierarchy from the last scan in the background."""
        hierarchies = list(self.state.empty_folders)
        self.state.is_deleting = True
        self._notify()

        def _removed(hierarchy: DirectoryHierarchy) -> None:
            self._dispatch(lambda: self._publish_removed(hierarchy.path))

        def _work() -> None:
            try:
                stats, message = delete_all(
                    hierarchies,
                    ask_for_elevation=ask_for_elevation,
                    elevated_delete=self.elevated_delete,
                    on_deleted=_removed,
                )
            except Exception as e:
                log.exception("Batch deletion failed")
                stats, message = DeletionStats(failed=len(hierarchies)), f"Deletion failed: {e}"
            self._dispatch(lambda: self._publish_deletion(stats, message))

        return self._executor.submit(_work)

    def _publish_removed(self, path: Path) -> None:
        if self.state.remove(path):
            self._notify()

    def _publish_deletion(self, stats: DeletionStats, message: str | None) -> None:
        state = self.state
        state.deletion_stats = stats
        state.last_error = message
        state.is_deleting = False
        self._notify()

    # -- Queries --

    def find(self, path: Path | str) -> DirectoryHierarchy | None:
        """Locate a hierarchy from the current results by path."""
        return self.state.find(path)

    def shutdown(self, wait: bool = True) -> None:
        """Stop the background worker."""
        self._executor.shutdown(wait=wait)

    def _notify(self) -> None:
        if self._on_state_changed:
            self._on_state_changed(self.state)
