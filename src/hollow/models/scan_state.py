"""Shared scan state."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from hollow.models.deletion_stats import DeletionStats
from hollow.models.hierarchy import DirectoryHierarchy


@dataclass(slots=True)
class ScanState:
    """State read by the presentation layer.

    Owned by the controlling thread.  Background work never mutates it
    directly; it hands its results back through the engine's dispatcher.
    """

    selected_path: Path | None = None
    is_scanning: bool = False
    is_deleting: bool = False
    last_error: str | None = None
    deletion_stats: DeletionStats | None = None
    empty_folders: list[DirectoryHierarchy] = field(default_factory=list)
    generation: int = 0

    def find(self, path: Path | str) -> DirectoryHierarchy | None:
        """Locate a top-level or nested hierarchy by path."""
        for hierarchy in self.empty_folders:
            found = hierarchy.find(path)
            if found is not None:
                return found
        return None

    def remove(self, path: Path | str) -> bool:
        """Drop the hierarchy at *path* from the results.

        Top-level entries are removed outright; nested ones are pruned
        from the tree that contains them.  Returns whether anything changed.
        """
        target = Path(path)
        for index, hierarchy in enumerate(self.empty_folders):
            if hierarchy.path == target:
                del self.empty_folders[index]
                return True
            if hierarchy.path in target.parents:
                pruned = hierarchy.without(target)
                if pruned is hierarchy:
                    return False
                self.empty_folders[index] = pruned
                return True
        return False

    def to_dict(self) -> dict[str, Any]:
        return {
            "empty_folders": [h.to_dict() for h in self.empty_folders],
            "is_scanning": self.is_scanning,
            "is_deleting": self.is_deleting,
            "selected_path": str(self.selected_path) if self.selected_path else "",
            "last_error": self.last_error,
            "deletion_stats": self.deletion_stats.to_dict() if self.deletion_stats else None,
        }
