"""Hollow data models."""

from hollow.models.hierarchy import DirectoryHierarchy, path_depth
from hollow.models.deletion_stats import DeletionStats
from hollow.models.scan_state import ScanState

__all__ = [
    "DeletionStats",
    "DirectoryHierarchy",
    "ScanState",
    "path_depth",
]
