"""
Visualization module - Snapshot files and preview export.
"""

from lane_detection.visualization.snapshot import SnapshotStore

__all__ = [
    "SnapshotStore",
]
