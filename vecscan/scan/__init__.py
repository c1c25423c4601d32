"""Scan cursors: compacting forward scan and its growable extension.

A cursor takes a list, hands out one element at a time for inspection, and
compacts the list in place as elements are kept, removed, replaced or
(growable variant) inserted.
"""

from vecscan.scan.cursor import HOLE, ScanCursor, ScanItem
from vecscan.scan.growable import GrowableScanCursor
from vecscan.scan.positions import (
    MoveStats,
    ScanError,
    ScanInvariantError,
    ScanPositions,
    ScanStateError,
)

__all__ = [
    "HOLE",
    "GrowableScanCursor",
    "MoveStats",
    "ScanCursor",
    "ScanError",
    "ScanInvariantError",
    "ScanItem",
    "ScanPositions",
    "ScanStateError",
]
