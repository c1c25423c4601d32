"""Cursor positions and move accounting for in-place scans.

A scan over a list keeps three indices:

    |0          |write      |read          |end
    [ finalized ][    gap    ][ unprocessed  ]

``[0, write)`` holds finalized elements, ``[write, read)`` is the gap left
by removals (and by the element currently under inspection), and
``[read, end)`` is still untouched, in original order.
"""

from __future__ import annotations

from dataclasses import dataclass


class ScanError(Exception):
    """Base class for scan cursor errors."""


class ScanStateError(ScanError):
    """Raised when a cursor or slot is used outside its valid window."""


class ScanInvariantError(ScanError):
    """Raised when cursor positions violate ``write <= read <= end``."""


@dataclass(frozen=True)
class ScanPositions:
    """Snapshot of a cursor's ``(write, read, end)`` indices."""

    write: int
    read: int
    end: int

    @property
    def gap(self) -> int:
        return self.read - self.write

    @property
    def remaining(self) -> int:
        return self.end - self.read

    def check(self, length: int) -> None:
        """Validate the positions against the backing list's length.

        Raises
        ------
        ScanInvariantError
            If ``0 <= write <= read <= end == length`` does not hold.
        """
        if not 0 <= self.write <= self.read <= self.end:
            raise ScanInvariantError(
                f"Expected 0 <= write <= read <= end, got "
                f"write={self.write} read={self.read} end={self.end}"
            )
        if self.end != length:
            raise ScanInvariantError(
                f"Scan end {self.end} does not match list length {length}"
            )


@dataclass
class MoveStats:
    """Counters for element relocations performed by a scan.

    ``extracted`` counts elements taken out of the unprocessed region into a
    slot, ``written_back`` counts kept elements placed at the write position,
    ``shifted`` counts elements relocated by the closing block move,
    ``queued`` counts elements routed into the pending insertion buffer, and
    ``drained`` counts elements moved from that buffer back into the list.
    """

    extracted: int = 0
    written_back: int = 0
    removed: int = 0
    shifted: int = 0
    inserted: int = 0
    queued: int = 0
    drained: int = 0

    @property
    def moves(self) -> int:
        """Total element relocations.

        Fresh insertions written straight into the gap are not counted; ones
        that pass through the pending buffer count when queued and drained.
        """
        return (
            self.extracted
            + self.written_back
            + self.queued
            + self.drained
            + self.shifted
        )
