"""Compacting forward scan over a list with in-place mutation and removal.

:class:`ScanCursor` hands out one :class:`ScanItem` at a time. Each item owns
the element it was taken from; its place in the list is left as a hole until
the item is finalized. Kept elements are written back at the write position,
removed ones are not, so the gap between ``write`` and ``read`` grows by one
per removal:

    before removing B         after removing B          after keeping C
    |write=read               |write  |read             |write  |read
    [A][B][C][D]              [A] _  [C][D]             [A][C] _  [D]

Closing the cursor moves the unvisited suffix over the gap in one block move
and truncates the list.
"""

from __future__ import annotations

import logging
from typing import Generic, Iterator, TypeVar

from vecscan.scan.positions import MoveStats, ScanPositions, ScanStateError

log = logging.getLogger(__name__)

T = TypeVar("T")


class _Hole:
    """Placeholder left in the list where an element was taken out."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "<hole>"


HOLE = _Hole()


class ScanItem(Generic[T]):
    """The element currently under inspection.

    Reading or assigning :attr:`value` works in place. The item is finalized
    exactly once: by :meth:`keep`, :meth:`remove` or :meth:`replace`, or
    implicitly (as kept) when the cursor advances or closes. Any use after
    that raises :class:`ScanStateError`.
    """

    __slots__ = ("_scan", "_value", "_live")

    def __init__(self, scan: ScanCursor[T], value: T) -> None:
        self._scan = scan
        self._value = value
        self._live = True

    def __repr__(self) -> str:
        if not self._live:
            return "ScanItem(<finalized>)"
        return f"ScanItem({self._value!r})"

    @property
    def live(self) -> bool:
        return self._live

    @property
    def value(self) -> T:
        self._require_live()
        return self._value

    @value.setter
    def value(self, value: T) -> None:
        self._require_live()
        self._value = value

    def keep(self) -> None:
        """Write the element back now instead of on the next advance."""
        self._require_live()
        self._scan._finalize(self, keep=True)

    def remove(self) -> T:
        """Drop the element from the list and return it."""
        self._require_live()
        value = self._value
        self._scan._finalize(self, keep=False)
        return value

    def replace(self, value: T) -> T:
        """Keep *value* in place of the element and return the old element."""
        self._require_live()
        old = self._value
        self._value = value
        self._scan._finalize(self, keep=True)
        return old

    def _require_live(self) -> None:
        if not self._live:
            raise ScanStateError("Scan item was already finalized")


class ScanCursor(Generic[T]):
    """Single forward pass over *seq* allowing mutation and removal.

    The cursor takes exclusive ownership of the list until it is closed;
    nothing else may read or modify it in between. Breaking out of a
    ``for`` loop over the cursor closes it, and an abandoned cursor closes
    when it is garbage collected. A context manager makes the closing
    point explicit::

        with ScanCursor(items) as scan:
            for item in scan:
                if item.value < 0:
                    item.remove()

    Parameters
    ----------
    seq:
        The list to scan. It is modified in place.
    check_invariants:
        Validate positions against the list after every step. Meant for
        tests and debugging; it costs a few comparisons per step.
    """

    def __init__(self, seq: list[T], *, check_invariants: bool = False) -> None:
        self._seq = seq
        self._write = 0
        self._read = 0
        self._end = len(seq)
        self._slot: ScanItem[T] | None = None
        self._closed = False
        self._check_invariants = check_invariants
        self.stats = MoveStats()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return (
            f"{type(self).__name__}({state}, write={self._write}, "
            f"read={self._read}, end={self._end})"
        )

    # ------------------------------------------------------------------
    # Context manager / iteration
    # ------------------------------------------------------------------

    def __enter__(self) -> ScanCursor[T]:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __iter__(self) -> Iterator[ScanItem[T]]:
        """Yield items until exhausted.

        Leaving the loop early (``break``, an exception, or dropping the
        iterator) closes the scan, so the list is compacted as soon as the
        loop is gone.
        """
        try:
            while True:
                item = self.advance()
                if item is None:
                    return
                yield item
        finally:
            self.close()

    def __del__(self) -> None:
        # An abandoned cursor still hands back a compacted list.
        if not getattr(self, "_closed", True):
            self.close()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def positions(self) -> ScanPositions:
        return ScanPositions(self._write, self._read, self._end)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def current(self) -> ScanItem[T] | None:
        """The live item, if one has been handed out and not finalized."""
        return self._slot

    # ------------------------------------------------------------------
    # Scan
    # ------------------------------------------------------------------

    def advance(self) -> ScanItem[T] | None:
        """Finalize the live item (as kept) and take the next element.

        Returns None once the list is exhausted; the scan is closed at that
        point and further calls keep returning None.
        """
        if self._closed:
            return None
        if self._slot is not None:
            self._slot.keep()

        if self._read == self._end:
            self.close()
            return None

        value = self._seq[self._read]
        self._seq[self._read] = HOLE  # type: ignore[call-overload]
        self._read += 1
        self.stats.extracted += 1
        slot = ScanItem(self, value)
        self._slot = slot
        self._after_extract()
        self._verify()
        return slot

    def close(self) -> None:
        """Finalize the live item and compact the list.

        Safe to call at any point and more than once. Elements that were
        never reached are kept in order after the finalized prefix.
        """
        if self._closed:
            return
        if self._slot is not None:
            self._slot.keep()
        self._finish()
        self._closed = True
        log.debug(
            "Scan closed: %d kept, %d removed, %d shifted, %d elements remain",
            self.stats.written_back,
            self.stats.removed,
            self.stats.shifted,
            len(self._seq),
        )

    # ------------------------------------------------------------------
    # Internals shared with GrowableScanCursor
    # ------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise ScanStateError(f"{type(self).__name__} is closed")

    def _finalize(self, slot: ScanItem[T], keep: bool) -> None:
        if slot is not self._slot:
            raise ScanStateError("Scan item does not belong to the live position")
        value = slot._value
        slot._live = False
        slot._value = None  # type: ignore[assignment]
        self._slot = None
        if keep:
            self._write_back(value)
        else:
            self.stats.removed += 1
        self._after_finalize()
        self._verify()

    def _write_back(self, value: T) -> None:
        self._seq[self._write] = value
        self._write += 1
        self.stats.written_back += 1

    def _after_extract(self) -> None:
        pass

    def _after_finalize(self) -> None:
        pass

    def _finish(self) -> None:
        suffix = self._end - self._read
        if self._write < self._read:
            # One block move of the suffix; list shrinks by the gap width.
            del self._seq[self._write:self._read]
            self.stats.shifted += suffix
        self._write = self._read = self._end = self._write + suffix
        self._verify()

    def _verify(self) -> None:
        if self._check_invariants:
            self.positions.check(len(self._seq))
