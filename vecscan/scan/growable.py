"""Forward scan that can also insert elements while iterating.

Insertions are written straight into the gap left by removals when it is
wide enough. Anything that does not fit waits in a pending queue, and every
element kept after that point queues behind it so order is preserved. The
queue drains back into the list whenever the gap reopens. Whatever is still
pending when the scan closes is placed by a single reconciliation: one slice
assignment that grows the list once and shifts the unvisited tail right in
one block move.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Iterable, TypeVar

from vecscan.scan.cursor import ScanCursor

log = logging.getLogger(__name__)

T = TypeVar("T")


class GrowableScanCursor(ScanCursor[T]):
    """:class:`ScanCursor` with :meth:`insert_before_current`.

    Inserted elements land immediately before the next element that has not
    been finalized yet. With a live item that means right after the item's
    own position, whether it ends up kept or removed::

        with GrowableScanCursor(items) as scan:
            for item in scan:
                if item.value == "header":
                    scan.insert_before_current(["sub-a", "sub-b"])
    """

    def __init__(self, seq: list[T], *, check_invariants: bool = False) -> None:
        super().__init__(seq, check_invariants=check_invariants)
        self._pending: deque[T] = deque()
        self._after_slot: list[T] = []

    @property
    def pending(self) -> int:
        """Number of elements waiting for room in the list."""
        return len(self._pending) + len(self._after_slot)

    def insert_before_current(self, items: Iterable[T]) -> None:
        """Insert *items*, in order, before the next unfinalized element."""
        self._ensure_open()
        batch = list(items)
        if not batch:
            return
        self.stats.inserted += len(batch)
        if self._slot is not None:
            # Placed once the live item has been written back or removed.
            self._after_slot.extend(batch)
            return
        self._place(batch)
        self._verify()

    def insert_before_item(self, items: Iterable[T]) -> None:
        """Insert *items*, in order, ahead of the live item.

        Without a live item this is the same as :meth:`insert_before_current`.
        """
        self._ensure_open()
        batch = list(items)
        if not batch:
            return
        self.stats.inserted += len(batch)
        # The live item's value sits outside the list, so placing now puts
        # the batch ahead of it.
        self._place(batch)
        self._verify()

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    def _place(self, batch: list[T]) -> None:
        count = len(batch)
        if not self._pending and count <= self._read - self._write:
            self._seq[self._write:self._write + count] = batch
            self._write += count
            return
        self._pending.extend(batch)
        self.stats.queued += count
        self._drain_pending()

    def _drain_pending(self) -> None:
        pending = self._pending
        while pending and self._write < self._read:
            self._seq[self._write] = pending.popleft()
            self._write += 1
            self.stats.drained += 1

    def _write_back(self, value: T) -> None:
        # Pending elements precede this one, so it has to queue behind them.
        if self._pending or self._write == self._read:
            self._pending.append(value)
            self.stats.queued += 1
            return
        super()._write_back(value)

    def _after_extract(self) -> None:
        self._drain_pending()

    def _after_finalize(self) -> None:
        if self._after_slot:
            batch, self._after_slot = self._after_slot, []
            self._place(batch)

    def _finish(self) -> None:
        if self._pending:
            self._reconcile()
        super()._finish()

    def _reconcile(self) -> None:
        pending = self._pending
        count = len(pending)
        gap = self._read - self._write
        tail = self._end - self._read
        log.debug(
            "Reconciling %d pending element(s) into a gap of %d; shifting %d tail element(s)",
            count,
            gap,
            tail,
        )
        self._seq[self._write:self._read] = pending
        self._write += count
        self._read = self._write
        self._end = self._write + tail
        self.stats.shifted += tail
        self.stats.drained += count
        pending.clear()
