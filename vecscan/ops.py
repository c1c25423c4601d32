"""Whole-list operations built on the scan cursors.

Each function makes one forward pass over the list and edits it in place.
"""

from __future__ import annotations

from typing import Callable, Iterable, TypeVar

from vecscan.scan import GrowableScanCursor, ScanCursor

T = TypeVar("T")


def retain(seq: list[T], keep: Callable[[T], bool]) -> int:
    """Keep only elements for which *keep* returns true.

    Returns the number of elements removed.
    """
    removed = 0
    with ScanCursor(seq) as scan:
        for item in scan:
            if not keep(item.value):
                item.remove()
                removed += 1
    return removed


def extract_if(seq: list[T], pred: Callable[[T], bool]) -> list[T]:
    """Remove elements matching *pred* and return them in their original order."""
    extracted: list[T] = []
    with ScanCursor(seq) as scan:
        for item in scan:
            if pred(item.value):
                extracted.append(item.remove())
    return extracted


def map_in_place(seq: list[T], fn: Callable[[T], T]) -> None:
    """Replace every element ``x`` with ``fn(x)``."""
    with ScanCursor(seq) as scan:
        for item in scan:
            item.replace(fn(item.value))


def flat_map_in_place(seq: list[T], fn: Callable[[T], Iterable[T]]) -> int:
    """Replace every element with the zero or more elements *fn* yields for it.

    Returns the final length of the list.
    """
    with GrowableScanCursor(seq) as scan:
        for item in scan:
            expansion = list(fn(item.value))
            item.remove()
            scan.insert_before_current(expansion)
    return len(seq)
