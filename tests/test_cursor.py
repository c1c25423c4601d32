"""Tests for vecscan.scan.cursor."""

from __future__ import annotations

import gc
import random

import pytest

from vecscan.scan import (
    HOLE,
    ScanCursor,
    ScanInvariantError,
    ScanPositions,
    ScanStateError,
)


def _scan_with(seq: list, decide) -> list:
    """Run a full scan, calling decide(item) for every element."""
    with ScanCursor(seq, check_invariants=True) as scan:
        for item in scan:
            decide(item)
    return seq


class TestRemoval:
    def test_remove_even_values(self) -> None:
        seq = [1, 2, 3, 4, 5]

        def drop_even(item) -> None:
            if item.value % 2 == 0:
                item.remove()

        assert _scan_with(seq, drop_even) == [1, 3, 5]

    def test_remove_returns_element(self) -> None:
        seq = ["a", "b", "c"]
        removed = []
        with ScanCursor(seq) as scan:
            for item in scan:
                if item.value == "b":
                    removed.append(item.remove())
        assert removed == ["b"]
        assert seq == ["a", "c"]

    def test_remove_everything(self) -> None:
        seq = list(range(6))
        assert _scan_with(seq, lambda item: item.remove()) == []

    def test_remove_leading_run(self) -> None:
        seq = [0, 0, 0, 1, 2]

        def drop_zero(item) -> None:
            if item.value == 0:
                item.remove()

        assert _scan_with(seq, drop_zero) == [1, 2]

    def test_empty_list(self) -> None:
        seq: list[int] = []
        with ScanCursor(seq) as scan:
            assert scan.advance() is None
        assert seq == []


class TestMutation:
    def test_double_in_place(self) -> None:
        seq = [1, 2, 3]

        def double(item) -> None:
            item.value *= 2

        assert _scan_with(seq, double) == [2, 4, 6]

    def test_replace_returns_old_value(self) -> None:
        seq = [1, 2, 3]
        old = []
        with ScanCursor(seq) as scan:
            for item in scan:
                old.append(item.replace(item.value * 10))
        assert old == [1, 2, 3]
        assert seq == [10, 20, 30]

    def test_mutation_after_removal_lands_in_gap(self) -> None:
        seq = [1, 2, 3, 4]
        with ScanCursor(seq) as scan:
            for item in scan:
                if item.value == 2:
                    item.remove()
                else:
                    item.value = -item.value
        assert seq == [-1, -3, -4]

    def test_mutable_elements_edited_in_place(self) -> None:
        seq = [{"n": 1}, {"n": 2}]
        with ScanCursor(seq) as scan:
            for item in scan:
                item.value["n"] += 1
        assert seq == [{"n": 2}, {"n": 3}]


class TestNoOp:
    def test_keep_everything_leaves_list_unchanged(self) -> None:
        seq = [5, 3, 8, 1]
        before = list(seq)
        assert _scan_with(seq, lambda item: None) == before

    def test_no_op_scan_moves_nothing_in_bulk(self) -> None:
        seq = list(range(10))
        with ScanCursor(seq) as scan:
            for _item in scan:
                pass
        assert scan.stats.shifted == 0
        assert scan.stats.removed == 0
        assert seq == list(range(10))


class TestEarlyRelease:
    def test_release_after_prefix(self) -> None:
        seq = [1, 2, 3, 4, 5]
        with ScanCursor(seq) as scan:
            for item in scan:
                if item.value == 2:
                    item.remove()
                    break
        assert seq == [1, 3, 4, 5]

    def test_release_with_live_item_keeps_it(self) -> None:
        seq = [1, 2, 3, 4, 5]
        scan = ScanCursor(seq)
        scan.advance().remove()
        item = scan.advance()
        item.value = 20
        scan.close()
        assert seq == [20, 3, 4, 5]
        assert not item.live

    def test_release_before_first_advance(self) -> None:
        seq = [1, 2, 3]
        ScanCursor(seq).close()
        assert seq == [1, 2, 3]

    def test_close_is_idempotent(self) -> None:
        seq = [1, 2, 3]
        scan = ScanCursor(seq)
        scan.advance().remove()
        scan.close()
        scan.close()
        assert seq == [2, 3]

    def test_exception_inside_block_still_compacts(self) -> None:
        seq = [1, 2, 3, 4]
        with pytest.raises(RuntimeError):
            with ScanCursor(seq) as scan:
                for item in scan:
                    if item.value == 1:
                        item.remove()
                    if item.live and item.value == 3:
                        raise RuntimeError("stop")
        assert seq == [2, 3, 4]


class TestOrderPreservation:
    @pytest.mark.parametrize("seed", range(20))
    def test_result_is_ordered_subsequence(self, seed: int) -> None:
        rng = random.Random(seed)
        seq = [rng.randrange(100) for _ in range(rng.randrange(40))]
        decisions = [rng.random() < 0.4 for _ in seq]
        expected = [v for v, drop in zip(seq, decisions) if not drop]

        with ScanCursor(seq, check_invariants=True) as scan:
            for i, item in enumerate(scan):
                if decisions[i]:
                    item.remove()
        assert seq == expected

    @pytest.mark.parametrize("stop", [0, 1, 5, 9, 10])
    def test_partial_scan_keeps_unvisited_suffix(self, stop: int) -> None:
        seq = list(range(10))
        with ScanCursor(seq) as scan:
            for i in range(stop):
                item = scan.advance()
                if i % 3 == 0:
                    item.remove()
        expected = [i for i in range(stop) if i % 3 != 0] + list(range(stop, 10))
        assert seq == expected


class TestMoveBound:
    @pytest.mark.parametrize("seed", range(10))
    def test_each_element_moves_at_most_twice(self, seed: int) -> None:
        rng = random.Random(seed)
        n = 50
        seq = list(range(n))
        visit = rng.randrange(n + 1)
        with ScanCursor(seq) as scan:
            for _ in range(visit):
                item = scan.advance()
                if rng.random() < 0.5:
                    item.remove()
        stats = scan.stats
        assert stats.extracted == visit
        assert stats.written_back + stats.removed == visit
        assert stats.shifted <= n - visit
        assert stats.moves <= 2 * visit + (n - visit)

    def test_unvisited_suffix_shifted_once(self) -> None:
        seq = list(range(8))
        with ScanCursor(seq) as scan:
            scan.advance().remove()
            scan.advance().remove()
        assert scan.stats.shifted == 6
        assert seq == list(range(2, 8))

    def test_no_shift_without_gap(self) -> None:
        seq = list(range(8))
        with ScanCursor(seq) as scan:
            scan.advance()
            scan.advance()
        assert scan.stats.shifted == 0


class TestPositions:
    def test_gap_tracks_removals(self) -> None:
        seq = [1, 2, 3, 4]
        scan = ScanCursor(seq)
        scan.advance().remove()
        scan.advance().remove()
        assert scan.positions == ScanPositions(write=0, read=2, end=4)
        assert scan.positions.gap == 2
        assert seq[:2] == [HOLE, HOLE]
        scan.close()
        assert seq == [3, 4]

    def test_live_item_occupies_gap(self) -> None:
        seq = [1, 2, 3]
        scan = ScanCursor(seq)
        scan.advance()
        assert scan.positions.gap == 1
        assert scan.positions.remaining == 2
        scan.close()

    def test_closed_positions_collapse(self) -> None:
        seq = [1, 2, 3]
        scan = ScanCursor(seq)
        scan.advance().remove()
        scan.close()
        assert scan.positions == ScanPositions(write=2, read=2, end=2)

    def test_check_rejects_disorder(self) -> None:
        with pytest.raises(ScanInvariantError, match="write <= read"):
            ScanPositions(write=3, read=2, end=4).check(4)

    def test_check_rejects_length_mismatch(self) -> None:
        with pytest.raises(ScanInvariantError, match="does not match"):
            ScanPositions(write=0, read=0, end=3).check(5)

    def test_external_resize_caught_when_checking(self) -> None:
        seq = [1, 2, 3]
        scan = ScanCursor(seq, check_invariants=True)
        scan.advance()
        seq.append(4)
        with pytest.raises(ScanInvariantError):
            scan.advance()
        seq.pop()
        scan.close()
        assert seq == [1, 2, 3]


class TestMisuse:
    def test_item_unusable_after_advance(self) -> None:
        seq = [1, 2]
        scan = ScanCursor(seq)
        first = scan.advance()
        scan.advance()
        with pytest.raises(ScanStateError, match="finalized"):
            first.value
        with pytest.raises(ScanStateError):
            first.remove()
        scan.close()
        assert seq == [1, 2]

    def test_item_unusable_after_remove(self) -> None:
        scan = ScanCursor([1, 2])
        item = scan.advance()
        item.remove()
        with pytest.raises(ScanStateError):
            item.value = 5
        scan.close()

    def test_advance_after_close_returns_none(self) -> None:
        seq = [1, 2]
        scan = ScanCursor(seq)
        scan.close()
        assert scan.advance() is None
        assert scan.closed

    def test_explicit_keep_then_advance(self) -> None:
        seq = [1, 2, 3]
        with ScanCursor(seq) as scan:
            item = scan.advance()
            item.keep()
            assert scan.current is None
            assert scan.advance().value == 2
        assert seq == [1, 2, 3]


class TestAbandonment:
    def test_break_from_bare_loop_compacts(self) -> None:
        seq = [1, 2, 3, 4, 5]
        for item in ScanCursor(seq):
            if item.value == 2:
                item.remove()
                break
        assert seq == [1, 3, 4, 5]

    def test_break_with_live_item_keeps_it(self) -> None:
        seq = [1, 2, 3, 4]
        for item in ScanCursor(seq):
            if item.value == 1:
                item.remove()
            elif item.value == 3:
                item.value = 30
                break
        assert seq == [2, 30, 4]

    def test_dropped_cursor_compacts(self) -> None:
        seq = [1, 2, 3]
        scan = ScanCursor(seq)
        scan.advance().remove()
        del scan
        gc.collect()
        assert seq == [2, 3]

    def test_dropped_cursor_with_live_item(self) -> None:
        seq = [1, 2, 3]
        scan = ScanCursor(seq)
        scan.advance()
        del scan
        gc.collect()
        assert seq == [1, 2, 3]
        assert HOLE not in seq
