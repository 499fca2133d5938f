"""
Unit tests for IntervalSpreader

Label intervals are spread so that neighbours keep the separator gap,
without negative coordinates and without touching the input.
"""
import pytest
from chimviz.layout import IntervalSpreader, spread_intervals


pytestmark = pytest.mark.unit


def _gaps(intervals):
    ordered = sorted(intervals)
    return [b[0] - a[1] for a, b in zip(ordered, ordered[1:])]


class TestTrivialInput:
    """n <= 1 is a no-op"""

    def test_empty(self):
        assert IntervalSpreader(10).spread([]) == []

    def test_single_interval_unchanged(self):
        result = IntervalSpreader(10).spread([(5, 15)])
        assert len(result) == 1
        assert result[0].spread == (5.0, 15.0)
        assert result[0].shift == 0


class TestSpreading:
    """Overlapping intervals are moved apart"""

    def test_separated_intervals_unchanged(self):
        """Gaps already >= separator are kept as they are"""
        assert spread_intervals([(0, 10), (30, 40)], 10) == [(0.0, 10.0), (30.0, 40.0)]

    def test_small_overlap_moves_right_interval(self):
        """Overlap below the separator only settles the right interval"""
        assert spread_intervals([(100, 110), (105, 115)], 10) == [(100.0, 110.0), (120.0, 130.0)]

    def test_large_overlap_pushes_left_neighbour(self):
        """Half of the excess overlap is taken by the left neighbour"""
        result = spread_intervals([(100, 140), (105, 145)], 10)
        assert result[0] == pytest.approx((87.5, 127.5))
        assert result[1] == pytest.approx((137.5, 177.5))

    def test_left_push_clamped_at_zero(self):
        """The left neighbour never moves past 0"""
        result = spread_intervals([(2, 42), (5, 45)], 10)
        assert result[0] == pytest.approx((0.0, 40.0))
        assert result[1] == pytest.approx((50.0, 90.0))

    def test_cascade_keeps_separator(self):
        """Every adjacent gap is at least the separator after spreading"""
        intervals = [(50, 60), (52, 62), (54, 64), (56, 66), (58, 68)]
        result = spread_intervals(intervals, 5)
        assert all(gap >= 5 - 1e-9 for gap in _gaps(result))
        assert all(start >= 0 for start, _ in result)

    def test_widths_preserved(self):
        intervals = [(10, 30), (15, 35), (20, 40)]
        for start, end in spread_intervals(intervals, 4):
            assert end - start == pytest.approx(20)


class TestIdentity:
    """Results carry the caller's index and leave the input alone"""

    def test_results_sorted_with_original_index(self):
        result = IntervalSpreader(10).spread([(50, 60), (0, 10)])
        assert [r.index for r in result] == [1, 0]
        assert [r.original for r in result] == [(0.0, 10.0), (50.0, 60.0)]

    def test_input_not_modified(self):
        intervals = [[100, 140], [105, 145]]
        IntervalSpreader(10).spread(intervals)
        assert intervals == [[100, 140], [105, 145]]

    def test_original_kept_for_connectors(self):
        result = IntervalSpreader(10).spread([(100, 110), (105, 115)])
        moved = result[1]
        assert moved.original_midpoint == pytest.approx(110)
        assert moved.midpoint == pytest.approx(125)
        assert moved.shift == pytest.approx(15)


class TestMissingBounds:
    """Intervals with a NaN or None bound are not spread"""

    def test_nan_interval_does_not_displace_others(self):
        nan = float('nan')
        result = IntervalSpreader(10).spread([(nan, 1), (0, 10), (5, 15)])
        assert len(result) == 3
        assert [r.index for r in result] == [1, 2, 0]
        assert result[0].spread == (0.0, 10.0)
        assert result[1].spread == (20.0, 30.0)

    def test_missing_interval_kept_in_place(self):
        result = IntervalSpreader(10).spread([(0, 10), (None, 20)])
        skipped = result[-1]
        assert skipped.index == 1
        assert skipped.spread == skipped.original
        assert skipped.spread[1] == 20.0
