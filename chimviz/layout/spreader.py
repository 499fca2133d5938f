"""
Label interval spreading

Resolves overlapping 1-D label intervals by leftward relaxation:
each overlapping left neighbour is pushed left by half the overlap
(never past 0), the push cascades further left, and the right
interval is then moved just clear of its settled neighbour.
"""
from __future__ import annotations
from typing import List, Sequence
import logging

from ..utils import is_missing
from .types import Interval, SpreadInterval

logger = logging.getLogger(__name__)


class IntervalSpreader:
    """
    Spreads label intervals so that neighbours keep a minimum gap

    The input is never modified. Results come back in start order and
    carry the caller's original index, so a label is re-associated with
    its interval by identity rather than by list position.
    """

    def __init__(self, separator: float) -> None:
        """
        Args:
            separator: Minimum gap between adjacent intervals (px)
        """
        self.separator: float = separator

    def spread(self, intervals: Sequence[Interval]) -> List[SpreadInterval]:
        """
        Spread intervals apart

        Args:
            intervals: [start, end] pairs in pixel space

        Returns:
            One SpreadInterval per input, sorted by original start. Intervals
            with a missing bound are left where they are and come last.
        """
        # A missing bound takes the interval out of the relaxation
        unusable = [i for i, (start, end) in enumerate(intervals) if is_missing(start) or is_missing(end)]
        skipped = []
        for i in unusable:
            itvl = self._as_float(intervals[i])
            skipped.append(SpreadInterval(index=i, original=itvl, spread=itvl))

        excluded = set(unusable)
        order = sorted((i for i in range(len(intervals)) if i not in excluded),
                       key=lambda i: intervals[i][0])
        originals = [self._as_float(intervals[i]) for i in order]

        if len(originals) <= 1:
            return [SpreadInterval(index=i, original=itvl, spread=itvl)
                    for i, itvl in zip(order, originals)] + skipped

        starts = [itvl[0] for itvl in originals]
        ends = [itvl[1] for itvl in originals]
        n = len(originals)

        # Leftward cascade: push each left neighbour, rightmost pair first
        for i in range(n - 1, 0, -1):
            overlap = max(0.0, (ends[i - 1] - starts[i]) - self.separator)
            adjust = overlap / 2
            if starts[i - 1] - adjust < 0:
                adjust = starts[i - 1]
            starts[i - 1] -= adjust
            ends[i - 1] -= adjust

        # Settle each interval against its now fixed left neighbour
        for i in range(1, n):
            new_overlap = min(0.0, (starts[i] - ends[i - 1]) - self.separator)
            starts[i] -= new_overlap
            ends[i] -= new_overlap

        result = [
            SpreadInterval(index=idx, original=orig, spread=(start, end))
            for idx, orig, start, end in zip(order, originals, starts, ends)
        ]
        moved = sum(1 for r in result if r.spread != r.original)
        logger.debug(f"Spread {n} intervals (separator={self.separator}), {moved} moved, "
                     f"{len(skipped)} skipped")
        return result + skipped

    @staticmethod
    def _as_float(interval: Interval) -> Interval:
        return tuple(float('nan') if v is None else float(v) for v in interval)


def spread_intervals(intervals: Sequence[Interval], separator: float) -> List[Interval]:
    """
    Convenience function returning only the spread intervals, in start order

    Args:
        intervals: [start, end] pairs in pixel space
        separator: Minimum gap between adjacent intervals (px)

    Returns:
        New list of intervals, sorted by original start
    """
    return [s.spread for s in IntervalSpreader(separator).spread(intervals)]
