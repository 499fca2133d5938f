"""
Row packing for linear features

Greedy first-fit: features are taken in start order and each goes to
the first row (in creation order) whose last occupied end lies strictly
before the feature's start. Row indices are user visible, so the policy
must not be replaced by an earliest-finish or optimal packing.
"""
from __future__ import annotations
from typing import Any, List, Optional, Sequence, Tuple
import logging

from .types import PackedFeature

logger = logging.getLogger(__name__)

Segment = Tuple[float, float]


class RowPacker:
    """Assigns overlapping features to display rows"""

    def assign_rows(self, intervals: Sequence[Segment]) -> List[int]:
        """
        Row index for each interval

        Args:
            intervals: [start, end] pairs

        Returns:
            Row indices aligned with the input order
        """
        order = sorted(range(len(intervals)), key=lambda i: intervals[i][0])
        frontiers: List[float] = []
        rows: List[int] = [0] * len(intervals)

        for i in order:
            start, end = intervals[i]
            for row, frontier in enumerate(frontiers):
                if start > frontier:
                    frontiers[row] = end
                    rows[i] = row
                    break
            else:
                frontiers.append(end)
                rows[i] = len(frontiers) - 1

        logger.debug(f"Packed {len(intervals)} intervals into {len(frontiers)} rows")
        return rows

    def pack(
        self,
        features: Sequence[Sequence[Segment]],
        keys: Optional[Sequence[Any]] = None
    ) -> List[PackedFeature]:
        """
        Pack multi-segment features

        Only the first segment's start and the last segment's end take
        part in the fit test.

        Args:
            features: Segment lists, one per feature (empty lists are skipped)
            keys: Optional identifiers, defaults to the feature index

        Returns:
            PackedFeature list in start order
        """
        if keys is None:
            keys = list(range(len(features)))
        if len(keys) != len(features):
            raise ValueError(f"Got {len(keys)} keys for {len(features)} features")

        kept = [(key, tuple((float(s), float(e)) for s, e in segs))
                for key, segs in zip(keys, features) if len(segs) > 0]
        spans = [(segs[0][0], segs[-1][1]) for _, segs in kept]
        rows = self.assign_rows(spans)

        packed = [PackedFeature(key=key, segments=segs, row=row)
                  for (key, segs), row in zip(kept, rows)]
        packed.sort(key=lambda f: f.start)
        return packed


def count_rows(rows: Sequence[int]) -> int:
    """Number of rows used by an assignment"""
    return max(rows, default=-1) + 1
