"""
Genomic coordinate to pixel mapping

All panels stacked over the same reference share one genome length so
their x positions line up. The host panel splits its width between
sequences in proportion to their number of density samples.
"""
from __future__ import annotations
from typing import Dict, Mapping, Sequence, Union
import math
import logging

import numpy as np

from .types import SequenceFrame

logger = logging.getLogger(__name__)

DEFAULT_SPACER_PERCENT = 0.5


class LinearScale:
    """
    Linear map [0, length] -> [offset, offset + width]

    Degenerate scales (non-positive length) map everything to NaN so
    callers can drop the item instead of failing.
    """

    def __init__(self, length: float, width: float, offset: float = 0.0) -> None:
        self.length = length
        self.width = width
        self.offset = offset

    @property
    def is_degenerate(self) -> bool:
        return not self.length or self.length <= 0 or math.isnan(self.length)

    def to_pixel(self, position: float) -> float:
        if self.is_degenerate or position is None or math.isnan(position):
            return math.nan
        return self.offset + (position / self.length) * self.width

    def to_genomic(self, x: float) -> float:
        if self.is_degenerate or not self.width or math.isnan(x):
            return math.nan
        return ((x - self.offset) / self.width) * self.length

    def to_pixels(self, positions: Union[Sequence[float], np.ndarray]) -> np.ndarray:
        """Vectorised to_pixel"""
        positions = np.asarray(positions, dtype=np.float64)
        if self.is_degenerate:
            return np.full(positions.shape, np.nan)
        return self.offset + (positions / self.length) * self.width

    def __repr__(self) -> str:
        return f"LinearScale(length={self.length}, width={self.width}, offset={self.offset})"


class CoordinateMapper:
    """
    Maps positions of a single genome onto a panel

    Example:
        >>> mapper = CoordinateMapper(genome_length=9000, panel_width=900)
        >>> mapper.to_pixel(4500)
        450.0
    """

    def __init__(self, genome_length: int, panel_width: float, offset: float = 0.0) -> None:
        self.genome_length: int = genome_length
        self.panel_width: float = panel_width
        self.scale = LinearScale(genome_length, panel_width, offset)

    def to_pixel(self, position: float) -> float:
        return self.scale.to_pixel(position)

    def to_genomic(self, x: float) -> float:
        return self.scale.to_genomic(x)

    def interval_to_pixels(self, start: float, end: float) -> tuple:
        return (self.to_pixel(start), self.to_pixel(end))

    def centered_interval(self, position: float, width: float) -> tuple:
        """Label interval of a given pixel width centred on a position"""
        x = self.to_pixel(position)
        return (x - width / 2, x + width / 2)


def compose_sequence_frames(
    densities: Mapping[str, Sequence[float]],
    lengths: Mapping[str, int],
    width: float,
    height: float,
    spacer_percent: float = DEFAULT_SPACER_PERCENT,
    y: float = 0.0,
    x: float = 0.0
) -> Dict[str, SequenceFrame]:
    """
    Place each host sequence side by side across a panel

    A sequence gets (its samples / all samples * 100 - spacer_percent)
    percent of the width; the next sequence starts after a gap of
    spacer_percent percent of the width.

    Args:
        densities: seqid -> density samples (order defines placement)
        lengths: seqid -> sequence length (bp)
        width: Panel width (px)
        height: Panel height (px)
        spacer_percent: Gap between sequences, percent of width
        y: Panel y offset (px)
        x: Panel x offset (px)

    Returns:
        seqid -> SequenceFrame, in placement order
    """
    missing = [seqid for seqid in densities if not _has_length(lengths, seqid)]
    if missing:
        logger.warning(f"Dropping {len(missing)} sequences without a length: {missing[:5]}")

    placed = [(seqid, values) for seqid, values in densities.items() if _has_length(lengths, seqid)]
    total = sum(len(values) for _, values in placed)
    frames: Dict[str, SequenceFrame] = {}
    if total == 0:
        return frames

    unit = width / 100
    x_pos = x
    for seqid, values in placed:
        width_percent = (len(values) / total) * 100 - spacer_percent
        seq_width = max(0.0, width_percent * unit)
        frames[seqid] = SequenceFrame(
            seqid=seqid,
            x=x_pos,
            y=y,
            width=seq_width,
            height=height,
            length=int(lengths[seqid]),
        )
        x_pos += seq_width + spacer_percent * unit

    logger.debug(f"Composed {len(frames)} sequence frames over {width:.1f}px")
    return frames


def _has_length(lengths: Mapping[str, int], seqid: str) -> bool:
    length = lengths.get(seqid)
    return length is not None and math.isfinite(length)
