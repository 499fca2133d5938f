"""
Layout Module for chimviz
Geometry engine for genome annotation diagrams

Public API:
    - LayoutEngine: Diagram orchestration (chimeric and splice map)
    - GridLayout / GridConfig / Padding: Proportional grid with padded cells
    - IntervalSpreader: Label de-overlap
    - RowPacker: First-fit row assignment
    - CoordinateMapper / LinearScale: Genomic to pixel transforms
    - ChimericLayout / SpliceLayout: Complete layout solutions
"""

from .engine import LayoutEngine, classify_site
from .grid import GridCell, GridLayout
from .mapper import CoordinateMapper, LinearScale, compose_sequence_frames
from .packer import RowPacker, count_rows
from .spreader import IntervalSpreader, spread_intervals
from .types import (
    Bounds,
    CellBounds,
    ChimericLayout,
    GridConfig,
    OverlayBounds,
    PackedFeature,
    Padding,
    SequenceFrame,
    SpliceLayout,
    SpreadInterval,
)

__all__ = [
    'LayoutEngine',
    'classify_site',
    'GridCell',
    'GridLayout',
    'GridConfig',
    'Padding',
    'Bounds',
    'CellBounds',
    'OverlayBounds',
    'CoordinateMapper',
    'LinearScale',
    'compose_sequence_frames',
    'SequenceFrame',
    'RowPacker',
    'count_rows',
    'PackedFeature',
    'IntervalSpreader',
    'spread_intervals',
    'SpreadInterval',
    'ChimericLayout',
    'SpliceLayout',
]
