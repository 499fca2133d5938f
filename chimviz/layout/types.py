"""
Layout types for chimviz
Data structures for layout engine inputs and results

Geometry types are immutable (frozen) for safety and testability.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Dict, Tuple, Optional, Sequence, Any, Literal, TYPE_CHECKING
import math

if TYPE_CHECKING:
    from .grid import GridLayout


Interval = Tuple[float, float]
"""Closed pixel-space range [start, end]"""

MarkerKind = Literal['label', 'genic', 'intergenic', 'intergenic_high']
"""How an annotated site is drawn on the host panel"""


@dataclass(frozen=True)
class Padding:
    """
    Inset applied to a grid cell

    Attributes:
        top: Top inset (px)
        bottom: Bottom inset (px)
        left: Left inset (px)
        right: Right inset (px)
    """
    top: float = 0.0
    bottom: float = 0.0
    left: float = 0.0
    right: float = 0.0

    def __post_init__(self) -> None:
        for side in ('top', 'bottom', 'left', 'right'):
            value = getattr(self, side)
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"Padding {side} must be a non-negative number, got {value}")

    @classmethod
    def uniform(cls, value: float) -> 'Padding':
        """Same inset on every side"""
        return cls(top=value, bottom=value, left=value, right=value)


@dataclass(frozen=True)
class Bounds:
    """An axis-aligned rectangle in pixel space (origin top-left, y down)"""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def origin(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def inset(self, padding: Padding) -> 'Bounds':
        """Shrink by padding on each side, never below zero size"""
        return Bounds(
            x=self.x + padding.left,
            y=self.y + padding.top,
            width=max(0.0, self.width - padding.left - padding.right),
            height=max(0.0, self.height - padding.top - padding.bottom),
        )

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class CellBounds:
    """
    Geometry of a single grid cell

    Attributes:
        column: Column index
        row: Row index within the column
        raw: Full cell rectangle in canvas coordinates
        padded: Content rectangle (raw minus padding) in canvas coordinates
    """
    column: int
    row: int
    raw: Bounds
    padded: Bounds

    @property
    def origin(self) -> Tuple[float, float]:
        """Absolute origin of the raw cell"""
        return self.raw.origin

    @property
    def content_offset(self) -> Tuple[float, float]:
        """Offset of the padded viewport relative to the raw cell origin"""
        return (self.padded.x - self.raw.x, self.padded.y - self.raw.y)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "column": self.column,
            "row": self.row,
            "raw": self.raw.to_dict(),
            "padded": self.padded.to_dict(),
        }


@dataclass(frozen=True)
class GridConfig:
    """
    Declarative description of a ragged proportional grid

    Ratios are normalized by the layout, they do not need to sum to 1.

    Attributes:
        column_ratios: Relative column widths
        row_ratios_per_column: Relative row heights, one list per column
        cell_padding: Padding per cell, one list per column (optional)
    """
    column_ratios: Tuple[float, ...]
    row_ratios_per_column: Tuple[Tuple[float, ...], ...]
    cell_padding: Optional[Tuple[Tuple[Padding, ...], ...]] = None

    def __post_init__(self) -> None:
        # normalize list input to tuples so the config stays hashable
        object.__setattr__(self, 'column_ratios', tuple(self.column_ratios))
        object.__setattr__(self, 'row_ratios_per_column',
                           tuple(tuple(rows) for rows in self.row_ratios_per_column))

        if not self.column_ratios:
            raise ValueError("GridConfig requires at least one column ratio")
        if len(self.row_ratios_per_column) != len(self.column_ratios):
            raise ValueError(
                f"Expected {len(self.column_ratios)} row ratio lists, "
                f"got {len(self.row_ratios_per_column)}"
            )
        _check_ratios(self.column_ratios, "column ratios")
        for col, rows in enumerate(self.row_ratios_per_column):
            if not rows:
                raise ValueError(f"Column {col} has an empty row ratio list")
            _check_ratios(rows, f"row ratios of column {col}")

        if self.cell_padding is None:
            padding = tuple(
                tuple(Padding() for _ in rows) for rows in self.row_ratios_per_column
            )
        else:
            padding = tuple(tuple(col) for col in self.cell_padding)
            if len(padding) != len(self.column_ratios):
                raise ValueError(
                    f"Expected {len(self.column_ratios)} padding lists, got {len(padding)}"
                )
            for col, (rows, pads) in enumerate(zip(self.row_ratios_per_column, padding)):
                if len(rows) != len(pads):
                    raise ValueError(
                        f"Column {col} has {len(rows)} row ratios but {len(pads)} paddings"
                    )
        object.__setattr__(self, 'cell_padding', padding)

    @property
    def n_columns(self) -> int:
        return len(self.column_ratios)


def _check_ratios(ratios: Sequence[float], what: str) -> None:
    for ratio in ratios:
        if not math.isfinite(ratio) or ratio <= 0:
            raise ValueError(f"All {what} must be positive numbers, got {ratio}")


@dataclass(frozen=True)
class OverlayBounds:
    """
    Non-interactive surface spanning several stacked rows of one column

    Attributes:
        column: Column index
        rows: Contiguous row indices covered
        bounds: Rectangle covering the combined raw height of the rows
        interactive: Always False, overlays never receive pointer events
    """
    column: int
    rows: Tuple[int, ...]
    bounds: Bounds
    interactive: bool = False


@dataclass(frozen=True)
class SpreadInterval:
    """
    Result of spreading one label interval

    Attributes:
        index: Position of the interval in the caller's input sequence
        original: Interval before spreading
        spread: Interval after spreading
    """
    index: int
    original: Interval
    spread: Interval

    @property
    def shift(self) -> float:
        """Displacement applied to the interval (px, negative = leftward)"""
        return self.spread[0] - self.original[0]

    @property
    def midpoint(self) -> float:
        return (self.spread[0] + self.spread[1]) / 2

    @property
    def original_midpoint(self) -> float:
        return (self.original[0] + self.original[1]) / 2


@dataclass(frozen=True)
class PackedFeature:
    """
    Linear feature with its assigned display row

    Attributes:
        key: Caller supplied identifier
        segments: Sub-segments, in genomic or pixel units
        row: Assigned row index (0 = first row)
    """
    key: Any
    segments: Tuple[Tuple[float, float], ...]
    row: int

    @property
    def start(self) -> float:
        return self.segments[0][0]

    @property
    def end(self) -> float:
        return self.segments[-1][1]


@dataclass(frozen=True)
class SequenceFrame:
    """
    Placement of one reference sequence inside a panel

    Attributes:
        seqid: Sequence identifier
        x: Global x offset (px)
        y: Global y offset (px)
        width: Width allotted to the sequence (px)
        height: Height of the panel (px)
        length: Sequence length (bp)
    """
    seqid: str
    x: float
    y: float
    width: float
    height: float
    length: int

    def to_local(self, position: float) -> float:
        """Pixel position relative to the frame origin"""
        if not self.length or self.length <= 0 or math.isnan(position):
            return math.nan
        return (position / self.length) * self.width

    def to_pixel(self, position: float) -> float:
        """Global pixel position"""
        return self.x + self.to_local(position)

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width,
                "height": self.height, "length": self.length}


@dataclass(frozen=True)
class SiteMark:
    """
    One annotated site on the host panel

    Attributes:
        name: Gene name ('-' for intergenic)
        seqid: Sequence identifier
        position: Genomic coordinate (bp)
        count: Occurrence count
        kind: How the site is drawn
        x: True position relative to the sequence frame (px)
        label: Spread label interval, only for kind == 'label'
    """
    name: str
    seqid: str
    position: float
    count: float
    kind: MarkerKind
    x: float
    label: Optional[SpreadInterval] = None

    @property
    def label_x(self) -> float:
        """Where the label text goes (spread), falls back to the true position"""
        return self.label.midpoint if self.label is not None else self.x


@dataclass(frozen=True)
class HostSequenceLayout:
    """
    Layout of a single idiogram and its labels

    Bands are (y, height) pairs relative to the host panel; site x values
    are relative to the frame.
    """
    frame: SequenceFrame
    densities: Tuple[float, ...]
    sites: Tuple[SiteMark, ...]
    label_band: Tuple[float, float]
    line_band: Tuple[float, float]
    idiogram_band: Tuple[float, float]

    @property
    def labels(self) -> List[SiteMark]:
        return [s for s in self.sites if s.kind == 'label']

    @property
    def markers(self) -> List[SiteMark]:
        return [s for s in self.sites if s.kind != 'label']


@dataclass(frozen=True)
class DonorAcceptorMark:
    """Spread donor/acceptor label on the pathogen panel"""
    name: str
    position: int
    x: float
    label: SpreadInterval

    @property
    def is_acceptor(self) -> bool:
        return self.name.startswith('SA')


@dataclass(frozen=True)
class PathogenLayout:
    """
    Pathogen genome panel

    Vertical sub-regions are (y, height) pairs relative to the panel.
    """
    genome_length: int
    width: float
    height: float
    genome_band: Tuple[float, float]
    da_band: Tuple[float, float]
    orf_band: Tuple[float, float]
    donor_acceptors: Tuple[DonorAcceptorMark, ...]
    orfs: Tuple[PackedFeature, ...]
    orf_names: Dict[Any, str]
    ltrs: Tuple[Tuple[float, float, str], ...] = ()

    @property
    def n_orf_rows(self) -> int:
        return max((orf.row for orf in self.orfs), default=-1) + 1

    @property
    def orf_row_height(self) -> float:
        """Height of a row slot in the ORF band"""
        if self.n_orf_rows == 0:
            return 0.0
        return self.orf_band[1] / self.n_orf_rows


@dataclass(frozen=True)
class Connection:
    """
    Curve joining a host junction site to its pathogen site

    Attributes:
        host_seqid: Host sequence
        host_x: x within the host panel (px)
        path_x: x within the pathogen panel (px)
        points: Curve control points in connection overlay coordinates
        opacity: 0-1, proportional to the junction count
        color_value: 0-1, relative pathogen position for a sequential colormap
        path_position: Pathogen coordinate (bp)
        count: Junction count
    """
    host_seqid: str
    host_x: float
    path_x: float
    points: Tuple[Tuple[float, float], ...]
    opacity: float
    color_value: float
    path_position: float
    count: float


@dataclass
class ChimericLayout:
    """
    Complete layout of a host/pathogen junction diagram

    This is the output of LayoutEngine and input to ChimericPlotter.
    """
    grid: GridLayout
    width: float
    height: float
    font_size: float
    frames: Dict[str, SequenceFrame]
    host: List[HostSequenceLayout]
    pathogen: PathogenLayout
    connections: List[Connection]
    connection_overlay: OverlayBounds
    layout_stats: Dict[str, Any] = field(default_factory=dict)

    def get_seqids(self) -> Dict[str, Dict[str, float]]:
        """Per-sequence {x, y, width, height, length} lookup table"""
        return {seqid: frame.to_dict() for seqid, frame in self.frames.items()}

    @property
    def n_connections(self) -> int:
        return len(self.connections)


@dataclass(frozen=True)
class TranscriptTrack:
    """One transcript row in the transcriptome panel"""
    transcript_id: str
    gene_name: str
    y: float
    height: float
    exons: Tuple[Tuple[float, float], ...]
    cds: Tuple[Tuple[float, float], ...]


@dataclass(frozen=True)
class ExpressionBar:
    """Mean usage at one donor or acceptor site"""
    name: str
    position: int
    x: float
    value: float
    coverage: float


@dataclass(frozen=True)
class ExpressionTrack:
    """Donor or acceptor usage panel"""
    kind: Literal['donor', 'acceptor']
    bars: Tuple[ExpressionBar, ...]
    max_value: float
    max_coverage: float


@dataclass
class SpliceLayout:
    """
    Complete layout of a splice map diagram

    This is the output of LayoutEngine and input to SplicePlotter.
    """
    grid: GridLayout
    width: float
    height: float
    font_size: float
    pathogen: PathogenLayout
    transcripts: List[TranscriptTrack]
    donor_expression: ExpressionTrack
    acceptor_expression: ExpressionTrack
    donor_overlay: OverlayBounds
    acceptor_overlay: OverlayBounds
    donor_guides: Tuple[float, ...] = ()
    acceptor_guides: Tuple[float, ...] = ()
    layout_stats: Dict[str, Any] = field(default_factory=dict)
