"""
chimviz Configuration

Layout proportions, clustering tolerance and rendering parameters.
All sizes are in pixels of the output canvas unless stated otherwise.
"""
from dataclasses import dataclass, field
from typing import Tuple

from .types import MergePolicy


@dataclass
class ClusteringConfig:
    """
    Deduplication of annotated host sites

    Two sites collapse when they share sequence and name and lie within
    tolerance of each other.
    """

    tolerance: int = 100000
    """Maximum distance between duplicate sites (bp)"""

    merge_policy: MergePolicy = 'first_wins'
    """'first_wins' drops the duplicate, 'sum_counts' adds its count to the kept site"""


@dataclass
class LayoutConfig:
    """
    Section proportions of the chimeric and splice diagrams

    Section heights are derived from the canvas width so that the diagram
    keeps its aspect whatever the number of sequences.
    """

    # ============================================================
    # HOST PANEL
    # ============================================================
    spacer_percent: float = 0.5
    """Gap between host sequences (percent of panel width)"""

    host_label_separator: float = 10.0
    """Minimum gap between spread gene labels (px)"""

    label_height_factor: float = 8.0
    """Gene label band height per character of the longest label, in font sizes"""

    idiogram_factor: float = 0.025
    """Idiogram and connector band heights (fraction of canvas width)"""

    marker_intergenic_fraction: float = 0.99
    """Marker y for intergenic sites (fraction of the idiogram top)"""

    marker_intergenic_high_fraction: float = 0.95
    """Marker y for high-count intergenic sites (fraction of the idiogram top)"""

    marker_genic_fraction: float = 0.9
    """Marker y for below-threshold genic sites (fraction of the idiogram top)"""

    # ============================================================
    # CONNECTIONS AND LEGEND
    # ============================================================
    connections_factor: float = 0.3
    """Connection panel height (fraction of canvas width)"""

    connection_opacity_scale: float = 500.0
    """Junction count drawn fully opaque"""

    legend_factor: float = 0.15
    """Legend column width (fraction of canvas width)"""

    # ============================================================
    # PATHOGEN PANEL
    # ============================================================
    genome_factor: float = 0.15
    """Pathogen panel height in the chimeric diagram (fraction of canvas width)"""

    da_label_separator: float = 20.0
    """Minimum gap between spread donor/acceptor labels (px)"""

    orf_band_fraction: float = 0.45
    """ORF band height (fraction of pathogen panel height)"""

    genome_bar_fraction: float = 0.1
    """Genome bar height (fraction of pathogen panel height)"""

    orf_fill_fraction: float = 0.8
    """ORF glyph height (fraction of its row slot)"""

    orf_arrow_width: float = 10.0
    """Width of the arrow head closing the last CDS segment (px)"""

    # ============================================================
    # TRANSCRIPTOME
    # ============================================================
    exon_height_fraction: float = 0.5
    """Exon glyph height (fraction of the transcript track)"""

    cds_height_fraction: float = 0.75
    """CDS glyph height (fraction of the transcript track)"""


@dataclass
class PlotConfig:
    """
    Complete plot configuration

    Example:
        >>> config = PlotConfig(width=1600, font_size=12)
        >>> plotter = ChimericPlotter(config)
    """

    # ============================================================
    # SUB-CONFIGURATIONS
    # ============================================================
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    """Layout configuration"""

    clustering: ClusteringConfig = field(default_factory=ClusteringConfig)
    """Site clustering configuration"""

    # ============================================================
    # CANVAS
    # ============================================================
    width: int = 1200
    """Canvas width (px)"""

    height: int = 800
    """Canvas height of the splice map (px); the chimeric diagram derives its own"""

    font_size: float = 10.0
    """Base font size (px)"""

    gene_count_threshold: float = 0
    """Sites below this count are drawn as markers instead of labels"""

    dpi: int = 300
    """DPI for saved figures"""

    # ============================================================
    # COLOURS
    # ============================================================
    density_cmap: str = 'viridis'
    """Colormap of idiogram density gradients"""

    connection_cmap: str = 'turbo'
    """Colormap of connections, indexed by pathogen position"""

    gene_label_color: str = '#ff0000'
    """Gene labels and their connectors"""

    genome_color: str = '#dddddd'
    """Pathogen genome bar"""

    exon_color: str = '#3652AD'
    """Transcript exons"""

    orf_color: str = '#FE7A36'
    """ORFs and CDS segments"""

    intron_color: str = '#280274'
    """Intron and inter-CDS lines"""

    donor_color: str = '#F78154'
    """Donor expression bars and guide lines"""

    acceptor_color: str = '#5FAD56'
    """Acceptor expression bars and guide lines"""

    ltr_color: str = '#a6cee3'
    """Long terminal repeats on the genome bar"""

    legend_fill: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.05)
    """Legend box background (RGBA)"""

    # ============================================================
    # PRESET CONFIGURATIONS
    # ============================================================

    @classmethod
    def publication(cls) -> 'PlotConfig':
        """
        High-quality settings for publication figures

        - 600 DPI
        - Wider canvas (1800 px)

        Example:
            >>> config = PlotConfig.publication()
            >>> plotter = ChimericPlotter(config)
        """
        config = cls()
        config.dpi = 600
        config.width = 1800
        config.height = 1200
        config.font_size = 12.0
        return config

    @classmethod
    def presentation(cls) -> 'PlotConfig':
        """
        Settings optimized for presentations

        - Lower DPI (150) for smaller file size
        - Larger fonts for screen viewing

        Example:
            >>> config = PlotConfig.presentation()
            >>> plotter = SplicePlotter(config)
        """
        config = cls()
        config.dpi = 150
        config.font_size = 14.0
        config.layout.host_label_separator = 14.0
        config.layout.da_label_separator = 28.0
        return config

    @classmethod
    def compact(cls) -> 'PlotConfig':
        """
        Compact settings for many sequences and sites

        - Smaller canvas and fonts
        - Tighter label spacing

        Example:
            >>> config = PlotConfig.compact()
            >>> plotter = ChimericPlotter(config)
        """
        config = cls()
        config.width = 900
        config.height = 600
        config.font_size = 7.0
        config.layout.spacer_percent = 0.25
        config.layout.host_label_separator = 6.0
        config.layout.da_label_separator = 12.0
        return config
