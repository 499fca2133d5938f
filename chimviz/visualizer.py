"""
Diagram plotters

Draws chimeric junction diagrams and splice maps from the layouts built by
LayoutEngine. Every plot starts from a fresh figure.
"""

from __future__ import annotations
from typing import List, Mapping, Optional, Sequence, Tuple
from pathlib import Path
import logging

import numpy as np
import matplotlib
import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.figure import Figure
from matplotlib.patches import FancyBboxPatch, PathPatch, Polygon, Rectangle
from matplotlib.path import Path as CurvePath

from .canvas import GridCanvas
from .config import PlotConfig
from .layout import LayoutEngine
from .layout.engine import CONNECTIONS, HOST, LABELS, LEGEND, PATHOGEN, PLOT, SIDEBAR
from .layout.types import (
    ChimericLayout,
    ExpressionTrack,
    HostSequenceLayout,
    PathogenLayout,
    SpliceLayout,
    TranscriptTrack,
)
from .types import ExpressionProfile, GeneSite, Integration, PathogenModel
from .utils import is_missing, midpoint

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ('.png', '.svg', '.pdf')

MARKERS = {
    'genic': ('P', 'green'),
    'intergenic': ('D', 'black'),
    'intergenic_high': ('*', 'red'),
}


def check_output_format(output_file: str) -> None:
    """Raise ValueError unless the file extension is a supported image format"""
    suffix = Path(output_file).suffix.lower()
    if suffix not in OUTPUT_FORMATS:
        raise ValueError(f"Unsupported output format '{suffix}'. Use one of {', '.join(OUTPUT_FORMATS)}")


def basis_curve(points: Sequence[Tuple[float, float]]) -> CurvePath:
    """
    Uniform cubic B-spline through the end points of a control polygon

    The curve starts at the first point, ends at the last and is pulled
    towards the points in between without passing through them.

    Args:
        points: Control points (at least 2)

    Returns:
        matplotlib Path made of cubic Bezier segments
    """
    pts = [tuple(map(float, p)) for p in points]
    if len(pts) < 3:
        return CurvePath(pts, [CurvePath.MOVETO] + [CurvePath.LINETO] * (len(pts) - 1))

    vertices: List[Tuple[float, float]] = [pts[0]]
    codes = [CurvePath.MOVETO]

    def bezier(p0, p1, p):
        vertices.extend([
            ((2 * p0[0] + p1[0]) / 3, (2 * p0[1] + p1[1]) / 3),
            ((p0[0] + 2 * p1[0]) / 3, (p0[1] + 2 * p1[1]) / 3),
            ((p0[0] + 4 * p1[0] + p[0]) / 6, (p0[1] + 4 * p1[1] + p[1]) / 6),
        ])
        codes.extend([CurvePath.CURVE4] * 3)

    p0, p1 = pts[0], pts[1]
    vertices.append(((5 * p0[0] + p1[0]) / 6, (5 * p0[1] + p1[1]) / 6))
    codes.append(CurvePath.LINETO)
    for p in pts[2:]:
        bezier(p0, p1, p)
        p0, p1 = p1, p
    bezier(p0, p1, p1)
    vertices.append(p1)
    codes.append(CurvePath.LINETO)
    return CurvePath(vertices, codes)


class _DiagramPainter:
    """Drawing helpers shared by both diagrams"""

    def __init__(self, config: PlotConfig, canvas: GridCanvas, font_size: float) -> None:
        self.config = config
        self.canvas = canvas
        self.font_size = font_size
        self.fontsize_pt = canvas.font_points(font_size)

    def draw_pathogen(self, ax: Axes, pathogen: PathogenLayout) -> None:
        """Genome bar, LTRs, donor/acceptor labels and ORFs"""
        font = self.font_size
        genome_y, genome_h = pathogen.genome_band
        ax.add_patch(FancyBboxPatch(
            (0, genome_y), pathogen.width, genome_h,
            boxstyle=f"round,pad=0,rounding_size={genome_h / 2}",
            facecolor=self.config.genome_color, edgecolor='none',
        ))
        for start, end, name in pathogen.ltrs:
            ax.add_patch(Rectangle((start, genome_y), end - start, genome_h,
                                   facecolor=self.config.ltr_color, edgecolor='none'))
            if name:
                ax.text(midpoint(start, end), genome_y + genome_h / 2, name,
                        ha='center', va='center', fontsize=self.fontsize_pt * 0.8)

        # Labels sit at the top of the band, connectors run down to the genome bar
        da_y, da_h = pathogen.da_band
        step = (da_h - 2 * font) / 3
        ys = [da_y + da_h, da_y + da_h - step, da_y + da_h - 2 * step, da_y + da_h - 3 * step]
        for mark in pathogen.donor_acceptors:
            color = '#ff0000' if mark.is_acceptor else '#000000'
            label_x = mark.label.midpoint
            raw_x = mark.label.original_midpoint
            ax.text(label_x, da_y + font, mark.name, ha='center', va='bottom',
                    fontsize=self.fontsize_pt, color='black')
            ax.plot([raw_x, raw_x, label_x, label_x], ys, color=color, linewidth=1)

        if pathogen.n_orf_rows == 0:
            return
        orf_y, _ = pathogen.orf_band
        slot = pathogen.orf_row_height
        glyph_h = slot * self.config.layout.orf_fill_fraction
        arrow = self.config.layout.orf_arrow_width
        for orf in pathogen.orfs:
            y = orf_y + orf.row * slot
            for i, (start, end) in enumerate(orf.segments):
                last = i == len(orf.segments) - 1
                body = max(0.0, end - start - arrow) if last else end - start
                ax.add_patch(Rectangle((start, y), body, glyph_h,
                                       facecolor=self.config.orf_color, edgecolor='none'))
                if last:
                    ax.add_patch(Polygon(
                        [(end - arrow, y + glyph_h), (end - arrow, y), (end, y + glyph_h / 2)],
                        closed=True, facecolor=self.config.orf_color, edgecolor='none',
                    ))
                if i > 0:
                    prev_end = orf.segments[i - 1][1]
                    ax.plot([prev_end, start], [y + glyph_h / 2] * 2,
                            color=self.config.intron_color, linewidth=1)
            ax.text(midpoint(orf.start, orf.end), y + glyph_h / 2, pathogen.orf_names.get(orf.key, ''),
                    ha='center', va='center', fontsize=self.fontsize_pt, color='black')

    def draw_legend_box(self, ax: Axes, width: float, height: float) -> None:
        ax.add_patch(FancyBboxPatch(
            (0, 0), width, height, boxstyle="round,pad=0,rounding_size=10",
            facecolor=self.config.legend_fill, edgecolor=(0, 0, 0, 0.5),
        ))


class ChimericPlotter:
    """
    Creates host/pathogen chimeric junction diagrams

    Host sequences are drawn as density idiograms with gene labels, the
    pathogen as a genome bar with splice sites and ORFs, and each junction
    as a curve between the two.
    """

    def __init__(self, config: Optional[PlotConfig] = None) -> None:
        """
        Initialize ChimericPlotter

        Args:
            config: Visual configuration for plot styling. If None, uses default settings.

        Example:
            >>> plotter = ChimericPlotter()
            >>> plotter = ChimericPlotter(PlotConfig.publication())
        """
        self.config: PlotConfig = config or PlotConfig()
        self.layout_engine = LayoutEngine(self.config)

    def plot(
        self,
        densities: Mapping[str, Sequence[float]],
        lengths: Mapping[str, int],
        sites: Mapping[str, List[GeneSite]],
        pathogen: PathogenModel,
        integrations: Sequence[Integration],
        output_file: str = 'chimeric_plot.png',
        show: bool = False
    ) -> Figure:
        """
        Generate a chimeric junction diagram

        Args:
            densities: seqid -> density samples (0-1)
            lengths: seqid -> sequence length (bp)
            sites: seqid -> clustered gene sites
            pathogen: Parsed pathogen annotation
            integrations: Junction records
            output_file: Path to save figure (.png, .svg or .pdf)
            show: Whether to display the plot

        Returns:
            matplotlib Figure object
        """
        check_output_format(output_file)
        Path(output_file).parent.mkdir(parents=True, exist_ok=True)

        layout = self.layout_engine.chimeric_layout(densities, lengths, sites, pathogen, integrations)
        canvas = GridCanvas(layout.grid)
        self.draw(layout, canvas)

        canvas.save(output_file, self.config.dpi)
        if show:
            plt.show()
        return canvas.figure

    def draw(self, layout: ChimericLayout, canvas: GridCanvas) -> None:
        """Draw a computed layout onto a canvas bound to its grid"""
        painter = _DiagramPainter(self.config, canvas, layout.font_size)

        host_ax = canvas.get_cell_surface(PLOT, HOST)
        density_cmap = matplotlib.colormaps[self.config.density_cmap]
        for sequence in layout.host:
            self._draw_sequence(host_ax, sequence, painter, density_cmap)

        pathogen_ax = canvas.get_cell_surface(PLOT, PATHOGEN)
        painter.draw_pathogen(pathogen_ax, layout.pathogen)

        connection_cmap = matplotlib.colormaps[self.config.connection_cmap]
        overlay_ax = canvas.overlay_surface(layout.connection_overlay)
        genome_y = layout.pathogen.genome_band[0]
        for connection in layout.connections:
            color = connection_cmap(connection.color_value)
            overlay_ax.add_patch(PathPatch(
                basis_curve(connection.points), fill=False,
                edgecolor=color, alpha=connection.opacity, linewidth=2,
            ))
            pathogen_ax.plot([connection.path_x] * 2, [0, genome_y], color=color,
                             alpha=connection.opacity, linewidth=1, linestyle=(0, (5, 5)))

        legend_bounds = layout.grid.get_padded_bounds(SIDEBAR, CONNECTIONS)
        self._draw_legend(canvas.get_cell_surface(SIDEBAR, CONNECTIONS),
                          legend_bounds.width, legend_bounds.height, painter, density_cmap)
        logger.debug(f"Drew {len(layout.host)} idiograms and {layout.n_connections} connections")

    def _draw_sequence(self, ax: Axes, sequence: HostSequenceLayout, painter: _DiagramPainter, cmap) -> None:
        frame = sequence.frame
        idio_y, idio_h = sequence.idiogram_band
        line_y, _ = sequence.line_band

        if frame.width > 0 and sequence.densities:
            gradient = np.nan_to_num(np.asarray(sequence.densities, dtype=float))[np.newaxis, :]
            outline = FancyBboxPatch(
                (frame.x, idio_y), frame.width, idio_h,
                boxstyle=f"round,pad=0,rounding_size={min(idio_h, frame.width) / 2}",
                facecolor='none', edgecolor='none',
            )
            ax.add_patch(outline)
            image = ax.imshow(
                gradient, cmap=cmap, vmin=0, vmax=1, aspect='auto', interpolation='bilinear',
                extent=(frame.x, frame.x + frame.width, idio_y + idio_h, idio_y),
            )
            image.set_clip_path(outline)
            ax.text(frame.x + frame.width / 2, idio_y + idio_h / 2, frame.seqid, color='white',
                    ha='center', va='center', fontsize=painter.fontsize_pt)

        step = (idio_y - line_y) / 3
        for site in sequence.sites:
            x = frame.x + site.x
            if site.kind == 'label':
                label_x = frame.x + site.label_x
                ax.text(label_x, line_y, site.name, rotation=90, ha='center', va='bottom',
                        color=self.config.gene_label_color, fontsize=painter.fontsize_pt)
                ax.plot([label_x, label_x, x, x],
                        [line_y, line_y + step, line_y + 2 * step, idio_y + idio_h],
                        color=self.config.gene_label_color, linewidth=1)
                continue

            marker, color = MARKERS[site.kind]
            fraction = {
                'genic': self.config.layout.marker_genic_fraction,
                'intergenic': self.config.layout.marker_intergenic_fraction,
                'intergenic_high': self.config.layout.marker_intergenic_high_fraction,
            }[site.kind]
            ax.plot([x], [idio_y * fraction], marker=marker, color=color, linestyle='none',
                    markersize=painter.fontsize_pt * (1.0 if site.kind == 'intergenic_high' else 0.7))

    def _draw_legend(self, ax: Axes, width: float, height: float, painter: _DiagramPainter, cmap) -> None:
        font = painter.font_size
        text_pt = painter.fontsize_pt * 1.5
        spacer = font * 2
        marker_x = width * 0.05
        text_x = width * 0.2
        heatmap_y = height * 0.05
        heatmap_h = height * 0.1
        marker_h = font * 2

        painter.draw_legend_box(ax, width, height)

        for value in np.linspace(0, 1, 11):
            ax.add_patch(Rectangle((marker_x, heatmap_y + value * heatmap_h), 20, heatmap_h / 10,
                                   facecolor=cmap(value), edgecolor='none'))
        ax.text(text_x, heatmap_y + heatmap_h / 2, 'Gene Density', va='center', fontsize=text_pt)

        y = heatmap_y + heatmap_h + spacer
        for kind, text in (('genic', 'Genic'), ('intergenic', 'Intergenic'),
                           ('intergenic_high', 'Intergenic\nHigh Count')):
            marker, color = MARKERS[kind]
            ax.plot([marker_x + marker_h / 2], [y], marker=marker, color=color,
                    linestyle='none', markersize=painter.fontsize_pt * 1.2)
            ax.text(text_x, y, text, va='center', fontsize=text_pt)
            y += marker_h + spacer

        arrow = min(self.config.layout.orf_arrow_width, marker_h)
        ax.add_patch(Rectangle((marker_x, y), marker_h - arrow, marker_h,
                               facecolor=self.config.orf_color, edgecolor='none'))
        ax.add_patch(Polygon(
            [(marker_x + marker_h - arrow, y + marker_h), (marker_x + marker_h - arrow, y),
             (marker_x + marker_h, y + marker_h / 2)],
            closed=True, facecolor=self.config.orf_color, edgecolor='none',
        ))
        ax.text(text_x, y + marker_h / 2, 'ORF', va='center', fontsize=text_pt)


class SplicePlotter:
    """
    Creates splice map diagrams

    Shows the pathogen genome, every transcript model and, below them,
    mean donor and acceptor usage with guide lines back up to the genome.
    """

    def __init__(self, config: Optional[PlotConfig] = None) -> None:
        """
        Initialize SplicePlotter

        Args:
            config: Visual configuration for plot styling. If None, uses default settings.
        """
        self.config: PlotConfig = config or PlotConfig()
        self.layout_engine = LayoutEngine(self.config)

    def plot(
        self,
        pathogen: PathogenModel,
        expression: Optional[ExpressionProfile] = None,
        output_file: str = 'splice_map.png',
        show: bool = False
    ) -> Figure:
        """
        Generate a splice map

        Args:
            pathogen: Parsed pathogen annotation
            expression: Donor/acceptor usage per position (usage panels stay empty if None)
            output_file: Path to save figure (.png, .svg or .pdf)
            show: Whether to display the plot

        Returns:
            matplotlib Figure object
        """
        check_output_format(output_file)
        Path(output_file).parent.mkdir(parents=True, exist_ok=True)

        layout = self.layout_engine.splice_layout(pathogen, expression)
        canvas = GridCanvas(layout.grid)
        self.draw(layout, canvas)

        canvas.save(output_file, self.config.dpi)
        if show:
            plt.show()
        return canvas.figure

    def draw(self, layout: SpliceLayout, canvas: GridCanvas) -> None:
        """Draw a computed layout onto a canvas bound to its grid"""
        painter = _DiagramPainter(self.config, canvas, layout.font_size)
        cfg = self.config

        painter.draw_pathogen(canvas.get_cell_surface(PLOT, 0), layout.pathogen)

        transcript_ax = canvas.get_cell_surface(PLOT, 1)
        label_ax = canvas.get_cell_surface(LABELS, 1)
        for track in layout.transcripts:
            self._draw_transcript(transcript_ax, track)
            label_ax.text(0, track.y + track.height / 2, track.gene_name, va='center',
                          fontsize=painter.fontsize_pt)

        for row, track, color in ((3, layout.donor_expression, cfg.donor_color),
                                  (5, layout.acceptor_expression, cfg.acceptor_color)):
            bounds = layout.grid.get_padded_bounds(PLOT, row)
            self._draw_expression(canvas.get_cell_surface(PLOT, row), track, bounds.height, color)
            self._draw_axis(canvas.get_cell_surface(LABELS, row), track.max_value, bounds.height, painter)

        for overlay, guides, color in ((layout.donor_overlay, layout.donor_guides, cfg.donor_color),
                                       (layout.acceptor_overlay, layout.acceptor_guides, cfg.acceptor_color)):
            ax = canvas.overlay_surface(overlay)
            for x in guides:
                ax.plot([x, x], [0, overlay.bounds.height], color=color, linewidth=1,
                        linestyle=(0, (5, 5)))

        legend_bounds = layout.grid.get_padded_bounds(LEGEND, 0)
        legend_ax = canvas.get_cell_surface(LEGEND, 0)
        painter.draw_legend_box(legend_ax, legend_bounds.width, legend_bounds.height)
        y = painter.font_size * 2
        for color, text in ((cfg.exon_color, 'Exon'), (cfg.orf_color, 'CDS'),
                            (cfg.donor_color, 'Donor'), (cfg.acceptor_color, 'Acceptor')):
            legend_ax.add_patch(Rectangle((painter.font_size, y - painter.font_size / 2),
                                          painter.font_size, painter.font_size,
                                          facecolor=color, edgecolor='none'))
            legend_ax.text(painter.font_size * 2.5, y, text, va='center', fontsize=painter.fontsize_pt)
            y += painter.font_size * 2
        logger.debug(f"Drew {len(layout.transcripts)} transcripts")

    def _draw_transcript(self, ax: Axes, track: TranscriptTrack) -> None:
        cfg = self.config
        mid = track.y + track.height / 2
        for i, (start, end) in enumerate(track.exons):
            h = track.height * cfg.layout.exon_height_fraction
            ax.add_patch(Rectangle((start, mid - h / 2), end - start, h,
                                   facecolor=cfg.exon_color, edgecolor='none'))
            if i > 0:
                ax.plot([track.exons[i - 1][1], start], [mid, mid], color=cfg.intron_color, linewidth=1)
        for start, end in track.cds:
            h = track.height * cfg.layout.cds_height_fraction
            ax.add_patch(Rectangle((start, mid - h / 2), end - start, h,
                                   facecolor=cfg.orf_color, edgecolor='none'))

    def _draw_expression(self, ax: Axes, track: ExpressionTrack, height: float, color: str) -> None:
        if not track.bars:
            return
        bar_width = max(2.0, self.config.font_size / 2)
        for bar in track.bars:
            value_h = bar.value / track.max_value * height if track.max_value > 0 else 0.0
            ax.add_patch(Rectangle((bar.x - bar_width / 2, height - value_h), bar_width, value_h,
                                   facecolor=color, edgecolor='none'))
            if track.max_coverage > 0 and not is_missing(bar.coverage):
                ax.plot([bar.x], [height - bar.coverage / track.max_coverage * height],
                        marker='_', color='grey', markersize=bar_width)
        ax.plot([0, ax.get_xlim()[1]], [height, height], color='black', linewidth=0.5)

    def _draw_axis(self, ax: Axes, max_value: float, height: float, painter: _DiagramPainter) -> None:
        ax.plot([0, 0], [0, height], color='black', linewidth=0.8)
        for value in np.linspace(0, max_value, 5 if max_value > 0 else 1):
            y = height - (value / max_value * height if max_value > 0 else 0.0)
            ax.plot([0, 4], [y, y], color='black', linewidth=0.8)
            ax.text(6, y, f"{value:.2g}", va='center', fontsize=painter.fontsize_pt * 0.8)
