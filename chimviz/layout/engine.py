"""
Layout Engine for chimviz
Pure layout pass for the chimeric junction and splice map diagrams

Every call builds a fresh GridLayout and fresh result objects; nothing is
drawn here. The plotters turn the results into matplotlib artists.
"""
from __future__ import annotations
from typing import Dict, List, Mapping, Optional, Sequence, Tuple
import logging

import numpy as np

from ..clustering import INTERGENIC
from ..config import PlotConfig
from ..types import (
    ExpressionProfile,
    ExpressionSite,
    GeneSite,
    GenomeComponent,
    Integration,
    PathogenModel,
)
from ..utils import is_missing
from .grid import GridLayout
from .mapper import CoordinateMapper, compose_sequence_frames
from .packer import RowPacker
from .spreader import IntervalSpreader
from .types import (
    Bounds,
    ChimericLayout,
    Connection,
    DonorAcceptorMark,
    ExpressionBar,
    ExpressionTrack,
    GridConfig,
    HostSequenceLayout,
    MarkerKind,
    PackedFeature,
    Padding,
    PathogenLayout,
    SequenceFrame,
    SiteMark,
    SpliceLayout,
    TranscriptTrack,
)

logger = logging.getLogger(__name__)

# Splice map rows: pathogen, transcriptome, spacer, donor usage, spacer, acceptor usage
SPLICE_ROW_RATIOS = (0.1, 0.45, 0.025, 0.2, 0.025, 0.2)
SPLICE_ROW_PADDING = (
    Padding(top=20, left=20),
    Padding(left=20),
    Padding(left=20),
    Padding(top=10, bottom=30, left=20),
    Padding(left=20),
    Padding(top=10, bottom=30, left=20),
)

# Rows of the chimeric diagram
HOST, CONNECTIONS, PATHOGEN = 0, 1, 2
# Columns: the plot, then gene labels (splice map) or the legend (chimeric)
PLOT, LABELS, LEGEND = 0, 1, 2
SIDEBAR = 1


def splice_grid_config() -> GridConfig:
    """Grid of the splice map: plot, gene label and legend columns"""
    return GridConfig(
        column_ratios=(0.8, 0.1, 0.1),
        row_ratios_per_column=(SPLICE_ROW_RATIOS, SPLICE_ROW_RATIOS, (1,)),
        cell_padding=(SPLICE_ROW_PADDING, SPLICE_ROW_PADDING, (Padding.uniform(20),)),
    )


def classify_site(name: str, count: float, threshold: float) -> MarkerKind:
    """
    How a host site is drawn

    Intergenic sites are never labelled: above the threshold they get a
    high-count marker. Named sites get a text label from the threshold up.
    """
    if name == INTERGENIC:
        return 'intergenic_high' if count > threshold else 'intergenic'
    if count < threshold:
        return 'genic'
    return 'label'


def split_distance(start: Tuple[float, float], end: Tuple[float, float]) -> Tuple[Tuple[float, float], ...]:
    """
    Control points of a connection curve

    The curve leaves the start vertically, crosses over in the middle
    third and arrives vertically at the end.
    """
    (x1, y1), (x2, y2) = start, end
    dx, dy = x2 - x1, y2 - y1
    return (
        (x1, y1),
        (x1, y1 + dy / 5),
        (x1 + dx / 4, y1 + dy / 3),
        (x1 + 3 * dx / 4, y1 + 2 * dy / 3),
        (x2, y2 - dy / 6),
        (x2, y2),
    )


class LayoutEngine:
    """
    Builds diagram layouts from parsed inputs

    Algorithm (chimeric diagram):
    1. Derive section heights from the canvas width
    2. Split the canvas into host, connections and pathogen rows
    3. Place host sequences, classify their sites and spread the labels
    4. Lay out the pathogen genome, donor/acceptor labels and packed ORFs
    5. Join host and pathogen sites with curves on an overlay
    """

    def __init__(self, config: Optional[PlotConfig] = None) -> None:
        """
        Initialize layout engine

        Args:
            config: Plot configuration (uses defaults if None)
        """
        self.config: PlotConfig = config or PlotConfig()
        self.layout_config = self.config.layout
        self.packer = RowPacker()

    # ------------------------------------------------------------------
    # Chimeric diagram
    # ------------------------------------------------------------------

    def chimeric_layout(
        self,
        densities: Mapping[str, Sequence[float]],
        lengths: Mapping[str, int],
        sites: Mapping[str, List[GeneSite]],
        pathogen: PathogenModel,
        integrations: Sequence[Integration]
    ) -> ChimericLayout:
        """
        Lay out a host/pathogen junction diagram

        Args:
            densities: seqid -> density samples
            lengths: seqid -> sequence length (bp)
            sites: seqid -> clustered sites
            pathogen: Parsed pathogen annotation
            integrations: Junction records

        Returns:
            ChimericLayout with every panel positioned
        """
        cfg = self.layout_config
        width = float(self.config.width)
        font = float(self.config.font_size)
        threshold = self.config.gene_count_threshold

        label_chars = max(
            (len(s['name']) for seq_sites in sites.values() for s in seq_sites
             if classify_site(s['name'], s['count'], threshold) == 'label'),
            default=0,
        )
        label_height = label_chars * font * cfg.label_height_factor
        line_height = width * cfg.idiogram_factor
        idiogram_height = width * cfg.idiogram_factor
        host_height = label_height + line_height + idiogram_height
        connections_height = width * cfg.connections_factor
        pathogen_height = width * cfg.genome_factor
        height = host_height + connections_height + pathogen_height

        logger.info(f"Chimeric layout {width:.0f}x{height:.0f}: host {host_height:.1f}px, "
                    f"connections {connections_height + idiogram_height / 2:.1f}px, "
                    f"pathogen {pathogen_height:.1f}px")

        legend_width = width * cfg.legend_factor
        rows = (host_height, connections_height, pathogen_height)
        grid = GridLayout(width, height, GridConfig(
            column_ratios=(1 - cfg.legend_factor, cfg.legend_factor),
            row_ratios_per_column=(rows, rows),
            cell_padding=(
                (Padding(), Padding(), Padding()),
                (Padding(), Padding(left=legend_width * 0.075, right=legend_width * 0.025), Padding()),
            ),
        ))

        # Host panel
        host_cell = grid.get_padded_bounds(PLOT, HOST)
        frames = compose_sequence_frames(
            densities, lengths, host_cell.width, host_cell.height,
            spacer_percent=cfg.spacer_percent,
        )
        bands = ((0.0, label_height), (label_height, line_height),
                 (label_height + line_height, idiogram_height))
        host = [self._host_sequence(frame, densities[seqid], sites.get(seqid, []), bands)
                for seqid, frame in frames.items()]
        grid.set_cell_data(PLOT, HOST, host)

        unplaced = [seqid for seqid in sites if seqid not in frames]
        if unplaced:
            logger.warning(f"Dropping sites on {len(unplaced)} sequences without a frame: {unplaced[:5]}")

        # Pathogen panel
        pathogen_cell = grid.get_padded_bounds(PLOT, PATHOGEN)
        pathogen_layout = self.pathogen_layout(pathogen, pathogen_cell.width, pathogen_cell.height)
        grid.set_cell_data(PLOT, PATHOGEN, pathogen_layout)

        # Connections span from the idiogram centres to the pathogen top
        overlay = grid.create_overlay(PLOT, [HOST, CONNECTIONS])
        connections = self._connections(
            integrations, frames, pathogen_layout,
            host_cell, pathogen_cell, overlay.bounds,
            y_start=host_cell.y - overlay.bounds.y + bands[2][0] + idiogram_height / 2,
        )
        grid.set_cell_data(PLOT, CONNECTIONS, connections)

        stats = {
            'n_sequences': len(frames),
            'n_sites': sum(len(h.sites) for h in host),
            'n_labels': sum(len(h.labels) for h in host),
            'n_orfs': len(pathogen_layout.orfs),
            'n_orf_rows': pathogen_layout.n_orf_rows,
            'n_connections': len(connections),
            'n_integrations_dropped': len(integrations) - len(connections),
        }
        logger.info(f"Layout complete: {stats['n_sequences']} sequences, {stats['n_labels']} labels, "
                    f"{stats['n_connections']} connections")

        return ChimericLayout(
            grid=grid,
            width=width,
            height=height,
            font_size=font,
            frames=frames,
            host=host,
            pathogen=pathogen_layout,
            connections=connections,
            connection_overlay=overlay,
            layout_stats=stats,
        )

    def _host_sequence(
        self,
        frame: SequenceFrame,
        densities: Sequence[float],
        sites: Sequence[GeneSite],
        bands: Tuple[Tuple[float, float], ...]
    ) -> HostSequenceLayout:
        threshold = self.config.gene_count_threshold
        half_label = self.config.font_size / 2

        placed = []
        for site in sites:
            x = frame.to_local(site['position'][1])
            if is_missing(x):
                continue
            placed.append((site, x, classify_site(site['name'], site['count'], threshold)))

        labelled = [i for i, (_, _, kind) in enumerate(placed) if kind == 'label']
        spread = IntervalSpreader(self.layout_config.host_label_separator).spread(
            [(placed[i][1] - half_label, placed[i][1] + half_label) for i in labelled]
        )
        label_of = {labelled[s.index]: s for s in spread}

        marks = tuple(
            SiteMark(
                name=site['name'],
                seqid=frame.seqid,
                position=site['position'][1],
                count=site['count'],
                kind=kind,
                x=x,
                label=label_of.get(i),
            )
            for i, (site, x, kind) in enumerate(placed)
        )
        if len(placed) < len(sites):
            logger.debug(f"{frame.seqid}: skipped {len(sites) - len(placed)} sites outside the frame scale")

        return HostSequenceLayout(
            frame=frame,
            densities=tuple(float(d) for d in densities),
            sites=marks,
            label_band=bands[0],
            line_band=bands[1],
            idiogram_band=bands[2],
        )

    def _connections(
        self,
        integrations: Sequence[Integration],
        frames: Mapping[str, SequenceFrame],
        pathogen: PathogenLayout,
        host_cell: Bounds,
        pathogen_cell: Bounds,
        overlay: Bounds,
        y_start: float
    ) -> List[Connection]:
        mapper = CoordinateMapper(pathogen.genome_length, pathogen.width)
        y_end = pathogen_cell.y - overlay.y
        scale = self.layout_config.connection_opacity_scale

        connections: List[Connection] = []
        unknown = 0
        for integration in integrations:
            frame = frames.get(integration.host_seqid)
            if frame is None:
                unknown += 1
                continue
            host_x = frame.to_pixel(integration.host_pos)
            path_x = mapper.to_pixel(integration.path_pos)
            if is_missing(host_x) or is_missing(path_x) or is_missing(integration.count):
                continue

            start = (host_cell.x - overlay.x + host_x, y_start)
            end = (pathogen_cell.x - overlay.x + path_x, y_end)
            connections.append(Connection(
                host_seqid=integration.host_seqid,
                host_x=host_x,
                path_x=path_x,
                points=split_distance(start, end),
                opacity=min(1.0, max(0.0, integration.count / scale)),
                color_value=min(1.0, max(0.0, integration.path_pos / pathogen.genome_length)),
                path_position=integration.path_pos,
                count=integration.count,
            ))

        if unknown:
            logger.warning(f"Skipped {unknown} integrations on host sequences without a frame")
        dropped = len(integrations) - len(connections) - unknown
        if dropped:
            logger.warning(f"Skipped {dropped} integrations with unusable coordinates")
        return connections

    # ------------------------------------------------------------------
    # Pathogen panel
    # ------------------------------------------------------------------

    def pathogen_layout(self, pathogen: PathogenModel, width: float, height: float) -> PathogenLayout:
        """
        Lay out the pathogen genome panel

        The panel holds, top to bottom, spread donor/acceptor labels, the
        genome bar and the ORF band.

        Args:
            pathogen: Parsed pathogen annotation
            width: Panel width (px)
            height: Panel height (px)

        Returns:
            PathogenLayout; a zero-length genome yields empty label and ORF lists
        """
        cfg = self.layout_config
        font = self.config.font_size
        genome_length = _genome_length(pathogen)
        mapper = CoordinateMapper(genome_length, width)

        orf_height = height * cfg.orf_band_fraction
        genome_y = orf_height - font
        genome_height = height * cfg.genome_bar_fraction

        da_components = [c for c in pathogen['genome_components'] if c['type'] == 'da']
        da_x = [mapper.to_pixel(c['position']) for c in da_components]
        kept = [i for i, x in enumerate(da_x) if not is_missing(x)]
        spread = IntervalSpreader(cfg.da_label_separator).spread([
            (da_x[i] - len(da_components[i]['name']) * font / 4,
             da_x[i] + len(da_components[i]['name']) * font / 4)
            for i in kept
        ])
        donor_acceptors = tuple(
            DonorAcceptorMark(
                name=da_components[kept[s.index]]['name'],
                position=int(da_components[kept[s.index]]['position']),
                x=da_x[kept[s.index]],
                label=s,
            )
            for s in sorted(spread, key=lambda s: s.index)
        )

        orfs, orf_names = self._pack_orfs(pathogen, mapper)

        ltrs = []
        for component in pathogen['genome_components']:
            if component['type'] != 'ltr':
                continue
            start, end = mapper.interval_to_pixels(*component['position'])
            if not (is_missing(start) or is_missing(end)):
                ltrs.append((start, end, component['name'] or ''))

        logger.debug(f"Pathogen panel: {len(donor_acceptors)} donor/acceptor labels, "
                     f"{len(orfs)} ORFs, {len(ltrs)} LTRs")

        return PathogenLayout(
            genome_length=genome_length,
            width=width,
            height=height,
            genome_band=(genome_y, genome_height),
            da_band=(0.0, genome_y + genome_height),
            orf_band=(height - orf_height, orf_height),
            donor_acceptors=donor_acceptors,
            orfs=tuple(orfs),
            orf_names=orf_names,
            ltrs=tuple(ltrs),
        )

    def _pack_orfs(
        self,
        pathogen: PathogenModel,
        mapper: CoordinateMapper
    ) -> Tuple[List[PackedFeature], Dict[str, str]]:
        """Unique CDS chains in first-seen order, packed in genomic units, converted to px"""
        if mapper.scale.is_degenerate:
            return [], {}

        seen = set()
        keys: List[str] = []
        chains: List[List[Tuple[int, int]]] = []
        for tid, transcript in pathogen['transcripts'].items():
            chain = tuple(tuple(seg) for seg in transcript['cds'])
            if not chain or chain in seen:
                continue
            seen.add(chain)
            keys.append(tid)
            chains.append(list(chain))

        packed = self.packer.pack(chains, keys)
        orfs = [
            PackedFeature(
                key=feature.key,
                segments=tuple(mapper.interval_to_pixels(s, e) for s, e in feature.segments),
                row=feature.row,
            )
            for feature in packed
        ]
        names = {tid: pathogen['transcripts'][tid]['gene_name'] or '' for tid in keys}
        return orfs, names

    # ------------------------------------------------------------------
    # Splice map
    # ------------------------------------------------------------------

    def splice_layout(
        self,
        pathogen: PathogenModel,
        expression: Optional[ExpressionProfile] = None
    ) -> SpliceLayout:
        """
        Lay out a splice map

        Args:
            pathogen: Parsed pathogen annotation
            expression: Donor/acceptor usage per position (bars are empty if None)

        Returns:
            SpliceLayout with pathogen, transcript and usage panels
        """
        width = float(self.config.width)
        height = float(self.config.height)
        grid = GridLayout(width, height, splice_grid_config())
        logger.info(f"Splice layout {width:.0f}x{height:.0f}: "
                    f"{len(pathogen['transcripts'])} transcripts")

        pathogen_cell = grid.get_padded_bounds(PLOT, 0)
        pathogen_layout = self.pathogen_layout(pathogen, pathogen_cell.width, pathogen_cell.height)
        grid.set_cell_data(PLOT, 0, pathogen_layout)

        transcript_cell = grid.get_padded_bounds(PLOT, 1)
        mapper = CoordinateMapper(pathogen_layout.genome_length, transcript_cell.width)
        transcripts = self._transcript_tracks(pathogen, mapper, transcript_cell.height)
        grid.set_cell_data(PLOT, 1, transcripts)
        grid.set_cell_data(LABELS, 1, [(t.gene_name, t.y + t.height / 2) for t in transcripts])

        components = pathogen['genome_components']
        donors = [c for c in components if c['type'] == 'da' and c['name'].startswith('SD')]
        acceptors = [c for c in components if c['type'] == 'da' and c['name'].startswith('SA')]
        profile = expression or {'donors': {}, 'acceptors': {}}

        donor_cell = grid.get_padded_bounds(PLOT, 3)
        donor_track = self._expression_track(
            'donor', donors, profile['donors'],
            CoordinateMapper(pathogen_layout.genome_length, donor_cell.width))
        grid.set_cell_data(PLOT, 3, donor_track)

        acceptor_cell = grid.get_padded_bounds(PLOT, 5)
        acceptor_track = self._expression_track(
            'acceptor', acceptors, profile['acceptors'],
            CoordinateMapper(pathogen_layout.genome_length, acceptor_cell.width))
        grid.set_cell_data(PLOT, 5, acceptor_track)

        donor_overlay = grid.create_overlay(PLOT, [0, 1, 2])
        acceptor_overlay = grid.create_overlay(PLOT, [0, 1, 2, 3, 4])
        donor_guides = tuple(donor_cell.x - donor_overlay.bounds.x + bar.x for bar in donor_track.bars)
        acceptor_guides = tuple(acceptor_cell.x - acceptor_overlay.bounds.x + bar.x
                                for bar in acceptor_track.bars)

        grid.promote(PLOT, 0)
        grid.promote(PLOT, 3)

        stats = {
            'n_transcripts': len(transcripts),
            'n_orfs': len(pathogen_layout.orfs),
            'n_donors': len(donor_track.bars),
            'n_acceptors': len(acceptor_track.bars),
        }
        logger.info(f"Layout complete: {stats['n_transcripts']} transcripts, "
                    f"{stats['n_donors']} donors, {stats['n_acceptors']} acceptors")

        return SpliceLayout(
            grid=grid,
            width=width,
            height=height,
            font_size=float(self.config.font_size),
            pathogen=pathogen_layout,
            transcripts=transcripts,
            donor_expression=donor_track,
            acceptor_expression=acceptor_track,
            donor_overlay=donor_overlay,
            acceptor_overlay=acceptor_overlay,
            donor_guides=donor_guides,
            acceptor_guides=acceptor_guides,
            layout_stats=stats,
        )

    def _transcript_tracks(
        self,
        pathogen: PathogenModel,
        mapper: CoordinateMapper,
        height: float
    ) -> List[TranscriptTrack]:
        n = len(pathogen['transcripts'])
        if n == 0 or mapper.scale.is_degenerate:
            return []

        track_height = height / n
        return [
            TranscriptTrack(
                transcript_id=tid,
                gene_name=transcript['gene_name'] or '',
                y=i * track_height,
                height=track_height,
                exons=tuple(mapper.interval_to_pixels(s, e) for s, e in transcript['exons']),
                cds=tuple(mapper.interval_to_pixels(s, e) for s, e in transcript['cds']),
            )
            for i, (tid, transcript) in enumerate(pathogen['transcripts'].items())
        ]

    def _expression_track(
        self,
        kind: str,
        sites: Sequence[GenomeComponent],
        usage: Mapping[int, ExpressionSite],
        mapper: CoordinateMapper
    ) -> ExpressionTrack:
        bars: List[ExpressionBar] = []
        for site in sites:
            x = mapper.to_pixel(site['position'])
            if is_missing(x):
                continue
            observed = usage.get(int(site['position']))
            bars.append(ExpressionBar(
                name=site['name'],
                position=int(site['position']),
                x=x,
                value=_mean(observed['val']) if observed else 0.0,
                coverage=_mean(observed['cov']) if observed else 0.0,
            ))

        return ExpressionTrack(
            kind=kind,
            bars=tuple(bars),
            max_value=max((b.value for b in bars), default=0.0),
            max_coverage=max((b.coverage for b in bars), default=0.0),
        )


def _mean(values: Sequence[float]) -> float:
    """Mean ignoring NaN, 0 when nothing is usable"""
    arr = np.asarray(values, dtype=np.float64)
    arr = arr[np.isfinite(arr)]
    return float(arr.mean()) if arr.size else 0.0


def _genome_length(pathogen: PathogenModel) -> int:
    """Annotated genome end, 0 when it is missing"""
    end = pathogen['genome_end']
    return 0 if is_missing(end) else int(end)
