"""
Unit tests for LayoutEngine

Checks the composed chimeric and splice map layouts without drawing.
"""
import pytest
from chimviz.config import PlotConfig
from chimviz.layout import LayoutEngine, classify_site
from chimviz.layout.engine import split_distance
from chimviz.types import Integration


pytestmark = pytest.mark.unit


def empty_pathogen(genome_end=9000):
    return {'transcripts': {}, 'genome_end': genome_end, 'genome_components': [], 'genes': {}}


@pytest.fixture
def gene_a_layout():
    """One sequence, one labelled gene in its middle"""
    engine = LayoutEngine(PlotConfig(gene_count_threshold=300))
    return engine.chimeric_layout(
        densities={'chr1': [1, 2, 3]},
        lengths={'chr1': 300},
        sites={'chr1': [{'name': 'geneA', 'position': ('chr1', 150), 'count': 500}]},
        pathogen=empty_pathogen(),
        integrations=[],
    )


class TestClassifySite:

    def test_named_above_threshold_is_label(self):
        assert classify_site('geneA', 300, 300) == 'label'

    def test_named_below_threshold_is_marker(self):
        assert classify_site('geneA', 299, 300) == 'genic'

    def test_intergenic(self):
        assert classify_site('-', 300, 300) == 'intergenic'
        assert classify_site('-', 301, 300) == 'intergenic_high'


class TestChimericLayout:
    """Host panel and section heights"""

    def test_label_at_true_position(self, gene_a_layout):
        (sequence,) = gene_a_layout.host
        (mark,) = sequence.sites
        assert mark.kind == 'label'
        assert mark.x == pytest.approx(0.5 * sequence.frame.width)
        assert mark.label_x == pytest.approx(mark.x)

    def test_frame_fills_host_panel(self, gene_a_layout):
        frame = gene_a_layout.frames['chr1']
        host_width = gene_a_layout.grid.get_padded_bounds(0, 0).width
        assert host_width == pytest.approx(1200 * 0.85)
        assert frame.width == pytest.approx(host_width * 0.995)

    def test_seqid_lookup(self, gene_a_layout):
        frame = gene_a_layout.frames['chr1']
        table = gene_a_layout.get_seqids()
        assert list(table) == ['chr1']
        assert table['chr1'] == {'x': frame.x, 'y': frame.y, 'width': frame.width,
                                 'height': frame.height, 'length': 300}

    def test_section_heights(self, gene_a_layout):
        # labels 5 chars * 10px * 8, connector and idiogram bands 30px each
        grid = gene_a_layout.grid
        assert grid.get_raw_bounds(0, 0).height == pytest.approx(460)
        assert grid.get_raw_bounds(0, 1).height == pytest.approx(360)
        assert grid.get_raw_bounds(0, 2).height == pytest.approx(180)
        assert gene_a_layout.height == pytest.approx(1000)

    def test_bands(self, gene_a_layout):
        (sequence,) = gene_a_layout.host
        assert sequence.label_band == pytest.approx((0, 400))
        assert sequence.line_band == pytest.approx((400, 30))
        assert sequence.idiogram_band == pytest.approx((430, 30))

    def test_no_labels_no_label_band(self):
        layout = LayoutEngine(PlotConfig(gene_count_threshold=1000)).chimeric_layout(
            {'chr1': [1]}, {'chr1': 300},
            {'chr1': [{'name': 'geneA', 'position': ('chr1', 150), 'count': 5}]},
            empty_pathogen(), [],
        )
        assert layout.host[0].sites[0].kind == 'genic'
        assert layout.host[0].label_band[1] == 0

    def test_overlapping_labels_spread(self):
        sites = {'chr1': [
            {'name': 'geneA', 'position': ('chr1', 150), 'count': 10},
            {'name': 'geneB', 'position': ('chr1', 151), 'count': 10},
        ]}
        layout = LayoutEngine().chimeric_layout({'chr1': [1]}, {'chr1': 300}, sites, empty_pathogen(), [])
        a, b = layout.host[0].sites
        assert b.label.spread[0] - a.label.spread[1] >= 10 - 1e-9
        assert a.label.original_midpoint == pytest.approx(a.x)

    def test_sites_on_unknown_sequence_dropped(self):
        sites = {'chrUn': [{'name': 'geneA', 'position': ('chrUn', 150), 'count': 10}]}
        layout = LayoutEngine().chimeric_layout({'chr1': [1]}, {'chr1': 300}, sites, empty_pathogen(), [])
        assert layout.host[0].sites == ()
        assert layout.layout_stats['n_sites'] == 0


class TestConnections:
    """Curves from idiogram centres to the pathogen panel"""

    def _layout(self, integrations):
        return LayoutEngine(PlotConfig(gene_count_threshold=300)).chimeric_layout(
            {'chr1': [1, 2, 3]}, {'chr1': 300},
            {'chr1': [{'name': 'geneA', 'position': ('chr1', 150), 'count': 500}]},
            empty_pathogen(), integrations,
        )

    def test_connection_geometry(self):
        layout = self._layout([Integration('chr1', 'HIV', 150, 4500, 250)])
        (connection,) = layout.connections
        frame = layout.frames['chr1']
        assert connection.host_x == pytest.approx(frame.to_pixel(150))
        assert connection.path_x == pytest.approx(layout.pathogen.width / 2)
        assert connection.opacity == pytest.approx(0.5)
        assert connection.color_value == pytest.approx(0.5)
        # starts at the idiogram centre, ends at the top of the pathogen panel
        assert connection.points[0] == pytest.approx((connection.host_x, 445))
        assert connection.points[-1] == pytest.approx((connection.path_x, 820))
        assert layout.connection_overlay.rows == (0, 1)

    def test_opacity_clamped(self):
        layout = self._layout([Integration('chr1', 'HIV', 150, 4500, 5000)])
        assert layout.connections[0].opacity == 1.0

    def test_unusable_integrations_dropped(self):
        layout = self._layout([
            Integration('chrUn', 'HIV', 150, 4500, 10),
            Integration('chr1', 'HIV', 150, float('nan'), 10),
            Integration('chr1', 'HIV', 100, 900, 10),
        ])
        assert layout.n_connections == 1
        assert layout.layout_stats['n_integrations_dropped'] == 2


def test_split_distance():
    points = split_distance((0, 0), (60, 120))
    assert points[0] == (0, 0)
    assert points[-1] == (60, 120)
    assert points[1] == pytest.approx((0, 24))
    assert points[4] == pytest.approx((60, 100))


class TestPathogenLayout:

    def test_bands(self, pathogen_model):
        layout = LayoutEngine().pathogen_layout(pathogen_model, 900, 100)
        assert layout.orf_band == pytest.approx((55, 45))
        assert layout.genome_band == pytest.approx((35, 10))
        assert layout.da_band == pytest.approx((0, 45))

    def test_donor_acceptor_labels(self, pathogen_model):
        layout = LayoutEngine().pathogen_layout(pathogen_model, 900, 100)
        marks = layout.donor_acceptors
        assert [m.name for m in marks] == ['SD0', 'SA0', 'SA1', 'SA2']
        assert [m.x for m in marks] == pytest.approx([50, 100, 140, 500])
        assert not marks[0].is_acceptor
        assert marks[1].is_acceptor
        # labels keep the separator and remember their true positions
        assert marks[2].label.spread[0] - marks[1].label.spread[1] >= 20 - 1e-9
        assert marks[2].label.original_midpoint == pytest.approx(140)

    def test_orfs_packed(self, pathogen_model):
        layout = LayoutEngine().pathogen_layout(pathogen_model, 900, 100)
        assert [(orf.key, orf.row) for orf in layout.orfs] == [('t1', 0), ('t4', 1), ('t2', 0)]
        (first, second) = layout.orfs[0].segments
        assert first == pytest.approx((30, 50))
        assert second == pytest.approx((100, 150))
        assert layout.orf_names == {'t1': 'gag', 't2': 'env', 't4': 'nef'}
        assert layout.n_orf_rows == 2
        assert layout.orf_row_height == pytest.approx(22.5)

    def test_ltr(self, pathogen_model):
        layout = LayoutEngine().pathogen_layout(pathogen_model, 900, 100)
        ((start, end, name),) = layout.ltrs
        assert (start, end) == pytest.approx((0.1, 30))
        assert name == '5LTR'

    def test_zero_length_genome(self, pathogen_model):
        pathogen_model['genome_end'] = 0
        layout = LayoutEngine().pathogen_layout(pathogen_model, 900, 100)
        assert layout.orfs == ()
        assert layout.donor_acceptors == ()
        assert layout.n_orf_rows == 0
        assert layout.orf_row_height == 0

    def test_missing_genome_end(self, pathogen_model):
        pathogen_model['genome_end'] = float('nan')
        layout = LayoutEngine().pathogen_layout(pathogen_model, 900, 100)
        assert layout.genome_length == 0
        assert layout.orfs == ()
        assert layout.donor_acceptors == ()


class TestSpliceLayout:

    @pytest.fixture
    def expression(self):
        return {
            'donors': {500: {'pos': 500, 'cov': [100.0, 50.0], 'val': [0.5, float('nan')]}},
            'acceptors': {1000: {'pos': 1000, 'cov': [80.0], 'val': [0.25]}},
        }

    def test_grid(self, pathogen_model):
        layout = LayoutEngine(PlotConfig(width=1000, height=800)).splice_layout(pathogen_model)
        grid = layout.grid
        assert grid.n_columns == 3
        assert grid.get_raw_bounds(0, 0).width == pytest.approx(800)
        assert grid.get_padded_bounds(0, 0).origin == pytest.approx((20, 20))
        assert grid.paint_order[-2:] == [(0, 0), (0, 3)]
        assert layout.donor_overlay.rows == (0, 1, 2)
        assert layout.acceptor_overlay.rows == (0, 1, 2, 3, 4)
        assert layout.donor_overlay.bounds.height == pytest.approx(460)

    def test_transcripts(self, pathogen_model):
        layout = LayoutEngine(PlotConfig(width=1000, height=800)).splice_layout(pathogen_model)
        assert [t.transcript_id for t in layout.transcripts] == ['t1', 't2', 't3', 't4']
        heights = {t.height for t in layout.transcripts}
        assert len(heights) == 1
        assert layout.transcripts[1].y == pytest.approx(layout.transcripts[0].height)

    def test_expression_means(self, pathogen_model, expression):
        layout = LayoutEngine().splice_layout(pathogen_model, expression)
        (donor,) = layout.donor_expression.bars
        assert donor.name == 'SD0'
        assert donor.value == pytest.approx(0.5)
        assert donor.coverage == pytest.approx(75)
        acceptors = {bar.name: bar.value for bar in layout.acceptor_expression.bars}
        assert acceptors == pytest.approx({'SA0': 0.25, 'SA1': 0.0, 'SA2': 0.0})
        assert layout.acceptor_expression.max_value == pytest.approx(0.25)
        assert len(layout.acceptor_guides) == 3

    def test_without_expression(self, pathogen_model):
        layout = LayoutEngine().splice_layout(pathogen_model)
        assert all(bar.value == 0 for bar in layout.donor_expression.bars)
        assert layout.donor_expression.max_value == 0

    def test_missing_genome_end(self):
        layout = LayoutEngine().splice_layout(empty_pathogen(genome_end=float('nan')))
        assert layout.pathogen.genome_length == 0
        assert layout.transcripts == []
        assert layout.donor_expression.bars == ()
        assert layout.acceptor_expression.bars == ()
