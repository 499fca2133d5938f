"""
Unit tests for GridLayout and GridConfig

Covers proportional sizing, padding, validation, overlays and paint order.
"""
import pytest
from chimviz.layout import Bounds, GridConfig, GridLayout, Padding


pytestmark = pytest.mark.unit


@pytest.fixture
def ragged_grid():
    """Two columns; the second split into two rows"""
    config = GridConfig([0.8, 0.2], [[1], [0.5, 0.5]])
    return GridLayout(1000, 200, config)


class TestSizing:
    """Column widths and row heights follow the normalized ratios"""

    def test_column_zero(self, ragged_grid):
        bounds = ragged_grid.get_raw_bounds(0, 0)
        assert (bounds.x, bounds.y) == (0, 0)
        assert bounds.width == pytest.approx(800)
        assert bounds.height == pytest.approx(200)

    def test_column_one_rows(self, ragged_grid):
        top = ragged_grid.get_raw_bounds(1, 0)
        bottom = ragged_grid.get_raw_bounds(1, 1)
        assert top.x == pytest.approx(800)
        assert top.width == pytest.approx(200)
        assert top.height == pytest.approx(100)
        assert bottom.y == pytest.approx(100)
        assert bottom.height == pytest.approx(100)

    def test_column_widths_sum_to_total(self):
        grid = GridLayout(1234.5, 100, GridConfig([3, 1.5, 0.7], [[1], [1], [1]]))
        assert sum(grid.column_widths) == pytest.approx(1234.5)

    def test_ratios_normalized(self):
        """Ratios 2:2 behave like 0.5:0.5"""
        grid = GridLayout(100, 100, GridConfig([2, 2], [[1, 3], [5]]))
        assert grid.get_raw_bounds(1, 0).x == pytest.approx(50)
        assert grid.get_raw_bounds(0, 1).height == pytest.approx(75)

    def test_ragged_row_counts(self, ragged_grid):
        assert ragged_grid.n_columns == 2
        assert ragged_grid.n_rows(0) == 1
        assert ragged_grid.n_rows(1) == 2
        assert len(ragged_grid) == 3


class TestPadding:
    """Padded bounds are raw bounds minus padding on each side"""

    def test_padded_bounds(self):
        padding = Padding(top=10, bottom=5, left=20, right=30)
        grid = GridLayout(1000, 200, GridConfig([1], [[1]], [[padding]]))
        assert grid.get_padded_bounds(0, 0) == Bounds(x=20, y=10, width=950, height=185)
        assert grid.get_content_origin(0, 0) == (20, 10)
        assert grid.get_origin(0, 0) == (0, 0)
        assert grid.get_cell(0, 0).bounds.content_offset == (20, 10)

    def test_oversized_padding_clamped(self):
        grid = GridLayout(100, 100, GridConfig([1], [[1]], [[Padding(left=80, right=80)]]))
        assert grid.get_padded_bounds(0, 0).width == 0

    def test_uniform(self):
        assert Padding.uniform(4) == Padding(4, 4, 4, 4)

    def test_negative_padding_rejected(self):
        with pytest.raises(ValueError):
            Padding(top=-1)


class TestValidation:
    """Invalid configurations fail at construction"""

    def test_empty_column_ratios(self):
        with pytest.raises(ValueError):
            GridConfig([], [])

    def test_row_list_count_mismatch(self):
        with pytest.raises(ValueError):
            GridConfig([1, 1], [[1]])

    def test_empty_row_list(self):
        with pytest.raises(ValueError):
            GridConfig([1], [[]])

    def test_non_positive_ratio(self):
        with pytest.raises(ValueError):
            GridConfig([1, 0], [[1], [1]])

    def test_padding_length_mismatch(self):
        with pytest.raises(ValueError):
            GridConfig([1], [[1, 1]], [[Padding()]])

    def test_padding_column_mismatch(self):
        with pytest.raises(ValueError):
            GridConfig([1, 1], [[1], [1]], [[Padding()]])

    def test_negative_size(self):
        with pytest.raises(ValueError):
            GridLayout(-1, 100, GridConfig([1], [[1]]))

    def test_out_of_range_cell(self, ragged_grid):
        with pytest.raises(IndexError):
            ragged_grid.get_cell(2, 0)
        with pytest.raises(IndexError):
            ragged_grid.get_cell(0, 1)


class TestCellData:

    def test_attach_and_retrieve(self, ragged_grid):
        ragged_grid.set_cell_data(1, 1, {'scale': 'x'})
        assert ragged_grid.get_cell_data(1, 1) == {'scale': 'x'}
        assert ragged_grid.get_cell_data(0, 0) is None


class TestOverlays:
    """Overlays span contiguous rows of one column"""

    @pytest.fixture
    def stacked(self):
        return GridLayout(1000, 400, GridConfig([1], [[1, 2, 1]]))

    def test_overlay_bounds(self, stacked):
        overlay = stacked.create_overlay(0, [1, 2])
        assert overlay.bounds.x == 0
        assert overlay.bounds.y == pytest.approx(100)
        assert overlay.bounds.width == pytest.approx(1000)
        assert overlay.bounds.height == pytest.approx(300)
        assert overlay.rows == (1, 2)
        assert overlay.interactive is False
        assert stacked.overlays == [overlay]

    def test_non_contiguous_rows(self, stacked):
        with pytest.raises(ValueError):
            stacked.create_overlay(0, [0, 2])

    def test_no_rows(self, stacked):
        with pytest.raises(ValueError):
            stacked.create_overlay(0, [])

    def test_overlay_ignores_padding(self):
        grid = GridLayout(100, 100, GridConfig([1], [[1, 1]], [[Padding.uniform(10), Padding.uniform(10)]]))
        overlay = grid.create_overlay(0, [0, 1])
        assert overlay.bounds == Bounds(x=0, y=0, width=100, height=100)


class TestPaintOrder:
    """Promotion changes paint order only"""

    def test_initial_order(self, ragged_grid):
        assert ragged_grid.paint_order == [(0, 0), (1, 0), (1, 1)]

    def test_promote(self, ragged_grid):
        before = ragged_grid.get_raw_bounds(0, 0)
        ragged_grid.promote(0, 0)
        assert ragged_grid.paint_order == [(1, 0), (1, 1), (0, 0)]
        assert ragged_grid.paint_rank(0, 0) == 2
        assert ragged_grid.get_raw_bounds(0, 0) == before

    def test_promote_unknown_cell(self, ragged_grid):
        with pytest.raises(IndexError):
            ragged_grid.promote(1, 5)

    def test_to_dict(self, ragged_grid):
        ragged_grid.create_overlay(1, [0, 1])
        data = ragged_grid.to_dict()
        assert len(data['cells']) == 3
        assert data['overlays'][0]['rows'] == [0, 1]
        assert data['paintOrder'][0] == [0, 0]
