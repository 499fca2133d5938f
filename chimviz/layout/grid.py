"""
Grid layout for chimviz

Partitions a fixed canvas into a ragged matrix of padded cells.
Each column has its own list of row ratios, so columns can hold a
different number of rows. Ratios are normalized here.
"""
from __future__ import annotations
from typing import Any, Dict, Iterator, List, Sequence, Tuple
from dataclasses import dataclass, field
import logging

from .types import Bounds, CellBounds, GridConfig, OverlayBounds

logger = logging.getLogger(__name__)

CellKey = Tuple[int, int]


@dataclass
class GridCell:
    """
    A grid cell: immutable geometry plus opaque caller data

    Attributes:
        bounds: Raw and padded geometry
        data: Anything the orchestrator wants to find again later
    """
    bounds: CellBounds
    data: Any = field(default=None)

    @property
    def key(self) -> CellKey:
        return (self.bounds.column, self.bounds.row)


class GridLayout:
    """
    Proportional grid with per-cell padding

    Column widths are ratio / sum(ratios) of the total width; row heights
    are ratio / sum(column's row ratios) of the total height.

    Example:
        >>> config = GridConfig([0.8, 0.2], [[1], [0.5, 0.5]])
        >>> grid = GridLayout(1000, 200, config)
        >>> grid.get_raw_bounds(1, 1)
        Bounds(x=800.0, y=100.0, width=200.0, height=100.0)
    """

    def __init__(self, width: float, height: float, config: GridConfig) -> None:
        """
        Build every cell of the grid

        Args:
            width: Total canvas width (px)
            height: Total canvas height (px)
            config: Validated grid configuration
        """
        if width < 0 or height < 0:
            raise ValueError(f"Grid size must be non-negative, got {width}x{height}")

        self.width: float = float(width)
        self.height: float = float(height)
        self.config = config

        self._columns: List[List[GridCell]] = []
        self._paint_order: List[CellKey] = []
        self._overlays: List[OverlayBounds] = []

        self._setup_grid()
        logger.debug(f"GridLayout {self.width:.1f}x{self.height:.1f}: "
                     f"{self.n_columns} columns, rows per column {[len(c) for c in self._columns]}")

    def _setup_grid(self) -> None:
        column_total = sum(self.config.column_ratios)
        x = 0.0
        for col, (col_ratio, row_ratios, paddings) in enumerate(zip(
                self.config.column_ratios,
                self.config.row_ratios_per_column,
                self.config.cell_padding)):
            col_width = (col_ratio / column_total) * self.width
            row_total = sum(row_ratios)

            cells: List[GridCell] = []
            y = 0.0
            for row, (row_ratio, padding) in enumerate(zip(row_ratios, paddings)):
                row_height = (row_ratio / row_total) * self.height
                raw = Bounds(x=x, y=y, width=col_width, height=row_height)
                cells.append(GridCell(bounds=CellBounds(
                    column=col, row=row, raw=raw, padded=raw.inset(padding)
                )))
                self._paint_order.append((col, row))
                y += row_height

            self._columns.append(cells)
            x += col_width

    # ------------------------------------------------------------------
    # Cell access
    # ------------------------------------------------------------------

    @property
    def n_columns(self) -> int:
        return len(self._columns)

    def n_rows(self, column: int) -> int:
        """Number of rows in a column"""
        return len(self._column(column))

    @property
    def column_widths(self) -> List[float]:
        return [col[0].bounds.raw.width for col in self._columns]

    def _column(self, column: int) -> List[GridCell]:
        if not 0 <= column < len(self._columns):
            raise IndexError(f"Column {column} out of range (0-{len(self._columns) - 1})")
        return self._columns[column]

    def get_cell(self, column: int, row: int) -> GridCell:
        cells = self._column(column)
        if not 0 <= row < len(cells):
            raise IndexError(f"Row {row} out of range for column {column} (0-{len(cells) - 1})")
        return cells[row]

    def get_raw_bounds(self, column: int, row: int) -> Bounds:
        return self.get_cell(column, row).bounds.raw

    def get_padded_bounds(self, column: int, row: int) -> Bounds:
        return self.get_cell(column, row).bounds.padded

    def get_origin(self, column: int, row: int) -> Tuple[float, float]:
        """Absolute origin of the raw cell"""
        return self.get_cell(column, row).bounds.origin

    def get_content_origin(self, column: int, row: int) -> Tuple[float, float]:
        """Absolute origin of the padded content viewport"""
        return self.get_cell(column, row).bounds.padded.origin

    def set_cell_data(self, column: int, row: int, data: Any) -> None:
        self.get_cell(column, row).data = data

    def get_cell_data(self, column: int, row: int) -> Any:
        return self.get_cell(column, row).data

    def __iter__(self) -> Iterator[GridCell]:
        for cells in self._columns:
            yield from cells

    def __len__(self) -> int:
        return sum(len(cells) for cells in self._columns)

    # ------------------------------------------------------------------
    # Overlays and paint order
    # ------------------------------------------------------------------

    def create_overlay(self, column: int, rows: Sequence[int]) -> OverlayBounds:
        """
        Reserve a surface spanning a contiguous run of rows in one column

        The overlay starts at the first row's origin, is as wide as the
        column and as tall as the combined raw height of the rows.

        Args:
            column: Column index
            rows: Contiguous, ascending row indices

        Returns:
            OverlayBounds (non-interactive)
        """
        rows = tuple(rows)
        if not rows:
            raise ValueError("Overlay needs at least one row")
        if list(rows) != list(range(rows[0], rows[0] + len(rows))):
            raise ValueError(f"Overlay rows must be contiguous and ascending, got {rows}")

        cells = [self.get_cell(column, row) for row in rows]
        first = cells[0].bounds.raw
        overlay = OverlayBounds(
            column=column,
            rows=rows,
            bounds=Bounds(
                x=first.x,
                y=first.y,
                width=first.width,
                height=sum(c.bounds.raw.height for c in cells),
            ),
        )
        self._overlays.append(overlay)
        return overlay

    @property
    def overlays(self) -> List[OverlayBounds]:
        return list(self._overlays)

    def promote(self, column: int, row: int) -> None:
        """Move a cell to the top of the paint order; geometry is unchanged"""
        key = (column, row)
        self.get_cell(column, row)
        self._paint_order.remove(key)
        self._paint_order.append(key)

    @property
    def paint_order(self) -> List[CellKey]:
        """Cell keys from bottom-most to top-most"""
        return list(self._paint_order)

    def paint_rank(self, column: int, row: int) -> int:
        """Position of a cell in the paint order (0 = painted first)"""
        return self._paint_order.index((column, row))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize geometry for downstream consumers"""
        return {
            "width": self.width,
            "height": self.height,
            "cells": [cell.bounds.to_dict() for cell in self],
            "paintOrder": [list(k) for k in self._paint_order],
            "overlays": [
                {"column": o.column, "rows": list(o.rows), **o.bounds.to_dict()}
                for o in self._overlays
            ],
        }
