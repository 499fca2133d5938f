"""
Drawing surfaces for grid layouts

Binds a matplotlib Figure to a GridLayout. Every cell gets an Axes that
covers its padded viewport and uses content-local pixel coordinates with
the origin at the top-left corner and y growing downwards, so layout
results can be drawn without any further transformation.
"""

from __future__ import annotations
from typing import Dict, List, Optional, Sequence, Tuple
import logging

import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.figure import Figure

from .layout.grid import GridLayout
from .layout.types import Bounds, OverlayBounds

logger = logging.getLogger(__name__)

PIXELS_PER_INCH = 100
"""Figure resolution used to map layout pixels to inches"""


class GridCanvas:
    """
    Matplotlib surfaces for the cells and overlays of a GridLayout

    Cell Axes are stacked in the layout's paint order; overlays always sit
    above every cell and never take part in navigation.

    Example:
        >>> canvas = GridCanvas(grid)
        >>> ax = canvas.get_cell_surface(0, 0)
        >>> ax.plot([0, 10], [0, 10])
    """

    def __init__(self, layout: GridLayout, figure: Optional[Figure] = None) -> None:
        """
        Initialize GridCanvas

        Args:
            layout: Grid geometry to draw on
            figure: Figure to draw into (a new one sized to the layout if None)
        """
        self.layout = layout
        self.figure: Figure = figure or plt.figure(
            figsize=(max(layout.width, 1) / PIXELS_PER_INCH, max(layout.height, 1) / PIXELS_PER_INCH),
            dpi=PIXELS_PER_INCH,
        )
        self._surfaces: Dict[Tuple[int, int], Axes] = {}
        self._overlay_surfaces: List[Axes] = []

    def font_points(self, pixels: float) -> float:
        """Convert a font size in canvas pixels to points"""
        return pixels * 72 / PIXELS_PER_INCH

    def _add_axes(self, bounds: Bounds) -> Axes:
        width = self.layout.width or 1.0
        height = self.layout.height or 1.0
        rect = (
            bounds.x / width,
            1 - (bounds.y + bounds.height) / height,
            bounds.width / width,
            bounds.height / height,
        )
        ax = self.figure.add_axes(rect)
        ax.set_xlim(0, bounds.width or 1.0)
        ax.set_ylim(bounds.height or 1.0, 0)
        ax.set_axis_off()
        return ax

    def get_cell_surface(self, column: int, row: int) -> Axes:
        """
        Axes covering a cell's padded viewport

        Created on first access; later calls return the same Axes.

        Args:
            column: Column index
            row: Row index

        Returns:
            Axes in content-local pixel coordinates
        """
        key = (column, row)
        if key not in self._surfaces:
            ax = self._add_axes(self.layout.get_padded_bounds(column, row))
            ax.set_zorder(self.layout.paint_rank(column, row))
            self._surfaces[key] = ax
        return self._surfaces[key]

    def overlay_surface(self, overlay: OverlayBounds) -> Axes:
        """
        Transparent Axes for an overlay reserved on the layout

        Args:
            overlay: Overlay returned by GridLayout.create_overlay

        Returns:
            Axes in overlay-local pixel coordinates, above every cell
        """
        ax = self._add_axes(overlay.bounds)
        ax.patch.set_alpha(0.0)
        ax.set_navigate(False)
        ax.set_zorder(len(self.layout) + 1 + len(self._overlay_surfaces))
        self._overlay_surfaces.append(ax)
        return ax

    def create_overlay(self, column: int, rows: Sequence[int]) -> Axes:
        """
        Reserve an overlay on the layout and return its surface

        Args:
            column: Column index
            rows: Contiguous, ascending row indices

        Returns:
            Transparent, non-navigable Axes spanning the rows
        """
        return self.overlay_surface(self.layout.create_overlay(column, rows))

    def promote(self, column: int, row: int) -> None:
        """Paint a cell above the other cells; overlays stay on top"""
        self.layout.promote(column, row)
        for (col, r), ax in self._surfaces.items():
            ax.set_zorder(self.layout.paint_rank(col, r))

    @property
    def surfaces(self) -> Dict[Tuple[int, int], Axes]:
        return dict(self._surfaces)

    @property
    def overlay_surfaces(self) -> List[Axes]:
        return list(self._overlay_surfaces)

    def save(self, output_file: str, dpi: int) -> None:
        """Save the figure at the given DPI, format from the file extension"""
        self.figure.savefig(output_file, dpi=dpi, facecolor='white', edgecolor='none')
        logger.info(f"Plot saved to {output_file}")
