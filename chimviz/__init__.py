"""chimviz: Scaled diagrams of chimeric junctions and splice maps"""

from .config import ClusteringConfig, LayoutConfig, PlotConfig
from .clustering import GeneClusterer
from .layout import LayoutEngine
from . import utils
from .visualizer import ChimericPlotter, SplicePlotter

__version__ = "0.1.0"
__all__ = ["ClusteringConfig", "LayoutConfig", "PlotConfig", "GeneClusterer", "LayoutEngine", "utils",
           "ChimericPlotter", "SplicePlotter"]
