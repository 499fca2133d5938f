"""
Type definitions for chimviz

Records produced by the parsing layer and consumed by the layout engine.
"""

from __future__ import annotations
from typing import TypedDict, Literal, List, Dict, Union, Tuple, NamedTuple
from pathlib import Path

# Type aliases
PathLike = Union[str, Path]
"""File path as string or Path object"""

ComponentType = Literal['ltr', 'da']
"""Pathogen genome component: long terminal repeat or donor/acceptor site"""

MergePolicy = Literal['first_wins', 'sum_counts']
"""How GeneClusterer treats the count of a dropped duplicate"""

Segment = Tuple[int, int]
"""Closed genomic range [start, end] (bp)"""


# Structured data types

class GeneSite(TypedDict):
    """
    Annotated site on a host sequence

    position is (seqid, coordinate); name is '-' for intergenic sites.
    """
    name: str
    position: Tuple[str, float]
    count: float


class Transcript(TypedDict):
    """Pathogen transcript model from a GTF file"""
    exons: List[Segment]
    cds: List[Segment]
    gene_name: str


class GenomeComponent(TypedDict):
    """
    Annotated pathogen genome feature

    'ltr' components carry a (start, end) position, 'da' components a
    single coordinate and a name of the form SD<i> (donor) or SA<i> (acceptor).
    """
    type: ComponentType
    position: Union[int, Segment]
    name: str


class PathogenModel(TypedDict):
    """Parsed pathogen annotation"""
    transcripts: Dict[str, Transcript]
    genome_end: int
    genome_components: List[GenomeComponent]
    genes: Dict[str, List[str]]


class ExpressionSite(TypedDict):
    """Per-sample observations at one pathogen position"""
    pos: int
    cov: List[float]
    val: List[float]


class ExpressionProfile(TypedDict):
    """Donor and acceptor usage keyed by pathogen position"""
    donors: Dict[int, ExpressionSite]
    acceptors: Dict[int, ExpressionSite]


class Integration(NamedTuple):
    """Host/pathogen chimeric junction"""
    host_seqid: str
    path_seqid: str
    host_pos: float
    path_pos: float
    count: float


SiteTable = Dict[str, List[GeneSite]]
"""Clustered sites keyed by host seqid"""
