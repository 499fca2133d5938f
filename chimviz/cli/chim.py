"""Chim subcommand - host/pathogen chimeric junction diagram"""

from __future__ import annotations
from pathlib import Path
import logging
from argparse import ArgumentParser, Namespace, _SubParsersAction

from ..clustering import MERGE_POLICIES
from ..config import ClusteringConfig, PlotConfig
from ..io import read_density, read_gtf, read_integrations, read_lengths
from ..visualizer import ChimericPlotter
from . import configure_logging, require_file

logger = logging.getLogger(__name__)


def add_parser(subparsers: _SubParsersAction) -> ArgumentParser:
    """
    Add chim subcommand parser

    Args:
        subparsers: Subparser action from main argument parser

    Returns:
        Configured ArgumentParser for chim subcommand
    """
    parser = subparsers.add_parser(
        'chim',
        help='Draw host idiograms, pathogen genome and the junctions between them'
    )

    # Inputs
    parser.add_argument('--density', required=True,
                        help='Host feature density TSV (seqid, start, end, density)')
    lengths = parser.add_mutually_exclusive_group(required=True)
    lengths.add_argument('--fai',
                         help='FASTA index of the host genome (seqid, length, ...)')
    lengths.add_argument('--fasta',
                         help='Host genome FASTA, lengths are measured from the sequences')
    parser.add_argument('--integrations', required=True,
                        help='Junction TSV (host seqid, pathogen seqid, host pos, pathogen pos, count, host gene, pathogen gene)')
    parser.add_argument('--gtf', required=True,
                        help='Pathogen annotation in GTF format')
    parser.add_argument('--output', required=True,
                        help='Output image (.png, .svg or .pdf)')

    # Optional
    parser.add_argument('--width', type=int,
                        help='Canvas width in px, the height follows from it (default: from preset, 1200)')
    parser.add_argument('--font-size', type=float,
                        help='Font size in px (default: from preset, 10)')
    parser.add_argument('--gene-count', type=float, default=0,
                        help='Sites below this junction count are drawn as markers (default: 0)')
    parser.add_argument('--tolerance', type=int, default=100000,
                        help='Distance within which sites of the same gene are merged, bp (default: 100000)')
    parser.add_argument('--merge-policy', choices=MERGE_POLICIES, default='first_wins',
                        help='Keep the first site of a merged gene as is, or add up the counts (default: first_wins)')
    parser.add_argument('--preset', choices=['default', 'publication', 'presentation', 'compact'],
                        default='default',
                        help='Base plot settings (default: default)')
    parser.add_argument('--dpi', type=int,
                        help='Output DPI (default: from preset)')

    # Debug flag
    parser.add_argument('--debug', action='store_true', help='Enable debug logging for troubleshooting')

    return parser  # type: ignore[no-any-return]


def build_config(args: Namespace) -> PlotConfig:
    """Plot configuration from the preset and command-line overrides"""
    preset = getattr(args, 'preset', 'default')
    config = PlotConfig() if preset == 'default' else getattr(PlotConfig, preset)()
    if getattr(args, 'width', None):
        config.width = args.width
    if getattr(args, 'height', None):
        config.height = args.height
    if getattr(args, 'font_size', None):
        config.font_size = args.font_size
    if getattr(args, 'dpi', None):
        config.dpi = args.dpi
    if hasattr(args, 'gene_count'):
        config.gene_count_threshold = args.gene_count
    if hasattr(args, 'tolerance'):
        config.clustering = ClusteringConfig(tolerance=args.tolerance, merge_policy=args.merge_policy)
    return config


def run(args: Namespace) -> None:
    """
    Execute chim subcommand

    Args:
        args: Parsed command-line arguments from argparse
    """
    configure_logging(args)

    # Check inputs exist before reading anything
    density_file = require_file(args.density, "Density file")
    length_file = require_file(args.fai or args.fasta, "FASTA index" if args.fai else "FASTA file")
    integrations_file = require_file(args.integrations, "Integrations file")
    gtf_file = require_file(args.gtf, "GTF file")
    output_file = Path(args.output)

    config = build_config(args)

    logger.info(f"Density: {density_file}")
    logger.info(f"Lengths: {length_file}")
    logger.info(f"Integrations: {integrations_file}")
    logger.info(f"Annotation: {gtf_file}")
    logger.info(f"Output: {output_file}")
    logger.info(f"Gene count threshold: {config.gene_count_threshold}, "
                f"tolerance: {config.clustering.tolerance}bp ({config.clustering.merge_policy})")

    densities = read_density(density_file)
    lengths = read_lengths(length_file)
    integrations, sites = read_integrations(integrations_file, config.clustering)
    pathogen = read_gtf(gtf_file)

    logger.info("Generating plot...")
    plotter = ChimericPlotter(config)
    plotter.plot(
        densities=densities,
        lengths=lengths,
        sites=sites,
        pathogen=pathogen,
        integrations=integrations,
        output_file=str(output_file),
    )
    logger.info(f"Plot saved: {output_file}")
