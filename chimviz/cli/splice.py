"""Splice subcommand - splice map of the pathogen transcriptome"""

from __future__ import annotations
from pathlib import Path
import logging
from argparse import ArgumentParser, Namespace, _SubParsersAction

from ..io import read_expression, read_gtf
from ..visualizer import SplicePlotter
from . import configure_logging, require_file
from .chim import build_config

logger = logging.getLogger(__name__)


def add_parser(subparsers: _SubParsersAction) -> ArgumentParser:
    """
    Add splice subcommand parser

    Args:
        subparsers: Subparser action from main argument parser

    Returns:
        Configured ArgumentParser for splice subcommand
    """
    parser = subparsers.add_parser(
        'splice',
        help='Draw transcript models with donor and acceptor usage'
    )

    parser.add_argument('--gtf', required=True,
                        help='Pathogen annotation in GTF format')
    parser.add_argument('--expression',
                        help='Splice site usage TSV (seqid, pos, cov, sample, dp, dm, dn, ap, am, an)')
    parser.add_argument('--output', required=True,
                        help='Output image (.png, .svg or .pdf)')

    parser.add_argument('--width', type=int,
                        help='Canvas width in px (default: from preset, 1200)')
    parser.add_argument('--height', type=int,
                        help='Canvas height in px (default: from preset, 800)')
    parser.add_argument('--font-size', type=float,
                        help='Font size in px (default: from preset, 10)')
    parser.add_argument('--preset', choices=['default', 'publication', 'presentation', 'compact'],
                        default='default',
                        help='Base plot settings (default: default)')
    parser.add_argument('--dpi', type=int,
                        help='Output DPI (default: from preset)')

    parser.add_argument('--debug', action='store_true', help='Enable debug logging for troubleshooting')

    return parser  # type: ignore[no-any-return]


def run(args: Namespace) -> None:
    """
    Execute splice subcommand

    Args:
        args: Parsed command-line arguments from argparse
    """
    configure_logging(args)

    gtf_file = require_file(args.gtf, "GTF file")
    expression_file = require_file(args.expression, "Expression file") if args.expression else None
    output_file = Path(args.output)

    config = build_config(args)

    logger.info(f"Annotation: {gtf_file}")
    logger.info(f"Expression: {expression_file or 'none'}")
    logger.info(f"Output: {output_file}")

    pathogen = read_gtf(gtf_file)
    expression = read_expression(expression_file) if expression_file else None

    logger.info("Generating plot...")
    plotter = SplicePlotter(config)
    plotter.plot(pathogen=pathogen, expression=expression, output_file=str(output_file))
    logger.info(f"Plot saved: {output_file}")
