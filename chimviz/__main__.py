"""
chimviz CLI

Command-line interface with one subcommand per diagram.
"""

import argparse
import sys
from .cli import chim, splice


def main():
    parser = argparse.ArgumentParser(
        prog='chimviz',
        description='chimviz: Scaled diagrams of chimeric junctions and splice maps'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Add subcommand parsers
    chim.add_parser(subparsers)
    splice.add_parser(subparsers)

    # Parse arguments
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Execute the appropriate subcommand
    if args.command == 'chim':
        chim.run(args)
    elif args.command == 'splice':
        splice.run(args)


if __name__ == "__main__":
    main()
