"""Command-line subcommands for chimviz"""

from __future__ import annotations
from argparse import Namespace
from pathlib import Path
from typing import Optional
import logging


def configure_logging(args: Namespace) -> None:
    """
    Configure logging for a subcommand run

    Args:
        args: Parsed arguments; honours args.debug
    """
    debug = getattr(args, "debug", False)
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        force=True
    )

    # Silence very noisy third-party loggers (matplotlib font discovery etc.)
    for noisy in ("matplotlib", "matplotlib.font_manager", "PIL", "PIL.Image", "fontTools"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger("chimviz").setLevel(logging.DEBUG if debug else logging.INFO)


def require_file(path: Optional[str], what: str) -> Path:
    """
    Check that an input file exists before any work is done

    Args:
        path: Path given on the command line
        what: Description used in the error message

    Returns:
        The path as a Path object

    Raises:
        FileNotFoundError: If the file does not exist
    """
    if path is None or not Path(path).exists():
        raise FileNotFoundError(f"{what} not found: {path}")
    return Path(path)
