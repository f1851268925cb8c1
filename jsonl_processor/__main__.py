#!/usr/bin/env python3
"""
Command-line interface for summarising a JSONL tree export.

Reads a line-delimited JSON tree export (gzip-compressed when the file name
ends in .gz) and prints metadata and node statistics.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .exceptions import JsonlProcessorError
from .logging_config import configure_logging
from .pipeline import analyze

logger = logging.getLogger("jsonl_processor")

PROG = "jsonl_processor"


def setup_argument_parser() -> argparse.ArgumentParser:
    """
    Configure and return the argument parser.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog=PROG,
        usage=f"{PROG} <path_to_jsonl_file>",
        description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    parser.add_argument(
        "input",
        nargs="?",
        help="Path to the .jsonl or .jsonl.gz tree export",
        type=Path,
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = setup_argument_parser()
    # Trailing arguments and unknown options are ignored
    args, _ = parser.parse_known_args(argv)

    if args.input is None:
        parser.print_usage(sys.stdout)
        return 1

    configure_logging()
    try:
        analyze(args.input)
    except (JsonlProcessorError, OSError) as e:
        sys.stdout.flush()
        logger.error(f"[ERROR] Failed to process {args.input}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
