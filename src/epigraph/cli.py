"""
Command-line interface
"""

from __future__ import annotations

import argparse
import multiprocessing
import sys
from collections.abc import Sequence
from pathlib import Path

from loguru import logger

from epigraph.exceptions import MalformedInputError
from epigraph.pipeline import SnapshotPipeline


def positive_int(value: str) -> int:
    """
    Parse a strictly positive integer from the command line
    """
    try:
        res = int(value)
    except ValueError as exc:
        msg = f"{value!r} is not an integer"
        raise argparse.ArgumentTypeError(msg) from exc

    if res < 1:
        msg = f"must be at least 1, received {res}"
        raise argparse.ArgumentTypeError(msg)

    return res


def get_parser() -> argparse.ArgumentParser:
    """
    Get the parser for the command-line arguments
    """
    parser = argparse.ArgumentParser(
        prog="epigraph",
        description=(
            "Aggregate county-level observations "
            "and write one county/state graph per date"
        ),
    )
    parser.add_argument(
        "input", type=Path, help="JSON file containing county-level observations"
    )
    parser.add_argument(
        "output_dir", type=Path, help="Directory in which to write the snapshots"
    )
    parser.add_argument(
        "--shards",
        type=positive_int,
        default=1,
        help="Number of shards to split the observations into (default: %(default)s)",
    )
    processes = parser.add_mutually_exclusive_group()
    processes.add_argument(
        "--processes",
        type=positive_int,
        default=multiprocessing.cpu_count(),
        help="Number of processes to use (default: %(default)s)",
    )
    processes.add_argument(
        "--serial",
        action="store_true",
        help="Run everything in the main process",
    )
    parser.add_argument(
        "--no-progress", action="store_true", help="Don't show progress bars"
    )
    parser.add_argument(
        "--no-checks",
        action="store_true",
        help="Don't check the graphs' internal consistency",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Level at which to log (default: %(default)s)",
    )

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """
    Run the command-line interface

    Parameters
    ----------
    argv
        Arguments to parse.

        If not supplied, the arguments are taken from `sys.argv`.

    Returns
    -------
    :
        Exit code
    """
    args = get_parser().parse_args(argv)

    logger.enable("epigraph")
    logger.remove()
    logger.add(sys.stderr, level=args.log_level.upper())

    pipeline = SnapshotPipeline(
        n_shards=args.shards,
        n_processes=None if args.serial else args.processes,
        progress=not args.no_progress,
        run_checks=not args.no_checks,
    )

    # SnapshotWriteError is an OSError, as is failing to read the input
    try:
        written = pipeline.run(args.input, args.output_dir)
    except (MalformedInputError, OSError) as exc:
        logger.error(str(exc))
        return 1

    logger.info("Wrote {} snapshots to {}", len(written), args.output_dir)

    return 0


if __name__ == "__main__":
    sys.exit(main())
