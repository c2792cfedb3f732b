"""
Command-line options and input path resolution.

Defaults for the tunable options come from the user configuration.
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional, TextIO

from ..user_config import get_user_config


def create_parser() -> argparse.ArgumentParser:
    """
    Build the dupehunter argument parser.

    Defaults for the distance threshold, worker count and data directory
    come from the user configuration (environment or config file).

    Returns:
        ArgumentParser for the ingest-and-report command
    """
    config = get_user_config()

    parser = argparse.ArgumentParser(
        prog='dupehunter',
        description='Fingerprint images and report near-duplicates',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s ~/Pictures/*.jpg
      Ingest the given files, then report duplicates across the whole store

  find ~/Pictures -name '*.png' | %(prog)s -
      Read newline-delimited paths from standard input

  %(prog)s -d 5 photo1.jpg photo2.jpg
      Stricter matching (distance below 5)

  %(prog)s
      Report duplicates among already stored fingerprints

Files are never modified; unchanged files (same size and mtime) are skipped.
        """
    )

    parser.add_argument(
        'paths',
        nargs='*',
        metavar='PATH',
        help="Image files to ingest, or '-' to read paths from stdin"
    )

    parser.add_argument(
        '-d', '--distance',
        type=int,
        default=config.default_distance,
        help=f'Duplicate distance threshold (lower=stricter). Default: {config.default_distance}'
    )

    parser.add_argument(
        '-w', '--workers',
        type=int,
        default=config.default_workers,
        help=f'Number of concurrent ingestion workers. Default: {config.default_workers}'
    )

    parser.add_argument(
        '--db-dir',
        default=config.data_dir,
        help=f'Directory holding the fingerprint store. Default: {config.data_dir}'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Verbose output'
    )

    parser.add_argument(
        '--no-progress',
        action='store_true',
        help='Disable progress bars (useful for piping output)'
    )

    parser.add_argument(
        '--json',
        action='store_true',
        help='Print the duplicate report as JSON'
    )

    return parser


def parse_arguments(argv=None) -> argparse.Namespace:
    """
    Parse the command line; exits with status 2 on malformed options.

    Args:
        argv: Arguments without the program name (default: sys.argv[1:])

    Returns:
        argparse.Namespace with paths, distance, workers, db_dir, verbose,
        no_progress and json

    Examples:
        >>> args = parse_arguments(['a.jpg', '-d', '5'])
        >>> args.distance
        5
    """
    parser = create_parser()
    return parser.parse_args(argv)


def read_paths(stream: TextIO) -> list[str]:
    """Read newline-delimited paths, ignoring blank lines."""
    return [line.rstrip('\r\n') for line in stream if line.strip()]


def resolve_input_paths(args: argparse.Namespace, stdin: Optional[TextIO] = None) -> list[str]:
    """
    Get the paths to ingest.

    A single '-' positional means: read paths from standard input.
    """
    if args.paths == ['-']:
        return read_paths(stdin if stdin is not None else sys.stdin)
    return list(args.paths)


__all__ = [
    'create_parser',
    'parse_arguments',
    'read_paths',
    'resolve_input_paths',
]
