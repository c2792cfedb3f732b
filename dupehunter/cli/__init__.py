"""
Command-line interface: ingest the given image paths into the fingerprint
store, then report near-duplicates across everything stored.
"""

from __future__ import annotations

from typing import Optional

from .orchestrator import CLIOrchestrator, setup_logging
from .arg_parser import create_parser, parse_arguments, read_paths, resolve_input_paths
from .reporting import print_duplicate_report, print_ingest_summary, print_json_report


def main(argv: Optional[list[str]] = None) -> int:
    """Run the CLI and return its exit status (0 ok, 1 fatal error)."""
    return CLIOrchestrator(argv).run()


__all__ = [
    'main',
    'CLIOrchestrator',
    'setup_logging',
    'create_parser',
    'parse_arguments',
    'read_paths',
    'resolve_input_paths',
    'print_duplicate_report',
    'print_ingest_summary',
    'print_json_report',
]
