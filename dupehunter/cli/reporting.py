"""
Report formatting and display for the CLI interface.

Provides functions to print ingestion summaries and duplicate detection
results in human-readable or JSON form.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from ..database import StoreStats
from ..models import DuplicateReport, IngestStats, IngestStatus


def _print_section_header(title: str) -> None:
    """Print a section header with divider lines."""
    print("\n" + "-" * 70)
    print(title)
    print("-" * 70)


def print_ingest_summary(stats: IngestStats, logger: logging.Logger) -> None:
    """
    Log the "processed N" summary for an ingestion run.

    Args:
        stats: Tallies returned by the coordinator
        logger: Logger for output
    """
    counts = stats.counts
    logger.info(
        f"Processed {stats.processed:,} files: "
        f"{counts[IngestStatus.INGESTED]:,} ingested, "
        f"{counts[IngestStatus.UNCHANGED]:,} unchanged, "
        f"{counts[IngestStatus.SKIPPED]:,} skipped, "
        f"{counts[IngestStatus.FAILED]:,} failed"
    )


def print_duplicate_report(
    report: DuplicateReport,
    logger: logging.Logger,
    store_stats: Optional[StoreStats] = None,
) -> None:
    """
    Print the duplicate pairs and flagged paths.

    Args:
        report: Result of the detection pass
        logger: Logger for the summary line
        store_stats: Optional store statistics for the footer
    """
    duplicate_pairs = report.duplicate_pairs

    print("\n" + "=" * 70)
    print("DUPLICATE REPORT")
    print("=" * 70)

    if not duplicate_pairs:
        print(f"\nNo duplicates found among {report.records_loaded:,} stored images "
              f"(threshold {report.threshold}).")
    else:
        _print_section_header(f"DUPLICATE PAIRS ({len(duplicate_pairs):,})")
        for pair in duplicate_pairs:
            print(f"  [{pair.distance:>2}] {pair.a}")
            print(f"       {pair.b}")

        _print_section_header(f"FLAGGED PATHS ({len(report.flagged):,})")
        for path in sorted(report.flagged):
            print(f"  {path}")

    print("\n" + "=" * 70)
    print(f"Compared:  {len(report.pairs):,} pairs across {report.records_loaded:,} images")
    print(f"Flagged:   {len(report.flagged):,} paths")
    if store_stats is not None:
        print(f"Store:     {store_stats.total_keys:,} records ({store_stats.db_size_formatted})")
    print("=" * 70)

    logger.info(f"Found {len(duplicate_pairs):,} duplicate pairs (threshold={report.threshold})")


def print_json_report(report: DuplicateReport, stats: Optional[IngestStats] = None) -> None:
    """Print the report (and ingestion tallies) as a JSON document."""
    data = report.to_dict()
    if stats is not None:
        data['ingest'] = stats.to_dict()
    print(json.dumps(data, indent=2))


__all__ = [
    'print_ingest_summary',
    'print_duplicate_report',
    'print_json_report',
]
