"""
CLI workflow orchestration for dupehunter.

Provides the CLIOrchestrator class that coordinates the whole run: argument
parsing, store and worker pool construction, concurrent ingestion, the
duplicate detection pass, reporting and the final flush.
"""

from __future__ import annotations

import logging
from typing import Optional, TextIO

from ..config import NAMESPACE
from ..database import FingerprintStore, StoreError, open_store
from ..models import DuplicateReport, IngestStats
from ..scanner import (
    BufferPool,
    DetectionError,
    IngestCoordinator,
    PoolSubmitError,
    PoolUnavailableError,
    WorkerPool,
    find_duplicates,
)
from .arg_parser import parse_arguments, resolve_input_paths
from .reporting import print_duplicate_report, print_ingest_summary, print_json_report


def setup_logging(verbose: bool = False) -> logging.Logger:
    """
    Configure logging for the CLI.

    Args:
        verbose: Enable verbose (DEBUG level) logging

    Returns:
        Configured logger instance
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    logging.getLogger('dupehunter').setLevel(level)
    return logging.getLogger(__name__)


class CLIOrchestrator:
    """
    Orchestrates the CLI workflow.

    The store, worker pool and buffer pool are built once here and passed
    into the ingestion coordinator and the detector.
    """

    def __init__(self, argv: Optional[list[str]] = None, stdin: Optional[TextIO] = None):
        """
        Args:
            argv: Argument list (default: sys.argv[1:])
            stdin: Stream to read paths from when '-' is given (default: sys.stdin)
        """
        self.argv = argv
        self.stdin = stdin
        self.logger: Optional[logging.Logger] = None
        self.args = None
        self.paths: list[str] = []
        self.store: Optional[FingerprintStore] = None
        self.pool: Optional[WorkerPool] = None
        self.buffers: Optional[BufferPool] = None
        self.stats: Optional[IngestStats] = None
        self.report: Optional[DuplicateReport] = None

    def run(self) -> int:
        """
        Execute the complete CLI workflow.

        Returns:
            Exit code (0 for success, 1 for any fatal error)

        Workflow phases:
        1. Setup & argument parsing
        2. Open the fingerprint store and worker pool
        3. Ingestion (barrier + flush)
        4. Duplicate detection
        5. Reporting
        6. Final sync & close
        """
        exit_code = self._setup_phase()
        if exit_code is not None:
            return exit_code

        exit_code = self._validate_phase()
        if exit_code != 0:
            return exit_code

        try:
            self._open_phase()
            self._ingest_phase()
            self._detect_phase()
            self._report_phase()
            self._close_phase()
        except (StoreError, PoolUnavailableError, PoolSubmitError, DetectionError) as e:
            self.logger.error(f"Fatal: {e}")
            return 1
        finally:
            self._cleanup()

        return 0

    def _setup_phase(self) -> Optional[int]:
        """
        Phase 1: Parse arguments and setup logging.

        Returns:
            None to continue, or an exit code when argparse stopped the run
            (0 after --help, 1 for malformed options)
        """
        try:
            self.args = parse_arguments(self.argv)
        except SystemExit as e:
            return 0 if e.code in (0, None) else 1
        self.logger = setup_logging(self.args.verbose)
        return None

    def _validate_phase(self) -> int:
        """
        Validate arguments and read input paths.

        Returns:
            0 for success, 1 for validation error
        """
        if self.args.distance < 0:
            self.logger.error(f"Distance threshold must be non-negative: {self.args.distance}")
            return 1

        if self.args.workers < 1:
            self.logger.error(f"Worker count must be at least 1: {self.args.workers}")
            return 1

        if self.args.paths and '-' in self.args.paths and self.args.paths != ['-']:
            self.logger.error("'-' must be the only path argument")
            return 1

        self.paths = resolve_input_paths(self.args, self.stdin)
        return 0

    def _open_phase(self) -> None:
        """Phase 2: Open the store and start the worker pool."""
        self.store = open_store(self.args.db_dir)
        self.pool = WorkerPool(max_workers=self.args.workers)
        self.buffers = BufferPool()

    def _ingest_phase(self) -> None:
        """Phase 3: Ingest every input path, wait for all of them, flush."""
        if self.paths:
            self.logger.info(f"Ingesting {len(self.paths):,} paths with {self.args.workers} workers...")

        coordinator = IngestCoordinator(
            self.store,
            self.pool,
            self.buffers,
            namespace=NAMESPACE,
            show_progress=not self.args.no_progress,
        )
        self.stats = coordinator.run(self.paths)
        print_ingest_summary(self.stats, self.logger)

    def _detect_phase(self) -> None:
        """Phase 4: Compare every stored fingerprint."""
        self.logger.info(f"Finding duplicates (distance < {self.args.distance})...")
        self.report = find_duplicates(
            self.store.namespace(NAMESPACE),
            threshold=self.args.distance,
            show_progress=not self.args.no_progress,
        )

    def _report_phase(self) -> None:
        """Phase 5: Print the report."""
        if self.args.json:
            print_json_report(self.report, self.stats)
        else:
            print_duplicate_report(self.report, self.logger, self.store.stats(NAMESPACE))

    def _close_phase(self) -> None:
        """Phase 6: Flush and close the store."""
        self.store.sync_and_close_all()

    def _cleanup(self) -> None:
        if self.pool is not None:
            self.pool.shutdown(wait=True)
        if self.store is not None and not self.store.closed:
            try:
                self.store.close()
            except StoreError as e:
                self.logger.error(f"failed to sync and close database: {e}")


__all__ = ['CLIOrchestrator', 'setup_logging']
