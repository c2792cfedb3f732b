"""
dupehunter
==========
Perceptual-hash near-duplicate image finder.

Features:
- Concurrent ingestion with a bounded worker pool
- Difference-hash fingerprints persisted in a local SQLite store
- Change detection: unchanged files (size + mtime) are never re-hashed
- All-pairs Hamming distance comparison with a configurable threshold
- Report only: files on disk are never touched
"""

__version__ = "1.0.0"

from .models import FingerprintRecord, ImageKind, IngestStats, IngestStatus, DuplicateReport, PairDistance
from .config import DEFAULT_DISTANCE, DEFAULT_WORKERS, NAMESPACE
from .database import FingerprintStore, Namespace, open_store
from .scanner import (
    BufferPool,
    WorkerPool,
    IngestCoordinator,
    IngestTask,
    check_existing,
    find_duplicates,
)

__all__ = [
    "FingerprintRecord",
    "ImageKind",
    "IngestStats",
    "IngestStatus",
    "DuplicateReport",
    "PairDistance",
    "DEFAULT_DISTANCE",
    "DEFAULT_WORKERS",
    "NAMESPACE",
    "FingerprintStore",
    "Namespace",
    "open_store",
    "BufferPool",
    "WorkerPool",
    "IngestCoordinator",
    "IngestTask",
    "check_existing",
    "find_duplicates",
]
