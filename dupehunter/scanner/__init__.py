"""
Scanner package for dupehunter.

Provides concurrent ingestion of image files into the fingerprint store and
the near-duplicate detection pass over everything stored.

Public API:
- BufferPool / ReleaseOnce: Scratch buffers and the idempotent release guard
- decode_image / compute_fingerprint / load_hash / hash_distance: Hashing
- check_existing / IngestTask: Per-file ingestion
- WorkerPool / CompletionBarrier / IngestCoordinator: Concurrent intake
- find_duplicates / load_fingerprints: Duplicate detection
"""

from __future__ import annotations

from .buffers import BufferPool, ReleaseOnce
from .hashing import (
    DecodeError,
    FingerprintError,
    decode_image,
    compute_fingerprint,
    dump_hash,
    load_hash,
    hash_distance,
)
from .ingest import (
    IngestError,
    AlreadyIngestedError,
    UnknownKindError,
    TaskState,
    check_existing,
    IngestTask,
)
from .parallel import (
    PoolUnavailableError,
    PoolSubmitError,
    WorkerPool,
    CompletionBarrier,
    IngestCoordinator,
)
from .deduplication import DetectionError, load_fingerprints, find_duplicates


# Public API exports
__all__ = [
    # Buffers
    'BufferPool',
    'ReleaseOnce',
    # Hashing functions
    'DecodeError',
    'FingerprintError',
    'decode_image',
    'compute_fingerprint',
    'dump_hash',
    'load_hash',
    'hash_distance',
    # Ingestion
    'IngestError',
    'AlreadyIngestedError',
    'UnknownKindError',
    'TaskState',
    'check_existing',
    'IngestTask',
    # Concurrency
    'PoolUnavailableError',
    'PoolSubmitError',
    'WorkerPool',
    'CompletionBarrier',
    'IngestCoordinator',
    # Duplicate detection
    'DetectionError',
    'load_fingerprints',
    'find_duplicates',
]
