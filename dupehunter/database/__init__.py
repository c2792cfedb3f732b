"""
SQLite-backed fingerprint store for dupehunter.

Provides durable persistence of fingerprint records keyed by absolute file
path, enabling:
- Incremental re-runs (unchanged files are skipped by size + mtime)
- A consistent snapshot for the duplicate detection pass

Public API:
- FingerprintStore: Store facade (namespaces, sync, close)
- Namespace: Key/value operations on one namespace
- open_store(): Open or create the store at the data directory
- StoreStats: Statistics dataclass
- StoreError and subclasses
"""

from __future__ import annotations

from .core import FingerprintStore, open_store
from .operations import Namespace
from .utils import (
    StoreError,
    StoreUnavailableError,
    StoreClosedError,
    KeyNotFoundError,
    StoreStats,
)


__all__ = [
    'FingerprintStore',
    'Namespace',
    'open_store',
    'StoreStats',
    'StoreError',
    'StoreUnavailableError',
    'StoreClosedError',
    'KeyNotFoundError',
]
