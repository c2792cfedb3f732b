"""
Shared utilities for store operations.

Provides:
- Store exception hierarchy
- StoreStats dataclass for the CLI summary
"""

from __future__ import annotations

from dataclasses import dataclass

from ..models import format_size


class StoreError(Exception):
    """Base class for fingerprint store failures."""


class StoreUnavailableError(StoreError):
    """The store could not be created, opened or initialized."""


class StoreClosedError(StoreError):
    """An operation was attempted on a closed store."""


class KeyNotFoundError(StoreError):
    """A point lookup found no value for the key."""


@dataclass
class StoreStats:
    """Statistics about a store namespace."""
    namespace: str
    total_keys: int = 0
    db_size_bytes: int = 0

    @property
    def db_size_formatted(self) -> str:
        return format_size(self.db_size_bytes)


__all__ = [
    'StoreError',
    'StoreUnavailableError',
    'StoreClosedError',
    'KeyNotFoundError',
    'StoreStats',
]
