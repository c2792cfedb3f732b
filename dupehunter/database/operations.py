"""
Key/value operations for one store namespace.

Provides the Namespace class handed to ingestion tasks and the duplicate
detector.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Callable

from .connection import ConnectionManager
from .schema import validate_namespace
from .utils import StoreError, KeyNotFoundError


logger = logging.getLogger(__name__)


class Namespace:
    """
    A named key/value table inside the fingerprint store.

    Keys are strings (absolute file paths), values are bytes. Safe to use
    from many threads at once: reads open their own connection, writes are
    serialized by the connection manager's write lock.
    """

    def __init__(
        self,
        connection_manager: ConnectionManager,
        name: str,
        ensure_open: Callable[[], None],
    ):
        """
        Initialize namespace operations.

        Args:
            connection_manager: ConnectionManager instance for database access
            name: Namespace (table) name
            ensure_open: Callable raising StoreClosedError once the store is closed
        """
        self.conn_mgr = connection_manager
        self.name = validate_namespace(name)
        self._ensure_open = ensure_open

    def __repr__(self) -> str:
        return f"Namespace({self.name!r})"

    def has(self, key: str) -> bool:
        """Check whether a key exists."""
        self._ensure_open()
        try:
            with self.conn_mgr.connection(exclusive=False) as conn:
                row = conn.execute(
                    f'SELECT 1 FROM "{self.name}" WHERE key = ?', (key,)
                ).fetchone()
            return row is not None
        except sqlite3.Error as e:
            raise StoreError(f"has({key!r}) failed in {self.name}: {e}") from e

    def get(self, key: str) -> bytes:
        """
        Point lookup.

        Raises:
            KeyNotFoundError: if the key does not exist
            StoreError: on storage failure
        """
        self._ensure_open()
        try:
            with self.conn_mgr.connection(exclusive=False) as conn:
                row = conn.execute(
                    f'SELECT value FROM "{self.name}" WHERE key = ?', (key,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"get({key!r}) failed in {self.name}: {e}") from e

        if row is None:
            raise KeyNotFoundError(f"key not found in {self.name}: {key}")
        return bytes(row['value'])

    def put(self, key: str, value: bytes) -> None:
        """
        Upsert a whole value under key.

        Raises:
            StoreError: on storage failure
        """
        self._ensure_open()
        try:
            with self.conn_mgr.connection(exclusive=True) as conn:
                conn.execute(
                    f'INSERT OR REPLACE INTO "{self.name}" (key, value) VALUES (?, ?)',
                    (key, sqlite3.Binary(bytes(value)))
                )
        except sqlite3.Error as e:
            raise StoreError(f"put({key!r}) failed in {self.name}: {e}") from e
        logger.debug(f"put {key} ({len(value)} bytes) into {self.name}")

    def keys(self) -> list[str]:
        """Enumerate every key. Order is not guaranteed."""
        self._ensure_open()
        try:
            with self.conn_mgr.connection(exclusive=False) as conn:
                rows = conn.execute(f'SELECT key FROM "{self.name}"').fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"keys() failed in {self.name}: {e}") from e
        return [row['key'] for row in rows]

    def count(self) -> int:
        """Number of keys in the namespace."""
        self._ensure_open()
        try:
            with self.conn_mgr.connection(exclusive=False) as conn:
                row = conn.execute(f'SELECT COUNT(*) AS n FROM "{self.name}"').fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"count() failed in {self.name}: {e}") from e
        return row['n']


__all__ = ['Namespace']
