"""
FingerprintStore facade coordinating store lifecycle and namespaces.

Provides the durable key/value store used for fingerprint persistence and
the open policy used at process start.
"""

from __future__ import annotations

import logging
import os
import sqlite3
import threading
from pathlib import Path
from typing import Optional

from ..config import DATA_DIR, DATA_DIR_MODE, NAMESPACE, STORE_FILENAME
from .connection import ConnectionManager
from .operations import Namespace
from .schema import initialize_schema, initialize_namespace, namespace_exists, SCHEMA_VERSION
from .utils import StoreError, StoreUnavailableError, StoreClosedError, StoreStats


logger = logging.getLogger(__name__)


class FingerprintStore:
    """
    SQLite-backed key/value store with named namespaces.

    Thread-safe for concurrent has/get/put from many workers.

    Usage:
        store = FingerprintStore('/path/to/store.db')
        store.init('images')
        images = store.namespace('images')
        images.put('/abs/path.jpg', payload)
        store.sync_and_close_all()
    """

    SCHEMA_VERSION = SCHEMA_VERSION

    def __init__(self, db_path: str):
        """
        Open (or create) the store file.

        Args:
            db_path: Path to the SQLite file; its directory must exist

        Raises:
            StoreUnavailableError: if the file cannot be opened or initialized
        """
        self.db_path = str(db_path)
        self._conn_mgr = ConnectionManager(self.db_path)
        self._namespaces: dict[str, Namespace] = {}
        self._state_lock = threading.Lock()
        self._closed = False

        try:
            with self._conn_mgr.connection(exclusive=True) as conn:
                initialize_schema(conn)
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"failed to open database {self.db_path}: {e}") from e

    def __enter__(self) -> 'FingerprintStore':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreClosedError(f"store is closed: {self.db_path}")

    def init(self, name: str) -> bool:
        """
        Initialize a namespace. An already existing namespace is not an error.

        Returns:
            True if the namespace was newly created
        """
        self._ensure_open()
        try:
            with self._conn_mgr.connection(exclusive=True) as conn:
                created = initialize_namespace(conn, name)
        except sqlite3.Error as e:
            raise StoreError(f"failed to initialize namespace {name}: {e}") from e
        if created:
            logger.debug(f"Created namespace {name} in {self.db_path}")
        return created

    def namespace(self, name: str) -> Namespace:
        """
        Get the handle for an initialized namespace.

        Raises:
            StoreError: if the namespace has not been initialized
        """
        self._ensure_open()
        with self._state_lock:
            ns = self._namespaces.get(name)
            if ns is not None:
                return ns

            try:
                with self._conn_mgr.connection(exclusive=False) as conn:
                    exists = namespace_exists(conn, name)
            except sqlite3.Error as e:
                raise StoreError(f"failed to look up namespace {name}: {e}") from e
            if not exists:
                raise StoreError(f"namespace not initialized: {name}")

            ns = Namespace(self._conn_mgr, name, self._ensure_open)
            self._namespaces[name] = ns
            return ns

    def sync_all(self) -> None:
        """
        Durability barrier: checkpoint the write-ahead log into the main file.

        Raises:
            StoreError: if the checkpoint could not complete
        """
        self._ensure_open()
        self._checkpoint('FULL')

    def close(self) -> None:
        """Checkpoint and close the store. Closing twice is a no-op."""
        with self._state_lock:
            if self._closed:
                return
            self._checkpoint('TRUNCATE')
            self._closed = True
            self._namespaces.clear()
        logger.debug(f"Closed store {self.db_path}")

    def sync_and_close_all(self) -> None:
        """Flush everything and close the store."""
        self.sync_all()
        self.close()

    def _checkpoint(self, mode: str) -> None:
        try:
            busy, log_frames, checkpointed = self._conn_mgr.checkpoint(mode)
        except sqlite3.Error as e:
            raise StoreError(f"checkpoint failed for {self.db_path}: {e}") from e
        if busy:
            raise StoreError(
                f"checkpoint incomplete for {self.db_path}: "
                f"{checkpointed}/{log_frames} frames written"
            )

    def stats(self, name: str = NAMESPACE) -> StoreStats:
        """Get key count and on-disk size for a namespace."""
        total = self.namespace(name).count()
        size = 0
        for suffix in ('', '-wal'):
            try:
                size += os.path.getsize(self.db_path + suffix)
            except OSError:
                pass
        return StoreStats(namespace=name, total_keys=total, db_size_bytes=size)


def open_store(data_dir: Optional[str] = None, namespace: str = NAMESPACE) -> FingerprintStore:
    """
    Open the fingerprint store at the per-user data directory.

    Creates the directory (recursively) and a new store when absent, then
    makes sure the namespace exists.

    Args:
        data_dir: Directory holding the store. Uses DATA_DIR if None.
        namespace: Namespace to initialize

    Returns:
        Open FingerprintStore

    Raises:
        StoreUnavailableError: on any failure; there is no degraded mode
    """
    dest = Path(data_dir or DATA_DIR).expanduser()

    if not dest.exists():
        logger.info(f"Creating new database at {dest}")
        try:
            dest.mkdir(parents=True, mode=DATA_DIR_MODE, exist_ok=True)
        except OSError as e:
            raise StoreUnavailableError(f"failed to create data directory {dest}: {e}") from e
        if not dest.is_dir():
            raise StoreUnavailableError(
                f"tried to make target directory, but it's still missing: {dest}"
            )
    elif not dest.is_dir():
        raise StoreUnavailableError(f"data directory is not a directory: {dest}")

    logger.debug(f"Opening database in {dest}")
    store = FingerprintStore(str(dest / STORE_FILENAME))
    try:
        store.init(namespace)
    except (StoreError, ValueError) as e:
        raise StoreUnavailableError(f"failed to initialize namespace {namespace}: {e}") from e
    return store


__all__ = ['FingerprintStore', 'open_store']
