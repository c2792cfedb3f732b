"""
SQLite access for the fingerprint store.

Every operation gets its own short-lived connection, so worker threads never
share a handle. Readers run concurrently under WAL; writers take a process
wide lock before opening theirs.
"""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from typing import Generator


# Applied to every new connection
_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=FULL",
)


class ConnectionManager:
    """
    Hands out per-operation SQLite connections for one database file.

    Usage:
        mgr = ConnectionManager('/path/to/store.db')
        with mgr.connection(exclusive=True) as conn:
            conn.execute("INSERT ...")
    """

    def __init__(self, db_path: str, timeout: float = 30.0):
        """
        Args:
            db_path: SQLite file; the containing directory must already exist
            timeout: Seconds to wait on a locked database before failing
        """
        self.db_path = db_path
        self.timeout = timeout
        self._write_lock = threading.Lock()

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self.db_path,
            timeout=self.timeout,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        try:
            for pragma in _PRAGMAS:
                conn.execute(pragma)
        except sqlite3.Error:
            conn.close()
            raise
        return conn

    @contextmanager
    def connection(
        self,
        exclusive: bool = False,
        transaction: bool = True,
    ) -> Generator[sqlite3.Connection, None, None]:
        """
        Open a connection for the duration of the block.

        Args:
            exclusive: Hold the write lock (required for anything that writes)
            transaction: Wrap the block in BEGIN/COMMIT, rolling back on error.
                Checkpoints must pass False since they cannot run in a
                transaction.

        Yields:
            sqlite3.Connection with sqlite3.Row rows
        """
        lock = self._write_lock if exclusive else None
        if lock is not None:
            lock.acquire()
        try:
            conn = self._open()
            try:
                if transaction:
                    conn.execute("BEGIN")
                    try:
                        yield conn
                    except Exception:
                        conn.execute("ROLLBACK")
                        raise
                    conn.execute("COMMIT")
                else:
                    yield conn
            finally:
                conn.close()
        finally:
            if lock is not None:
                lock.release()

    def checkpoint(self, mode: str = 'FULL') -> tuple[int, int, int]:
        """
        Run a WAL checkpoint.

        Returns:
            (busy, wal_frames, checkpointed_frames) as reported by SQLite
        """
        with self.connection(exclusive=True, transaction=False) as conn:
            row = conn.execute(f"PRAGMA wal_checkpoint({mode})").fetchone()
        return row[0], row[1], row[2]


__all__ = ['ConnectionManager']
