"""
Scratch buffer pool for the scanner package.

Ingestion tasks borrow a buffer for hash serialization and record encoding
instead of allocating fresh memory per file.
"""

from __future__ import annotations

import io
import logging
import threading
from typing import Callable

from ..config import MAX_IDLE_BUFFERS


logger = logging.getLogger(__name__)


class BufferPool:
    """
    Thread-safe pool of reusable in-memory byte buffers.

    acquire() hands out an empty buffer owned exclusively by the caller
    until release(). Released buffers are cleared before they can be handed
    out again. Releasing a buffer that is already idle in the pool is
    ignored.
    """

    def __init__(self, max_idle: int = MAX_IDLE_BUFFERS):
        """
        Args:
            max_idle: Maximum number of idle buffers kept for reuse
        """
        self.max_idle = max_idle
        self._lock = threading.Lock()
        self._idle: list[io.BytesIO] = []
        self._idle_ids: set[int] = set()
        self.created = 0

    def acquire(self) -> io.BytesIO:
        """Get an empty buffer."""
        with self._lock:
            if self._idle:
                buf = self._idle.pop()
                self._idle_ids.discard(id(buf))
                return buf
            self.created += 1
        return io.BytesIO()

    def release(self, buf: io.BytesIO) -> None:
        """Clear a buffer and return it to the pool."""
        with self._lock:
            if id(buf) in self._idle_ids:
                logger.debug("Ignoring release of a buffer that is already pooled")
                return
            buf.seek(0)
            buf.truncate(0)
            if len(self._idle) < self.max_idle:
                self._idle.append(buf)
                self._idle_ids.add(id(buf))

    @property
    def idle(self) -> int:
        """Number of buffers waiting in the pool."""
        with self._lock:
            return len(self._idle)


class ReleaseOnce:
    """
    Idempotent release guard.

    Runs the wrapped cleanup on the first release() call only, no matter
    how many exit paths call it.

    Example:
        guard = ReleaseOnce(lambda: pool.release(buf))
        try:
            ...
        finally:
            guard.release()
    """

    def __init__(self, cleanup: Callable[[], None]):
        self._cleanup = cleanup
        self._lock = threading.Lock()
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> bool:
        """
        Run the cleanup if it has not run yet.

        Returns:
            True on the first call, False on every later call
        """
        with self._lock:
            if self._released:
                return False
            self._released = True
        self._cleanup()
        return True


__all__ = ['BufferPool', 'ReleaseOnce']
