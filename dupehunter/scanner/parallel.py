"""
Parallel processing module for the scanner package.

Provides the bounded ingestion worker pool, a wait-group style completion
barrier, and the coordinator that fans out one ingestion task per path and
blocks until every task has signalled before flushing the store.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Iterable, Optional

from ..config import DEFAULT_WORKERS, NAMESPACE
from ..database import FingerprintStore
from ..models import IngestStats
from .buffers import BufferPool
from .dependencies import progress_bar
from .ingest import IngestTask


logger = logging.getLogger(__name__)


class PoolUnavailableError(Exception):
    """The worker pool could not be created."""


class PoolSubmitError(Exception):
    """A task was rejected by the worker pool."""


class WorkerPool:
    """
    Fixed-size thread pool for ingestion tasks.

    Any exception escaping a submitted callable is caught at the pool
    boundary and logged with its traceback; the worker thread and every
    other in-flight task keep running.
    """

    def __init__(self, max_workers: int = DEFAULT_WORKERS, thread_name_prefix: str = 'ingest'):
        """
        Args:
            max_workers: Number of concurrent workers (independent of input size)
            thread_name_prefix: Prefix for worker thread names

        Raises:
            PoolUnavailableError: if the pool cannot be created
        """
        if not isinstance(max_workers, int) or max_workers < 1:
            raise PoolUnavailableError(f"invalid worker count: {max_workers!r}")
        try:
            self._executor = ThreadPoolExecutor(
                max_workers=max_workers,
                thread_name_prefix=thread_name_prefix,
            )
        except (ValueError, RuntimeError) as e:
            raise PoolUnavailableError(f"failed to create worker pool: {e}") from e

        self.max_workers = max_workers
        self._lock = threading.Lock()
        self._faults = 0

    def __enter__(self) -> 'WorkerPool':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown(wait=True)

    @property
    def faults(self) -> int:
        """Number of tasks that raised an unexpected exception."""
        with self._lock:
            return self._faults

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """
        Submit a callable to the pool.

        Raises:
            PoolSubmitError: if the pool is shut down
        """
        try:
            return self._executor.submit(self._guarded, fn, args, kwargs)
        except RuntimeError as e:
            raise PoolSubmitError(f"failed to submit {_describe(fn)}: {e}") from e

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _guarded(self, fn: Callable[..., Any], args: tuple, kwargs: dict) -> Any:
        try:
            return fn(*args, **kwargs)
        except Exception:
            with self._lock:
                self._faults += 1
            logger.exception(f"Worker panic in {_describe(fn)}")
            return None


def _describe(fn: Callable[..., Any]) -> str:
    owner = getattr(fn, '__self__', None)
    if owner is not None:
        return repr(owner)
    return getattr(fn, '__qualname__', repr(fn))


class CompletionBarrier:
    """
    Counting barrier: wait() blocks until signal() has been called once
    per expected task.

    Example:
        barrier = CompletionBarrier()
        barrier.add(len(paths))
        ...  # each task calls barrier.signal() exactly once
        barrier.wait()
    """

    def __init__(self, on_signal: Optional[Callable[[], Any]] = None):
        self._cond = threading.Condition()
        self._expected = 0
        self._signals = 0
        self._on_signal = on_signal

    def add(self, n: int = 1) -> None:
        if n < 0:
            raise ValueError("cannot expect a negative number of signals")
        with self._cond:
            self._expected += n

    def signal(self) -> None:
        with self._cond:
            self._signals += 1
            if self._signals >= self._expected:
                self._cond.notify_all()
        if self._on_signal is not None:
            self._on_signal()

    @property
    def signals(self) -> int:
        with self._cond:
            return self._signals

    @property
    def pending(self) -> int:
        with self._cond:
            return max(0, self._expected - self._signals)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until every expected signal has arrived.

        Returns:
            True once complete, False if timeout elapsed first
        """
        with self._cond:
            return self._cond.wait_for(lambda: self._signals >= self._expected, timeout)


class IngestCoordinator:
    """
    Fans out one ingestion task per path and waits for all of them.

    The store, worker pool and buffer pool are constructed by the caller
    and shared across runs.
    """

    def __init__(
        self,
        store: FingerprintStore,
        pool: WorkerPool,
        buffers: Optional[BufferPool] = None,
        namespace: str = NAMESPACE,
        show_progress: bool = False,
    ):
        self.store = store
        self.pool = pool
        self.buffers = buffers or BufferPool()
        self.namespace = namespace
        self.show_progress = show_progress
        self.last_barrier: Optional[CompletionBarrier] = None

    def run(self, paths: Iterable[str]) -> IngestStats:
        """
        Ingest every path, then flush the store.

        Per-file failures never abort the run; they are tallied in the
        returned stats. Returns only after every task has signalled
        completion and sync_all() has succeeded.

        Raises:
            PoolSubmitError: if the pool rejects a task
            StoreError: if the final sync fails
        """
        paths = list(paths)
        stats = IngestStats()
        ns = self.store.namespace(self.namespace)

        pbar = progress_bar(len(paths), "Ingesting images", self.show_progress)
        barrier = CompletionBarrier(on_signal=pbar.update if pbar is not None else None)
        self.last_barrier = barrier
        barrier.add(len(paths))

        try:
            for path in paths:
                logger.debug(f"processing: {path}")
                task = IngestTask(path, ns, self.buffers, stats, on_done=barrier.signal)
                try:
                    self.pool.submit(task.run)
                except PoolSubmitError:
                    task.close()
                    raise
            barrier.wait()
        finally:
            if pbar is not None:
                pbar.close()

        if paths:
            logger.info(f"finished, processed {stats.processed:,} files")

        self.store.sync_all()
        return stats


__all__ = [
    'PoolUnavailableError',
    'PoolSubmitError',
    'WorkerPool',
    'CompletionBarrier',
    'IngestCoordinator',
]
