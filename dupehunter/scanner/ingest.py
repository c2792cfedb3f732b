"""
Per-file ingestion for the scanner package.

An IngestTask walks one path through
Created -> Stat-checked -> Opened -> Decoded -> Fingerprinted -> Persisted -> Done,
exiting early on any failure. Whatever happens, the task returns its scratch
buffer and fires its completion callback exactly once.
"""

from __future__ import annotations

import io
import logging
import os
from enum import Enum
from typing import Callable, Optional

from ..database import Namespace, StoreError
from ..models import FingerprintRecord, ImageKind, IngestStats, IngestStatus, RecordDecodeError
from .buffers import BufferPool, ReleaseOnce
from .hashing import DecodeError, FingerprintError, compute_fingerprint, decode_image, dump_hash


logger = logging.getLogger(__name__)


class IngestError(Exception):
    """A single file could not be ingested. Never fatal to the run."""


class AlreadyIngestedError(IngestError):
    """The store already holds an unchanged record for this path."""


class UnknownKindError(IngestError):
    """The file decoded, but not into a kind that is persisted."""


class TaskState(Enum):
    CREATED = "created"
    STAT_CHECKED = "stat-checked"
    OPENED = "opened"
    DECODED = "decoded"
    FINGERPRINTED = "fingerprinted"
    PERSISTED = "persisted"
    DONE = "done"


def check_existing(record: FingerprintRecord, namespace: Namespace) -> bool:
    """
    Check whether the store already has an unchanged record for this file.

    Args:
        record: Candidate record carrying freshly stat'd size and mod time
        namespace: Store namespace holding fingerprint records

    Returns:
        True if a record exists at the same path with identical size and
        mod time (skip re-ingestion). A store read or decode error also
        returns True: the entry is left alone rather than re-ingested.
    """
    try:
        if not namespace.has(record.path):
            return False
        existing = namespace.get(record.path)
    except StoreError as e:
        logger.error(f"database error while checking {record.path}: {e}")
        return True

    try:
        recall = FingerprintRecord.from_json(existing)
    except RecordDecodeError as e:
        logger.error(f"unmarshal error while checking {record.path}: {e}")
        return True

    return recall.is_unchanged(record.size, record.mod_time)


class IngestTask:
    """
    Ingest one image file into the fingerprint store.

    Usage:
        task = IngestTask(path, namespace, buffers, stats, on_done=barrier.signal)
        status = task.run()
    """

    def __init__(
        self,
        path: str,
        namespace: Namespace,
        buffers: BufferPool,
        stats: IngestStats,
        on_done: Optional[Callable[[], None]] = None,
    ):
        self.path = path
        self.namespace = namespace
        self.buffers = buffers
        self.stats = stats
        self.state = TaskState.CREATED
        self.status: Optional[IngestStatus] = None
        self.record: Optional[FingerprintRecord] = None

        self._on_done = on_done
        self._buf: Optional[io.BytesIO] = None
        self._guard = ReleaseOnce(self._finish)

    def __repr__(self) -> str:
        return f"IngestTask({self.path!r}, state={self.state.value})"

    def run(self) -> IngestStatus:
        """
        Execute the task.

        Per-file failures are logged and reported through the returned
        status. Anything unexpected propagates after the task has still
        been closed (and recorded as failed).
        """
        # held only while running
        self._buf = self.buffers.acquire()
        try:
            self._ingest()
            self.status = IngestStatus.INGESTED
        except AlreadyIngestedError as e:
            logger.info(str(e))
            self.status = IngestStatus.UNCHANGED
        except UnknownKindError as e:
            logger.debug(str(e))
            self.status = IngestStatus.SKIPPED
        except StoreError as e:
            logger.error(f"failed to store {self.path}: {e}")
            self.status = IngestStatus.FAILED
        except (IngestError, DecodeError, FingerprintError, OSError) as e:
            logger.warning(f"failed to ingest {self.path}: {e}")
            self.status = IngestStatus.FAILED
        finally:
            if self.status is None:
                self.status = IngestStatus.FAILED
            if self.status is not IngestStatus.INGESTED:
                self.stats.record(self.status)
            self.close()
        return self.status

    def close(self) -> bool:
        """
        Release the scratch buffer and signal completion.

        Returns:
            True the first time, False if the task was already closed
        """
        return self._guard.release()

    def _finish(self) -> None:
        self.state = TaskState.DONE
        buf, self._buf = self._buf, None
        try:
            if buf is not None:
                self.buffers.release(buf)
        finally:
            if self._on_done is not None:
                self._on_done()

    def _ingest(self) -> None:
        path = os.path.abspath(self.path)
        st = os.stat(path)
        if os.path.isdir(path):
            raise IngestError(f"target is a directory: {path}")

        record = FingerprintRecord.from_stat(path, st)
        self.record = record
        if check_existing(record, self.namespace):
            raise AlreadyIngestedError(f"file already in database: {record.name}")
        self.state = TaskState.STAT_CHECKED

        try:
            fh = open(path, 'rb')
        except OSError as e:
            raise IngestError(f"cannot open {path}: {e}") from e
        self.state = TaskState.OPENED

        with fh:
            img, kind = decode_image(fh)
        self.state = TaskState.DECODED

        if kind is ImageKind.UNKNOWN:
            raise UnknownKindError(f"skipping null image type: {record.name}")
        record.kind = kind

        phash = compute_fingerprint(img)
        buf = self._buf
        dump_hash(phash, buf)
        record.fingerprint = buf.getvalue()
        buf.seek(0)
        buf.truncate(0)
        buf.write(record.to_json())
        payload = buf.getvalue()
        self.state = TaskState.FINGERPRINTED

        self.namespace.put(record.path, payload)
        self.state = TaskState.PERSISTED
        self.stats.add_ingested(record)

        logger.info(f"Ingested {record.name} ({record.kind}, {phash})")
        logger.debug(f"{record.path}: {payload.decode('utf-8')}")


__all__ = [
    'IngestError',
    'AlreadyIngestedError',
    'UnknownKindError',
    'TaskState',
    'check_existing',
    'IngestTask',
]
