"""
Data models for dupehunter.

Contains the persisted fingerprint record, the image kind discriminator,
ingestion tallies and the duplicate report.
"""

from __future__ import annotations

import base64
import binascii
import json
import os
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable form."""
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size_bytes < 1024:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024
    return f"{size_bytes:.1f} TB"


# Pillow formats decoded by a supported plugin under another name.
# A JPEG with an MPF header (camera depth or preview frames) opens as MPO.
_FORMAT_ALIASES = {
    'MPO': 'JPEG',
}


class RecordDecodeError(ValueError):
    """Raised when stored bytes cannot be turned back into a FingerprintRecord."""


class ImageKind(Enum):
    """Image format tag stored with every record."""
    UNKNOWN = "null"
    JPEG = "jpeg"
    PNG = "png"
    GIF = "gif"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, name: str) -> 'ImageKind':
        """
        Parse a kind tag (case-insensitive).

        Raises:
            ValueError: if the tag is not a known kind
        """
        try:
            return cls(str(name).lower())
        except ValueError:
            raise ValueError(f"unknown image type: {name!r}") from None

    @classmethod
    def from_format(cls, pil_format: Optional[str]) -> 'ImageKind':
        """Map a Pillow format name ('JPEG', 'PNG', ...) to a kind, UNKNOWN if unmapped."""
        if not pil_format:
            return cls.UNKNOWN
        try:
            return cls.parse(_FORMAT_ALIASES.get(pil_format.upper(), pil_format))
        except ValueError:
            return cls.UNKNOWN


@dataclass
class FingerprintRecord:
    """
    Persisted fingerprint of one image file.

    Attributes:
        path: Absolute file path, the store key
        kind: Image format discriminator
        name: Base file name
        mod_time: Modification time at ingestion, nanoseconds since the epoch
        size: File size in bytes at ingestion
        fingerprint: Packed perceptual hash bytes
    """
    path: str
    kind: ImageKind = ImageKind.UNKNOWN
    name: str = ""
    mod_time: int = 0
    size: int = 0
    fingerprint: bytes = b""

    @classmethod
    def from_stat(cls, path: str, st: os.stat_result) -> 'FingerprintRecord':
        """Create a record with the metadata of a freshly stat'd file."""
        return cls(
            path=path,
            name=os.path.basename(path),
            mod_time=st.st_mtime_ns,
            size=st.st_size,
        )

    @property
    def modified(self) -> datetime:
        """Modification time as an aware UTC datetime (microsecond precision)."""
        return datetime.fromtimestamp(self.mod_time / 1_000_000_000, tz=timezone.utc)

    def is_unchanged(self, size: int, mod_time: int) -> bool:
        """True if size and mod time both match exactly."""
        return self.size == size and self.mod_time == mod_time

    def to_dict(self) -> dict:
        """Convert to a JSON-safe dictionary; the fingerprint is base64-encoded."""
        return {
            'path': self.path,
            'kind': self.kind.value,
            'name': self.name,
            'mod_time': self.mod_time,
            'size': self.size,
            'fingerprint': base64.b64encode(self.fingerprint).decode('ascii'),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'FingerprintRecord':
        """
        Create a FingerprintRecord from a dictionary produced by to_dict().

        Raises:
            RecordDecodeError: on missing fields, unknown kinds or bad base64
        """
        try:
            return cls(
                path=data['path'],
                kind=ImageKind.parse(data['kind']),
                name=data.get('name', ''),
                mod_time=int(data['mod_time']),
                size=int(data['size']),
                fingerprint=base64.b64decode(data['fingerprint'], validate=True),
            )
        except (KeyError, TypeError, ValueError, binascii.Error) as e:
            raise RecordDecodeError(f"invalid fingerprint record: {e}") from e

    def to_json(self) -> bytes:
        """Serialize to compact UTF-8 JSON."""
        return json.dumps(self.to_dict(), separators=(',', ':')).encode('utf-8')

    @classmethod
    def from_json(cls, data: bytes | str) -> 'FingerprintRecord':
        """
        Deserialize from JSON bytes.

        Raises:
            RecordDecodeError: if the payload is not a valid record
        """
        try:
            parsed = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise RecordDecodeError(f"json deserialize fail: {e}") from e
        if not isinstance(parsed, dict):
            raise RecordDecodeError("json deserialize fail: record is not an object")
        return cls.from_dict(parsed)


class IngestStatus(Enum):
    """Terminal state of one ingestion task."""
    INGESTED = "ingested"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    FAILED = "failed"


class IngestStats:
    """
    Thread-safe tallies for one ingestion run.

    Workers report their terminal status here; successfully persisted
    records are collected in `ingested`.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.counts: dict[IngestStatus, int] = {status: 0 for status in IngestStatus}
        self.ingested: list[FingerprintRecord] = []

    def record(self, status: IngestStatus) -> None:
        with self._lock:
            self.counts[status] += 1

    def add_ingested(self, record: FingerprintRecord) -> None:
        with self._lock:
            self.ingested.append(record)
            self.counts[IngestStatus.INGESTED] += 1

    @property
    def processed(self) -> int:
        """Number of tasks that reached a terminal state."""
        with self._lock:
            return sum(self.counts.values())

    @property
    def failed(self) -> int:
        with self._lock:
            return self.counts[IngestStatus.FAILED]

    def to_dict(self) -> dict:
        with self._lock:
            data = {status.value: count for status, count in self.counts.items()}
        data['processed'] = sum(data.values())
        return data


@dataclass
class PairDistance:
    """One evaluated pair from the duplicate detection pass."""
    a: str
    b: str
    distance: int
    is_duplicate: bool = False

    def to_dict(self) -> dict:
        return {
            'a': self.a,
            'b': self.b,
            'distance': self.distance,
            'duplicate': self.is_duplicate,
        }


@dataclass
class DuplicateReport:
    """
    Result of a duplicate detection pass.

    Attributes:
        threshold: Distance threshold used (pairs strictly below are duplicates)
        flagged: Paths marked as duplicates
        pairs: Every evaluated pair with its distance, in evaluation order
        records_loaded: Number of fingerprints loaded from the store
    """
    threshold: int
    flagged: set = field(default_factory=set)
    pairs: list = field(default_factory=list)
    records_loaded: int = 0

    @property
    def duplicate_pairs(self) -> list:
        """Evaluated pairs that fell under the threshold."""
        return [p for p in self.pairs if p.is_duplicate]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'threshold': self.threshold,
            'records_loaded': self.records_loaded,
            'flagged': sorted(self.flagged),
            'duplicate_pairs': [p.to_dict() for p in self.duplicate_pairs],
            'comparisons': len(self.pairs),
        }
