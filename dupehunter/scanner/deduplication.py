"""
Deduplication module for the scanner package.

Loads every stored fingerprint and compares all pairs by Hamming distance.

Grouping semantics: an outer candidate that has already been flagged is not
used as a new seed, but flagged paths remain valid inner comparison
targets. Each unordered pair is evaluated at most once. The result is a
flagged set plus the evaluated pairs, not a partition into clusters: a path
close to several others appears in several duplicate pairs.
"""

from __future__ import annotations

import logging

from ..config import DEFAULT_DISTANCE
from ..database import Namespace, StoreError
from ..models import DuplicateReport, FingerprintRecord, PairDistance, RecordDecodeError
from .dependencies import imagehash, progress_bar
from .hashing import hash_distance, load_hash


logger = logging.getLogger(__name__)


class DetectionError(Exception):
    """The detection pass could not load or compare the stored fingerprints."""


def load_fingerprints(namespace: Namespace) -> dict[str, imagehash.ImageHash]:
    """
    Load every stored record and rebuild its comparable hash.

    All-or-nothing: the first unreadable record aborts the load.

    Args:
        namespace: Store namespace holding fingerprint records

    Returns:
        Dict mapping path to hash, in store enumeration order

    Raises:
        DetectionError: on any read, deserialization or hash load failure
    """
    images: dict[str, imagehash.ImageHash] = {}

    try:
        keys = namespace.keys()
    except StoreError as e:
        raise DetectionError(f"failed to enumerate {namespace.name}: {e}") from e

    for key in keys:
        try:
            data = namespace.get(key)
        except StoreError as e:
            raise DetectionError(f"failed to read {key}: {e}") from e

        try:
            record = FingerprintRecord.from_json(data)
        except RecordDecodeError as e:
            raise DetectionError(f"json deserialize fail for {key}: {e}") from e

        try:
            images[record.path] = load_hash(record.fingerprint)
        except ValueError as e:
            raise DetectionError(f"failed to load image hash for {record.path}: {e}") from e

    return images


def find_duplicates(
    namespace: Namespace,
    threshold: int = DEFAULT_DISTANCE,
    show_progress: bool = False,
) -> DuplicateReport:
    """
    Find near-duplicate images among all stored fingerprints.

    Brute-force O(n^2) comparison; meant for personal collections.

    Args:
        namespace: Store namespace holding fingerprint records
        threshold: Pairs with distance strictly below this are duplicates
        show_progress: Whether to show tqdm progress bar

    Returns:
        DuplicateReport with the flagged paths and every evaluated pair

    Raises:
        ValueError: if threshold is negative
        DetectionError: if fingerprints cannot be loaded or compared
    """
    if threshold < 0:
        raise ValueError(f"threshold must be non-negative, got {threshold}")

    images = load_fingerprints(namespace)
    report = DuplicateReport(threshold=threshold, records_loaded=len(images))
    flagged = report.flagged
    paths = list(images)
    evaluated: set[frozenset] = set()

    pbar = progress_bar(len(paths) if len(paths) > 1 else 0, "Comparing images", show_progress)

    try:
        for k in paths:
            if pbar is not None:
                pbar.update(1)
            if k in flagged:
                continue
            for other in paths:
                if other == k:
                    continue
                pair = frozenset((k, other))
                if pair in evaluated:
                    continue
                evaluated.add(pair)

                try:
                    distance = hash_distance(images[k], images[other])
                except ValueError as e:
                    raise DetectionError(
                        f"failed to calculate distance between {k} and {other}: {e}"
                    ) from e

                logger.debug(f"{k} vs {other}: {distance}")
                is_duplicate = distance < threshold
                report.pairs.append(PairDistance(k, other, distance, is_duplicate))
                if is_duplicate:
                    logger.info(f"duplicate found: {k} and {other}")
                    flagged.add(k)
                    flagged.add(other)
    finally:
        if pbar is not None:
            pbar.close()

    return report


__all__ = [
    'DetectionError',
    'load_fingerprints',
    'find_duplicates',
]
