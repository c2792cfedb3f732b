"""
Hashing module for the scanner package.

Wraps image decoding and perceptual hashing at their interface boundary:
decode bytes to pixels, compute a difference hash, pack it into fixed-width
bytes and back, and measure Hamming distance.
"""

from __future__ import annotations

import io
import math
from typing import BinaryIO

from ..config import HASH_SIZE, SUPPORTED_FORMATS
from ..models import ImageKind
from .dependencies import Image, imagehash, np, _logger


class DecodeError(Exception):
    """The file is not a decodable image in a supported format."""


class FingerprintError(Exception):
    """The perceptual hash could not be computed or serialized."""


def decode_image(fp: BinaryIO) -> tuple[Image.Image, ImageKind]:
    """
    Decode an open file into pixels, sniffing the format from content.

    Only JPEG, PNG and GIF are accepted. The image is fully loaded so a
    truncated file fails here rather than during hashing.

    Args:
        fp: Binary file object positioned at the start of the image

    Returns:
        Tuple of (loaded PIL image, ImageKind)

    Raises:
        DecodeError: if the content is unsupported, corrupt or truncated
    """
    try:
        img = Image.open(fp, formats=SUPPORTED_FORMATS)
        img.load()
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeError(str(e) or type(e).__name__) from e
    return img, ImageKind.from_format(img.format)


def compute_fingerprint(img: Image.Image, hash_size: int = HASH_SIZE) -> imagehash.ImageHash:
    """
    Calculate the difference hash (dHash) of a decoded image.

    Raises:
        FingerprintError: if hashing fails
    """
    try:
        return imagehash.dhash(img, hash_size=hash_size)
    except Exception as e:
        _logger.debug(f"Difference hash calculation failed: {e}")
        raise FingerprintError(f"hash computation failed: {e}") from e


def dump_hash(phash: imagehash.ImageHash, buf: io.BytesIO) -> int:
    """
    Write the hash bits into buf as packed bytes (8 bits per byte, row-major).

    Returns:
        Number of bytes written
    """
    packed = np.packbits(np.asarray(phash.hash, dtype=bool).flatten()).tobytes()
    written = buf.write(packed)
    if written != len(packed):
        raise FingerprintError(f"short write: {written} of {len(packed)} bytes")
    return written


def load_hash(data: bytes) -> imagehash.ImageHash:
    """
    Rebuild a comparable hash handle from bytes written by dump_hash().

    Raises:
        ValueError: if the byte length does not describe a square bit matrix
    """
    if not data:
        raise ValueError("empty fingerprint")
    bits = len(data) * 8
    side = math.isqrt(bits)
    if side * side != bits:
        raise ValueError(f"fingerprint of {len(data)} bytes is not a square hash")
    matrix = np.unpackbits(np.frombuffer(data, dtype=np.uint8)).astype(bool)
    return imagehash.ImageHash(matrix.reshape(side, side))


def hash_distance(a: imagehash.ImageHash, b: imagehash.ImageHash) -> int:
    """
    Hamming distance between two hashes.

    Raises:
        ValueError: if the hashes have different shapes
    """
    try:
        return int(a - b)
    except TypeError as e:
        raise ValueError(str(e)) from e


__all__ = [
    'DecodeError',
    'FingerprintError',
    'decode_image',
    'compute_fingerprint',
    'dump_hash',
    'load_hash',
    'hash_distance',
]
