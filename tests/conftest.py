"""
Pytest configuration and shared fixtures for test suite.
"""

import pytest
import tempfile
import shutil
from pathlib import Path
from PIL import Image


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    yield Path(tmpdir)
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def sample_images(temp_dir):
    """
    Create a set of sample images for testing.

    Returns:
        dict with paths to:
        - gradient.png: horizontal gradient, dark to light
        - gradient_copy.jpg: the same gradient re-encoded as JPEG (near-identical)
        - reversed.gif: the gradient mirrored, light to dark (unrelated hash)
        - corrupted.jpg: .jpg extension, invalid bytes
        - bitmap.bmp: valid image in an unsupported format
        - notes.txt: not an image
    """
    images = {}

    base = Image.linear_gradient('L').transpose(Image.Transpose.TRANSPOSE)

    path1 = temp_dir / "gradient.png"
    base.save(path1, 'PNG')
    images['gradient'] = str(path1)

    path2 = temp_dir / "gradient_copy.jpg"
    base.convert('RGB').save(path2, 'JPEG', quality=90)
    images['gradient_copy'] = str(path2)

    path3 = temp_dir / "reversed.gif"
    base.transpose(Image.Transpose.FLIP_LEFT_RIGHT).save(path3, 'GIF')
    images['reversed'] = str(path3)

    path4 = temp_dir / "corrupted.jpg"
    path4.write_bytes(b"\xff\xd8\xff\xe0 definitely not a jpeg")
    images['corrupted'] = str(path4)

    path5 = temp_dir / "bitmap.bmp"
    base.save(path5, 'BMP')
    images['bitmap'] = str(path5)

    path6 = temp_dir / "notes.txt"
    path6.write_text("not an image")
    images['notes'] = str(path6)

    return images


@pytest.fixture
def store(temp_dir):
    """Open a fresh fingerprint store in a temporary data directory."""
    from dupehunter.database import open_store

    db = open_store(str(temp_dir / "db"))
    yield db
    db.close()


@pytest.fixture
def images_ns(store):
    """The 'images' namespace of the temporary store."""
    return store.namespace('images')


def fingerprint_with_bits(count: int, width: int = 64) -> bytes:
    """Build a packed fingerprint with the first `count` bits set."""
    value = 0
    for i in range(count):
        value |= 1 << (width - 1 - i)
    return value.to_bytes(width // 8, 'big')


def make_record(path: str, bits: int = 0, size: int = 100, mod_time: int = 1):
    """Create a JPEG FingerprintRecord with a synthetic fingerprint."""
    from dupehunter.models import FingerprintRecord, ImageKind

    return FingerprintRecord(
        path=path,
        kind=ImageKind.JPEG,
        name=Path(path).name,
        mod_time=mod_time,
        size=size,
        fingerprint=fingerprint_with_bits(bits),
    )


@pytest.fixture
def record_factory():
    """Factory fixture for synthetic fingerprint records."""
    return make_record


@pytest.fixture
def camera_jpeg(temp_dir):
    """
    A .jpg carrying an MPF header with a second (preview) frame, the way
    phones and cameras write them. Pillow opens it as format 'MPO'.
    """
    base = Image.linear_gradient('L').transpose(Image.Transpose.TRANSPOSE).convert('RGB')
    preview = base.resize((64, 64))
    path = temp_dir / "camera.jpg"
    base.save(path, 'MPO', save_all=True, append_images=[preview])
    return str(path)
