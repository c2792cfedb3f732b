"""
Third-party imports for the scanner package.

Pillow, imagehash and numpy are required. tqdm is optional and only drives
progress bars.
"""

from __future__ import annotations

import logging
import warnings
from typing import Any, Optional

_logger = logging.getLogger(__name__)

try:
    from PIL import Image
    import imagehash
    import numpy as np
except ImportError as e:
    raise ImportError(
        f"dupehunter needs Pillow, imagehash and numpy ({e}).\n"
        "Install with: pip install Pillow imagehash numpy"
    ) from e

# Pillow refuses images above ~89MP by default; panoramas and scans exceed that
Image.MAX_IMAGE_PIXELS = 500_000_000
warnings.filterwarnings("ignore", category=Image.DecompressionBombWarning)

try:
    from tqdm import tqdm as _tqdm_class
    HAS_TQDM = True
except ImportError:
    _tqdm_class = None
    HAS_TQDM = False


def progress_bar(total: int, desc: str, enabled: bool = True) -> Optional[Any]:
    """
    Create a tqdm bar, or None when disabled, pointless or tqdm is missing.
    """
    if not (enabled and HAS_TQDM and total > 0 and _tqdm_class is not None):
        return None
    return _tqdm_class(total=total, desc=desc, unit="img", ncols=80)


__all__ = [
    'Image',
    'imagehash',
    'np',
    'HAS_TQDM',
    'progress_bar',
    '_logger',
]
