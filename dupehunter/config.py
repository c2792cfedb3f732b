"""
Configuration constants for dupehunter.

This module contains all configurable settings including:
- Supported image formats and the kind tags they map to
- Fingerprint and duplicate-detection defaults
- Worker pool sizing
- Data directory location for the fingerprint store
"""

import os

# Pillow format names accepted by the decoder.
# Anything else fails at decode time and is never persisted.
SUPPORTED_FORMATS = ('JPEG', 'PNG', 'GIF')

# Default duplicate threshold (Hamming distance between difference hashes)
# Pairs with distance strictly below this value are flagged.
# Lower = stricter matching (0-64 range for 8x8 hashes)
DEFAULT_DISTANCE = 12

# dHash size; 8 produces a 64-bit (8 byte) fingerprint
HASH_SIZE = 8

# Default number of concurrent ingestion workers.
# Independent of input size.
DEFAULT_WORKERS = 25

# Maximum number of idle scratch buffers retained by the buffer pool
MAX_IDLE_BUFFERS = 64

# Store namespace holding path -> serialized FingerprintRecord
NAMESPACE = 'images'

# Fingerprint store location
DATA_DIR = os.path.join(os.path.expanduser('~'), '.local', 'share', 'dupehunter', 'db')
STORE_FILENAME = 'store.db'

# Permissions for a freshly created data directory
DATA_DIR_MODE = 0o755
