"""
Global configuration for value_observers.
"""
from pathlib import Path

# Fixed 64-bit seeds for the content hash; changing them changes every hash.
HASH_SEEDS = (1, 2, 3, 4)

# BLAKE2b output size in bytes (64-bit hash)
HASH_DIGEST_SIZE = 8

# BLAKE2b personalisation (max 16 bytes), tracks ENCODING_VERSION
HASH_PERSON = b"value-obs/v1"

# Version of the canonical byte encoding fed to the hash
ENCODING_VERSION = 1

# Version of the JSON snapshot layout written by snapshot.save_snapshot
SNAPSHOT_FORMAT_VERSION = 1

# Where snapshots land when no directory is given
DEFAULT_SNAPSHOT_DIR = Path("observer_snapshots")
