"""SHA-256 content hashing for published assets"""

import hashlib
from pathlib import Path


CHUNK_SIZE = 1 << 16


def sha256_file(path: Path) -> str:
    """Return hex-encoded SHA-256 hash of a file, read in chunks."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()
