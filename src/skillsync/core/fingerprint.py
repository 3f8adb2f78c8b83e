"""
Fingerprint engine — content digests used for change detection.

Two artifacts are considered equal when their fingerprints are equal.
Content is never compared byte by byte.
"""

import hashlib
from pathlib import Path

__all__ = [
    "FINGERPRINT_ALGORITHM",
    "fingerprint_bytes",
    "fingerprint_file",
]

FINGERPRINT_ALGORITHM = "sha256"

# Read size for file hashing
_CHUNK_SIZE = 64 * 1024


def fingerprint_bytes(data: bytes | str) -> str:
    """Return the hex digest of an in-memory byte sequence.

    Args:
        data: Raw bytes. A str is encoded as UTF-8 first.

    Returns:
        64-character hex SHA-256 digest.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.new(FINGERPRINT_ALGORITHM, data).hexdigest()


def fingerprint_file(path: str | Path) -> str:
    """Return the hex digest of a file's content.

    Args:
        path: File to hash.

    Returns:
        64-character hex SHA-256 digest.

    Raises:
        FileNotFoundError: If the file does not exist.
        OSError: If the file cannot be read.
    """
    digest = hashlib.new(FINGERPRINT_ALGORITHM)
    with open(path, "rb") as f:
        while chunk := f.read(_CHUNK_SIZE):
            digest.update(chunk)
    return digest.hexdigest()
