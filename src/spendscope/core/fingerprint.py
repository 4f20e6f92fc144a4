"""
Content fingerprinting for statement deduplication.

The digest is a pure function of the file bytes, so a re-upload of the
same statement under another filename maps to the same dedup key. The
storage layer owns the actual "already imported" check.
"""

import hashlib
import logging
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

# Read size for hashing files from disk
_CHUNK_SIZE = 1024 * 1024


def compute_file_hash(data: bytes) -> str:
    """
    Compute the SHA-256 hex digest of raw file content.

    Args:
        data: File bytes

    Returns:
        64-character lowercase hex digest
    """
    return hashlib.sha256(bytes(data)).hexdigest()


def hash_file(file_path: Union[str, Path]) -> str:
    """
    Compute the content hash of a file on disk.

    Produces the same digest as compute_file_hash() on the file's bytes.
    """
    file_path = Path(file_path)
    digest = hashlib.sha256()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    logger.debug(f"Hashed {file_path.name}")
    return digest.hexdigest()
