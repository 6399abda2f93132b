"""
Signage Cache - Hash Utilities
File and string fingerprints
"""

import hashlib
from pathlib import Path

from ..config import settings


def calculate_file_hash(file_path: str | Path, algorithm: str | None = None) -> str:
    """
    Calculate hash of a file

    Args:
        file_path: Path to the file
        algorithm: Hash algorithm (sha256, sha1, md5), defaults to settings

    Returns:
        Hex digest of the file hash
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    hash_func = hashlib.new(algorithm or settings.HASH_ALGORITHM)

    # Read file in chunks to handle large videos
    chunk_size = 8192
    with open(file_path, "rb") as f:
        while chunk := f.read(chunk_size):
            hash_func.update(chunk)

    return hash_func.hexdigest()


def calculate_string_hash(text: str, algorithm: str | None = None) -> str:
    """
    Calculate hash of a string

    Args:
        text: Text to hash
        algorithm: Hash algorithm, defaults to settings

    Returns:
        Hex digest of the string hash
    """
    hash_func = hashlib.new(algorithm or settings.HASH_ALGORITHM)
    hash_func.update(text.encode("utf-8"))
    return hash_func.hexdigest()


def file_matches_hash(file_path: str | Path, expected: str, algorithm: str | None = None) -> bool:
    """
    True when the file exists and hashes to `expected`
    (hex digests compare case-insensitively)
    """
    file_path = Path(file_path)
    if not expected or not file_path.is_file():
        return False
    return calculate_file_hash(file_path, algorithm) == expected.lower()
