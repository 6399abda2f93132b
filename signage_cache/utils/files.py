"""
Signage Cache - File Utilities
Media directory bookkeeping
"""

import os
import time
from pathlib import Path
from typing import Dict, Any, Iterator, Optional


def ensure_directory(path: str | Path) -> Path:
    """
    Ensure directory exists, create if it doesn't

    Args:
        path: Directory path

    Returns:
        Path object
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def normalize_path(path: str | Path) -> str:
    """Absolute, symlink-free form used to compare stored paths"""
    return str(Path(path).expanduser().resolve())


def get_file_info(file_path: str | Path) -> Dict[str, Any]:
    """
    Get file information (size and timestamps)

    Args:
        file_path: Path to file

    Returns:
        Dictionary with file information
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    stat = file_path.stat()

    return {
        "size": stat.st_size,
        "extension": file_path.suffix.lstrip("."),
        "modified_at": stat.st_mtime,
        "accessed_at": stat.st_atime,
    }


def iter_files(directory: str | Path) -> Iterator[Path]:
    """Yield regular files below directory (missing directory yields nothing)"""
    directory = Path(directory)
    if not directory.is_dir():
        return
    for root, _dirs, names in os.walk(directory):
        for name in names:
            path = Path(root) / name
            if path.is_file():
                yield path


def directory_size(directory: str | Path) -> int:
    """Total bytes of the regular files below directory"""
    return sum(path.stat().st_size for path in iter_files(directory))


def touch_file(file_path: str | Path, timestamp: Optional[float] = None) -> bool:
    """
    Bump a file's mtime so LRU eviction sees it as recently used

    Returns:
        False if the file does not exist
    """
    file_path = Path(file_path)
    if not file_path.exists():
        return False
    timestamp = timestamp or time.time()
    os.utime(file_path, (timestamp, timestamp))
    return True


def delete_file(file_path: str | Path) -> int:
    """
    Delete a file

    Returns:
        Bytes freed (0 if it was already gone)
    """
    file_path = Path(file_path)
    try:
        size = file_path.stat().st_size
        file_path.unlink()
    except FileNotFoundError:
        return 0
    return size
