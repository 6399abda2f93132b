"""
Signage Cache - Utilities
Helper functions and utilities
"""

from .hash import calculate_file_hash, calculate_string_hash, file_matches_hash
from .files import (
    ensure_directory,
    normalize_path,
    get_file_info,
    iter_files,
    directory_size,
    touch_file,
    delete_file,
)
from .schedule import is_within_schedule

__all__ = [
    "calculate_file_hash",
    "calculate_string_hash",
    "file_matches_hash",
    "ensure_directory",
    "normalize_path",
    "get_file_info",
    "iter_files",
    "directory_size",
    "touch_file",
    "delete_file",
    "is_within_schedule",
]
