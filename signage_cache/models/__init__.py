"""
Signage Cache - Database Models
SQLAlchemy models for the local cache
"""

from .playlist import CachedPlaylist, CachedMediaItem
from .play_log import CachedPlayLog

__all__ = [
    "CachedPlaylist",
    "CachedMediaItem",
    "CachedPlayLog",
]
