"""
Signage Cache - Services
Business logic and service layer
"""

from .locks import CacheLocks
from .cache_service import MediaCacheService
from .prune_service import PruneService
from .play_log_service import PlayLogService

__all__ = [
    "CacheLocks",
    "MediaCacheService",
    "PruneService",
    "PlayLogService",
]
