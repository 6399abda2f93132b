"""
Signage Cache - Pydantic Schemas
Domain models and request/response validation
"""

from .playlist import (
    MediaType,
    MediaItem,
    Playlist,
    MarkCachedRequest,
    DOWNLOADABLE_TYPES,
    STREAM_TYPES,
)
from .maintenance import PruneRequest, PruneReport
from .play_log import PlayLogCreate, PlayLogResponse, PlayLogAcknowledge

__all__ = [
    "MediaType",
    "MediaItem",
    "Playlist",
    "MarkCachedRequest",
    "DOWNLOADABLE_TYPES",
    "STREAM_TYPES",
    "PruneRequest",
    "PruneReport",
    "PlayLogCreate",
    "PlayLogResponse",
    "PlayLogAcknowledge",
]
