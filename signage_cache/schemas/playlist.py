"""
Signage Cache - Playlist Schemas
Domain form of playlists and media items
"""

from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional

from ..utils.schedule import is_within_schedule

# No whitespace, no path separators
ID_PATTERN = r"^[^\s/\\]{1,128}$"
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class MediaType(str, Enum):
    """Closed set of renderable media types"""

    VIDEO = "VIDEO"
    IMAGE = "IMAGE"
    WEB = "WEB"
    WEB_WIDGET = "WEB_WIDGET"
    EXTERNAL_LINK = "EXTERNAL_LINK"
    STREAM_RTSP = "STREAM_RTSP"
    STREAM_HLS = "STREAM_HLS"


# Only these are fetched to local storage; web content is rendered live
DOWNLOADABLE_TYPES = frozenset({MediaType.VIDEO, MediaType.IMAGE})
STREAM_TYPES = frozenset({MediaType.STREAM_RTSP, MediaType.STREAM_HLS})
SELF_TIMED_TYPES = frozenset({MediaType.VIDEO}) | STREAM_TYPES


class MediaItem(BaseModel):
    """One unit of content with playback metadata and cache state"""

    id: str = Field(..., pattern=ID_PATTERN)
    playlist_id: Optional[str] = Field(None, pattern=ID_PATTERN)
    name: str = ""
    type: MediaType
    duration_seconds: float = Field(0, ge=0)
    remote_url: str = ""
    local_path: Optional[str] = None
    hash: str = ""
    order_index: int = 0

    # Dayparting
    start_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    days_of_week: Optional[str] = Field(None, pattern=r"^[1-7](,[1-7])*$")

    @property
    def is_downloadable(self) -> bool:
        return self.type in DOWNLOADABLE_TYPES

    @property
    def is_self_timed(self) -> bool:
        return self.type in SELF_TIMED_TYPES

    def is_playable_offline(self) -> bool:
        """Streams never are; everything else once a local copy exists"""
        if self.type in STREAM_TYPES:
            return False
        return bool(self.local_path)

    def should_play(self, now: Optional[datetime] = None) -> bool:
        return is_within_schedule(self.start_time, self.end_time, self.days_of_week, now)


class Playlist(BaseModel):
    """Named, versioned, ordered collection of media items"""

    id: str = Field(..., pattern=ID_PATTERN)
    name: str = ""
    version: int = Field(0, ge=0)
    is_emergency: bool = False
    items: List[MediaItem] = Field(default_factory=list)

    # Display settings
    orientation: str = "landscape"
    resolution: str = "16x9"
    heartbeat_interval_seconds: int = Field(60, ge=1)
    seamless_transition: bool = True
    cache_next_media: bool = True

    @model_validator(mode="after")
    def _order_items(self):
        # Stable sort: equal order_index keeps insertion order
        items = [
            item if item.playlist_id is not None else item.model_copy(update={"playlist_id": self.id})
            for item in self.items
        ]
        self.items = sorted(items, key=lambda item: item.order_index)
        return self

    def is_valid(self) -> bool:
        return len(self.items) > 0

    def playable_items(self, now: Optional[datetime] = None) -> List[MediaItem]:
        """Items whose dayparting window is open at `now`"""
        return [item for item in self.items if item.should_play(now)]


class MarkCachedRequest(BaseModel):
    """Schema for reporting a finished download"""

    local_path: str = Field(..., min_length=1)
    hash: str = Field(..., min_length=1)
