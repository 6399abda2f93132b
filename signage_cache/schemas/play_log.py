"""
Signage Cache - Play Log Schemas
"""

from pydantic import BaseModel, Field
from typing import List, Optional

from .playlist import ID_PATTERN


class PlayLogCreate(BaseModel):
    """Schema for recording a playback"""

    playlist_id: str = Field(..., pattern=ID_PATTERN)
    media_id: str = Field(..., pattern=ID_PATTERN)
    duration_ms: int = Field(..., ge=0)
    started_at: Optional[float] = None  # Unix timestamp, defaults to now


class PlayLogResponse(BaseModel):
    """Schema for play log response"""

    id: int
    playlist_id: str
    media_id: str
    screen_id: str
    duration_ms: int
    started_at: float
    status: str
    signature: Optional[str] = None

    class Config:
        from_attributes = True


class PlayLogAcknowledge(BaseModel):
    """Ids of logs already flushed to the remote side"""

    ids: List[int] = Field(default_factory=list)
