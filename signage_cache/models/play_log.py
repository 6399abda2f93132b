"""
Signage Cache - Play Log Model
Signed proof-of-play records waiting to be flushed
"""

from sqlalchemy import Column, String, Integer, Float, Index
from ..database import Base


class CachedPlayLog(Base):
    """
    One playback of a media item on this screen
    """

    __tablename__ = "play_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    playlist_id = Column(String, nullable=False)
    media_id = Column(String, nullable=False)
    screen_id = Column(String, nullable=False)
    duration_ms = Column(Integer, nullable=False)
    started_at = Column(Float, nullable=False)  # Unix timestamp
    status = Column(String, nullable=False, default="completed")
    signature = Column(String)  # hash(screen_id|media_id|started_at_ms|secret)

    __table_args__ = (Index("idx_play_logs_started_at", "started_at"),)

    def __repr__(self):
        return f"<CachedPlayLog(id={self.id}, media={self.media_id}, status={self.status})>"
