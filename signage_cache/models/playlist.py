"""
Signage Cache - Playlist Models
Persisted playlists and their media items
"""

from sqlalchemy import (
    Column,
    String,
    Boolean,
    Integer,
    Float,
    Text,
    ForeignKey,
    Index,
)
from sqlalchemy.orm import relationship
from ..database import Base


class CachedPlaylist(Base):
    """
    Last-known-good copy of a remote playlist
    """

    __tablename__ = "playlist"

    # Primary key (assigned by the remote source)
    id = Column(String, primary_key=True)

    # Basic info
    name = Column(String, nullable=False)
    version = Column(Integer, nullable=False)
    is_emergency = Column(Boolean, nullable=False, default=False)

    # Display settings
    orientation = Column(String, nullable=False, default="landscape")
    resolution = Column(String, nullable=False, default="16x9")
    heartbeat_interval_seconds = Column(Integer, nullable=False, default=60)
    seamless_transition = Column(Boolean, nullable=False, default=True)
    cache_next_media = Column(Boolean, nullable=False, default=True)

    # Timestamps
    synced_at = Column(Float)

    # Relationships
    items = relationship(
        "CachedMediaItem",
        back_populates="playlist",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=lambda: [CachedMediaItem.order_index, CachedMediaItem.position],
    )

    def __repr__(self):
        return f"<CachedPlaylist(id={self.id}, name={self.name}, version={self.version})>"


class CachedMediaItem(Base):
    """
    Media item of a cached playlist (ids are only unique per playlist)
    """

    __tablename__ = "media_item"

    # Composite primary key
    playlist_id = Column(
        String, ForeignKey("playlist.id", ondelete="CASCADE"), primary_key=True
    )
    id = Column(String, primary_key=True)

    # Metadata
    name = Column(String, nullable=False)
    type = Column(String, nullable=False)  # MediaType value, e.g. 'VIDEO'
    duration_seconds = Column(Float, nullable=False, default=0)
    remote_url = Column(Text, nullable=False)
    hash = Column(String, nullable=False)

    # Ordering (position = insertion order, breaks order_index ties)
    order_index = Column(Integer, nullable=False)
    position = Column(Integer, nullable=False, default=0)

    # Dayparting
    start_time = Column(String)  # "HH:MM"
    end_time = Column(String)  # "HH:MM"
    days_of_week = Column(String)  # "1,2,3,4,5"

    # Local copy (NULL until downloaded)
    local_path = Column(String)
    size_bytes = Column(Integer)
    cached_at = Column(Float)
    last_accessed_at = Column(Float)

    # Relationships
    playlist = relationship("CachedPlaylist", back_populates="items")

    # Indexes
    __table_args__ = (
        Index("idx_media_item_order", "playlist_id", "order_index"),
        Index("idx_media_item_local_path", "local_path"),
    )

    def __repr__(self):
        return f"<CachedMediaItem(playlist={self.playlist_id}, id={self.id}, type={self.type})>"
