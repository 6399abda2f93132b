"""
Signage Cache - Mappers
Pure translation between domain schemas and storage rows
"""

from typing import Iterable, Optional

from pydantic import ValidationError as SchemaValidationError

from ..exceptions import ValidationError
from ..models import CachedPlaylist, CachedMediaItem
from ..schemas.playlist import MediaItem, MediaType, Playlist


def parse_media_type(value) -> MediaType:
    """
    Strict MediaType lookup; unknown names are rejected, never defaulted
    """
    if isinstance(value, MediaType):
        return value
    try:
        return MediaType(value)
    except ValueError:
        raise ValidationError(f"Unrecognized media type: {value!r}") from None


# --- Domain -> Storage ---


def playlist_to_storage(playlist: Playlist, synced_at: Optional[float] = None) -> CachedPlaylist:
    return CachedPlaylist(
        id=playlist.id,
        name=playlist.name,
        version=playlist.version,
        is_emergency=playlist.is_emergency,
        orientation=playlist.orientation,
        resolution=playlist.resolution,
        heartbeat_interval_seconds=playlist.heartbeat_interval_seconds,
        seamless_transition=playlist.seamless_transition,
        cache_next_media=playlist.cache_next_media,
        synced_at=synced_at,
    )


def item_to_storage(item: MediaItem, playlist_id: str, position: int = 0) -> CachedMediaItem:
    return CachedMediaItem(
        playlist_id=playlist_id,
        id=item.id,
        name=item.name,
        type=parse_media_type(item.type).value,
        duration_seconds=item.duration_seconds,
        remote_url=item.remote_url,
        local_path=item.local_path,
        hash=item.hash,
        order_index=item.order_index,
        position=position,
        start_time=item.start_time,
        end_time=item.end_time,
        days_of_week=item.days_of_week,
    )


# --- Storage -> Domain ---


def item_to_domain(row: CachedMediaItem) -> MediaItem:
    try:
        return MediaItem(
            id=row.id,
            playlist_id=row.playlist_id,
            name=row.name,
            type=parse_media_type(row.type),
            duration_seconds=row.duration_seconds,
            remote_url=row.remote_url,
            local_path=row.local_path,
            hash=row.hash,
            order_index=row.order_index,
            start_time=row.start_time,
            end_time=row.end_time,
            days_of_week=row.days_of_week,
        )
    except SchemaValidationError as e:
        raise ValidationError(f"Stored item {row.playlist_id}/{row.id} is invalid: {e}") from e


def playlist_to_domain(row: CachedPlaylist, items: Iterable[CachedMediaItem]) -> Playlist:
    ordered = sorted(items, key=lambda item: (item.order_index, item.position))
    try:
        return Playlist(
            id=row.id,
            name=row.name,
            version=row.version,
            is_emergency=row.is_emergency,
            items=[item_to_domain(item) for item in ordered],
            orientation=row.orientation,
            resolution=row.resolution,
            heartbeat_interval_seconds=row.heartbeat_interval_seconds,
            seamless_transition=row.seamless_transition,
            cache_next_media=row.cache_next_media,
        )
    except SchemaValidationError as e:
        raise ValidationError(f"Stored playlist {row.id} is invalid: {e}") from e
