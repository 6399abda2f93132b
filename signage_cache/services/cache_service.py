"""
Signage Cache - Media Cache Service
Durable last-known-good playlists and their local media copies
"""

from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union
import logging
import re
import time

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.orm import joinedload

from ..config import settings
from ..database import CacheDatabase
from ..exceptions import NotFoundError, StorageError, ValidationError
from ..models import CachedPlaylist, CachedMediaItem
from ..schemas.maintenance import PruneReport
from ..schemas.playlist import ID_PATTERN, MediaItem, Playlist
from ..utils.files import ensure_directory, get_file_info, normalize_path, touch_file
from ..utils.hash import file_matches_hash
from .locks import CacheLocks
from .mappers import item_to_domain, item_to_storage, playlist_to_domain, playlist_to_storage

logger = logging.getLogger(__name__)

_ID_RE = re.compile(ID_PATTERN)

# Columns describing a local copy, carried across syncs when the hash is unchanged
_LOCAL_COPY_FIELDS = ("local_path", "size_bytes", "cached_at", "last_accessed_at")


def _check_id(value: Any, what: str) -> str:
    if not isinstance(value, str) or not _ID_RE.match(value):
        raise ValidationError(f"Malformed {what} id: {value!r}")
    return value


class MediaCacheService:
    """
    Local media cache used by the sync and playback collaborators.

    Writes for one playlist are serialized and committed in a single
    transaction, so readers see either the previous or the new item set.
    """

    def __init__(
        self,
        database: CacheDatabase,
        locks: Optional[CacheLocks] = None,
        media_dir: Optional[Union[str, Path]] = None,
        hash_algorithm: Optional[str] = None,
    ):
        self.database = database
        self.locks = locks or CacheLocks()
        self.media_dir = Path(normalize_path(ensure_directory(media_dir or settings.STORAGE_BASE_PATH)))
        self.hash_algorithm = hash_algorithm or settings.HASH_ALGORITHM

    # --- Sync collaborator ---

    def upsert_playlist(
        self,
        playlist: Union[Playlist, Mapping[str, Any]],
        items: Optional[Sequence[Union[MediaItem, Mapping[str, Any]]]] = None,
    ) -> Playlist:
        """
        Replace the persisted playlist and its whole item set atomically

        Args:
            playlist: Playlist (or its dict form) from the remote source
            items: Item set; defaults to playlist.items

        Returns:
            The playlist as now persisted

        Raises:
            ValidationError: malformed id, duplicate item id, bad type/duration
            StorageError: database failure (previous state stays intact)
        """
        playlist = self._parse(Playlist, playlist)
        items = playlist.items if items is None else [self._parse(MediaItem, item) for item in items]
        self._validate_items(playlist, items)

        ordered = sorted(items, key=lambda item: item.order_index)
        incoming = [normalize_path(item.local_path) for item in ordered if item.local_path]

        with self.locks.claim(incoming), self.locks.playlist(playlist.id):
            with self.database.session() as db:
                previous: Dict[str, Dict[str, Any]] = {}
                existing = db.get(CachedPlaylist, playlist.id)

                if existing is not None:
                    for row in existing.items:
                        if row.local_path:
                            previous[row.id] = {
                                "hash": row.hash,
                                **{field: getattr(row, field) for field in _LOCAL_COPY_FIELDS},
                            }
                    if existing.version != playlist.version:
                        logger.info(
                            f"Playlist {playlist.id} version {existing.version} -> {playlist.version}, re-syncing items"
                        )
                    db.delete(existing)
                    db.flush()

                now = time.time()
                record = playlist_to_storage(playlist, synced_at=now)
                for position, item in enumerate(ordered):
                    row = item_to_storage(item, playlist.id, position)
                    self._attach_local_copy(row, previous.get(item.id), now)
                    record.items.append(row)

                db.add(record)
                with self.locks.commit_lock:
                    db.commit()

                result = playlist_to_domain(record, record.items)

        logger.info(f"Upserted playlist {playlist.id} v{playlist.version} with {len(ordered)} items")
        return result

    def delete_playlist(self, playlist_id: str) -> bool:
        """
        Delete a playlist and cascade its items (idempotent)

        Returns:
            True if a playlist was removed
        """
        _check_id(playlist_id, "playlist")

        with self.locks.playlist(playlist_id):
            with self.database.session() as db:
                record = db.get(CachedPlaylist, playlist_id)
                if record is None:
                    return False
                db.delete(record)
                with self.locks.commit_lock:
                    db.commit()

        logger.info(f"Deleted playlist {playlist_id}")
        return True

    def mark_item_cached(self, playlist_id: str, item_id: str, local_path: Union[str, Path], hash: str) -> MediaItem:
        """
        Record that an item's content was downloaded to local_path

        Raises:
            NotFoundError: item does not exist
            ValidationError: local file missing or hash empty
        """
        _check_id(playlist_id, "playlist")
        _check_id(item_id, "item")
        if not hash:
            raise ValidationError("A content hash is required")

        path = Path(local_path)
        normalized = normalize_path(path)

        with self.locks.claim([normalized]), self.locks.playlist(playlist_id):
            if not path.is_file():
                raise ValidationError(f"Local file does not exist: {path}")
            try:
                info = get_file_info(path)
            except OSError as e:
                raise StorageError(f"Cannot stat {path}: {e}") from e

            with self.database.session() as db:
                row = db.get(CachedMediaItem, (playlist_id, item_id))
                if row is None:
                    raise NotFoundError(f"Item {item_id} not found in playlist {playlist_id}")

                # The declared hash stays authoritative; a mismatching copy reads as not cached
                if not row.hash:
                    row.hash = hash
                elif row.hash.lower() != hash.lower():
                    logger.warning(
                        f"Item {playlist_id}/{item_id} downloaded with hash {hash}, remote declared {row.hash}; "
                        f"copy will not be used"
                    )

                now = time.time()
                row.local_path = normalized
                row.size_bytes = info["size"]
                row.cached_at = now
                row.last_accessed_at = now
                with self.locks.commit_lock:
                    db.commit()
                item = item_to_domain(row)

        logger.debug(f"Cached {playlist_id}/{item_id} at {item.local_path} ({info['size']} bytes)")
        return item

    def needs_sync(self, playlist_id: str, remote_version: int) -> bool:
        """True when the playlist is unknown or its version changed"""
        _check_id(playlist_id, "playlist")
        with self.database.session() as db:
            version = db.query(CachedPlaylist.version).filter(CachedPlaylist.id == playlist_id).scalar()
        return version is None or version != remote_version

    def pending_downloads(self, playlist_id: str) -> List[MediaItem]:
        """
        Downloadable items without a valid local copy, in playback order
        """
        playlist = self.get_playlist(playlist_id, verify_files=True)
        if playlist is None:
            raise NotFoundError(f"Playlist {playlist_id} not found")
        return [item for item in playlist.items if item.is_downloadable and not item.local_path]

    # --- Playback collaborator ---

    def get_playlist(self, playlist_id: str, verify_files: bool = False) -> Optional[Playlist]:
        """
        Get a playlist in domain form, items sorted by order_index

        Args:
            playlist_id: Playlist ID
            verify_files: Hash-check local copies; stale ones come back with
                local_path=None

        Returns:
            Playlist or None if not found
        """
        _check_id(playlist_id, "playlist")
        with self.database.session() as db:
            # Single joined SELECT: header and items come from one snapshot
            record = (
                db.query(CachedPlaylist)
                .options(joinedload(CachedPlaylist.items))
                .filter(CachedPlaylist.id == playlist_id)
                .first()
            )
            if record is None:
                return None
            playlist = playlist_to_domain(record, record.items)

        return self._verified(playlist) if verify_files else playlist

    def list_playlists(self, verify_files: bool = False) -> List[Playlist]:
        """All persisted playlists, emergency content first"""
        with self.database.session() as db:
            records = (
                db.query(CachedPlaylist)
                .options(joinedload(CachedPlaylist.items))
                .order_by(CachedPlaylist.is_emergency.desc(), CachedPlaylist.name, CachedPlaylist.id)
                .all()
            )
            playlists = [playlist_to_domain(record, record.items) for record in records]

        if verify_files:
            playlists = [self._verified(playlist) for playlist in playlists]
        return playlists

    def is_item_cached(self, playlist_id: str, item_id: str) -> bool:
        """
        True only if the item has a local copy whose content matches its hash

        Raises:
            NotFoundError: item does not exist
        """
        _check_id(playlist_id, "playlist")
        _check_id(item_id, "item")
        with self.database.session() as db:
            row = db.get(CachedMediaItem, (playlist_id, item_id))
            if row is None:
                raise NotFoundError(f"Item {item_id} not found in playlist {playlist_id}")
            local_path, expected = row.local_path, row.hash

        if not local_path:
            return False
        return self._content_matches(local_path, expected)

    def resolve_source(self, item: MediaItem) -> str:
        """Local copy when present on disk, otherwise the remote URL"""
        if item.is_playable_offline() and Path(item.local_path).is_file():
            return item.local_path
        return item.remote_url

    def touch_item(self, playlist_id: str, item_id: str) -> None:
        """
        Record playback access so LRU eviction keeps recently used content

        Raises:
            NotFoundError: item does not exist
        """
        _check_id(playlist_id, "playlist")
        _check_id(item_id, "item")
        with self.locks.playlist(playlist_id):
            with self.database.session() as db:
                row = db.get(CachedMediaItem, (playlist_id, item_id))
                if row is None:
                    raise NotFoundError(f"Item {item_id} not found in playlist {playlist_id}")
                now = time.time()
                row.last_accessed_at = now
                local_path = row.local_path
                with self.locks.commit_lock:
                    db.commit()

        if local_path:
            try:
                touch_file(local_path, now)
            except OSError as e:
                raise StorageError(f"Cannot touch {local_path}: {e}") from e

    # --- Maintenance ---

    def prune_stale(
        self,
        max_age_days: Optional[int] = None,
        max_total_bytes: Optional[int] = None,
        evict_active: Optional[bool] = None,
    ) -> PruneReport:
        """Orphan/LRU cleanup of the media directory, see PruneService"""
        from .prune_service import PruneService

        return PruneService(self).run(
            max_age_days=settings.MAX_FILE_AGE_DAYS if max_age_days is None else max_age_days,
            max_total_bytes=settings.MAX_CACHE_SIZE_BYTES if max_total_bytes is None else max_total_bytes,
            evict_active=settings.PRUNE_EVICT_ACTIVE if evict_active is None else evict_active,
        )

    # --- Helpers ---

    @staticmethod
    def _parse(model, value):
        if isinstance(value, model):
            return value
        try:
            return model.model_validate(value)
        except SchemaValidationError as e:
            raise ValidationError(f"Invalid {model.__name__.lower()}: {e}") from e

    @staticmethod
    def _validate_items(playlist: Playlist, items: Sequence[MediaItem]) -> None:
        _check_id(playlist.id, "playlist")
        seen = set()
        for item in items:
            _check_id(item.id, "item")
            if item.id in seen:
                raise ValidationError(f"Duplicate item id {item.id!r} in playlist {playlist.id}")
            seen.add(item.id)
            if item.playlist_id is not None and item.playlist_id != playlist.id:
                raise ValidationError(
                    f"Item {item.id} belongs to playlist {item.playlist_id}, not {playlist.id}"
                )
            if item.duration_seconds is None or item.duration_seconds < 0:
                raise ValidationError(f"Item {item.id} has a negative duration")

    @staticmethod
    def _attach_local_copy(row: CachedMediaItem, previous: Optional[Dict[str, Any]], now: float) -> None:
        if row.local_path:
            # Caller supplied a copy; account for it if it is on disk
            path = Path(row.local_path)
            if path.is_file():
                row.size_bytes = path.stat().st_size
                row.cached_at = now
                row.last_accessed_at = now
            return
        if previous and previous["hash"] == row.hash:
            for field in _LOCAL_COPY_FIELDS:
                setattr(row, field, previous[field])

    def _content_matches(self, local_path: str, expected: str) -> bool:
        try:
            return file_matches_hash(local_path, expected, self.hash_algorithm)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Cannot read {local_path}: {e}") from e

    def _verified(self, playlist: Playlist) -> Playlist:
        items = []
        for item in playlist.items:
            if item.local_path and not self._content_matches(item.local_path, item.hash):
                logger.warning(f"Stale local copy for {playlist.id}/{item.id}, treating as not cached")
                item = item.model_copy(update={"local_path": None})
            items.append(item)
        return playlist.model_copy(update={"items": items})
