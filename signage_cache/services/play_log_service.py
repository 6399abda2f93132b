"""
Signage Cache - Play Log Service
Offline buffer of signed proof-of-play records
"""

from typing import List, Optional, Sequence
import logging
import re
import time

from ..config import settings
from ..exceptions import CacheError, NotFoundError, ValidationError
from ..models import CachedPlayLog
from ..schemas.playlist import ID_PATTERN
from ..utils.hash import calculate_string_hash

logger = logging.getLogger(__name__)

_ID_RE = re.compile(ID_PATTERN)


def sign_play(screen_id: str, media_id: str, started_at: float, secret: str) -> str:
    """hash(screen_id|media_id|started_at_ms|secret)"""
    return calculate_string_hash(f"{screen_id}|{media_id}|{int(started_at * 1000)}|{secret}")


class PlayLogService:
    """Service for buffering play logs until the remote side acknowledges them"""

    def __init__(self, cache, screen_id: Optional[str] = None, secret: Optional[str] = None):
        self.cache = cache
        self.database = cache.database
        self.screen_id = screen_id or settings.SCREEN_ID
        self.secret = secret if secret is not None else settings.PLAY_LOG_SECRET

    def record_play(
        self,
        playlist_id: str,
        media_id: str,
        duration_ms: int,
        started_at: Optional[float] = None,
        status: str = "completed",
    ) -> CachedPlayLog:
        """
        Store a proof of play and mark the item as recently used

        Raises:
            ValidationError: blank or malformed ids, negative duration
        """
        if not media_id or not media_id.strip() or media_id == "null":
            raise ValidationError("Play log rejected: media id is blank")
        for value, what in ((playlist_id, "playlist"), (media_id, "media")):
            if not isinstance(value, str) or not _ID_RE.match(value):
                raise ValidationError(f"Play log rejected: malformed {what} id {value!r}")
        if duration_ms < 0:
            raise ValidationError("Play log rejected: negative duration")

        started_at = time.time() if started_at is None else started_at
        log = CachedPlayLog(
            playlist_id=playlist_id,
            media_id=media_id,
            screen_id=self.screen_id,
            duration_ms=duration_ms,
            started_at=started_at,
            status=status,
            signature=sign_play(self.screen_id, media_id, started_at, self.secret) if self.secret else None,
        )

        with self.database.session() as db:
            db.add(log)
            db.commit()
            db.refresh(log)

        # Log is committed from here on
        try:
            self.cache.touch_item(playlist_id, media_id)
        except NotFoundError:
            # Item dropped by a sync while it was on screen; the log still counts
            logger.debug(f"Play log {log.id} refers to removed item {playlist_id}/{media_id}")
        except CacheError as e:
            logger.warning(f"Could not mark {playlist_id}/{media_id} as recently used: {e}")

        logger.debug(f"Recorded play of {playlist_id}/{media_id} ({duration_ms} ms)")
        return log

    def pending_logs(self, limit: int = 50) -> List[CachedPlayLog]:
        """Oldest logs first"""
        with self.database.session() as db:
            return (
                db.query(CachedPlayLog)
                .order_by(CachedPlayLog.started_at.asc(), CachedPlayLog.id.asc())
                .limit(limit)
                .all()
            )

    def acknowledge(self, ids: Sequence[int]) -> int:
        """Delete logs the remote side has stored"""
        if not ids:
            return 0
        with self.database.session() as db:
            count = (
                db.query(CachedPlayLog)
                .filter(CachedPlayLog.id.in_(list(ids)))
                .delete(synchronize_session=False)
            )
            db.commit()
        logger.info(f"Acknowledged {count} play logs")
        return count

    def delete_oldest(self, count: int) -> int:
        """Drop the oldest logs when storage runs short"""
        if count <= 0:
            return 0
        with self.database.session() as db:
            oldest = [
                row.id
                for row in db.query(CachedPlayLog.id)
                .order_by(CachedPlayLog.started_at.asc(), CachedPlayLog.id.asc())
                .limit(count)
            ]
            deleted = (
                db.query(CachedPlayLog)
                .filter(CachedPlayLog.id.in_(oldest))
                .delete(synchronize_session=False)
            )
            db.commit()
        logger.warning(f"Dropped {deleted} oldest play logs")
        return deleted
