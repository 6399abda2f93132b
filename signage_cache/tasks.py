"""
Signage Cache - Celery Tasks
Scheduled cache maintenance
"""

from celery import Celery
import logging

from .config import settings

logger = logging.getLogger(__name__)

# Initialize Celery
celery_app = Celery(
    "signage_cache",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    beat_schedule={
        "prune-media-cache": {
            "task": "signage_cache.tasks.prune_cache_task",
            "schedule": settings.CLEANUP_INTERVAL_HOURS * 3600.0,
        },
    },
)


@celery_app.task(name="signage_cache.tasks.prune_cache_task")
def prune_cache_task(
    max_age_days: int = None,
    max_total_bytes: int = None,
    evict_active: bool = None,
) -> dict:
    """
    Periodic orphan/LRU cleanup of the media directory

    Args:
        max_age_days: Orphan retention (None = settings)
        max_total_bytes: Cache size limit (None = settings)
        evict_active: Allow evicting referenced content when over limit

    Returns:
        dict: Prune report, or the error that stopped the pass
    """
    from .database import init_database
    from .exceptions import CacheError
    from .services import MediaCacheService

    database = init_database()
    try:
        cache = MediaCacheService(database)
        report = cache.prune_stale(
            max_age_days=max_age_days,
            max_total_bytes=max_total_bytes,
            evict_active=evict_active,
        )
        return {"status": "success", **report.model_dump()}
    except CacheError as e:
        logger.error(f"Scheduled prune failed: {type(e).__name__}: {e}")
        return {"status": "error", "error": type(e).__name__, "message": str(e)}
    finally:
        database.dispose()
