"""
Signage Cache - Maintenance API
"""

from fastapi import APIRouter, Depends

from ...schemas.maintenance import PruneReport, PruneRequest
from ...services import MediaCacheService
from ..dependencies import get_cache

router = APIRouter()


@router.post("/maintenance/prune", response_model=PruneReport)
def prune_cache(request: PruneRequest, cache: MediaCacheService = Depends(get_cache)):
    """Run one prune pass (unset fields fall back to settings)"""
    return cache.prune_stale(
        max_age_days=request.max_age_days,
        max_total_bytes=request.max_total_bytes,
        evict_active=request.evict_active,
    )
