"""
Signage Cache - API Dependencies
Services bound to the running application
"""

from fastapi import Request

from ..services import MediaCacheService, PlayLogService


def get_cache(request: Request) -> MediaCacheService:
    return request.app.state.cache


def get_play_logs(request: Request) -> PlayLogService:
    return request.app.state.play_logs
