"""
Signage Cache - FastAPI Application
Local API over the media cache for the player and sync workers
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional, Union
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .database import init_database
from .exceptions import CacheError, ConflictError, NotFoundError, StorageError, ValidationError
from .services import MediaCacheService, PlayLogService

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

ERROR_STATUS = (
    (NotFoundError, 404),
    (ValidationError, 422),
    (ConflictError, 409),
    (StorageError, 503),
)


def create_app(
    database_url: Optional[str] = None,
    media_dir: Optional[Union[str, Path]] = None,
) -> FastAPI:
    """
    Build the application; the database handle lives for the lifespan
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info(f"Starting {settings.APP_NAME} v{settings.VERSION}")
        database = init_database(database_url)
        cache = MediaCacheService(database, media_dir=media_dir)
        app.state.database = database
        app.state.cache = cache
        app.state.play_logs = PlayLogService(cache)
        logger.info(f"Media directory: {cache.media_dir}")

        yield

        # Shutdown
        database.dispose()
        logger.info(f"Shutting down {settings.APP_NAME}")

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.VERSION,
        description="Offline media cache for digital signage players",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(CacheError)
    async def cache_error_handler(request: Request, exc: CacheError):
        status_code = next((code for kind, code in ERROR_STATUS if isinstance(exc, kind)), 500)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(
            status_code=status_code,
            content={"detail": str(exc), "error": type(exc).__name__},
        )

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": settings.VERSION,
        }

    # API v1 routes
    from .api.v1 import playlists, play_logs, maintenance

    app.include_router(playlists.router, prefix="/api/v1", tags=["playlists"])
    app.include_router(play_logs.router, prefix="/api/v1", tags=["play-logs"])
    app.include_router(maintenance.router, prefix="/api/v1", tags=["maintenance"])

    return app


app = create_app()
