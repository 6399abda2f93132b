"""
Signage Cache - Database Configuration
SQLite connection handle and session management
"""

from contextlib import contextmanager
from typing import Iterator, Optional
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import settings
from .exceptions import StorageError

logger = logging.getLogger(__name__)

# Base class for models
Base = declarative_base()


def _is_memory_url(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


class CacheDatabase:
    """
    Lifecycle-managed database handle.

    Created by init_database() at process start (FastAPI lifespan, Celery
    task, tests) and released with dispose() on shutdown.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.is_sqlite = url.startswith("sqlite")

        engine_kwargs = {"echo": echo}
        if self.is_sqlite:
            engine_kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
            if _is_memory_url(url):
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs.update(pool_pre_ping=True, pool_size=10, max_overflow=20)

        self.engine = create_engine(url, **engine_kwargs)

        if self.is_sqlite:
            event.listen(self.engine, "connect", self._configure_sqlite)

        # Session factory
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine,
        )

    def _configure_sqlite(self, dbapi_connection, connection_record):
        """Foreign keys for cascades, WAL so readers see committed snapshots"""
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        if not _is_memory_url(self.url):
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.close()

    def create_all(self) -> None:
        from . import models  # noqa

        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to create schema: {e}") from e

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Open a session; database failures surface as StorageError and
        anything uncommitted is rolled back.
        """
        db = self.SessionLocal()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(f"Database error: {e}") from e
        finally:
            db.close()

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Database connections released")


def init_database(url: Optional[str] = None, create_tables: bool = True) -> CacheDatabase:
    """
    Initialize database handle (and create tables)
    """
    database = CacheDatabase(url or settings.DATABASE_URL, echo=settings.DEBUG)
    if create_tables:
        database.create_all()
    logger.info(f"Database initialized: {database.url.split('@')[-1]}")
    return database
