"""
Database Configuration and Connection Management

Provides engine construction, connection pooling and session management
with proper error handling and connection lifecycle management.

Design Considerations:
- Connection pooling for file and server databases
- Shared single connection for in-memory SQLite
- SQLAlchemy session management with commit/rollback/close
- Explicit construction so tests and tools can inject their own URL
"""

import logging
import os
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from src.storage.models import Base

logger = logging.getLogger(__name__)

DEFAULT_POOL_SIZE = 5
DEFAULT_MAX_OVERFLOW = 10
DEFAULT_POOL_TIMEOUT = 30


def create_db_engine(
    url: str,
    pool_size: int = DEFAULT_POOL_SIZE,
    max_overflow: int = DEFAULT_MAX_OVERFLOW,
    pool_timeout: int = DEFAULT_POOL_TIMEOUT,
    echo: bool = False
) -> Engine:
    """
    Create a SQLAlchemy engine appropriate for the given URL.

    SQLite connections disable the same-thread check because repository
    calls may run from worker threads. In-memory SQLite shares a single
    connection so every session sees the same database.
    """
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            return create_engine(url, connect_args=connect_args, poolclass=StaticPool, echo=echo)
        ensure_sqlite_directory(url)
        return create_engine(
            url,
            connect_args=connect_args,
            poolclass=QueuePool,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=pool_timeout,
            echo=echo
        )

    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=pool_timeout,
        echo=echo
    )


def ensure_sqlite_directory(url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    database = make_url(url).database
    directory = os.path.dirname(database) if database else ""
    if directory:
        os.makedirs(directory, exist_ok=True)


class Database:
    """
    Owns the engine and session factory for one database.

    Attributes:
        url: SQLAlchemy database URL
        engine: Configured engine
        SessionLocal: Session factory bound to the engine
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.engine = create_db_engine(url, echo=echo)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def init_db(self) -> None:
        """
        Create all tables that don't exist yet.

        Raises:
            RuntimeError: If schema creation fails
        """
        try:
            logger.info("Initializing database schema")
            Base.metadata.create_all(bind=self.engine)
            logger.info("Database schema initialized successfully")
        except Exception as e:
            logger.error(f"Database initialization failed: {str(e)}")
            raise RuntimeError(f"Failed to initialize database: {str(e)}")

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Provide a database session with commit on success, rollback on
        error and guaranteed close.

        Yields:
            SQLAlchemy session for database operations

        Raises:
            Exception: Re-raises any exception raised while the session is in use
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Database session error: {str(e)}")
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()
