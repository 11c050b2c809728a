"""
Database Service - core infrastructure layer.

Purpose
-------
Centralized async database engine and session management. Every SQL store
in `longevity.modules` borrows sessions from here.

Responsibilities
----------------
- Initialize and manage a single AsyncEngine with connection pooling
- Provide async context managers for read sessions and atomic transactions
- Enforce transaction discipline: commit on success, rollback on exception
- Expose a `SELECT 1` health check

Non-Responsibilities
--------------------
- Schema migrations (handled outside this package)
- Domain logic or ranking rules

Architecture Notes
------------------
- `get_transaction()` is the interface for all state mutations. Stores
  never call `session.commit()` themselves.
- NullPool is used in the testing environment so containers can be torn down
  between sessions without dangling connections.
- PostgreSQL sessions get a `statement_timeout` so a stuck rank pass fails
  instead of holding row locks indefinitely.

Usage Example
-------------
>>> await DatabaseService.initialize()
>>> async with DatabaseService.get_transaction() as session:
...     session.add(ActivityEvent(...))
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from longevity.core.config.config import Config
from longevity.core.database.base import Base
from longevity.core.logging.logger import get_logger

logger = get_logger(__name__)

STATEMENT_TIMEOUT_MS = 30_000


class DatabaseInitializationError(RuntimeError):
    """Raised when database engine initialization fails."""


class DatabaseNotInitializedError(RuntimeError):
    """Raised when database operations are attempted before initialization."""


class DatabaseService:
    """
    Centralized async database engine and session management.

    Public API
    ----------
    - initialize() / shutdown()
    - get_session() -> session without automatic commit
    - get_transaction() -> atomic write transaction
    - create_schema() -> create all tables (tests and local bootstrap)
    - health_check()
    """

    _engine: Optional[AsyncEngine] = None
    _session_factory: Optional[async_sessionmaker[AsyncSession]] = None
    _is_postgres: bool = False
    _init_lock: asyncio.Lock = asyncio.Lock()

    # ========================================================================
    # Initialization & Shutdown
    # ========================================================================

    @classmethod
    async def initialize(cls, database_url: Optional[str] = None) -> None:
        """
        Initialize the engine and session factory (idempotent).

        Args:
            database_url: Override for `Config.DATABASE_URL`.

        Raises:
            DatabaseInitializationError: If the URL is missing or engine creation fails.
        """
        async with cls._init_lock:
            if cls._engine is not None:
                logger.debug("DatabaseService already initialized; skipping")
                return

            url = database_url or Config.DATABASE_URL
            if not url:
                raise DatabaseInitializationError("DATABASE_URL must be configured")

            engine_kwargs: dict[str, Any] = {"echo": Config.DATABASE_ECHO}
            if Config.is_testing():
                engine_kwargs["poolclass"] = NullPool
            else:
                engine_kwargs.update(
                    pool_size=Config.DATABASE_POOL_SIZE,
                    max_overflow=Config.DATABASE_MAX_OVERFLOW,
                    pool_recycle=Config.DATABASE_POOL_RECYCLE,
                )

            try:
                cls._engine = create_async_engine(url, **engine_kwargs)
            except Exception as exc:
                logger.error(
                    "DatabaseService initialization failed",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                    exc_info=True,
                )
                raise DatabaseInitializationError(
                    f"Database initialization failed: {exc}"
                ) from exc

            cls._session_factory = async_sessionmaker(
                bind=cls._engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
            cls._is_postgres = url.startswith(("postgresql://", "postgresql+asyncpg://"))

            logger.info(
                "DatabaseService initialized",
                extra={"url_scheme": url.split(":", 1)[0], "testing": Config.is_testing()},
            )

    @classmethod
    async def shutdown(cls) -> None:
        async with cls._init_lock:
            if cls._engine is None:
                return

            try:
                await cls._engine.dispose()
                logger.info("DatabaseService shutdown complete")
            finally:
                cls._engine = None
                cls._session_factory = None

    @classmethod
    async def create_schema(cls) -> None:
        """Create all mapped tables. Intended for tests and local bootstrap."""
        engine = cls._require_engine()
        # Model modules must be imported so their tables register on Base.metadata.
        import longevity.database.models  # noqa: F401

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @classmethod
    async def drop_schema(cls) -> None:
        engine = cls._require_engine()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    # ========================================================================
    # Health Check
    # ========================================================================

    @classmethod
    async def health_check(cls) -> bool:
        """Return True when the database answers `SELECT 1`; never raises."""
        if cls._engine is None:
            logger.warning("Health check called on uninitialized DatabaseService")
            return False

        start = time.perf_counter()
        try:
            async with cls._engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (OperationalError, DBAPIError) as exc:
            logger.warning(
                "Database health check failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            return False
        finally:
            logger.debug(
                "Database health check completed",
                extra={"duration_ms": (time.perf_counter() - start) * 1000.0},
            )

    # ========================================================================
    # Session & Transaction Context Managers
    # ========================================================================

    @classmethod
    def _require_engine(cls) -> AsyncEngine:
        if cls._engine is None or cls._session_factory is None:
            raise DatabaseNotInitializedError(
                "DatabaseService must be initialized before use. "
                "Call DatabaseService.initialize() during startup."
            )
        return cls._engine

    @classmethod
    async def _apply_statement_timeout(cls, session: AsyncSession) -> None:
        if cls._is_postgres:
            await session.execute(text(f"SET LOCAL statement_timeout = {STATEMENT_TIMEOUT_MS}"))

    @classmethod
    @asynccontextmanager
    async def get_session(cls) -> AsyncGenerator[AsyncSession, None]:
        """
        Session without automatic commit; use for reads.

        For writes prefer `get_transaction()`.
        """
        cls._require_engine()
        assert cls._session_factory is not None

        async with cls._session_factory() as session:
            await cls._apply_statement_timeout(session)
            yield session

    @classmethod
    @asynccontextmanager
    async def get_transaction(cls) -> AsyncGenerator[AsyncSession, None]:
        """
        Session wrapped in an atomic transaction.

        Commits when the block exits normally, rolls back and re-raises on
        any exception.
        """
        cls._require_engine()
        assert cls._session_factory is not None

        start = time.perf_counter()
        async with cls._session_factory() as session:
            try:
                await cls._apply_statement_timeout(session)
                yield session
                await session.commit()
                logger.debug(
                    "Database transaction committed",
                    extra={"duration_ms": (time.perf_counter() - start) * 1000.0},
                )
            except Exception as exc:
                await session.rollback()
                logger.warning(
                    "Database transaction rolled back",
                    extra={
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                        "duration_ms": (time.perf_counter() - start) * 1000.0,
                    },
                )
                raise
