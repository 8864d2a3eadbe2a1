"""Database Session Manager — async engine, unit-of-work sessions, error mapping.

Invariants:
    - A session never commits on its own; callers commit explicitly, and
      anything uncommitted is rolled back when the session closes
    - Every SQLAlchemy failure inside a session leaves as DatabaseError
      (503, retryable), tagged with the operation class that failed
    - Sessions never expire loaded attributes on commit (async: no lazy loads)

Design Decisions:
    - PostgreSQL (asyncpg) gets a sized, pre-pinged, recycled pool; SQLite
      (aiosqlite, tests and local runs) gets a busy timeout instead, so
      concurrent writers on one file wait rather than fail with "locked"
    - Singleton db_manager initialized in the FastAPI lifespan, handed to the
      faucet services as `db_manager.session` (the SessionScope)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine,
)

from faucet.core.errors import DatabaseError

logger = logging.getLogger(__name__)

_SQLITE_BUSY_TIMEOUT_SECONDS = 15

# Most specific first: IntegrityError and OperationalError are DBAPIErrors
_FAILURE_OPERATIONS = (
    (IntegrityError, "constraint"),
    (OperationalError, "connection"),
    (DBAPIError, "driver"),
    (SQLAlchemyError, "orm"),
)


def _engine_options(database_url: str, pool_size: int, max_overflow: int) -> dict:
    if database_url.startswith("sqlite"):
        return {"connect_args": {"timeout": _SQLITE_BUSY_TIMEOUT_SECONDS}}
    return {
        "pool_pre_ping": True,
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_recycle": 3600,
    }


def _operation_for(exc: SQLAlchemyError) -> str:
    for exc_type, operation in _FAILURE_OPERATIONS:
        if isinstance(exc, exc_type):
            return operation
    return "orm"


class DatabaseSessionManager:
    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self._session_factory = async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False,
        )

    @classmethod
    def from_url(
        cls, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ) -> "DatabaseSessionManager":
        return cls(create_async_engine(
            database_url,
            **_engine_options(database_url, pool_size, max_overflow),
        ))

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """One unit of work; SQLAlchemy failures surface as DatabaseError."""
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            operation = _operation_for(e)
            logger.error(
                f"Database {operation} failure: {e}",
                extra={"error_code": "DATABASE_ERROR"},
            )
            raise DatabaseError(type(e).__name__, operation) from e
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """Readiness probe: can we round-trip a trivial query?"""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
        except (DatabaseError, OSError):
            return False
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()


# Singleton (initialized on startup)
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager.from_url(database_url, **kwargs)
    return db_manager


def get_db_manager() -> DatabaseSessionManager:
    if not db_manager:
        raise RuntimeError("Database not initialized")
    return db_manager


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: read-only request session (wallet lookup)."""
    async with get_db_manager().session() as session:
        yield session
