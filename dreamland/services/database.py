"""Async SQLAlchemy engine and session lifecycle for the booking database."""

import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import AsyncAdaptedQueuePool, NullPool

from dreamland.models.base import Base

logger = structlog.get_logger(__name__)

# Hosted Postgres providers hand out driverless URLs
_ASYNC_DRIVER_PREFIXES = {
    "postgres://": "postgresql+asyncpg://",
    "postgresql://": "postgresql+asyncpg://",
}


def to_async_url(database_url: str) -> str:
    """Rewrite a plain Postgres URL to use asyncpg; other URLs pass through."""
    for prefix, replacement in _ASYNC_DRIVER_PREFIXES.items():
        if database_url.startswith(prefix):
            return replacement + database_url[len(prefix):]
    return database_url


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores REFERENCES clauses unless asked, per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseManager:
    """Owns the async engine and hands out unit-of-work sessions.

    SQLite (tests, local development) runs without a pool so that every
    session gets its own connection; Postgres uses a pre-pinged queue pool.
    Schema changes go through Alembic, so there is no sync engine.
    """

    def __init__(self, database_url: str, pool_size: int = 10, max_overflow: int = 10):
        """Initialize database manager.

        Args:
            database_url: ``postgresql://…`` or ``sqlite+aiosqlite:///path``
            pool_size: Persistent Postgres connections
            max_overflow: Extra connections allowed under load
        """
        self.database_url = to_async_url(database_url)
        self.pool_size = pool_size
        self.max_overflow = max_overflow

        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine | None:
        return self._engine

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def _engine_options(self) -> dict:
        if self.is_sqlite:
            return {"poolclass": NullPool}
        return {
            "poolclass": AsyncAdaptedQueuePool,
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
            "pool_pre_ping": True,
        }

    async def initialize_async(self) -> None:
        """Create the engine and session factory once."""
        if self._engine is not None:
            return

        self._engine = create_async_engine(self.database_url, echo=False, **self._engine_options())
        if self.is_sqlite:
            event.listen(self._engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )
        logger.info("database_initialized", backend="sqlite" if self.is_sqlite else "postgresql")

    @asynccontextmanager
    async def get_async_session(self) -> AsyncGenerator[AsyncSession, None]:
        """One unit of work: commit on a clean exit, roll back on any error.

        Services may commit earlier themselves (for instance before sending
        emails); the final commit is then a no-op.

        Raises:
            RuntimeError: If :meth:`initialize_async` has not run

        Example:
            async with db_manager.get_async_session() as session:
                session.add(InquiryDB(full_name="Jane", email="jane@example.com"))
        """
        if self._session_factory is None:
            raise RuntimeError("Database not initialized. Call initialize_async() first.")

        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def _run_metadata(self, operation) -> None:
        await self.initialize_async()
        # Registers every table on Base.metadata
        import dreamland.models  # noqa: F401

        async with self._engine.begin() as conn:
            await conn.run_sync(operation)

    async def create_tables(self) -> None:
        """Create the schema directly. Development and tests only; use Alembic elsewhere."""
        await self._run_metadata(Base.metadata.create_all)

    async def drop_tables(self) -> None:
        """Drop every table. Tests only."""
        await self._run_metadata(Base.metadata.drop_all)

    async def health_check(self) -> bool:
        """True if a trivial query succeeds."""
        try:
            await self.initialize_async()
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as exc:
            logger.warning("database_health_check_failed", error=str(exc))
            return False
        return True

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._session_factory = None


# Set at startup by the lifespan, or by tests
_db_manager: DatabaseManager | None = None


def initialize_database(database_url: str | None = None) -> DatabaseManager:
    """Install the process-wide DatabaseManager.

    Args:
        database_url: Connection string; defaults to ``DATABASE_URL``

    Raises:
        ValueError: If no URL is given or configured
    """
    global _db_manager

    database_url = database_url or os.getenv("DATABASE_URL")
    if not database_url:
        raise ValueError("DATABASE_URL environment variable not set")

    _db_manager = DatabaseManager(database_url)
    return _db_manager


def get_db_manager() -> DatabaseManager | None:
    return _db_manager


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a request-scoped session.

    Example:
        @router.get("/api/admin/payments")
        async def list_payments(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    if _db_manager is None:
        raise RuntimeError("Database not initialized. Call initialize_database() first.")

    async with _db_manager.get_async_session() as session:
        yield session


async def shutdown_database() -> None:
    global _db_manager
    if _db_manager is not None:
        await _db_manager.close()
        _db_manager = None
