"""
Database Infrastructure
=======================

Async SQLAlchemy 2.0 engine and request-scoped sessions.

PostgreSQL (``postgresql+asyncpg``) is the production backend. SQLite
(``sqlite+aiosqlite``) URLs are accepted for local runs and tests.
"""

from typing import AsyncGenerator, Optional

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from cafm.config import Settings, settings
from cafm.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Declarative base shared by the ticket and technician tables."""


def build_engine(
    database_url: str,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10
) -> AsyncEngine:
    """
    Create an async engine for ``database_url``.

    SQLite engines reuse one connection so an in-memory database outlives
    individual sessions. Pool sizing applies to server databases only.
    """
    if database_url.startswith("sqlite"):
        engine = create_async_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        _enable_sqlite_savepoints(engine)
        return engine

    # asyncpg takes ssl=, libpq-style URLs carry sslmode=
    return create_async_engine(
        database_url.replace("sslmode=", "ssl="),
        echo=echo,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,
    )


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    # The sqlite3 driver manages BEGIN itself and breaks SAVEPOINT, so
    # SQLAlchemy is given control of transaction boundaries instead
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Entities are mapped out of the session, so nothing may expire under them
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


class Database:
    """Engine and session factory for one configured database."""

    def __init__(self, database_url: str, echo: bool = False, pool_size: int = 5, max_overflow: int = 10):
        self.engine = build_engine(database_url, echo=echo, pool_size=pool_size, max_overflow=max_overflow)
        self.session_maker = build_session_maker(self.engine)

    @classmethod
    def from_settings(cls, app_settings: Settings) -> "Database":
        return cls(
            app_settings.database_url,
            echo=app_settings.debug,
            pool_size=app_settings.db_pool_size,
            max_overflow=app_settings.db_max_overflow,
        )

    async def ping(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        await self.engine.dispose()


_database: Optional[Database] = None


def init_database(app_settings: Optional[Settings] = None) -> Database:
    """Open the process-wide database from ``app_settings`` (the environment by default)."""
    global _database

    _database = Database.from_settings(app_settings or settings)
    logger.info("Database engine created", extra={"dialect": _database.engine.dialect.name})
    return _database


def get_database() -> Database:
    """
    Raises:
        RuntimeError: If init_database() has not run
    """
    if _database is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _database


async def close_database() -> None:
    global _database

    if _database is not None:
        await _database.dispose()
        _database = None


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding one session per request.

    Commits when the handler returns, rolls back when it raises.
    """
    async with get_database().session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_tables(engine: Optional[AsyncEngine] = None) -> None:
    """
    Create missing tables on ``engine`` (the process-wide one by default).

    Schema changes in production go through migrations instead.
    """
    import cafm.tickets.infrastructure.models  # noqa: F401  (registers tables on Base.metadata)

    engine = engine or get_database().engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
