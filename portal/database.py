"""
Async SQLAlchemy engine and session management.

PostgreSQL through asyncpg in production. DATABASE_URL may also point at
sqlite+aiosqlite for local runs, which takes no pool sizing and gets
SQLAlchemy-managed transactions so SAVEPOINTs work.
Sessions use expire_on_commit=False: the bulk sync commits once per customer
and keeps reading the same rows afterwards.
"""
import logging
from typing import AsyncGenerator, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


class Base(DeclarativeBase):
    pass


def _engine_options(settings) -> dict:
    options = {"echo": settings.app_env == "development", "pool_pre_ping": True}
    if not settings.database_url.startswith("sqlite"):
        options["pool_size"] = settings.database_pool_size
        options["max_overflow"] = settings.database_max_overflow
    return options


def enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Take transaction control away from pysqlite so begin_nested() issues real SAVEPOINTs."""

    @event.listens_for(engine.sync_engine, "connect")
    def _autocommit_driver(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        from portal.config import get_settings
        settings = get_settings()
        _engine = create_async_engine(settings.database_url, **_engine_options(settings))
        if _engine.dialect.name == "sqlite":
            enable_sqlite_savepoints(_engine)
    return _engine


def _get_session_factory() -> async_sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(), class_=AsyncSession, expire_on_commit=False
        )
    return _session_factory


def async_session_factory() -> AsyncSession:
    """New session for the sync worker and scripts (outside FastAPI)."""
    return _get_session_factory()()


async def dispose_engine() -> None:
    """Close pooled connections. The next get_engine() call builds a fresh engine."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("Database engine disposed")
    _engine = None
    _session_factory = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency: one session per request.
    Commits when the handler returns, rolls back if it raises.
    """
    async with _get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.debug("Rolling back request session: %s", str(e))
            await session.rollback()
            raise
