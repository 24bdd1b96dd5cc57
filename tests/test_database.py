"""
Tests for portal/database.py - request sessions and engine lifecycle.
"""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy import text

from portal import database


def _mock_factory(session):
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=session)


class TestGetDb:
    async def test_commits_on_success(self):
        session = AsyncMock()
        with patch("portal.database._get_session_factory", return_value=_mock_factory(session)):
            gen = database.get_db()
            assert await gen.__anext__() is session
            with pytest.raises(StopAsyncIteration):
                await gen.__anext__()

        session.commit.assert_awaited_once()
        session.rollback.assert_not_awaited()

    async def test_rolls_back_on_error(self):
        session = AsyncMock()
        with patch("portal.database._get_session_factory", return_value=_mock_factory(session)):
            gen = database.get_db()
            await gen.__anext__()
            with pytest.raises(ValueError):
                await gen.athrow(ValueError("handler failed"))

        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()


class TestEngineOptions:
    def test_sqlite_has_no_pool_sizing(self):
        settings = MagicMock(app_env="test", database_url="sqlite+aiosqlite:///:memory:")
        options = database._engine_options(settings)
        assert "pool_size" not in options
        assert options["echo"] is False

    def test_postgres_pool_sizing(self):
        settings = MagicMock(
            app_env="development",
            database_url="postgresql+asyncpg://u:p@db/portal",
            database_pool_size=5,
            database_max_overflow=2,
        )
        options = database._engine_options(settings)
        assert (options["pool_size"], options["max_overflow"]) == (5, 2)
        assert options["echo"] is True


class TestSqliteEngine:
    async def test_savepoint_rollback_keeps_outer_work(self):
        settings = MagicMock(app_env="test", database_url="sqlite+aiosqlite:///:memory:")
        with (
            patch("portal.config.get_settings", return_value=settings),
            patch.object(database, "_engine", None),
            patch.object(database, "_session_factory", None),
        ):
            engine = database.get_engine()
            try:
                async with engine.begin() as conn:
                    await conn.execute(text("CREATE TABLE jobs (id INTEGER PRIMARY KEY)"))
                    await conn.execute(text("INSERT INTO jobs (id) VALUES (1)"))
                    nested = await conn.begin_nested()
                    await conn.execute(text("INSERT INTO jobs (id) VALUES (2)"))
                    await nested.rollback()
                    rows = (await conn.execute(text("SELECT id FROM jobs"))).scalars().all()
            finally:
                await engine.dispose()

        assert rows == [1]


class TestDisposeEngine:
    async def test_disposes_and_resets(self):
        engine = AsyncMock()
        with (
            patch.object(database, "_engine", engine),
            patch.object(database, "_session_factory", MagicMock()),
        ):
            await database.dispose_engine()
            assert database._engine is None
            assert database._session_factory is None

        engine.dispose.assert_awaited_once()

    async def test_noop_without_engine(self):
        with patch.object(database, "_engine", None):
            await database.dispose_engine()
            assert database._engine is None
