"""Tests for database connection and session management.

Tests the async engine helpers, session configuration and the behavior of
get_session() when no database is configured.
"""

import pytest
from sqlalchemy import select, text

from tests.support.factories.oauth_factory import create_connection
from tokenvault import database
from tokenvault.database import create_test_engine
from tokenvault.models import Base, OAuthConnection


async def test_create_test_engine_creates_working_connection():
    """Test that create_test_engine creates a working async engine."""
    engine, session_factory = create_test_engine()

    async with session_factory() as session:
        result = await session.execute(text("SELECT 1"))
        assert result.scalar() == 1

    await engine.dispose()


async def test_session_expire_on_commit_is_false(async_session):
    """Test that session has expire_on_commit=False.

    Connection attributes are read after commit by the credential store.
    """
    assert async_session.sync_session.expire_on_commit is False


async def test_session_rollback_discards_uncommitted_rows():
    """Test that rolled back connections are not persisted."""
    engine, session_factory = create_test_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with session_factory() as session:
        session.add(create_connection(user_id="rollback-user"))
        await session.flush()
        await session.rollback()

    async with session_factory() as session:
        result = await session.execute(
            select(OAuthConnection).where(OAuthConnection.user_id == "rollback-user")
        )
        assert result.scalar_one_or_none() is None

    await engine.dispose()


async def test_get_session_requires_configuration(monkeypatch: pytest.MonkeyPatch):
    """Test that get_session raises when DATABASE_URL was not configured."""
    monkeypatch.setattr(database, "async_session_factory", None)

    with pytest.raises(RuntimeError, match="Database not configured"):
        async for _ in database.get_session():
            pass


async def test_get_session_commits_on_success(monkeypatch: pytest.MonkeyPatch):
    """Test that get_session commits work done by the consumer."""
    engine, session_factory = create_test_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    monkeypatch.setattr(database, "async_session_factory", session_factory)

    async for session in database.get_session():
        session.add(create_connection(user_id="committed-user"))

    async with session_factory() as session:
        result = await session.execute(
            select(OAuthConnection).where(OAuthConnection.user_id == "committed-user")
        )
        assert result.scalar_one() is not None

    await engine.dispose()
