"""Shared pytest fixtures for encryption and async database testing.

This module provides master keys, ready-made EncryptionService instances and
an in-memory SQLite database for the credential store tests.
"""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tokenvault.models import Base
from tokenvault.utils.encryption import (
    EncryptionService,
    generate_master_key,
    reset_encryption_service,
)
from tokenvault.utils.key_policy import DeploymentEnvironment


@pytest.fixture
def master_key() -> str:
    """Generate a fresh random master key for testing."""
    return generate_master_key()


@pytest.fixture
def different_master_key() -> str:
    """Generate a second master key for wrong-key scenarios."""
    return generate_master_key()


@pytest.fixture
def encryption_service(master_key: str) -> EncryptionService:
    """EncryptionService under the production policy with a random key."""
    return EncryptionService(master_key, DeploymentEnvironment.PRODUCTION)


@pytest.fixture(autouse=True)
def reset_encryption_singleton():
    """Reset the cached process-wide EncryptionService before and after each test."""
    reset_encryption_service()
    yield
    reset_encryption_service()


@pytest.fixture
def encryption_env(master_key: str, monkeypatch: pytest.MonkeyPatch):
    """Set ENCRYPTION_KEY and APP_ENV for tests using get_encryption_service()."""
    monkeypatch.setenv("ENCRYPTION_KEY", master_key)
    monkeypatch.setenv("APP_ENV", "production")
    yield master_key


@pytest_asyncio.fixture
async def async_engine():
    """Create an async SQLite engine for testing.

    Uses in-memory SQLite with aiosqlite. Creates all tables before
    yielding, disposes after.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def async_session(async_engine):
    """Create an async session bound to the test engine.

    Uses expire_on_commit=False to match production configuration.
    """
    async_session_factory = async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_factory() as session:
        yield session
