"""
Pytest fixtures for certification tests.
"""

import os
import tempfile
from typing import AsyncGenerator

# Settings are read at import time; point them at a throwaway database first
_tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp.close()
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_tmp.name}"
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from certgate.config import Settings, get_settings

get_settings.cache_clear()

from certgate.api.deps import get_coach_directory
from certgate.database import build_engine, get_session_factory
from certgate.engines.certification.validator import LevelProgressionValidator
from certgate.kernel.identity.coach_directory import PatternCoachDirectory
from certgate.kernel.models import Base


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """File-based SQLite so concurrent sessions share one database."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'certgate-test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for direct reads in assertions."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(max_cas_attempts=3, cas_retry_backoff_ms=0)


@pytest.fixture
def coach_directory() -> PatternCoachDirectory:
    return PatternCoachDirectory(get_settings().coach_id_pattern)


@pytest.fixture
def validator(session_factory, coach_directory, test_settings) -> LevelProgressionValidator:
    return LevelProgressionValidator(
        session_factory,
        coach_directory=coach_directory,
        settings=test_settings,
    )


@pytest_asyncio.fixture
async def client(session_factory, coach_directory) -> AsyncGenerator[AsyncClient, None]:
    """Async client bound to the test database."""
    from certgate.main import app

    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_coach_directory] = lambda: coach_directory
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


def pytest_sessionfinish(session, exitstatus):
    if os.path.exists(_tmp.name):
        os.unlink(_tmp.name)
