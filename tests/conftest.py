"""Shared fixtures: a throwaway QuizDeck schema on a real Postgres.

Database tests run only when ``TEST_DATABASE_URL`` is set and
``PYTEST_ALLOW_DB=1`` confirms the database may be wiped.
"""

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

load_dotenv()


def _load_database_url() -> str:
    url = os.getenv("TEST_DATABASE_URL")
    if not url:
        pytest.skip("TEST_DATABASE_URL is not set; skipping database tests.")
    if os.getenv("PYTEST_ALLOW_DB") != "1":
        raise RuntimeError(
            "TEST_DATABASE_URL is set but PYTEST_ALLOW_DB != 1; refusing to"
            " drop and recreate tables in that database."
        )
    # quizdeck.config requires DATABASE_URL at import time
    os.environ.setdefault("DATABASE_URL", url)
    return url


async def _rebuild_schema(engine: AsyncEngine, *, create: bool) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        if create:
            await conn.run_sync(SQLModel.metadata.create_all)


@pytest.fixture(scope="session")
def database_url() -> str:
    return _load_database_url()


@pytest_asyncio.fixture()
async def async_engine(database_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Engine over freshly created tables, dropped again after the test."""
    # Register tables without importing db_async, which builds its own engine
    from quizdeck.schemas import attempts, cards, seasons, users  # noqa: F401

    engine = create_async_engine(database_url, pool_pre_ping=True)
    await _rebuild_schema(engine, create=True)
    try:
        yield engine
    finally:
        await _rebuild_schema(engine, create=False)
        await engine.dispose()


@pytest.fixture()
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Idle session; each service call opens and commits its own transaction."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def app_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for the API with ``get_session`` bound to ``db_session``."""
    try:
        from quizdeck.main import app
    except ValidationError as exc:  # pragma: no cover - misconfigured env
        pytest.skip(f"QuizDeck settings failed to load: {exc}")
    from quizdeck.utils.db_async import get_session

    async def _session_override() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_session] = _session_override
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://quizdeck.test"
        ) as client:
            yield client
    finally:
        app.dependency_overrides.clear()
