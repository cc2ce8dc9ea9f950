"""Shared rows for integration tests: one user per role and a season.

Fixture rows are written through their own short-lived session so the
objects stay detached and readable even after a test's session rolls back.
"""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from quizdeck.models.fields import Role
from quizdeck.schemas.seasons import Season
from quizdeck.schemas.users import User
from quizdeck.services import season_service, user_service


async def _make_user(
    session_factory: async_sessionmaker[AsyncSession], email: str, name: str, role: Role
) -> User:
    async with session_factory() as session:
        return await user_service.create_user(session, email=email, name=name, role=role)


@pytest.fixture
async def host(session_factory: async_sessionmaker[AsyncSession]) -> User:
    return await _make_user(session_factory, "host@example.com", "Hal Host", Role.HOST)


@pytest.fixture
async def producer(session_factory: async_sessionmaker[AsyncSession]) -> User:
    return await _make_user(
        session_factory, "producer@example.com", "Pat Producer", Role.PRODUCER
    )


@pytest.fixture
async def admin(session_factory: async_sessionmaker[AsyncSession]) -> User:
    return await _make_user(session_factory, "admin@example.com", "Ada Admin", Role.ADMIN)


@pytest.fixture
async def season(
    session_factory: async_sessionmaker[AsyncSession], producer: User
) -> Season:
    async with session_factory() as session:
        return await season_service.create_season(
            session, name="S1", description="First season", created_by_id=producer.id
        )
