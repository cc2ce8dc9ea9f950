"""User and role store."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from quizdeck.models.common import Pagination
from quizdeck.models.fields import Role
from quizdeck.models.users import RoleCount, UserRead, UsersPage, UserWithCounts
from quizdeck.schemas.attempts import Attempt
from quizdeck.schemas.seasons import Season
from quizdeck.schemas.users import User
from quizdeck.services.errors import (
    DuplicateUserError,
    SelfRoleChangeError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().casefold()


async def get_users(
    db: AsyncSession,
    *,
    page: int = 1,
    limit: int = 20,
    role: Optional[Role] = None,
) -> UsersPage:
    """Users newest id first, with how many seasons and attempts each has authored."""
    filters = [User.role == role] if role is not None else []

    season_counts = (
        select(Season.created_by_id, func.count(Season.id).label("n"))  # type: ignore[arg-type]
        .group_by(Season.created_by_id)
        .subquery()
    )
    attempt_counts = (
        select(Attempt.recorded_by_id, func.count(Attempt.id).label("n"))  # type: ignore[arg-type]
        .group_by(Attempt.recorded_by_id)
        .subquery()
    )

    async with db.begin():
        total = await db.scalar(select(func.count()).select_from(User).where(*filters))
        result = await db.execute(
            select(
                User,
                func.coalesce(season_counts.c.n, 0),
                func.coalesce(attempt_counts.c.n, 0),
            )
            .outerjoin(season_counts, season_counts.c.created_by_id == User.id)
            .outerjoin(attempt_counts, attempt_counts.c.recorded_by_id == User.id)
            .where(*filters)
            .order_by(User.id.desc())  # type: ignore[union-attr]
            .offset((page - 1) * limit)
            .limit(limit)
        )
        rows = result.all()

    return UsersPage(
        users=[
            UserWithCounts(
                **UserRead.model_validate(user).model_dump(),
                season_count=seasons,
                attempt_count=attempts,
            )
            for user, seasons, attempts in rows
        ],
        pagination=Pagination.build(page=page, limit=limit, total=total or 0),
    )


async def get_user_by_id(db: AsyncSession, user_id: int) -> User:
    async with db.begin():
        user = await db.get(User, user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    return user


async def create_user(
    db: AsyncSession,
    *,
    email: str,
    name: Optional[str] = None,
    role: Role = Role.HOST,
) -> User:
    """Register a user. Emails are compared after trimming and case folding."""
    email = normalize_email(email)
    async with db.begin():
        existing = await db.scalar(select(User.id).where(User.email == email))  # type: ignore[arg-type]
        if existing is not None:
            raise DuplicateUserError(email)
        user = User(email=email, name=name.strip() if name else None, role=role)
        db.add(user)
        try:
            await db.flush()
        except IntegrityError as exc:
            raise DuplicateUserError(email) from exc
    logger.info(f"Created user {user.id} with role {user.role.value}")
    return user


async def update_user_role(
    db: AsyncSession, user_id: int, role: Role, *, acting_user_id: int
) -> User:
    """Change a user's role. Nobody may change their own role."""
    if user_id == acting_user_id:
        raise SelfRoleChangeError()
    async with db.begin():
        user = await db.get(User, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        previous = user.role
        user.role = role
        db.add(user)
    logger.info(
        f"User {acting_user_id} changed role of user {user_id}: {previous.value} -> {role.value}"
    )
    return user


async def get_role_stats(db: AsyncSession) -> list[RoleCount]:
    async with db.begin():
        result = await db.execute(
            select(User.role, func.count(User.id)).group_by(User.role)  # type: ignore[arg-type]
        )
        counts = {role: count for role, count in result.all()}
    return [RoleCount(role=role, count=counts.get(role, 0)) for role in Role]
