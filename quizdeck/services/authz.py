"""Acting-user resolution and role gating for API endpoints.

Authentication itself is handled upstream; by the time a request reaches the
service it carries the authenticated user's id in the ``X-User-Id`` header.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from quizdeck.models.fields import Role
from quizdeck.schemas.users import User
from quizdeck.utils.db_async import get_session

USER_ID_HEADER = "X-User-Id"


async def get_current_user(
    x_user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
    db: AsyncSession = Depends(get_session),
) -> User:
    """Resolve the acting user from the request header (or raise 401)."""
    if not x_user_id or not x_user_id.strip().isdigit():
        raise HTTPException(status_code=401, detail="Not authenticated")

    async with db.begin():
        user = await db.get(User, int(x_user_id))
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_role(*roles: Role) -> Callable[..., Awaitable[User]]:
    """FastAPI dependency admitting only the given roles (raises 401/403)."""

    async def _dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(status_code=403, detail="Forbidden")
        return user

    return _dependency


require_producer = require_role(Role.PRODUCER, Role.ADMIN)
require_admin = require_role(Role.ADMIN)
