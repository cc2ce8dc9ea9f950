from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from quizdeck.models.fields import Role
from quizdeck.models.users import (
    RoleCount,
    UserCreate,
    UserRead,
    UserRoleUpdate,
    UsersPage,
)
from quizdeck.models.user_stats import UserAchievements, UserRecommendations, UserStats
from quizdeck.schemas.users import User
from quizdeck.services import user_service, user_stats_service
from quizdeck.services.authz import get_current_user, require_admin
from quizdeck.services.errors import (
    DuplicateUserError,
    SelfRoleChangeError,
    UserNotFoundError,
)
from quizdeck.utils.db_async import get_session

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("", response_model=UserRead, status_code=201)
async def sign_up(
    payload: UserCreate,
    db: AsyncSession = Depends(get_session),
) -> UserRead:
    """Register a new user with the default HOST role."""
    try:
        user = await user_service.create_user(db, email=payload.email, name=payload.name)
    except DuplicateUserError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return UserRead.model_validate(user)


@router.get("", response_model=UsersPage)
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    role: Optional[Role] = None,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> UsersPage:
    return await user_service.get_users(db, page=page, limit=limit, role=role)


@router.get("/me", response_model=UserRead)
async def whoami(user: User = Depends(get_current_user)) -> UserRead:
    return UserRead.model_validate(user)


@router.get("/me/stats", response_model=Optional[UserStats])
async def my_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Optional[UserStats]:
    """Stats over the attempts you recorded; null until you record one."""
    return await user_stats_service.get_user_stats(db, user.id)


@router.get("/me/achievements", response_model=UserAchievements)
async def my_achievements(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UserAchievements:
    return await user_stats_service.get_user_achievements(db, user.id)


@router.get("/me/recommendations", response_model=UserRecommendations)
async def my_recommendations(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UserRecommendations:
    return await user_stats_service.get_user_recommendations(db, user.id)


@router.get("/role-stats", response_model=List[RoleCount])
async def role_stats(
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> List[RoleCount]:
    return await user_service.get_role_stats(db)


@router.get("/{user_id}", response_model=UserRead)
async def get_user(
    user_id: int,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> UserRead:
    try:
        user = await user_service.get_user_by_id(db, user_id)
    except UserNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return UserRead.model_validate(user)


@router.patch("/{user_id}/role", response_model=UserRead)
async def update_role(
    user_id: int,
    payload: UserRoleUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> UserRead:
    try:
        user = await user_service.update_user_role(
            db, user_id, payload.role, acting_user_id=admin.id
        )
    except SelfRoleChangeError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except UserNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return UserRead.model_validate(user)
