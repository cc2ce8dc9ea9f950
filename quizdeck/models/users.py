"""Pydantic models for user and role management."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from quizdeck.models.common import Pagination
from quizdeck.models.fields import Role


class UserCreate(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)


class UserRoleUpdate(BaseModel):
    role: Role


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: Optional[str] = None
    email: str
    role: Role
    created_at: datetime


class UserWithCounts(UserRead):
    season_count: int = 0
    attempt_count: int = 0


class UsersPage(BaseModel):
    users: list[UserWithCounts] = Field(default_factory=list)
    pagination: Pagination


class RoleCount(BaseModel):
    role: Role
    count: int
