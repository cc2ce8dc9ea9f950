"""Users table.

Login and session handling live with the auth provider; this table only carries
the identity and role the game service needs.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Column
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel

from quizdeck.models.fields import Role


class User(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: Optional[str] = Field(default=None)
    email: str = Field(unique=True, index=True)
    role: Role = Field(
        default=Role.HOST,
        sa_column=Column(
            SAEnum(Role, name="user_role_enum"),
            nullable=False,
            index=True,
            server_default=Role.HOST.value,
        ),
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)
