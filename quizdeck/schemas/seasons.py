from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel


class Season(SQLModel, table=True):  # type: ignore[call-arg]
    """A game season owning three decks (one per difficulty)."""

    __tablename__ = "seasons"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: Optional[str] = Field(default=None)
    created_by_id: int = Field(foreign_key="users.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
