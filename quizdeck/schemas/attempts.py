"""Contestant attempts against drawn cards."""

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, ForeignKey, Integer, Text
from sqlmodel import Field, SQLModel


class Attempt(SQLModel, table=True):  # type: ignore[call-arg]
    """One contestant's recorded answer to one card.

    ``season_id`` is copied from the card at record time so season-level
    analytics do not need the join.
    """

    __tablename__ = "attempts"

    id: Optional[int] = Field(default=None, primary_key=True)
    card_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("cards.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    season_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("seasons.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    contestant_name: str = Field(index=True)
    given_answer: str = Field(sa_column=Column(Text, nullable=False))
    is_correct: bool
    attempted_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    recorded_by_id: int = Field(foreign_key="users.id", index=True)
