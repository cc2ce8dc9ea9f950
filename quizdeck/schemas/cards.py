"""Question cards.

A deck is the set of cards sharing one (season_id, difficulty) pair. The unique
constraint backs the one-card-per-slot rule; the 52-card cap is enforced by the
card service.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, ForeignKey, Index, Integer, Text, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel

from quizdeck.models.fields import Difficulty


class Card(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "cards"
    __table_args__ = (
        UniqueConstraint(
            "season_id",
            "difficulty",
            "card_number",
            name="uq_cards_season_difficulty_number",
        ),
        Index("ix_cards_season_difficulty", "season_id", "difficulty"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    season_id: int = Field(
        sa_column=Column(
            Integer, ForeignKey("seasons.id", ondelete="CASCADE"), nullable=False
        )
    )
    difficulty: Difficulty = Field(
        sa_column=Column(SAEnum(Difficulty, name="difficulty_enum"), nullable=False)
    )
    card_number: int = Field(description="Slot within the deck, 1..52")
    question: str = Field(sa_column=Column(Text, nullable=False))
    correct_answer: str = Field(sa_column=Column(Text, nullable=False))
    usage_count: int = Field(default=0, index=True)
    last_used: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
