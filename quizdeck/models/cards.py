"""Pydantic models for card and deck requests/responses."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from quizdeck.models.common import Pagination
from quizdeck.models.fields import ANSWER_TEXT, CARD_NUMBER, QUESTION_TEXT, Difficulty


class CardCreate(BaseModel):
    season_id: int
    difficulty: Difficulty
    # Omitted -> lowest free slot in the deck
    card_number: Optional[CARD_NUMBER] = None
    question: QUESTION_TEXT
    correct_answer: ANSWER_TEXT


class CardUpdate(BaseModel):
    question: Optional[QUESTION_TEXT] = None
    correct_answer: Optional[ANSWER_TEXT] = None


class DeckSelector(BaseModel):
    season_id: int
    difficulty: Difficulty


class CardRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    season_id: int
    difficulty: Difficulty
    card_number: int
    question: str
    correct_answer: str
    usage_count: int
    last_used: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class CardWithUsage(CardRead):
    total_attempts: int = 0
    correct_attempts: int = 0
    success_rate: float = 0.0


class CardsPage(BaseModel):
    cards: list[CardWithUsage] = Field(default_factory=list)
    pagination: Pagination


class DeckStatus(BaseModel):
    difficulty: Difficulty
    total_cards: int
    used_cards: int
    available_cards: int
    usage_percentage: float
