"""Pydantic models for attempts and contestant performance."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from quizdeck.models.common import Pagination
from quizdeck.models.fields import ANSWER_TEXT, CONTESTANT_NAME, Difficulty


class AttemptCreate(BaseModel):
    card_id: int
    contestant_name: CONTESTANT_NAME
    given_answer: ANSWER_TEXT
    # Omitted -> compared against the card's correct answer
    is_correct: Optional[bool] = None


class AttemptUpdate(BaseModel):
    contestant_name: Optional[CONTESTANT_NAME] = None
    given_answer: Optional[ANSWER_TEXT] = None
    is_correct: Optional[bool] = None


class ResetDeckRequest(BaseModel):
    season_id: int
    difficulty: Difficulty


class ResetDeckResult(BaseModel):
    cards_reset: int
    message: str


class CardSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    card_number: int
    difficulty: Difficulty
    question: str
    correct_answer: str


class AttemptRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    card_id: int
    season_id: int
    contestant_name: str
    given_answer: str
    is_correct: bool
    attempted_at: datetime
    recorded_by_id: int


class AttemptWithCard(AttemptRead):
    card: CardSummary


class AttemptWithDetails(AttemptWithCard):
    season_name: str
    recorded_by_name: Optional[str] = None


class AttemptHistoryPage(BaseModel):
    data: list[AttemptWithDetails] = Field(default_factory=list)
    pagination: Pagination


class DifficultyBreakdown(BaseModel):
    difficulty: Difficulty
    attempts: int
    correct: int
    success_rate: float


class ContestantPerformance(BaseModel):
    contestant_name: str
    total_attempts: int
    correct_attempts: int
    success_rate: float
    difficulty_breakdown: list[DifficultyBreakdown] = Field(default_factory=list)
    recent_attempts: list[AttemptWithCard] = Field(default_factory=list)


class CardAttemptStats(BaseModel):
    card_id: int
    total_attempts: int
    correct_attempts: int
    incorrect_attempts: int
    success_rate: float
    unique_contestants: int
    recent_attempts: list[AttemptWithCard] = Field(default_factory=list)


class PerformerSummary(BaseModel):
    contestant_name: str
    attempts: int
    success_rate: float


class SeasonGameStats(BaseModel):
    season_id: int
    total_attempts: int
    total_contestants: int
    overall_success_rate: float
    difficulty_stats: list[DifficultyBreakdown] = Field(default_factory=list)
    top_performers: list[PerformerSummary] = Field(default_factory=list)
