"""Pydantic models for season requests/responses."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from quizdeck.models.fields import SEASON_DESCRIPTION, SEASON_NAME, Difficulty


class SeasonCreate(BaseModel):
    name: SEASON_NAME
    description: Optional[SEASON_DESCRIPTION] = None


class SeasonUpdate(BaseModel):
    name: Optional[SEASON_NAME] = None
    description: Optional[SEASON_DESCRIPTION] = None


class SeasonRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    created_by_id: int
    created_at: datetime
    updated_at: datetime


class CreatorSummary(BaseModel):
    name: Optional[str] = None
    email: str


class SeasonWithCreator(SeasonRead):
    created_by: Optional[CreatorSummary] = None


class SeasonWithStats(SeasonWithCreator):
    total_cards: int = 0
    total_attempts: int = 0
    easy_deck_count: int = 0
    medium_deck_count: int = 0
    hard_deck_count: int = 0


class SeasonDeckStat(BaseModel):
    difficulty: Difficulty
    total_cards: int
    total_usage: int
    average_usage: float
