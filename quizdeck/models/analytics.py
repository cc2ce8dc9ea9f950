"""Pydantic models for analytics responses."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from quizdeck.models.cards import CardRead
from quizdeck.models.fields import Difficulty
from quizdeck.models.game import AttemptWithCard, DifficultyBreakdown
from quizdeck.models.seasons import SeasonRead


class CardUsageStats(BaseModel):
    card_id: int
    card_number: int
    difficulty: Difficulty
    question: str
    usage_count: int
    total_attempts: int
    correct_attempts: int
    success_rate: float
    last_used: Optional[datetime] = None


class UsageRankedCard(BaseModel):
    card_id: int
    card_number: int
    difficulty: Difficulty
    question: str
    usage_count: int


class DifficultyStats(BaseModel):
    difficulty: Difficulty
    card_count: int
    attempt_count: int
    success_rate: float


class SeasonStats(BaseModel):
    season_id: int
    season_name: str
    total_cards: int
    total_attempts: int
    overall_success_rate: float
    difficulty_stats: list[DifficultyStats] = Field(default_factory=list)
    most_used_cards: list[UsageRankedCard] = Field(default_factory=list)
    least_used_cards: list[UsageRankedCard] = Field(default_factory=list)


class ComparisonEntry(BaseModel):
    season_id: int
    season_name: str
    value: float


class DifficultySeasonEntry(BaseModel):
    season_id: int
    season_name: str
    card_count: int
    success_rate: float


class DifficultyDistribution(BaseModel):
    difficulty: Difficulty
    seasons: list[DifficultySeasonEntry] = Field(default_factory=list)


class SeasonComparison(BaseModel):
    total_cards: list[ComparisonEntry] = Field(default_factory=list)
    total_attempts: list[ComparisonEntry] = Field(default_factory=list)
    overall_success_rate: list[ComparisonEntry] = Field(default_factory=list)
    difficulty_distribution: list[DifficultyDistribution] = Field(default_factory=list)


class SeasonComparisonResponse(BaseModel):
    seasons: list[SeasonStats] = Field(default_factory=list)
    comparison: SeasonComparison


class ExportData(BaseModel):
    season: SeasonRead
    cards: list[CardRead] = Field(default_factory=list)
    attempts: list[AttemptWithCard] = Field(default_factory=list)
    stats: SeasonStats
    exported_at: datetime


class ActivityEntry(BaseModel):
    contestant_name: str
    card_number: int
    difficulty: Difficulty
    is_correct: bool
    attempted_at: datetime


class RealTimeAnalytics(BaseModel):
    last_updated: datetime
    total_attempts: int
    total_contestants: int
    recent_activity: list[ActivityEntry] = Field(default_factory=list)
    current_success_rate: float
    difficulty_breakdown: list[DifficultyBreakdown] = Field(default_factory=list)


class UnusedCard(BaseModel):
    card_id: int
    card_number: int
    question: str


class UnusedCardsGroup(BaseModel):
    difficulty: Difficulty
    count: int
    cards: list[UnusedCard] = Field(default_factory=list)


class UnusedCardsAnalytics(BaseModel):
    total_unused_cards: int
    unused_cards_by_difficulty: list[UnusedCardsGroup] = Field(default_factory=list)


class DailyStat(BaseModel):
    date: str  # UTC calendar day, YYYY-MM-DD
    attempts: int
    success_rate: float
    unique_contestants: int


class TrendAnalysis(BaseModel):
    attempts_growth: float  # percent change, second half vs first
    success_rate_change: float  # percentage points
    contestant_growth: float  # percent change


class PerformanceTrends(BaseModel):
    daily_stats: list[DailyStat] = Field(default_factory=list)
    trend_analysis: TrendAnalysis
