"""Per-user progress: stats, milestones and study recommendations."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from quizdeck.models.fields import Difficulty
from quizdeck.models.game import DifficultyBreakdown

Priority = Literal["high", "medium", "low"]


class DailyActivity(BaseModel):
    date: str
    attempts: int
    success_rate: float


class DifficultyPerformance(BaseModel):
    difficulty: Difficulty
    attempts: int
    success_rate: float


class StreakInfo(BaseModel):
    current_streak: int = 0
    longest_streak: int = 0
    last_attempt_date: Optional[datetime] = None


class UserStats(BaseModel):
    total_attempts: int
    correct_attempts: int
    success_rate: float
    seasons_participated: int
    recent_activity: list[DailyActivity] = Field(default_factory=list)
    difficulty_breakdown: list[DifficultyBreakdown] = Field(default_factory=list)
    # Only difficulties with attempts, busiest first
    difficulty_performance: list[DifficultyPerformance] = Field(default_factory=list)
    streak_info: StreakInfo


class Milestone(BaseModel):
    type: Literal["attempts", "streak", "success_rate", "season_complete"]
    title: str
    description: str
    achieved_at: datetime
    value: float


class Goal(BaseModel):
    type: Literal["attempts", "streak", "success_rate"]
    title: str
    description: str
    current: float
    target: float
    progress: int


class UserAchievements(BaseModel):
    recent_milestones: list[Milestone] = Field(default_factory=list)
    next_goals: list[Goal] = Field(default_factory=list)


class FocusArea(BaseModel):
    difficulty: Difficulty
    reason: str
    priority: Priority


class SuggestedCategory(BaseModel):
    category: str
    reason: str
    priority: Priority


class UserRecommendations(BaseModel):
    focus_areas: list[FocusArea] = Field(default_factory=list)
    suggested_categories: list[SuggestedCategory] = Field(default_factory=list)
    study_tips: list[str] = Field(default_factory=list)
