"""Personal progress for the acting user.

A user's stats cover the attempts they recorded at the host desk. The pure
``build_*``/``calculate_*`` folds take rows newest first; the async wrappers
only fetch those rows.
"""

from __future__ import annotations

import math
from collections import defaultdict
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quizdeck.models.fields import Difficulty
from quizdeck.models.user_stats import (
    DailyActivity,
    DifficultyPerformance,
    FocusArea,
    Goal,
    Milestone,
    StreakInfo,
    SuggestedCategory,
    UserAchievements,
    UserRecommendations,
    UserStats,
)
from quizdeck.schemas.attempts import Attempt
from quizdeck.schemas.cards import Card
from quizdeck.utils.stats import difficulty_breakdown, percentage, round_half_up

RATE_DIGITS = 2
ACTIVITY_WINDOW_DAYS = 7
LIST_LIMIT = 3

ATTEMPT_GOAL_STEP = 50
STREAK_MILESTONE = 10
EXPERT_SUCCESS_RATE = 80
SUCCESS_RATE_CEILING = 90

# (attempted_at, is_correct, season_id, difficulty)
OutcomeRow = tuple[datetime, bool, int, Difficulty]


def _utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def _rate(part: float, whole: float) -> float:
    return percentage(part, whole, RATE_DIGITS)


def _progress(current: float, target: float) -> int:
    return int(round_half_up(percentage(current, target), 0))


def _pct(rate: float) -> str:
    return f"{rate:g}"


# === Pure folds ===


def calculate_streaks(outcomes: Sequence[bool]) -> tuple[int, int]:
    """Return (current, longest) runs of correct answers.

    ``outcomes`` is newest first; the current streak is the run that ends
    with the latest attempt.
    """
    current = longest = run = 0
    broken = False
    for is_correct in outcomes:
        if is_correct:
            run += 1
            longest = max(longest, run)
            if not broken:
                current += 1
        else:
            broken = True
            run = 0
    return current, longest


def bucket_recent_activity(
    rows: Sequence[OutcomeRow], now: datetime
) -> list[DailyActivity]:
    since = now - timedelta(days=ACTIVITY_WINDOW_DAYS)
    days: dict[str, list[bool]] = defaultdict(list)
    for attempted_at, is_correct, _, _ in rows:
        if attempted_at >= since:
            days[attempted_at.date().isoformat()].append(is_correct)

    activity = [
        DailyActivity(
            date=day,
            attempts=len(outcomes),
            success_rate=_rate(sum(outcomes), len(outcomes)),
        )
        for day, outcomes in sorted(days.items())
    ]
    return activity[-ACTIVITY_WINDOW_DAYS:]


def build_user_stats(rows: Sequence[OutcomeRow], now: datetime) -> Optional[UserStats]:
    """Fold a user's recorded attempts; None when they have recorded nothing."""
    if not rows:
        return None

    total = len(rows)
    correct = sum(1 for _, is_correct, _, _ in rows if is_correct)
    breakdown = difficulty_breakdown(
        ((difficulty, is_correct) for _, is_correct, _, difficulty in rows), RATE_DIGITS
    )
    performance = sorted(
        (
            DifficultyPerformance(
                difficulty=entry.difficulty,
                attempts=entry.attempts,
                success_rate=entry.success_rate,
            )
            for entry in breakdown
            if entry.attempts
        ),
        key=lambda p: p.attempts,
        reverse=True,
    )
    current, longest = calculate_streaks([is_correct for _, is_correct, _, _ in rows])

    return UserStats(
        total_attempts=total,
        correct_attempts=correct,
        success_rate=_rate(correct, total),
        seasons_participated=len({season_id for _, _, season_id, _ in rows}),
        recent_activity=bucket_recent_activity(rows, now),
        difficulty_breakdown=breakdown,
        difficulty_performance=performance,
        streak_info=StreakInfo(
            current_streak=current,
            longest_streak=longest,
            last_attempt_date=rows[0][0],
        ),
    )


def build_achievements(stats: Optional[UserStats], now: datetime) -> UserAchievements:
    if stats is None:
        return UserAchievements()

    streak = stats.streak_info
    milestones: list[Milestone] = []
    if 100 <= stats.total_attempts < 150:
        milestones.append(
            Milestone(
                type="attempts",
                title="Century Club",
                description="Completed 100 attempts",
                achieved_at=now,
                value=100,
            )
        )
    if streak.current_streak >= STREAK_MILESTONE:
        milestones.append(
            Milestone(
                type="streak",
                title="On Fire!",
                description=f"{streak.current_streak} correct answers in a row",
                achieved_at=now,
                value=streak.current_streak,
            )
        )
    if stats.success_rate >= EXPERT_SUCCESS_RATE:
        milestones.append(
            Milestone(
                type="success_rate",
                title="Expert Level",
                description=f"Achieved {_pct(stats.success_rate)}% success rate",
                achieved_at=now,
                value=stats.success_rate,
            )
        )

    step = ATTEMPT_GOAL_STEP
    attempt_target = math.ceil(stats.total_attempts / step) * step + step
    streak_target = max(STREAK_MILESTONE, streak.longest_streak + 5)
    goals = [
        Goal(
            type="attempts",
            title=f"{attempt_target} Attempts",
            description=f"Complete {attempt_target} total attempts",
            current=stats.total_attempts,
            target=attempt_target,
            progress=_progress(stats.total_attempts, attempt_target),
        ),
        Goal(
            type="streak",
            title=f"{streak_target} Streak",
            description=f"Get {streak_target} correct answers in a row",
            current=streak.current_streak,
            target=streak_target,
            progress=_progress(streak.current_streak, streak_target),
        ),
    ]
    if stats.success_rate < SUCCESS_RATE_CEILING:
        rate_target = min(SUCCESS_RATE_CEILING, math.ceil(stats.success_rate / 10) * 10 + 10)
        goals.append(
            Goal(
                type="success_rate",
                title=f"{rate_target}% Success Rate",
                description=f"Achieve {rate_target}% overall success rate",
                current=stats.success_rate,
                target=rate_target,
                progress=_progress(stats.success_rate, rate_target),
            )
        )

    return UserAchievements(
        recent_milestones=milestones[:LIST_LIMIT], next_goals=goals[:LIST_LIMIT]
    )


def build_recommendations(stats: Optional[UserStats]) -> UserRecommendations:
    if stats is None:
        return UserRecommendations()

    focus_areas = [
        FocusArea(
            difficulty=entry.difficulty,
            reason=f"Success rate of {_pct(entry.success_rate)}% needs improvement",
            priority="high" if entry.success_rate < 40 else "medium",
        )
        for entry in stats.difficulty_breakdown
        if entry.attempts > 0 and entry.success_rate < 60
    ]
    suggested = [
        SuggestedCategory(
            category=entry.difficulty.value,
            reason=(
                f"{_pct(entry.success_rate)}% success rate in "
                f"{entry.difficulty.value} difficulty"
            ),
            priority="high" if entry.success_rate < 50 else "medium",
        )
        for entry in stats.difficulty_performance
        if entry.attempts > 5 and entry.success_rate < 70
    ]

    tips: list[str] = []
    if stats.success_rate < 70:
        tips.append("Focus on understanding concepts rather than memorizing answers")
        tips.append("Review incorrect answers to identify knowledge gaps")
    if stats.streak_info.current_streak < 5:
        tips.append("Take your time with each question to build consistency")
    if len(stats.recent_activity) < 3:
        tips.append("Try to practice regularly to maintain momentum")
    if not tips:
        tips = [
            "Great job! Keep challenging yourself with harder questions",
            "Consider exploring new categories to broaden your knowledge",
        ]

    return UserRecommendations(
        focus_areas=focus_areas[:LIST_LIMIT],
        suggested_categories=suggested[:LIST_LIMIT],
        study_tips=tips[:LIST_LIMIT],
    )


# === Database-backed views ===


async def _recorded_outcomes(db: AsyncSession, user_id: int) -> list[OutcomeRow]:
    result = await db.execute(
        select(  # type: ignore[call-overload]
            Attempt.attempted_at, Attempt.is_correct, Attempt.season_id, Card.difficulty
        )
        .join(Card, Card.id == Attempt.card_id)
        .where(Attempt.recorded_by_id == user_id)
        .order_by(Attempt.attempted_at.desc(), Attempt.id.desc())  # type: ignore[attr-defined]
    )
    return [tuple(row) for row in result.all()]  # type: ignore[misc]


async def get_user_stats(
    db: AsyncSession, user_id: int, *, now: Optional[datetime] = None
) -> Optional[UserStats]:
    """Stats over the attempts ``user_id`` recorded, or None if there are none."""
    async with db.begin():
        rows = await _recorded_outcomes(db, user_id)
    return build_user_stats(rows, now or _utcnow())


async def get_user_achievements(
    db: AsyncSession, user_id: int, *, now: Optional[datetime] = None
) -> UserAchievements:
    now = now or _utcnow()
    async with db.begin():
        rows = await _recorded_outcomes(db, user_id)
    return build_achievements(build_user_stats(rows, now), now)


async def get_user_recommendations(
    db: AsyncSession, user_id: int, *, now: Optional[datetime] = None
) -> UserRecommendations:
    async with db.begin():
        rows = await _recorded_outcomes(db, user_id)
    return build_recommendations(build_user_stats(rows, now or _utcnow()))
