"""Unit tests for the per-user progress folds (no database)."""

from datetime import datetime, timedelta

import pytest

from quizdeck.models.fields import Difficulty
from quizdeck.models.user_stats import DailyActivity, StreakInfo, UserStats
from quizdeck.services.user_stats_service import (
    build_achievements,
    build_recommendations,
    build_user_stats,
    calculate_streaks,
)

NOW = datetime(2025, 5, 20, 12, 0)
OLD = NOW - timedelta(days=30)


@pytest.mark.parametrize(
    ("outcomes", "expected"),
    [
        ([], (0, 0)),
        ([True, True, True, True], (4, 4)),
        ([False, True, True], (0, 2)),
        ([True, True, False, True, True, True, False], (2, 3)),
    ],
)
def test_calculate_streaks(outcomes: list[bool], expected: tuple[int, int]) -> None:
    assert calculate_streaks(outcomes) == expected


def test_no_recorded_attempts_means_no_stats() -> None:
    assert build_user_stats([], NOW) is None
    assert build_achievements(None, NOW).next_goals == []
    assert build_recommendations(None).study_tips == []


def test_user_stats_fold() -> None:
    rows = [
        (NOW - timedelta(hours=1), True, 1, Difficulty.EASY),
        (NOW - timedelta(days=1), False, 1, Difficulty.HARD),
        (NOW - timedelta(days=2), True, 2, Difficulty.EASY),
        (OLD, True, 2, Difficulty.MEDIUM),
    ]

    stats = build_user_stats(rows, NOW)

    assert stats is not None
    assert (stats.total_attempts, stats.correct_attempts, stats.success_rate) == (4, 3, 75.0)
    assert stats.seasons_participated == 2
    assert [(d.date, d.attempts, d.success_rate) for d in stats.recent_activity] == [
        ("2025-05-18", 1, 100.0),
        ("2025-05-19", 1, 0.0),
        ("2025-05-20", 1, 100.0),
    ]
    assert [p.difficulty for p in stats.difficulty_performance] == [
        Difficulty.EASY,
        Difficulty.MEDIUM,
        Difficulty.HARD,
    ]
    assert stats.streak_info.current_streak == 1
    assert stats.streak_info.longest_streak == 2
    assert stats.streak_info.last_attempt_date == NOW - timedelta(hours=1)


def _stats(total: int, rate: float, current: int, longest: int, active_days: int) -> UserStats:
    return UserStats(
        total_attempts=total,
        correct_attempts=round(total * rate / 100),
        success_rate=rate,
        seasons_participated=1,
        recent_activity=[
            DailyActivity(date=f"2025-05-{10 + i}", attempts=1, success_rate=rate)
            for i in range(active_days)
        ],
        streak_info=StreakInfo(current_streak=current, longest_streak=longest),
    )


def test_achievements_for_a_strong_record() -> None:
    achievements = build_achievements(_stats(120, 85.0, 12, 12, 5), NOW)

    assert [m.title for m in achievements.recent_milestones] == [
        "Century Club",
        "On Fire!",
        "Expert Level",
    ]
    assert achievements.recent_milestones[2].description == "Achieved 85% success rate"
    assert [(g.type, g.target, g.progress) for g in achievements.next_goals] == [
        ("attempts", 200, 60),
        ("streak", 17, 71),
        ("success_rate", 90, 94),
    ]


def test_struggling_player_gets_focus_areas_and_tips() -> None:
    rows = (
        [(OLD, True, 1, Difficulty.EASY)] * 2
        + [(OLD, False, 1, Difficulty.HARD)] * 6
        + [(OLD, True, 1, Difficulty.HARD)] * 2
    )
    stats = build_user_stats(rows, NOW)

    recommendations = build_recommendations(stats)
    achievements = build_achievements(stats, NOW)

    [focus] = recommendations.focus_areas
    assert (focus.difficulty, focus.priority) == (Difficulty.HARD, "high")
    assert focus.reason == "Success rate of 25% needs improvement"
    [category] = recommendations.suggested_categories
    assert category.category == "HARD"
    assert category.reason == "25% success rate in HARD difficulty"
    assert len(recommendations.study_tips) == 3
    assert recommendations.study_tips[0].startswith("Focus on understanding")

    assert achievements.recent_milestones == []
    assert [(g.target, g.progress) for g in achievements.next_goals] == [
        (100, 10),
        (10, 20),
        (50, 80),
    ]


def test_steady_player_gets_the_default_tips() -> None:
    recommendations = build_recommendations(_stats(40, 95.0, 6, 9, 3))

    assert recommendations.focus_areas == []
    assert recommendations.study_tips == [
        "Great job! Keep challenging yourself with harder questions",
        "Consider exploring new categories to broaden your knowledge",
    ]
