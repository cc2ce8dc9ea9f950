"""Unit tests for answer judging and the attempt-recorder folds."""

from datetime import datetime, timedelta

import pytest

from quizdeck.models.fields import Difficulty
from quizdeck.schemas.attempts import Attempt
from quizdeck.schemas.cards import Card
from quizdeck.services.game_service import (
    build_card_attempt_stats,
    build_contestant_performance,
    build_season_game_stats,
    calculate_answer_correctness,
)

BASE_TIME = datetime(2025, 3, 1, 12, 0, 0)


def make_card(card_id: int, difficulty: Difficulty = Difficulty.EASY) -> Card:
    return Card(
        id=card_id,
        season_id=1,
        difficulty=difficulty,
        card_number=card_id,
        question=f"Question {card_id}?",
        correct_answer=f"Answer {card_id}",
        usage_count=1,
        created_at=BASE_TIME,
        updated_at=BASE_TIME,
    )


def make_attempt(
    attempt_id: int, card: Card, contestant: str, is_correct: bool
) -> Attempt:
    return Attempt(
        id=attempt_id,
        card_id=card.id,
        season_id=card.season_id,
        contestant_name=contestant,
        given_answer="whatever",
        is_correct=is_correct,
        attempted_at=BASE_TIME + timedelta(minutes=attempt_id),
        recorded_by_id=1,
    )


@pytest.mark.parametrize(
    ("given", "correct", "expected"),
    [
        ("  TypeScript ", "TypeScript", True),
        ("typescript", "TypeScript", True),
        ("JavaScript", "TypeScript", False),
        ("Type Script", "TypeScript", False),
        ("Paris", " paris\n", True),
    ],
)
def test_answer_correctness_is_trimmed_case_insensitive_equality(
    given: str, correct: str, expected: bool
) -> None:
    assert calculate_answer_correctness(given, correct) is expected


def test_contestant_performance_totals_and_recent_window() -> None:
    easy, hard = make_card(1), make_card(2, Difficulty.HARD)
    pairs = [
        (make_attempt(i, hard if i % 2 else easy, "Alice", i % 3 == 0), hard if i % 2 else easy)
        for i in range(12, 0, -1)
    ]

    perf = build_contestant_performance("Alice", pairs)

    assert perf.total_attempts == 12
    assert perf.correct_attempts == 4
    assert perf.success_rate == pytest.approx(100 / 3)
    assert len(perf.recent_attempts) == 10
    assert perf.recent_attempts[0].id == 12
    breakdown = {b.difficulty: b for b in perf.difficulty_breakdown}
    assert breakdown[Difficulty.EASY].attempts == 6
    assert breakdown[Difficulty.HARD].attempts == 6
    assert breakdown[Difficulty.MEDIUM].attempts == 0


def test_contestant_performance_rounds_when_asked() -> None:
    card = make_card(1)
    pairs = [(make_attempt(i, card, "Bo", i == 1), card) for i in (3, 2, 1)]

    perf = build_contestant_performance("Bo", pairs, ndigits=2)

    assert perf.success_rate == 33.33


def test_card_attempt_stats_counts_unique_contestants() -> None:
    card = make_card(5)
    pairs = [
        (make_attempt(7, card, "Cy", True), card),
        (make_attempt(6, card, "Di", False), card),
        (make_attempt(5, card, "Cy", False), card),
        (make_attempt(4, card, "Ed", True), card),
        (make_attempt(3, card, "Fay", True), card),
        (make_attempt(2, card, "Gus", False), card),
    ]

    stats = build_card_attempt_stats(5, pairs)

    assert stats.total_attempts == 6
    assert stats.correct_attempts == 3
    assert stats.incorrect_attempts == 3
    assert stats.success_rate == 50.0
    assert stats.unique_contestants == 5
    assert [a.id for a in stats.recent_attempts] == [7, 6, 5, 4, 3]


def test_season_game_stats_top_performers_need_three_attempts() -> None:
    rows = (
        [("Ann", True, Difficulty.EASY)] * 3
        + [("Ben", True, Difficulty.MEDIUM), ("Ben", False, Difficulty.MEDIUM)] * 2
        + [("Cat", True, Difficulty.HARD)] * 2
    )

    stats = build_season_game_stats(9, rows)

    assert stats.season_id == 9
    assert stats.total_attempts == 9
    assert stats.total_contestants == 3
    assert [p.contestant_name for p in stats.top_performers] == ["Ann", "Ben"]
    assert stats.top_performers[1].success_rate == 50.0


def test_season_game_stats_for_empty_season() -> None:
    stats = build_season_game_stats(1, [])

    assert stats.total_attempts == 0
    assert stats.overall_success_rate == 0.0
    assert stats.top_performers == []
    assert len(stats.difficulty_stats) == 3
