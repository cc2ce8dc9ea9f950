"""Unit tests for the shared rate helpers."""

from quizdeck.models.fields import Difficulty
from quizdeck.utils.stats import difficulty_breakdown, percentage, round_half_up


def test_percentage_is_zero_when_nothing_attempted() -> None:
    assert percentage(0, 0) == 0.0
    assert percentage(5, 0, 2) == 0.0


def test_percentage_rounds_only_when_asked() -> None:
    assert percentage(1, 3) == 100 / 3
    assert percentage(1, 3, 2) == 33.33
    assert percentage(2, 3, 2) == 66.67


def test_percentage_rounds_exact_halves_up() -> None:
    # 1 / 800 is exactly 0.125%; banker's rounding would give 0.12
    assert percentage(1, 800, 2) == 0.13
    assert percentage(3, 8, 0) == 38.0
    assert round_half_up(2.675, 2) == 2.68
    assert round_half_up(33.333333, 2) == 33.33


def test_difficulty_breakdown_always_lists_three_decks_in_order() -> None:
    rows = difficulty_breakdown([])

    assert [r.difficulty for r in rows] == [
        Difficulty.EASY,
        Difficulty.MEDIUM,
        Difficulty.HARD,
    ]
    assert all(r.attempts == 0 and r.success_rate == 0.0 for r in rows)


def test_difficulty_breakdown_counts_outcomes_per_deck() -> None:
    rows = difficulty_breakdown(
        [
            (Difficulty.HARD, True),
            (Difficulty.HARD, False),
            (Difficulty.HARD, False),
            (Difficulty.EASY, True),
        ],
        ndigits=2,
    )
    by_difficulty = {r.difficulty: r for r in rows}

    assert by_difficulty[Difficulty.EASY].attempts == 1
    assert by_difficulty[Difficulty.EASY].success_rate == 100.0
    assert by_difficulty[Difficulty.MEDIUM].attempts == 0
    assert by_difficulty[Difficulty.HARD].correct == 1
    assert by_difficulty[Difficulty.HARD].success_rate == 33.33
