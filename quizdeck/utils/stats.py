"""Small numeric helpers shared by the card, game and analytics services."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from quizdeck.models.fields import DIFFICULTIES, Difficulty
from quizdeck.models.game import DifficultyBreakdown


def round_half_up(value: float, ndigits: int) -> float:
    """Round halves away from zero (``0.125`` -> ``0.13``), unlike ``round``."""
    step = Decimal(1).scaleb(-ndigits)
    return float(Decimal(str(value)).quantize(step, rounding=ROUND_HALF_UP))


def percentage(part: float, whole: float, ndigits: Optional[int] = None) -> float:
    """Return ``part / whole * 100``; 0 when ``whole`` is zero.

    With ``ndigits`` the result is rounded half up, e.g.
    ``percentage(1, 3, 2) == 33.33`` and ``percentage(1, 800, 2) == 0.13``.
    """
    if not whole:
        return 0.0
    value = part / whole * 100
    return round_half_up(value, ndigits) if ndigits is not None else value


def difficulty_breakdown(
    outcomes: Iterable[tuple[Difficulty, bool]],
    ndigits: Optional[int] = None,
) -> list[DifficultyBreakdown]:
    """Fold (difficulty, is_correct) pairs into one row per difficulty.

    All three difficulties are always present, in EASY/MEDIUM/HARD order.
    """
    attempts = {d: 0 for d in DIFFICULTIES}
    correct = {d: 0 for d in DIFFICULTIES}
    for difficulty, is_correct in outcomes:
        attempts[difficulty] += 1
        if is_correct:
            correct[difficulty] += 1

    return [
        DifficultyBreakdown(
            difficulty=d,
            attempts=attempts[d],
            correct=correct[d],
            success_rate=percentage(correct[d], attempts[d], ndigits),
        )
        for d in DIFFICULTIES
    ]
