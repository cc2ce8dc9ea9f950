"""Attempt recorder: contestant answers, history and game statistics."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from quizdeck.models.common import Pagination
from quizdeck.models.fields import Difficulty
from quizdeck.models.game import (
    AttemptHistoryPage,
    AttemptRead,
    AttemptWithCard,
    AttemptWithDetails,
    CardAttemptStats,
    CardSummary,
    ContestantPerformance,
    PerformerSummary,
    ResetDeckResult,
    SeasonGameStats,
)
from quizdeck.schemas.attempts import Attempt
from quizdeck.schemas.cards import Card
from quizdeck.schemas.seasons import Season
from quizdeck.schemas.users import User
from quizdeck.services import card_service
from quizdeck.services.errors import (
    AttemptRecordingError,
    CardNotFoundError,
    ContestantNotFoundError,
    QuizDeckError,
)
from quizdeck.utils.stats import difficulty_breakdown, percentage

logger = logging.getLogger(__name__)

RECENT_ATTEMPTS_LIMIT = 10
CARD_RECENT_ATTEMPTS_LIMIT = 5
TOP_PERFORMERS_LIMIT = 10
TOP_PERFORMER_MIN_ATTEMPTS = 3


def calculate_answer_correctness(given_answer: str, correct_answer: str) -> bool:
    """Case-insensitive exact match after trimming surrounding whitespace."""
    return given_answer.strip().lower() == correct_answer.strip().lower()


def with_card(attempt: Attempt, card: Card) -> AttemptWithCard:
    return AttemptWithCard(
        **AttemptRead.model_validate(attempt).model_dump(),
        card=CardSummary.model_validate(card),
    )


def build_contestant_performance(
    contestant_name: str,
    pairs: Sequence[tuple[Attempt, Card]],
    ndigits: Optional[int] = None,
) -> ContestantPerformance:
    """Fold a contestant's (attempt, card) rows, newest first, into a summary.

    Rates are left unrounded unless ``ndigits`` is given.
    """
    total = len(pairs)
    correct = sum(1 for attempt, _ in pairs if attempt.is_correct)
    return ContestantPerformance(
        contestant_name=contestant_name,
        total_attempts=total,
        correct_attempts=correct,
        success_rate=percentage(correct, total, ndigits),
        difficulty_breakdown=difficulty_breakdown(
            ((card.difficulty, attempt.is_correct) for attempt, card in pairs), ndigits
        ),
        recent_attempts=[with_card(a, c) for a, c in pairs[:RECENT_ATTEMPTS_LIMIT]],
    )


def build_card_attempt_stats(
    card_id: int, pairs: Sequence[tuple[Attempt, Card]]
) -> CardAttemptStats:
    total = len(pairs)
    correct = sum(1 for attempt, _ in pairs if attempt.is_correct)
    return CardAttemptStats(
        card_id=card_id,
        total_attempts=total,
        correct_attempts=correct,
        incorrect_attempts=total - correct,
        success_rate=percentage(correct, total),
        unique_contestants=len({attempt.contestant_name for attempt, _ in pairs}),
        recent_attempts=[
            with_card(a, c) for a, c in pairs[:CARD_RECENT_ATTEMPTS_LIMIT]
        ],
    )


def build_season_game_stats(
    season_id: int, rows: Iterable[tuple[str, bool, Difficulty]]
) -> SeasonGameStats:
    """Fold (contestant_name, is_correct, difficulty) rows for one season.

    Top performers need at least three attempts and are ranked by success rate.
    """
    rows = list(rows)
    total = len(rows)
    correct = sum(1 for _, is_correct, _ in rows if is_correct)

    per_contestant: dict[str, list[bool]] = defaultdict(list)
    for name, is_correct, _ in rows:
        per_contestant[name].append(is_correct)

    performers = [
        PerformerSummary(
            contestant_name=name,
            attempts=len(outcomes),
            success_rate=percentage(sum(outcomes), len(outcomes)),
        )
        for name, outcomes in per_contestant.items()
        if len(outcomes) >= TOP_PERFORMER_MIN_ATTEMPTS
    ]
    performers.sort(key=lambda p: p.success_rate, reverse=True)

    return SeasonGameStats(
        season_id=season_id,
        total_attempts=total,
        total_contestants=len(per_contestant),
        overall_success_rate=percentage(correct, total),
        difficulty_stats=difficulty_breakdown(
            (difficulty, is_correct) for _, is_correct, difficulty in rows
        ),
        top_performers=performers[:TOP_PERFORMERS_LIMIT],
    )


async def _record(
    db: AsyncSession,
    *,
    card_id: int,
    contestant_name: str,
    given_answer: str,
    is_correct: Optional[bool],
    recorded_by_id: int,
) -> AttemptWithCard:
    try:
        async with db.begin():
            card = await db.get(Card, card_id)
            if card is None:
                raise CardNotFoundError(card_id)

            answer = given_answer.strip()
            if is_correct is None:
                is_correct = calculate_answer_correctness(answer, card.correct_answer)

            attempt = Attempt(
                card_id=card.id,
                season_id=card.season_id,
                contestant_name=contestant_name.strip(),
                given_answer=answer,
                is_correct=is_correct,
                attempted_at=datetime.now(UTC).replace(tzinfo=None),
                recorded_by_id=recorded_by_id,
            )
            db.add(attempt)
            await db.flush()
    except QuizDeckError:
        raise
    except Exception as exc:
        logger.exception(f"Failed to record attempt for card {card_id}")
        raise AttemptRecordingError("Failed to record attempt") from exc

    return with_card(attempt, card)


async def record_attempt(
    db: AsyncSession,
    *,
    card_id: int,
    contestant_name: str,
    given_answer: str,
    is_correct: bool,
    recorded_by_id: int,
) -> AttemptWithCard:
    """Record a contestant's answer with a host-supplied verdict.

    Raises:
        CardNotFoundError: the card does not exist.
        AttemptRecordingError: the insert failed (cause chained).
    """
    return await _record(
        db,
        card_id=card_id,
        contestant_name=contestant_name,
        given_answer=given_answer,
        is_correct=is_correct,
        recorded_by_id=recorded_by_id,
    )


async def record_attempt_with_validation(
    db: AsyncSession,
    *,
    card_id: int,
    contestant_name: str,
    given_answer: str,
    recorded_by_id: int,
) -> AttemptWithCard:
    """Record an answer, judging it against the card's correct answer."""
    return await _record(
        db,
        card_id=card_id,
        contestant_name=contestant_name,
        given_answer=given_answer,
        is_correct=None,
        recorded_by_id=recorded_by_id,
    )


async def get_attempt_history(
    db: AsyncSession,
    *,
    season_id: Optional[int] = None,
    card_id: Optional[int] = None,
    contestant_name: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> AttemptHistoryPage:
    """Attempts newest first. ``contestant_name`` matches case-insensitive substrings."""
    filters = []
    if season_id is not None:
        filters.append(Attempt.season_id == season_id)
    if card_id is not None:
        filters.append(Attempt.card_id == card_id)
    if contestant_name:
        filters.append(
            Attempt.contestant_name.icontains(contestant_name, autoescape=True)  # type: ignore[attr-defined]
        )

    async with db.begin():
        total = await db.scalar(
            select(func.count()).select_from(Attempt).where(*filters)
        )
        result = await db.execute(
            select(Attempt, Card, Season.name, User.name)  # type: ignore[call-overload]
            .join(Card, Card.id == Attempt.card_id)
            .join(Season, Season.id == Attempt.season_id)
            .outerjoin(User, User.id == Attempt.recorded_by_id)
            .where(*filters)
            .order_by(Attempt.attempted_at.desc(), Attempt.id.desc())  # type: ignore[attr-defined]
            .offset((page - 1) * limit)
            .limit(limit)
        )
        rows = result.all()

    data = [
        AttemptWithDetails(
            **with_card(attempt, card).model_dump(),
            season_name=season_name,
            recorded_by_name=recorder_name,
        )
        for attempt, card, season_name, recorder_name in rows
    ]
    return AttemptHistoryPage(
        data=data,
        pagination=Pagination.build(page=page, limit=limit, total=total or 0),
    )


async def _attempts_with_cards(db: AsyncSession, *filters) -> list[tuple[Attempt, Card]]:
    result = await db.execute(
        select(Attempt, Card)
        .join(Card, Card.id == Attempt.card_id)
        .where(*filters)
        .order_by(Attempt.attempted_at.desc(), Attempt.id.desc())  # type: ignore[attr-defined]
    )
    return [(attempt, card) for attempt, card in result.all()]


async def get_contestant_performance(
    db: AsyncSession, contestant_name: str, *, season_id: Optional[int] = None
) -> ContestantPerformance:
    """Exact-name performance summary for one contestant.

    Raises:
        ContestantNotFoundError: no attempts match.
    """
    filters = [Attempt.contestant_name == contestant_name]
    if season_id is not None:
        filters.append(Attempt.season_id == season_id)

    async with db.begin():
        pairs = await _attempts_with_cards(db, *filters)
    if not pairs:
        raise ContestantNotFoundError(contestant_name)
    return build_contestant_performance(contestant_name, pairs)


async def reset_deck(
    db: AsyncSession, *, season_id: int, difficulty: Difficulty
) -> ResetDeckResult:
    cards_reset = await card_service.reset_deck_usage(
        db, season_id=season_id, difficulty=difficulty
    )
    return ResetDeckResult(
        cards_reset=cards_reset,
        message=f"Reset {cards_reset} cards in {difficulty.value} deck for season {season_id}",
    )


async def get_card_attempt_stats(db: AsyncSession, card_id: int) -> CardAttemptStats:
    async with db.begin():
        if await db.get(Card, card_id) is None:
            raise CardNotFoundError(card_id)
        pairs = await _attempts_with_cards(db, Attempt.card_id == card_id)
    return build_card_attempt_stats(card_id, pairs)


async def get_season_game_stats(db: AsyncSession, season_id: int) -> SeasonGameStats:
    async with db.begin():
        result = await db.execute(
            select(Attempt.contestant_name, Attempt.is_correct, Card.difficulty)  # type: ignore[call-overload]
            .join(Card, Card.id == Attempt.card_id)
            .where(Attempt.season_id == season_id)
        )
        rows = result.all()
    return build_season_game_stats(season_id, rows)


async def has_contestant_attempted_card(
    db: AsyncSession, *, contestant_name: str, card_id: int
) -> bool:
    async with db.begin():
        count = await db.scalar(
            select(func.count())
            .select_from(Attempt)
            .where(
                Attempt.contestant_name == contestant_name,  # type: ignore[arg-type]
                Attempt.card_id == card_id,  # type: ignore[arg-type]
            )
        )
    return bool(count)


async def get_season_contestants(db: AsyncSession, season_id: int) -> list[str]:
    """Distinct contestant names for a season, alphabetical."""
    async with db.begin():
        result = await db.execute(
            select(Attempt.contestant_name)
            .where(Attempt.season_id == season_id)  # type: ignore[arg-type]
            .distinct()
            .order_by(Attempt.contestant_name.asc())  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())


async def update_attempt(
    db: AsyncSession,
    attempt_id: int,
    *,
    contestant_name: Optional[str] = None,
    given_answer: Optional[str] = None,
    is_correct: Optional[bool] = None,
) -> Optional[AttemptWithCard]:
    """Correct a recorded attempt. Returns None when the attempt is absent."""
    async with db.begin():
        attempt = await db.get(Attempt, attempt_id)
        if attempt is None:
            return None
        if contestant_name is not None:
            attempt.contestant_name = contestant_name.strip()
        if given_answer is not None:
            attempt.given_answer = given_answer.strip()
        if is_correct is not None:
            attempt.is_correct = is_correct
        db.add(attempt)
        card = await db.get(Card, attempt.card_id)
    logger.info(f"Corrected attempt {attempt_id}")
    return with_card(attempt, card)


async def delete_attempt(db: AsyncSession, attempt_id: int) -> bool:
    async with db.begin():
        attempt = await db.get(Attempt, attempt_id)
        if attempt is None:
            return False
        await db.delete(attempt)
    logger.info(f"Deleted attempt {attempt_id}")
    return True
