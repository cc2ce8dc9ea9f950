"""Card store and draw engine.

Handles card CRUD inside a (season, difficulty) deck, deck status and reset,
and drawing cards for live play.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from typing import Optional, TypeVar

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from quizdeck.models.cards import CardRead, CardsPage, CardWithUsage, DeckStatus
from quizdeck.models.common import Pagination
from quizdeck.models.fields import DIFFICULTIES, Difficulty
from quizdeck.schemas.attempts import Attempt
from quizdeck.schemas.cards import Card
from quizdeck.schemas.seasons import Season
from quizdeck.services.errors import (
    CardNotFoundError,
    DeckEmptyError,
    DeckFullError,
    DuplicateCardNumberError,
    SeasonNotFoundError,
)
from quizdeck.utils.stats import percentage

logger = logging.getLogger(__name__)

DECK_CAPACITY = 52
# Once every card has been drawn, draws pick among this many least-used cards
DRAW_WINDOW = 10

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def _deck(season_id: int, difficulty: Difficulty) -> tuple:
    return (
        Card.season_id == season_id,  # type: ignore[arg-type]
        Card.difficulty == difficulty,  # type: ignore[arg-type]
    )


def next_available_card_number(
    used_numbers: Iterable[int], difficulty: Difficulty
) -> int:
    """Return the lowest slot in 1..52 not present in ``used_numbers``.

    Raises:
        DeckFullError: every slot is taken.
    """
    used = set(used_numbers)
    for number in range(1, DECK_CAPACITY + 1):
        if number not in used:
            return number
    raise DeckFullError(difficulty, DECK_CAPACITY)


def choose_draw_candidate(
    unused: Sequence[T],
    least_used: Sequence[T],
    rng: Optional[random.Random] = None,
) -> Optional[T]:
    """Pick uniformly from the unused pool, else from the least-used window.

    Returns None when both pools are empty.
    """
    pool = unused or least_used
    if not pool:
        return None
    chooser = rng.choice if rng is not None else random.choice
    return chooser(pool)


def summarize_deck(difficulty: Difficulty, usage_counts: Iterable[int]) -> DeckStatus:
    counts = list(usage_counts)
    total = len(counts)
    used = sum(1 for c in counts if c > 0)
    return DeckStatus(
        difficulty=difficulty,
        total_cards=total,
        used_cards=used,
        available_cards=total - used,
        usage_percentage=percentage(used, total),
    )


def with_usage(card: Card, total_attempts: int, correct_attempts: int) -> CardWithUsage:
    """Annotate a card row with its attempt totals."""
    return CardWithUsage(
        **CardRead.model_validate(card).model_dump(),
        total_attempts=total_attempts,
        correct_attempts=correct_attempts,
        success_rate=percentage(correct_attempts, total_attempts),
    )


async def attempt_totals(
    db: AsyncSession, card_ids: Sequence[int]
) -> dict[int, tuple[int, int]]:
    """Map card id -> (total attempts, correct attempts)."""
    if not card_ids:
        return {}
    result = await db.execute(
        select(
            Attempt.card_id,
            func.count(Attempt.id),  # type: ignore[arg-type]
            func.coalesce(
                func.sum(case((Attempt.is_correct, 1), else_=0)), 0  # type: ignore[arg-type]
            ),
        )
        .where(Attempt.card_id.in_(card_ids))  # type: ignore[attr-defined]
        .group_by(Attempt.card_id)
    )
    return {card_id: (int(total), int(correct)) for card_id, total, correct in result.all()}


async def _used_numbers(db: AsyncSession, season_id: int, difficulty: Difficulty) -> list[int]:
    result = await db.execute(
        select(Card.card_number).where(*_deck(season_id, difficulty))
    )
    return list(result.scalars().all())


async def _lock_deck(db: AsyncSession, season_id: int, difficulty: Difficulty) -> None:
    # Draws and resets both lock through here so they take row locks in one order
    await db.execute(
        select(Card.id)
        .where(*_deck(season_id, difficulty))
        .order_by(Card.card_number.asc())  # type: ignore[attr-defined]
        .with_for_update()
    )


async def _insert_card(
    db: AsyncSession,
    *,
    season_id: int,
    difficulty: Difficulty,
    card_number: int,
    question: str,
    correct_answer: str,
) -> Card:
    if not 1 <= card_number <= DECK_CAPACITY:
        raise ValueError(f"card_number must be between 1 and {DECK_CAPACITY}")
    if await db.get(Season, season_id) is None:
        raise SeasonNotFoundError(season_id)

    existing_count = await db.scalar(
        select(func.count()).select_from(Card).where(*_deck(season_id, difficulty))
    )
    if (existing_count or 0) >= DECK_CAPACITY:
        raise DeckFullError(difficulty, DECK_CAPACITY)

    taken = await db.scalar(
        select(Card.id).where(
            *_deck(season_id, difficulty),
            Card.card_number == card_number,  # type: ignore[arg-type]
        )
    )
    if taken is not None:
        raise DuplicateCardNumberError(card_number, difficulty, season_id)

    now = _utcnow()
    card = Card(
        season_id=season_id,
        difficulty=difficulty,
        card_number=card_number,
        question=question,
        correct_answer=correct_answer,
        created_at=now,
        updated_at=now,
    )
    db.add(card)
    try:
        await db.flush()
    except IntegrityError as exc:
        # Lost a race with a concurrent insert into the same slot
        raise DuplicateCardNumberError(card_number, difficulty, season_id) from exc
    return card


async def create_card(
    db: AsyncSession,
    *,
    season_id: int,
    difficulty: Difficulty,
    card_number: int,
    question: str,
    correct_answer: str,
) -> Card:
    """Create a card in a specific deck slot.

    Raises:
        SeasonNotFoundError: the season does not exist.
        DeckFullError: the deck already holds 52 cards.
        DuplicateCardNumberError: the slot is taken.
    """
    async with db.begin():
        card = await _insert_card(
            db,
            season_id=season_id,
            difficulty=difficulty,
            card_number=card_number,
            question=question,
            correct_answer=correct_answer,
        )
    logger.info(
        f"Created card #{card.card_number} in {difficulty.value} deck of season {season_id}"
    )
    return card


async def get_next_available_card_number(
    db: AsyncSession, *, season_id: int, difficulty: Difficulty
) -> int:
    async with db.begin():
        used = await _used_numbers(db, season_id, difficulty)
    return next_available_card_number(used, difficulty)


async def create_card_with_auto_number(
    db: AsyncSession,
    *,
    season_id: int,
    difficulty: Difficulty,
    question: str,
    correct_answer: str,
) -> Card:
    """Create a card in the lowest free slot of the deck."""
    async with db.begin():
        used = await _used_numbers(db, season_id, difficulty)
        card = await _insert_card(
            db,
            season_id=season_id,
            difficulty=difficulty,
            card_number=next_available_card_number(used, difficulty),
            question=question,
            correct_answer=correct_answer,
        )
    logger.info(
        f"Created card #{card.card_number} in {difficulty.value} deck of season {season_id}"
    )
    return card


async def get_card_by_id(db: AsyncSession, card_id: int) -> Optional[Card]:
    async with db.begin():
        return await db.get(Card, card_id)


async def card_exists(db: AsyncSession, card_id: int) -> bool:
    async with db.begin():
        count = await db.scalar(
            select(func.count()).select_from(Card).where(Card.id == card_id)  # type: ignore[arg-type]
        )
    return bool(count)


async def get_card_with_usage(db: AsyncSession, card_id: int) -> Optional[CardWithUsage]:
    async with db.begin():
        card = await db.get(Card, card_id)
        if card is None:
            return None
        totals = await attempt_totals(db, [card_id])
    total, correct = totals.get(card_id, (0, 0))
    return with_usage(card, total, correct)


async def update_card(
    db: AsyncSession,
    card_id: int,
    *,
    question: Optional[str] = None,
    correct_answer: Optional[str] = None,
) -> Card:
    """Edit card text. Slot, difficulty and usage history are left alone."""
    async with db.begin():
        card = await db.get(Card, card_id)
        if card is None:
            raise CardNotFoundError(card_id)
        if question is not None:
            card.question = question
        if correct_answer is not None:
            card.correct_answer = correct_answer
        card.updated_at = _utcnow()
        db.add(card)
    return card


async def delete_card(db: AsyncSession, card_id: int) -> bool:
    """Delete a card (its attempts cascade). Returns False when absent."""
    async with db.begin():
        card = await db.get(Card, card_id)
        if card is None:
            return False
        await db.delete(card)
    logger.info(f"Deleted card {card_id}")
    return True


async def get_cards_by_deck(
    db: AsyncSession,
    *,
    season_id: int,
    difficulty: Difficulty,
    page: int = 1,
    limit: int = 20,
) -> CardsPage:
    """Paginated cards of one deck, ordered by card number, with attempt totals."""
    async with db.begin():
        total = await db.scalar(
            select(func.count()).select_from(Card).where(*_deck(season_id, difficulty))
        )
        result = await db.execute(
            select(Card)
            .where(*_deck(season_id, difficulty))
            .order_by(Card.card_number.asc())  # type: ignore[attr-defined]
            .offset((page - 1) * limit)
            .limit(limit)
        )
        cards = list(result.scalars().all())
        totals = await attempt_totals(db, [c.id for c in cards if c.id is not None])

    return CardsPage(
        cards=[with_usage(c, *totals.get(c.id or 0, (0, 0))) for c in cards],
        pagination=Pagination.build(page=page, limit=limit, total=total or 0),
    )


async def get_deck_status(
    db: AsyncSession, *, season_id: int, difficulty: Difficulty
) -> DeckStatus:
    async with db.begin():
        result = await db.execute(
            select(Card.usage_count).where(*_deck(season_id, difficulty))
        )
        usage = list(result.scalars().all())
    return summarize_deck(difficulty, usage)


async def get_all_deck_statuses(db: AsyncSession, season_id: int) -> list[DeckStatus]:
    async with db.begin():
        result = await db.execute(
            select(Card.difficulty, Card.usage_count).where(
                Card.season_id == season_id  # type: ignore[arg-type]
            )
        )
        rows = result.all()
    return [
        summarize_deck(d, (usage for difficulty, usage in rows if difficulty == d))
        for d in DIFFICULTIES
    ]


async def reset_deck_usage(
    db: AsyncSession, *, season_id: int, difficulty: Difficulty
) -> int:
    """Mark every card in the deck unused. Returns the number of cards reset."""
    async with db.begin():
        await _lock_deck(db, season_id, difficulty)
        result = await db.execute(
            update(Card)
            .where(*_deck(season_id, difficulty))
            .values(usage_count=0, last_used=None)
        )
    count = result.rowcount or 0  # type: ignore[attr-defined]
    logger.info(f"Reset {count} cards in {difficulty.value} deck of season {season_id}")
    return count


async def draw_random_card(
    db: AsyncSession,
    *,
    season_id: int,
    difficulty: Difficulty,
    rng: Optional[random.Random] = None,
) -> Card:
    """Draw a card for live play and record its use.

    Unused cards are drawn first. Once the deck is exhausted the draw picks
    among the ``DRAW_WINDOW`` least-used cards. The whole deck is locked in
    card-number order (``SELECT ... FOR UPDATE``) until the increment commits,
    so concurrent draws never hand out the same unused card and share one lock
    order with ``reset_deck_usage``.

    Raises:
        DeckEmptyError: the deck has no cards at all.
    """
    async with db.begin():
        await _lock_deck(db, season_id, difficulty)
        unused_result = await db.execute(
            select(Card)
            .where(*_deck(season_id, difficulty), Card.usage_count == 0)  # type: ignore[arg-type]
            .order_by(Card.card_number.asc())  # type: ignore[attr-defined]
        )
        unused = list(unused_result.scalars().all())

        least_used: list[Card] = []
        if not unused:
            least_result = await db.execute(
                select(Card)
                .where(*_deck(season_id, difficulty))
                .order_by(Card.usage_count.asc(), Card.card_number.asc())  # type: ignore[attr-defined]
                .limit(DRAW_WINDOW)
            )
            least_used = list(least_result.scalars().all())

        chosen = choose_draw_candidate(unused, least_used, rng)
        if chosen is None:
            raise DeckEmptyError(difficulty, season_id)

        await db.execute(
            update(Card)
            .where(Card.id == chosen.id)  # type: ignore[arg-type]
            .values(usage_count=Card.usage_count + 1, last_used=_utcnow())
            .execution_options(synchronize_session=False)
        )
        await db.refresh(chosen)

    logger.info(
        f"Drew card #{chosen.card_number} from {difficulty.value} deck of season "
        f"{season_id} (usage now {chosen.usage_count})"
    )
    return chosen


async def get_unused_cards(
    db: AsyncSession, *, season_id: int, difficulty: Difficulty
) -> list[Card]:
    async with db.begin():
        result = await db.execute(
            select(Card)
            .where(*_deck(season_id, difficulty), Card.usage_count == 0)  # type: ignore[arg-type]
            .order_by(Card.card_number.asc())  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())


async def get_most_used_cards(
    db: AsyncSession, *, season_id: int, difficulty: Difficulty, limit: int = 10
) -> list[Card]:
    async with db.begin():
        result = await db.execute(
            select(Card)
            .where(*_deck(season_id, difficulty))
            .order_by(Card.usage_count.desc(), Card.card_number.asc())  # type: ignore[attr-defined]
            .limit(limit)
        )
        return list(result.scalars().all())


async def get_least_used_cards(
    db: AsyncSession, *, season_id: int, difficulty: Difficulty, limit: int = 10
) -> list[Card]:
    async with db.begin():
        result = await db.execute(
            select(Card)
            .where(*_deck(season_id, difficulty))
            .order_by(Card.usage_count.asc(), Card.card_number.asc())  # type: ignore[attr-defined]
            .limit(limit)
        )
        return list(result.scalars().all())


async def get_total_card_count(db: AsyncSession, season_id: int) -> int:
    async with db.begin():
        count = await db.scalar(
            select(func.count()).select_from(Card).where(Card.season_id == season_id)  # type: ignore[arg-type]
        )
    return count or 0


async def get_card_count_by_difficulty(
    db: AsyncSession, season_id: int
) -> dict[Difficulty, int]:
    async with db.begin():
        result = await db.execute(
            select(Card.difficulty, func.count(Card.id))  # type: ignore[arg-type]
            .where(Card.season_id == season_id)  # type: ignore[arg-type]
            .group_by(Card.difficulty)
        )
        rows = result.all()
    counts = {d: 0 for d in DIFFICULTIES}
    for difficulty, count in rows:
        counts[difficulty] = count
    return counts
