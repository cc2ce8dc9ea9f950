"""Integration tests for card CRUD and deck bookkeeping."""

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from quizdeck.models.fields import Difficulty
from quizdeck.schemas.cards import Card
from quizdeck.schemas.seasons import Season
from quizdeck.services import card_service, season_service
from quizdeck.services.errors import (
    CardNotFoundError,
    DeckFullError,
    DuplicateCardNumberError,
    SeasonNotFoundError,
)


async def _add(db: AsyncSession, season: Season, number: int, difficulty=Difficulty.EASY) -> Card:
    return await card_service.create_card(
        db,
        season_id=season.id,
        difficulty=difficulty,
        card_number=number,
        question=f"Question {number}?",
        correct_answer=f"Answer {number}",
    )


async def _deck_size(db: AsyncSession, season: Season, difficulty: Difficulty) -> int:
    async with db.begin():
        return await db.scalar(
            select(func.count())
            .select_from(Card)
            .where(Card.season_id == season.id, Card.difficulty == difficulty)
        )


async def test_create_card_starts_unused(db_session: AsyncSession, season: Season) -> None:
    card = await _add(db_session, season, 1)

    assert card.id is not None
    assert card.card_number == 1
    assert card.usage_count == 0
    assert card.last_used is None


async def test_duplicate_number_is_rejected_without_changes(
    db_session: AsyncSession, season: Season
) -> None:
    original_id = (await _add(db_session, season, 7)).id

    with pytest.raises(DuplicateCardNumberError):
        await card_service.create_card(
            db_session,
            season_id=season.id,
            difficulty=Difficulty.EASY,
            card_number=7,
            question="Another?",
            correct_answer="No",
        )

    assert await _deck_size(db_session, season, Difficulty.EASY) == 1
    stored = await card_service.get_card_by_id(db_session, original_id)
    assert stored is not None and stored.question == "Question 7?"


async def test_same_number_allowed_in_other_deck(
    db_session: AsyncSession, season: Season
) -> None:
    await _add(db_session, season, 1, Difficulty.EASY)
    hard = await _add(db_session, season, 1, Difficulty.HARD)

    assert hard.difficulty is Difficulty.HARD


async def test_deck_holds_at_most_52_cards(db_session: AsyncSession, season: Season) -> None:
    for number in range(1, 53):
        await _add(db_session, season, number)

    with pytest.raises(DeckFullError):
        await card_service.create_card_with_auto_number(
            db_session,
            season_id=season.id,
            difficulty=Difficulty.EASY,
            question="One too many?",
            correct_answer="Yes",
        )

    assert await _deck_size(db_session, season, Difficulty.EASY) == 52


async def test_auto_number_fills_gap(db_session: AsyncSession, season: Season) -> None:
    await _add(db_session, season, 1)
    await _add(db_session, season, 3)

    assert (
        await card_service.get_next_available_card_number(
            db_session, season_id=season.id, difficulty=Difficulty.EASY
        )
        == 2
    )
    card = await card_service.create_card_with_auto_number(
        db_session,
        season_id=season.id,
        difficulty=Difficulty.EASY,
        question="Gap?",
        correct_answer="Filled",
    )
    assert card.card_number == 2


async def test_card_in_unknown_season_is_rejected(db_session: AsyncSession, producer) -> None:
    with pytest.raises(SeasonNotFoundError):
        await card_service.create_card(
            db_session,
            season_id=999,
            difficulty=Difficulty.EASY,
            card_number=1,
            question="Q?",
            correct_answer="A",
        )


async def test_update_card_only_touches_text(db_session: AsyncSession, season: Season) -> None:
    card = await _add(db_session, season, 4)

    updated = await card_service.update_card(db_session, card.id, question="New question?")

    assert updated.question == "New question?"
    assert updated.correct_answer == "Answer 4"
    assert updated.card_number == 4
    assert updated.updated_at >= card.created_at


async def test_update_missing_card_raises(db_session: AsyncSession) -> None:
    with pytest.raises(CardNotFoundError):
        await card_service.update_card(db_session, 12345, question="Nope")


async def test_delete_card(db_session: AsyncSession, season: Season) -> None:
    card = await _add(db_session, season, 1)

    assert await card_service.delete_card(db_session, card.id) is True
    assert await card_service.delete_card(db_session, card.id) is False
    assert await card_service.card_exists(db_session, card.id) is False


async def test_cards_by_deck_paginates_in_number_order(
    db_session: AsyncSession, season: Season
) -> None:
    for number in (5, 2, 9, 1, 3):
        await _add(db_session, season, number)

    page = await card_service.get_cards_by_deck(
        db_session, season_id=season.id, difficulty=Difficulty.EASY, page=1, limit=2
    )

    assert [c.card_number for c in page.cards] == [1, 2]
    assert page.pagination.total == 5
    assert page.pagination.total_pages == 3
    assert page.pagination.has_next is True
    assert page.pagination.has_prev is False
    assert page.cards[0].success_rate == 0.0


async def test_reset_clears_only_the_target_deck(
    db_session: AsyncSession, season: Season, producer
) -> None:
    other = await season_service.create_season(
        db_session, name="S2", description=None, created_by_id=producer.id
    )
    for target_season in (season, other):
        for difficulty in (Difficulty.EASY, Difficulty.MEDIUM):
            await _add(db_session, target_season, 1, difficulty)
            await card_service.draw_random_card(
                db_session, season_id=target_season.id, difficulty=difficulty
            )

    reset = await card_service.reset_deck_usage(
        db_session, season_id=season.id, difficulty=Difficulty.EASY
    )

    assert reset == 1
    easy = await card_service.get_deck_status(
        db_session, season_id=season.id, difficulty=Difficulty.EASY
    )
    medium = await card_service.get_deck_status(
        db_session, season_id=season.id, difficulty=Difficulty.MEDIUM
    )
    other_easy = await card_service.get_deck_status(
        db_session, season_id=other.id, difficulty=Difficulty.EASY
    )
    assert easy.used_cards == 0
    assert medium.used_cards == 1
    assert other_easy.used_cards == 1


async def test_deck_statuses_and_counts_cover_all_difficulties(
    db_session: AsyncSession, season: Season
) -> None:
    await _add(db_session, season, 1, Difficulty.MEDIUM)
    await _add(db_session, season, 2, Difficulty.MEDIUM)

    statuses = await card_service.get_all_deck_statuses(db_session, season.id)
    counts = await card_service.get_card_count_by_difficulty(db_session, season.id)

    assert [s.difficulty for s in statuses] == [
        Difficulty.EASY,
        Difficulty.MEDIUM,
        Difficulty.HARD,
    ]
    assert counts == {Difficulty.EASY: 0, Difficulty.MEDIUM: 2, Difficulty.HARD: 0}
    assert await card_service.get_total_card_count(db_session, season.id) == 2


async def _set_usage(db: AsyncSession, usage_by_card: dict[int, int]) -> None:
    async with db.begin():
        for card_id, usage in usage_by_card.items():
            await db.execute(
                update(Card).where(Card.id == card_id).values(usage_count=usage)
            )


async def test_usage_listings_order_and_limit(
    db_session: AsyncSession, season: Season
) -> None:
    cards = [await _add(db_session, season, n) for n in range(1, 6)]
    other_deck = await _add(db_session, season, 1, Difficulty.HARD)
    # card numbers 1..5 -> usage 3, 0, 5, 0, 3
    await _set_usage(
        db_session,
        {cards[0].id: 3, cards[2].id: 5, cards[4].id: 3, other_deck.id: 9},
    )

    unused = await card_service.get_unused_cards(
        db_session, season_id=season.id, difficulty=Difficulty.EASY
    )
    most = await card_service.get_most_used_cards(
        db_session, season_id=season.id, difficulty=Difficulty.EASY, limit=3
    )
    least = await card_service.get_least_used_cards(
        db_session, season_id=season.id, difficulty=Difficulty.EASY, limit=3
    )
    everything = await card_service.get_most_used_cards(
        db_session, season_id=season.id, difficulty=Difficulty.EASY
    )

    assert [c.card_number for c in unused] == [2, 4]
    assert [(c.card_number, c.usage_count) for c in most] == [(3, 5), (1, 3), (5, 3)]
    assert [(c.card_number, c.usage_count) for c in least] == [(2, 0), (4, 0), (1, 3)]
    assert len(everything) == 5
    assert other_deck.id not in {c.id for c in everything}
