from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from quizdeck.models.cards import (
    CardCreate,
    CardRead,
    CardsPage,
    CardUpdate,
    CardWithUsage,
    DeckSelector,
    DeckStatus,
)
from quizdeck.models.fields import Difficulty
from quizdeck.schemas.users import User
from quizdeck.services import card_service
from quizdeck.services.authz import get_current_user, require_admin, require_producer
from quizdeck.services.errors import (
    CardNotFoundError,
    DeckEmptyError,
    DeckFullError,
    DuplicateCardNumberError,
    SeasonNotFoundError,
)
from quizdeck.utils.db_async import get_session

router = APIRouter(prefix="/api/cards", tags=["cards"])


@router.post("", response_model=CardRead, status_code=201)
async def create_card(
    payload: CardCreate,
    _: User = Depends(require_producer),
    db: AsyncSession = Depends(get_session),
) -> CardRead:
    """Add a card to a deck; without a card number the lowest free slot is used."""
    try:
        if payload.card_number is None:
            card = await card_service.create_card_with_auto_number(
                db,
                season_id=payload.season_id,
                difficulty=payload.difficulty,
                question=payload.question,
                correct_answer=payload.correct_answer,
            )
        else:
            card = await card_service.create_card(
                db,
                season_id=payload.season_id,
                difficulty=payload.difficulty,
                card_number=payload.card_number,
                question=payload.question,
                correct_answer=payload.correct_answer,
            )
    except SeasonNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except DeckFullError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except DuplicateCardNumberError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return CardRead.model_validate(card)


@router.get("/deck", response_model=CardsPage)
async def list_deck(
    season_id: int,
    difficulty: Difficulty,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> CardsPage:
    return await card_service.get_cards_by_deck(
        db, season_id=season_id, difficulty=difficulty, page=page, limit=limit
    )


@router.get("/deck/status", response_model=DeckStatus)
async def deck_status(
    season_id: int,
    difficulty: Difficulty,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> DeckStatus:
    return await card_service.get_deck_status(
        db, season_id=season_id, difficulty=difficulty
    )


@router.get("/deck/statuses", response_model=List[DeckStatus])
async def all_deck_statuses(
    season_id: int,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> List[DeckStatus]:
    return await card_service.get_all_deck_statuses(db, season_id)


@router.get("/deck/unused", response_model=List[CardRead])
async def unused_cards(
    season_id: int,
    difficulty: Difficulty,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> List[CardRead]:
    cards = await card_service.get_unused_cards(
        db, season_id=season_id, difficulty=difficulty
    )
    return [CardRead.model_validate(c) for c in cards]


@router.get("/deck/most-used", response_model=List[CardRead])
async def most_used_cards(
    season_id: int,
    difficulty: Difficulty,
    limit: int = Query(10, ge=1, le=card_service.DECK_CAPACITY),
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> List[CardRead]:
    cards = await card_service.get_most_used_cards(
        db, season_id=season_id, difficulty=difficulty, limit=limit
    )
    return [CardRead.model_validate(c) for c in cards]


@router.get("/deck/least-used", response_model=List[CardRead])
async def least_used_cards(
    season_id: int,
    difficulty: Difficulty,
    limit: int = Query(10, ge=1, le=card_service.DECK_CAPACITY),
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> List[CardRead]:
    cards = await card_service.get_least_used_cards(
        db, season_id=season_id, difficulty=difficulty, limit=limit
    )
    return [CardRead.model_validate(c) for c in cards]


@router.post("/draw", response_model=CardRead)
async def draw_card(
    payload: DeckSelector,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> CardRead:
    """Draw the next card for live play."""
    try:
        card = await card_service.draw_random_card(
            db, season_id=payload.season_id, difficulty=payload.difficulty
        )
    except DeckEmptyError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return CardRead.model_validate(card)


@router.get("/{card_id}", response_model=CardWithUsage)
async def get_card(
    card_id: int,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> CardWithUsage:
    card = await card_service.get_card_with_usage(db, card_id)
    if card is None:
        raise HTTPException(status_code=404, detail="Card not found")
    return card


@router.patch("/{card_id}", response_model=CardRead)
async def update_card(
    card_id: int,
    payload: CardUpdate,
    _: User = Depends(require_producer),
    db: AsyncSession = Depends(get_session),
) -> CardRead:
    try:
        card = await card_service.update_card(
            db,
            card_id,
            question=payload.question,
            correct_answer=payload.correct_answer,
        )
    except CardNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return CardRead.model_validate(card)


@router.delete("/{card_id}", status_code=204)
async def delete_card(
    card_id: int,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> Response:
    if not await card_service.delete_card(db, card_id):
        raise HTTPException(status_code=404, detail="Card not found")
    return Response(status_code=204)
