from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from quizdeck.models.game import (
    AttemptCreate,
    AttemptHistoryPage,
    AttemptUpdate,
    AttemptWithCard,
    CardAttemptStats,
    ContestantPerformance,
    ResetDeckRequest,
    ResetDeckResult,
    SeasonGameStats,
)
from quizdeck.schemas.users import User
from quizdeck.services import game_service
from quizdeck.services.authz import get_current_user, require_admin, require_producer
from quizdeck.services.errors import (
    AttemptRecordingError,
    CardNotFoundError,
    ContestantNotFoundError,
)
from quizdeck.utils.db_async import get_session

router = APIRouter(prefix="/api/game", tags=["game"])


@router.post("/attempts", response_model=AttemptWithCard, status_code=201)
async def record_attempt(
    payload: AttemptCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> AttemptWithCard:
    """Record a contestant's answer.

    When ``is_correct`` is omitted the answer is judged against the card.
    """
    try:
        if payload.is_correct is None:
            return await game_service.record_attempt_with_validation(
                db,
                card_id=payload.card_id,
                contestant_name=payload.contestant_name,
                given_answer=payload.given_answer,
                recorded_by_id=user.id,
            )
        return await game_service.record_attempt(
            db,
            card_id=payload.card_id,
            contestant_name=payload.contestant_name,
            given_answer=payload.given_answer,
            is_correct=payload.is_correct,
            recorded_by_id=user.id,
        )
    except CardNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except AttemptRecordingError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@router.get("/attempts", response_model=AttemptHistoryPage)
async def attempt_history(
    season_id: Optional[int] = None,
    card_id: Optional[int] = None,
    contestant_name: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> AttemptHistoryPage:
    return await game_service.get_attempt_history(
        db,
        season_id=season_id,
        card_id=card_id,
        contestant_name=contestant_name,
        page=page,
        limit=limit,
    )


@router.patch("/attempts/{attempt_id}", response_model=AttemptWithCard)
async def correct_attempt(
    attempt_id: int,
    payload: AttemptUpdate,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> AttemptWithCard:
    attempt = await game_service.update_attempt(
        db,
        attempt_id,
        contestant_name=payload.contestant_name,
        given_answer=payload.given_answer,
        is_correct=payload.is_correct,
    )
    if attempt is None:
        raise HTTPException(status_code=404, detail="Attempt not found")
    return attempt


@router.delete("/attempts/{attempt_id}", status_code=204)
async def delete_attempt(
    attempt_id: int,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> Response:
    if not await game_service.delete_attempt(db, attempt_id):
        raise HTTPException(status_code=404, detail="Attempt not found")
    return Response(status_code=204)


@router.get("/cards/{card_id}/stats", response_model=CardAttemptStats)
async def card_attempt_stats(
    card_id: int,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> CardAttemptStats:
    try:
        return await game_service.get_card_attempt_stats(db, card_id)
    except CardNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.get("/contestants/{contestant_name}", response_model=ContestantPerformance)
async def contestant_performance(
    contestant_name: str,
    season_id: Optional[int] = None,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ContestantPerformance:
    try:
        return await game_service.get_contestant_performance(
            db, contestant_name, season_id=season_id
        )
    except ContestantNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.post("/reset-deck", response_model=ResetDeckResult)
async def reset_deck(
    payload: ResetDeckRequest,
    _: User = Depends(require_producer),
    db: AsyncSession = Depends(get_session),
) -> ResetDeckResult:
    """Mark every card in a deck unused again. Attempt history is kept."""
    return await game_service.reset_deck(
        db, season_id=payload.season_id, difficulty=payload.difficulty
    )


@router.get("/seasons/{season_id}/stats", response_model=SeasonGameStats)
async def season_game_stats(
    season_id: int,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SeasonGameStats:
    return await game_service.get_season_game_stats(db, season_id)


@router.get("/seasons/{season_id}/contestants", response_model=List[str])
async def season_contestants(
    season_id: int,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> List[str]:
    return await game_service.get_season_contestants(db, season_id)
