from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from quizdeck.models.seasons import (
    SeasonCreate,
    SeasonDeckStat,
    SeasonRead,
    SeasonUpdate,
    SeasonWithCreator,
    SeasonWithStats,
)
from quizdeck.schemas.users import User
from quizdeck.services import season_service
from quizdeck.services.authz import get_current_user, require_admin, require_producer
from quizdeck.utils.db_async import get_session

router = APIRouter(prefix="/api/seasons", tags=["seasons"])


@router.post("", response_model=SeasonRead, status_code=201)
async def create_season(
    payload: SeasonCreate,
    user: User = Depends(require_producer),
    db: AsyncSession = Depends(get_session),
) -> SeasonRead:
    """Create a season owned by the acting producer."""
    season = await season_service.create_season(
        db,
        name=payload.name,
        description=payload.description,
        created_by_id=user.id,
    )
    return SeasonRead.model_validate(season)


@router.get("", response_model=List[SeasonWithStats])
async def list_seasons(
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> List[SeasonWithStats]:
    return await season_service.get_all_seasons_with_stats(db)


@router.get("/mine", response_model=List[SeasonRead])
async def list_my_seasons(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> List[SeasonRead]:
    seasons = await season_service.get_seasons_by_user(db, user.id)
    return [SeasonRead.model_validate(s) for s in seasons]


@router.get("/{season_id}", response_model=SeasonWithCreator)
async def get_season(
    season_id: int,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SeasonWithCreator:
    season = await season_service.get_season_with_creator(db, season_id)
    if season is None:
        raise HTTPException(status_code=404, detail="Season not found")
    return season


@router.patch("/{season_id}", response_model=SeasonRead)
async def update_season(
    season_id: int,
    payload: SeasonUpdate,
    _: User = Depends(require_producer),
    db: AsyncSession = Depends(get_session),
) -> SeasonRead:
    season = await season_service.update_season(
        db, season_id, name=payload.name, description=payload.description
    )
    if season is None:
        raise HTTPException(status_code=404, detail="Season not found")
    return SeasonRead.model_validate(season)


@router.delete("/{season_id}", status_code=204)
async def delete_season(
    season_id: int,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> Response:
    """Delete a season along with its cards and attempts."""
    if not await season_service.delete_season(db, season_id):
        raise HTTPException(status_code=404, detail="Season not found")
    return Response(status_code=204)


@router.get("/{season_id}/decks", response_model=List[SeasonDeckStat])
async def get_season_decks(
    season_id: int,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> List[SeasonDeckStat]:
    if not await season_service.season_exists(db, season_id):
        raise HTTPException(status_code=404, detail="Season not found")
    return await season_service.get_season_deck_stats(db, season_id)
