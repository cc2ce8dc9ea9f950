"""Read-only analytics endpoints.

Unknown seasons map to 404; any other analytics failure maps to 400.
"""

from collections.abc import Awaitable
from typing import List, Optional, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from quizdeck.models.analytics import (
    CardUsageStats,
    ExportData,
    PerformanceTrends,
    RealTimeAnalytics,
    SeasonComparisonResponse,
    SeasonStats,
    UnusedCardsAnalytics,
)
from quizdeck.models.game import ContestantPerformance
from quizdeck.schemas.users import User
from quizdeck.services import analytics_service
from quizdeck.services.authz import get_current_user
from quizdeck.services.errors import AnalyticsError, SeasonNotFoundError
from quizdeck.utils.db_async import get_session

router = APIRouter(
    prefix="/api/analytics",
    tags=["analytics"],
    dependencies=[Depends(get_current_user)],
)

T = TypeVar("T")


async def _run(report: Awaitable[T]) -> T:
    try:
        return await report
    except SeasonNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except AnalyticsError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/seasons/{season_id}/cards", response_model=List[CardUsageStats])
async def card_usage(
    season_id: int, db: AsyncSession = Depends(get_session)
) -> List[CardUsageStats]:
    return await _run(analytics_service.get_card_usage_statistics(db, season_id))


@router.get("/seasons/{season_id}/stats", response_model=SeasonStats)
async def season_stats(
    season_id: int, db: AsyncSession = Depends(get_session)
) -> SeasonStats:
    return await _run(analytics_service.get_season_statistics(db, season_id))


@router.get("/seasons/{season_id}/export", response_model=ExportData)
async def export_season(
    season_id: int, db: AsyncSession = Depends(get_session)
) -> ExportData:
    return await _run(analytics_service.generate_export_data(db, season_id))


@router.get("/seasons/{season_id}/realtime", response_model=RealTimeAnalytics)
async def realtime(
    season_id: int, db: AsyncSession = Depends(get_session)
) -> RealTimeAnalytics:
    return await _run(analytics_service.get_real_time_analytics(db, season_id))


@router.get("/seasons/{season_id}/unused", response_model=UnusedCardsAnalytics)
async def unused_cards(
    season_id: int, db: AsyncSession = Depends(get_session)
) -> UnusedCardsAnalytics:
    return await _run(analytics_service.get_unused_cards_analytics(db, season_id))


@router.get("/seasons/{season_id}/trends", response_model=PerformanceTrends)
async def trends(
    season_id: int,
    days: int = Query(analytics_service.DEFAULT_TREND_DAYS, ge=1, le=365),
    db: AsyncSession = Depends(get_session),
) -> PerformanceTrends:
    return await _run(analytics_service.get_performance_trends(db, season_id, days))


@router.get("/contestants", response_model=List[ContestantPerformance])
async def contestants(
    season_id: Optional[int] = None, db: AsyncSession = Depends(get_session)
) -> List[ContestantPerformance]:
    return await _run(
        analytics_service.get_contestant_performance_analytics(db, season_id)
    )


@router.get("/compare", response_model=SeasonComparisonResponse)
async def compare(
    season_ids: List[int] = Query(...),
    db: AsyncSession = Depends(get_session),
) -> SeasonComparisonResponse:
    """Compare seasons, e.g. ``/api/analytics/compare?season_ids=1&season_ids=2``."""
    return await _run(analytics_service.compare_seasons(db, season_ids))
