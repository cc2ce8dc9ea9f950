"""Season store."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import UTC, datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from quizdeck.models.fields import DIFFICULTIES, Difficulty
from quizdeck.models.seasons import (
    CreatorSummary,
    SeasonDeckStat,
    SeasonRead,
    SeasonWithCreator,
    SeasonWithStats,
)
from quizdeck.schemas.attempts import Attempt
from quizdeck.schemas.cards import Card
from quizdeck.schemas.seasons import Season
from quizdeck.schemas.users import User

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def _creator(user: Optional[User]) -> Optional[CreatorSummary]:
    if user is None:
        return None
    return CreatorSummary(name=user.name, email=user.email)


def build_deck_stats(rows: list[tuple[Difficulty, int]]) -> list[SeasonDeckStat]:
    """Fold (difficulty, usage_count) card rows into per-deck usage totals."""
    stats = []
    for difficulty in DIFFICULTIES:
        usage = [count for d, count in rows if d == difficulty]
        total_usage = sum(usage)
        stats.append(
            SeasonDeckStat(
                difficulty=difficulty,
                total_cards=len(usage),
                total_usage=total_usage,
                average_usage=total_usage / len(usage) if usage else 0.0,
            )
        )
    return stats


async def create_season(
    db: AsyncSession,
    *,
    name: str,
    description: Optional[str],
    created_by_id: int,
) -> Season:
    now = _now()
    season = Season(
        name=name,
        description=description,
        created_by_id=created_by_id,
        created_at=now,
        updated_at=now,
    )
    async with db.begin():
        db.add(season)
        await db.flush()
    logger.info(f"Created season {season.id} ({season.name!r})")
    return season


async def get_all_seasons_with_stats(db: AsyncSession) -> list[SeasonWithStats]:
    """All seasons, newest first, with creator and per-deck card counts."""
    async with db.begin():
        result = await db.execute(
            select(Season, User)
            .outerjoin(User, User.id == Season.created_by_id)
            .order_by(Season.created_at.desc(), Season.id.desc())  # type: ignore[attr-defined]
        )
        seasons = result.all()

        card_rows = (
            await db.execute(select(Card.season_id, Card.difficulty))  # type: ignore[call-overload]
        ).all()
        attempt_rows = (
            await db.execute(
                select(Attempt.season_id, func.count(Attempt.id))  # type: ignore[arg-type]
                .group_by(Attempt.season_id)
            )
        ).all()

    deck_counts: Counter[tuple[int, Difficulty]] = Counter(
        (season_id, difficulty) for season_id, difficulty in card_rows
    )
    card_totals: Counter[int] = Counter(season_id for season_id, _ in card_rows)
    attempt_totals = {season_id: count for season_id, count in attempt_rows}

    return [
        SeasonWithStats(
            **SeasonRead.model_validate(season).model_dump(),
            created_by=_creator(creator),
            total_cards=card_totals[season.id],
            total_attempts=attempt_totals.get(season.id, 0),
            easy_deck_count=deck_counts[(season.id, Difficulty.EASY)],
            medium_deck_count=deck_counts[(season.id, Difficulty.MEDIUM)],
            hard_deck_count=deck_counts[(season.id, Difficulty.HARD)],
        )
        for season, creator in seasons
    ]


async def get_season_by_id(db: AsyncSession, season_id: int) -> Optional[Season]:
    async with db.begin():
        return await db.get(Season, season_id)


async def get_season_with_creator(
    db: AsyncSession, season_id: int
) -> Optional[SeasonWithCreator]:
    async with db.begin():
        season = await db.get(Season, season_id)
        if season is None:
            return None
        creator = await db.get(User, season.created_by_id)
    return SeasonWithCreator(
        **SeasonRead.model_validate(season).model_dump(),
        created_by=_creator(creator),
    )


async def update_season(
    db: AsyncSession,
    season_id: int,
    *,
    name: Optional[str] = None,
    description: Optional[str] = None,
) -> Optional[Season]:
    async with db.begin():
        season = await db.get(Season, season_id)
        if season is None:
            return None
        if name is not None:
            season.name = name
        if description is not None:
            season.description = description
        season.updated_at = _now()
        db.add(season)
    return season


async def delete_season(db: AsyncSession, season_id: int) -> bool:
    """Delete a season; its cards and attempts go with it."""
    async with db.begin():
        season = await db.get(Season, season_id)
        if season is None:
            return False
        await db.delete(season)
    logger.info(f"Deleted season {season_id}")
    return True


async def season_exists(db: AsyncSession, season_id: int) -> bool:
    async with db.begin():
        count = await db.scalar(
            select(func.count()).select_from(Season).where(Season.id == season_id)  # type: ignore[arg-type]
        )
    return bool(count)


async def get_season_deck_stats(db: AsyncSession, season_id: int) -> list[SeasonDeckStat]:
    async with db.begin():
        result = await db.execute(
            select(Card.difficulty, Card.usage_count).where(  # type: ignore[call-overload]
                Card.season_id == season_id
            )
        )
        rows = result.all()
    return build_deck_stats(rows)


async def get_seasons_by_user(db: AsyncSession, user_id: int) -> list[Season]:
    async with db.begin():
        result = await db.execute(
            select(Season)
            .where(Season.created_by_id == user_id)  # type: ignore[arg-type]
            .order_by(Season.created_at.desc(), Season.id.desc())  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())
