"""Analytics aggregator.

Every report is computed on request from rows read out of the database; the
``build_*`` functions below do the folding and never touch a session, so they
can be exercised directly in unit tests.

Rates here are percentages rounded to two decimals (0 when nothing was
attempted). Business errors such as ``SeasonNotFoundError`` propagate as-is;
anything unexpected surfaces as ``AnalyticsError`` with the cause chained.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quizdeck.models.analytics import (
    ActivityEntry,
    CardUsageStats,
    ComparisonEntry,
    DailyStat,
    DifficultyDistribution,
    DifficultySeasonEntry,
    DifficultyStats,
    ExportData,
    PerformanceTrends,
    RealTimeAnalytics,
    SeasonComparison,
    SeasonComparisonResponse,
    SeasonStats,
    TrendAnalysis,
    UnusedCard,
    UnusedCardsAnalytics,
    UnusedCardsGroup,
    UsageRankedCard,
)
from quizdeck.models.cards import CardRead
from quizdeck.models.fields import DIFFICULTIES, Difficulty
from quizdeck.models.game import ContestantPerformance
from quizdeck.models.seasons import SeasonRead
from quizdeck.schemas.attempts import Attempt
from quizdeck.schemas.cards import Card
from quizdeck.schemas.seasons import Season
from quizdeck.services.card_service import attempt_totals
from quizdeck.services.errors import AnalyticsError, QuizDeckError, SeasonNotFoundError
from quizdeck.services.game_service import build_contestant_performance, with_card
from quizdeck.utils.stats import difficulty_breakdown, percentage

logger = logging.getLogger(__name__)

RATE_DIGITS = 2
RANKED_CARDS_LIMIT = 10
RECENT_ACTIVITY_LIMIT = 20
DEFAULT_TREND_DAYS = 30


def _rate(part: float, whole: float) -> float:
    return percentage(part, whole, RATE_DIGITS)


def _ranked(card: Card) -> UsageRankedCard:
    return UsageRankedCard(
        card_id=card.id,
        card_number=card.card_number,
        difficulty=card.difficulty,
        question=card.question,
        usage_count=card.usage_count,
    )


# === Pure folds ===


def build_card_usage_stats(
    cards: Iterable[Card], totals: dict[int, tuple[int, int]]
) -> list[CardUsageStats]:
    """One entry per card; ``totals`` maps card id -> (attempts, correct)."""
    stats = []
    for card in cards:
        total, correct = totals.get(card.id or 0, (0, 0))
        stats.append(
            CardUsageStats(
                card_id=card.id,
                card_number=card.card_number,
                difficulty=card.difficulty,
                question=card.question,
                usage_count=card.usage_count,
                total_attempts=total,
                correct_attempts=correct,
                success_rate=_rate(correct, total),
                last_used=card.last_used,
            )
        )
    return stats


def build_contestant_analytics(
    pairs: Iterable[tuple[Attempt, Card]],
) -> list[ContestantPerformance]:
    """Group (attempt, card) rows, newest first, by contestant.

    Sorted by success rate, then attempt count, both descending.
    """
    grouped: dict[str, list[tuple[Attempt, Card]]] = defaultdict(list)
    for attempt, card in pairs:
        grouped[attempt.contestant_name].append((attempt, card))

    performances = [
        build_contestant_performance(name, rows, RATE_DIGITS)
        for name, rows in grouped.items()
    ]
    performances.sort(key=lambda p: (p.success_rate, p.total_attempts), reverse=True)
    return performances


def build_season_stats(
    season: Season,
    cards: Sequence[Card],
    outcomes: Iterable[tuple[Difficulty, bool]],
) -> SeasonStats:
    """Fold a season's cards and (difficulty, is_correct) attempt outcomes."""
    card_counts = {d: 0 for d in DIFFICULTIES}
    for card in cards:
        card_counts[card.difficulty] += 1

    outcomes = list(outcomes)
    correct = sum(1 for _, is_correct in outcomes if is_correct)
    breakdown = difficulty_breakdown(outcomes, RATE_DIGITS)

    by_usage = sorted(cards, key=lambda c: c.usage_count, reverse=True)

    return SeasonStats(
        season_id=season.id,
        season_name=season.name,
        total_cards=len(cards),
        total_attempts=len(outcomes),
        overall_success_rate=_rate(correct, len(outcomes)),
        difficulty_stats=[
            DifficultyStats(
                difficulty=row.difficulty,
                card_count=card_counts[row.difficulty],
                attempt_count=row.attempts,
                success_rate=row.success_rate,
            )
            for row in breakdown
        ],
        most_used_cards=[_ranked(c) for c in by_usage[:RANKED_CARDS_LIMIT]],
        least_used_cards=[_ranked(c) for c in reversed(by_usage[-RANKED_CARDS_LIMIT:])],
    )


def build_season_comparison(stats: Sequence[SeasonStats]) -> SeasonComparison:
    def ranked(value_of) -> list[ComparisonEntry]:
        entries = [
            ComparisonEntry(season_id=s.season_id, season_name=s.season_name, value=value_of(s))
            for s in stats
        ]
        return sorted(entries, key=lambda e: e.value, reverse=True)

    distribution = []
    for difficulty in DIFFICULTIES:
        entries = []
        for s in stats:
            row = next(d for d in s.difficulty_stats if d.difficulty == difficulty)
            entries.append(
                DifficultySeasonEntry(
                    season_id=s.season_id,
                    season_name=s.season_name,
                    card_count=row.card_count,
                    success_rate=row.success_rate,
                )
            )
        entries.sort(key=lambda e: e.success_rate, reverse=True)
        distribution.append(DifficultyDistribution(difficulty=difficulty, seasons=entries))

    return SeasonComparison(
        total_cards=ranked(lambda s: s.total_cards),
        total_attempts=ranked(lambda s: s.total_attempts),
        overall_success_rate=ranked(lambda s: s.overall_success_rate),
        difficulty_distribution=distribution,
    )


def build_real_time_analytics(
    outcomes: Sequence[tuple[str, Difficulty, bool]],
    recent: Iterable[tuple[Attempt, Card]],
    now: datetime,
) -> RealTimeAnalytics:
    """``outcomes`` are (contestant_name, difficulty, is_correct) for every attempt."""
    correct = sum(1 for _, _, is_correct in outcomes if is_correct)
    return RealTimeAnalytics(
        last_updated=now,
        total_attempts=len(outcomes),
        total_contestants=len({name for name, _, _ in outcomes}),
        recent_activity=[
            ActivityEntry(
                contestant_name=attempt.contestant_name,
                card_number=card.card_number,
                difficulty=card.difficulty,
                is_correct=attempt.is_correct,
                attempted_at=attempt.attempted_at,
            )
            for attempt, card in recent
        ],
        current_success_rate=_rate(correct, len(outcomes)),
        difficulty_breakdown=difficulty_breakdown(
            ((difficulty, is_correct) for _, difficulty, is_correct in outcomes),
            RATE_DIGITS,
        ),
    )


def build_unused_cards_analytics(cards: Iterable[Card]) -> UnusedCardsAnalytics:
    """Group never-drawn cards by difficulty, keeping the input order within a group."""
    groups: dict[Difficulty, list[UnusedCard]] = {d: [] for d in DIFFICULTIES}
    for card in cards:
        if card.usage_count == 0:
            groups[card.difficulty].append(
                UnusedCard(card_id=card.id, card_number=card.card_number, question=card.question)
            )
    return UnusedCardsAnalytics(
        total_unused_cards=sum(len(g) for g in groups.values()),
        unused_cards_by_difficulty=[
            UnusedCardsGroup(difficulty=d, count=len(groups[d]), cards=groups[d])
            for d in DIFFICULTIES
        ],
    )


def bucket_daily_stats(rows: Iterable[tuple[datetime, bool, str]]) -> list[DailyStat]:
    """Bucket (attempted_at, is_correct, contestant_name) rows by UTC day, ascending."""
    days: dict[str, list[tuple[bool, str]]] = defaultdict(list)
    for attempted_at, is_correct, contestant_name in rows:
        days[attempted_at.date().isoformat()].append((is_correct, contestant_name))

    return [
        DailyStat(
            date=day,
            attempts=len(entries),
            success_rate=_rate(sum(1 for ok, _ in entries if ok), len(entries)),
            unique_contestants=len({name for _, name in entries}),
        )
        for day, entries in sorted(days.items())
    ]


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _growth(before: float, after: float) -> float:
    return (after - before) / before * 100 if before > 0 else 0.0


def analyze_trend(daily_stats: Sequence[DailyStat]) -> TrendAnalysis:
    """Compare the first half of the window against the second.

    With an odd number of days the middle day falls in the second half.
    """
    midpoint = len(daily_stats) // 2
    first, second = daily_stats[:midpoint], daily_stats[midpoint:]

    first_attempts = _mean([d.attempts for d in first])
    second_attempts = _mean([d.attempts for d in second])
    first_contestants = _mean([d.unique_contestants for d in first])
    second_contestants = _mean([d.unique_contestants for d in second])

    return TrendAnalysis(
        attempts_growth=_growth(first_attempts, second_attempts),
        success_rate_change=_mean([d.success_rate for d in second])
        - _mean([d.success_rate for d in first]),
        contestant_growth=_growth(first_contestants, second_contestants),
    )


# === Database-backed reports ===


@contextmanager
def _reporting(action: str) -> Iterator[None]:
    try:
        yield
    except QuizDeckError:
        raise
    except Exception as exc:
        logger.exception(f"Failed to {action}")
        raise AnalyticsError(f"Failed to {action}: {exc}") from exc


async def _require_season(db: AsyncSession, season_id: int) -> Season:
    season = await db.get(Season, season_id)
    if season is None:
        raise SeasonNotFoundError(season_id)
    return season


async def _season_cards(db: AsyncSession, season_id: int, *filters) -> list[Card]:
    result = await db.execute(
        select(Card)
        .where(Card.season_id == season_id, *filters)  # type: ignore[arg-type]
        .order_by(Card.difficulty.asc(), Card.card_number.asc())  # type: ignore[attr-defined]
    )
    return list(result.scalars().all())


async def _season_attempts(
    db: AsyncSession, season_id: int, limit: Optional[int] = None
) -> list[tuple[Attempt, Card]]:
    stmt = (
        select(Attempt, Card)
        .join(Card, Card.id == Attempt.card_id)
        .where(Attempt.season_id == season_id)  # type: ignore[arg-type]
        .order_by(Attempt.attempted_at.desc(), Attempt.id.desc())  # type: ignore[attr-defined]
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return [(attempt, card) for attempt, card in result.all()]


async def _season_statistics(db: AsyncSession, season_id: int) -> SeasonStats:
    season = await _require_season(db, season_id)
    cards = await _season_cards(db, season_id)
    result = await db.execute(
        select(Card.difficulty, Attempt.is_correct)  # type: ignore[call-overload]
        .join(Card, Card.id == Attempt.card_id)
        .where(Attempt.season_id == season_id)
    )
    return build_season_stats(season, cards, result.all())


async def get_card_usage_statistics(db: AsyncSession, season_id: int) -> list[CardUsageStats]:
    with _reporting("calculate card usage statistics"):
        async with db.begin():
            await _require_season(db, season_id)
            cards = await _season_cards(db, season_id)
            totals = await attempt_totals(db, [c.id for c in cards if c.id is not None])
        return build_card_usage_stats(cards, totals)


async def get_contestant_performance_analytics(
    db: AsyncSession, season_id: Optional[int] = None
) -> list[ContestantPerformance]:
    with _reporting("calculate contestant performance analytics"):
        filters = []
        async with db.begin():
            if season_id is not None:
                await _require_season(db, season_id)
                filters.append(Attempt.season_id == season_id)
            result = await db.execute(
                select(Attempt, Card)
                .join(Card, Card.id == Attempt.card_id)
                .where(*filters)
                .order_by(Attempt.attempted_at.desc(), Attempt.id.desc())  # type: ignore[attr-defined]
            )
            pairs = [(attempt, card) for attempt, card in result.all()]
        return build_contestant_analytics(pairs)


async def get_season_statistics(db: AsyncSession, season_id: int) -> SeasonStats:
    with _reporting("generate season statistics"):
        async with db.begin():
            return await _season_statistics(db, season_id)


async def compare_seasons(
    db: AsyncSession, season_ids: Sequence[int]
) -> SeasonComparisonResponse:
    """Side-by-side statistics for several seasons.

    Any failure, including an unknown season id, fails the whole comparison
    with ``AnalyticsError``.
    """
    try:
        async with db.begin():
            stats = [await _season_statistics(db, sid) for sid in season_ids]
    except Exception as exc:
        logger.warning(f"Season comparison failed for {list(season_ids)}: {exc}")
        raise AnalyticsError(f"Failed to compare seasons: {exc}") from exc

    return SeasonComparisonResponse(
        seasons=stats, comparison=build_season_comparison(stats)
    )


async def generate_export_data(db: AsyncSession, season_id: int) -> ExportData:
    with _reporting("generate export data"):
        async with db.begin():
            season = await _require_season(db, season_id)
            cards = await _season_cards(db, season_id)
            attempts = await _season_attempts(db, season_id)
            stats = await _season_statistics(db, season_id)
        return ExportData(
            season=SeasonRead.model_validate(season),
            cards=[CardRead.model_validate(c) for c in cards],
            attempts=[with_card(a, c) for a, c in attempts],
            stats=stats,
            exported_at=datetime.now(UTC).replace(tzinfo=None),
        )


async def get_real_time_analytics(db: AsyncSession, season_id: int) -> RealTimeAnalytics:
    with _reporting("get real-time analytics"):
        async with db.begin():
            await _require_season(db, season_id)
            recent = await _season_attempts(db, season_id, limit=RECENT_ACTIVITY_LIMIT)
            result = await db.execute(
                select(Attempt.contestant_name, Card.difficulty, Attempt.is_correct)  # type: ignore[call-overload]
                .join(Card, Card.id == Attempt.card_id)
                .where(Attempt.season_id == season_id)
            )
            outcomes = result.all()
        return build_real_time_analytics(
            outcomes, recent, datetime.now(UTC).replace(tzinfo=None)
        )


async def get_unused_cards_analytics(
    db: AsyncSession, season_id: int
) -> UnusedCardsAnalytics:
    with _reporting("get unused cards analytics"):
        async with db.begin():
            await _require_season(db, season_id)
            cards = await _season_cards(db, season_id, Card.usage_count == 0)
        return build_unused_cards_analytics(cards)


async def get_performance_trends(
    db: AsyncSession, season_id: int, days: int = DEFAULT_TREND_DAYS
) -> PerformanceTrends:
    """Daily stats over the trailing ``days`` window plus a half-over-half trend."""
    with _reporting("get performance trends"):
        since = datetime.now(UTC).replace(tzinfo=None) - timedelta(days=days)
        async with db.begin():
            await _require_season(db, season_id)
            result = await db.execute(
                select(Attempt.attempted_at, Attempt.is_correct, Attempt.contestant_name)  # type: ignore[call-overload]
                .where(
                    Attempt.season_id == season_id,  # type: ignore[arg-type]
                    Attempt.attempted_at >= since,  # type: ignore[operator]
                )
                .order_by(Attempt.attempted_at.asc())  # type: ignore[attr-defined]
            )
            rows = result.all()
        daily = bucket_daily_stats(rows)
        return PerformanceTrends(daily_stats=daily, trend_analysis=analyze_trend(daily))
