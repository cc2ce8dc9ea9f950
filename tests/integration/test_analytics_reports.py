"""Integration tests for the analytics reports, including the S1 walkthrough."""

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from quizdeck.models.fields import Difficulty
from quizdeck.schemas.users import User
from quizdeck.services import analytics_service, card_service, game_service, season_service
from quizdeck.services.errors import AnalyticsError, SeasonNotFoundError


async def test_s1_walkthrough_reports_one_correct_attempt(
    db_session: AsyncSession, producer: User, host: User
) -> None:
    season = await season_service.create_season(
        db_session, name="S1", description=None, created_by_id=producer.id
    )
    card = await card_service.create_card(
        db_session,
        season_id=season.id,
        difficulty=Difficulty.EASY,
        card_number=1,
        question="Q",
        correct_answer="A",
    )

    drawn = await card_service.draw_random_card(
        db_session, season_id=season.id, difficulty=Difficulty.EASY
    )
    assert drawn.id == card.id
    assert drawn.usage_count == 1

    attempt = await game_service.record_attempt_with_validation(
        db_session,
        card_id=card.id,
        contestant_name="Zoe",
        given_answer="a",
        recorded_by_id=host.id,
    )
    assert attempt.is_correct is True

    [usage] = await analytics_service.get_card_usage_statistics(db_session, season.id)
    assert (usage.total_attempts, usage.correct_attempts, usage.success_rate) == (1, 1, 100.0)
    assert usage.usage_count == 1

    stats = await analytics_service.get_season_statistics(db_session, season.id)
    assert stats.season_name == "S1"
    assert stats.total_cards == 1
    assert stats.overall_success_rate == 100.0

    realtime = await analytics_service.get_real_time_analytics(db_session, season.id)
    assert realtime.total_contestants == 1
    assert realtime.recent_activity[0].card_number == 1

    unused = await analytics_service.get_unused_cards_analytics(db_session, season.id)
    assert unused.total_unused_cards == 0

    trends = await analytics_service.get_performance_trends(db_session, season.id)
    assert len(trends.daily_stats) == 1
    assert trends.daily_stats[0].attempts == 1

    export = await analytics_service.generate_export_data(db_session, season.id)
    assert export.season.id == season.id
    assert [c.card_number for c in export.cards] == [1]
    assert export.attempts[0].contestant_name == "Zoe"


async def test_empty_season_reports_zeros(db_session: AsyncSession, season) -> None:
    stats = await analytics_service.get_season_statistics(db_session, season.id)
    contestants = await analytics_service.get_contestant_performance_analytics(
        db_session, season.id
    )
    trends = await analytics_service.get_performance_trends(db_session, season.id, days=7)

    assert stats.total_attempts == 0
    assert stats.most_used_cards == []
    assert contestants == []
    assert trends.daily_stats == []
    assert trends.trend_analysis.attempts_growth == 0.0


async def test_unknown_season_is_not_wrapped(db_session: AsyncSession) -> None:
    with pytest.raises(SeasonNotFoundError):
        await analytics_service.get_season_statistics(db_session, 4242)


async def test_compare_seasons_fails_as_a_whole_on_unknown_season(
    db_session: AsyncSession, season
) -> None:
    with pytest.raises(AnalyticsError) as exc_info:
        await analytics_service.compare_seasons(db_session, [season.id, 4242])

    assert isinstance(exc_info.value.__cause__, SeasonNotFoundError)


async def test_compare_two_seasons(db_session: AsyncSession, season, producer: User) -> None:
    other = await season_service.create_season(
        db_session, name="S2", description=None, created_by_id=producer.id
    )
    await card_service.create_card(
        db_session,
        season_id=other.id,
        difficulty=Difficulty.HARD,
        card_number=1,
        question="Q?",
        correct_answer="A",
    )

    result = await analytics_service.compare_seasons(db_session, [season.id, other.id])

    assert [s.season_name for s in result.seasons] == ["S1", "S2"]
    assert result.comparison.total_cards[0].season_name == "S2"
    assert len(result.comparison.difficulty_distribution) == 3


async def test_query_failure_is_wrapped_as_analytics_error(
    db_session: AsyncSession, season, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def broken_execute(self, statement, *args, **kwargs):
        raise SQLAlchemyError("statement timeout")

    monkeypatch.setattr(AsyncSession, "execute", broken_execute)

    with pytest.raises(AnalyticsError) as exc_info:
        await analytics_service.get_season_statistics(db_session, season.id)

    assert isinstance(exc_info.value.__cause__, SQLAlchemyError)
    assert "season statistics" in str(exc_info.value)
