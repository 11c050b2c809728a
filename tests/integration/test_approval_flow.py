"""
End-to-end approval flow against PostgreSQL (and Redis locks).

An approved submission is published on a fresh EventBus; the service
container wiring updates the athlete leaderboard, the league leaderboard
and the badge awards in the database.
"""

from datetime import datetime, timedelta, timezone

import pytest

from longevity.core.event.bus import EventBus
from longevity.core.event.types import SUBMISSION_APPROVED
from longevity.core.logging.logger import get_logger
from longevity.core.services.container import ServiceContainer
from longevity.database.models import (
    Athlete,
    Badge,
    BiomarkerSubmission,
    League,
    LeagueMember,
    Season,
)
from longevity.database.models.enums import LeagueRole, LeagueStatus, SeasonStatus, SubmissionStatus
from longevity.modules.badges.rules import BADGE_RULES
from longevity.modules.leaderboard.repository import SqlLeaderboardRepository
from longevity.modules.leagues.repository import SqlLeagueRepository
from longevity.modules.seasons.repository import SqlSeasonRepository
from longevity.modules.shared.exceptions import LockTimeoutError
from longevity.modules.shared.locks import LocalLockProvider, RedisLockProvider

pytestmark = [pytest.mark.integration, pytest.mark.database]

NOW = datetime.now(timezone.utc)


@pytest.fixture
async def world(seed):
    await seed(
        Season(id="s1", slug="season-1", name="Season One", status=SeasonStatus.ACTIVE),
        Athlete(id="a1", display_name="Ada", verified=True, created_at=NOW - timedelta(days=400)),
        Athlete(id="b1", display_name="Ben", created_at=NOW - timedelta(days=20)),
        League(id="lg1", name="Alpha", slug="alpha", owner_id="b1", status=LeagueStatus.ACTIVE),
        LeagueMember(league_id="lg1", athlete_id="b1", role=LeagueRole.OWNER),
        LeagueMember(league_id="lg1", athlete_id="a1"),
        *[
            Badge(id=f"b{index:02d}", slug=rule.slug, name=rule.slug.title(), category=rule.category)
            for index, rule in enumerate(BADGE_RULES)
        ],
    )


@pytest.fixture
async def container(database):
    bus = EventBus()
    services = ServiceContainer(bus, get_logger("tests.container"), locks=LocalLockProvider(wait_timeout=5.0))
    await services.initialize()
    yield services, bus
    await services.shutdown()


async def approve(seed, bus, athlete_id, name, age_reduction):
    submission = BiomarkerSubmission(
        athlete_id=athlete_id,
        season_id="s1",
        league_id="lg1",
        pheno_age=50.0 - age_reduction,
        age_reduction=age_reduction,
        status=SubmissionStatus.APPROVED,
        submitted_at=datetime.now(timezone.utc),
    )
    await seed(submission)
    return await bus.publish(
        SUBMISSION_APPROVED,
        {
            "submission_id": submission.id,
            "athlete_id": athlete_id,
            "athlete_name": name,
            "season_id": "s1",
            "league_id": "lg1",
            "pheno_age": submission.pheno_age,
            "age_reduction": age_reduction,
        },
    )


class TestApprovalFlow:
    async def test_approvals_update_leaderboards_and_badges(self, seed, world, container):
        # Arrange
        services, bus = container

        # Act
        await approve(seed, bus, "b1", "Ben", 3.0)
        results = await approve(seed, bus, "a1", "Ada", 12.0)

        # Assert
        outcome = results[0]
        assert {"verified", "age-bender", "super-ager", "anniversary"} <= set(outcome.badges.awarded)

        athletes = await SqlLeaderboardRepository().top_athletes("s1", limit=10)
        assert [(item.athlete_id, item.rank, item.previous_rank) for item in athletes] == [
            ("a1", 1, None),
            ("b1", 2, 1),
        ]

        league = await SqlLeagueRepository().get_league_entry("lg1", "s1")
        assert league.rank == 1
        assert league.active_members == 2
        assert league.avg_age_reduction == pytest.approx(7.5)

        earned = await services.badges.get_athlete_badges("a1")
        assert "league-mvp" in {item.badge.slug for item in earned}

    async def test_season_completion(self, seed, world, container):
        services, bus = container
        await approve(seed, bus, "a1", "Ada", 4.0)

        result = await services.seasons.complete_season("s1")

        assert [item.athlete_id for item in result.top_three] == ["a1"]
        assert (await SqlSeasonRepository().find_season("s1")).is_completed


class TestRedisLocks:
    async def test_redis_lock_serializes_across_providers(self, redis, mocker):
        """Two providers (two workers) contend for one season key."""
        mocker.patch("longevity.core.redis.service.Config.LOCK_WAIT_SECONDS", 0.2)
        first = RedisLockProvider(redis)
        second = RedisLockProvider(redis)

        async with first.hold("season:s1:scoring", "worker-1"):
            with pytest.raises(LockTimeoutError):
                async with second.hold("season:s1:scoring", "worker-2"):
                    pass

        async with second.hold("season:s1:scoring", "worker-2"):
            pass
