"""
Unit tests for BadgeContextLoader.
"""

from datetime import datetime, timezone

import pytest

from longevity.database.models.enums import LeagueRole, SubmissionStatus
from longevity.modules.badges.context_loader import BadgeContextLoader
from tests.fakes import EVALUATED_AT


@pytest.mark.unit
class TestBadgeContextLoader:
    async def test_unknown_athlete_returns_none(self, badge_loader):
        assert await badge_loader.load("ghost") is None

    async def test_loads_approved_submissions_only(self, store, badge_loader):
        """Pending and rejected submissions never reach the rules."""
        # Arrange
        store.add_season("s1", slug="season-1")
        store.add_athlete("ath-1")
        store.add_submission("ath-1", "s1", 3.0)
        store.add_submission("ath-1", "s1", 9.0, status=SubmissionStatus.PENDING)
        store.add_submission("ath-1", "s1", 8.0, status=SubmissionStatus.REJECTED)

        # Act
        ctx = await badge_loader.load("ath-1")

        # Assert
        assert ctx is not None
        assert ctx.age_reductions == [3.0]
        assert ctx.submissions[0].season_slug == "season-1"

    async def test_context_carries_memberships_and_latest_entry(self, store, badge_loader):
        # Arrange
        store.add_athlete("owner")
        store.add_athlete("ath-1")
        store.add_league("lg-1", owner_id="owner")
        store.add_member("lg-1", "ath-1")
        store.set_athlete_entry("ath-1", "s1", best=2.0, rank=4)
        store.set_athlete_entry("ath-1", "s2", best=5.0, rank=2)

        # Act
        ctx = await badge_loader.load("ath-1")

        # Assert
        assert len(ctx.memberships) == 1
        membership = ctx.memberships[0]
        assert membership.role is LeagueRole.MEMBER
        assert membership.league_owner_id == "owner"
        assert membership.league_member_count == 2
        assert ctx.leaderboard.season_id == "s2"
        assert ctx.leaderboard.rank == 2

    async def test_evaluated_at_comes_from_clock(self, store):
        store.add_athlete("ath-1")
        moment = datetime(2030, 1, 1, tzinfo=timezone.utc)
        loader = BadgeContextLoader(store, clock=lambda: moment)

        ctx = await loader.load("ath-1")

        assert ctx.evaluated_at == moment

    async def test_fixture_clock(self, store, badge_loader):
        store.add_athlete("ath-1")

        ctx = await badge_loader.load("ath-1")

        assert ctx.evaluated_at == EVALUATED_AT
