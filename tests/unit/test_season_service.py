"""
Unit tests for SeasonService.complete_season.
"""

import pytest

from longevity.core.event.types import SEASON_COMPLETED
from longevity.database.models.enums import ActivityEventType, SeasonStatus
from longevity.modules.shared.exceptions import InvalidOperationError, SeasonNotFoundError


@pytest.fixture
async def ranked_season(store, leaderboard_service):
    """Season s1 with four ranked athletes: d1 > c1 > b1 > a1."""
    store.add_season("s1", slug="season-1")
    for index, (athlete_id, name) in enumerate((("a1", "Ada"), ("b1", "Ben"), ("c1", "Cy"), ("d1", "Dee"))):
        store.add_athlete(athlete_id, display_name=name)
        store.add_submission(athlete_id, "s1", float(index + 1))
        await leaderboard_service.record_approved_submission(athlete_id, "s1")
    return "s1"


@pytest.mark.unit
class TestCompleteSeason:
    async def test_completes_and_records_top_three(self, season_service, store, mock_event_bus, ranked_season):
        # Act
        result = await season_service.complete_season(ranked_season)

        # Assert
        assert store.seasons[ranked_season].status is SeasonStatus.COMPLETED
        assert [item.athlete_id for item in result.top_three] == ["d1", "c1", "b1"]
        assert result.badge_errors == {}

        entry = next(item for item in store.activity if item["type"] is ActivityEventType.SEASON_COMPLETED)
        assert entry["message"] == "Season s1 has been completed"
        assert entry["season_id"] == ranked_season
        assert entry["data"]["topThree"][0] == {
            "rank": 1,
            "athleteId": "d1",
            "athleteName": "Dee",
            "ageReduction": 4.0,
        }

        published = [call.args for call in mock_event_bus.publish.await_args_list]
        assert any(name == SEASON_COMPLETED and data["season_slug"] == "season-1" for name, data in published)

    async def test_final_top_athletes_get_a_badge_pass(self, season_service, store, ranked_season):
        await season_service.complete_season(ranked_season)

        assert "podium" in await store.awarded_badge_slugs("d1")
        assert "podium" not in await store.awarded_badge_slugs("a1")
        assert "top-10" in await store.awarded_badge_slugs("a1")

    async def test_badge_failures_do_not_abort_completion(
        self, season_service, badge_service, store, mocker, ranked_season
    ):
        """One athlete's failed badge pass is reported, the rest complete."""
        # Arrange
        original = badge_service.check_and_award_badges

        async def flaky(athlete_id):
            if athlete_id == "c1":
                raise RuntimeError("badge store timeout")
            return await original(athlete_id)

        mocker.patch.object(badge_service, "check_and_award_badges", side_effect=flaky)

        # Act
        result = await season_service.complete_season(ranked_season)

        # Assert
        assert result.badge_errors == {"c1": "badge store timeout"}
        assert store.seasons[ranked_season].is_completed
        assert "podium" in await store.awarded_badge_slugs("d1")

    async def test_unknown_season(self, season_service):
        with pytest.raises(SeasonNotFoundError):
            await season_service.complete_season("s404")

    async def test_cannot_complete_twice(self, season_service, ranked_season):
        await season_service.complete_season(ranked_season)

        with pytest.raises(InvalidOperationError):
            await season_service.complete_season(ranked_season)

    async def test_badge_depth_follows_config(self, season_service, store, mocker, ranked_season):
        mocker.patch("longevity.modules.seasons.service.Config.SEASON_COMPLETION_BADGE_DEPTH", 2)

        result = await season_service.complete_season(ranked_season)

        assert [item.athlete_id for item in result.final_rankings] == ["d1", "c1"]
        assert await store.awarded_badge_slugs("a1") == set()

    async def test_activity_failure_is_tolerated(self, season_service, store, ranked_season):
        store.fail_activity = True

        result = await season_service.complete_season(ranked_season)

        assert len(result.top_three) == 3
