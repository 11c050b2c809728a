"""
Unit tests for AthleteLeaderboardService.

Tests the season best rebuild after approvals, the athlete rank pass, and
top-N reads used by season completion.
"""

from datetime import timedelta

import pytest

from longevity.database.models.enums import SubmissionStatus
from longevity.modules.shared.exceptions import RankRecalculationError
from tests.fakes import BASE_TIME


@pytest.fixture
def season(store):
    store.add_season("s1")
    for athlete_id, name in (("a1", "Ada"), ("b1", "Ben"), ("c1", "Cy")):
        store.add_athlete(athlete_id, display_name=name)
    return "s1"


@pytest.mark.unit
class TestRecordApprovedSubmission:
    async def test_builds_season_best(self, leaderboard_service, store, season):
        """The best submission supplies pheno age and pace of aging together."""
        # Arrange
        store.add_submission("a1", season, 3.0, pheno_age=50.0, pace_of_aging=0.9)
        store.add_submission("a1", season, 6.5, pheno_age=44.0, pace_of_aging=0.8)
        store.add_submission("a1", season, 9.0, status=SubmissionStatus.REJECTED)

        # Act
        best = await leaderboard_service.record_approved_submission("a1", season)

        # Assert
        assert best.best_age_reduction == 6.5
        assert best.best_pheno_age == 44.0
        assert best.best_pace_of_aging == 0.8
        assert best.submission_count == 2

    async def test_earliest_submission_wins_a_tie(self, leaderboard_service, store, season):
        store.add_submission("a1", season, 4.0, pheno_age=41.0, submitted_at=BASE_TIME)
        store.add_submission("a1", season, 4.0, pheno_age=47.0, submitted_at=BASE_TIME + timedelta(days=3))

        best = await leaderboard_service.record_approved_submission("a1", season)

        assert best.best_pheno_age == 41.0

    async def test_nothing_to_record(self, leaderboard_service, store, season):
        store.add_submission("a1", season, 3.0, status=SubmissionStatus.PENDING)

        assert await leaderboard_service.record_approved_submission("a1", season) is None
        assert store.athlete_entries == {}

    async def test_reranks_the_season(self, leaderboard_service, store, season):
        # Arrange
        store.add_submission("a1", season, 2.0)
        store.add_submission("b1", season, 5.0)
        await leaderboard_service.record_approved_submission("a1", season)
        await leaderboard_service.record_approved_submission("b1", season)

        # Act: a1 overtakes b1
        store.add_submission("a1", season, 8.0)
        await leaderboard_service.record_approved_submission("a1", season)

        # Assert
        standings = {item.athlete_id: item for item in await store.list_athlete_entries(season)}
        assert (standings["a1"].rank, standings["a1"].previous_rank) == (1, 2)
        assert (standings["b1"].rank, standings["b1"].previous_rank) == (2, 1)


@pytest.mark.unit
class TestAthleteRanks:
    async def test_ties_break_by_athlete_id(self, leaderboard_service, store, season):
        for athlete_id in ("c1", "a1", "b1"):
            store.set_athlete_entry(athlete_id, season, best=3.0)

        assignments = await leaderboard_service.recalculate_athlete_ranks(season)

        assert [item.entity_id for item in assignments] == ["a1", "b1", "c1"]

    async def test_failure_is_wrapped(self, leaderboard_service, store, season):
        store.set_athlete_entry("a1", season, best=3.0)
        store.fail_rank_writes = True

        with pytest.raises(RankRecalculationError) as exc_info:
            await leaderboard_service.recalculate_athlete_ranks(season)

        assert exc_info.value.scope == "athlete"
        assert exc_info.value.error_code == "ATHLETE_RANK_RECALCULATION_FAILED"

    async def test_top_athletes(self, leaderboard_service, store, season):
        # Arrange
        store.set_athlete_entry("a1", season, best=1.0)
        store.set_athlete_entry("b1", season, best=9.0)
        store.set_athlete_entry("c1", season, best=4.0)
        await leaderboard_service.recalculate_athlete_ranks(season)

        # Act
        top = await leaderboard_service.get_top_athletes(season, limit=2)

        # Assert
        assert [(item.athlete_id, item.rank) for item in top] == [("b1", 1), ("c1", 2)]
        assert top[0].display_name == "Ben"

    async def test_unranked_entries_are_not_listed(self, leaderboard_service, store, season):
        store.set_athlete_entry("a1", season, best=1.0)

        assert await leaderboard_service.get_top_athletes(season) == []
