"""
Athlete leaderboard store.

Owns `leaderboard_entries`. Season bests are always recomputed from the
approved submissions, never incremented in place.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Protocol, Sequence, Type

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert

from longevity.core.database.base import utc_now
from longevity.core.database.service import DatabaseService
from longevity.core.logging.logger import get_logger
from longevity.database.models import Athlete, BiomarkerSubmission, LeaderboardEntry, SubmissionStatus
from longevity.domain.models import AthleteStanding, RankAssignment, SeasonBest
from longevity.modules.shared.base_repository import BaseRepository

if TYPE_CHECKING:
    from logging import Logger


class LeaderboardStore(Protocol):
    async def best_season_submission(self, athlete_id: str, season_id: str) -> Optional[SeasonBest]:
        ...

    async def upsert_athlete_entry(self, athlete_id: str, season_id: str, best: SeasonBest) -> None:
        ...

    async def list_athlete_entries(self, season_id: str) -> Sequence[AthleteStanding]:
        ...

    async def apply_athlete_ranks(self, season_id: str, assignments: Sequence[RankAssignment]) -> None:
        ...

    async def top_athletes(self, season_id: str, limit: int) -> Sequence[AthleteStanding]:
        """Ranked entries only, best first."""
        ...


def _standing(entry: LeaderboardEntry, display_name: Optional[str] = None) -> AthleteStanding:
    return AthleteStanding(
        athlete_id=entry.athlete_id,
        season_id=entry.season_id,
        rank=entry.rank,
        previous_rank=entry.previous_rank,
        best_age_reduction=entry.best_age_reduction,
        submission_count=entry.submission_count,
        display_name=display_name,
    )


class SqlLeaderboardRepository(BaseRepository[LeaderboardEntry]):
    def __init__(
        self,
        database: Type[DatabaseService] = DatabaseService,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(LeaderboardEntry, logger or get_logger(__name__))
        self.database = database

    async def best_season_submission(self, athlete_id: str, season_id: str) -> Optional[SeasonBest]:
        approved = (
            BiomarkerSubmission.athlete_id == athlete_id,
            BiomarkerSubmission.season_id == season_id,
            BiomarkerSubmission.status == SubmissionStatus.APPROVED,
        )
        best_stmt = (
            select(BiomarkerSubmission)
            .where(*approved)
            .order_by(
                BiomarkerSubmission.age_reduction.desc(),
                BiomarkerSubmission.submitted_at,
                BiomarkerSubmission.id,
            )
            .limit(1)
        )
        count_stmt = select(func.count()).select_from(BiomarkerSubmission).where(*approved)

        async with self.database.get_session() as session:
            best = (await session.execute(best_stmt)).scalar_one_or_none()
            if best is None:
                return None
            count = int((await session.execute(count_stmt)).scalar_one())
            return SeasonBest(
                best_age_reduction=best.age_reduction,
                best_pheno_age=best.pheno_age,
                best_pace_of_aging=best.pace_of_aging,
                submission_count=count,
            )

    async def upsert_athlete_entry(self, athlete_id: str, season_id: str, best: SeasonBest) -> None:
        fields = {
            "best_age_reduction": best.best_age_reduction,
            "best_pheno_age": best.best_pheno_age,
            "best_pace_of_aging": best.best_pace_of_aging,
            "submission_count": best.submission_count,
        }
        stmt = (
            pg_insert(LeaderboardEntry)
            .values(athlete_id=athlete_id, season_id=season_id, rank=0, **fields)
            .on_conflict_do_update(
                constraint="uq_leaderboard_entries_athlete_season",
                set_={**fields, "updated_at": utc_now()},
            )
        )
        async with self.database.get_transaction() as session:
            await session.execute(stmt)

    async def list_athlete_entries(self, season_id: str) -> List[AthleteStanding]:
        async with self.database.get_session() as session:
            entries = await self.find_many_where(
                session,
                LeaderboardEntry.season_id == season_id,
                order_by=[LeaderboardEntry.athlete_id],
            )
            return [_standing(entry) for entry in entries]

    async def apply_athlete_ranks(self, season_id: str, assignments: Sequence[RankAssignment]) -> None:
        async with self.database.get_transaction() as session:
            for assignment in assignments:
                await session.execute(
                    update(LeaderboardEntry)
                    .where(
                        LeaderboardEntry.season_id == season_id,
                        LeaderboardEntry.athlete_id == assignment.entity_id,
                    )
                    .values(rank=assignment.rank, previous_rank=assignment.previous_rank)
                )

        self.log.debug(
            "Athlete ranks applied",
            extra={"season_id": season_id, "ranked_count": len(assignments)},
        )

    async def top_athletes(self, season_id: str, limit: int) -> List[AthleteStanding]:
        stmt = (
            select(LeaderboardEntry, Athlete.display_name)
            .join(Athlete, Athlete.id == LeaderboardEntry.athlete_id)
            .where(LeaderboardEntry.season_id == season_id, LeaderboardEntry.rank >= 1)
            .order_by(LeaderboardEntry.rank, LeaderboardEntry.athlete_id)
            .limit(limit)
        )
        async with self.database.get_session() as session:
            rows = (await session.execute(stmt)).all()
            return [_standing(entry, display_name) for entry, display_name in rows]
