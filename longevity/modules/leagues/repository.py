"""
League store.

Purpose
-------
Reads league membership and approved submissions for scoring, and owns the
`league_leaderboard_entries` table.

Design Notes
------------
- `best_member_scores` counts only current members, and only submissions
  made into this league for this season.
- `apply_league_ranks` writes a whole season's ranks and removals in one
  transaction; a failure leaves the previous ranking untouched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Collection, List, Optional, Protocol, Sequence, Type

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert

from longevity.core.database.base import utc_now
from longevity.core.database.service import DatabaseService
from longevity.core.logging.logger import get_logger
from longevity.database.models import (
    BiomarkerSubmission,
    League,
    LeagueLeaderboardEntry,
    LeagueMember,
    LeagueStatus,
    SubmissionStatus,
)
from longevity.domain.models import LeagueRecord, LeagueScore, LeagueStanding, RankAssignment
from longevity.modules.shared.base_repository import BaseRepository

if TYPE_CHECKING:
    from logging import Logger


class LeagueStore(Protocol):
    async def find_league(self, league_id: str) -> Optional[LeagueRecord]:
        ...

    async def list_active_leagues(self) -> Sequence[LeagueRecord]:
        ...

    async def count_league_members(self, league_id: str) -> int:
        ...

    async def best_member_scores(self, league_id: str, season_id: str) -> Sequence[float]:
        """One best approved age reduction per active member."""
        ...

    async def get_league_entry(self, league_id: str, season_id: str) -> Optional[LeagueStanding]:
        ...

    async def upsert_league_entry(self, league_id: str, season_id: str, score: LeagueScore) -> None:
        """Write score fields; rank and previous_rank are left alone."""
        ...

    async def list_league_entries(self, season_id: str) -> Sequence[LeagueStanding]:
        ...

    async def apply_league_ranks(
        self,
        season_id: str,
        assignments: Sequence[RankAssignment],
        removed_league_ids: Collection[str],
    ) -> None:
        ...


def _league_record(league: League) -> LeagueRecord:
    return LeagueRecord(
        id=league.id,
        name=league.name,
        slug=league.slug,
        owner_id=league.owner_id,
        tier=league.tier,
        status=league.status,
    )


def _standing(entry: LeagueLeaderboardEntry) -> LeagueStanding:
    return LeagueStanding(
        league_id=entry.league_id,
        season_id=entry.season_id,
        rank=entry.rank,
        previous_rank=entry.previous_rank,
        avg_age_reduction=entry.avg_age_reduction,
        total_members=entry.total_members,
        active_members=entry.active_members,
        best_individual=entry.best_individual,
        worst_individual=entry.worst_individual,
    )


class SqlLeagueRepository(BaseRepository[LeagueLeaderboardEntry]):
    """SQLAlchemy-backed `LeagueStore`."""

    def __init__(
        self,
        database: Type[DatabaseService] = DatabaseService,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(LeagueLeaderboardEntry, logger or get_logger(__name__))
        self.database = database

    async def find_league(self, league_id: str) -> Optional[LeagueRecord]:
        async with self.database.get_session() as session:
            league = await session.get(League, league_id)
            return _league_record(league) if league is not None else None

    async def list_active_leagues(self) -> List[LeagueRecord]:
        stmt = select(League).where(League.status == LeagueStatus.ACTIVE).order_by(League.id)
        async with self.database.get_session() as session:
            leagues = (await session.execute(stmt)).scalars().all()
            return [_league_record(league) for league in leagues]

    async def count_league_members(self, league_id: str) -> int:
        stmt = select(func.count()).select_from(LeagueMember).where(LeagueMember.league_id == league_id)
        async with self.database.get_session() as session:
            return int((await session.execute(stmt)).scalar_one())

    async def best_member_scores(self, league_id: str, season_id: str) -> List[float]:
        stmt = (
            select(func.max(BiomarkerSubmission.age_reduction))
            .join(
                LeagueMember,
                and_(
                    LeagueMember.athlete_id == BiomarkerSubmission.athlete_id,
                    LeagueMember.league_id == BiomarkerSubmission.league_id,
                ),
            )
            .where(
                BiomarkerSubmission.league_id == league_id,
                BiomarkerSubmission.season_id == season_id,
                BiomarkerSubmission.status == SubmissionStatus.APPROVED,
            )
            .group_by(BiomarkerSubmission.athlete_id)
        )
        async with self.database.get_session() as session:
            return [float(value) for value in (await session.execute(stmt)).scalars().all()]

    async def get_league_entry(self, league_id: str, season_id: str) -> Optional[LeagueStanding]:
        async with self.database.get_session() as session:
            entry = await self.find_one_where(
                session,
                LeagueLeaderboardEntry.league_id == league_id,
                LeagueLeaderboardEntry.season_id == season_id,
            )
            return _standing(entry) if entry is not None else None

    async def upsert_league_entry(self, league_id: str, season_id: str, score: LeagueScore) -> None:
        fields = {
            "avg_age_reduction": score.avg_age_reduction,
            "total_members": score.total_members,
            "active_members": score.active_members,
            "best_individual": score.best_individual,
            "worst_individual": score.worst_individual,
        }
        stmt = (
            pg_insert(LeagueLeaderboardEntry)
            .values(league_id=league_id, season_id=season_id, rank=0, **fields)
            .on_conflict_do_update(
                constraint="uq_league_leaderboard_entries_league_season",
                set_={**fields, "updated_at": utc_now()},
            )
        )
        async with self.database.get_transaction() as session:
            await session.execute(stmt)

        self.log.debug(
            "League leaderboard entry upserted",
            extra={"league_id": league_id, "season_id": season_id, "active_members": score.active_members},
        )

    async def list_league_entries(self, season_id: str) -> List[LeagueStanding]:
        async with self.database.get_session() as session:
            entries = await self.find_many_where(
                session,
                LeagueLeaderboardEntry.season_id == season_id,
                order_by=[LeagueLeaderboardEntry.league_id],
            )
            return [_standing(entry) for entry in entries]

    async def apply_league_ranks(
        self,
        season_id: str,
        assignments: Sequence[RankAssignment],
        removed_league_ids: Collection[str],
    ) -> None:
        async with self.database.get_transaction() as session:
            if removed_league_ids:
                await session.execute(
                    delete(LeagueLeaderboardEntry).where(
                        LeagueLeaderboardEntry.season_id == season_id,
                        LeagueLeaderboardEntry.league_id.in_(list(removed_league_ids)),
                    )
                )
            for assignment in assignments:
                await session.execute(
                    update(LeagueLeaderboardEntry)
                    .where(
                        LeagueLeaderboardEntry.season_id == season_id,
                        LeagueLeaderboardEntry.league_id == assignment.entity_id,
                    )
                    .values(rank=assignment.rank, previous_rank=assignment.previous_rank)
                )

        self.log.debug(
            "League ranks applied",
            extra={
                "season_id": season_id,
                "ranked_count": len(assignments),
                "removed_count": len(removed_league_ids),
            },
        )
