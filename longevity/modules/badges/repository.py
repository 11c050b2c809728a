"""
Badge store.

Purpose
-------
Every read and write the badge engine performs, behind one `BadgeStore`
protocol. `SqlBadgeRepository` is the SQLAlchemy implementation; unit tests
substitute an in-memory store.

Responsibilities
----------------
- Load the pieces of a `BadgeContext` (athlete, approved submissions,
  memberships, latest leaderboard entry)
- Read the badge catalog and an athlete's earned badges
- Insert awards idempotently
- Answer the scoped lookups (`league_top_submitters`, `ocr_adopters_before`)

Non-Responsibilities
--------------------
- Rule evaluation (see `rules.py`)
- Locking (see `BadgeService`)

Design Notes
------------
Awards use PostgreSQL `INSERT ... ON CONFLICT DO NOTHING` on the
(athlete_id, badge_id) constraint. A concurrent award of the same badge
resolves to exactly one row and the loser reports "not created".
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol, Sequence, Set, Type

from sqlalchemy import and_, distinct, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert

from longevity.core.database.service import DatabaseService
from longevity.core.logging.logger import get_logger
from longevity.database.models import (
    ActivityEventType,
    Athlete,
    AthleteBadge,
    Badge,
    BiomarkerSubmission,
    EntryMethod,
    LeaderboardEntry,
    League,
    LeagueMember,
    Season,
    SubmissionStatus,
)
from longevity.domain.models import (
    AthleteSnapshot,
    BadgeRecord,
    EarnedBadge,
    LeaderboardPosition,
    MembershipSnapshot,
    SubmissionSnapshot,
)
from longevity.modules.badges.rules import BadgeLookups
from longevity.modules.shared.activity import ActivityLog, SqlActivityLog
from longevity.modules.shared.base_repository import BaseRepository

if TYPE_CHECKING:
    from logging import Logger


class BadgeStore(ActivityLog, BadgeLookups, Protocol):
    async def find_athlete(self, athlete_id: str) -> Optional[AthleteSnapshot]:
        ...

    async def list_approved_submissions(self, athlete_id: str) -> Sequence[SubmissionSnapshot]:
        ...

    async def list_memberships(self, athlete_id: str) -> Sequence[MembershipSnapshot]:
        ...

    async def latest_leaderboard_entry(self, athlete_id: str) -> Optional[LeaderboardPosition]:
        ...

    async def badge_catalog(self) -> Sequence[BadgeRecord]:
        ...

    async def awarded_badge_slugs(self, athlete_id: str) -> Set[str]:
        ...

    async def has_award(self, athlete_id: str, badge_id: str) -> bool:
        ...

    async def insert_award_if_absent(self, athlete_id: str, badge_id: str) -> bool:
        """Return True when this call created the award row."""
        ...

    async def list_athlete_badges(self, athlete_id: str) -> Sequence[EarnedBadge]:
        ...


def _badge_record(badge: Badge) -> BadgeRecord:
    return BadgeRecord(
        id=badge.id,
        slug=badge.slug,
        name=badge.name,
        category=badge.category,
        description=badge.description or "",
    )


class SqlBadgeRepository(BaseRepository[AthleteBadge]):
    """SQLAlchemy-backed `BadgeStore`."""

    def __init__(
        self,
        database: Type[DatabaseService] = DatabaseService,
        activity: Optional[ActivityLog] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(AthleteBadge, logger or get_logger(__name__))
        self.database = database
        self._activity = activity or SqlActivityLog(database)

    # ------------------------------------------------------------------ #
    # Context reads
    # ------------------------------------------------------------------ #

    async def find_athlete(self, athlete_id: str) -> Optional[AthleteSnapshot]:
        async with self.database.get_session() as session:
            athlete = await session.get(Athlete, athlete_id)
            if athlete is None:
                return None
            return AthleteSnapshot(
                id=athlete.id,
                display_name=athlete.display_name,
                verified=athlete.verified,
                created_at=athlete.created_at,
            )

    async def list_approved_submissions(self, athlete_id: str) -> List[SubmissionSnapshot]:
        stmt = (
            select(BiomarkerSubmission, Season.slug)
            .join(Season, Season.id == BiomarkerSubmission.season_id)
            .where(
                BiomarkerSubmission.athlete_id == athlete_id,
                BiomarkerSubmission.status == SubmissionStatus.APPROVED,
            )
            .order_by(BiomarkerSubmission.submitted_at, BiomarkerSubmission.id)
        )
        async with self.database.get_session() as session:
            rows = (await session.execute(stmt)).all()

        return [
            SubmissionSnapshot(
                id=submission.id,
                season_id=submission.season_id,
                season_slug=season_slug,
                age_reduction=submission.age_reduction,
                pheno_age=submission.pheno_age,
                submitted_at=submission.submitted_at,
                league_id=submission.league_id,
                entry_method=submission.entry_method,
                pace_of_aging=submission.pace_of_aging,
                crp=submission.crp,
                glucose=submission.glucose,
                creatinine=submission.creatinine,
                alp=submission.alp,
            )
            for submission, season_slug in rows
        ]

    async def list_memberships(self, athlete_id: str) -> List[MembershipSnapshot]:
        member_counts = (
            select(LeagueMember.league_id, func.count().label("member_count"))
            .group_by(LeagueMember.league_id)
            .subquery()
        )
        stmt = (
            select(
                LeagueMember.league_id,
                LeagueMember.role,
                League.owner_id,
                member_counts.c.member_count,
            )
            .join(League, League.id == LeagueMember.league_id)
            .join(member_counts, member_counts.c.league_id == LeagueMember.league_id)
            .where(LeagueMember.athlete_id == athlete_id)
        )
        async with self.database.get_session() as session:
            rows = (await session.execute(stmt)).all()

        return [
            MembershipSnapshot(
                league_id=league_id,
                role=role,
                league_owner_id=owner_id,
                league_member_count=int(member_count),
            )
            for league_id, role, owner_id, member_count in rows
        ]

    async def latest_leaderboard_entry(self, athlete_id: str) -> Optional[LeaderboardPosition]:
        async with self.database.get_session() as session:
            stmt = (
                select(LeaderboardEntry)
                .where(LeaderboardEntry.athlete_id == athlete_id)
                .order_by(LeaderboardEntry.updated_at.desc(), LeaderboardEntry.id)
                .limit(1)
            )
            entry = (await session.execute(stmt)).scalar_one_or_none()
            if entry is None:
                return None
            return LeaderboardPosition(
                season_id=entry.season_id,
                rank=entry.rank,
                best_age_reduction=entry.best_age_reduction,
            )

    # ------------------------------------------------------------------ #
    # Catalog and awards
    # ------------------------------------------------------------------ #

    async def badge_catalog(self) -> List[BadgeRecord]:
        async with self.database.get_session() as session:
            badges = (await session.execute(select(Badge).order_by(Badge.slug))).scalars().all()
            return [_badge_record(badge) for badge in badges]

    async def awarded_badge_slugs(self, athlete_id: str) -> Set[str]:
        stmt = (
            select(Badge.slug)
            .join(AthleteBadge, AthleteBadge.badge_id == Badge.id)
            .where(AthleteBadge.athlete_id == athlete_id)
        )
        async with self.database.get_session() as session:
            return set((await session.execute(stmt)).scalars().all())

    async def has_award(self, athlete_id: str, badge_id: str) -> bool:
        async with self.database.get_session() as session:
            found = await self.count(
                session,
                AthleteBadge.athlete_id == athlete_id,
                AthleteBadge.badge_id == badge_id,
            )
            return found > 0

    async def insert_award_if_absent(self, athlete_id: str, badge_id: str) -> bool:
        stmt = (
            pg_insert(AthleteBadge)
            .values(athlete_id=athlete_id, badge_id=badge_id)
            .on_conflict_do_nothing(constraint="uq_athlete_badges_athlete_badge")
            .returning(AthleteBadge.id)
        )
        async with self.database.get_transaction() as session:
            created_id = (await session.execute(stmt)).scalar_one_or_none()

        self.log.debug(
            "Badge award insert",
            extra={"athlete_id": athlete_id, "badge_id": badge_id, "created": created_id is not None},
        )
        return created_id is not None

    async def list_athlete_badges(self, athlete_id: str) -> List[EarnedBadge]:
        stmt = (
            select(AthleteBadge.earned_at, Badge)
            .join(Badge, Badge.id == AthleteBadge.badge_id)
            .where(AthleteBadge.athlete_id == athlete_id)
            .order_by(AthleteBadge.earned_at.desc(), Badge.slug)
        )
        async with self.database.get_session() as session:
            rows = (await session.execute(stmt)).all()
            return [EarnedBadge(badge=_badge_record(badge), earned_at=earned_at) for earned_at, badge in rows]

    async def append_activity_event(
        self,
        event_type: ActivityEventType,
        message: str,
        data: Dict[str, Any],
        athlete_id: Optional[str] = None,
        season_id: Optional[str] = None,
    ) -> None:
        await self._activity.append_activity_event(
            event_type, message, data, athlete_id=athlete_id, season_id=season_id
        )

    # ------------------------------------------------------------------ #
    # Scoped lookups
    # ------------------------------------------------------------------ #

    async def league_top_submitters(self, league_id: str) -> List[str]:
        """Current members holding the league's top approved age reduction."""
        current_member = and_(
            LeagueMember.athlete_id == BiomarkerSubmission.athlete_id,
            LeagueMember.league_id == BiomarkerSubmission.league_id,
        )
        approved_in_league = (
            BiomarkerSubmission.league_id == league_id,
            BiomarkerSubmission.status == SubmissionStatus.APPROVED,
        )
        top_value = (
            select(func.max(BiomarkerSubmission.age_reduction))
            .join(LeagueMember, current_member)
            .where(*approved_in_league)
            .correlate(None)
            .scalar_subquery()
        )
        stmt = (
            select(distinct(BiomarkerSubmission.athlete_id))
            .join(LeagueMember, current_member)
            .where(*approved_in_league, BiomarkerSubmission.age_reduction == top_value)
            .order_by(BiomarkerSubmission.athlete_id)
        )
        async with self.database.get_session() as session:
            return list((await session.execute(stmt)).scalars().all())

    async def ocr_adopters_before(self, before: datetime, exclude_athlete_id: str) -> int:
        stmt = select(func.count(distinct(BiomarkerSubmission.athlete_id))).where(
            BiomarkerSubmission.entry_method == EntryMethod.OCR_ASSISTED,
            BiomarkerSubmission.status == SubmissionStatus.APPROVED,
            BiomarkerSubmission.submitted_at < before,
            BiomarkerSubmission.athlete_id != exclude_athlete_id,
        )
        async with self.database.get_session() as session:
            return int((await session.execute(stmt)).scalar_one())
