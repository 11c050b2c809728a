"""
In-memory stores for unit tests.

`InMemoryStore` implements every store protocol (`BadgeStore`,
`LeagueStore`, `LeaderboardStore`, `SeasonStore`, `ActivityLog`) over plain
Python collections, so services can be exercised end to end without a
database. Query semantics mirror the SQL stores: only APPROVED submissions
count, league scores only see current members, awards are unique per
(athlete, badge).
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Collection, Dict, List, Optional, Sequence, Set, Tuple

from longevity.database.models.enums import (
    ActivityEventType,
    EntryMethod,
    LeagueRole,
    LeagueStatus,
    LeagueTier,
    SeasonStatus,
    SubmissionStatus,
)
from longevity.domain.models import (
    AthleteSnapshot,
    AthleteStanding,
    BadgeRecord,
    EarnedBadge,
    LeaderboardPosition,
    LeagueRecord,
    LeagueScore,
    LeagueStanding,
    MembershipSnapshot,
    RankAssignment,
    SeasonBest,
    SeasonRecord,
    SubmissionSnapshot,
)
from longevity.modules.badges.rules import BADGE_RULES

BASE_TIME = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)

# Fixed "now" for badge evaluation
EVALUATED_AT = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@dataclass
class FakeSubmission:
    id: str
    athlete_id: str
    season_id: str
    age_reduction: float
    submitted_at: datetime
    pheno_age: float = 45.0
    league_id: Optional[str] = None
    status: SubmissionStatus = SubmissionStatus.APPROVED
    entry_method: EntryMethod = EntryMethod.MANUAL
    pace_of_aging: Optional[float] = None
    crp: Optional[float] = None
    glucose: Optional[float] = None
    creatinine: Optional[float] = None
    alp: Optional[float] = None


@dataclass
class FakeEntry:
    """Mutable leaderboard row shared by athlete and league tables."""

    rank: int = 0
    previous_rank: Optional[int] = None
    updated_seq: int = 0
    fields: Dict[str, Any] = field(default_factory=dict)


class InMemoryStore:
    def __init__(self) -> None:
        self.athletes: Dict[str, AthleteSnapshot] = {}
        self.seasons: Dict[str, SeasonRecord] = {}
        self.submissions: List[FakeSubmission] = []
        self.leagues: Dict[str, LeagueRecord] = {}
        self.members: List[Tuple[str, str, LeagueRole]] = []
        self.athlete_entries: Dict[Tuple[str, str], FakeEntry] = {}
        self.league_entries: Dict[Tuple[str, str], FakeEntry] = {}
        self.badges: Dict[str, BadgeRecord] = {}
        self.awards: Dict[Tuple[str, str], datetime] = {}
        self.activity: List[Dict[str, Any]] = []

        self.fail_rank_writes = False
        self.fail_activity = False
        self.failing_leagues: Set[str] = set()

        self._seq = itertools.count(1)
        self._ids = itertools.count(1)

    # ------------------------------------------------------------------ #
    # Seeding helpers
    # ------------------------------------------------------------------ #

    def add_athlete(
        self,
        athlete_id: str,
        display_name: Optional[str] = None,
        verified: bool = False,
        created_at: datetime = BASE_TIME,
    ) -> AthleteSnapshot:
        athlete = AthleteSnapshot(
            id=athlete_id,
            display_name=display_name or athlete_id.title(),
            verified=verified,
            created_at=created_at,
        )
        self.athletes[athlete_id] = athlete
        return athlete

    def add_season(
        self,
        season_id: str,
        slug: Optional[str] = None,
        status: SeasonStatus = SeasonStatus.ACTIVE,
    ) -> SeasonRecord:
        season = SeasonRecord(
            id=season_id,
            slug=slug or season_id,
            name=f"Season {season_id}",
            status=status,
        )
        self.seasons[season_id] = season
        return season

    def add_submission(
        self,
        athlete_id: str,
        season_id: str,
        age_reduction: float,
        submitted_at: Optional[datetime] = None,
        **extra: Any,
    ) -> FakeSubmission:
        index = next(self._ids)
        submission = FakeSubmission(
            id=f"sub-{index:04d}",
            athlete_id=athlete_id,
            season_id=season_id,
            age_reduction=age_reduction,
            submitted_at=submitted_at or BASE_TIME + timedelta(days=index),
            **extra,
        )
        self.submissions.append(submission)
        return submission

    def add_league(
        self,
        league_id: str,
        owner_id: str,
        status: LeagueStatus = LeagueStatus.ACTIVE,
        tier: LeagueTier = LeagueTier.FREE,
        name: Optional[str] = None,
    ) -> LeagueRecord:
        league = LeagueRecord(
            id=league_id,
            name=name or f"League {league_id}",
            slug=league_id,
            owner_id=owner_id,
            tier=tier,
            status=status,
        )
        self.leagues[league_id] = league
        self.add_member(league_id, owner_id, LeagueRole.OWNER)
        return league

    def add_member(self, league_id: str, athlete_id: str, role: LeagueRole = LeagueRole.MEMBER) -> None:
        self.members.append((league_id, athlete_id, role))

    def seed_badge_catalog(self, slugs: Optional[Sequence[str]] = None) -> None:
        wanted = set(slugs) if slugs is not None else None
        for rule in BADGE_RULES:
            if wanted is not None and rule.slug not in wanted:
                continue
            self.badges[rule.slug] = BadgeRecord(
                id=f"badge-{rule.slug}",
                slug=rule.slug,
                name=rule.slug.replace("-", " ").title(),
                category=rule.category,
            )

    def set_athlete_entry(self, athlete_id: str, season_id: str, best: float, rank: int = 0) -> None:
        self.athlete_entries[(athlete_id, season_id)] = FakeEntry(
            rank=rank,
            updated_seq=next(self._seq),
            fields={"best_age_reduction": best, "submission_count": 1},
        )

    def _approved(self) -> List[FakeSubmission]:
        return [item for item in self.submissions if item.status is SubmissionStatus.APPROVED]

    def _member_ids(self, league_id: str) -> List[str]:
        return [athlete for league, athlete, _ in self.members if league == league_id]

    # ------------------------------------------------------------------ #
    # ActivityLog
    # ------------------------------------------------------------------ #

    async def append_activity_event(
        self,
        event_type: ActivityEventType,
        message: str,
        data: Dict[str, Any],
        athlete_id: Optional[str] = None,
        season_id: Optional[str] = None,
    ) -> None:
        if self.fail_activity:
            raise RuntimeError("activity feed unavailable")
        self.activity.append(
            {
                "type": event_type,
                "message": message,
                "data": dict(data),
                "athlete_id": athlete_id,
                "season_id": season_id,
            }
        )

    # ------------------------------------------------------------------ #
    # BadgeStore
    # ------------------------------------------------------------------ #

    async def find_athlete(self, athlete_id: str) -> Optional[AthleteSnapshot]:
        return self.athletes.get(athlete_id)

    async def list_approved_submissions(self, athlete_id: str) -> List[SubmissionSnapshot]:
        return [
            SubmissionSnapshot(
                id=item.id,
                season_id=item.season_id,
                season_slug=self.seasons[item.season_id].slug if item.season_id in self.seasons else item.season_id,
                age_reduction=item.age_reduction,
                pheno_age=item.pheno_age,
                submitted_at=item.submitted_at,
                league_id=item.league_id,
                entry_method=item.entry_method,
                pace_of_aging=item.pace_of_aging,
                crp=item.crp,
                glucose=item.glucose,
                creatinine=item.creatinine,
                alp=item.alp,
            )
            for item in self._approved()
            if item.athlete_id == athlete_id
        ]

    async def list_memberships(self, athlete_id: str) -> List[MembershipSnapshot]:
        return [
            MembershipSnapshot(
                league_id=league_id,
                role=role,
                league_owner_id=self.leagues[league_id].owner_id,
                league_member_count=len(self._member_ids(league_id)),
            )
            for league_id, member_id, role in self.members
            if member_id == athlete_id
        ]

    async def latest_leaderboard_entry(self, athlete_id: str) -> Optional[LeaderboardPosition]:
        rows = [
            (entry.updated_seq, season_id, entry)
            for (entry_athlete, season_id), entry in self.athlete_entries.items()
            if entry_athlete == athlete_id
        ]
        if not rows:
            return None
        _, season_id, entry = max(rows, key=lambda row: row[0])
        return LeaderboardPosition(
            season_id=season_id,
            rank=entry.rank,
            best_age_reduction=entry.fields["best_age_reduction"],
        )

    async def badge_catalog(self) -> List[BadgeRecord]:
        return list(self.badges.values())

    async def awarded_badge_slugs(self, athlete_id: str) -> Set[str]:
        by_id = {badge.id: badge.slug for badge in self.badges.values()}
        return {by_id[badge_id] for (owner, badge_id) in self.awards if owner == athlete_id}

    async def has_award(self, athlete_id: str, badge_id: str) -> bool:
        return (athlete_id, badge_id) in self.awards

    async def insert_award_if_absent(self, athlete_id: str, badge_id: str) -> bool:
        key = (athlete_id, badge_id)
        if key in self.awards:
            return False
        self.awards[key] = BASE_TIME + timedelta(minutes=len(self.awards))
        return True

    async def list_athlete_badges(self, athlete_id: str) -> List[EarnedBadge]:
        by_id = {badge.id: badge for badge in self.badges.values()}
        earned = [
            EarnedBadge(badge=by_id[badge_id], earned_at=earned_at)
            for (owner, badge_id), earned_at in self.awards.items()
            if owner == athlete_id
        ]
        return sorted(earned, key=lambda item: item.earned_at, reverse=True)

    async def league_top_submitters(self, league_id: str) -> List[str]:
        members = set(self._member_ids(league_id))
        scored = [
            item for item in self._approved() if item.league_id == league_id and item.athlete_id in members
        ]
        if not scored:
            return []
        top = max(item.age_reduction for item in scored)
        return sorted({item.athlete_id for item in scored if item.age_reduction == top})

    async def ocr_adopters_before(self, before: datetime, exclude_athlete_id: str) -> int:
        return len(
            {
                item.athlete_id
                for item in self._approved()
                if item.entry_method is EntryMethod.OCR_ASSISTED
                and item.submitted_at < before
                and item.athlete_id != exclude_athlete_id
            }
        )

    # ------------------------------------------------------------------ #
    # LeagueStore
    # ------------------------------------------------------------------ #

    async def find_league(self, league_id: str) -> Optional[LeagueRecord]:
        return self.leagues.get(league_id)

    async def list_active_leagues(self) -> List[LeagueRecord]:
        return sorted(
            (league for league in self.leagues.values() if league.status is LeagueStatus.ACTIVE),
            key=lambda league: league.id,
        )

    async def count_league_members(self, league_id: str) -> int:
        return len(self._member_ids(league_id))

    async def best_member_scores(self, league_id: str, season_id: str) -> List[float]:
        if league_id in self.failing_leagues:
            raise RuntimeError("connection reset")
        members = set(self._member_ids(league_id))
        bests: Dict[str, float] = {}
        for item in self._approved():
            if item.league_id != league_id or item.season_id != season_id or item.athlete_id not in members:
                continue
            bests[item.athlete_id] = max(bests.get(item.athlete_id, item.age_reduction), item.age_reduction)
        return list(bests.values())

    def _league_standing(self, league_id: str, season_id: str, entry: FakeEntry) -> LeagueStanding:
        return LeagueStanding(
            league_id=league_id,
            season_id=season_id,
            rank=entry.rank,
            previous_rank=entry.previous_rank,
            **entry.fields,
        )

    async def get_league_entry(self, league_id: str, season_id: str) -> Optional[LeagueStanding]:
        entry = self.league_entries.get((league_id, season_id))
        return self._league_standing(league_id, season_id, entry) if entry else None

    async def upsert_league_entry(self, league_id: str, season_id: str, score: LeagueScore) -> None:
        entry = self.league_entries.setdefault((league_id, season_id), FakeEntry())
        entry.updated_seq = next(self._seq)
        entry.fields = {
            "avg_age_reduction": score.avg_age_reduction,
            "total_members": score.total_members,
            "active_members": score.active_members,
            "best_individual": score.best_individual,
            "worst_individual": score.worst_individual,
        }

    async def list_league_entries(self, season_id: str) -> List[LeagueStanding]:
        return [
            self._league_standing(league_id, entry_season, entry)
            for (league_id, entry_season), entry in sorted(self.league_entries.items())
            if entry_season == season_id
        ]

    async def apply_league_ranks(
        self,
        season_id: str,
        assignments: Sequence[RankAssignment],
        removed_league_ids: Collection[str],
    ) -> None:
        if self.fail_rank_writes:
            raise RuntimeError("deadlock detected")
        for league_id in removed_league_ids:
            self.league_entries.pop((league_id, season_id), None)
        for assignment in assignments:
            entry = self.league_entries[(assignment.entity_id, season_id)]
            entry.rank = assignment.rank
            entry.previous_rank = assignment.previous_rank

    # ------------------------------------------------------------------ #
    # LeaderboardStore
    # ------------------------------------------------------------------ #

    async def best_season_submission(self, athlete_id: str, season_id: str) -> Optional[SeasonBest]:
        rows = [
            item
            for item in self._approved()
            if item.athlete_id == athlete_id and item.season_id == season_id
        ]
        if not rows:
            return None
        best = sorted(rows, key=lambda item: (-item.age_reduction, item.submitted_at, item.id))[0]
        return SeasonBest(
            best_age_reduction=best.age_reduction,
            best_pheno_age=best.pheno_age,
            best_pace_of_aging=best.pace_of_aging,
            submission_count=len(rows),
        )

    async def upsert_athlete_entry(self, athlete_id: str, season_id: str, best: SeasonBest) -> None:
        entry = self.athlete_entries.setdefault((athlete_id, season_id), FakeEntry())
        entry.updated_seq = next(self._seq)
        entry.fields = {
            "best_age_reduction": best.best_age_reduction,
            "submission_count": best.submission_count,
        }

    def _athlete_standing(self, athlete_id: str, season_id: str, entry: FakeEntry) -> AthleteStanding:
        athlete = self.athletes.get(athlete_id)
        return AthleteStanding(
            athlete_id=athlete_id,
            season_id=season_id,
            rank=entry.rank,
            previous_rank=entry.previous_rank,
            best_age_reduction=entry.fields["best_age_reduction"],
            submission_count=entry.fields.get("submission_count", 0),
            display_name=athlete.display_name if athlete else None,
        )

    async def list_athlete_entries(self, season_id: str) -> List[AthleteStanding]:
        return [
            self._athlete_standing(athlete_id, entry_season, entry)
            for (athlete_id, entry_season), entry in sorted(self.athlete_entries.items())
            if entry_season == season_id
        ]

    async def apply_athlete_ranks(self, season_id: str, assignments: Sequence[RankAssignment]) -> None:
        if self.fail_rank_writes:
            raise RuntimeError("deadlock detected")
        for assignment in assignments:
            entry = self.athlete_entries[(assignment.entity_id, season_id)]
            entry.rank = assignment.rank
            entry.previous_rank = assignment.previous_rank
            entry.updated_seq = next(self._seq)

    async def top_athletes(self, season_id: str, limit: int) -> List[AthleteStanding]:
        ranked = [item for item in await self.list_athlete_entries(season_id) if item.rank >= 1]
        return sorted(ranked, key=lambda item: (item.rank, item.athlete_id))[:limit]

    # ------------------------------------------------------------------ #
    # SeasonStore
    # ------------------------------------------------------------------ #

    async def find_season(self, season_id: str) -> Optional[SeasonRecord]:
        return self.seasons.get(season_id)

    async def mark_completed(self, season_id: str) -> bool:
        season = self.seasons[season_id]
        if season.is_completed:
            return False
        self.seasons[season_id] = SeasonRecord(
            id=season.id,
            slug=season.slug,
            name=season.name,
            status=SeasonStatus.COMPLETED,
            starts_at=season.starts_at,
            ends_at=season.ends_at,
        )
        return True


__all__ = ["BASE_TIME", "EVALUATED_AT", "FakeEntry", "FakeSubmission", "InMemoryStore"]
