"""
Badge evaluation context.

Purpose
-------
Immutable snapshot of everything the badge rules read about one athlete:
identity, approved submissions, league memberships and the latest season
standing. Built once per evaluation by `BadgeContextLoader`, then shared by
every rule so a single pass sees one consistent view.

Design Notes
------------
- `submissions` holds APPROVED submissions only, ordered by `submitted_at`
  ascending; `BadgeContext.build` performs the sort.
- `evaluated_at` is captured when the context is built. Time-based rules
  compare against it instead of reading the clock, so evaluation is
  deterministic for a given context.
- All timestamps are timezone-aware; month checks use UTC.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional, Tuple

from longevity.database.models.enums import EntryMethod, LeagueRole

from .base import (
    DomainValidationError,
    validate_aware,
    validate_finite,
    validate_non_negative,
    validate_not_blank,
)


@dataclass(frozen=True)
class AthleteSnapshot:
    id: str
    display_name: str
    verified: bool
    created_at: datetime

    def __post_init__(self) -> None:
        validate_not_blank(self.id, "id")
        validate_aware(self.created_at, "created_at")


@dataclass(frozen=True)
class SubmissionSnapshot:
    """
    One approved submission as the rules see it.

    Attributes
    ----------
    season_slug : str
        Slug of the owning season (founding-season rule)
    crp, glucose, creatinine, alp : Optional[float]
        Raw biomarkers read by the BIOMARKER rules; None when not reported
    """

    id: str
    season_id: str
    season_slug: str
    age_reduction: float
    pheno_age: float
    submitted_at: datetime
    league_id: Optional[str] = None
    entry_method: EntryMethod = EntryMethod.MANUAL
    pace_of_aging: Optional[float] = None
    crp: Optional[float] = None
    glucose: Optional[float] = None
    creatinine: Optional[float] = None
    alp: Optional[float] = None

    def __post_init__(self) -> None:
        validate_finite(self.age_reduction, "age_reduction")
        validate_aware(self.submitted_at, "submitted_at")

    @property
    def submitted_month_utc(self) -> int:
        return self.submitted_at.astimezone(timezone.utc).month


@dataclass(frozen=True)
class MembershipSnapshot:
    """A league membership plus the league facts LEAGUE rules need."""

    league_id: str
    role: LeagueRole
    league_owner_id: str
    league_member_count: int

    def __post_init__(self) -> None:
        validate_non_negative(self.league_member_count, "league_member_count")


@dataclass(frozen=True)
class LeaderboardPosition:
    """Latest (most recently updated) season standing for the athlete."""

    season_id: str
    rank: int
    best_age_reduction: float

    def __post_init__(self) -> None:
        validate_non_negative(self.rank, "rank")

    @property
    def is_ranked(self) -> bool:
        return self.rank >= 1


@dataclass(frozen=True)
class BadgeContext:
    athlete: AthleteSnapshot
    submissions: Tuple[SubmissionSnapshot, ...] = ()
    memberships: Tuple[MembershipSnapshot, ...] = ()
    leaderboard: Optional[LeaderboardPosition] = None
    evaluated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        validate_aware(self.evaluated_at, "evaluated_at")
        times = [item.submitted_at for item in self.submissions]
        if times != sorted(times):
            raise DomainValidationError(
                "submissions must be ordered by submitted_at ascending",
                field="submissions",
            )

    @classmethod
    def build(
        cls,
        athlete: AthleteSnapshot,
        submissions: Iterable[SubmissionSnapshot] = (),
        memberships: Iterable[MembershipSnapshot] = (),
        leaderboard: Optional[LeaderboardPosition] = None,
        evaluated_at: Optional[datetime] = None,
    ) -> BadgeContext:
        # id breaks ties between submissions sharing a timestamp
        ordered = sorted(submissions, key=lambda item: (item.submitted_at, item.id))
        return cls(
            athlete=athlete,
            submissions=tuple(ordered),
            memberships=tuple(memberships),
            leaderboard=leaderboard,
            evaluated_at=evaluated_at or datetime.now(timezone.utc),
        )

    @property
    def athlete_id(self) -> str:
        return self.athlete.id

    @property
    def age_reductions(self) -> list[float]:
        return [item.age_reduction for item in self.submissions]

    @property
    def best_age_reduction(self) -> Optional[float]:
        values = self.age_reductions
        return max(values) if values else None

    @property
    def distinct_season_count(self) -> int:
        return len({item.season_id for item in self.submissions})
