"""
Standings value objects shared by league scoring and rank assignment.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .base import DomainValidationError, validate_finite, validate_non_negative


@dataclass(frozen=True)
class LeagueScore:
    """
    Aggregate score of one league in one season.

    Attributes
    ----------
    avg_age_reduction : float
        Mean of the top-N member bests
    total_members : int
        All members of the league
    active_members : int
        Members with at least one approved submission in the season
    best_individual : float
        Highest member best among those counted
    worst_individual : float
        Lowest member best among those counted (inside the top-N subset)
    top_member_scores : Tuple[float, ...]
        The counted member bests, descending
    """

    avg_age_reduction: float
    total_members: int
    active_members: int
    best_individual: float
    worst_individual: float
    top_member_scores: Tuple[float, ...] = ()

    def __post_init__(self) -> None:
        validate_finite(self.avg_age_reduction, "avg_age_reduction")
        validate_non_negative(self.total_members, "total_members")
        validate_non_negative(self.active_members, "active_members")
        if self.active_members > self.total_members:
            raise DomainValidationError(
                "active_members cannot exceed total_members",
                field="active_members",
            )

    @classmethod
    def empty(cls, total_members: int) -> LeagueScore:
        return cls(
            avg_age_reduction=0.0,
            total_members=total_members,
            active_members=0,
            best_individual=0.0,
            worst_individual=0.0,
        )

    @property
    def is_active(self) -> bool:
        return self.active_members > 0


@dataclass(frozen=True)
class RankedEntry:
    """Input row for a rank pass: an entity, its score and its stored ranks."""

    entity_id: str
    score: float
    current_rank: int = 0
    previous_rank: Optional[int] = None

    def __post_init__(self) -> None:
        validate_finite(self.score, "score")
        validate_non_negative(self.current_rank, "current_rank")


@dataclass(frozen=True)
class RankAssignment:
    """Output row of a rank pass."""

    entity_id: str
    rank: int
    previous_rank: Optional[int]

    @property
    def rank_change(self) -> Optional[int]:
        """Positive when the entity moved up; None for a first placement."""
        if self.previous_rank is None:
            return None
        return self.previous_rank - self.rank


@dataclass(frozen=True)
class LeagueStanding:
    """Stored league leaderboard row for one season."""

    league_id: str
    season_id: str
    rank: int
    previous_rank: Optional[int]
    avg_age_reduction: float
    total_members: int
    active_members: int
    best_individual: float
    worst_individual: float

    def to_ranked_entry(self) -> RankedEntry:
        return RankedEntry(
            entity_id=self.league_id,
            score=self.avg_age_reduction,
            current_rank=self.rank,
            previous_rank=self.previous_rank,
        )


@dataclass(frozen=True)
class SeasonBest:
    """
    An athlete's season summary recomputed from approved submissions.

    The pheno age and pace of aging come from the same submission as the
    best age reduction.
    """

    best_age_reduction: float
    best_pheno_age: float
    best_pace_of_aging: Optional[float]
    submission_count: int

    def __post_init__(self) -> None:
        validate_finite(self.best_age_reduction, "best_age_reduction")
        if self.submission_count < 1:
            raise DomainValidationError(
                "a season best needs at least one approved submission",
                field="submission_count",
            )


@dataclass(frozen=True)
class AthleteStanding:
    """Stored athlete leaderboard row for one season."""

    athlete_id: str
    season_id: str
    rank: int
    previous_rank: Optional[int]
    best_age_reduction: float
    submission_count: int = 0
    display_name: Optional[str] = None

    def to_ranked_entry(self) -> RankedEntry:
        return RankedEntry(
            entity_id=self.athlete_id,
            score=self.best_age_reduction,
            current_rank=self.rank,
            previous_rank=self.previous_rank,
        )
