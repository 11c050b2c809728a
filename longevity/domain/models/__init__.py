"""
Domain value objects.

Rich, immutable snapshots that the rule and scoring engines operate on,
kept separate from the anemic SQLAlchemy schemas in `longevity.database.models`.
"""

from .badge import BadgeRecord, EarnedBadge
from .badge_context import (
    AthleteSnapshot,
    BadgeContext,
    LeaderboardPosition,
    MembershipSnapshot,
    SubmissionSnapshot,
)
from .base import DomainValidationError
from .records import LeagueRecord, SeasonRecord
from .standings import (
    AthleteStanding,
    LeagueScore,
    LeagueStanding,
    RankAssignment,
    RankedEntry,
    SeasonBest,
)

__all__ = [
    "AthleteSnapshot",
    "AthleteStanding",
    "BadgeRecord",
    "BadgeContext",
    "DomainValidationError",
    "EarnedBadge",
    "LeaderboardPosition",
    "LeagueRecord",
    "LeagueScore",
    "LeagueStanding",
    "MembershipSnapshot",
    "RankAssignment",
    "RankedEntry",
    "SeasonBest",
    "SeasonRecord",
    "SubmissionSnapshot",
]
