"""
Database Models Package
=======================

SQLAlchemy ORM models for the competition, schema only:

- Athlete, Season
- BiomarkerSubmission (read-only input to the engines)
- League, LeagueMember
- LeaderboardEntry, LeagueLeaderboardEntry
- Badge, AthleteBadge
- ActivityEvent
"""

from longevity.core.database.base import Base

from .activity import ActivityEvent
from .athlete import Athlete
from .badge import AthleteBadge, Badge
from .enums import (
    ActivityEventType,
    BadgeCategory,
    EntryMethod,
    LeagueRole,
    LeagueStatus,
    LeagueTier,
    SeasonStatus,
    SubmissionStatus,
)
from .leaderboard import LeaderboardEntry, LeagueLeaderboardEntry
from .league import League, LeagueMember
from .season import FOUNDING_SEASON_SLUG, Season
from .submission import BiomarkerSubmission

__all__ = [
    "Base",
    "ActivityEvent",
    "ActivityEventType",
    "Athlete",
    "AthleteBadge",
    "Badge",
    "BadgeCategory",
    "BiomarkerSubmission",
    "EntryMethod",
    "FOUNDING_SEASON_SLUG",
    "LeaderboardEntry",
    "League",
    "LeagueLeaderboardEntry",
    "LeagueMember",
    "LeagueRole",
    "LeagueStatus",
    "LeagueTier",
    "Season",
    "SeasonStatus",
    "SubmissionStatus",
]
