"""
Database Model Enums
====================

Type-safe constants for categorical columns. Stored as their string values
(non-native enums) so new members never need a database type migration.
"""

from __future__ import annotations

import enum


class SubmissionStatus(str, enum.Enum):
    """Review state of a biomarker submission. Only APPROVED rows are scored."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class EntryMethod(str, enum.Enum):
    MANUAL = "manual"
    OCR_ASSISTED = "ocr_assisted"


class SeasonStatus(str, enum.Enum):
    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"


class LeagueTier(str, enum.Enum):
    FREE = "free"
    STARTER = "starter"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class LeagueStatus(str, enum.Enum):
    """Only ACTIVE leagues take part in bulk score refreshes."""

    PENDING = "pending"
    ACTIVE = "active"
    SUSPENDED = "suspended"


class LeagueRole(str, enum.Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class BadgeCategory(str, enum.Enum):
    """
    Badge catalog grouping.

    COMMUNITY and SPECIAL exist in the catalog for manually granted badges
    and have no automatic rules.
    """

    ACHIEVEMENT = "achievement"
    MILESTONE = "milestone"
    COMPETITION = "competition"
    LEAGUE = "league"
    BIOMARKER = "biomarker"
    IMPROVEMENT = "improvement"
    SCIENCE = "science"
    SEASONAL = "seasonal"
    COMMUNITY = "community"
    SPECIAL = "special"


class ActivityEventType(str, enum.Enum):
    """Activity feed entry kinds."""

    ATHLETE_JOINED = "athlete_joined"
    RANK_CHANGED = "rank_changed"
    BADGE_EARNED = "badge_earned"
    SEASON_STARTED = "season_started"
    SEASON_COMPLETED = "season_completed"
    SUBMISSION_VERIFIED = "submission_verified"
