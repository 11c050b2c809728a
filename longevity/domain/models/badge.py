"""
Badge catalog value objects.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from longevity.database.models.enums import BadgeCategory

from .base import validate_aware, validate_not_blank


@dataclass(frozen=True)
class BadgeRecord:
    id: str
    slug: str
    name: str
    category: BadgeCategory
    description: str = ""

    def __post_init__(self) -> None:
        validate_not_blank(self.slug, "slug")


@dataclass(frozen=True)
class EarnedBadge:
    badge: BadgeRecord
    earned_at: datetime

    def __post_init__(self) -> None:
        validate_aware(self.earned_at, "earned_at")
