"""
Read-only snapshots of leagues and seasons as the services see them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from longevity.database.models.enums import LeagueStatus, LeagueTier, SeasonStatus

from .base import validate_not_blank


@dataclass(frozen=True)
class LeagueRecord:
    id: str
    name: str
    slug: str
    owner_id: str
    tier: LeagueTier = LeagueTier.FREE
    status: LeagueStatus = LeagueStatus.ACTIVE

    def __post_init__(self) -> None:
        validate_not_blank(self.id, "id")


@dataclass(frozen=True)
class SeasonRecord:
    id: str
    slug: str
    name: str
    status: SeasonStatus
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.status is SeasonStatus.COMPLETED
