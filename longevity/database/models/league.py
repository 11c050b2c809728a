"""
League and LeagueMember: team grouping of athletes.
Schema only.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from longevity.core.database.base import (
    Base,
    IdMixin,
    TimestampMixin,
    enum_column_type,
    utc_now,
)
from .enums import LeagueRole, LeagueStatus, LeagueTier


class League(Base, IdMixin, TimestampMixin):
    __tablename__ = "leagues"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    owner_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("athletes.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    tier: Mapped[LeagueTier] = mapped_column(
        enum_column_type(LeagueTier), nullable=False, default=LeagueTier.FREE
    )
    status: Mapped[LeagueStatus] = mapped_column(
        enum_column_type(LeagueStatus), nullable=False, default=LeagueStatus.PENDING
    )


class LeagueMember(Base, IdMixin, TimestampMixin):
    """One row per (league, athlete) pair."""

    __tablename__ = "league_members"
    __table_args__ = (
        UniqueConstraint("league_id", "athlete_id", name="uq_league_members_league_athlete"),
    )

    league_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False, index=True
    )
    athlete_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[LeagueRole] = mapped_column(
        enum_column_type(LeagueRole), nullable=False, default=LeagueRole.MEMBER
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
