"""
Badge catalog and AthleteBadge awards.
Schema only.

The catalog is seeded outside the engines. AthleteBadge rows are never
deleted; the unique pair makes awarding idempotent at the storage level.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from longevity.core.database.base import (
    Base,
    IdMixin,
    TimestampMixin,
    enum_column_type,
    utc_now,
)
from .enums import BadgeCategory


class Badge(Base, IdMixin, TimestampMixin):
    __tablename__ = "badges"

    slug: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[BadgeCategory] = mapped_column(
        enum_column_type(BadgeCategory), nullable=False, index=True
    )
    icon: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)


class AthleteBadge(Base, IdMixin):
    __tablename__ = "athlete_badges"
    __table_args__ = (
        UniqueConstraint("athlete_id", "badge_id", name="uq_athlete_badges_athlete_badge"),
    )

    athlete_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    badge_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("badges.id", ondelete="CASCADE"), nullable=False
    )
    earned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
