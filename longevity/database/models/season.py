"""
Season: a bounded competition window.
Schema only.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from longevity.core.database.base import Base, IdMixin, TimestampMixin, enum_column_type
from .enums import SeasonStatus

FOUNDING_SEASON_SLUG = "season-1"


class Season(Base, IdMixin, TimestampMixin):
    __tablename__ = "seasons"

    slug: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[SeasonStatus] = mapped_column(
        enum_column_type(SeasonStatus), nullable=False, default=SeasonStatus.UPCOMING
    )
    starts_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    ends_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
