"""
ActivityEvent: append-only activity feed.
Schema only.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from longevity.core.database.base import (
    Base,
    IdMixin,
    JSONType,
    TimestampMixin,
    enum_column_type,
)
from .enums import ActivityEventType


class ActivityEvent(Base, IdMixin, TimestampMixin):
    __tablename__ = "activity_events"
    __table_args__ = (Index("ix_activity_events_created", "created_at"),)

    type: Mapped[ActivityEventType] = mapped_column(
        enum_column_type(ActivityEventType), nullable=False, index=True
    )
    athlete_id: Mapped[Optional[str]] = mapped_column(
        String(32), ForeignKey("athletes.id", ondelete="CASCADE"), nullable=True, index=True
    )
    season_id: Mapped[Optional[str]] = mapped_column(
        String(32), ForeignKey("seasons.id", ondelete="SET NULL"), nullable=True
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[Dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
