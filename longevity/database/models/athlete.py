"""
Athlete: competition participant.
Schema only.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from longevity.core.database.base import Base, IdMixin, TimestampMixin


class Athlete(Base, IdMixin, TimestampMixin):
    """
    A participant ranked by biological age reduction.

    `created_at` doubles as the join date for the anniversary badge.
    """

    __tablename__ = "athletes"

    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    chronological_age: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
