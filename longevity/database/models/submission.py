"""
BiomarkerSubmission: one lab panel entered by an athlete.
Schema only.

`pheno_age`, `age_reduction` and `pace_of_aging` arrive precomputed. The raw
biomarker columns kept here are the ones badge rules read.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from longevity.core.database.base import (
    Base,
    IdMixin,
    TimestampMixin,
    enum_column_type,
    utc_now,
)
from .enums import EntryMethod, SubmissionStatus


class BiomarkerSubmission(Base, IdMixin, TimestampMixin):
    __tablename__ = "biomarker_submissions"
    __table_args__ = (
        Index("ix_submissions_season_status", "season_id", "status"),
        Index("ix_submissions_athlete_status", "athlete_id", "status"),
        Index("ix_submissions_league_season", "league_id", "season_id"),
    )

    athlete_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False
    )
    league_id: Mapped[Optional[str]] = mapped_column(
        String(32), ForeignKey("leagues.id", ondelete="SET NULL"), nullable=True
    )
    season_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("seasons.id", ondelete="CASCADE"), nullable=False
    )

    pheno_age: Mapped[float] = mapped_column(Float, nullable=False)
    age_reduction: Mapped[float] = mapped_column(Float, nullable=False)
    pace_of_aging: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    status: Mapped[SubmissionStatus] = mapped_column(
        enum_column_type(SubmissionStatus), nullable=False, default=SubmissionStatus.PENDING
    )
    entry_method: Mapped[EntryMethod] = mapped_column(
        enum_column_type(EntryMethod), nullable=False, default=EntryMethod.MANUAL
    )
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    # mg/L
    crp: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    # mg/dL
    glucose: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    # mg/dL
    creatinine: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    # U/L
    alp: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
