"""
LeaderboardEntry and LeagueLeaderboardEntry: materialized season standings.
Schema only.

`rank = 0` marks an entry that has not been through a rank pass yet.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Float, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from longevity.core.database.base import Base, IdMixin, TimestampMixin


class LeaderboardEntry(Base, IdMixin, TimestampMixin):
    """An athlete's best result in one season."""

    __tablename__ = "leaderboard_entries"
    __table_args__ = (
        UniqueConstraint("athlete_id", "season_id", name="uq_leaderboard_entries_athlete_season"),
        Index("ix_leaderboard_entries_season_rank", "season_id", "rank"),
    )

    athlete_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    season_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("seasons.id", ondelete="CASCADE"), nullable=False
    )

    rank: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    previous_rank: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    best_pheno_age: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    best_age_reduction: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    best_pace_of_aging: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    submission_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class LeagueLeaderboardEntry(Base, IdMixin, TimestampMixin):
    """A league's aggregate score in one season."""

    __tablename__ = "league_leaderboard_entries"
    __table_args__ = (
        UniqueConstraint("league_id", "season_id", name="uq_league_leaderboard_entries_league_season"),
        Index("ix_league_leaderboard_entries_season_rank", "season_id", "rank"),
    )

    league_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False, index=True
    )
    season_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("seasons.id", ondelete="CASCADE"), nullable=False
    )

    rank: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    previous_rank: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    avg_age_reduction: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_members: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    active_members: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    best_individual: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    worst_individual: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
