"""
Leaderboard Module
==================

Domain: athlete season rankings and the shared dense rank assigner

Services:
- AthleteLeaderboardService: season entry maintenance and rank passes
"""

from .ranking import assign_dense_ranks
from .repository import LeaderboardStore, SqlLeaderboardRepository
from .service import AthleteLeaderboardService

__all__ = [
    "AthleteLeaderboardService",
    "LeaderboardStore",
    "SqlLeaderboardRepository",
    "assign_dense_ranks",
]
