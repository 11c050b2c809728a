"""
Leagues Module
==============

Domain: league aggregate scores and league rankings

Services:
- LeagueScoringService: scoring, rank passes, bulk refresh
"""

from .repository import LeagueStore, SqlLeagueRepository
from .scoring import compute_league_score
from .service import LeagueRefreshResult, LeagueScoringService
from .tiers import LeagueTierInfo, get_league_tier_info

__all__ = [
    "LeagueRefreshResult",
    "LeagueScoringService",
    "LeagueStore",
    "LeagueTierInfo",
    "SqlLeagueRepository",
    "compute_league_score",
    "get_league_tier_info",
]
