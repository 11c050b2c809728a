"""
Seasons Module
==============

Services:
- SeasonService: season completion
"""

from .repository import SeasonStore, SqlSeasonRepository
from .service import SeasonCompletionResult, SeasonService

__all__ = [
    "SeasonCompletionResult",
    "SeasonService",
    "SeasonStore",
    "SqlSeasonRepository",
]
