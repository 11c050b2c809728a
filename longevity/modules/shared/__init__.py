"""
Shared domain foundations.

- Domain exceptions (`LongevityDomainException` hierarchy)
- `BaseService` and `BaseRepository`
- Keyed locks for season scoring and athlete badge passes
- The activity feed writer
"""

from .base_repository import BaseRepository
from .base_service import BaseService
from .exceptions import (
    AthleteNotFoundError,
    ErrorSeverity,
    InvalidOperationError,
    LeagueNotFoundError,
    LockTimeoutError,
    LongevityDomainException,
    NotFoundError,
    RankRecalculationError,
    SeasonNotFoundError,
    ValidationError,
)

__all__ = [
    "BaseRepository",
    "BaseService",
    "ErrorSeverity",
    "LongevityDomainException",
    "NotFoundError",
    "AthleteNotFoundError",
    "LeagueNotFoundError",
    "SeasonNotFoundError",
    "ValidationError",
    "InvalidOperationError",
    "RankRecalculationError",
    "LockTimeoutError",
]
