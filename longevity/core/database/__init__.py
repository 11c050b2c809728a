"""
Database subsystem: async SQLAlchemy engine, sessions and the declarative base.
"""

from longevity.core.database.base import Base
from longevity.core.database.service import (
    DatabaseInitializationError,
    DatabaseNotInitializedError,
    DatabaseService,
)

__all__ = [
    "Base",
    "DatabaseService",
    "DatabaseInitializationError",
    "DatabaseNotInitializedError",
]
