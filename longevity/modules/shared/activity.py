"""
Activity feed writer.

Append-only. Callers treat a failed append as best-effort and log it; the
feed never blocks an award, a rank pass or a season transition.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional, Protocol, Type

from longevity.core.database.service import DatabaseService
from longevity.core.logging.logger import get_logger
from longevity.database.models import ActivityEvent, ActivityEventType
from longevity.modules.shared.base_repository import BaseRepository

if TYPE_CHECKING:
    from logging import Logger


class ActivityLog(Protocol):
    async def append_activity_event(
        self,
        event_type: ActivityEventType,
        message: str,
        data: Dict[str, Any],
        athlete_id: Optional[str] = None,
        season_id: Optional[str] = None,
    ) -> None:
        ...


class SqlActivityLog(BaseRepository[ActivityEvent]):
    def __init__(
        self,
        database: Type[DatabaseService] = DatabaseService,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(ActivityEvent, logger or get_logger(__name__))
        self.database = database

    async def append_activity_event(
        self,
        event_type: ActivityEventType,
        message: str,
        data: Dict[str, Any],
        athlete_id: Optional[str] = None,
        season_id: Optional[str] = None,
    ) -> None:
        async with self.database.get_transaction() as session:
            self.add(
                session,
                ActivityEvent(
                    type=event_type,
                    athlete_id=athlete_id,
                    season_id=season_id,
                    message=message,
                    data=dict(data),
                ),
            )
