"""
Season store.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol, Type

from sqlalchemy import update

from longevity.core.database.base import utc_now
from longevity.core.database.service import DatabaseService
from longevity.core.logging.logger import get_logger
from longevity.database.models import Season, SeasonStatus
from longevity.domain.models import SeasonRecord
from longevity.modules.shared.base_repository import BaseRepository

if TYPE_CHECKING:
    from logging import Logger


class SeasonStore(Protocol):
    async def find_season(self, season_id: str) -> Optional[SeasonRecord]:
        ...

    async def mark_completed(self, season_id: str) -> bool:
        """Flip the season to COMPLETED; False if it already was."""
        ...


class SqlSeasonRepository(BaseRepository[Season]):
    def __init__(
        self,
        database: Type[DatabaseService] = DatabaseService,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(Season, logger or get_logger(__name__))
        self.database = database

    async def find_season(self, season_id: str) -> Optional[SeasonRecord]:
        async with self.database.get_session() as session:
            season = await self.get(session, season_id)
            if season is None:
                return None
            return SeasonRecord(
                id=season.id,
                slug=season.slug,
                name=season.name,
                status=season.status,
                starts_at=season.starts_at,
                ends_at=season.ends_at,
            )

    async def mark_completed(self, season_id: str) -> bool:
        # Conditional update so two concurrent completions flip the row once.
        stmt = (
            update(Season)
            .where(Season.id == season_id, Season.status != SeasonStatus.COMPLETED)
            .values(status=SeasonStatus.COMPLETED, updated_at=utc_now())
            .returning(Season.id)
        )
        async with self.database.get_transaction() as session:
            return (await session.execute(stmt)).scalar_one_or_none() is not None
