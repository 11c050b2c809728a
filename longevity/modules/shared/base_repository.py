"""
Base Repository Pattern

Purpose
-------
Type-safe, generic repository helpers for SQLAlchemy 2.0 async data access.
Concrete stores in `longevity.modules.*.repository` subclass this for their
primary model and add their own aggregate queries.

Design Notes
------------
- Helpers take an explicit `AsyncSession`; the store decides whether that
  session belongs to a read (`get_session`) or a write (`get_transaction`).
- Every helper emits a debug log with the model name and result size.
- No business logic, no commits.

Usage
-----
    class SqlLeagueRepository(BaseRepository[League]):
        async def find_league(self, league_id: str) -> LeagueRecord | None:
            async with DatabaseService.get_session() as session:
                league = await self.get(session, league_id)
                ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import select

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy import ColumnElement
    from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Generic base repository.

    Type Parameters:
        T: The SQLAlchemy model class this repository manages
    """

    def __init__(self, model_class: Type[T], logger: Logger) -> None:
        self.model_class = model_class
        self.log = logger

    async def get(self, session: AsyncSession, id_value: Any) -> Optional[T]:
        """Get a single record by primary key (no lock)."""
        instance = await session.get(self.model_class, id_value)

        self.log.debug(
            f"Repository.get: {self.model_class.__name__}",
            extra={
                "model": self.model_class.__name__,
                "id": id_value,
                "found": instance is not None,
            },
        )
        return instance

    async def find_one_where(
        self,
        session: AsyncSession,
        *conditions: ColumnElement[bool],
        for_update: bool = False,
    ) -> Optional[T]:
        """
        Find a single record matching all conditions.

        Args:
            session: Database session
            *conditions: SQLAlchemy filter expressions
            for_update: Apply SELECT FOR UPDATE

        Returns:
            First matching model instance or None
        """
        stmt = select(self.model_class).where(*conditions).limit(1)
        if for_update:
            stmt = stmt.with_for_update()

        result = await session.execute(stmt)
        instance = result.scalar_one_or_none()

        self.log.debug(
            f"Repository.find_one_where: {self.model_class.__name__}",
            extra={
                "model": self.model_class.__name__,
                "found": instance is not None,
                "locked": for_update,
            },
        )
        return instance

    async def find_many_where(
        self,
        session: AsyncSession,
        *conditions: ColumnElement[bool],
        order_by: Optional[Sequence[Any]] = None,
        limit: Optional[int] = None,
        for_update: bool = False,
    ) -> List[T]:
        """
        Find all records matching conditions.

        Args:
            session: Database session
            *conditions: SQLAlchemy filter expressions
            order_by: Optional ordering expressions
            limit: Optional maximum row count
            for_update: Apply SELECT FOR UPDATE

        Returns:
            List of matching model instances
        """
        stmt = select(self.model_class).where(*conditions)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        if for_update:
            stmt = stmt.with_for_update()

        result = await session.execute(stmt)
        instances = list(result.scalars().all())

        self.log.debug(
            f"Repository.find_many_where: {self.model_class.__name__}",
            extra={
                "model": self.model_class.__name__,
                "found_count": len(instances),
                "locked": for_update,
            },
        )
        return instances
