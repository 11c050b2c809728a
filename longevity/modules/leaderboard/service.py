"""
Athlete leaderboard maintenance.

After an approval the athlete's season entry is rebuilt from approved
submissions and the whole season is reranked with `assign_dense_ranks`,
under the same season lock the league scorer uses.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from longevity.core.logging.logger import LogContext, get_logger
from longevity.domain.models import AthleteStanding, RankAssignment, SeasonBest
from longevity.modules.leaderboard.ranking import assign_dense_ranks
from longevity.modules.shared.base_service import BaseService
from longevity.modules.shared.exceptions import LongevityDomainException, RankRecalculationError
from longevity.modules.shared.locks import build_lock_provider, season_lock_key

if TYPE_CHECKING:
    from logging import Logger

    from longevity.core.event.bus import EventBus
    from longevity.modules.leaderboard.repository import LeaderboardStore
    from longevity.modules.shared.locks import LockProvider


class AthleteLeaderboardService(BaseService):
    def __init__(
        self,
        store: LeaderboardStore,
        event_bus: Optional[EventBus] = None,
        logger: Optional[Logger] = None,
        locks: Optional[LockProvider] = None,
    ) -> None:
        super().__init__(event_bus, logger or get_logger(__name__), locks or build_lock_provider())
        self._store = store

    async def record_approved_submission(self, athlete_id: str, season_id: str) -> Optional[SeasonBest]:
        """
        Rebuild the athlete's season entry and rerank the season.

        Returns:
            The recomputed season best, or None when the athlete has no
            approved submission in the season (nothing is written)
        """
        self.log_operation("record_approved_submission", athlete_id=athlete_id, season_id=season_id)

        async with LogContext(athlete_id=athlete_id, season_id=season_id, component="leaderboard"):
            async with self.hold_lock(season_lock_key(season_id), "record_approved_submission"):
                best = await self._store.best_season_submission(athlete_id, season_id)
                if best is None:
                    self.log.warning(
                        "No approved submission to record",
                        extra={"athlete_id": athlete_id, "season_id": season_id},
                    )
                    return None

                await self._store.upsert_athlete_entry(athlete_id, season_id, best)
                await self._recalculate_ranks(season_id)
        return best

    async def recalculate_athlete_ranks(self, season_id: str) -> List[RankAssignment]:
        async with self.hold_lock(season_lock_key(season_id), "recalculate_athlete_ranks"):
            return await self._recalculate_ranks(season_id)

    async def get_top_athletes(self, season_id: str, limit: int = 10) -> List[AthleteStanding]:
        return list(await self._store.top_athletes(season_id, limit))

    async def _recalculate_ranks(self, season_id: str) -> List[RankAssignment]:
        entries = await self._store.list_athlete_entries(season_id)
        assignments = assign_dense_ranks(entry.to_ranked_entry() for entry in entries)

        try:
            await self._store.apply_athlete_ranks(season_id, assignments)
        except LongevityDomainException:
            raise
        except Exception as exc:
            self.log_error("recalculate_athlete_ranks", exc, season_id=season_id)
            raise RankRecalculationError("athlete", season_id, str(exc)) from exc

        self.log.info(
            "Athlete ranks recalculated",
            extra={"season_id": season_id, "ranked_count": len(assignments)},
        )
        return assignments
