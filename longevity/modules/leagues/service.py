"""
League Scoring Service

Purpose
-------
Keep each league's season score and the season's league ranking current.

Responsibilities
----------------
- Score one league for one season from its members' approved submissions
- Upsert the league's leaderboard row (score fields only)
- Run the full rank pass for a season, removing leagues with no active
  members
- Bulk refresh of every ACTIVE league, collecting per-league failures

Non-Responsibilities
--------------------
- Athlete rankings (see `longevity.modules.leaderboard`)
- League membership management

Design Notes
------------
- Every public write runs under the `season:{id}:scoring` lock, so two
  rank passes for one season never interleave. Internal helpers assume the
  lock is already held.
- A failed rank pass raises `RankRecalculationError` (retryable); the store
  writes the pass in one transaction so nothing partial is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from longevity.core.config.config import Config
from longevity.core.event.types import LEAGUE_RANKS_RECALCULATED
from longevity.core.logging.logger import LogContext, get_logger
from longevity.database.models.enums import LeagueTier
from longevity.domain.models import LeagueScore, RankAssignment
from longevity.modules.leaderboard.ranking import assign_dense_ranks
from longevity.modules.leagues.scoring import compute_league_score
from longevity.modules.leagues.tiers import LeagueTierInfo, get_league_tier_info
from longevity.modules.shared.base_service import BaseService
from longevity.modules.shared.exceptions import (
    LeagueNotFoundError,
    LongevityDomainException,
    RankRecalculationError,
)
from longevity.modules.shared.locks import build_lock_provider, season_lock_key

if TYPE_CHECKING:
    from logging import Logger

    from longevity.core.event.bus import EventBus
    from longevity.modules.leagues.repository import LeagueStore
    from longevity.modules.shared.locks import LockProvider


@dataclass
class LeagueRefreshResult:
    processed: int = 0
    updated: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"processed": self.processed, "updated": self.updated, "errors": list(self.errors)}


class LeagueScoringService(BaseService):
    """
    League scoring and ranking.

    Public Methods
    --------------
    - calculate_league_score(league_id, season_id) -> LeagueScore
    - update_league_leaderboard_entry(league_id, season_id) -> LeagueScore
    - recalculate_all_league_ranks(season_id) -> rank assignments
    - refresh_all_league_scores(season_id) -> LeagueRefreshResult
    - on_submission_approved(athlete_id, league_id, season_id)
    - get_league_tier_info(tier) -> LeagueTierInfo
    """

    def __init__(
        self,
        store: LeagueStore,
        event_bus: Optional[EventBus] = None,
        logger: Optional[Logger] = None,
        locks: Optional[LockProvider] = None,
        top_n: Optional[int] = None,
    ) -> None:
        super().__init__(event_bus, logger or get_logger(__name__), locks or build_lock_provider())
        self._store = store
        self._top_n = top_n if top_n is not None else Config.LEAGUE_TOP_N

    # ========================================================================
    # PUBLIC API
    # ========================================================================

    async def calculate_league_score(self, league_id: str, season_id: str) -> LeagueScore:
        """
        Score one league for one season. Read-only.

        Raises:
            LeagueNotFoundError: If the league does not exist
        """
        league = await self._store.find_league(league_id)
        if league is None:
            raise LeagueNotFoundError(league_id)

        total_members = await self._store.count_league_members(league_id)
        member_bests = await self._store.best_member_scores(league_id, season_id)
        return compute_league_score(member_bests, total_members, self._top_n)

    async def update_league_leaderboard_entry(self, league_id: str, season_id: str) -> LeagueScore:
        async with self.hold_lock(season_lock_key(season_id), "update_league_leaderboard_entry"):
            return await self._update_entry(league_id, season_id)

    async def recalculate_all_league_ranks(self, season_id: str) -> List[RankAssignment]:
        async with self.hold_lock(season_lock_key(season_id), "recalculate_all_league_ranks"):
            return await self._recalculate_ranks(season_id)

    async def refresh_all_league_scores(self, season_id: str) -> LeagueRefreshResult:
        """
        Rescore every ACTIVE league, then run one rank pass.

        A league that fails to update is reported in `errors` and does not
        stop the others. The rank pass itself is not optional: its failure
        raises.
        """
        self.log_operation("refresh_all_league_scores", season_id=season_id)

        async with LogContext(season_id=season_id, component="leagues", operation="refresh_all_league_scores"):
            async with self.hold_lock(season_lock_key(season_id), "refresh_all_league_scores"):
                leagues = await self._store.list_active_leagues()
                result = LeagueRefreshResult(processed=len(leagues))

                for league in leagues:
                    try:
                        await self._update_entry(league.id, season_id)
                        result.updated += 1
                    except Exception as exc:
                        self.log_error("refresh_all_league_scores", exc, league_id=league.id, season_id=season_id)
                        result.errors.append(f"Failed to update {league.name}: {exc}")

                await self._recalculate_ranks(season_id)

        self.log.info(
            "League refresh complete",
            extra={"season_id": season_id, **result.to_dict(), "errors": len(result.errors)},
        )
        return result

    async def on_submission_approved(self, athlete_id: str, league_id: str, season_id: str) -> LeagueScore:
        """Rescore the submission's league, then rerank the season."""
        self.log_operation(
            "on_submission_approved",
            athlete_id=athlete_id,
            league_id=league_id,
            season_id=season_id,
        )
        async with self.hold_lock(season_lock_key(season_id), "on_submission_approved"):
            score = await self._update_entry(league_id, season_id)
            await self._recalculate_ranks(season_id)
        return score

    def get_league_tier_info(self, tier: Union[LeagueTier, str, None]) -> LeagueTierInfo:
        return get_league_tier_info(tier)

    # ========================================================================
    # INTERNAL (season lock held)
    # ========================================================================

    async def _update_entry(self, league_id: str, season_id: str) -> LeagueScore:
        score = await self.calculate_league_score(league_id, season_id)
        await self._store.upsert_league_entry(league_id, season_id, score)

        self.log.debug(
            "League score updated",
            extra={
                "league_id": league_id,
                "season_id": season_id,
                "avg_age_reduction": score.avg_age_reduction,
                "active_members": score.active_members,
            },
        )
        return score

    async def _recalculate_ranks(self, season_id: str) -> List[RankAssignment]:
        entries = await self._store.list_league_entries(season_id)
        removed = [entry.league_id for entry in entries if entry.active_members == 0]
        assignments = assign_dense_ranks(
            entry.to_ranked_entry() for entry in entries if entry.active_members > 0
        )

        try:
            await self._store.apply_league_ranks(season_id, assignments, removed)
        except LongevityDomainException:
            raise
        except Exception as exc:
            self.log_error("recalculate_all_league_ranks", exc, season_id=season_id)
            raise RankRecalculationError("league", season_id, str(exc)) from exc

        self.log.info(
            "League ranks recalculated",
            extra={"season_id": season_id, "ranked_count": len(assignments), "removed_count": len(removed)},
        )
        await self.emit_event(
            LEAGUE_RANKS_RECALCULATED,
            {"season_id": season_id, "ranked_count": len(assignments), "removed_league_ids": removed},
        )
        return assignments
