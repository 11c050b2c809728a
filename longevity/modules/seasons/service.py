"""
Season Service

Purpose
-------
Close a season: mark it COMPLETED, give the final top athletes a badge
pass, and record the outcome in the activity feed.

Responsibilities
----------------
- Reject unknown or already-completed seasons
- Evaluate badges for the top `Config.SEASON_COMPLETION_BADGE_DEPTH`
  athletes, each in isolation
- Append the `season_completed` activity entry with the top three

Non-Responsibilities
--------------------
- Rank computation (the leaderboard is final when the season closes)
- Opening seasons
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from longevity.core.config.config import Config
from longevity.core.event.types import SEASON_COMPLETED
from longevity.core.logging.logger import LogContext, get_logger
from longevity.database.models.enums import ActivityEventType
from longevity.domain.models import AthleteStanding
from longevity.modules.shared.base_service import BaseService
from longevity.modules.shared.exceptions import InvalidOperationError, SeasonNotFoundError
from longevity.modules.shared.locks import build_lock_provider, season_lock_key

if TYPE_CHECKING:
    from logging import Logger

    from longevity.core.event.bus import EventBus
    from longevity.modules.badges.service import BadgeService
    from longevity.modules.leaderboard.service import AthleteLeaderboardService
    from longevity.modules.seasons.repository import SeasonStore
    from longevity.modules.shared.activity import ActivityLog
    from longevity.modules.shared.locks import LockProvider


@dataclass
class SeasonCompletionResult:
    season_id: str
    final_rankings: List[AthleteStanding] = field(default_factory=list)
    badge_errors: Dict[str, str] = field(default_factory=dict)

    @property
    def top_three(self) -> List[AthleteStanding]:
        return self.final_rankings[:3]


def _top_three_payload(rankings: List[AthleteStanding]) -> List[Dict[str, Any]]:
    return [
        {
            "rank": standing.rank,
            "athleteId": standing.athlete_id,
            "athleteName": standing.display_name,
            "ageReduction": standing.best_age_reduction,
        }
        for standing in rankings[:3]
    ]


class SeasonService(BaseService):
    def __init__(
        self,
        store: SeasonStore,
        leaderboard: AthleteLeaderboardService,
        badges: BadgeService,
        activity: ActivityLog,
        event_bus: Optional[EventBus] = None,
        logger: Optional[Logger] = None,
        locks: Optional[LockProvider] = None,
    ) -> None:
        super().__init__(event_bus, logger or get_logger(__name__), locks or build_lock_provider())
        self._store = store
        self._leaderboard = leaderboard
        self._badges = badges
        self._activity = activity

    async def complete_season(self, season_id: str) -> SeasonCompletionResult:
        """
        Complete a season.

        Raises:
            SeasonNotFoundError: If the season does not exist
            InvalidOperationError: If the season is already completed
        """
        self.log_operation("complete_season", season_id=season_id)

        async with LogContext(season_id=season_id, component="seasons", operation="complete_season"):
            season = await self._store.find_season(season_id)
            if season is None:
                raise SeasonNotFoundError(season_id)
            if season.is_completed:
                raise InvalidOperationError("complete_season", f"Season {season.slug} is already completed")

            async with self.hold_lock(season_lock_key(season_id), "complete_season"):
                if not await self._store.mark_completed(season_id):
                    raise InvalidOperationError("complete_season", f"Season {season.slug} is already completed")
                rankings = await self._leaderboard.get_top_athletes(
                    season_id, Config.SEASON_COMPLETION_BADGE_DEPTH
                )

            result = SeasonCompletionResult(season_id=season_id, final_rankings=rankings)

            outcomes = await asyncio.gather(
                *(self._badges.check_and_award_badges(standing.athlete_id) for standing in rankings),
                return_exceptions=True,
            )
            for standing, outcome in zip(rankings, outcomes):
                if isinstance(outcome, Exception):
                    self.log_error("complete_season.badges", outcome, athlete_id=standing.athlete_id)
                    result.badge_errors[standing.athlete_id] = str(outcome)

            top_three = _top_three_payload(rankings)
            try:
                await self._activity.append_activity_event(
                    ActivityEventType.SEASON_COMPLETED,
                    f"{season.name} has been completed",
                    {"topThree": top_three},
                    season_id=season_id,
                )
            except Exception as exc:
                self.log_error("complete_season.activity", exc, season_id=season_id)

            await self.emit_event(
                SEASON_COMPLETED,
                {"season_id": season_id, "season_slug": season.slug, "top_three": top_three},
            )

        self.log.info(
            "Season completed",
            extra={
                "season_id": season_id,
                "ranked_athletes": len(rankings),
                "badge_errors": len(result.badge_errors),
            },
        )
        return result
