"""
Service Container
=================

Purpose
-------
Build the domain services once, with their SQL stores and a single shared
lock provider, and hand them out by name.

Responsibilities
----------------
- Instantiate stores and services in dependency order
- Share one `LockProvider` so league scoring, athlete ranking and season
  completion serialize on the same `season:{id}:scoring` keys
- Register the submission approval handler on the event bus
- Tear the registration down on shutdown

Non-Responsibilities
--------------------
- Database / Redis lifecycle (see `longevity.main`)
- Business logic

Usage
-----
    container = initialize_service_container(event_bus)
    await container.initialize()
    await container.leagues.refresh_all_league_scores(season_id)
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Dict, Optional

from longevity.core.logging.logger import get_logger
from longevity.modules.badges import BadgeService, SqlBadgeRepository
from longevity.modules.leaderboard import AthleteLeaderboardService, SqlLeaderboardRepository
from longevity.modules.leagues import LeagueScoringService, SqlLeagueRepository
from longevity.modules.seasons import SeasonService, SqlSeasonRepository
from longevity.modules.shared.activity import SqlActivityLog
from longevity.modules.shared.locks import build_lock_provider
from longevity.modules.submissions import SubmissionApprovalHandler

if TYPE_CHECKING:
    from logging import Logger

    from longevity.core.event.bus import EventBus
    from longevity.modules.shared.locks import LockProvider

_NOT_READY = "ServiceContainer not initialized. Call initialize() first."


class ServiceContainer:
    def __init__(
        self,
        event_bus: EventBus,
        logger: Logger,
        locks: Optional[LockProvider] = None,
    ) -> None:
        self._event_bus = event_bus
        self._logger = logger
        self._locks = locks

        self._badges: Optional[BadgeService] = None
        self._leagues: Optional[LeagueScoringService] = None
        self._leaderboard: Optional[AthleteLeaderboardService] = None
        self._seasons: Optional[SeasonService] = None
        self._approval_handler: Optional[SubmissionApprovalHandler] = None

        self._initialized = False
        self._service_init_times: Dict[str, float] = {}

    # ========================================================================
    # Lifecycle
    # ========================================================================

    async def initialize(self) -> None:
        if self._initialized:
            self._logger.warning("ServiceContainer already initialized")
            return

        init_start = time.perf_counter()
        self._logger.info("Service container initialization starting...")

        try:
            locks = self._locks or build_lock_provider()
            activity = SqlActivityLog()

            self._badges = self._timed(
                "badges",
                lambda: BadgeService(
                    SqlBadgeRepository(activity=activity),
                    event_bus=self._event_bus,
                    locks=locks,
                ),
            )
            self._leagues = self._timed(
                "leagues",
                lambda: LeagueScoringService(SqlLeagueRepository(), event_bus=self._event_bus, locks=locks),
            )
            self._leaderboard = self._timed(
                "leaderboard",
                lambda: AthleteLeaderboardService(
                    SqlLeaderboardRepository(), event_bus=self._event_bus, locks=locks
                ),
            )
            self._seasons = self._timed(
                "seasons",
                lambda: SeasonService(
                    SqlSeasonRepository(),
                    leaderboard=self._leaderboard,
                    badges=self._badges,
                    activity=activity,
                    event_bus=self._event_bus,
                    locks=locks,
                ),
            )

            self._approval_handler = SubmissionApprovalHandler(
                self._event_bus,
                leaderboard=self._leaderboard,
                leagues=self._leagues,
                badges=self._badges,
                activity=activity,
            )
            self._approval_handler.register()

            self._initialized = True
            self._logger.info(
                "Service container initialized successfully",
                extra={
                    "total_time_seconds": round(time.perf_counter() - init_start, 3),
                    "service_count": len(self._service_init_times),
                },
            )
        except Exception as e:
            self._logger.critical(
                "Service container initialization failed",
                exc_info=True,
                extra={"error": str(e)},
            )
            raise

    async def shutdown(self) -> None:
        if self._approval_handler is not None:
            self._approval_handler.unregister()
        self._initialized = False
        self._logger.info("Service container shut down")

    def _timed(self, name: str, factory: Any) -> Any:
        start = time.perf_counter()
        instance = factory()
        self._service_init_times[name] = time.perf_counter() - start
        return instance

    # ========================================================================
    # Services
    # ========================================================================

    @property
    def badges(self) -> BadgeService:
        if not self._initialized or self._badges is None:
            raise RuntimeError(_NOT_READY)
        return self._badges

    @property
    def leagues(self) -> LeagueScoringService:
        if not self._initialized or self._leagues is None:
            raise RuntimeError(_NOT_READY)
        return self._leagues

    @property
    def leaderboard(self) -> AthleteLeaderboardService:
        if not self._initialized or self._leaderboard is None:
            raise RuntimeError(_NOT_READY)
        return self._leaderboard

    @property
    def seasons(self) -> SeasonService:
        if not self._initialized or self._seasons is None:
            raise RuntimeError(_NOT_READY)
        return self._seasons

    @property
    def is_initialized(self) -> bool:
        return self._initialized


# ============================================================================
# Global container
# ============================================================================

_container: Optional[ServiceContainer] = None


def initialize_service_container(
    event_bus: EventBus,
    locks: Optional[LockProvider] = None,
) -> ServiceContainer:
    global _container
    _container = ServiceContainer(event_bus, get_logger(__name__), locks)
    return _container


def get_service_container() -> ServiceContainer:
    if _container is None:
        raise RuntimeError("Service container has not been created")
    return _container


async def shutdown_service_container() -> None:
    global _container
    if _container is not None:
        await _container.shutdown()
        _container = None
