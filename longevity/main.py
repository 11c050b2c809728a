"""
Longevity League - Operational Entry Point
==========================================

Bootstrap
---------
- Logging
- Database initialization
- Redis initialization (only with LOCK_BACKEND=redis)
- Service container on the global event bus
- Graceful shutdown

Commands
--------
    longevity-league init-schema
    longevity-league refresh-leagues <season_id>
    longevity-league rerank-athletes <season_id>
    longevity-league check-badges <athlete_id>
    longevity-league complete-season <season_id>
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Awaitable, Callable, Dict, List, Optional

from longevity.core.config.config import Config, LockBackend
from longevity.core.database.service import DatabaseService
from longevity.core.event import event_bus
from longevity.core.logging.logger import get_logger, setup_logging, shutdown_logging
from longevity.core.redis.service import RedisService
from longevity.core.services.container import (
    ServiceContainer,
    initialize_service_container,
    shutdown_service_container,
)

logger = get_logger(__name__)


# ============================================================================
# Application Bootstrap
# ============================================================================


async def _startup() -> ServiceContainer:
    logger.info("========== LONGEVITY LEAGUE INITIALIZATION START ==========")

    try:
        await DatabaseService.initialize()
        logger.info("✓ Database service initialized")
    except Exception as exc:
        logger.critical(f"Database initialization failed: {exc}", exc_info=True)
        raise

    if Config.LOCK_BACKEND is LockBackend.REDIS:
        try:
            await RedisService.initialize()
            logger.info("✓ Redis service initialized")
        except Exception as exc:
            logger.critical(f"Redis initialization failed: {exc}", exc_info=True)
            raise

    container = initialize_service_container(event_bus)
    await container.initialize()
    logger.info("✓ Service container initialized")
    return container


async def _shutdown() -> None:
    logger.info("========== LONGEVITY LEAGUE SHUTDOWN START ==========")

    try:
        await shutdown_service_container()
    except Exception as exc:
        logger.error(f"Service container shutdown error: {exc}", exc_info=True)

    if Config.LOCK_BACKEND is LockBackend.REDIS:
        try:
            await RedisService.shutdown()
        except Exception as exc:
            logger.error(f"Redis service shutdown error: {exc}", exc_info=True)

    try:
        await DatabaseService.shutdown()
    except Exception as exc:
        logger.error(f"Database service shutdown error: {exc}", exc_info=True)

    logger.info("========== SHUTDOWN COMPLETE ==========")


# ============================================================================
# Commands
# ============================================================================


async def _init_schema(container: ServiceContainer, _: Optional[str]) -> Dict[str, Any]:
    await DatabaseService.create_schema()
    return {"schema": "created"}


async def _refresh_leagues(container: ServiceContainer, season_id: Optional[str]) -> Dict[str, Any]:
    result = await container.leagues.refresh_all_league_scores(_require(season_id, "season_id"))
    return result.to_dict()


async def _rerank_athletes(container: ServiceContainer, season_id: Optional[str]) -> Dict[str, Any]:
    assignments = await container.leaderboard.recalculate_athlete_ranks(_require(season_id, "season_id"))
    return {"ranked": len(assignments)}


async def _check_badges(container: ServiceContainer, athlete_id: Optional[str]) -> Dict[str, Any]:
    result = await container.badges.check_and_award_badges(_require(athlete_id, "athlete_id"))
    return result.to_dict()


async def _complete_season(container: ServiceContainer, season_id: Optional[str]) -> Dict[str, Any]:
    result = await container.seasons.complete_season(_require(season_id, "season_id"))
    return {
        "season_id": result.season_id,
        "top_three": [standing.athlete_id for standing in result.top_three],
        "badge_errors": result.badge_errors,
    }


COMMANDS: Dict[str, Callable[[ServiceContainer, Optional[str]], Awaitable[Dict[str, Any]]]] = {
    "init-schema": _init_schema,
    "refresh-leagues": _refresh_leagues,
    "rerank-athletes": _rerank_athletes,
    "check-badges": _check_badges,
    "complete-season": _complete_season,
}


def _require(value: Optional[str], name: str) -> str:
    if not value:
        raise SystemExit(f"{name} is required for this command")
    return value


async def run(command: str, target: Optional[str]) -> Dict[str, Any]:
    try:
        container = await _startup()
        return await COMMANDS[command](container, target)
    finally:
        await _shutdown()


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Longevity League scoring tools")
    parser.add_argument("command", choices=sorted(COMMANDS))
    parser.add_argument("target", nargs="?", help="season or athlete id")
    args = parser.parse_args(argv)

    setup_logging()
    try:
        result = asyncio.run(run(args.command, args.target))
        print(json.dumps(result, indent=2, default=str))
    except Exception as exc:
        logger.critical(f"Command {args.command} failed: {exc}", exc_info=True)
        sys.exit(1)
    finally:
        shutdown_logging()


if __name__ == "__main__":
    main()
