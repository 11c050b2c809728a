"""
Builds the `BadgeContext` for one athlete.

Four reads run concurrently (athlete, approved submissions, memberships,
latest leaderboard entry), a fixed count regardless of how many submissions
or leagues the athlete has. Nothing is cached between calls.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Callable, Optional

from longevity.core.logging.logger import get_logger
from longevity.domain.models import BadgeContext
from longevity.modules.badges.repository import BadgeStore

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def utc_clock() -> datetime:
    return datetime.now(timezone.utc)


class BadgeContextLoader:
    def __init__(self, store: BadgeStore, clock: Clock = utc_clock) -> None:
        self._store = store
        self._clock = clock

    async def load(self, athlete_id: str) -> Optional[BadgeContext]:
        """Return the athlete's context, or None when the athlete does not exist."""
        athlete, submissions, memberships, leaderboard = await asyncio.gather(
            self._store.find_athlete(athlete_id),
            self._store.list_approved_submissions(athlete_id),
            self._store.list_memberships(athlete_id),
            self._store.latest_leaderboard_entry(athlete_id),
        )
        if athlete is None:
            logger.debug("Badge context requested for unknown athlete", extra={"athlete_id": athlete_id})
            return None

        context = BadgeContext.build(
            athlete=athlete,
            submissions=submissions,
            memberships=memberships,
            leaderboard=leaderboard,
            evaluated_at=self._clock(),
        )
        logger.debug(
            "Badge context loaded",
            extra={
                "athlete_id": athlete_id,
                "submission_count": len(context.submissions),
                "membership_count": len(context.memberships),
                "has_leaderboard": leaderboard is not None,
            },
        )
        return context
