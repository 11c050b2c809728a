"""
In-process event system with a global singleton EventBus.
"""

from .bus import EventBus
from .types import (
    BADGE_EARNED,
    LEAGUE_RANKS_RECALCULATED,
    SEASON_COMPLETED,
    SUBMISSION_APPROVED,
    CallbackType,
    EventListener,
    EventPayload,
    ListenerPriority,
)

# Global runtime singleton EventBus
event_bus = EventBus()

__all__ = [
    "event_bus",
    "EventBus",
    "EventPayload",
    "ListenerPriority",
    "EventListener",
    "CallbackType",
    "SUBMISSION_APPROVED",
    "BADGE_EARNED",
    "LEAGUE_RANKS_RECALCULATED",
    "SEASON_COMPLETED",
]
