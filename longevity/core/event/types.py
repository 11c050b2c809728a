"""
Core event types for the in-process EventBus.

Priority Levels
---------------
- CRITICAL (0): sequential, awaited, timeout-protected. Leaderboard and
  league score updates that later listeners depend on.
- HIGH (10): sequential, awaited, timeout-protected.
- NORMAL (50): concurrent (asyncio.gather), awaited. Badge evaluation,
  notifications.
- LOW (100): concurrent, awaited, results discarded. Logging and analytics.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

EventPayload = dict[str, Any]


class ListenerPriority(Enum):
    CRITICAL = 0
    HIGH = 10
    NORMAL = 50
    LOW = 100

    @property
    def is_sequential(self) -> bool:
        return self in (ListenerPriority.CRITICAL, ListenerPriority.HIGH)


CallbackType = Union[
    Callable[[EventPayload], Any],
    Callable[[EventPayload], Awaitable[Any]],
]


@dataclass(slots=True, frozen=True)
class EventListener:
    """
    A registered event listener.

    Attributes
    ----------
    callback:
        Async or sync callable invoked with the event payload.
    priority:
        Determines execution order and concurrency tier.
    identifier:
        Unique string identifier for deduplication and unsubscription.
    """

    callback: CallbackType
    priority: ListenerPriority
    identifier: str

    @classmethod
    def from_callback(
        cls,
        event_name: str,
        callback: CallbackType,
        priority: ListenerPriority,
        identifier: Optional[str] = None,
    ) -> EventListener:
        if identifier is None:
            module = getattr(callback, "__module__", "unknown")
            qualname = getattr(callback, "__qualname__", getattr(callback, "__name__", "callback"))
            identifier = f"{module}.{qualname}@{event_name}"
        return cls(callback=callback, priority=priority, identifier=identifier)


# Event names published inside this package
SUBMISSION_APPROVED = "submission.approved"
BADGE_EARNED = "badge.earned"
LEAGUE_RANKS_RECALCULATED = "league.ranks_recalculated"
SEASON_COMPLETED = "season.completed"
