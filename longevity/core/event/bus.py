"""
EventBus: async in-process pub/sub with tiered listener execution.

Purpose
-------
Decouple the submission-approval workflow from the engines it drives.
Approving a submission publishes one event; leaderboard, league scoring and
badge evaluation subscribe to it independently.

Responsibilities
----------------
- Register/unregister listeners with priorities
- Publish events to every listener of that event name
- Execute listeners by tier:
  * CRITICAL / HIGH: sequential in priority order, awaited with timeout
  * NORMAL / LOW: concurrent (gather), awaited
- Error isolation: one failing listener never blocks the others

Design Decisions
----------------
- Instance-based so tests can build isolated buses; the package-level
  singleton lives in `longevity.core.event.event_bus`.
- Listener failures are logged and returned as exception objects in the
  result list rather than raised to the publisher.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Dict, List, Optional

from longevity.core.event.types import (
    CallbackType,
    EventListener,
    EventPayload,
    ListenerPriority,
)
from longevity.core.logging.logger import LogContext, get_logger

logger = get_logger(__name__)

DEFAULT_SEQUENTIAL_TIMEOUT_SECONDS = 30.0


class EventBus:
    """
    Examples
    --------
    >>> bus = EventBus()
    >>> bus.subscribe("submission.approved", on_approved, priority=ListenerPriority.CRITICAL)
    >>> await bus.publish("submission.approved", {"athlete_id": "a1", "season_id": "s1"})
    """

    def __init__(self, *, sequential_timeout_seconds: float = DEFAULT_SEQUENTIAL_TIMEOUT_SECONDS) -> None:
        self._listeners: Dict[str, List[EventListener]] = {}
        self._sequential_timeout = sequential_timeout_seconds

    # ------------------------------------------------------------------ #
    # Subscription API
    # ------------------------------------------------------------------ #

    @staticmethod
    def _validate_callback_signature(callback: CallbackType) -> None:
        """Catch mis-registered listeners at subscription time."""
        try:
            sig = inspect.signature(callback)
        except (TypeError, ValueError):
            return

        params = list(sig.parameters.values())
        if len(params) != 1:
            name = getattr(callback, "__qualname__", repr(callback))
            raise ValueError(
                f"Event listener must accept exactly 1 parameter (EventPayload), "
                f"got {len(params)} parameters for '{name}'"
            )

    def subscribe(
        self,
        event_name: str,
        callback: CallbackType,
        *,
        priority: ListenerPriority = ListenerPriority.NORMAL,
        identifier: Optional[str] = None,
    ) -> str:
        """
        Subscribe a callback to an event.

        Returns:
            The listener identifier. Re-subscribing the same identifier is a no-op.
        """
        self._validate_callback_signature(callback)
        listener = EventListener.from_callback(event_name, callback, priority, identifier)

        listeners = self._listeners.setdefault(event_name, [])
        if any(existing.identifier == listener.identifier for existing in listeners):
            logger.warning(
                "EventBus: duplicate listener prevented",
                extra={"event_name": event_name, "listener_id": listener.identifier},
            )
            return listener.identifier

        listeners.append(listener)
        listeners.sort(key=lambda item: item.priority.value)

        logger.debug(
            "EventBus: subscribed listener",
            extra={
                "event_name": event_name,
                "listener_id": listener.identifier,
                "priority": priority.name,
            },
        )
        return listener.identifier

    def unsubscribe(self, event_name: str, identifier: str) -> bool:
        listeners = self._listeners.get(event_name, [])
        remaining = [item for item in listeners if item.identifier != identifier]
        self._listeners[event_name] = remaining
        return len(remaining) != len(listeners)

    def clear(self) -> None:
        self._listeners.clear()

    def get_listener_count(self, event_name: Optional[str] = None) -> int:
        if event_name is not None:
            return len(self._listeners.get(event_name, []))
        return sum(len(items) for items in self._listeners.values())

    # ------------------------------------------------------------------ #
    # Publish API
    # ------------------------------------------------------------------ #

    async def publish(self, event_name: str, data: EventPayload) -> list[Any]:
        """
        Publish an event to all subscribed listeners.

        Returns:
            One result per listener in execution order. A failed listener
            contributes its exception object.
        """
        listeners = list(self._listeners.get(event_name, []))
        if not listeners:
            logger.debug("EventBus: no listeners for event", extra={"event_name": event_name})
            return []

        async with LogContext(
            athlete_id=data.get("athlete_id"),
            league_id=data.get("league_id"),
            season_id=data.get("season_id"),
            operation=event_name,
        ):
            results: list[Any] = []

            for listener in (item for item in listeners if item.priority.is_sequential):
                results.append(await self._run_listener(event_name, listener, data, timeout=self._sequential_timeout))

            concurrent = [item for item in listeners if not item.priority.is_sequential]
            if concurrent:
                results.extend(
                    await asyncio.gather(
                        *(self._run_listener(event_name, item, data) for item in concurrent)
                    )
                )

        return results

    async def _run_listener(
        self,
        event_name: str,
        listener: EventListener,
        data: EventPayload,
        timeout: Optional[float] = None,
    ) -> Any:
        try:
            result = listener.callback(data)
            if inspect.isawaitable(result):
                result = await asyncio.wait_for(result, timeout=timeout)
            return result
        except Exception as exc:
            logger.error(
                "EventBus: listener failed",
                extra={
                    "event_name": event_name,
                    "listener_id": listener.identifier,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
                exc_info=True,
            )
            return exc
