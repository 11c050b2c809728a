"""
Base Service Foundation

Purpose
-------
Foundation for the domain services (badges, league scoring, athlete
leaderboard, seasons). Services implement the business rules, call their
store for persistence, and emit domain events.

Design Notes
------------
This base class provides:
- Structured logging with operation context
- Event emission helpers
- Lock scoping through the configured `LockProvider`

What this class does NOT do:
- Manage database transactions (stores own their sessions)
- Contain ranking or badge rules

Usage
-----
    class LeagueScoringService(BaseService):
        def __init__(self, store, locks, event_bus, logger):
            super().__init__(event_bus, logger, locks)
            self._store = store
"""

from __future__ import annotations

from contextlib import nullcontext
from typing import TYPE_CHECKING, Any, AsyncContextManager, Dict, Optional

if TYPE_CHECKING:
    from logging import Logger

    from longevity.core.event.bus import EventBus
    from longevity.modules.shared.locks import LockProvider


class BaseService:
    """
    Base class for all domain services.

    Args:
        event_bus: Event bus for cross-module communication (optional)
        logger: Structured logger instance
        locks: Lock provider used to serialize per-season/per-athlete work
    """

    def __init__(
        self,
        event_bus: Optional[EventBus],
        logger: Logger,
        locks: Optional[LockProvider] = None,
    ) -> None:
        self._events = event_bus
        self._locks = locks
        self.log = logger

    async def emit_event(self, event_type: str, data: Dict[str, Any]) -> None:
        """Publish a domain event; no-op when the service has no bus."""
        if self._events is None:
            return
        await self._events.publish(event_type, data)

    def hold_lock(self, key: str, operation: str) -> AsyncContextManager[None]:
        """Scope work under `key`; a service without a lock provider runs unguarded."""
        if self._locks is None:
            return nullcontext()
        return self._locks.hold(key, operation)

    def log_operation(self, operation: str, **context: Any) -> None:
        self.log.info(
            f"Service operation: {operation}",
            extra={"operation": operation, **context},
        )

    def log_error(self, operation: str, error: Exception, **context: Any) -> None:
        """Log a service error with full context."""
        self.log.error(
            f"Service error during {operation}: {error}",
            extra={
                "operation": operation,
                "error_type": type(error).__name__,
                "error_message": str(error),
                **context,
            },
        )
