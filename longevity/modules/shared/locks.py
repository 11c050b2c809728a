"""
Keyed mutual exclusion for scoring and badge evaluation.

Two providers share one interface:

- `LocalLockProvider`: per-key `asyncio.Lock`, for single-process
  deployments and tests.
- `RedisLockProvider`: wraps `RedisService.acquire_lock` so several worker
  processes sharing one database still serialize a season's rank pass.

Both raise `LockTimeoutError` when the wait exceeds the configured budget.
"""

from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Dict, Optional, Protocol, Type

from longevity.core.config.config import Config, LockBackend
from longevity.core.logging.logger import get_logger
from longevity.core.redis.service import RedisService
from longevity.modules.shared.exceptions import LockTimeoutError

logger = get_logger(__name__)


def season_lock_key(season_id: str) -> str:
    return f"season:{season_id}:scoring"


def athlete_lock_key(athlete_id: str) -> str:
    return f"athlete:{athlete_id}:badges"


class LockProvider(Protocol):
    def hold(self, key: str, operation: Optional[str] = None) -> AsyncContextManager[None]:
        ...


class LocalLockProvider:
    """
    In-process keyed locks.

    A key's lock lives only while someone holds or waits on it, so
    per-athlete keys do not pile up in a long-running worker.
    """

    def __init__(self, wait_timeout: Optional[float] = None) -> None:
        self._locks: Dict[str, _KeyedLock] = {}
        self._wait_timeout = wait_timeout if wait_timeout is not None else Config.LOCK_WAIT_SECONDS

    @asynccontextmanager
    async def hold(self, key: str, operation: Optional[str] = None) -> AsyncIterator[None]:
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = _KeyedLock()
        entry.users += 1
        try:
            await self._acquire(entry.lock, key, operation)
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[key]

    async def _acquire(self, lock: asyncio.Lock, key: str, operation: Optional[str]) -> None:
        # A lock granted right at the deadline is released, never leaked.
        waiter = asyncio.ensure_future(lock.acquire())
        try:
            done, _ = await asyncio.wait({waiter}, timeout=self._wait_timeout)
        except BaseException:
            _abandon(waiter, lock)
            raise
        if done:
            waiter.result()
            return

        _abandon(waiter, lock)
        logger.warning(
            "Local lock wait timed out",
            extra={"lock_key": key, "lock_operation": operation},
        )
        raise LockTimeoutError(key, self._wait_timeout)


class _KeyedLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.users = 0


def _abandon(waiter: asyncio.Future[bool], lock: asyncio.Lock) -> None:
    if not waiter.done():
        waiter.cancel()
    elif not waiter.cancelled() and waiter.exception() is None:
        lock.release()


class RedisLockProvider:
    """Distributed keyed locks backed by Redis SET NX."""

    def __init__(self, redis: Type[RedisService] = RedisService) -> None:
        self._redis = redis

    @asynccontextmanager
    async def hold(self, key: str, operation: Optional[str] = None) -> AsyncIterator[None]:
        async with AsyncExitStack() as stack:
            try:
                await stack.enter_async_context(self._redis.acquire_lock(key, operation=operation))
            except TimeoutError as exc:
                raise LockTimeoutError(key, Config.LOCK_WAIT_SECONDS) from exc
            yield


def build_lock_provider() -> LockProvider:
    if Config.LOCK_BACKEND is LockBackend.REDIS:
        return RedisLockProvider()
    return LocalLockProvider()
