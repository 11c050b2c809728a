"""
RedisService: async Redis infrastructure for cross-process locking.

Purpose
-------
Provide the singleton async Redis client and a token-safe distributed lock.
Scoring and badge evaluation use the lock to serialize work per season and
per athlete when more than one worker process shares a database.

Responsibilities
----------------
- Initialize and manage a singleton Redis connection pool
- Provide distributed locking via SET NX + Lua compare-and-delete unlock
- Expose a PING health check

Non-Responsibilities
--------------------
- Caching leaderboard data (rankings are always read from the database)
- Business logic of any kind

Architecture Notes
------------------
- Uses the redis-py asyncio client with connection pooling
- Locks carry a UUID token so a worker never releases a lock it lost to
  expiry; an expired lock is logged on release
- Initialization is idempotent and guarded by an asyncio.Lock
"""

from __future__ import annotations

import asyncio
import time
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from redis.asyncio.client import Redis as AsyncRedis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError

from longevity.core.config.config import Config
from longevity.core.logging.logger import get_logger

logger = get_logger(__name__)

LOCK_RETRY_INTERVAL_SECONDS = 0.1


class RedisService:
    """Singleton async Redis client plus distributed locking."""

    _client: Optional[AsyncRedis] = None
    _init_lock: asyncio.Lock = asyncio.Lock()

    # Atomic lock release (compare token + delete)
    _LUA_UNLOCK_SCRIPT = """
    if redis.call("GET", KEYS[1]) == ARGV[1] then
        return redis.call("DEL", KEYS[1])
    else
        return 0
    end
    """

    # ═══════════════════════════════════════════════════════════════════════
    # LIFECYCLE MANAGEMENT
    # ═══════════════════════════════════════════════════════════════════════

    @classmethod
    async def initialize(cls, url: Optional[str] = None) -> None:
        """
        Initialize the singleton client and verify connectivity.

        Raises:
            RuntimeError: If Redis cannot be reached.
        """
        async with cls._init_lock:
            if cls._client is not None:
                return

            url = url or Config.REDIS_URL
            client: AsyncRedis = AsyncRedis.from_url(
                url,
                socket_timeout=Config.REDIS_SOCKET_TIMEOUT,
                decode_responses=True,
                max_connections=Config.REDIS_MAX_CONNECTIONS,
            )

            try:
                await client.ping()
            except RedisError as exc:
                await client.aclose()
                logger.critical(
                    "Failed to initialize RedisService",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                    exc_info=True,
                )
                raise RuntimeError(f"Failed to initialize RedisService: {exc}") from exc

            cls._client = client
            logger.info(
                "RedisService initialized",
                extra={"url_scheme": url.split("://")[0] if "://" in url else "unknown"},
            )

    @classmethod
    async def shutdown(cls) -> None:
        async with cls._init_lock:
            if cls._client is None:
                return
            try:
                await cls._client.aclose()
            finally:
                cls._client = None
                logger.info("RedisService shutdown complete")

    @classmethod
    def client(cls) -> AsyncRedis:
        if cls._client is None:
            raise RuntimeError("RedisService is not initialized")
        return cls._client

    @classmethod
    async def health_check(cls) -> bool:
        if cls._client is None:
            return False
        try:
            return bool(await cls._client.ping())
        except RedisError as exc:
            logger.warning(
                "Redis health check failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            return False

    # ═══════════════════════════════════════════════════════════════════════
    # DISTRIBUTED LOCKING
    # ═══════════════════════════════════════════════════════════════════════

    @classmethod
    @asynccontextmanager
    async def acquire_lock(
        cls,
        key: str,
        timeout: Optional[int] = None,
        wait_timeout: Optional[float] = None,
        retry_interval: float = LOCK_RETRY_INTERVAL_SECONDS,
        operation: Optional[str] = None,
    ) -> AsyncGenerator[None, None]:
        """
        Acquire a distributed lock using Redis SET NX with a unique token.

        The lock expires after `timeout` seconds if never released (worker crash).

        Parameters
        ----------
        key : str
            Lock identifier (e.g., "season:{season_id}:scoring").
        timeout : Optional[int]
            Lock expiration in seconds (default `Config.LOCK_TIMEOUT_SECONDS`).
        wait_timeout : Optional[float]
            Maximum wait for acquisition (default `Config.LOCK_WAIT_SECONDS`).
        operation : Optional[str]
            Operation name for log context.

        Raises
        ------
        TimeoutError
            If the lock cannot be acquired within wait_timeout.

        Example
        -------
        >>> async with RedisService.acquire_lock(f"season:{season_id}:scoring"):
        ...     await run_rank_pass(season_id)
        """
        client = cls.client()
        timeout = timeout if timeout is not None else Config.LOCK_TIMEOUT_SECONDS
        wait_timeout = wait_timeout if wait_timeout is not None else Config.LOCK_WAIT_SECONDS

        token = uuid.uuid4().hex
        start = time.monotonic()
        deadline = start + max(0.0, wait_timeout)
        acquired = False

        try:
            while True:
                try:
                    acquired = bool(await client.set(name=key, value=token, nx=True, ex=timeout))
                except (RedisConnectionError, RedisError) as exc:
                    logger.error(
                        "Redis lock acquisition error",
                        extra={
                            "lock_key": key,
                            "error": str(exc),
                            "error_type": type(exc).__name__,
                        },
                    )

                if acquired:
                    logger.debug(
                        "Redis lock acquired",
                        extra={
                            "lock_key": key,
                            "wait_ms": round((time.monotonic() - start) * 1000, 2),
                            "lock_operation": operation,
                        },
                    )
                    break

                if time.monotonic() >= deadline:
                    logger.warning(
                        "Failed to acquire Redis lock within timeout",
                        extra={"lock_key": key, "wait_timeout_seconds": wait_timeout},
                    )
                    raise TimeoutError(f"Failed to acquire Redis lock '{key}' within {wait_timeout}s")

                await asyncio.sleep(retry_interval)

            yield

        finally:
            if acquired:
                try:
                    released = await client.eval(cls._LUA_UNLOCK_SCRIPT, 1, key, token)
                except RedisError as exc:
                    logger.warning(
                        "Failed to release Redis lock (will expire automatically)",
                        extra={"lock_key": key, "error": str(exc), "error_type": type(exc).__name__},
                    )
                else:
                    if not released:
                        logger.warning("Redis lock already expired before release", extra={"lock_key": key})
