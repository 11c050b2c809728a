"""
Unit tests for keyed locks and the domain exception hierarchy.
"""

import asyncio
from contextlib import asynccontextmanager

import pytest

from longevity.core.config.config import LockBackend
from longevity.modules.shared.exceptions import (
    AthleteNotFoundError,
    ErrorSeverity,
    InvalidOperationError,
    LeagueNotFoundError,
    LockTimeoutError,
    LongevityDomainException,
    NotFoundError,
    RankRecalculationError,
    SeasonNotFoundError,
    ValidationError,
    get_error_severity,
    is_transient_error,
    should_alert,
)
from longevity.modules.shared.locks import (
    LocalLockProvider,
    RedisLockProvider,
    _abandon,
    athlete_lock_key,
    build_lock_provider,
    season_lock_key,
)


@pytest.mark.unit
class TestLockKeys:
    def test_key_formats(self):
        assert season_lock_key("s1") == "season:s1:scoring"
        assert athlete_lock_key("a1") == "athlete:a1:badges"


@pytest.mark.unit
class TestLocalLockProvider:
    async def test_serializes_same_key(self):
        # Arrange
        provider = LocalLockProvider(wait_timeout=1.0)
        order = []

        async def worker(name):
            async with provider.hold("k"):
                order.append(f"{name}-in")
                await asyncio.sleep(0.01)
                order.append(f"{name}-out")

        # Act
        await asyncio.gather(worker("a"), worker("b"))

        # Assert
        assert order == ["a-in", "a-out", "b-in", "b-out"]

    async def test_timeout_raises_lock_timeout(self):
        provider = LocalLockProvider(wait_timeout=0.01)

        async with provider.hold("k"):
            with pytest.raises(LockTimeoutError) as exc_info:
                async with provider.hold("k", "second"):
                    pass

        assert exc_info.value.is_retryable is True
        assert exc_info.value.details["lock_key"] == "k"

    async def test_lock_released_after_error(self):
        provider = LocalLockProvider(wait_timeout=0.05)

        with pytest.raises(RuntimeError):
            async with provider.hold("k"):
                raise RuntimeError("inside")

        async with provider.hold("k"):
            pass

    async def test_released_keys_are_dropped(self):
        """Per-athlete keys do not accumulate once their holds are released."""
        provider = LocalLockProvider(wait_timeout=1.0)

        for index in range(1000):
            async with provider.hold(athlete_lock_key(f"a{index}"), "check"):
                pass

        assert provider._locks == {}

    async def test_key_kept_while_someone_waits(self):
        # Arrange
        provider = LocalLockProvider(wait_timeout=1.0)
        entered = asyncio.Event()

        async def waiter():
            async with provider.hold("k", "second"):
                entered.set()

        # Act
        async with provider.hold("k", "first"):
            task = asyncio.create_task(waiter())
            await asyncio.sleep(0.01)
            assert list(provider._locks) == ["k"]
        await task

        # Assert
        assert entered.is_set()
        assert provider._locks == {}

    async def test_timed_out_wait_leaves_no_state(self):
        provider = LocalLockProvider(wait_timeout=0.01)

        async with provider.hold("k"):
            with pytest.raises(LockTimeoutError):
                async with provider.hold("k", "second"):
                    pass
            assert provider._locks["k"].users == 1

        assert provider._locks == {}
        async with provider.hold("k"):
            pass

    async def test_cancelled_waiter_does_not_keep_lock(self):
        # Arrange
        provider = LocalLockProvider(wait_timeout=1.0)

        async def waiter():
            async with provider.hold("k", "cancelled"):
                pass

        # Act
        async with provider.hold("k"):
            task = asyncio.create_task(waiter())
            await asyncio.sleep(0.01)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        # Assert
        assert provider._locks == {}
        async with provider.hold("k"):
            pass

    async def test_lock_granted_at_deadline_is_released(self):
        """An acquire that completed as the wait gave up must not leak the lock."""
        # Arrange
        lock = asyncio.Lock()
        await lock.acquire()
        granted = asyncio.get_running_loop().create_future()
        granted.set_result(True)

        # Act
        _abandon(granted, lock)

        # Assert
        assert lock.locked() is False

        async with provider.hold("k"):
            pass

    def test_build_uses_config_backend(self, mocker):
        mocker.patch("longevity.modules.shared.locks.Config.LOCK_BACKEND", LockBackend.REDIS)
        assert isinstance(build_lock_provider(), RedisLockProvider)

        mocker.patch("longevity.modules.shared.locks.Config.LOCK_BACKEND", LockBackend.LOCAL)
        assert isinstance(build_lock_provider(), LocalLockProvider)


@pytest.mark.unit
class TestRedisLockProvider:
    async def test_wraps_redis_timeout(self, mocker):
        """A Redis wait timeout surfaces as LockTimeoutError."""
        # Arrange
        @asynccontextmanager
        async def never(key, operation=None):
            raise TimeoutError("still held")
            yield  # pragma: no cover

        redis = mocker.MagicMock()
        redis.acquire_lock = never

        # Act / Assert
        with pytest.raises(LockTimeoutError):
            async with RedisLockProvider(redis).hold("season:s1:scoring"):
                pass

    async def test_enters_and_exits_redis_lock(self, mocker):
        events = []

        @asynccontextmanager
        async def acquire(key, operation=None):
            events.append(("acquire", key, operation))
            yield
            events.append(("release", key, operation))

        redis = mocker.MagicMock()
        redis.acquire_lock = acquire

        async with RedisLockProvider(redis).hold("athlete:a1:badges", "check"):
            events.append(("body",))

        assert events == [
            ("acquire", "athlete:a1:badges", "check"),
            ("body",),
            ("release", "athlete:a1:badges", "check"),
        ]


@pytest.mark.unit
class TestExceptions:
    def test_not_found_hierarchy(self):
        for exc in (AthleteNotFoundError("a"), LeagueNotFoundError("l"), SeasonNotFoundError("s")):
            assert isinstance(exc, NotFoundError)
            assert isinstance(exc, LongevityDomainException)
            assert exc.severity is ErrorSeverity.INFO
            assert is_transient_error(exc) is False

    def test_not_found_codes(self):
        exc = LeagueNotFoundError("lg-9")

        assert exc.error_code == "LEAGUE_NOT_FOUND"
        assert exc.message == "League not found: lg-9"
        assert exc.to_dict()["details"] == {"resource_type": "League", "identifier": "lg-9"}

    def test_rank_recalculation_is_retryable_and_alerts(self):
        exc = RankRecalculationError("league", "s1", "deadlock")

        assert is_transient_error(exc) is True
        assert should_alert(exc) is True
        assert "League rank recalculation failed for season s1" in str(exc)

    def test_validation_and_invalid_operation(self):
        validation = ValidationError("athlete_id", "missing")
        invalid = InvalidOperationError("complete_season", "already completed")

        assert validation.error_code == "VALIDATION_ATHLETE_ID"
        assert invalid.error_code == "INVALID_COMPLETE_SEASON"
        assert should_alert(invalid) is False

    def test_foreign_exceptions(self):
        exc = RuntimeError("x")

        assert is_transient_error(exc) is False
        assert get_error_severity(exc) is ErrorSeverity.ERROR
