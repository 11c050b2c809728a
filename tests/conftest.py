"""
Pytest Configuration and Fixtures for the Longevity League tests
================================================================

Purpose
-------
Centralized fixtures for the unit suite: in-memory stores, lock providers,
event buses and fully wired services.

Responsibilities
----------------
- Force the testing environment before configuration is read
- Provide an `InMemoryStore` that implements every store protocol
- Build services the same way the service container does, sharing one
  lock provider
- Pin the badge evaluation clock so time-based rules are deterministic

Non-Responsibilities
--------------------
- Database containers (see `tests/integration/conftest.py`)
- Test implementation (delegated to test files)

Architecture Notes
------------------
- Unit tests never touch Postgres or Redis
- Every fixture is function-scoped: each test gets a clean world
"""

from __future__ import annotations

import os

import pytest

from longevity.core.config.config import Config
from longevity.core.event.bus import EventBus
from longevity.modules.badges.context_loader import BadgeContextLoader
from longevity.modules.badges.service import BadgeService
from longevity.modules.leaderboard.service import AthleteLeaderboardService
from longevity.modules.leagues.service import LeagueScoringService
from longevity.modules.seasons.service import SeasonService
from longevity.modules.shared.locks import LocalLockProvider
from tests.fakes import EVALUATED_AT, InMemoryStore

# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================


def pytest_configure(config):
    """Configure pytest environment."""
    os.environ["ENVIRONMENT"] = "testing"
    os.environ["LOG_LEVEL"] = "DEBUG"
    os.environ["LOCK_BACKEND"] = "local"
    Config.load()


# ============================================================================
# INFRASTRUCTURE FIXTURES
# ============================================================================


@pytest.fixture
def store() -> InMemoryStore:
    """
    In-memory store implementing every store protocol.

    Scope: function (clean slate per test)
    """
    return InMemoryStore()


@pytest.fixture
def locks() -> LocalLockProvider:
    """Keyed asyncio locks with a short wait budget."""
    return LocalLockProvider(wait_timeout=2.0)


@pytest.fixture
def event_bus() -> EventBus:
    """Isolated EventBus instance (never the global singleton)."""
    return EventBus(sequential_timeout_seconds=5.0)


@pytest.fixture
def mock_event_bus(mocker):
    """
    Mock EventBus for unit tests.

    Scope: function
    Uses: Unit tests that assert on published events
    """
    mock_bus = mocker.MagicMock()
    mock_bus.publish = mocker.AsyncMock(return_value=[])
    mock_bus.subscribe = mocker.MagicMock(side_effect=lambda event_name, callback, **kwargs: kwargs.get("identifier"))
    mock_bus.unsubscribe = mocker.MagicMock(return_value=True)
    return mock_bus


# ============================================================================
# SERVICE FIXTURES
# ============================================================================


@pytest.fixture
def badge_loader(store) -> BadgeContextLoader:
    return BadgeContextLoader(store, clock=lambda: EVALUATED_AT)


@pytest.fixture
def badge_service(store, locks, mock_event_bus, badge_loader) -> BadgeService:
    store.seed_badge_catalog()
    return BadgeService(store, event_bus=mock_event_bus, locks=locks, loader=badge_loader)


@pytest.fixture
def league_service(store, locks, mock_event_bus) -> LeagueScoringService:
    return LeagueScoringService(store, event_bus=mock_event_bus, locks=locks, top_n=10)


@pytest.fixture
def leaderboard_service(store, locks, mock_event_bus) -> AthleteLeaderboardService:
    return AthleteLeaderboardService(store, event_bus=mock_event_bus, locks=locks)


@pytest.fixture
def season_service(store, locks, mock_event_bus, leaderboard_service, badge_service) -> SeasonService:
    return SeasonService(
        store,
        leaderboard=leaderboard_service,
        badges=badge_service,
        activity=store,
        event_bus=mock_event_bus,
        locks=locks,
    )
