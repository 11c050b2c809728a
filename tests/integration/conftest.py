"""
Integration fixtures: real PostgreSQL and Redis through testcontainers.

Scope
-----
- Containers: session (started once, skipped when Docker is unavailable)
- Schema: function (dropped and recreated for every test)
"""

from __future__ import annotations

from typing import AsyncGenerator, Awaitable, Callable, Generator

import pytest
import pytest_asyncio
from testcontainers.postgres import PostgresContainer
from testcontainers.redis import RedisContainer

from longevity.core.database.service import DatabaseService
from longevity.core.logging.logger import get_logger
from longevity.core.redis.service import RedisService

logger = get_logger(__name__)

Seeder = Callable[..., Awaitable[None]]


# ============================================================================
# TESTCONTAINERS FIXTURES
# ============================================================================


@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """
    Start PostgreSQL testcontainer for integration tests.

    Scope: session (container persists across all tests)
    """
    logger.info("Starting PostgreSQL testcontainer...")
    container = PostgresContainer(image="postgres:17-alpine", driver="asyncpg")
    try:
        container.start()
    except Exception as exc:
        pytest.skip(f"Docker is not available for PostgreSQL: {exc}")

    logger.info("PostgreSQL testcontainer started: %s", container.get_connection_url())
    yield container

    logger.info("Stopping PostgreSQL testcontainer...")
    container.stop()


@pytest.fixture(scope="session")
def redis_container() -> Generator[RedisContainer, None, None]:
    """
    Start Redis testcontainer for lock tests.

    Scope: session (container persists across all tests)
    """
    container = RedisContainer(image="redis:7-alpine")
    try:
        container.start()
    except Exception as exc:
        pytest.skip(f"Docker is not available for Redis: {exc}")

    yield container
    container.stop()


# ============================================================================
# SERVICE FIXTURES
# ============================================================================


@pytest_asyncio.fixture
async def database(postgres_container: PostgresContainer) -> AsyncGenerator[type[DatabaseService], None]:
    """
    Initialized DatabaseService on a fresh schema.

    Scope: function (clean slate per test)
    """
    await DatabaseService.initialize(postgres_container.get_connection_url())
    await DatabaseService.drop_schema()
    await DatabaseService.create_schema()

    yield DatabaseService

    await DatabaseService.shutdown()


@pytest_asyncio.fixture
async def redis(redis_container: RedisContainer) -> AsyncGenerator[type[RedisService], None]:
    host = redis_container.get_container_host_ip()
    port = redis_container.get_exposed_port(6379)
    await RedisService.initialize(f"redis://{host}:{port}/0")

    yield RedisService

    await RedisService.shutdown()


@pytest.fixture
def seed(database) -> Seeder:
    """
    Insert ORM instances in one committed transaction.

    Usage:
        await seed(Athlete(id="a1", display_name="Ada"), Season(...))
    """

    async def _seed(*instances) -> None:
        async with database.get_transaction() as session:
            for instance in instances:
                session.add(instance)
                await session.flush()

    return _seed
