"""Shared fixtures.

Unit tests need nothing from here.  Tests marked ``integration`` get a
PostgreSQL 17 and a Redis 7 container (one of each per run, via
testcontainers), a schema migrated with the Alembic config behind
``workforge db upgrade``, and per-test isolation: every DB session runs inside an
outer transaction that is rolled back, and Redis is flushed afterwards.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator

import pytest
import redis.asyncio as aioredis
from alembic import command
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from testcontainers.postgres import PostgresContainer
from testcontainers.redis import RedisContainer

from workforge.cli import _alembic_config
from workforge.group_admin.settings import _get_settings_cached


@pytest.fixture(scope="session")
def workforge_env() -> Iterator[pytest.MonkeyPatch]:
    """Session-wide env overrides; the settings cache is reset on every change."""
    mp = pytest.MonkeyPatch()
    _get_settings_cached.cache_clear()
    yield mp
    mp.undo()
    _get_settings_cached.cache_clear()


# -- PostgreSQL ---------------------------------------------------------------


@pytest.fixture(scope="session")
def database_url(workforge_env: pytest.MonkeyPatch) -> Iterator[str]:
    """URL of a migrated throwaway database (``postgresql+psycopg://``)."""
    with PostgresContainer(
        image="postgres:17",
        username="test",
        password="test",
        dbname="workforge_test",
        driver="psycopg",
    ) as pg:
        url = pg.get_connection_url()
        workforge_env.setenv("WORKFORGE_DATABASE_URL", url)
        _get_settings_cached.cache_clear()

        command.upgrade(_alembic_config(url), "head")
        yield url


@pytest.fixture(scope="session")
def async_engine(database_url: str) -> Iterator[AsyncEngine]:
    # NullPool: each test has its own event loop and pooled connections are loop-bound.
    engine = create_async_engine(database_url, poolclass=NullPool)
    yield engine
    engine.sync_engine.dispose()


@pytest.fixture
async def db_session(async_engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Session whose commits only release savepoints; everything is rolled back at teardown."""
    async with async_engine.connect() as conn:
        outer = await conn.begin()
        make_session = async_sessionmaker(bind=conn, join_transaction_mode="create_savepoint", expire_on_commit=False)
        async with make_session() as session:
            yield session
        await outer.rollback()


# -- Redis --------------------------------------------------------------------


@pytest.fixture(scope="session")
def redis_url(workforge_env: pytest.MonkeyPatch) -> Iterator[str]:
    with RedisContainer(image="redis:7") as r:
        url = f"redis://{r.get_container_host_ip()}:{r.get_exposed_port(6379)}/0"
        workforge_env.setenv("WORKFORGE_REDIS_URL", url)
        _get_settings_cached.cache_clear()
        yield url


@pytest.fixture
async def redis_client(redis_url: str) -> AsyncIterator[aioredis.Redis]:
    """Raw-bytes client; the database is flushed after each test."""
    client = aioredis.Redis.from_url(redis_url)
    try:
        yield client
    finally:
        await client.flushdb()
        await client.aclose()
