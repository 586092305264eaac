"""Process-level wiring for the group-admin core.

``AdminRuntime`` owns the shared infrastructure (database engine, Redis
client, registry view) for the lifetime of a process and hands out
per-unit-of-work ``WorkerGroupService`` instances bound to one DB session::

    async with AdminRuntime(get_settings()) as runtime:
        async with runtime.session() as db:
            outcome = await runtime.service(db).query_all_group(user)
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import redis.asyncio as aioredis
from loguru import logger

from workforge.group_admin.db.engine import create_session_factory, engine_from_settings
from workforge.group_admin.db.tables import User
from workforge.group_admin.log import setup_logging
from workforge.group_admin.managers.worker_groups import WorkerGroupService
from workforge.group_admin.models.api import LoginUser
from workforge.group_admin.permissions import SqlPermissionGate
from workforge.group_admin.registry import RedisRegistryView, RegistryView, StaticRegistryView
from workforge.group_admin.store.sql import SqlReferenceScanners, SqlWorkerGroupStore

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from types import TracebackType

    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

    from workforge.group_admin.settings import WorkforgeSettings


class DatabaseNotConfiguredError(RuntimeError):
    """Raised when a DB session is requested but WORKFORGE_DATABASE_URL is unset."""


class AdminRuntime:
    """Async context manager holding the engine, Redis client and registry view."""

    def __init__(self, settings: WorkforgeSettings, *, configure_logging: bool = True) -> None:
        self.settings = settings
        self._configure_logging = configure_logging
        self.engine: AsyncEngine | None = None
        self.session_factory: async_sessionmaker[AsyncSession] | None = None
        self.redis: aioredis.Redis | None = None
        self.registry: RegistryView = StaticRegistryView(settings.static_workers)

    async def __aenter__(self) -> AdminRuntime:
        settings = self.settings
        if self._configure_logging:
            setup_logging(settings.log_level, json_logs=settings.log_json)

        # -- Database ----------------------------------------------------------
        if settings.database_url:
            self.engine = engine_from_settings(settings)
            self.session_factory = create_session_factory(self.engine)
            logger.info("PostgreSQL: connected")
        else:
            logger.warning("WORKFORGE_DATABASE_URL not set -- worker group store unavailable")

        # -- Registry ----------------------------------------------------------
        if settings.redis_url:
            self.redis = aioredis.from_url(
                settings.redis_url,
                decode_responses=False,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            self.registry = RedisRegistryView(self.redis, prefix=settings.registry_prefix)
            logger.info("Registry: redis (prefix={})", settings.registry_prefix)
        else:
            logger.warning(
                "WORKFORGE_REDIS_URL not set -- using static worker list ({} addresses)",
                len(settings.static_workers),
            )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None
            logger.info("Redis: closed")
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None
            self.session_factory = None
            logger.info("PostgreSQL: disposed")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield an async SQLAlchemy session, closing it afterwards."""
        if self.session_factory is None:
            msg = "Database not configured (WORKFORGE_DATABASE_URL is unset)."
            raise DatabaseNotConfiguredError(msg)
        db = self.session_factory()
        try:
            yield db
        finally:
            await db.close()

    def service(self, db: AsyncSession) -> WorkerGroupService:
        """Build a service whose collaborators share *db*."""
        return WorkerGroupService(
            permissions=SqlPermissionGate(db),
            registry=self.registry,
            store=SqlWorkerGroupStore(db),
            references=SqlReferenceScanners(db),
        )

    @staticmethod
    async def load_user(db: AsyncSession, user_id: int) -> LoginUser:
        """Load the acting user.  Raises ``LookupError`` if missing."""
        row = await db.get(User, user_id)
        if row is None:
            msg = f"User '{user_id}' not found"
            raise LookupError(msg)
        return LoginUser.model_validate(row)
