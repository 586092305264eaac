"""Async SQLAlchemy engine and session factory (psycopg3, ``postgresql+psycopg://``)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

if TYPE_CHECKING:
    from workforge.group_admin.settings import WorkforgeSettings

APPLICATION_NAME = "workforge-group-admin"


def create_engine(database_url: str, *, pool_size: int = 5, max_overflow: int = 5, **kwargs: Any) -> AsyncEngine:
    """Create the async engine used for every worker group session.

    Connections are pinged on checkout and recycled hourly, and tagged with
    ``application_name`` so they can be told apart in ``pg_stat_activity``.
    Extra *kwargs* go straight to ``create_async_engine``.
    """
    options: dict[str, Any] = {
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
        "connect_args": {"application_name": APPLICATION_NAME},
    }
    options.update(kwargs)
    return create_async_engine(database_url, **options)


def engine_from_settings(settings: WorkforgeSettings) -> AsyncEngine:
    if not settings.database_url:
        msg = "WORKFORGE_DATABASE_URL is not set"
        raise ValueError(msg)
    return create_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Sessions keep ORM attributes loaded after commit; lazy IO is not allowed under asyncio."""
    return async_sessionmaker(engine, expire_on_commit=False)
