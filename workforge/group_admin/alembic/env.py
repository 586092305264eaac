"""Alembic environment for the worker group schema.

The URL comes from ``-x database_url=...`` when given, otherwise from
``WORKFORGE_DATABASE_URL``.  Online migrations run on the same async psycopg3
driver the service uses, through ``AsyncConnection.run_sync``.
"""

from __future__ import annotations

import asyncio
from logging.config import fileConfig
from typing import Any

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from workforge.group_admin.db.tables import Base
from workforge.group_admin.settings import get_settings

config = context.config
# The CLI routes logging through loguru and opts out of the ini's handlers.
if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def _database_url() -> str:
    url = context.get_x_argument(as_dictionary=True).get("database_url") or get_settings().database_url
    if not url:
        msg = "WORKFORGE_DATABASE_URL is not set. Cannot run migrations."
        raise RuntimeError(msg)
    return url


def include_object(obj: Any, name: str | None, type_: str, reflected: bool, compare_to: Any) -> bool:
    """Leave tables owned by the rest of the scheduler out of autogenerate."""
    return not (type_ == "table" and reflected and compare_to is None)


_COMPARE = {"compare_type": True, "compare_server_default": True, "include_object": include_object}


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of executing it."""
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_COMPARE,
    )
    with context.begin_transaction():
        context.run_migrations()


def _apply(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata, **_COMPARE)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    engine = create_async_engine(_database_url(), poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_apply)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
