"""Service configuration loaded from WORKFORGE_* environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class WorkforgeSettings(BaseSettings):
    """Workforge group-admin settings.

    All fields are read from environment variables with the ``WORKFORGE_``
    prefix.  For example, ``WORKFORGE_LOG_LEVEL=DEBUG`` maps to ``log_level``.
    """

    model_config = SettingsConfigDict(
        env_prefix="WORKFORGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"
    log_json: bool = False
    """Emit one JSON object per log line instead of the coloured text format."""

    # -- Infrastructure --------------------------------------------------------
    database_url: str | None = None
    """PostgreSQL connection string (psycopg3).  Required for full operation."""

    db_pool_size: int = 5
    db_max_overflow: int = 5

    redis_url: str | None = None
    """Redis connection string.  When unset, ``static_workers`` is the live set."""

    # -- Registry --------------------------------------------------------------
    registry_prefix: str = "workforge:registry"
    """Key prefix of the registry hashes (``{prefix}:nodes:{node_type}``)."""

    static_workers: list[str] = Field(default_factory=list)
    """Fixed worker addresses used when no Redis registry is configured.

    Given as a JSON list in the environment, e.g.
    ``WORKFORGE_STATIC_WORKERS='["10.0.0.1:1234", "10.0.0.2:1234"]'``.
    """

    # -- Listing ---------------------------------------------------------------
    default_page_size: int = 10


def get_settings() -> WorkforgeSettings:
    """Settings shared by the ``workforge`` CLI, ``AdminRuntime`` and the Alembic env.

    Built once per process.  Anything that changes ``WORKFORGE_*`` afterwards
    (the ``workforge_env`` fixture in ``tests/conftest.py``, for one) must
    call ``_get_settings_cached.cache_clear()`` so the next call re-reads.
    """
    return _get_settings_cached()


@lru_cache(maxsize=1)
def _get_settings_cached() -> WorkforgeSettings:
    return WorkforgeSettings()
