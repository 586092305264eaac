import argparse
import asyncio
import json
import sys
from collections.abc import Awaitable, Callable
from typing import Any

import click


@click.group()
def main() -> None:
    """Workforge - worker group administration for the job scheduler."""


# ---------------------------------------------------------------------------
# Worker groups
# ---------------------------------------------------------------------------


def _run_as(user_id: int, call: Callable[[Any, Any], Awaitable[Any]]) -> None:
    """Run *call(service, user)* inside a runtime and print its outcome as JSON.

    Exits with status 1 for any non-success outcome.
    """
    from workforge.group_admin.runtime import AdminRuntime, DatabaseNotConfiguredError
    from workforge.group_admin.settings import get_settings

    async def _go() -> Any:
        async with AdminRuntime(get_settings()) as runtime, runtime.session() as db:
            user = await runtime.load_user(db, user_id)
            return await call(runtime.service(db), user)

    try:
        outcome = asyncio.run(_go())
    except (LookupError, DatabaseNotConfiguredError) as exc:
        raise click.ClickException(str(exc)) from None

    click.echo(json.dumps(outcome.to_dict(), indent=2, default=str))
    if not outcome.ok:
        sys.exit(1)


user_option = click.option("--user-id", required=True, type=int, help="Id of the acting user.")


@main.group()
def groups() -> None:
    """Create, list and delete worker groups."""


@groups.command()
@user_option
@click.option("--id", "group_id", default=0, type=int, help="Group id to update (0 creates a new group).")
@click.option("--name", required=True, help="Worker group name.")
@click.option("--addresses", default="", help="Comma-separated host:port list of live workers.")
@click.option("--description", default=None, help="Free-text description.")
def save(user_id: int, group_id: int, name: str, addresses: str, description: str | None) -> None:
    """Create or update a worker group."""
    _run_as(user_id, lambda svc, user: svc.save_worker_group(user, group_id, name, addresses, description))


@groups.command(name="list")
@user_option
@click.option("--page", "page_no", default=1, type=int, help="Page number, starting at 1.")
@click.option("--page-size", default=None, type=int, help="Page size (default: WORKFORGE_DEFAULT_PAGE_SIZE).")
@click.option("--search", default=None, help="Case-insensitive name filter.")
def list_(user_id: int, page_no: int, page_size: int | None, search: str | None) -> None:
    """List the worker groups visible to the user."""
    from workforge.group_admin.settings import get_settings

    size = page_size or get_settings().default_page_size
    _run_as(user_id, lambda svc, user: svc.query_all_group_paging(user, page_no, size, search))


@groups.command()
@user_option
def names(user_id: int) -> None:
    """List every worker group name, default group first."""
    _run_as(user_id, lambda svc, user: svc.query_all_group(user))


@groups.command()
@user_option
@click.argument("group_id", type=int)
def delete(user_id: int, group_id: int) -> None:
    """Delete a worker group, moving its references to the default group."""
    _run_as(user_id, lambda svc, user: svc.delete_worker_group_by_id(user, group_id))


@groups.command()
@user_option
def addresses(user_id: int) -> None:
    """List the live worker addresses known to the registry."""
    _run_as(user_id, lambda svc, user: svc.get_worker_address_list(user))


# ---------------------------------------------------------------------------
# Database management
# ---------------------------------------------------------------------------


def _alembic_config(database_url: str | None = None):
    """Alembic Config for the migrations packaged under ``group_admin/``.

    *database_url* overrides ``WORKFORGE_DATABASE_URL`` for this run only.
    """
    from pathlib import Path

    from alembic.config import Config

    from workforge.group_admin.log import setup_logging
    from workforge.group_admin.settings import get_settings

    settings = get_settings()
    setup_logging(settings.log_level, json_logs=settings.log_json)

    cfg = Config(str(Path(__file__).parent / "group_admin" / "alembic.ini"))
    cfg.attributes["configure_logger"] = False
    if database_url:
        cfg.cmd_opts = argparse.Namespace(x=[f"database_url={database_url}"])
    return cfg


database_url_option = click.option(
    "--database-url", default=None, help="Override WORKFORGE_DATABASE_URL for this command."
)


@main.group()
def db() -> None:
    """Manage the worker group schema (Alembic)."""


@db.command()
@database_url_option
@click.option("--revision", default="head", show_default=True, help="Target revision.")
@click.option("--sql", is_flag=True, default=False, help="Print the SQL instead of running it.")
def upgrade(database_url: str | None, revision: str, sql: bool) -> None:
    """Migrate the schema forward."""
    from alembic import command

    command.upgrade(_alembic_config(database_url), revision, sql=sql)
    if not sql:
        click.echo(f"Schema upgraded to {revision}.")


@db.command()
@database_url_option
@click.option("--revision", default="-1", show_default=True, help="Target revision (-1 is one step back).")
def downgrade(database_url: str | None, revision: str) -> None:
    """Roll the schema back."""
    from alembic import command

    command.downgrade(_alembic_config(database_url), revision)
    click.echo(f"Schema downgraded to {revision}.")


@db.command()
@database_url_option
@click.argument("message")
def migrate(database_url: str | None, message: str) -> None:
    """Autogenerate a revision from the table definitions."""
    from alembic import command

    script = command.revision(_alembic_config(database_url), message=message, autogenerate=True)
    click.echo(f"Revision {getattr(script, 'revision', '?')} generated: {message}")


@db.command()
@database_url_option
def current(database_url: str | None) -> None:
    """Show the revision the database is at."""
    from alembic import command

    command.current(_alembic_config(database_url), verbose=True)


@db.command()
def history() -> None:
    """List every revision."""
    from alembic import command

    command.history(_alembic_config(), verbose=True)


if __name__ == "__main__":
    main()
