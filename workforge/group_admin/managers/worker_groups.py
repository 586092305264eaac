"""Worker group service -- the consistency core of worker group administration.

The service decides whether a lifecycle transition of a worker group is
legal before the store is touched.  It coordinates four collaborators, all
injected at construction:

- **PermissionGate**: who may do what, and which group ids a user may see
- **RegistryView**: the live worker set addresses are validated against
- **WorkerGroupStore**: the ``worker_groups`` rows
- **ReferenceScanners**: workflow instances, task definitions, schedules and
  environment bindings that reference a group by name

Every public method returns an ``Outcome``.  Expected conditions are reported
with their own ``Status``; collaborator faults (database or registry
unreachable) are logged and reported as ``INTERNAL_SERVER_ERROR_ARGS``
without retry.
"""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, ParamSpec

from loguru import logger
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from workforge.group_admin.db.tables import WorkerGroup
from workforge.group_admin.models.api import LoginUser, PageInfo, WorkerGroupResponse
from workforge.group_admin.models.enums import (
    DEFAULT_WORKER_GROUP,
    AuthorizationType,
    RegistryNodeType,
    WorkerGroupAction,
    is_default_worker_group,
)
from workforge.group_admin.models.outcome import Outcome, Status
from workforge.group_admin.store.base import WriteResult

if TYPE_CHECKING:
    from workforge.group_admin.permissions import PermissionGate
    from workforge.group_admin.registry import RegistryView
    from workforge.group_admin.store.base import ReferenceScanners, WorkerGroupStore

P = ParamSpec("P")

_COLLABORATOR_ERRORS = (SQLAlchemyError, RedisError, OSError)


def parse_addresses(addr_list: str | None) -> list[str]:
    """Split a comma-separated ``host:port`` list into unique, trimmed tokens.

    Order of first appearance is kept; empty tokens are dropped.
    """
    if not addr_list:
        return []
    seen: dict[str, None] = {}
    for token in addr_list.split(","):
        token = token.strip()
        if token:
            seen.setdefault(token, None)
    return list(seen)


def _reports_internal_errors(
    func: Callable[P, Awaitable[Outcome[Any]]],
) -> Callable[P, Awaitable[Outcome[Any]]]:
    """Turn an unexpected collaborator fault into an INTERNAL outcome."""

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> Outcome[Any]:
        try:
            return await func(*args, **kwargs)
        except _COLLABORATOR_ERRORS as exc:
            logger.exception("Worker group operation {} failed", func.__name__)
            return Outcome.error(Status.INTERNAL_SERVER_ERROR_ARGS, exc)

    return wrapper


class WorkerGroupService:
    """Validates and applies worker group create/update/list/delete.

    Holds no state of its own beyond its collaborators; build one per unit
    of work (see ``AdminRuntime.service``).
    """

    def __init__(
        self,
        permissions: PermissionGate,
        registry: RegistryView,
        store: WorkerGroupStore,
        references: ReferenceScanners,
    ) -> None:
        self._permissions = permissions
        self._registry = registry
        self._store = store
        self._references = references

    # -- Save ------------------------------------------------------------------

    @_reports_internal_errors
    async def save_worker_group(
        self,
        user: LoginUser,
        group_id: int | None,
        name: str | None,
        addr_list: str | None,
        description: str | None = None,
    ) -> Outcome[None]:
        """Create (``group_id`` 0/None) or update a worker group.

        Addresses must all be live in the registry at call time.  Saving
        against an id that no longer exists writes nothing and still reports
        success.
        """
        group_id = group_id or 0
        if not await self._can_save(user, group_id):
            return Outcome.error(Status.USER_NO_OPERATION_PERM)

        if name is None or not name.strip():
            return Outcome.error(Status.NAME_NULL)
        name = name.strip()
        if name == DEFAULT_WORKER_GROUP:
            return Outcome.error(Status.NAME_EXIST, name)

        addresses = parse_addresses(addr_list)
        invalid = await self._first_invalid_address(addresses)
        if invalid is not None:
            logger.warning("Worker group {!r}: address {} is not a live worker", name, invalid)
            return Outcome.error(Status.WORKER_ADDRESS_INVALID, invalid)

        row = WorkerGroup(name=name, addr_list=",".join(addresses), description=description)
        if group_id == 0:
            result = await self._store.insert(row)
        else:
            row.id = group_id
            result = await self._store.update(row)

        if result is WriteResult.CONFLICT:
            return Outcome.error(Status.NAME_EXIST, name)
        if result is WriteResult.MISSING:
            logger.warning("Worker group {} does not exist, update of {!r} had no effect", group_id, name)
            return Outcome.success()

        if group_id == 0:
            logger.info("Worker group created: {!r} (id={}, user={})", name, row.id, user.user_name)
        else:
            logger.info("Worker group updated: {!r} (id={}, user={})", name, group_id, user.user_name)
        return Outcome.success()

    async def _can_save(self, user: LoginUser, group_id: int) -> bool:
        """Creating is a type-level operation; editing is decided per group."""
        if group_id == 0:
            return await self._permissions.authorize(
                AuthorizationType.WORKER_GROUP, None, WorkerGroupAction.WORKER_GROUP_CREATE, user
            )
        return await self._permissions.authorize(
            AuthorizationType.WORKER_GROUP, group_id, WorkerGroupAction.WORKER_GROUP_EDIT, user
        )

    async def _first_invalid_address(self, addresses: list[str]) -> str | None:
        if not addresses:
            return None
        live = await self._registry.live_node_addresses(RegistryNodeType.WORKER)
        for address in addresses:
            if address not in live:
                return address
        return None

    # -- Query -----------------------------------------------------------------

    @_reports_internal_errors
    async def query_all_group_paging(
        self,
        user: LoginUser,
        page_no: int,
        page_size: int,
        search_val: str | None = None,
    ) -> Outcome[PageInfo[WorkerGroupResponse]]:
        """One page of the groups *user* may see, default group first.

        Each record carries the subset of its addresses that are live right
        now; the default record lists the whole live worker set.
        """
        if page_no < 1:
            return Outcome.error(Status.REQUEST_PARAMS_NOT_VALID_ERROR, "page_no")
        if page_size < 1:
            return Outcome.error(Status.REQUEST_PARAMS_NOT_VALID_ERROR, "page_size")

        ids = await self._permissions.owned_resource_ids(AuthorizationType.WORKER_GROUP, user)
        groups = await self._store.query_by_ids(ids)
        if search_val:
            needle = search_val.lower()
            groups = [g for g in groups if needle in g.name.lower()]
        groups.sort(key=_recency_key, reverse=True)

        live = await self._registry.live_node_addresses(RegistryNodeType.WORKER)
        records = [WorkerGroupResponse.default(sorted(live))]
        records.extend(_to_response(g, live) for g in groups if not is_default_worker_group(g.name))

        start = (page_no - 1) * page_size
        page = PageInfo[WorkerGroupResponse](
            total_list=records[start : start + page_size],
            total=len(records),
            current_page=page_no,
            page_size=page_size,
        )
        return Outcome.success(page)

    @_reports_internal_errors
    async def query_all_group(self, user: LoginUser) -> Outcome[list[str]]:
        """Every worker group name, unscoped, with the default group first."""
        names = [DEFAULT_WORKER_GROUP]
        names.extend(g.name for g in await self._store.query_all() if not is_default_worker_group(g.name))
        return Outcome.success(names)

    @_reports_internal_errors
    async def get_worker_address_list(self, user: LoginUser) -> Outcome[list[str]]:
        """Sorted live worker addresses, for building an address picker."""
        if not await self._permissions.authorize(
            AuthorizationType.WORKER_GROUP, None, WorkerGroupAction.WORKER_GROUP_CREATE, user
        ):
            return Outcome.error(Status.USER_NO_OPERATION_PERM)
        live = await self._registry.live_node_addresses(RegistryNodeType.WORKER)
        return Outcome.success(sorted(live))

    # -- Delete ----------------------------------------------------------------

    @_reports_internal_errors
    async def delete_worker_group_by_id(self, user: LoginUser, group_id: int) -> Outcome[None]:
        """Delete a worker group unless running work still uses it.

        Non-terminal workflow instances on the group block the delete.
        Environment bindings, task definitions and schedules that reference
        the group are moved to the default group before the row goes away.
        """
        if not await self._permissions.authorize(
            AuthorizationType.WORKER_GROUP, None, WorkerGroupAction.WORKER_GROUP_DELETE, user
        ):
            return Outcome.error(Status.USER_NO_OPERATION_PERM)

        group = await self._store.query_by_id(group_id)
        if group is None:
            return Outcome.error(Status.DELETE_WORKER_GROUP_NOT_EXIST)

        running = await self._references.non_terminal_workflow_instances(group.name)
        if running:
            logger.warning(
                "Worker group {!r} (id={}) is used by {} running workflow instances, not deleted",
                group.name,
                group_id,
                len(running),
            )
            return Outcome.error(Status.DELETE_WORKER_GROUP_BY_ID_FAIL, len(running))

        await self._reset_references(group.name)

        if not await self._store.delete_by_id(group_id):
            return Outcome.error(Status.DELETE_WORKER_GROUP_FAILED, group.name)
        logger.info("Worker group deleted: {!r} (id={}, user={})", group.name, group_id, user.user_name)
        return Outcome.success()

    async def _reset_references(self, group_name: str) -> None:
        """Move every static reference to *group_name* onto the default group."""
        refs = self._references
        environments = tasks = schedules = 0
        if await refs.environment_bindings(group_name):
            environments = await refs.reset_environment_bindings(group_name)
        if await refs.task_definitions(group_name):
            tasks = await refs.reset_task_definitions(group_name)
        if await refs.schedules(group_name):
            schedules = await refs.reset_schedules(group_name)
        if environments or tasks or schedules:
            logger.info(
                "Worker group {!r}: reset {} environment bindings, {} task definitions, {} schedules to {!r}",
                group_name,
                environments,
                tasks,
                schedules,
                DEFAULT_WORKER_GROUP,
            )


def _to_response(group: WorkerGroup, live: set[str]) -> WorkerGroupResponse:
    response = WorkerGroupResponse.model_validate(group)
    response.alive_addresses = [a for a in group.addresses if a in live]
    return response


def _recency_key(group: WorkerGroup) -> tuple[float, int]:
    updated = group.update_time.timestamp() if group.update_time is not None else 0.0
    return updated, group.id or 0
