"""PostgreSQL implementations of the persistence interfaces.

Both classes are bound to one ``AsyncSession`` for the duration of a unit of
work.  Every write commits on its own, so a delete's reconciliation steps
are visible individually; see ``store.base`` for the idempotency contract
that makes this safe.

A statement that fails rolls the session back before the error propagates,
so the session stays usable after the service reports an internal error.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from loguru import logger
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from workforge.group_admin.db.tables import (
    EnvironmentWorkerGroupRelation,
    Schedule,
    TaskDefinition,
    WorkerGroup,
    WorkflowInstance,
)
from workforge.group_admin.models.enums import DEFAULT_WORKER_GROUP, WorkflowExecutionStatus, is_default_worker_group
from workforge.group_admin.store.base import WriteResult

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

_NAME_CONSTRAINT = "uq_worker_groups_name"


def _is_name_conflict(exc: IntegrityError) -> bool:
    """True when *exc* is the unique-name violation and not some other constraint."""
    diag = getattr(exc.orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    if constraint is not None:
        return constraint == _NAME_CONSTRAINT
    return _NAME_CONSTRAINT in str(exc.orig)


@asynccontextmanager
async def _rollback_on_error(db: AsyncSession) -> AsyncIterator[None]:
    try:
        yield
    except SQLAlchemyError:
        await db.rollback()
        raise


async def _scalars(db: AsyncSession, stmt: Any) -> list[Any]:
    async with _rollback_on_error(db):
        result = await db.execute(stmt)
    return list(result.scalars().all())


async def _write(db: AsyncSession, stmt: Any) -> int:
    """Execute and commit *stmt*; return the affected row count."""
    async with _rollback_on_error(db):
        result = await db.execute(stmt)
        await db.commit()
    return result.rowcount  # type: ignore[attr-defined]


class SqlWorkerGroupStore:
    """``WorkerGroupStore`` over the ``worker_groups`` table."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def insert(self, group: WorkerGroup) -> WriteResult:
        self._db.add(group)
        try:
            async with _rollback_on_error(self._db):
                await self._db.commit()
        except IntegrityError as exc:
            if _is_name_conflict(exc):
                logger.debug("Store: insert of worker group {!r} hit the unique name index", group.name)
                return WriteResult.CONFLICT
            raise
        async with _rollback_on_error(self._db):
            await self._db.refresh(group)
        return WriteResult.WRITTEN

    async def update(self, group: WorkerGroup) -> WriteResult:
        stmt = (
            update(WorkerGroup)
            .where(WorkerGroup.id == group.id)
            .values(name=group.name, addr_list=group.addr_list, description=group.description)
        )
        try:
            rowcount = await _write(self._db, stmt)
        except IntegrityError as exc:
            if _is_name_conflict(exc):
                logger.debug("Store: rename of worker group {} to {!r} hit the unique name index", group.id, group.name)
                return WriteResult.CONFLICT
            raise
        if rowcount == 0:
            return WriteResult.MISSING
        return WriteResult.WRITTEN

    async def delete_by_id(self, group_id: int) -> bool:
        return await _write(self._db, delete(WorkerGroup).where(WorkerGroup.id == group_id)) > 0

    async def query_by_id(self, group_id: int) -> WorkerGroup | None:
        async with _rollback_on_error(self._db):
            return await self._db.get(WorkerGroup, group_id, populate_existing=True)

    async def query_by_name(self, name: str) -> WorkerGroup | None:
        rows = await _scalars(self._db, select(WorkerGroup).where(WorkerGroup.name == name))
        return rows[0] if rows else None

    async def query_by_ids(self, group_ids: Iterable[int]) -> list[WorkerGroup]:
        ids = list(group_ids)
        if not ids:
            return []
        return await _scalars(self._db, select(WorkerGroup).where(WorkerGroup.id.in_(ids)).order_by(WorkerGroup.id))

    async def query_all(self) -> list[WorkerGroup]:
        return await _scalars(self._db, select(WorkerGroup).order_by(WorkerGroup.id))


class SqlReferenceScanners:
    """``ReferenceScanners`` over the platform's referencing tables."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def non_terminal_workflow_instances(self, group_name: str) -> list[int]:
        stmt = select(WorkflowInstance.id).where(
            WorkflowInstance.worker_group == group_name,
            WorkflowInstance.state.in_([s.value for s in WorkflowExecutionStatus.not_terminal()]),
        )
        return await _scalars(self._db, stmt)

    async def environment_bindings(self, group_name: str) -> list[int]:
        relation = EnvironmentWorkerGroupRelation
        stmt = select(relation.id).where(relation.worker_group == group_name)
        return await _scalars(self._db, stmt)

    async def task_definitions(self, group_name: str) -> list[int]:
        return await _scalars(self._db, select(TaskDefinition.code).where(TaskDefinition.worker_group == group_name))

    async def schedules(self, group_name: str) -> list[int]:
        return await _scalars(self._db, select(Schedule.id).where(Schedule.worker_group == group_name))

    async def reset_environment_bindings(self, group_name: str) -> int:
        return await self._reset(EnvironmentWorkerGroupRelation, group_name)

    async def reset_task_definitions(self, group_name: str) -> int:
        return await self._reset(TaskDefinition, group_name)

    async def reset_schedules(self, group_name: str) -> int:
        return await self._reset(Schedule, group_name)

    async def _reset(
        self, table: type[EnvironmentWorkerGroupRelation | TaskDefinition | Schedule], group_name: str
    ) -> int:
        if is_default_worker_group(group_name):
            return 0
        stmt = update(table).where(table.worker_group == group_name).values(worker_group=DEFAULT_WORKER_GROUP)
        return await _write(self._db, stmt)
