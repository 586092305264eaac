"""Persistence interfaces consumed by the worker group service.

``WorkerGroupStore`` owns the durable lifecycle of ``worker_groups`` rows.
Writes report their result as a ``WriteResult`` instead of raising, so a
unique-name violation reaches the service as data.

``ReferenceScanners`` answers "who references group name G?" for the four
entity kinds that carry a worker group name, and rewrites those references
to the default group.  Every reset is idempotent: re-running it against rows
already pointing at the default group changes nothing.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum
from typing import Protocol, runtime_checkable

from workforge.group_admin.db.tables import WorkerGroup


class WriteResult(StrEnum):
    WRITTEN = "written"
    CONFLICT = "conflict"
    """The write would violate the unique name constraint."""
    MISSING = "missing"
    """Update target does not exist; nothing was written."""


@runtime_checkable
class WorkerGroupStore(Protocol):
    async def insert(self, group: WorkerGroup) -> WriteResult:
        """Insert a new row; ``group.id`` is populated on success."""
        ...

    async def update(self, group: WorkerGroup) -> WriteResult:
        """Update the row with ``group.id`` (name, addresses, description)."""
        ...

    async def delete_by_id(self, group_id: int) -> bool:
        """Delete a row.  ``True`` only if a row was actually removed."""
        ...

    async def query_by_id(self, group_id: int) -> WorkerGroup | None: ...

    async def query_by_name(self, name: str) -> WorkerGroup | None: ...

    async def query_by_ids(self, group_ids: Iterable[int]) -> list[WorkerGroup]: ...

    async def query_all(self) -> list[WorkerGroup]:
        """Every row, ordered by id."""
        ...


@runtime_checkable
class ReferenceScanners(Protocol):
    async def non_terminal_workflow_instances(self, group_name: str) -> list[int]:
        """Ids of workflow instances still executing under *group_name*."""
        ...

    async def environment_bindings(self, group_name: str) -> list[int]: ...

    async def task_definitions(self, group_name: str) -> list[int]: ...

    async def schedules(self, group_name: str) -> list[int]: ...

    async def reset_environment_bindings(self, group_name: str) -> int:
        """Point bindings on *group_name* at the default group.  Returns rows changed."""
        ...

    async def reset_task_definitions(self, group_name: str) -> int: ...

    async def reset_schedules(self, group_name: str) -> int: ...
