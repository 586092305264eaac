"""In-memory collaborators for WorkerGroupService unit tests.

No database or Docker required -- every collaborator is a plain Python
object that records what was asked of it.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from workforge.group_admin.db.tables import WorkerGroup
from workforge.group_admin.managers.worker_groups import WorkerGroupService
from workforge.group_admin.models.api import LoginUser
from workforge.group_admin.models.enums import DEFAULT_WORKER_GROUP, UserType, WorkflowExecutionStatus
from workforge.group_admin.registry import StaticRegistryView
from workforge.group_admin.store.base import WriteResult

_EPOCH = datetime(2026, 1, 1, tzinfo=UTC)


class FakePermissionGate:
    """Allows or denies everything, optionally denying specific resource ids."""

    def __init__(self, *, allow: bool = True, owned: Iterable[int] = (), denied_ids: Iterable[int] = ()) -> None:
        self.allow = allow
        self.owned = set(owned)
        self.denied_ids = set(denied_ids)
        self.calls: list[tuple] = []

    async def authorize(self, resource_type, resource_id, action, user) -> bool:
        self.calls.append((resource_type, resource_id, action, user.id))
        if resource_id is not None and resource_id in self.denied_ids:
            return False
        return self.allow

    async def owned_resource_ids(self, resource_type, user) -> set[int]:
        return set(self.owned)


class CountingRegistry(StaticRegistryView):
    """Static registry that counts reads."""

    def __init__(self, workers: Iterable[str] = ()) -> None:
        super().__init__(list(workers))
        self.reads = 0

    async def live_node_addresses(self, node_type=None):
        self.reads += 1
        return await super().live_node_addresses()


class MemoryWorkerGroupStore:
    """Dict-backed store enforcing the unique name rule like the real index."""

    def __init__(self) -> None:
        self.rows: dict[int, WorkerGroup] = {}
        self.writes = 0
        self.delete_confirms = True
        self._next_id = 1
        self._clock = _EPOCH

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def add(self, name: str, addr_list: str = "", description: str | None = None, group_id: int | None = None) -> WorkerGroup:
        """Seed a row directly (test setup, not counted as a write)."""
        group_id = group_id or self._next_id
        self._next_id = max(self._next_id, group_id + 1)
        now = self._tick()
        row = WorkerGroup(
            id=group_id, name=name, addr_list=addr_list, description=description, create_time=now, update_time=now
        )
        self.rows[group_id] = row
        return row

    def _name_taken(self, name: str, exclude_id: int | None = None) -> bool:
        return any(r.name == name and r.id != exclude_id for r in self.rows.values())

    async def insert(self, group: WorkerGroup) -> WriteResult:
        if self._name_taken(group.name):
            return WriteResult.CONFLICT
        self.writes += 1
        row = self.add(group.name, group.addr_list, group.description)
        group.id = row.id
        return WriteResult.WRITTEN

    async def update(self, group: WorkerGroup) -> WriteResult:
        row = self.rows.get(group.id)
        if row is None:
            return WriteResult.MISSING
        if self._name_taken(group.name, exclude_id=group.id):
            return WriteResult.CONFLICT
        self.writes += 1
        row.name = group.name
        row.addr_list = group.addr_list
        row.description = group.description
        row.update_time = self._tick()
        return WriteResult.WRITTEN

    async def delete_by_id(self, group_id: int) -> bool:
        if not self.delete_confirms:
            return False
        self.writes += 1
        return self.rows.pop(group_id, None) is not None

    async def query_by_id(self, group_id: int) -> WorkerGroup | None:
        return self.rows.get(group_id)

    async def query_by_name(self, name: str) -> WorkerGroup | None:
        return next((r for r in self.rows.values() if r.name == name), None)

    async def query_by_ids(self, group_ids: Iterable[int]) -> list[WorkerGroup]:
        return [self.rows[i] for i in sorted(set(group_ids)) if i in self.rows]

    async def query_all(self) -> list[WorkerGroup]:
        return [self.rows[i] for i in sorted(self.rows)]


@dataclass
class MemoryReferenceScanners:
    """Referencing rows as ``id -> worker group name`` maps."""

    instances: dict[int, tuple[str, WorkflowExecutionStatus]] = field(default_factory=dict)
    environments: dict[int, str] = field(default_factory=dict)
    tasks: dict[int, str] = field(default_factory=dict)
    schedule_rows: dict[int, str] = field(default_factory=dict)
    resets: int = 0

    async def non_terminal_workflow_instances(self, group_name: str) -> list[int]:
        return [i for i, (g, s) in self.instances.items() if g == group_name and not s.is_finished]

    async def environment_bindings(self, group_name: str) -> list[int]:
        return [i for i, g in self.environments.items() if g == group_name]

    async def task_definitions(self, group_name: str) -> list[int]:
        return [i for i, g in self.tasks.items() if g == group_name]

    async def schedules(self, group_name: str) -> list[int]:
        return [i for i, g in self.schedule_rows.items() if g == group_name]

    async def reset_environment_bindings(self, group_name: str) -> int:
        return self._reset(self.environments, group_name)

    async def reset_task_definitions(self, group_name: str) -> int:
        return self._reset(self.tasks, group_name)

    async def reset_schedules(self, group_name: str) -> int:
        return self._reset(self.schedule_rows, group_name)

    def _reset(self, rows: dict[int, str], group_name: str) -> int:
        self.resets += 1
        changed = [i for i, g in rows.items() if g == group_name]
        for i in changed:
            rows[i] = DEFAULT_WORKER_GROUP
        return len(changed)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def admin() -> LoginUser:
    return LoginUser(id=1, user_name="admin", user_type=UserType.ADMIN_USER)


@pytest.fixture
def general_user() -> LoginUser:
    return LoginUser(id=2, user_name="workerGroupTestUser", user_type=UserType.GENERAL_USER)


@pytest.fixture
def gate() -> FakePermissionGate:
    return FakePermissionGate()


@pytest.fixture
def registry() -> CountingRegistry:
    return CountingRegistry(["host:1", "host:2", "host:3"])


@pytest.fixture
def store() -> MemoryWorkerGroupStore:
    return MemoryWorkerGroupStore()


@pytest.fixture
def references() -> MemoryReferenceScanners:
    return MemoryReferenceScanners()


@pytest.fixture
def service(
    gate: FakePermissionGate,
    registry: CountingRegistry,
    store: MemoryWorkerGroupStore,
    references: MemoryReferenceScanners,
) -> WorkerGroupService:
    return WorkerGroupService(permissions=gate, registry=registry, store=store, references=references)
