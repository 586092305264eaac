"""Unit tests for WorkerGroupService.delete_worker_group_by_id."""

from __future__ import annotations

from sqlalchemy.exc import OperationalError

from workforge.group_admin.managers.worker_groups import WorkerGroupService
from workforge.group_admin.models.enums import DEFAULT_WORKER_GROUP, AuthorizationType, WorkerGroupAction
from workforge.group_admin.models.enums import WorkflowExecutionStatus as WES
from workforge.group_admin.models.outcome import OutcomeKind, Status

GROUP_NAME = "testWorkerGroup"


async def test_no_permission_touches_nothing(service: WorkerGroupService, gate, store, references, admin) -> None:
    row = store.add(GROUP_NAME)
    references.schedule_rows[1] = GROUP_NAME
    gate.allow = False

    outcome = await service.delete_worker_group_by_id(admin, row.id)

    assert outcome.status is Status.USER_NO_OPERATION_PERM
    assert row.id in store.rows
    assert references.schedule_rows[1] == GROUP_NAME
    assert references.resets == 0
    assert gate.calls == [(AuthorizationType.WORKER_GROUP, None, WorkerGroupAction.WORKER_GROUP_DELETE, admin.id)]


async def test_missing_group_is_not_found(service: WorkerGroupService, admin) -> None:
    outcome = await service.delete_worker_group_by_id(admin, 1)

    assert outcome.status is Status.DELETE_WORKER_GROUP_NOT_EXIST
    assert outcome.kind is OutcomeKind.NOT_FOUND


async def test_running_instance_blocks_delete(service: WorkerGroupService, store, references, admin) -> None:
    row = store.add(GROUP_NAME, group_id=5)
    references.instances[1] = (GROUP_NAME, WES.RUNNING_EXECUTION)
    references.schedule_rows[7] = GROUP_NAME

    outcome = await service.delete_worker_group_by_id(admin, 5)

    assert outcome.status is Status.DELETE_WORKER_GROUP_BY_ID_FAIL
    assert outcome.kind is OutcomeKind.IN_USE
    assert "1 workflow instances" in outcome.msg
    assert await store.query_by_id(5) is row
    # Nothing reconciled when the delete is refused.
    assert references.schedule_rows[7] == GROUP_NAME


async def test_paused_instance_still_blocks_delete(service: WorkerGroupService, store, references, admin) -> None:
    store.add(GROUP_NAME, group_id=5)
    references.instances[1] = (GROUP_NAME, WES.PAUSE)

    outcome = await service.delete_worker_group_by_id(admin, 5)

    assert outcome.kind is OutcomeKind.IN_USE


async def test_finished_instances_do_not_block(service: WorkerGroupService, store, references, admin) -> None:
    store.add(GROUP_NAME, group_id=5)
    references.instances.update({
        1: (GROUP_NAME, WES.SUCCESS),
        2: (GROUP_NAME, WES.FAILURE),
        3: (GROUP_NAME, WES.STOP),
        4: ("other", WES.RUNNING_EXECUTION),
    })

    outcome = await service.delete_worker_group_by_id(admin, 5)

    assert outcome.ok
    assert 5 not in store.rows


async def test_delete_moves_schedule_to_default(service: WorkerGroupService, store, references, admin) -> None:
    store.add(GROUP_NAME, group_id=5)
    references.schedule_rows[9] = GROUP_NAME

    outcome = await service.delete_worker_group_by_id(admin, 5)

    assert outcome.ok
    assert await store.query_by_id(5) is None
    assert references.schedule_rows[9] == DEFAULT_WORKER_GROUP


async def test_delete_reconciles_every_reference_kind(service: WorkerGroupService, store, references, admin) -> None:
    store.add(GROUP_NAME, group_id=5)
    references.environments.update({1: GROUP_NAME, 2: "other"})
    references.tasks.update({100: GROUP_NAME, 101: GROUP_NAME, 102: "other"})
    references.schedule_rows.update({7: GROUP_NAME})

    outcome = await service.delete_worker_group_by_id(admin, 5)

    assert outcome.ok
    assert references.environments == {1: DEFAULT_WORKER_GROUP, 2: "other"}
    assert references.tasks == {100: DEFAULT_WORKER_GROUP, 101: DEFAULT_WORKER_GROUP, 102: "other"}
    assert references.schedule_rows == {7: DEFAULT_WORKER_GROUP}


async def test_delete_without_references_skips_resets(service: WorkerGroupService, store, references, admin) -> None:
    store.add(GROUP_NAME, group_id=5)

    outcome = await service.delete_worker_group_by_id(admin, 5)

    assert outcome.ok
    assert references.resets == 0


async def test_store_not_confirming_delete_fails(service: WorkerGroupService, store, references, admin) -> None:
    store.add(GROUP_NAME, group_id=5)
    references.tasks[100] = GROUP_NAME
    store.delete_confirms = False

    outcome = await service.delete_worker_group_by_id(admin, 5)

    assert outcome.status is Status.DELETE_WORKER_GROUP_FAILED
    assert outcome.kind is OutcomeKind.DELETION_FAILED
    assert 5 in store.rows
    # Reconciliation already happened and re-running it is harmless.
    assert references.tasks[100] == DEFAULT_WORKER_GROUP

    store.delete_confirms = True
    retry = await service.delete_worker_group_by_id(admin, 5)

    assert retry.ok
    assert references.tasks[100] == DEFAULT_WORKER_GROUP


async def test_store_fault_is_internal(gate, registry, references, admin) -> None:
    class BrokenStore:
        async def query_by_id(self, group_id):
            raise OperationalError("SELECT", {}, Exception("connection refused"))

    service = WorkerGroupService(gate, registry, BrokenStore(), references)

    outcome = await service.delete_worker_group_by_id(admin, 5)

    assert outcome.status is Status.INTERNAL_SERVER_ERROR_ARGS
    assert outcome.kind is OutcomeKind.INTERNAL
