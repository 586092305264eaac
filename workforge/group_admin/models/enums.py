"""Shared enumerations and constants used across the group-admin core."""

from __future__ import annotations

from enum import StrEnum

# -- Worker group ------------------------------------------------------------

DEFAULT_WORKER_GROUP = "default"
"""Reserved name of the default group.

Never stored as a ``worker_groups`` row.  Entities that reference "no
specific group" carry this name, and it is the rewrite target when a
group is deleted.
"""


def is_default_worker_group(name: str | None) -> bool:
    """True for the reserved default name and for empty/absent names."""
    return not name or not name.strip() or name.strip() == DEFAULT_WORKER_GROUP


# -- Registry ----------------------------------------------------------------


class RegistryNodeType(StrEnum):
    MASTER = "master"
    WORKER = "worker"


# -- Authorization -----------------------------------------------------------


class AuthorizationType(StrEnum):
    WORKER_GROUP = "worker_group"


class UserType(StrEnum):
    ADMIN_USER = "admin_user"
    GENERAL_USER = "general_user"


class WorkerGroupAction(StrEnum):
    """Operation identifiers checked by the permission gate."""

    WORKER_GROUP_CREATE = "monitor:worker:create"
    WORKER_GROUP_EDIT = "monitor:worker:edit"
    WORKER_GROUP_DELETE = "monitor:worker:delete"


# -- Workflow instance -------------------------------------------------------


class WorkflowExecutionStatus(StrEnum):
    """Execution state of a workflow instance, as stored on the instance row."""

    SUBMITTED_SUCCESS = "submitted_success"
    RUNNING_EXECUTION = "running_execution"
    READY_PAUSE = "ready_pause"
    PAUSE = "pause"
    READY_STOP = "ready_stop"
    STOP = "stop"
    FAILURE = "failure"
    SUCCESS = "success"
    DELAY_EXECUTION = "delay_execution"
    SERIAL_WAIT = "serial_wait"
    READY_BLOCK = "ready_block"
    BLOCK = "block"
    WAIT_TO_RUN = "wait_to_run"

    @property
    def is_finished(self) -> bool:
        return self in _TERMINAL_STATUSES

    @classmethod
    def not_terminal(cls) -> list[WorkflowExecutionStatus]:
        """Every status in which a run has not reached a final state."""
        return [s for s in cls if s not in _TERMINAL_STATUSES]


_TERMINAL_STATUSES = frozenset({
    WorkflowExecutionStatus.STOP,
    WorkflowExecutionStatus.FAILURE,
    WorkflowExecutionStatus.SUCCESS,
})
