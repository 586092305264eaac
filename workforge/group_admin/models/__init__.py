"""Data models for the group-admin core."""

from workforge.group_admin.models.api import LoginUser, PageInfo, WorkerGroupResponse
from workforge.group_admin.models.enums import (
    DEFAULT_WORKER_GROUP,
    AuthorizationType,
    RegistryNodeType,
    UserType,
    WorkerGroupAction,
    WorkflowExecutionStatus,
    is_default_worker_group,
)
from workforge.group_admin.models.outcome import Outcome, OutcomeError, OutcomeKind, Status

__all__ = [
    # Enums
    "DEFAULT_WORKER_GROUP",
    "AuthorizationType",
    # API schemas
    "LoginUser",
    # Outcome
    "Outcome",
    "OutcomeError",
    "OutcomeKind",
    "PageInfo",
    "RegistryNodeType",
    "Status",
    "UserType",
    "WorkerGroupAction",
    "WorkerGroupResponse",
    "WorkflowExecutionStatus",
    "is_default_worker_group",
]
