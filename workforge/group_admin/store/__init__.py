"""Persistence interfaces and their PostgreSQL implementations."""

from workforge.group_admin.store.base import ReferenceScanners, WorkerGroupStore, WriteResult
from workforge.group_admin.store.sql import SqlReferenceScanners, SqlWorkerGroupStore

__all__ = [
    "ReferenceScanners",
    "SqlReferenceScanners",
    "SqlWorkerGroupStore",
    "WorkerGroupStore",
    "WriteResult",
]
