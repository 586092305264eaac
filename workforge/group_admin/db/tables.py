"""SQLAlchemy ORM models for PostgreSQL.

``WorkerGroup`` is the only table this package owns.  The referencing
tables (workflow instances, task definitions, schedules, environment
bindings) and the user/grant tables belong to the wider scheduling platform;
they are mapped here with just the columns the group-admin core reads or
rewrites.  Alembic reads ``Base.metadata`` to autogenerate migrations.

Uses SQLAlchemy 2.0 declarative style with ``Mapped`` type annotations.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Index, Text, UniqueConstraint, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from workforge.group_admin.models.enums import DEFAULT_WORKER_GROUP, UserType

# Timezone-aware timestamp type for all datetime columns.
TimestampTZ = DateTime(timezone=True)


class Base(DeclarativeBase):
    """Declarative base with naming convention for constraints."""

    pass


# Apply naming convention to the metadata for deterministic constraint names.
Base.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class WorkerGroup(Base):
    __tablename__ = "worker_groups"
    __table_args__ = (UniqueConstraint("name", name="uq_worker_groups_name"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str]
    addr_list: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    """Comma-joined ``host:port`` list, in the order the caller gave it."""
    description: Mapped[str | None] = mapped_column(Text)
    create_time: Mapped[datetime] = mapped_column(TimestampTZ, server_default=func.now())
    update_time: Mapped[datetime] = mapped_column(TimestampTZ, server_default=func.now(), onupdate=func.now())

    @property
    def addresses(self) -> list[str]:
        return [a for a in self.addr_list.split(",") if a] if self.addr_list else []


# ---------------------------------------------------------------------------
# Referencing tables
# ---------------------------------------------------------------------------


class WorkflowInstance(Base):
    __tablename__ = "workflow_instances"
    __table_args__ = (Index("ix_workflow_instances_worker_group_state", "worker_group", "state"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str]
    workflow_definition_code: Mapped[int] = mapped_column(BigInteger)
    state: Mapped[str]
    worker_group: Mapped[str] = mapped_column(server_default=DEFAULT_WORKER_GROUP)
    start_time: Mapped[datetime | None] = mapped_column(TimestampTZ)
    end_time: Mapped[datetime | None] = mapped_column(TimestampTZ)


class TaskDefinition(Base):
    __tablename__ = "task_definitions"
    __table_args__ = (Index("ix_task_definitions_worker_group", "worker_group"),)

    code: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    name: Mapped[str]
    task_type: Mapped[str]
    worker_group: Mapped[str] = mapped_column(server_default=DEFAULT_WORKER_GROUP)
    environment_code: Mapped[int] = mapped_column(BigInteger, server_default="-1")
    update_time: Mapped[datetime] = mapped_column(TimestampTZ, server_default=func.now(), onupdate=func.now())


class Schedule(Base):
    __tablename__ = "schedules"
    __table_args__ = (Index("ix_schedules_worker_group", "worker_group"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    workflow_definition_code: Mapped[int] = mapped_column(BigInteger)
    crontab: Mapped[str]
    worker_group: Mapped[str] = mapped_column(server_default=DEFAULT_WORKER_GROUP)
    environment_code: Mapped[int] = mapped_column(BigInteger, server_default="-1")
    update_time: Mapped[datetime] = mapped_column(TimestampTZ, server_default=func.now(), onupdate=func.now())


class EnvironmentWorkerGroupRelation(Base):
    __tablename__ = "environment_worker_group_relations"
    __table_args__ = (Index("ix_environment_worker_group_relations_worker_group", "worker_group"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    environment_code: Mapped[int] = mapped_column(BigInteger)
    worker_group: Mapped[str]
    update_time: Mapped[datetime] = mapped_column(TimestampTZ, server_default=func.now(), onupdate=func.now())


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_name: Mapped[str] = mapped_column(unique=True)
    user_type: Mapped[str] = mapped_column(server_default=UserType.GENERAL_USER.value)
    create_time: Mapped[datetime] = mapped_column(TimestampTZ, server_default=func.now())


class ResourceGrant(Base):
    __tablename__ = "resource_grants"
    __table_args__ = (
        UniqueConstraint("user_id", "resource_type", "resource_id", name="uq_resource_grants_user_resource"),
        Index("ix_resource_grants_user_id", "user_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int]
    resource_type: Mapped[str]
    resource_id: Mapped[int]
    create_time: Mapped[datetime] = mapped_column(TimestampTZ, server_default=func.now())
