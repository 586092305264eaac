"""initial worker group schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "worker_groups",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("addr_list", sa.Text(), server_default="", nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("create_time", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("update_time", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_worker_groups")),
        sa.UniqueConstraint("name", name="uq_worker_groups_name"),
    )
    op.create_table(
        "workflow_instances",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("workflow_definition_code", sa.BigInteger(), nullable=False),
        sa.Column("state", sa.String(), nullable=False),
        sa.Column("worker_group", sa.String(), server_default="default", nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_workflow_instances")),
    )
    op.create_index(
        "ix_workflow_instances_worker_group_state", "workflow_instances", ["worker_group", "state"], unique=False
    )
    op.create_table(
        "task_definitions",
        sa.Column("code", sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("task_type", sa.String(), nullable=False),
        sa.Column("worker_group", sa.String(), server_default="default", nullable=False),
        sa.Column("environment_code", sa.BigInteger(), server_default="-1", nullable=False),
        sa.Column("update_time", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("code", name=op.f("pk_task_definitions")),
    )
    op.create_index("ix_task_definitions_worker_group", "task_definitions", ["worker_group"], unique=False)
    op.create_table(
        "schedules",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("workflow_definition_code", sa.BigInteger(), nullable=False),
        sa.Column("crontab", sa.String(), nullable=False),
        sa.Column("worker_group", sa.String(), server_default="default", nullable=False),
        sa.Column("environment_code", sa.BigInteger(), server_default="-1", nullable=False),
        sa.Column("update_time", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_schedules")),
    )
    op.create_index("ix_schedules_worker_group", "schedules", ["worker_group"], unique=False)
    op.create_table(
        "environment_worker_group_relations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("environment_code", sa.BigInteger(), nullable=False),
        sa.Column("worker_group", sa.String(), nullable=False),
        sa.Column("update_time", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_environment_worker_group_relations")),
    )
    op.create_index(
        "ix_environment_worker_group_relations_worker_group",
        "environment_worker_group_relations",
        ["worker_group"],
        unique=False,
    )
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_name", sa.String(), nullable=False),
        sa.Column("user_type", sa.String(), server_default="general_user", nullable=False),
        sa.Column("create_time", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_users")),
        sa.UniqueConstraint("user_name", name=op.f("uq_users_user_name")),
    )
    op.create_table(
        "resource_grants",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("resource_type", sa.String(), nullable=False),
        sa.Column("resource_id", sa.Integer(), nullable=False),
        sa.Column("create_time", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_resource_grants")),
        sa.UniqueConstraint("user_id", "resource_type", "resource_id", name="uq_resource_grants_user_resource"),
    )
    op.create_index("ix_resource_grants_user_id", "resource_grants", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_resource_grants_user_id", table_name="resource_grants")
    op.drop_table("resource_grants")
    op.drop_table("users")
    op.drop_index(
        "ix_environment_worker_group_relations_worker_group", table_name="environment_worker_group_relations"
    )
    op.drop_table("environment_worker_group_relations")
    op.drop_index("ix_schedules_worker_group", table_name="schedules")
    op.drop_table("schedules")
    op.drop_index("ix_task_definitions_worker_group", table_name="task_definitions")
    op.drop_table("task_definitions")
    op.drop_index("ix_workflow_instances_worker_group_state", table_name="workflow_instances")
    op.drop_table("workflow_instances")
    op.drop_table("worker_groups")
