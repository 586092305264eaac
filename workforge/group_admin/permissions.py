"""Permission checks for worker group administration.

Rules of the PostgreSQL-backed gate:

- Admin users may perform every operation and see every resource.
- General users may not perform type-level operations (create, delete,
  listing worker addresses).  They see, and may edit, only the resource
  ids granted to them in ``resource_grants``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from loguru import logger
from sqlalchemy import select

from workforge.group_admin.db.tables import ResourceGrant, WorkerGroup
from workforge.group_admin.models.enums import AuthorizationType

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from workforge.group_admin.models.api import LoginUser

_RESOURCE_TABLES = {
    AuthorizationType.WORKER_GROUP: WorkerGroup,
}


@runtime_checkable
class PermissionGate(Protocol):
    async def authorize(
        self,
        resource_type: AuthorizationType,
        resource_id: int | None,
        action: str,
        user: LoginUser,
    ) -> bool:
        """Check *action* for *user*.

        With ``resource_id=None`` this is an operation check on the whole
        resource type; otherwise it checks access to that one resource.
        """
        ...

    async def owned_resource_ids(self, resource_type: AuthorizationType, user: LoginUser) -> set[int]:
        """Ids of *resource_type* rows *user* may see."""
        ...


class SqlPermissionGate:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def authorize(
        self,
        resource_type: AuthorizationType,
        resource_id: int | None,
        action: str,
        user: LoginUser,
    ) -> bool:
        if user.is_admin:
            return True
        if resource_id is None:
            logger.warning("User {} is not allowed to perform {} on {}", user.user_name, action, resource_type)
            return False
        owned = await self.owned_resource_ids(resource_type, user)
        if resource_id not in owned:
            logger.warning(
                "User {} has no permission on {} {} for {}", user.user_name, resource_type, resource_id, action
            )
            return False
        return True

    async def owned_resource_ids(self, resource_type: AuthorizationType, user: LoginUser) -> set[int]:
        if user.is_admin:
            table = _RESOURCE_TABLES[resource_type]
            result = await self._db.execute(select(table.id))
        else:
            result = await self._db.execute(
                select(ResourceGrant.resource_id).where(
                    ResourceGrant.user_id == user.id,
                    ResourceGrant.resource_type == resource_type.value,
                )
            )
        return set(result.scalars().all())
