"""Request / response schemas exchanged with callers of the service.

- **LoginUser** is the acting identity every operation is invoked with.
- **Response** schemas serialize ORM rows via ``from_attributes``.
- **PageInfo** wraps one page of a listing.
"""

from __future__ import annotations

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from workforge.group_admin.models.enums import DEFAULT_WORKER_GROUP, UserType

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


class LoginUser(BaseModel):
    """Acting user on whose behalf an operation runs."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    user_name: str
    user_type: UserType = UserType.GENERAL_USER

    @property
    def is_admin(self) -> bool:
        return self.user_type == UserType.ADMIN_USER


# ---------------------------------------------------------------------------
# Worker group
# ---------------------------------------------------------------------------


class WorkerGroupResponse(BaseModel):
    """Serialized worker group, including registry availability."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    name: str
    addr_list: str = ""
    description: str | None = None
    create_time: datetime | None = None
    update_time: datetime | None = None
    alive_addresses: list[str] = Field(default_factory=list)
    """Subset of the group's addresses currently live in the registry."""
    system_default: bool = False

    @classmethod
    def default(cls, live_addresses: list[str]) -> WorkerGroupResponse:
        """Synthesized record for the default group (never persisted)."""
        return cls(
            name=DEFAULT_WORKER_GROUP,
            addr_list=",".join(live_addresses),
            alive_addresses=live_addresses,
            system_default=True,
        )


class PageInfo(BaseModel, Generic[T]):
    """One page of a listing.  ``total`` counts every matching record."""

    total_list: list[T] = Field(default_factory=list)
    total: int = 0
    current_page: int = 1
    page_size: int = 10

    @property
    def total_page(self) -> int:
        if self.page_size <= 0:
            return 0
        return (self.total + self.page_size - 1) // self.page_size
