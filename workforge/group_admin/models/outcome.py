"""Discriminated result type returned by every service operation.

Each operation returns exactly one ``Outcome``: a ``Status`` (stable numeric
code, message template, and coarse ``OutcomeKind``) plus an optional payload.
Expected conditions (permission denied, validation, name clash, in-use, ...)
are never raised.  Only callers that prefer exceptions opt into them via
``Outcome.raise_for_status()``.
"""

from __future__ import annotations

from enum import Enum, StrEnum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class OutcomeKind(StrEnum):
    SUCCESS = "success"
    PERMISSION_DENIED = "permission_denied"
    VALIDATION = "validation"
    ADDRESS_INVALID = "address_invalid"
    NAME_EXISTS = "name_exists"
    NOT_FOUND = "not_found"
    IN_USE = "in_use"
    DELETION_FAILED = "deletion_failed"
    INTERNAL = "internal"


class Status(Enum):
    """Stable status codes.  Messages are ``str.format`` templates."""

    SUCCESS = (0, OutcomeKind.SUCCESS, "success")
    INTERNAL_SERVER_ERROR_ARGS = (10000, OutcomeKind.INTERNAL, "Internal Server Error: {0}")
    REQUEST_PARAMS_NOT_VALID_ERROR = (10001, OutcomeKind.VALIDATION, "request parameter {0} is not valid")
    NAME_NULL = (10134, OutcomeKind.VALIDATION, "name must be not null")
    NAME_EXIST = (10135, OutcomeKind.NAME_EXISTS, "name {0} already exists")
    DELETE_WORKER_GROUP_BY_ID_FAIL = (
        10145,
        OutcomeKind.IN_USE,
        "delete worker group by id fail, for there are {0} workflow instances in executing using it",
    )
    DELETE_WORKER_GROUP_FAILED = (10146, OutcomeKind.DELETION_FAILED, "delete worker group {0} failed")
    DELETE_WORKER_GROUP_NOT_EXIST = (10174, OutcomeKind.NOT_FOUND, "delete worker group not exist")
    WORKER_ADDRESS_INVALID = (10177, OutcomeKind.ADDRESS_INVALID, "worker address {0} invalid")
    USER_NO_OPERATION_PERM = (30001, OutcomeKind.PERMISSION_DENIED, "user has no operation privilege")

    def __init__(self, code: int, kind: OutcomeKind, template: str) -> None:
        self.code = code
        self.kind = kind
        self.template = template

    def format(self, *args: object) -> str:
        return self.template.format(*args) if args else self.template


class OutcomeError(Exception):
    """Raised by ``Outcome.raise_for_status`` for any non-success outcome."""

    def __init__(self, outcome: Outcome[Any]) -> None:
        super().__init__(f"[{outcome.code}] {outcome.msg}")
        self.outcome = outcome


class Outcome(BaseModel, Generic[T]):
    """Result of a service call: status plus optional payload."""

    model_config = ConfigDict(frozen=True)

    status: Status
    msg: str
    data: T | None = None

    @classmethod
    def success(cls, data: T | None = None) -> Outcome[T]:
        return cls(status=Status.SUCCESS, msg=Status.SUCCESS.format(), data=data)

    @classmethod
    def error(cls, status: Status, *args: object) -> Outcome[T]:
        return cls(status=status, msg=status.format(*args))

    @property
    def code(self) -> int:
        return self.status.code

    @property
    def kind(self) -> OutcomeKind:
        return self.status.kind

    @property
    def ok(self) -> bool:
        return self.status is Status.SUCCESS

    def raise_for_status(self) -> Outcome[T]:
        if not self.ok:
            raise OutcomeError(self)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Plain ``{code, kind, msg, data}`` dict suitable for JSON output."""
        data = self.data
        if isinstance(data, BaseModel):
            data = data.model_dump(mode="json")
        return {"code": self.code, "kind": str(self.kind), "msg": self.msg, "data": data}
