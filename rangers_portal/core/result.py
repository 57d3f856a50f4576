"""Tagged results returned across the Data Service boundary.

Every Data Service call and every state-machine transition hands back a
:class:`Result` instead of raising: ``Result.ok(data)`` on success or
``Result.fail(kind, message)`` with an :class:`ErrorKind` on failure.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    SERVICE = "service"
    CONSTRAINT = "constraint"
    NOT_FOUND = "not_found"
    PERMISSION = "permission"


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str
    field_errors: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Result(Generic[T]):
    success: bool
    data: T | None = None
    error: Failure | None = None

    @classmethod
    def ok(cls, data: Any = None) -> "Result":
        return cls(success=True, data=data)

    @classmethod
    def fail(
        cls,
        kind: ErrorKind,
        message: str,
        field_errors: dict[str, str] | None = None,
    ) -> "Result":
        return cls(success=False, error=Failure(kind, message, dict(field_errors or {})))

    @classmethod
    def invalid(cls, field_errors: dict[str, str], message: str | None = None) -> "Result":
        if message is None:
            message = next(iter(field_errors.values()), "Validation failed")
        return cls.fail(ErrorKind.VALIDATION, message, field_errors)

    @property
    def kind(self) -> ErrorKind | None:
        return self.error.kind if self.error else None

    @property
    def message(self) -> str | None:
        return self.error.message if self.error else None
