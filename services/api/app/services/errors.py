"""Engine error taxonomy.

Every failure the engine reports is one of these kinds. The request layer maps
kinds to protocol status codes; the engine itself never does.
"""

from enum import Enum
from typing import Any

from app.schemas.common import ErrorDetail


class ErrorKind(str, Enum):
    """Failure kinds surfaced to callers."""

    NOT_FOUND = "NOT_FOUND"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    FORBIDDEN = "FORBIDDEN"
    CONFLICT = "CONFLICT"
    UNAVAILABLE = "UNAVAILABLE"


class EngineError(RuntimeError):
    """Base class for all engine failures."""

    kind: ErrorKind

    def __init__(self, message: str, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_error_detail(self) -> ErrorDetail:
        return ErrorDetail(kind=self.kind.value, message=self.message, detail=self.detail)


class NotFoundError(EngineError):
    kind = ErrorKind.NOT_FOUND


class InvalidArgumentError(EngineError):
    kind = ErrorKind.INVALID_ARGUMENT


class ForbiddenError(EngineError):
    kind = ErrorKind.FORBIDDEN


class ConflictError(EngineError):
    kind = ErrorKind.CONFLICT


class UnavailableError(EngineError):
    kind = ErrorKind.UNAVAILABLE


# Integer primary keys are int4 in storage.
MAX_ID = 2**31 - 1


def require_positive_id(value: object, name: str) -> int:
    """Reject identifiers that cannot name a row."""
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= MAX_ID:
        raise InvalidArgumentError(f"Malformed {name}: {value!r}", {"field": name})
    return value
