from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

from pydantic import Field

from roze_bridge.core.schema import BaseSchema

# Status reported when no HTTP exchange completed (DNS failure, timeout, refused connection).
NO_RESPONSE_STATUS = 0


class ErrorClass(str, Enum):
    """Backend error classification shared by every gateway strategy."""

    UNAUTHENTICATED = "unauthenticated"
    PERMISSION_DENIED = "permission-denied"
    INVALID_ARGUMENT = "invalid-argument"
    NOT_FOUND = "not-found"
    UNAVAILABLE = "unavailable"
    DEADLINE_EXCEEDED = "deadline-exceeded"
    INTERNAL = "internal"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, code: Optional[str]) -> "ErrorClass":
        """Accept both ``invalid-argument`` and ``INVALID_ARGUMENT`` spellings."""
        if not code:
            return cls.UNKNOWN
        normalized = str(code).strip().lower().replace("_", "-")
        if normalized.startswith("functions/"):
            normalized = normalized.split("/", 1)[1]
        try:
            return cls(normalized)
        except ValueError:
            return cls.UNKNOWN


STATUS_BY_ERROR_CLASS: Mapping[ErrorClass, int] = MappingProxyType(
    {
        ErrorClass.UNAUTHENTICATED: 401,
        ErrorClass.PERMISSION_DENIED: 403,
        ErrorClass.INVALID_ARGUMENT: 400,
    }
)
DEFAULT_ERROR_STATUS = 500


def status_for(error_class: ErrorClass) -> int:
    return STATUS_BY_ERROR_CLASS.get(error_class, DEFAULT_ERROR_STATUS)


def error_class_for_status(status: int) -> ErrorClass:
    """Classify a bare HTTP status when the backend sent no error code."""
    for error_class, mapped in STATUS_BY_ERROR_CLASS.items():
        if mapped == status:
            return error_class
    if status == 404:
        return ErrorClass.NOT_FOUND
    if status == 503:
        return ErrorClass.UNAVAILABLE
    if status == 504:
        return ErrorClass.DEADLINE_EXCEEDED
    return ErrorClass.INTERNAL


class GatewayResult(BaseSchema):
    """Normalized outcome of one backend call, whatever transport served it."""

    ok: bool = Field(..., description="Whether the backend call succeeded.")
    status: int = Field(..., description="HTTP-style status classification; 0 when no response was received.")
    body: Optional[Any] = Field(None, description="Opaque response payload.")
    error: Optional[str] = Field(None, description="Sanitized human-readable error, when the call failed.")

    @classmethod
    def failure(cls, status: int, error: str, body: Optional[Any] = None) -> "GatewayResult":
        return cls(ok=False, status=status, body=body, error=error)
