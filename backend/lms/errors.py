"""Domain errors raised by services and rendered as ``{"error": ...}`` by the app."""

from dataclasses import dataclass
from typing import Any, Optional


class LMSError(Exception):
    status_code = 500

    def __init__(self, message: str, **extra: Any):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_body(self) -> dict:
        return {"error": self.message, **self.extra}


class Unauthenticated(LMSError):
    status_code = 401


class Forbidden(LMSError):
    status_code = 403


class NotFound(LMSError):
    status_code = 404


class Conflict(LMSError):
    status_code = 409


class ValidationError(LMSError):
    status_code = 400


class FileTooLarge(ValidationError):
    status_code = 413


class Internal(LMSError):
    status_code = 500

    def __init__(self, message: str = "Internal server error", cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


@dataclass(frozen=True)
class BestEffort:
    """Outcome of a side effect that must never fail the operation it accompanies.

    Audit writes and file removals return one of these instead of raising. The
    failure has already been logged where it happened; the caller acknowledges
    the outcome with ``discard()``.
    """

    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def discard(self) -> None:
        return None
