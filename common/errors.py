"""Common error types and helpers for API responses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, MutableMapping


@dataclass(slots=True)
class AppError(Exception):
    """Base application error with a JSON friendly payload."""

    message: str
    code: str = "error"
    status_code: int = 400
    details: Mapping[str, Any] | None = None

    def to_dict(self) -> Mapping[str, Any]:
        payload: MutableMapping[str, Any] = {
            "code": self.code,
            "message": self.message,
            "details": dict(self.details or {}),
        }
        return payload


@dataclass(slots=True)
class ValidationAppError(AppError):
    """Error raised for invalid user input."""

    code: str = "validation_error"
    status_code: int = 400


@dataclass(slots=True)
class NotFoundAppError(AppError):
    """Error raised when a resource is missing."""

    code: str = "not_found"
    status_code: int = 404


@dataclass(slots=True)
class ConflictAppError(AppError):
    """Error raised when a request collides with work already in progress."""

    code: str = "conflict"
    status_code: int = 409


@dataclass(slots=True)
class PayloadTooLargeAppError(AppError):
    code: str = "payload_too_large"
    status_code: int = 413


@dataclass(slots=True)
class InternalAppError(AppError):
    """Generic internal error wrapper to avoid leaking implementation details."""

    code: str = "internal_error"
    status_code: int = 500


@dataclass(slots=True)
class UnavailableAppError(AppError):
    """Error raised when a backing capability (model, engine) is not usable."""

    code: str = "unavailable"
    status_code: int = 503


@dataclass(slots=True)
class TimeoutAppError(AppError):
    code: str = "timeout"
    status_code: int = 504


def ensure_app_error(error: AppError | Exception, *, fallback_code: str) -> AppError:
    """Coerce arbitrary exceptions into :class:`AppError` instances."""

    if isinstance(error, AppError):
        return error
    return InternalAppError(code=fallback_code, message=str(error))


__all__ = [
    "AppError",
    "ValidationAppError",
    "NotFoundAppError",
    "ConflictAppError",
    "PayloadTooLargeAppError",
    "InternalAppError",
    "UnavailableAppError",
    "TimeoutAppError",
    "ensure_app_error",
]
