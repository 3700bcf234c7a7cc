"""Standardized JSON response helpers."""

from __future__ import annotations

from typing import Any, Mapping

from flask import Response, jsonify

from .errors import AppError, ensure_app_error


def ok(data: Any, *, status: int = 200) -> Response:
    """Return a success envelope."""

    response = jsonify({"success": True, "data": data})
    response.status_code = status
    return response


def fail(
    error: AppError | Exception | Mapping[str, Any],
    *,
    status: int | None = None,
    fallback_code: str = "internal_error",
) -> Response:
    """Return a standardized failure envelope.

    Plain exceptions are wrapped as internal errors tagged with ``fallback_code``.
    """

    if isinstance(error, Mapping):
        response = jsonify({"success": False, "error": dict(error)})
        response.status_code = status or 400
        return response

    app_error = ensure_app_error(error, fallback_code=fallback_code)
    response = jsonify({"success": False, "error": app_error.to_dict()})
    response.status_code = status or app_error.status_code
    return response


__all__ = ["ok", "fail"]
