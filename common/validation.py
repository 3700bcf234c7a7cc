"""Validation primitives for plugin APIs."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, TypeVar

import pydantic
from pydantic import BaseModel
from werkzeug.datastructures import FileStorage


class ValidationError(ValueError):
    """Raised when validation fails."""

    def __init__(self, message: str, *, details: Any | None = None):
        super().__init__(message)
        self.details = details


class SchemaModel(BaseModel):
    """Strict base model for request/response validation."""

    model_config = pydantic.ConfigDict(extra="forbid", str_strip_whitespace=True)


TModel = TypeVar("TModel", bound=SchemaModel)


def parse_model(model: type[TModel], payload: Mapping[str, Any] | None) -> TModel:
    payload = payload or {}
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise ValidationError(
            "Invalid request payload",
            details=exc.errors(include_url=False, include_context=False),
        ) from exc


_SIGNATURES: dict[str, tuple[bytes, ...]] = {
    "image/png": (b"\x89PNG\r\n\x1a\n",),
    "image/jpeg": (b"\xff\xd8\xff",),
}


def _looks_like_webp(sample: bytes) -> bool:
    return sample.startswith(b"RIFF") and sample[8:12] == b"WEBP"


def _matches_signature(sample: bytes, allowed: set[str]) -> bool:
    for mime in allowed:
        signatures = _SIGNATURES.get(mime)
        if signatures:
            if any(sample.startswith(signature) for signature in signatures):
                return True
        elif mime == "image/webp" and _looks_like_webp(sample):
            return True
    return False


def validate_mime(files: Iterable[FileStorage], allowed: set[str]) -> None:
    for file in files:
        stream = file.stream
        try:
            current = stream.tell()
        except (AttributeError, OSError):
            current = None

        try:
            stream.seek(0)
        except (AttributeError, OSError):
            pass

        sample = stream.read(1024)
        if isinstance(sample, str):  # pragma: no cover - text streams
            sample = sample.encode("utf-8", "ignore")

        if current is not None:
            stream.seek(current)
        else:
            try:
                stream.seek(0)
            except (AttributeError, OSError):
                pass

        if not _matches_signature(sample or b"", allowed):
            raise ValidationError("Unsupported or invalid file signature")


__all__ = [
    "ValidationError",
    "SchemaModel",
    "parse_model",
    "validate_mime",
]
