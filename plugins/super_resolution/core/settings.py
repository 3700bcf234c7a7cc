"""Configuration helpers for super-resolution."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from common.model_store import resolve_model_path, resolve_models_root

from .colorspace import DEFAULT_RESAMPLE, RESAMPLE_METHODS

DEFAULT_MODEL_FILE = "super-resolution-10.onnx"


@dataclass(frozen=True)
class SuperResolutionSettings:
    enabled: bool
    model_path: Path
    provider: str
    base_dim: int
    scale: int
    chroma_resample: str
    max_upload_mb: int
    inference_timeout_s: float

    @property
    def scaled_dim(self) -> int:
        return self.base_dim * self.scale


def _positive_int(value: object, default: int) -> int:
    try:
        parsed = int(float(value))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def load_settings(raw: Mapping[str, object] | None, *, root: Path) -> SuperResolutionSettings:
    raw = raw or {}
    enabled = bool(raw.get("enabled", True))
    provider = str(raw.get("provider", "auto") or "auto").lower()

    max_upload_mb = raw.get("max_upload_mb")
    if max_upload_mb is None:
        upload = raw.get("upload")
        if isinstance(upload, Mapping):
            max_upload_mb = upload.get("max_mb", 20)
        else:
            max_upload_mb = 20
    max_upload_mb = _positive_int(max_upload_mb, 20)

    base_dim = _positive_int(raw.get("base_dim", 224), 224)
    scale = _positive_int(raw.get("scale", 3), 3)

    chroma_resample = str(raw.get("chroma_resample", DEFAULT_RESAMPLE)).lower()
    if chroma_resample not in RESAMPLE_METHODS:
        chroma_resample = DEFAULT_RESAMPLE

    try:
        inference_timeout_s = float(raw.get("inference_timeout_s", 60))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        inference_timeout_s = 60.0
    if inference_timeout_s <= 0:
        inference_timeout_s = 60.0

    models_root = resolve_models_root(raw, base_dir=root)
    model_path = resolve_model_path(
        models_root, str(raw.get("model_file") or DEFAULT_MODEL_FILE)
    ).resolve()

    return SuperResolutionSettings(
        enabled=enabled,
        model_path=model_path,
        provider=provider,
        base_dim=base_dim,
        scale=scale,
        chroma_resample=chroma_resample,
        max_upload_mb=max_upload_mb,
        inference_timeout_s=inference_timeout_s,
    )


__all__ = ["DEFAULT_MODEL_FILE", "SuperResolutionSettings", "load_settings"]
