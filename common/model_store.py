"""Helpers for resolving model file paths."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

DEFAULT_ENV_VAR = "SR_MODEL_STORE"


def resolve_models_root(plugin_settings: Mapping[str, object] | None, *, base_dir: Path) -> Path:
    """Pick the model directory: env var, then plugin setting, then ``model_store``."""

    plugin_settings = plugin_settings or {}
    env_var = plugin_settings.get("models_root_env") or DEFAULT_ENV_VAR
    root = (
        os.getenv(str(env_var))
        or plugin_settings.get("models_root")
        or "model_store"
    )

    root_path = Path(str(root)).expanduser()
    if not root_path.is_absolute():
        root_path = base_dir / root_path
    return root_path


def resolve_model_path(root: Path, model_file: str) -> Path:
    path = Path(model_file).expanduser()
    if path.is_absolute():
        return path
    return root / path


__all__ = ["DEFAULT_ENV_VAR", "resolve_models_root", "resolve_model_path"]
