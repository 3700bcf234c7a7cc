"""Plugin discovery and blueprint registration."""

from __future__ import annotations

import importlib
import pkgutil
from pathlib import Path
from typing import Iterable

from flask import Blueprint, Flask

PLUGIN_PACKAGE = "plugins"


def discover_plugins(package: str = PLUGIN_PACKAGE) -> Iterable[str]:
    """Yield import paths for all plugin packages."""

    package_path = Path(__file__).resolve().parent.parent / package
    if not package_path.exists():
        return
    for module_info in pkgutil.iter_modules([str(package_path)]):
        if module_info.ispkg:
            yield f"{package}.{module_info.name}"


def load_manifests(package: str = PLUGIN_PACKAGE) -> list[dict[str, str]]:
    manifests: list[dict[str, str]] = []
    for dotted in discover_plugins(package):
        module = importlib.import_module(dotted)
        manifest = getattr(module, "manifest", None)
        if manifest:
            manifests.append(dict(manifest))
    manifests.sort(key=lambda item: item["title"].lower())
    return manifests


def iter_blueprints(package: str = PLUGIN_PACKAGE) -> list[Blueprint]:
    blueprints: list[Blueprint] = []
    for dotted in discover_plugins(package):
        module = importlib.import_module(f"{dotted}.api")
        module_blueprints = getattr(module, "blueprints", None)
        if module_blueprints:
            blueprints.extend(module_blueprints)
            continue
        blueprint = getattr(module, "bp", None)
        if blueprint is not None:
            blueprints.append(blueprint)
    return blueprints


def register_plugin_blueprints(app: Flask) -> None:
    for bp in iter_blueprints():
        app.register_blueprint(bp)


__all__ = [
    "discover_plugins",
    "iter_blueprints",
    "load_manifests",
    "register_plugin_blueprints",
]
