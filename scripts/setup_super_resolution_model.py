#!/usr/bin/env python3
"""Fetch or copy the ONNX super-resolution model into the model store."""

from __future__ import annotations

import argparse
import shutil
import sys
import urllib.request
from pathlib import Path
from typing import Mapping

import yaml

from plugins.super_resolution.core.settings import load_settings

DEFAULT_URL = (
    "https://github.com/onnx/models/raw/main/validated/vision/super_resolution/"
    "sub_pixel_cnn_2016/model/super-resolution-10.onnx"
)


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


def _load_config(path: Path) -> Mapping[str, object]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def _plugin_settings(config: Mapping[str, object]) -> Mapping[str, object]:
    plugins = config.get("plugins", {}) if isinstance(config, Mapping) else {}
    section = plugins.get("super_resolution", {}) if isinstance(plugins, Mapping) else {}
    return section if isinstance(section, Mapping) else {}


def _prepare_target(target: Path, *, force: bool) -> None:
    if target.exists() and not force:
        raise FileExistsError(f"{target} already exists (use --force to overwrite)")
    target.parent.mkdir(parents=True, exist_ok=True)


def _download(url: str, target: Path) -> None:
    tmp_path = target.with_suffix(target.suffix + ".download")
    try:
        urllib.request.urlretrieve(url, tmp_path)
        tmp_path.replace(target)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--config",
        type=Path,
        default=_repo_root() / "config.yml",
        help="Path to config.yml",
    )
    parser.add_argument("--source", type=Path, help="Local .onnx file to copy.")
    parser.add_argument(
        "--download",
        action="store_true",
        help="Download the sub-pixel CNN model from the ONNX model zoo.",
    )
    parser.add_argument("--url", default=DEFAULT_URL, help="Override download URL.")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing model file.",
    )
    args = parser.parse_args()

    settings = load_settings(_plugin_settings(_load_config(args.config)), root=_repo_root())
    target = settings.model_path

    if not args.source and not args.download:
        raise SystemExit("Provide --source or --download to populate the model.")

    try:
        _prepare_target(target, force=args.force)
    except FileExistsError as exc:
        raise SystemExit(str(exc)) from exc

    if args.source:
        if not args.source.is_file():
            raise SystemExit(f"Source file not found: {args.source}")
        shutil.copy2(args.source, target)
        print(f"Copied {args.source} -> {target}")
    else:
        _download(args.url, target)
        print(f"Downloaded {args.url} -> {target}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
