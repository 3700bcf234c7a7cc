"""Configuration classes for the Flask application."""

from __future__ import annotations

import os
import secrets
from pathlib import Path


def _load_secret() -> str:
    """Return the Flask secret key for the current process."""

    secret = os.environ.get("SR_SERVER_SECRET")
    if secret:
        return secret
    # Generate an unpredictable per-process key for local development.
    return secrets.token_urlsafe(64)


def _tmpfs_root() -> Path:
    return Path(os.environ.get("SR_TMPFS_ROOT", "/dev/shm/sr_server")).expanduser()


class BaseConfig:
    SECRET_KEY = _load_secret()
    MAX_CONTENT_LENGTH = 25 * 1024 * 1024  # 25 MiB
    SESSION_COOKIE_SECURE = False
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Strict"
    UPLOAD_TMPFS_ROOT = _tmpfs_root()
    RESPONSE_HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
        "Referrer-Policy": "no-referrer",
    }


class TestingConfig(BaseConfig):
    TESTING = True


__all__ = ["BaseConfig", "TestingConfig"]
