"""Shared imaging helpers."""

from __future__ import annotations

from io import BytesIO

from PIL import Image


def image_to_bytes(image: Image.Image, format: str = "PNG", **options) -> bytes:
    buf = BytesIO()
    if format.upper() == "JPEG":
        options.setdefault("quality", 95)
    image.save(buf, format=format, **options)
    return buf.getvalue()


__all__ = ["image_to_bytes"]
