"""Pillow-backed pixel extraction, resizing and display materialisation."""

from __future__ import annotations

import uuid
from pathlib import Path

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .colorspace import PixelBuffer
from .errors import SuperResolutionInputError

FILE_SCHEME = "file://"


def _path_from_uri(uri: str) -> Path:
    if uri.startswith(FILE_SCHEME):
        uri = uri[len(FILE_SCHEME):]
    return Path(uri)


def _open_image(uri: str) -> Image.Image:
    path = _path_from_uri(uri)
    try:
        with Image.open(path) as image:
            image.load()
            return ImageOps.exif_transpose(image)
    except FileNotFoundError as exc:
        raise SuperResolutionInputError(f"Image not found: {path}") from exc
    except UnidentifiedImageError as exc:
        raise SuperResolutionInputError(
            "Unsupported or corrupted image stream"
        ) from exc
    except Image.DecompressionBombError as exc:
        raise SuperResolutionInputError(f"Image is too large to decode: {exc}") from exc
    except OSError as exc:
        raise SuperResolutionInputError(f"Image could not be decoded: {exc}") from exc


def _prepare_rgb(image: Image.Image) -> Image.Image:
    if image.mode in {"RGBA", "LA"}:
        background = Image.new("RGB", image.size, (255, 255, 255))
        alpha = image.split()[-1]
        background.paste(image.convert("RGBA"), mask=alpha)
        return background
    if image.mode != "RGB":
        return image.convert("RGB")
    return image


class PillowImageStore:
    """Image capabilities that exchange PNG files inside ``workdir``."""

    def __init__(self, workdir: Path):
        self.workdir = Path(workdir)
        self.workdir.mkdir(parents=True, exist_ok=True)

    def _new_path(self, prefix: str) -> Path:
        return self.workdir / f"{prefix}-{uuid.uuid4().hex}.png"

    def resize(self, uri: str, width: int, height: int) -> str:
        image = _prepare_rgb(_open_image(uri))
        if image.size != (width, height):
            image = image.resize((width, height), Image.BICUBIC)
        path = self._new_path(f"resized-{width}x{height}")
        image.save(path, format="PNG")
        return str(path)

    def get_pixels(self, uri: str) -> PixelBuffer:
        image = _prepare_rgb(_open_image(uri))
        return PixelBuffer.from_array(np.asarray(image, dtype=np.uint8))

    def get_image_uri(self, pixels: PixelBuffer) -> str:
        image = Image.fromarray(np.ascontiguousarray(pixels.as_array()))
        path = self._new_path("output")
        image.save(path, format="PNG")
        return str(path)


__all__ = ["PillowImageStore"]
