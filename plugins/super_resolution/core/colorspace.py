"""Conversion between interleaved RGB pixel buffers and planar YCbCr.

Planes use the full-range JPEG (BT.601) transform and are normalised to
``[0, 1]`` by dividing the 0..255 value by 255, which is the normalisation the
super-resolution model was trained with. Chroma midpoint is therefore
``128 / 255``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import numpy as np
from PIL import Image

from .errors import InvalidBufferLengthError, SuperResolutionInputError

CHROMA_MIDPOINT = 128.0
RESAMPLE_METHODS = ("bilinear", "nearest")
DEFAULT_RESAMPLE = "bilinear"

_PIL_FILTERS = {"bilinear": Image.BILINEAR, "nearest": Image.NEAREST}


def _check_dims(width: int, height: int) -> None:
    if int(width) <= 0 or int(height) <= 0:
        raise InvalidBufferLengthError(
            f"Dimensions must be positive, got {width}x{height}"
        )


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """Row-major interleaved 8-bit RGB(A) samples."""

    data: np.ndarray
    width: int
    height: int
    channels: int = 3

    def __post_init__(self) -> None:
        _check_dims(self.width, self.height)
        if self.channels not in (3, 4):
            raise InvalidBufferLengthError(
                f"Pixel buffers carry 3 or 4 channels, got {self.channels}"
            )
        data = np.asarray(self.data).reshape(-1)
        expected = self.width * self.height * self.channels
        if data.size != expected:
            raise InvalidBufferLengthError(
                f"Expected {expected} samples for {self.width}x{self.height}x"
                f"{self.channels}, got {data.size}"
            )
        if data.dtype != np.uint8:
            if np.issubdtype(data.dtype, np.floating) and not np.isfinite(data).all():
                raise SuperResolutionInputError("Pixel values must be finite")
            if data.size and (data.min() < 0 or data.max() > 255):
                raise SuperResolutionInputError("Pixel values must lie in [0, 255]")
            data = np.rint(data).astype(np.uint8)
        object.__setattr__(self, "data", data)

    @classmethod
    def from_array(cls, array: np.ndarray) -> "PixelBuffer":
        array = np.asarray(array)
        if array.ndim != 3:
            raise InvalidBufferLengthError("Expected an (H, W, C) pixel array")
        height, width, channels = array.shape
        return cls(array.reshape(-1), width=width, height=height, channels=channels)

    @classmethod
    def from_argb(cls, values: Iterable[int], width: int, height: int) -> "PixelBuffer":
        """Unpack one packed ``0xAARRGGBB`` integer per pixel.

        Android's ``Bitmap.getPixels`` hands out signed 32-bit ints, so
        negative values are accepted and read as their unsigned bit pattern.
        """

        packed = np.asarray(list(values), dtype=np.int64) & 0xFFFFFFFF
        _check_dims(width, height)
        if packed.size != width * height:
            raise InvalidBufferLengthError(
                f"Expected {width * height} packed pixels, got {packed.size}"
            )
        rgba = np.empty((packed.size, 4), dtype=np.uint8)
        rgba[:, 0] = (packed >> 16) & 0xFF
        rgba[:, 1] = (packed >> 8) & 0xFF
        rgba[:, 2] = packed & 0xFF
        rgba[:, 3] = (packed >> 24) & 0xFF
        return cls(rgba.reshape(-1), width=width, height=height, channels=4)

    def as_array(self) -> np.ndarray:
        return self.data.reshape(self.height, self.width, self.channels)

    def to_argb(self) -> np.ndarray:
        pixels = self.as_array().reshape(-1, self.channels).astype(np.uint32)
        if self.channels == 4:
            alpha = pixels[:, 3]
        else:
            alpha = np.full(pixels.shape[0], 255, dtype=np.uint32)
        return (alpha << 24) | (pixels[:, 0] << 16) | (pixels[:, 1] << 8) | pixels[:, 2]


@dataclass(frozen=True, eq=False)
class PlaneBuffer:
    """Row-major single-channel float32 samples normalised to ``[0, 1]``."""

    data: np.ndarray
    width: int
    height: int

    def __post_init__(self) -> None:
        _check_dims(self.width, self.height)
        data = np.asarray(self.data, dtype=np.float32).reshape(-1)
        if data.size != self.width * self.height:
            raise InvalidBufferLengthError(
                f"Expected {self.width * self.height} plane samples for "
                f"{self.width}x{self.height}, got {data.size}"
            )
        object.__setattr__(self, "data", data)

    @classmethod
    def from_array(cls, array: np.ndarray) -> "PlaneBuffer":
        array = np.asarray(array)
        if array.ndim != 2:
            raise InvalidBufferLengthError("Expected an (H, W) plane array")
        height, width = array.shape
        return cls(array.reshape(-1), width=width, height=height)

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def as_array(self) -> np.ndarray:
        return self.data.reshape(self.height, self.width)


def to_ycbcr(pixels: PixelBuffer) -> tuple[PlaneBuffer, PlaneBuffer, PlaneBuffer]:
    """Split ``pixels`` into normalised Y, Cb and Cr planes (alpha dropped)."""

    rgb = pixels.as_array()[:, :, :3].astype(np.float64)
    r, g, b = rgb[:, :, 0], rgb[:, :, 1], rgb[:, :, 2]

    y = 0.299 * r + 0.587 * g + 0.114 * b
    cb = CHROMA_MIDPOINT - 0.168736 * r - 0.331264 * g + 0.5 * b
    cr = CHROMA_MIDPOINT + 0.5 * r - 0.418688 * g - 0.081312 * b

    return tuple(  # type: ignore[return-value]
        PlaneBuffer.from_array((plane / 255.0).astype(np.float32))
        for plane in (y, cb, cr)
    )


def resample_plane(
    plane: PlaneBuffer, width: int, height: int, *, method: str = DEFAULT_RESAMPLE
) -> PlaneBuffer:
    """Resample ``plane`` onto a ``width`` x ``height`` grid.

    The plane goes through a 32-bit float Pillow image, so sample positions
    follow Pillow's pixel-centre convention and edges are clamped.
    """

    if method not in RESAMPLE_METHODS:
        raise ValueError(f"Resample method must be one of {RESAMPLE_METHODS}")
    _check_dims(width, height)
    if plane.size == (width, height):
        return plane

    image = Image.fromarray(np.ascontiguousarray(plane.as_array(), dtype=np.float32))
    resized = image.resize((width, height), _PIL_FILTERS[method])
    return PlaneBuffer.from_array(np.asarray(resized, dtype=np.float32))


def to_rgb(
    y: PlaneBuffer,
    cb: PlaneBuffer,
    cr: PlaneBuffer,
    *,
    resample: str = DEFAULT_RESAMPLE,
    channels: int = 3,
) -> PixelBuffer:
    """Recombine normalised planes into an 8-bit pixel buffer on the luma grid.

    Chroma planes captured at another resolution are resampled to the luma
    grid with ``resample`` before the inverse transform. Values are clamped to
    ``[0, 255]`` and rounded to the nearest integer.
    """

    if cb.size != cr.size:
        raise InvalidBufferLengthError(
            f"Chroma planes disagree in size: {cb.size} vs {cr.size}"
        )
    if channels not in (3, 4):
        raise InvalidBufferLengthError(f"Output must have 3 or 4 channels, got {channels}")
    if cb.size != y.size:
        cb = resample_plane(cb, y.width, y.height, method=resample)
        cr = resample_plane(cr, y.width, y.height, method=resample)

    luma = y.as_array().astype(np.float64) * 255.0
    blue_diff = cb.as_array().astype(np.float64) * 255.0 - CHROMA_MIDPOINT
    red_diff = cr.as_array().astype(np.float64) * 255.0 - CHROMA_MIDPOINT

    r = luma + 1.402 * red_diff
    g = luma - 0.344136 * blue_diff - 0.714136 * red_diff
    b = luma + 1.772 * blue_diff

    planes = [r, g, b]
    if channels == 4:
        planes.append(np.full_like(luma, 255.0))
    rgb = np.rint(np.clip(np.stack(planes, axis=-1), 0.0, 255.0)).astype(np.uint8)
    return PixelBuffer.from_array(rgb)


__all__ = [
    "CHROMA_MIDPOINT",
    "DEFAULT_RESAMPLE",
    "RESAMPLE_METHODS",
    "PixelBuffer",
    "PlaneBuffer",
    "resample_plane",
    "to_rgb",
    "to_ycbcr",
]
