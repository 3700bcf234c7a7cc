"""Packing single planes into the model's ``(1, 1, H, W)`` tensor layout."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .colorspace import PlaneBuffer
from .errors import ShapeMismatchError


@dataclass(frozen=True, eq=False)
class Tensor:
    """A 4-D float32 array; other float precisions are converted on creation."""

    data: np.ndarray

    def __post_init__(self) -> None:
        array = np.asarray(self.data)
        if array.ndim != 4:
            raise ShapeMismatchError(f"Expected a 4-D tensor, got shape {array.shape}")
        if not np.issubdtype(array.dtype, np.floating):
            raise ShapeMismatchError(f"Expected a floating point tensor, got {array.dtype}")
        object.__setattr__(self, "data", array.astype(np.float32, copy=False))

    @classmethod
    def from_array(cls, array) -> "Tensor":
        """Wrap a raw engine output."""

        return cls(np.asarray(array))

    @property
    def shape(self) -> tuple[int, ...]:
        return tuple(self.data.shape)


def pack(plane: PlaneBuffer, dims: tuple[int, int] | None = None) -> Tensor:
    """Reshape ``plane`` to ``(1, 1, height, width)`` keeping row-major order."""

    if dims is not None and tuple(dims) != (plane.height, plane.width):
        raise ShapeMismatchError(
            f"Plane is {plane.height}x{plane.width}, expected {dims[0]}x{dims[1]}"
        )
    return Tensor(plane.data.reshape(1, 1, plane.height, plane.width))


def unpack(tensor: Tensor) -> PlaneBuffer:
    shape = tensor.shape
    if len(shape) != 4:
        raise ShapeMismatchError(f"Expected a 4-D tensor, got shape {shape}")
    batch, channels, height, width = shape
    if batch != 1 or channels != 1:
        raise ShapeMismatchError(
            f"Expected batch and channel of 1, got shape {shape}"
        )
    if height <= 0 or width <= 0:
        raise ShapeMismatchError(f"Tensor has empty spatial dims: {shape}")
    return PlaneBuffer(tensor.data.reshape(-1), width=width, height=height)


__all__ = ["Tensor", "pack", "unpack"]
