"""Capability interfaces the pipeline depends on but does not implement."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from .colorspace import PixelBuffer
from .tensor import Tensor


@runtime_checkable
class PixelSource(Protocol):
    def get_pixels(self, uri: str) -> PixelBuffer:
        """Return the raw pixels of the image at ``uri``."""

    def get_image_uri(self, pixels: PixelBuffer) -> str:
        """Materialise ``pixels`` as a displayable image and return its URI."""


@runtime_checkable
class ImageResizer(Protocol):
    def resize(self, uri: str, width: int, height: int) -> str:
        """Return the URI of a ``width`` x ``height`` copy of ``uri``."""


class ImageStore(PixelSource, ImageResizer, Protocol):
    pass


@runtime_checkable
class InferenceEngine(Protocol):
    def load(self) -> Any:
        """Acquire the model handle. May raise."""

    def infer(self, handle: Any, tensor: Tensor) -> Tensor:
        """Run the model on ``tensor``. May raise."""


__all__ = ["ImageResizer", "ImageStore", "InferenceEngine", "PixelSource"]
