"""Error taxonomy for the super-resolution pipeline."""

from __future__ import annotations


class SuperResolutionError(RuntimeError):
    """Base error for super-resolution failures."""


class SuperResolutionUnavailableError(SuperResolutionError):
    """Raised when onnxruntime cannot be imported."""


class SuperResolutionInputError(SuperResolutionError):
    """Raised when the input image is invalid."""


class InvalidBufferLengthError(SuperResolutionError, ValueError):
    """Raised when a pixel or plane buffer does not match its dimensions."""


class ShapeMismatchError(SuperResolutionError, ValueError):
    """Raised when a tensor violates the ``(1, 1, H, W)`` contract."""


class ModelLoadFailedError(SuperResolutionError):
    """Raised when the inference engine cannot produce a model handle."""


class InferenceFailedError(SuperResolutionError):
    """Raised when the model call fails or returns malformed output."""


class ModelNotReadyError(SuperResolutionError):
    """Raised when inference is requested before the model is loaded."""


class PipelineBusyError(SuperResolutionError):
    """Raised when inference is requested while another one is running."""


__all__ = [
    "SuperResolutionError",
    "SuperResolutionUnavailableError",
    "SuperResolutionInputError",
    "InvalidBufferLengthError",
    "ShapeMismatchError",
    "ModelLoadFailedError",
    "InferenceFailedError",
    "ModelNotReadyError",
    "PipelineBusyError",
]
