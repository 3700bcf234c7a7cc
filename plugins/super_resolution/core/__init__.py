"""Super resolution core functionality."""

from .colorspace import (
    PixelBuffer,
    PlaneBuffer,
    resample_plane,
    to_rgb,
    to_ycbcr,
)
from .errors import (
    InferenceFailedError,
    InvalidBufferLengthError,
    ModelLoadFailedError,
    ModelNotReadyError,
    PipelineBusyError,
    ShapeMismatchError,
    SuperResolutionError,
    SuperResolutionInputError,
    SuperResolutionUnavailableError,
)
from .imaging import PillowImageStore
from .onnx_engine import OnnxInferenceEngine, import_error, is_available
from .pipeline import (
    ModelState,
    SourceImage,
    SuperResolutionPipeline,
    UpscaleResult,
    postprocess,
    preprocess,
)
from .settings import SuperResolutionSettings, load_settings
from .tensor import Tensor, pack, unpack

__all__ = [
    "InferenceFailedError",
    "InvalidBufferLengthError",
    "ModelLoadFailedError",
    "ModelNotReadyError",
    "ModelState",
    "OnnxInferenceEngine",
    "PillowImageStore",
    "PipelineBusyError",
    "PixelBuffer",
    "PlaneBuffer",
    "ShapeMismatchError",
    "SourceImage",
    "SuperResolutionError",
    "SuperResolutionInputError",
    "SuperResolutionPipeline",
    "SuperResolutionSettings",
    "SuperResolutionUnavailableError",
    "Tensor",
    "UpscaleResult",
    "import_error",
    "is_available",
    "load_settings",
    "pack",
    "postprocess",
    "preprocess",
    "resample_plane",
    "to_rgb",
    "to_ycbcr",
    "unpack",
]
