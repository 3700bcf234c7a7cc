"""ONNX Runtime implementation of the inference capability."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np

from common.logging import get_logger

from .errors import (
    InferenceFailedError,
    ModelLoadFailedError,
    ShapeMismatchError,
    SuperResolutionUnavailableError,
)
from .tensor import Tensor

ORT_AVAILABLE = False
IMPORT_ERROR: str | None = None

try:  # Optional dependency (heavy)
    import onnxruntime as ort

    ORT_AVAILABLE = True
except Exception as exc:  # pragma: no cover - exercised in integration
    IMPORT_ERROR = repr(exc)

PROVIDERS = {
    "cuda": "CUDAExecutionProvider",
    "tensorrt": "TensorrtExecutionProvider",
    "rocm": "ROCMExecutionProvider",
    "dml": "DmlExecutionProvider",
    "coreml": "CoreMLExecutionProvider",
    "openvino": "OpenVINOExecutionProvider",
}
GPU_PRIORITY = (
    "TensorrtExecutionProvider",
    "CUDAExecutionProvider",
    "ROCMExecutionProvider",
    "DmlExecutionProvider",
    "CoreMLExecutionProvider",
    "OpenVINOExecutionProvider",
)

logger = get_logger(__name__)


def is_available() -> bool:
    return ORT_AVAILABLE


def import_error() -> str | None:
    return IMPORT_ERROR


def resolve_providers(preference: str, available: set[str]) -> list[str]:
    """Order execution providers for ``preference``, keeping a CPU fallback."""

    mode = (preference or "auto").lower()
    if mode not in {"auto", "cpu", *PROVIDERS}:
        raise ValueError(
            f"provider must be one of: {sorted({'auto', 'cpu', *PROVIDERS})}"
        )

    resolved: list[str] = []
    if mode == "auto":
        for name in GPU_PRIORITY:
            if name in available:
                resolved.append(name)
                break
    elif mode != "cpu":
        name = PROVIDERS[mode]
        if name not in available:
            raise ModelLoadFailedError(
                f"{name} is not available in this environment. "
                f"Available providers: {sorted(available)}"
            )
        resolved.append(name)

    if "CPUExecutionProvider" in available:
        resolved.append("CPUExecutionProvider")
    if not resolved:
        raise ModelLoadFailedError(
            f"No compatible execution provider found. Available providers: {sorted(available)}"
        )
    return resolved


@dataclass(frozen=True)
class OnnxModelHandle:
    session: Any
    input_name: str
    output_name: str
    input_dtype: Any


class OnnxInferenceEngine:
    """Loads one ONNX session and runs single-input, single-output inference."""

    def __init__(self, model_path: Path, provider: str = "auto"):
        self.model_path = Path(model_path)
        self.provider = provider

    def load(self) -> OnnxModelHandle:
        if not ORT_AVAILABLE:
            raise SuperResolutionUnavailableError(
                "onnxruntime is unavailable. Install onnxruntime."
            )
        if not self.model_path.exists():
            raise ModelLoadFailedError(f"Missing model file: {self.model_path}")

        providers = resolve_providers(self.provider, set(ort.get_available_providers()))
        options = ort.SessionOptions()
        options.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
        options.execution_mode = ort.ExecutionMode.ORT_SEQUENTIAL
        try:
            session = ort.InferenceSession(
                str(self.model_path), sess_options=options, providers=providers
            )
        except Exception as exc:
            raise ModelLoadFailedError(
                f"Could not load {self.model_path.name}: {exc}"
            ) from exc

        model_input = session.get_inputs()[0]
        dtype = np.float16 if "float16" in model_input.type else np.float32
        logger.info(
            "loaded %s with %s (input %s %s)",
            self.model_path.name,
            providers,
            model_input.name,
            model_input.shape,
        )
        return OnnxModelHandle(
            session=session,
            input_name=model_input.name,
            output_name=session.get_outputs()[0].name,
            input_dtype=dtype,
        )

    def infer(self, handle: OnnxModelHandle, tensor: Tensor) -> Tensor:
        feed = {handle.input_name: tensor.data.astype(handle.input_dtype, copy=False)}
        try:
            outputs = handle.session.run([handle.output_name], feed)
        except Exception as exc:
            raise InferenceFailedError(f"ONNX Runtime failed: {exc}") from exc
        try:
            return Tensor.from_array(outputs[0])
        except ShapeMismatchError as exc:
            raise InferenceFailedError(f"Malformed model output: {exc}") from exc


__all__ = [
    "OnnxInferenceEngine",
    "OnnxModelHandle",
    "import_error",
    "is_available",
    "resolve_providers",
]
