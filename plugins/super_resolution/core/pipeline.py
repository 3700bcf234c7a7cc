"""Model lifecycle and the preprocess → infer → postprocess sequence."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from typing import Any

import numpy as np

from common.logging import get_logger

from .colorspace import (
    DEFAULT_RESAMPLE,
    RESAMPLE_METHODS,
    PixelBuffer,
    PlaneBuffer,
    to_rgb,
    to_ycbcr,
)
from .errors import (
    InferenceFailedError,
    InvalidBufferLengthError,
    ModelLoadFailedError,
    ModelNotReadyError,
    PipelineBusyError,
    SuperResolutionError,
)
from .ports import ImageStore, InferenceEngine
from .tensor import Tensor, pack, unpack

logger = get_logger(__name__)


class ModelState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    RUNNING = "running"
    LOAD_FAILED = "load_failed"


@dataclass(frozen=True, eq=False)
class ChromaPlanes:
    cb: PlaneBuffer
    cr: PlaneBuffer


@dataclass(frozen=True, eq=False)
class SourceImage:
    base: PixelBuffer
    scaled: PixelBuffer
    preview_uri: str


@dataclass(frozen=True, eq=False)
class UpscaleResult:
    pixels: PixelBuffer
    uri: str


def preprocess(
    base: PixelBuffer, scaled: PixelBuffer, *, base_dim: int
) -> tuple[Tensor, ChromaPlanes]:
    """Build the luma input tensor and keep the higher-resolution chroma.

    Only the luma of ``base`` reaches the model; ``scaled`` contributes its
    chroma planes, its luma is discarded.
    """

    if (base.width, base.height) != (base_dim, base_dim):
        raise InvalidBufferLengthError(
            f"Base image must be {base_dim}x{base_dim}, got {base.width}x{base.height}"
        )
    luma, _, _ = to_ycbcr(base)
    _, cb, cr = to_ycbcr(scaled)
    return pack(luma, (base_dim, base_dim)), ChromaPlanes(cb=cb, cr=cr)


def postprocess(
    output: Tensor, chroma: ChromaPlanes, *, resample: str = DEFAULT_RESAMPLE
) -> PixelBuffer:
    luma = unpack(output)
    if not np.all(np.isfinite(luma.data)):
        raise InferenceFailedError("Model output contains non-finite values")
    return to_rgb(luma, chroma.cb, chroma.cr, resample=resample)


class SuperResolutionPipeline:
    """Owns the model handle and serialises model work on one background thread.

    ``load``, ``acquire``, ``run_inference`` and ``upscale`` return
    :class:`concurrent.futures.Future` objects immediately. ``acquire`` runs on
    its own worker. At most one inference is in flight; a second request
    while running is rejected.
    """

    def __init__(
        self,
        engine: InferenceEngine,
        *,
        image_store: ImageStore | None = None,
        base_dim: int = 224,
        scale: int = 3,
        resample: str = DEFAULT_RESAMPLE,
    ):
        if base_dim <= 0 or scale <= 0:
            raise ValueError("base_dim and scale must be positive")
        if resample not in RESAMPLE_METHODS:
            raise ValueError(f"Resample method must be one of {RESAMPLE_METHODS}")
        self.engine = engine
        self.image_store = image_store
        self.base_dim = base_dim
        self.scale = scale
        self.resample = resample
        self.last_error: str | None = None

        self._lock = Lock()
        self._state = ModelState.UNLOADED
        self._handle: Any = None
        self._load_future: Future | None = None
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="super-resolution"
        )
        # Image preparation never waits behind a running inference.
        self._io_executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="super-resolution-io"
        )

    def __enter__(self) -> "SuperResolutionPipeline":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    @property
    def state(self) -> ModelState:
        return self._state

    @property
    def scaled_dim(self) -> int:
        return self.base_dim * self.scale

    def status(self) -> dict[str, Any]:
        return {
            "state": self._state.value,
            "model_loaded": self._handle is not None,
            "last_error": self.last_error,
            "base_dim": self.base_dim,
            "scaled_dim": self.scaled_dim,
            "resample": self.resample,
        }

    def _transition(self, state: ModelState) -> None:
        logger.info("pipeline state %s -> %s", self._state.value, state.value)
        self._state = state

    def load(self) -> Future:
        """Start loading the model; a no-op once it is loaded."""

        with self._lock:
            if self._state in (ModelState.READY, ModelState.RUNNING):
                done: Future = Future()
                done.set_result(ModelState.READY)
                return done
            if self._state is ModelState.LOADING and self._load_future is not None:
                return self._load_future
            self._transition(ModelState.LOADING)
            self.last_error = None
            self._load_future = self._executor.submit(self._load)
            return self._load_future

    def _load(self) -> ModelState:
        try:
            handle = self.engine.load()
        except Exception as exc:
            with self._lock:
                self.last_error = str(exc)
                self._transition(ModelState.LOAD_FAILED)
            logger.warning("model load failed: %s", exc)
            if isinstance(exc, ModelLoadFailedError):
                raise
            raise ModelLoadFailedError(str(exc)) from exc
        with self._lock:
            self._handle = handle
            self._transition(ModelState.READY)
        return ModelState.READY

    def _require_store(self, store: ImageStore | None) -> ImageStore:
        if store is None:
            store = self.image_store
        if store is None:
            raise SuperResolutionError("No image store configured for this pipeline")
        return store

    def acquire(self, uri: str, *, store: ImageStore | None = None) -> Future:
        """Resize ``uri`` to base and scaled sizes and extract both pixel buffers.

        ``store`` overrides the pipeline's image store for this call.
        """

        store = self._require_store(store)
        return self._io_executor.submit(self._acquire, store, uri)

    def _acquire(self, store: ImageStore, uri: str) -> SourceImage:
        base_uri = store.resize(uri, self.base_dim, self.base_dim)
        scaled_uri = store.resize(uri, self.scaled_dim, self.scaled_dim)
        return SourceImage(
            base=store.get_pixels(base_uri),
            scaled=store.get_pixels(scaled_uri),
            preview_uri=base_uri,
        )

    def run_inference(self, pixels_base: PixelBuffer, pixels_scaled: PixelBuffer) -> Future:
        """Upscale ``pixels_base``; the future resolves to a :class:`PixelBuffer`."""

        return self._start(pixels_base, pixels_scaled, None)

    def upscale(self, source: SourceImage, *, store: ImageStore | None = None) -> Future:
        """Run inference on ``source`` and materialise the output for display."""

        return self._start(source.base, source.scaled, self._require_store(store))

    def _start(
        self, base: PixelBuffer, scaled: PixelBuffer, store: ImageStore | None
    ) -> Future:
        with self._lock:
            if self._state is ModelState.RUNNING:
                raise PipelineBusyError("An inference is already running")
            if self._state is not ModelState.READY:
                raise ModelNotReadyError(f"Model is {self._state.value}")
            self._transition(ModelState.RUNNING)
            handle = self._handle
        try:
            return self._executor.submit(self._execute, handle, base, scaled, store)
        except RuntimeError:
            with self._lock:
                self._transition(ModelState.READY)
            raise

    def _infer(self, handle: Any, tensor: Tensor) -> Tensor:
        try:
            output = self.engine.infer(handle, tensor)
        except SuperResolutionError:
            raise
        except Exception as exc:
            raise InferenceFailedError(f"Model invocation failed: {exc}") from exc
        if isinstance(output, Tensor):
            return output
        try:
            return Tensor.from_array(output)
        except (TypeError, ValueError) as exc:
            raise InferenceFailedError(f"Malformed model output: {exc}") from exc

    def _execute(
        self,
        handle: Any,
        base: PixelBuffer,
        scaled: PixelBuffer,
        store: ImageStore | None,
    ) -> PixelBuffer | UpscaleResult:
        try:
            tensor, chroma = preprocess(base, scaled, base_dim=self.base_dim)
            output = self._infer(handle, tensor)
            pixels = postprocess(output, chroma, resample=self.resample)
            if store is None:
                return pixels
            return UpscaleResult(pixels=pixels, uri=store.get_image_uri(pixels))
        except SuperResolutionError as exc:
            logger.warning("inference failed: %s", exc)
            raise
        except Exception as exc:
            logger.exception("unexpected failure while upscaling")
            raise InferenceFailedError(f"Upscaling failed: {exc}") from exc
        finally:
            with self._lock:
                self._transition(ModelState.READY)

    def shutdown(self, wait: bool = True) -> None:
        self._io_executor.shutdown(wait=wait)
        self._executor.shutdown(wait=wait)


__all__ = [
    "ChromaPlanes",
    "ModelState",
    "SourceImage",
    "SuperResolutionPipeline",
    "UpscaleResult",
    "postprocess",
    "preprocess",
]
