"""Super resolution API blueprint."""

from __future__ import annotations

from concurrent.futures import TimeoutError as FutureTimeoutError
from pathlib import Path
from threading import Lock
from typing import Literal

from flask import Blueprint, Response, current_app, request, send_file
from PIL import Image

from common.errors import (
    ConflictAppError,
    NotFoundAppError,
    PayloadTooLargeAppError,
    TimeoutAppError,
    UnavailableAppError,
    ValidationAppError,
)
from common.imaging import image_to_bytes
from common.io import buffer_from_bytes, ensure_tmpfs_root, new_tmpfs_dir, secure_filename
from common.logging import get_logger
from common.responses import fail, ok
from common.validation import SchemaModel, ValidationError, parse_model, validate_mime

from ..core import (
    InvalidBufferLengthError,
    ModelLoadFailedError,
    ModelNotReadyError,
    OnnxInferenceEngine,
    PillowImageStore,
    PipelineBusyError,
    SuperResolutionError,
    SuperResolutionInputError,
    SuperResolutionPipeline,
    SuperResolutionSettings,
    UpscaleResult,
    import_error,
    is_available,
    load_settings,
)

PIPELINE_KEY = "super_resolution_pipeline"

api_bp = Blueprint(
    "super_resolution_api", __name__, url_prefix="/api/v1/super_resolution"
)

logger = get_logger(__name__)
_PIPELINE_LOCK = Lock()


class PredictParams(SchemaModel):
    output_format: Literal["png", "jpg", "jpeg"] = "png"


def _repo_root() -> Path:
    return Path(current_app.root_path).resolve().parent


def _settings() -> SuperResolutionSettings:
    settings = current_app.config.get("PLUGIN_SETTINGS", {}).get("super_resolution", {})
    return load_settings(settings, root=_repo_root())


def build_pipeline(settings: SuperResolutionSettings) -> SuperResolutionPipeline:
    engine = OnnxInferenceEngine(settings.model_path, provider=settings.provider)
    store = PillowImageStore(ensure_tmpfs_root() / "super_resolution")
    return SuperResolutionPipeline(
        engine,
        image_store=store,
        base_dim=settings.base_dim,
        scale=settings.scale,
        resample=settings.chroma_resample,
    )


def _pipeline(settings: SuperResolutionSettings) -> SuperResolutionPipeline:
    pipeline = current_app.extensions.get(PIPELINE_KEY)
    if pipeline is not None:
        return pipeline
    with _PIPELINE_LOCK:
        pipeline = current_app.extensions.get(PIPELINE_KEY)
        if pipeline is None:
            pipeline = build_pipeline(settings)
            current_app.extensions[PIPELINE_KEY] = pipeline
        return pipeline


def _file_size(file) -> int:
    stream = file.stream
    try:
        current = stream.tell()
    except (AttributeError, OSError):
        current = None
    try:
        stream.seek(0, 2)
        size = stream.tell()
    finally:
        try:
            stream.seek(current or 0)
        except (AttributeError, OSError):
            pass
    return size


def _disabled() -> Response:
    return fail(
        NotFoundAppError(
            message="Super-resolution is disabled in config.yml",
            code="super_resolution.disabled",
        )
    )


def _load_failed(exc: Exception) -> Response:
    return fail(
        UnavailableAppError(message=str(exc), code="super_resolution.load_failed")
    )


def _timed_out(stage: str, timeout: float) -> Response:
    return fail(
        TimeoutAppError(
            message=f"{stage} did not finish within {timeout:g} seconds",
            code="super_resolution.timeout",
        )
    )


def _encode(result: UpscaleResult, output_format: str) -> bytes:
    if output_format == "png":
        return Path(result.uri).read_bytes()
    image = Image.fromarray(result.pixels.as_array()[:, :, :3])
    return image_to_bytes(image, format="JPEG")


@api_bp.get("/health")
def health() -> Response:
    settings = _settings()
    payload = {
        "status": "ok" if settings.enabled else "disabled",
        "enabled": settings.enabled,
        "engine_available": is_available(),
        "engine_error": import_error(),
        "model_file": settings.model_path.name,
        "provider": settings.provider,
    }
    if settings.enabled:
        payload.update(_pipeline(settings).status())
    return ok(payload)


@api_bp.post("/load")
def load() -> Response:
    settings = _settings()
    if not settings.enabled:
        return _disabled()
    pipeline = _pipeline(settings)
    try:
        pipeline.load().result(timeout=settings.inference_timeout_s)
    except FutureTimeoutError:
        return _timed_out("Model load", settings.inference_timeout_s)
    except SuperResolutionError as exc:
        return _load_failed(exc)
    return ok(pipeline.status())


@api_bp.post("/predict")
def predict() -> Response:
    settings = _settings()
    if not settings.enabled:
        return _disabled()

    file = request.files.get("image")
    if not file:
        return fail(
            ValidationAppError(
                message="Image file is required",
                code="super_resolution.missing_image",
            )
        )

    max_bytes = max(1, settings.max_upload_mb) * 1024 * 1024
    size = _file_size(file)
    if size > max_bytes:
        return fail(
            PayloadTooLargeAppError(
                message=f"File exceeds {settings.max_upload_mb} MB limit",
                code="super_resolution.too_large",
            )
        )

    try:
        validate_mime([file], {"image/png", "image/jpeg", "image/webp"})
        params = parse_model(
            PredictParams,
            {"output_format": (request.form.get("output_format") or "png").lower()},
        )
    except ValidationError as exc:
        return fail(
            ValidationAppError(
                message=str(exc),
                code="super_resolution.invalid_parameters",
                details={"errors": exc.details} if exc.details else None,
            )
        )
    output_format = "png" if params.output_format == "png" else "jpg"

    timeout = settings.inference_timeout_s
    pipeline = _pipeline(settings)
    try:
        pipeline.load().result(timeout=timeout)
    except FutureTimeoutError:
        return _timed_out("Model load", timeout)
    except SuperResolutionError as exc:
        return _load_failed(exc)

    with new_tmpfs_dir(prefix="sr-") as workdir:
        store = PillowImageStore(workdir.path)
        upload_path = workdir.path / secure_filename(file.filename or "", fallback="upload")
        try:
            file.stream.seek(0)
        except (AttributeError, OSError):
            pass
        file.save(upload_path)

        stage = "Image preparation"
        try:
            source = pipeline.acquire(str(upload_path), store=store).result(timeout=timeout)
            stage = "Inference"
            result: UpscaleResult = pipeline.upscale(source, store=store).result(timeout=timeout)
            image_bytes = _encode(result, output_format)
        except FutureTimeoutError:
            return _timed_out(stage, timeout)
        except PipelineBusyError as exc:
            return fail(ConflictAppError(message=str(exc), code="super_resolution.busy"))
        except ModelNotReadyError as exc:
            return fail(
                UnavailableAppError(message=str(exc), code="super_resolution.not_ready")
            )
        except (SuperResolutionInputError, InvalidBufferLengthError) as exc:
            return fail(
                ValidationAppError(
                    message=str(exc),
                    code="super_resolution.invalid_input",
                )
            )
        except ModelLoadFailedError as exc:
            return _load_failed(exc)
        except SuperResolutionError as exc:
            logger.exception("super-resolution failed")
            return fail(exc, fallback_code="super_resolution.inference_failed")

    filename = f"upscaled.{output_format}"
    return send_file(
        buffer_from_bytes(image_bytes),
        mimetype="image/png" if output_format == "png" else "image/jpeg",
        as_attachment=True,
        download_name=filename,
        max_age=0,
    )


blueprints = [api_bp]


__all__ = ["blueprints", "build_pipeline", "health", "load", "predict"]
