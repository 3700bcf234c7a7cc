from pathlib import Path

import numpy as np
import pytest

from plugins.super_resolution.core import (
    InferenceFailedError,
    ModelLoadFailedError,
    OnnxInferenceEngine,
    ShapeMismatchError,
    SuperResolutionPipeline,
    Tensor,
)
from plugins.super_resolution.core.onnx_engine import OnnxModelHandle, resolve_providers


def test_auto_prefers_gpu_and_keeps_cpu_fallback():
    available = {"CPUExecutionProvider", "CUDAExecutionProvider", "DmlExecutionProvider"}
    assert resolve_providers("auto", available) == [
        "CUDAExecutionProvider",
        "CPUExecutionProvider",
    ]
    assert resolve_providers("cpu", available) == ["CPUExecutionProvider"]


def test_explicit_provider_must_exist():
    with pytest.raises(ModelLoadFailedError):
        resolve_providers("cuda", {"CPUExecutionProvider"})
    with pytest.raises(ValueError):
        resolve_providers("tpu", {"CPUExecutionProvider"})


def _save_upsample_model(path: Path, base: int, scale: int) -> None:
    onnx = pytest.importorskip("onnx")
    from onnx import TensorProto, helper, numpy_helper

    scales = numpy_helper.from_array(
        np.array([1.0, 1.0, scale, scale], dtype=np.float32), name="scales"
    )
    node = helper.make_node("Resize", ["input", "", "scales"], ["output"], mode="nearest")
    graph = helper.make_graph(
        [node],
        "upsample",
        [helper.make_tensor_value_info("input", TensorProto.FLOAT, [1, 1, base, base])],
        [helper.make_tensor_value_info("output", TensorProto.FLOAT, [1, 1, base * scale, base * scale])],
        initializer=[scales],
    )
    model = helper.make_model(graph, opset_imports=[helper.make_opsetid("", 13)])
    model.ir_version = 8
    onnx.save(model, str(path))


def test_missing_model_file_fails_to_load(tmp_path: Path):
    pytest.importorskip("onnxruntime")
    engine = OnnxInferenceEngine(tmp_path / "absent.onnx", provider="cpu")
    with pytest.raises(ModelLoadFailedError):
        engine.load()


def test_session_runs_luma_tensor(tmp_path: Path):
    pytest.importorskip("onnxruntime")
    model_path = tmp_path / "upsample.onnx"
    _save_upsample_model(model_path, base=4, scale=3)

    engine = OnnxInferenceEngine(model_path, provider="cpu")
    handle = engine.load()
    assert handle.input_name == "input"

    output = engine.infer(handle, Tensor(np.full((1, 1, 4, 4), 0.5, dtype=np.float32)))
    assert output.shape == (1, 1, 12, 12)
    assert np.allclose(output.data, 0.5)


def test_pipeline_with_onnx_engine(tmp_path: Path, solid):
    pytest.importorskip("onnxruntime")
    model_path = tmp_path / "upsample.onnx"
    _save_upsample_model(model_path, base=4, scale=3)

    color = (120, 60, 220)
    with SuperResolutionPipeline(OnnxInferenceEngine(model_path, provider="cpu"), base_dim=4) as pipe:
        pipe.load().result(timeout=30)
        output = pipe.run_inference(solid(4, 4, color), solid(12, 12, color)).result(timeout=30)

    assert (output.width, output.height) == (12, 12)
    assert np.abs(output.as_array().astype(int) - np.array(color)).max() <= 1


class _IntegerSession:
    def run(self, output_names, feed):
        return [np.ones((1, 1, 12, 12), dtype=np.int64)]


def test_non_float_session_output_is_an_inference_failure(tmp_path: Path):
    engine = OnnxInferenceEngine(tmp_path / "model.onnx", provider="cpu")
    handle = OnnxModelHandle(
        session=_IntegerSession(),
        input_name="input",
        output_name="output",
        input_dtype=np.float32,
    )
    with pytest.raises(InferenceFailedError) as excinfo:
        engine.infer(handle, Tensor(np.zeros((1, 1, 4, 4), dtype=np.float32)))
    assert not isinstance(excinfo.value, ShapeMismatchError)
