"""Generate a stand-in ONNX model that upsamples luma with nearest neighbour.

The graph has the same signature as the sub-pixel CNN model
(``input`` of shape ``(1, 1, B, B)``, ``output`` of shape ``(1, 1, sB, sB)``),
which is enough to exercise the pipeline without downloading weights.
Requires the ``onnx`` package.
"""

from __future__ import annotations

import argparse
from pathlib import Path


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate a dummy upsampling ONNX model.")
    parser.add_argument(
        "--output",
        default="model_store/super-resolution-dummy.onnx",
        help="Output .onnx path (defaults under model_store).",
    )
    parser.add_argument("--base-dim", type=int, default=224)
    parser.add_argument("--scale", type=int, default=3)
    args = parser.parse_args()

    try:
        import numpy as np
        from onnx import TensorProto, checker, helper, numpy_helper, save
    except ImportError as exc:
        print("Missing dependencies. Install onnx.")
        print(f"Import error: {exc}")
        return 1

    base, scale = args.base_dim, args.scale
    scales = numpy_helper.from_array(
        np.array([1.0, 1.0, scale, scale], dtype=np.float32), name="scales"
    )
    node = helper.make_node("Resize", ["input", "", "scales"], ["output"], mode="nearest")
    graph = helper.make_graph(
        [node],
        "dummy_super_resolution",
        [helper.make_tensor_value_info("input", TensorProto.FLOAT, [1, 1, base, base])],
        [
            helper.make_tensor_value_info(
                "output", TensorProto.FLOAT, [1, 1, base * scale, base * scale]
            )
        ],
        initializer=[scales],
    )
    model = helper.make_model(graph, opset_imports=[helper.make_opsetid("", 13)])
    model.ir_version = 8
    checker.check_model(model)

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    save(model, str(output))
    print(f"Saved dummy model to {output}")
    print("Point plugins.super_resolution.model_file in config.yml at this file.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
