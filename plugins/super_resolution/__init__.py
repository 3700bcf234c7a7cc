"""Super resolution plugin."""

manifest = {
    "title": "Super Resolution",
    "summary": "Upscale photos 3x with an ONNX sub-pixel CNN on the luma channel.",
    "blueprint": "super_resolution",
    "category": "Image Enhancement",
}


__all__ = ["manifest"]
