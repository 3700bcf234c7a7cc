from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from plugins.super_resolution.core import PillowImageStore, PixelBuffer, SuperResolutionInputError


def test_resize_writes_png_of_requested_size(tmp_path: Path):
    source = tmp_path / "input.jpg"
    Image.new("RGB", (31, 17), color=(10, 20, 30)).save(source, format="JPEG")
    store = PillowImageStore(tmp_path / "store")

    resized = store.resize(str(source), 12, 12)

    assert Path(resized).parent == tmp_path / "store"
    with Image.open(resized) as image:
        assert image.size == (12, 12)
        assert image.format == "PNG"


def test_get_pixels_composites_alpha_on_white(tmp_path: Path):
    source = tmp_path / "transparent.png"
    Image.new("RGBA", (3, 2), color=(0, 0, 0, 0)).save(source)
    store = PillowImageStore(tmp_path)

    pixels = store.get_pixels(f"file://{source}")

    assert (pixels.width, pixels.height, pixels.channels) == (3, 2, 3)
    assert np.all(pixels.data == 255)


def test_get_image_uri_materialises_pixels(tmp_path: Path):
    store = PillowImageStore(tmp_path)
    array = np.zeros((4, 5, 3), dtype=np.uint8)
    array[1, 2] = (250, 100, 5)
    uri = store.get_image_uri(PixelBuffer.from_array(array))

    with Image.open(uri) as image:
        assert image.size == (5, 4)
        assert np.array_equal(np.asarray(image), array)


def test_missing_or_corrupt_images_raise_input_error(tmp_path: Path):
    store = PillowImageStore(tmp_path)
    with pytest.raises(SuperResolutionInputError):
        store.get_pixels(str(tmp_path / "missing.png"))

    garbage = tmp_path / "garbage.png"
    garbage.write_bytes(b"not an image")
    with pytest.raises(SuperResolutionInputError):
        store.resize(str(garbage), 4, 4)


def test_truncated_image_raises_input_error(tmp_path: Path):
    source = tmp_path / "full.png"
    rng = np.random.default_rng(5)
    Image.fromarray(rng.integers(0, 256, size=(64, 64, 3), dtype=np.uint8)).save(source)
    payload = source.read_bytes()
    truncated = tmp_path / "truncated.png"
    truncated.write_bytes(payload[: len(payload) // 2])

    store = PillowImageStore(tmp_path)
    with pytest.raises(SuperResolutionInputError):
        store.get_pixels(str(truncated))
    with pytest.raises(SuperResolutionInputError):
        store.resize(str(truncated), 4, 4)
