from __future__ import annotations

import threading

import numpy as np
import pytest

from plugins.super_resolution.core import PixelBuffer, SuperResolutionPipeline, Tensor


class UpsamplingEngine:
    """Stand-in model that repeats each luma sample ``scale`` times per axis."""

    def __init__(self, scale: int = 3):
        self.scale = scale
        self.load_calls = 0
        self.seen_shapes: list[tuple[int, ...]] = []
        self.fail_load = False
        self.fail_infer = False

    def load(self):
        self.load_calls += 1
        if self.fail_load:
            raise RuntimeError("model file is corrupt")
        return object()

    def infer(self, handle, tensor: Tensor) -> Tensor:
        self.seen_shapes.append(tensor.shape)
        if self.fail_infer:
            raise RuntimeError("session crashed")
        data = tensor.data.repeat(self.scale, axis=2).repeat(self.scale, axis=3)
        return Tensor(data)


class BlockingEngine(UpsamplingEngine):
    """Holds ``load`` and ``infer`` until ``release`` is set."""

    def __init__(self, scale: int = 3):
        super().__init__(scale)
        self.release = threading.Event()

    def load(self):
        self.release.wait(timeout=5)
        return super().load()

    def infer(self, handle, tensor: Tensor) -> Tensor:
        self.release.wait(timeout=5)
        return super().infer(handle, tensor)


def solid_pixels(width: int, height: int, color=(200, 30, 60)) -> PixelBuffer:
    array = np.empty((height, width, 3), dtype=np.uint8)
    array[:, :] = color
    return PixelBuffer.from_array(array)


def random_pixels(width: int, height: int, channels: int = 3, seed: int = 7) -> PixelBuffer:
    rng = np.random.default_rng(seed)
    array = rng.integers(0, 256, size=(height, width, channels), dtype=np.uint8)
    return PixelBuffer.from_array(array)


@pytest.fixture
def engine() -> UpsamplingEngine:
    return UpsamplingEngine(scale=3)


@pytest.fixture
def pipeline(engine):
    pipe = SuperResolutionPipeline(engine, base_dim=8, scale=3)
    yield pipe
    pipe.shutdown()


@pytest.fixture
def blocking_engine() -> BlockingEngine:
    eng = BlockingEngine(scale=3)
    yield eng
    eng.release.set()


@pytest.fixture
def solid():
    return solid_pixels


@pytest.fixture
def noisy():
    return random_pixels
