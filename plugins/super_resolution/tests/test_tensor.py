import numpy as np
import pytest

from plugins.super_resolution.core import PlaneBuffer, ShapeMismatchError, Tensor, pack, unpack


def test_pack_wraps_plane_in_row_major_order():
    values = np.arange(6, dtype=np.float32).reshape(2, 3)
    tensor = pack(PlaneBuffer.from_array(values))
    assert tensor.shape == (1, 1, 2, 3)
    assert np.array_equal(tensor.data[0, 0], values)


def test_pack_checks_requested_dims():
    plane = PlaneBuffer.from_array(np.zeros((4, 4), dtype=np.float32))
    assert pack(plane, (4, 4)).shape == (1, 1, 4, 4)
    with pytest.raises(ShapeMismatchError):
        pack(plane, (8, 8))


@pytest.mark.parametrize("dtype", [np.float32, np.float64, np.float16])
def test_unpack_then_pack_is_exact(dtype):
    rng = np.random.default_rng(3)
    tensor = Tensor(rng.random((1, 1, 5, 7)).astype(dtype))
    assert tensor.data.dtype == np.float32
    repacked = pack(unpack(tensor))
    assert repacked.shape == tensor.shape
    assert repacked.data.dtype == tensor.data.dtype
    assert np.array_equal(repacked.data, tensor.data)


def test_constructor_rejects_non_float_or_wrong_rank():
    with pytest.raises(ShapeMismatchError):
        Tensor(np.ones((1, 1, 2, 2), dtype=np.uint8))
    with pytest.raises(ShapeMismatchError):
        Tensor(np.ones((1, 2, 2), dtype=np.float32))


@pytest.mark.parametrize("shape", [(2, 1, 4, 4), (1, 3, 4, 4), (1, 4, 4), (1, 1, 0, 4)])
def test_unpack_rejects_shapes_outside_contract(shape):
    with pytest.raises(ShapeMismatchError):
        unpack(Tensor(np.zeros(shape, dtype=np.float32)))


def test_from_array_promotes_half_precision():
    tensor = Tensor.from_array(np.ones((1, 1, 2, 2), dtype=np.float16))
    assert tensor.data.dtype == np.float32


def test_from_array_rejects_non_float_or_wrong_rank():
    with pytest.raises(ShapeMismatchError):
        Tensor.from_array(np.ones((1, 1, 2, 2), dtype=np.int32))
    with pytest.raises(ShapeMismatchError):
        Tensor.from_array(np.ones((2, 2), dtype=np.float32))
