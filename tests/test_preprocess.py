import numpy as np
import pytest

from net_loginer.errors import ImageDecodeError
from net_loginer.ml.preprocess import (
    ResizeParam,
    decode_image,
    normalize,
    to_luma,
    to_tensor,
)
from tests.conftest import make_png


def test_fixed_height_keeps_aspect_ratio():
    assert ResizeParam.fixed_height(64).target_size(320, 160) == (128, 64)


def test_fixed_width_keeps_aspect_ratio():
    assert ResizeParam.fixed_width(100).target_size(50, 200) == (100, 400)


def test_fixed_size_ignores_source():
    assert ResizeParam.fixed(90, 30).target_size(50, 200) == (90, 30)


def test_derived_side_is_rounded():
    # 100 * 64 / 30 = 213.33
    assert ResizeParam.fixed_height(64).target_size(100, 30) == (213, 64)
    # 7 * 10 / 4 = 17.5 -> 18
    assert ResizeParam.fixed_width(10).target_size(4, 7) == (10, 18)
    # halves round up: 1 * 5 / 2 = 2.5 -> 3, 5 * 64 / 40 = 8.0 stays 8
    assert ResizeParam.fixed_width(5).target_size(2, 1) == (5, 3)
    assert ResizeParam.fixed_height(64).target_size(5, 40) == (8, 64)
    assert ResizeParam.fixed_height(10).target_size(9, 20) == (5, 10)


def test_from_pair_uses_minus_one_as_derived():
    assert ResizeParam.from_pair([-1, 64]) == ResizeParam(height=64)
    assert ResizeParam.from_pair((120, -1)) == ResizeParam(width=120)
    assert ResizeParam.from_pair([120, 40]) == ResizeParam(120, 40)


@pytest.mark.parametrize('pair', [(-1, -1), (0, 64), (64, -5)])
def test_invalid_resize_param(pair):
    with pytest.raises(ValueError):
        ResizeParam.from_pair(pair)


def test_gray_normalization_of_white():
    samples = np.full((1, 2, 2), 255, dtype=np.uint8)
    out = normalize(samples, [(0.456, 0.224)])
    assert out.dtype == np.float32
    assert out[0, 0, 0] == pytest.approx((1.0 - 0.456) / 0.224, rel=1e-6)


def test_rgb_normalization_is_per_channel():
    samples = np.zeros((3, 1, 1), dtype=np.uint8)
    out = normalize(samples, [(0.485, 0.229), (0.456, 0.224), (0.406, 0.225)])
    assert out[:, 0, 0] == pytest.approx([-0.485 / 0.229, -0.456 / 0.224, -0.406 / 0.225], rel=1e-6)


def test_luma_weights():
    img = np.array([[[255, 0, 0], [0, 255, 0], [0, 0, 255], [255, 255, 255]]], dtype=np.uint8)
    luma = to_luma(img)
    assert luma.dtype == np.uint8
    assert luma.tolist() == [[76, 150, 29, 255]]


def test_decode_image_is_rgb():
    img = decode_image(make_png(4, 3, rgb=(200, 10, 20)))
    assert img.shape == (3, 4, 3)
    assert img[0, 0].tolist() == [200, 10, 20]


@pytest.mark.parametrize('data', [b'', b'not an image', b'\x89PNG\r\n\x1a\n broken'])
def test_decode_rejects_malformed(data):
    with pytest.raises(ImageDecodeError):
        decode_image(data)


def test_gray_tensor_shape_and_value(white_png):
    tensor = to_tensor(white_png, ResizeParam.fixed_height(64), channels=1)
    assert tensor.shape == (1, 1, 64, 128)
    assert tensor.dtype == np.float32
    assert tensor.flags['C_CONTIGUOUS']
    assert np.allclose(tensor, (1.0 - 0.456) / 0.224, rtol=1e-5)


def test_rgb_tensor_channel_order():
    png = make_png(10, 10, rgb=(255, 0, 0))
    tensor = to_tensor(png, ResizeParam.fixed(10, 10), channels=3)
    assert tensor.shape == (1, 3, 10, 10)
    assert tensor[0, 0, 0, 0] == pytest.approx((1.0 - 0.485) / 0.229, rel=1e-5)
    assert tensor[0, 1, 0, 0] == pytest.approx(-0.456 / 0.224, rel=1e-5)
    assert tensor[0, 2, 0, 0] == pytest.approx(-0.406 / 0.225, rel=1e-5)


def test_unsupported_channel_count(white_png):
    with pytest.raises(ValueError):
        to_tensor(white_png, ResizeParam.fixed_height(64), channels=2)
