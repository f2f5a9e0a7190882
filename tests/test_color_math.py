from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

np = pytest.importorskip("numpy")

from bitmap_toolkit import color_math  # noqa: E402


def test_srgb_round_trip_is_exact_for_every_code_value():
    codes = np.arange(256)

    linear = color_math.srgb_to_linear(codes)

    assert linear[0] == 0.0
    assert linear[255] == pytest.approx(1.0)
    assert np.all(np.diff(linear) > 0)
    assert np.array_equal(color_math.linear_to_srgb(linear), codes.astype(np.uint8))


@pytest.mark.parametrize(
    "rgb, expected",
    [
        ((1.0, 0.0, 0.0), (0.0, 1.0, 1.0)),
        ((0.0, 1.0, 0.0), (120.0, 1.0, 1.0)),
        ((0.0, 0.0, 1.0), (240.0, 1.0, 1.0)),
        ((1.0, 1.0, 0.0), (60.0, 1.0, 1.0)),
        ((0.5, 0.5, 0.5), (0.0, 0.0, 0.5)),
        ((0.0, 0.0, 0.0), (0.0, 0.0, 0.0)),
    ],
)
def test_rgb_to_hsv_known_colours(rgb, expected):
    hsv = color_math.rgb_to_hsv(np.array([rgb]))[0]
    assert hsv == pytest.approx(expected)


def test_hsv_round_trip():
    rng = np.random.default_rng(7)
    rgb = rng.random((64, 3))

    restored = color_math.hsv_to_rgb(color_math.rgb_to_hsv(rgb))

    assert np.allclose(restored, rgb, atol=1e-9)


@pytest.mark.parametrize(
    "hue, expected",
    [(359.0 + 2.0, 1.0), (1.0 - 2.0, 359.0), (720.0, 0.0), (-360.0, 0.0), (180.0, 180.0)],
)
def test_wrap_hue(hue, expected):
    assert color_math.wrap_hue(hue) == pytest.approx(expected)


def test_wrap_hue_never_returns_360():
    assert color_math.wrap_hue(-1e-20) == 0.0


def test_clamp_and_quantize():
    assert color_math.clamp(5.0, 0.0, 1.0) == 1.0
    assert color_math.clamp(-5.0, 0.0, 1.0) == 0.0
    assert np.array_equal(color_math.clamp(np.array([-1.0, 0.5, 2.0]), 0.0, 1.0), [0.0, 0.5, 1.0])

    quantized = color_math.quantize(np.array([-5.0, 0.4, 127.6, 300.0]))
    assert quantized.dtype == np.uint8
    assert quantized.tolist() == [0, 0, 128, 255]
    assert color_math.quantize_unit(np.array([0.0, 1.0, 2.0])).tolist() == [0, 255, 255]


def test_luminance_weights():
    assert color_math.luminance(np.array([100.0, 150.0, 200.0])) == pytest.approx(140.74)
