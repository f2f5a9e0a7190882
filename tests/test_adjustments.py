from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

try:
    from .documentation import documents
except ImportError:  # pragma: no cover - fallback for direct execution
    from tests.documentation import documents

np = pytest.importorskip("numpy")

from bitmap_toolkit import (  # noqa: E402
    AdjustmentSettings,
    Color,
    LOOK_PRESETS,
    PixelBuffer,
    UnsupportedChannelMode,
    adjust_brightness,
    adjust_contrast,
    adjust_hsl,
    apply_adjustments,
)
from bitmap_toolkit.adjustments import brightness_offset, contrast_factor  # noqa: E402


@pytest.fixture()
def gradient() -> PixelBuffer:
    pixels = [(v, 255 - v, (v * 7) % 256, 200) for v in range(0, 256, 17)]
    return PixelBuffer(len(pixels), 1, pixels)


def _max_difference(a: PixelBuffer, b: PixelBuffer) -> int:
    return int(np.abs(a.pixels.astype(int) - b.pixels.astype(int)).max())


def test_hsl_identity_is_nearly_lossless(gradient):
    result = adjust_hsl(gradient)

    assert result.size == gradient.size
    assert _max_difference(result, gradient) <= 1
    assert np.array_equal(result.pixels[:, 3], gradient.pixels[:, 3])


@documents("Hue shifts rotate primaries around the colour wheel in both directions")
def test_hue_shift_rotates_primaries():
    red = PixelBuffer(1, 1, [(255, 0, 0, 128)])

    assert adjust_hsl(red, hue_delta=120).get(0, 0) == Color(0, 255, 0, 128)
    assert adjust_hsl(red, hue_delta=-120).get(0, 0) == Color(0, 0, 255, 128)
    assert adjust_hsl(red, hue_delta=360 + 240).get(0, 0) == Color(0, 0, 255, 128)


def test_saturation_zero_produces_grey():
    buffer = PixelBuffer(1, 1, [(200, 50, 10, 255)])

    pixel = adjust_hsl(buffer, saturation_mult=0.0).get(0, 0)

    assert pixel.r == pixel.g == pixel.b == 200


def test_luminance_multiplier_is_clamped():
    buffer = PixelBuffer(1, 1, [(200, 100, 50, 255)])

    assert adjust_hsl(buffer, luminance_mult=0.0).get(0, 0) == Color(0, 0, 0, 255)
    assert adjust_hsl(buffer, luminance_mult=10.0).get(0, 0).r == 255


def test_contrast_factor_range():
    assert contrast_factor(1.0) == pytest.approx(1.0)
    assert contrast_factor(0.0) == 0.0
    assert contrast_factor(-4.0) == 0.0
    assert contrast_factor(2.0) == pytest.approx(129.5)
    assert contrast_factor(5.0) == contrast_factor(2.0)


def test_contrast_zero_collapses_to_mid_grey(gradient):
    result = adjust_contrast(gradient, 0.0)

    assert np.all(result.pixels[:, :3] == 128)
    assert np.array_equal(result.pixels[:, 3], gradient.pixels[:, 3])


def test_contrast_maximum_thresholds_around_mid_grey():
    buffer = PixelBuffer(3, 1, [(129, 127, 128, 10), (0, 255, 200, 20), (60, 140, 128, 30)])

    result = adjust_contrast(buffer, 2.0)

    assert result.get(0, 0) == Color(255, 0, 128, 10)
    assert result.get(1, 0) == Color(0, 255, 255, 20)
    assert result.get(2, 0) == Color(0, 255, 128, 30)


def test_contrast_identity(gradient):
    assert adjust_contrast(gradient, 1.0) == gradient


def test_brightness_offset_truncates():
    assert brightness_offset(1.0) == 0
    assert brightness_offset(1.5) == 127
    assert brightness_offset(0.5) == -127
    assert brightness_offset(3.0) == 255
    assert brightness_offset(-1.0) == -255


def test_brightness_saturates_and_keeps_alpha():
    buffer = PixelBuffer(1, 1, [(100, 200, 150, 255)])

    assert adjust_brightness(buffer, 1.5).get(0, 0) == Color(227, 255, 255, 255)
    assert adjust_brightness(buffer, 0.0).get(0, 0) == Color(0, 0, 0, 255)
    assert adjust_brightness(buffer, 2.0).get(0, 0) == Color(255, 255, 255, 255)


def test_operations_pass_empty_buffers_through():
    empty = PixelBuffer.empty()

    assert adjust_hsl(empty, 30, 2, 2).is_empty
    assert adjust_contrast(empty, 2).is_empty
    assert adjust_brightness(empty, 2).is_empty


def test_settings_validation():
    with pytest.raises(ValueError):
        AdjustmentSettings(contrast=float("nan"))
    with pytest.raises(ValueError):
        AdjustmentSettings(filter="emboss")
    with pytest.raises(UnsupportedChannelMode):
        AdjustmentSettings(channel_mode="cmyk")
    with pytest.raises(ValueError):
        AdjustmentSettings(tint_mode="screen")
    with pytest.raises(ValueError):
        AdjustmentSettings(tint=(1, 2, 3))

    settings = AdjustmentSettings(tint=[10, 20, 30, 40], filter="Box-Blur")
    assert settings.tint == (10, 20, 30, 40)


def test_neutral_preset_is_identity(gradient):
    assert apply_adjustments(gradient, LOOK_PRESETS["neutral"]) == gradient


def test_presets_are_valid_settings(gradient):
    for name, settings in LOOK_PRESETS.items():
        result = apply_adjustments(gradient, settings)
        assert result.size == gradient.size, name


def test_chain_applies_brightness_then_tint():
    buffer = PixelBuffer(1, 1, [(100, 100, 100, 255)])
    settings = AdjustmentSettings(brightness=1.5, tint=(0, 0, 0, 255), tint_mode="multiply")

    assert apply_adjustments(buffer, settings).get(0, 0) == Color(0, 0, 0, 255)


def test_chain_runs_filter_with_channel_override():
    buffer = PixelBuffer.filled(3, 3, (10, 20, 30, 40))
    settings = AdjustmentSettings(filter="identity", channel_mode="g")

    result = apply_adjustments(buffer, settings)

    assert all(result.get(x, y) == Color(0, 20, 0, 255) for x in range(3) for y in range(3))


@pytest.mark.parametrize(
    "operation",
    [
        lambda b: adjust_brightness(b, float("nan")),
        lambda b: adjust_brightness(b, float("inf")),
        lambda b: adjust_contrast(b, float("nan")),
        lambda b: adjust_contrast(b, float("-inf")),
        lambda b: adjust_hsl(b, hue_delta=float("inf")),
        lambda b: adjust_hsl(b, saturation_mult=float("nan")),
        lambda b: adjust_hsl(b, luminance_mult=float("inf")),
    ],
)
def test_non_finite_parameters_are_rejected(gradient, operation):
    with pytest.raises(ValueError):
        operation(gradient)


def test_non_finite_parameters_are_rejected_even_for_empty_buffers():
    with pytest.raises(ValueError):
        adjust_hsl(PixelBuffer.empty(), hue_delta=float("nan"))
