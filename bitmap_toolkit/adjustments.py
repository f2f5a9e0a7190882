"""Tone adjustments, look presets, and the settings object that drives them."""
from __future__ import annotations

import dataclasses
import logging
import math
from typing import Optional, Tuple

import numpy as np

from .color_math import hsv_to_rgb, linear_to_srgb, quantize, rgb_to_hsv, srgb_to_linear, wrap_hue
from .compositing import TINT_OPERATIONS, composite_tint
from .convolution import ChannelMode, FilterKind, apply_filter, named_kernel
from .pixels import PixelBuffer

LOGGER = logging.getLogger("bitmap_toolkit")


def _require_finite(**params: float) -> None:
    for name, value in params.items():
        if not math.isfinite(value):
            raise ValueError(f"{name} must be a finite number, got {value!r}")


def _remap_unit_scale(value: float, name: str) -> float:
    """Map a ``[0, 2]`` control (1.0 = identity) onto ``[-255, 255]``, clamping first.

    Raises:
        ValueError: If *value* is NaN or infinite.
    """
    _require_finite(**{name: value})
    return min(max(float(value), 0.0), 2.0) * 255.0 - 255.0


def _with_rgb(buffer: PixelBuffer, rgb: np.ndarray) -> PixelBuffer:
    pixels = np.concatenate([rgb.astype(np.uint8), buffer.pixels[:, 3:]], axis=1)
    return PixelBuffer(buffer.width, buffer.height, pixels)


def adjust_hsl(
    buffer: PixelBuffer,
    hue_delta: float = 0.0,
    saturation_mult: float = 1.0,
    luminance_mult: float = 1.0,
) -> PixelBuffer:
    """Shift hue and scale saturation and value of every pixel.

    Pixels are decoded from sRGB to linear light, converted to HSV, adjusted,
    and re-encoded. Hue wraps around ``[0, 360)``; saturation and value are
    clamped to ``[0, 1]`` after scaling. Alpha is passed through unchanged.

    Args:
        buffer: Source pixels.
        hue_delta: Degrees added to every hue (any sign, any magnitude).
        saturation_mult: Saturation multiplier (1.0 = identity).
        luminance_mult: Value multiplier (1.0 = identity).

    Returns:
        New buffer with the same dimensions as *buffer*.

    Raises:
        ValueError: If any parameter is NaN or infinite.
    """
    _require_finite(hue_delta=hue_delta, saturation_mult=saturation_mult, luminance_mult=luminance_mult)
    if buffer.is_empty:
        return buffer
    hsv = rgb_to_hsv(srgb_to_linear(buffer.pixels[:, :3]))
    hsv[..., 0] = wrap_hue(hsv[..., 0] + float(hue_delta))
    hsv[..., 1] = np.clip(hsv[..., 1] * float(saturation_mult), 0.0, 1.0)
    hsv[..., 2] = np.clip(hsv[..., 2] * float(luminance_mult), 0.0, 1.0)
    LOGGER.debug(
        "HSL adjustment hue=%s saturation=%s luminance=%s", hue_delta, saturation_mult, luminance_mult
    )
    return _with_rgb(buffer, linear_to_srgb(hsv_to_rgb(hsv)))


def contrast_factor(contrast: float) -> float:
    """Return the multiplicative contrast factor for a ``[0, 2]`` contrast control."""
    offset = _remap_unit_scale(contrast, "contrast")
    return (259.0 * (offset + 255.0)) / (255.0 * (259.0 - offset))


def adjust_contrast(buffer: PixelBuffer, contrast: float = 1.0) -> PixelBuffer:
    """Stretch or compress R, G and B around mid-grey (128).

    Args:
        buffer: Source pixels.
        contrast: Contrast on a ``[0, 2]`` scale where 1.0 is identity; values
            outside the range are clamped.

    Returns:
        New buffer with the same dimensions; alpha is untouched.
    """
    if buffer.is_empty:
        return buffer
    factor = contrast_factor(contrast)
    LOGGER.debug("Contrast %s (factor %.4f)", contrast, factor)
    rgb = buffer.pixels[:, :3].astype(np.float64)
    return _with_rgb(buffer, quantize(factor * (rgb - 128.0) + 128.0))


def brightness_offset(brightness: float) -> int:
    """Return the additive offset for a ``[0, 2]`` brightness control.

    The remapped value is truncated toward zero, so 1.5 yields +127.
    """
    return int(_remap_unit_scale(brightness, "brightness"))


def adjust_brightness(buffer: PixelBuffer, brightness: float = 1.0) -> PixelBuffer:
    """Add a constant offset to R, G and B with saturation at 0 and 255.

    Args:
        buffer: Source pixels.
        brightness: Brightness on a ``[0, 2]`` scale where 1.0 is identity;
            values outside the range are clamped.

    Returns:
        New buffer with the same dimensions; alpha is untouched.
    """
    if buffer.is_empty:
        return buffer
    offset = brightness_offset(brightness)
    LOGGER.debug("Brightness %s (offset %+d)", brightness, offset)
    rgb = buffer.pixels[:, :3].astype(np.int16) + offset
    return _with_rgb(buffer, np.clip(rgb, 0, 255))


@dataclasses.dataclass
class AdjustmentSettings:
    """Holds the operations applied to every image in a processing run."""

    hue: float = 0.0
    saturation: float = 1.0
    luminance: float = 1.0
    contrast: float = 1.0
    brightness: float = 1.0
    filter: Optional[str] = None
    channel_mode: Optional[str] = None
    tint: Optional[Tuple[int, int, int, int]] = None
    tint_mode: str = "multiply"

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        for name in ("hue", "saturation", "luminance", "contrast", "brightness"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ValueError(f"{name} must be a finite number, got {value!r}")

        if self.filter is not None:
            FilterKind.coerce(self.filter)
        if self.channel_mode is not None:
            ChannelMode.coerce(self.channel_mode)

        if self.tint_mode not in TINT_OPERATIONS:
            raise ValueError(
                f"tint_mode must be one of {sorted(TINT_OPERATIONS)}, got {self.tint_mode!r}"
            )
        if self.tint is not None:
            tint = tuple(self.tint)
            if len(tint) != 4 or not all(isinstance(c, int) and 0 <= c <= 255 for c in tint):
                raise ValueError(f"tint must be four integers in [0, 255], got {self.tint!r}")
            self.tint = tint  # type: ignore[assignment]


LOOK_PRESETS = {
    "neutral": AdjustmentSettings(),
    "vivid": AdjustmentSettings(saturation=1.35, contrast=1.12, brightness=1.02),
    "muted": AdjustmentSettings(saturation=0.6, contrast=0.9),
    "punchy": AdjustmentSettings(saturation=1.15, contrast=1.25, filter="sharpen"),
    "soften": AdjustmentSettings(contrast=0.95, filter="gaussian5"),
    "edges": AdjustmentSettings(filter="edge_detection"),
}


def apply_adjustments(buffer: PixelBuffer, adjustments: AdjustmentSettings) -> PixelBuffer:
    """Run the complete adjustment chain described by *adjustments*.

    Order: hue/saturation/luminance, contrast, brightness, tint, then the
    convolution filter. Steps left at their identity value are skipped.
    """
    if (adjustments.hue, adjustments.saturation, adjustments.luminance) != (0.0, 1.0, 1.0):
        buffer = adjust_hsl(buffer, adjustments.hue, adjustments.saturation, adjustments.luminance)
    if adjustments.contrast != 1.0:
        buffer = adjust_contrast(buffer, adjustments.contrast)
    if adjustments.brightness != 1.0:
        buffer = adjust_brightness(buffer, adjustments.brightness)
    if adjustments.tint is not None:
        buffer = composite_tint(buffer, adjustments.tint, adjustments.tint_mode)
    if adjustments.filter is not None:
        kernel = named_kernel(adjustments.filter, adjustments.channel_mode)
        buffer = apply_filter(buffer, kernel)
    return buffer


__all__ = [
    "AdjustmentSettings",
    "LOOK_PRESETS",
    "adjust_brightness",
    "adjust_contrast",
    "adjust_hsl",
    "apply_adjustments",
    "brightness_offset",
    "contrast_factor",
]
