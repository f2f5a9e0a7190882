"""Pairwise and constant-tint blend operations (add, multiply, divide).

Length policy
-------------
Operands of different lengths are *not* an error. Only the first
``min(len(a), len(b))`` pixels are blended and the rest are dropped. When the
lengths match the result keeps the first operand's dimensions; otherwise it
takes the dimensions of the shorter operand, which are exactly consistent with
the truncated pixel count. An empty operand yields an empty result.

Domains
-------
``add`` saturates in the 8-bit integer domain on all four channels, except
that two fully transparent pixels always blend to transparent black.
``multiply`` and ``divide`` decode colour channels to linear light and alpha to
``[0, 1]``, operate there, clamp to ``[0, 1]`` and re-encode. Division by zero
saturates to 1.0 instead of overflowing.
"""
from __future__ import annotations

from typing import Callable, Dict, Optional, Sequence, Tuple, Union

import numpy as np

from .color_math import linear_to_srgb, quantize_unit, srgb_to_linear
from .pixels import Color, LinearColor, PixelBuffer

TintLike = Union[Color, LinearColor, Sequence[int], Sequence[float]]


def _paired(a: PixelBuffer, b: PixelBuffer) -> Optional[Tuple[int, int, int]]:
    count = min(len(a), len(b))
    if count == 0:
        return None
    if len(a) == len(b):
        return count, a.width, a.height
    shorter = a if len(a) < len(b) else b
    return count, shorter.width, shorter.height


def _to_normalised(pixels: np.ndarray) -> np.ndarray:
    out = np.empty(pixels.shape, dtype=np.float64)
    out[:, :3] = srgb_to_linear(pixels[:, :3])
    out[:, 3] = pixels[:, 3] / 255.0
    return out


def _from_normalised(values: np.ndarray) -> np.ndarray:
    values = np.clip(values, 0.0, 1.0)
    out = np.empty(values.shape, dtype=np.uint8)
    out[:, :3] = linear_to_srgb(values[:, :3])
    out[:, 3] = quantize_unit(values[:, 3])
    return out


def add(a: PixelBuffer, b: PixelBuffer) -> PixelBuffer:
    """Additive blend with per-channel saturation at 255."""
    paired = _paired(a, b)
    if paired is None:
        return PixelBuffer.empty()
    count, width, height = paired
    pa = a.pixels[:count].astype(np.int16)
    pb = b.pixels[:count].astype(np.int16)
    out = np.minimum(pa + pb, 255)
    out[(pa[:, 3] == 0) & (pb[:, 3] == 0)] = 0
    return PixelBuffer(width, height, out.astype(np.uint8))


def multiply(a: PixelBuffer, b: PixelBuffer) -> PixelBuffer:
    """Multiply blend in linear colour, alpha included."""
    paired = _paired(a, b)
    if paired is None:
        return PixelBuffer.empty()
    count, width, height = paired
    product = _to_normalised(a.pixels[:count]) * _to_normalised(b.pixels[:count])
    return PixelBuffer(width, height, _from_normalised(product))


def divide(a: PixelBuffer, b: PixelBuffer) -> PixelBuffer:
    """Divide blend in linear colour, alpha included, clamped to ``[0, 1]``."""
    paired = _paired(a, b)
    if paired is None:
        return PixelBuffer.empty()
    count, width, height = paired
    with np.errstate(divide="ignore", invalid="ignore"):
        quotient = _to_normalised(a.pixels[:count]) / _to_normalised(b.pixels[:count])
    quotient = np.nan_to_num(quotient, nan=1.0, posinf=1.0, neginf=0.0)
    return PixelBuffer(width, height, _from_normalised(quotient))


def tint_to_color(tint: TintLike) -> Color:
    """Resolve a tint to an 8-bit :class:`Color`.

    :class:`LinearColor` values, or sequences containing any float, are read as
    normalised ``[0, 1]`` channels and quantised; integer sequences are read
    as 8-bit channels. A missing alpha defaults to opaque.
    """
    channels = tuple(tint)
    if len(channels) == 3:
        channels = channels + ((1.0 if _is_normalised(tint) else 255),)
    if len(channels) != 4:
        raise ValueError(f"A tint needs 3 or 4 channels, got {len(channels)}")
    if _is_normalised(tint):
        return Color(*(int(v) for v in quantize_unit(np.asarray(channels, dtype=np.float64))))
    return Color(*(int(min(max(int(v), 0), 255)) for v in channels))


def _is_normalised(tint: TintLike) -> bool:
    if isinstance(tint, LinearColor):
        return True
    if isinstance(tint, Color):
        return False
    return any(isinstance(v, float) for v in tint)


def _broadcast(a: PixelBuffer, tint: TintLike) -> PixelBuffer:
    return PixelBuffer.filled(a.width, a.height, tint_to_color(tint))


def add_tint(a: PixelBuffer, color: TintLike) -> PixelBuffer:
    """Add a constant colour to every pixel of *a*."""
    if a.is_empty:
        return PixelBuffer.empty()
    return add(a, _broadcast(a, color))


def multiply_tint(a: PixelBuffer, color: TintLike) -> PixelBuffer:
    """Multiply every pixel of *a* by a constant colour."""
    if a.is_empty:
        return PixelBuffer.empty()
    return multiply(a, _broadcast(a, color))


def divide_tint(a: PixelBuffer, color: TintLike) -> PixelBuffer:
    """Divide every pixel of *a* by a constant colour."""
    if a.is_empty:
        return PixelBuffer.empty()
    return divide(a, _broadcast(a, color))


BLEND_OPERATIONS: Dict[str, Callable[[PixelBuffer, PixelBuffer], PixelBuffer]] = {
    "add": add,
    "multiply": multiply,
    "divide": divide,
}

TINT_OPERATIONS: Dict[str, Callable[[PixelBuffer, TintLike], PixelBuffer]] = {
    "add": add_tint,
    "multiply": multiply_tint,
    "divide": divide_tint,
}


def composite(a: PixelBuffer, b: PixelBuffer, mode: str) -> PixelBuffer:
    """Blend two buffers using the operation named by *mode*."""
    try:
        operation = BLEND_OPERATIONS[mode]
    except KeyError:
        raise ValueError(f"Unknown blend mode {mode!r}; choose from {sorted(BLEND_OPERATIONS)}") from None
    return operation(a, b)


def composite_tint(a: PixelBuffer, color: TintLike, mode: str) -> PixelBuffer:
    """Blend a constant tint into *a* using the operation named by *mode*."""
    try:
        operation = TINT_OPERATIONS[mode]
    except KeyError:
        raise ValueError(f"Unknown tint mode {mode!r}; choose from {sorted(TINT_OPERATIONS)}") from None
    return operation(a, color)


__all__ = [
    "BLEND_OPERATIONS",
    "TINT_OPERATIONS",
    "add",
    "add_tint",
    "composite",
    "composite_tint",
    "divide",
    "divide_tint",
    "multiply",
    "multiply_tint",
    "tint_to_color",
]
