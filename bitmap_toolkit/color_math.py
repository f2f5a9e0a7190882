"""Colour-space conversions and clamped arithmetic used by adjustments and compositing.

Every function accepts scalars or :mod:`numpy` arrays and works channel-wise.
HSV conversions operate in linear light: callers decode 8-bit sRGB with
:func:`srgb_to_linear` first and re-encode with :func:`linear_to_srgb` after.
Hue is expressed in degrees on ``[0, 360)``; saturation and value on ``[0, 1]``.
"""
from __future__ import annotations

from typing import Union

import numpy as np

ArrayLike = Union[float, np.ndarray]


def clamp(value: ArrayLike, lo: float, hi: float) -> ArrayLike:
    """Clamp *value* into ``[lo, hi]``."""
    if isinstance(value, np.ndarray):
        return np.clip(value, lo, hi)
    return min(max(value, lo), hi)


def quantize(value: ArrayLike) -> np.ndarray:
    """Clamp to ``[0, 255]`` and round to the nearest 8-bit integer."""
    return np.rint(np.clip(np.asarray(value, dtype=np.float64), 0.0, 255.0)).astype(np.uint8)


def quantize_unit(value: ArrayLike) -> np.ndarray:
    """Map a normalised ``[0, 1]`` quantity to 8 bits, clamping first."""
    return quantize(np.clip(np.asarray(value, dtype=np.float64), 0.0, 1.0) * 255.0)


def srgb_to_linear(value: ArrayLike) -> np.ndarray:
    """Decode 8-bit sRGB channel values to linear light in ``[0, 1]``."""
    encoded = np.asarray(value, dtype=np.float64) / 255.0
    return np.where(
        encoded <= 0.04045,
        encoded / 12.92,
        np.power((encoded + 0.055) / 1.055, 2.4),
    )


def linear_to_srgb(value: ArrayLike) -> np.ndarray:
    """Encode linear light back to 8-bit sRGB, rounding to the nearest code value."""
    linear = np.clip(np.asarray(value, dtype=np.float64), 0.0, 1.0)
    encoded = np.where(
        linear <= 0.0031308,
        linear * 12.92,
        1.055 * np.power(linear, 1.0 / 2.4) - 0.055,
    )
    return quantize(encoded * 255.0)


def wrap_hue(hue: ArrayLike) -> ArrayLike:
    """Wrap a hue angle into ``[0, 360)`` (361 -> 1, -1 -> 359)."""
    wrapped = np.mod(np.asarray(hue, dtype=np.float64), 360.0)
    # np.mod rounds tiny negative angles up to exactly 360.0.
    wrapped = np.where(wrapped >= 360.0, 0.0, wrapped)
    return wrapped if wrapped.ndim else float(wrapped)


def rgb_to_hsv(arr: np.ndarray) -> np.ndarray:
    """Convert linear RGB (last axis of size 3) to HSV.

    Returns:
        Array of the same shape holding hue in degrees, saturation and value.
    """
    arr = np.asarray(arr, dtype=np.float64)
    r, g, b = arr[..., 0], arr[..., 1], arr[..., 2]
    maxc = np.max(arr, axis=-1)
    minc = np.min(arr, axis=-1)
    diff = maxc - minc

    safe_diff = np.where(diff == 0, 1.0, diff)
    rc = (maxc - r) / safe_diff
    gc = (maxc - g) / safe_diff
    bc = (maxc - b) / safe_diff

    hue = np.select(
        [diff == 0, maxc == r, maxc == g],
        [np.zeros_like(maxc), bc - gc, 2.0 + rc - bc],
        default=4.0 + gc - rc,
    )
    hue = np.mod(hue * 60.0, 360.0)

    saturation = np.where(maxc != 0, diff / np.where(maxc == 0, 1.0, maxc), 0.0)
    return np.stack([hue, saturation, maxc], axis=-1)


def hsv_to_rgb(arr: np.ndarray) -> np.ndarray:
    """Convert HSV (hue in degrees) back to linear RGB."""
    arr = np.asarray(arr, dtype=np.float64)
    h = np.mod(arr[..., 0], 360.0) / 360.0
    s, v = arr[..., 1], arr[..., 2]
    i = np.floor(h * 6.0).astype(int)
    f = h * 6.0 - i
    p = v * (1.0 - s)
    q = v * (1.0 - f * s)
    t = v * (1.0 - (1.0 - f) * s)

    i_mod = i % 6
    rgb = np.zeros(h.shape + (3,), dtype=np.float64)

    conditions = [
        (i_mod == 0, np.stack([v, t, p], axis=-1)),
        (i_mod == 1, np.stack([q, v, p], axis=-1)),
        (i_mod == 2, np.stack([p, v, t], axis=-1)),
        (i_mod == 3, np.stack([p, q, v], axis=-1)),
        (i_mod == 4, np.stack([t, p, v], axis=-1)),
        (i_mod == 5, np.stack([v, p, q], axis=-1)),
    ]
    for condition, value in conditions:
        rgb[condition] = value[condition]
    return rgb


def luminance(arr: np.ndarray) -> np.ndarray:
    """Return the Rec. 601 luma of 8-bit RGB values (last axis of size 3)."""
    arr = np.asarray(arr, dtype=np.float64)
    return arr[..., 0] * 0.2989 + arr[..., 1] * 0.5870 + arr[..., 2] * 0.1140


__all__ = [
    "clamp",
    "hsv_to_rgb",
    "linear_to_srgb",
    "luminance",
    "quantize",
    "quantize_unit",
    "rgb_to_hsv",
    "srgb_to_linear",
    "wrap_hue",
]
