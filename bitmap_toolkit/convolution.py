"""Convolution engine, channel-mode projection, and the preset kernel table.

Numeric contract
----------------
For every output pixel the engine accumulates, over every kernel cell,
``sample * (weight * factor) + bias`` for R, G and B in floating point. The
bias is therefore added once per cell, not once per pixel. The raw sums are
narrowed to 8 bits by truncating toward zero and wrapping modulo 256 (no
clamping), so a sum of -1 becomes 255 and 256 becomes 0. The narrowed triple
and the chosen alpha are then routed through :func:`project_channels`.

Edge handling
-------------
Neighbour coordinates are flattened to a linear pixel index *before* being
clamped to ``[0, width * height - 1]``. Samples that fall off the left or
right edge therefore read from the end of the previous row or the start of
the next one instead of repeating the border column; only the very first and
last pixels behave like a clamped border. Existing filter output depends on
this behaviour, so it is kept as-is.

Example Usage
-------------

    from bitmap_toolkit import ChannelMode, FilterKind, apply_filter, named_kernel

    kernel = named_kernel(FilterKind.GAUSSIAN5)
    blurred = apply_filter(buffer, kernel)

    red_edges = apply_filter(buffer, named_kernel("edge_detection", ChannelMode.R))
"""
from __future__ import annotations

import dataclasses
import enum
import logging
import math
from concurrent.futures import Executor, Future
from typing import Dict, Optional, Sequence, Tuple, Union

import numpy as np

from .errors import DimensionMismatch, InvalidKernel, UnsupportedChannelMode
from .pixels import Color, PixelBuffer

LOGGER = logging.getLogger("bitmap_toolkit")


class ChannelMode(enum.Enum):
    """Selects which output channels carry the convolved values."""

    RGB = "rgb"
    RGBA = "rgba"
    R = "r"
    G = "g"
    B = "b"
    A = "a"
    GREYSCALE = "greyscale"

    @classmethod
    def coerce(cls, value: Union["ChannelMode", str]) -> "ChannelMode":
        """Resolve a member or its case-insensitive name/value."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            for member in cls:
                if key in (member.value, member.name.lower()):
                    return member
        raise UnsupportedChannelMode(
            f"Unknown channel mode {value!r}; choose from {[m.value for m in cls]}"
        )

    @property
    def uses_source_alpha(self) -> bool:
        return self in (ChannelMode.RGBA, ChannelMode.A)


class FilterKind(enum.Enum):
    """Names of the built-in kernels."""

    IDENTITY = "identity"
    BOX_BLUR = "box_blur"
    GAUSSIAN3 = "gaussian3"
    GAUSSIAN5 = "gaussian5"
    SHARPEN = "sharpen"
    EDGE_DETECTION = "edge_detection"

    @classmethod
    def coerce(cls, value: Union["FilterKind", str]) -> "FilterKind":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower().replace("-", "_")
            for member in cls:
                if key in (member.value, member.name.lower()):
                    return member
        raise ValueError(f"Unknown filter {value!r}; choose from {[m.value for m in cls]}")


@dataclasses.dataclass(frozen=True)
class Kernel:
    """A convolution matrix with its post-multiply factor, bias and channel mode.

    Attributes:
        width: Number of kernel columns.
        height: Number of kernel rows.
        weights: Row-major coefficients, ``width * height`` of them.
        factor: Multiplier applied to every weight.
        bias: Added for every kernel cell during accumulation.
        channel_mode: Output channel routing.

    Raises:
        InvalidKernel: For a zero-area kernel, a weight count that does not
            match its size, or non-finite coefficients.
    """

    width: int
    height: int
    weights: Tuple[float, ...]
    factor: float = 1.0
    bias: float = 0.0
    channel_mode: ChannelMode = ChannelMode.RGB

    def __post_init__(self) -> None:
        width = int(self.width)
        height = int(self.height)
        if width <= 0 or height <= 0:
            raise InvalidKernel(f"Kernel size must be positive, got {width}x{height}")
        weights = tuple(float(w) for w in self.weights)
        if len(weights) != width * height:
            raise InvalidKernel(
                f"A {width}x{height} kernel needs {width * height} weights, got {len(weights)}"
            )
        factor = float(self.factor)
        bias = float(self.bias)
        if not all(math.isfinite(v) for v in weights + (factor, bias)):
            raise InvalidKernel("Kernel weights, factor and bias must be finite numbers")
        object.__setattr__(self, "width", width)
        object.__setattr__(self, "height", height)
        object.__setattr__(self, "weights", weights)
        object.__setattr__(self, "factor", factor)
        object.__setattr__(self, "bias", bias)
        object.__setattr__(self, "channel_mode", ChannelMode.coerce(self.channel_mode))

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def anchor(self) -> Tuple[int, int]:
        """Centre offset; even sizes floor toward zero."""
        return self.width // 2, self.height // 2

    def with_channel_mode(self, mode: Union[ChannelMode, str]) -> "Kernel":
        return dataclasses.replace(self, channel_mode=ChannelMode.coerce(mode))


_BINOMIAL5 = (1, 4, 6, 4, 1)

KERNEL_PRESETS: Dict[FilterKind, Kernel] = {
    FilterKind.IDENTITY: Kernel(3, 3, (0, 0, 0, 0, 1, 0, 0, 0, 0), 1.0, 0.0, ChannelMode.RGBA),
    FilterKind.BOX_BLUR: Kernel(3, 3, (1,) * 9, 1.0 / 9.0, 0.0, ChannelMode.RGBA),
    FilterKind.GAUSSIAN3: Kernel(3, 3, (1, 2, 1, 2, 4, 2, 1, 2, 1), 1.0 / 16.0, 0.0, ChannelMode.RGBA),
    FilterKind.GAUSSIAN5: Kernel(
        5, 5, tuple(a * b for a in _BINOMIAL5 for b in _BINOMIAL5), 1.0 / 256.0, 0.0, ChannelMode.RGBA
    ),
    FilterKind.SHARPEN: Kernel(3, 3, (0, -1, 0, -1, 5, -1, 0, -1, 0), 1.0, 0.0, ChannelMode.RGBA),
    FilterKind.EDGE_DETECTION: Kernel(
        3, 3, (-1, -1, -1, -1, 8, -1, -1, -1, -1), 1.0, 0.0, ChannelMode.GREYSCALE
    ),
}


def named_kernel(
    kind: Union[FilterKind, str], channel_mode: Optional[Union[ChannelMode, str]] = None
) -> Kernel:
    """Return a preset kernel, optionally overriding its default channel mode."""
    kernel = KERNEL_PRESETS[FilterKind.coerce(kind)]
    if channel_mode is not None:
        kernel = kernel.with_channel_mode(channel_mode)
    return kernel


def narrow_u8(values: np.ndarray) -> np.ndarray:
    """Truncate toward zero and wrap modulo 256, the way an 8-bit store does."""
    return np.bitwise_and(np.trunc(values).astype(np.int64), 0xFF).astype(np.uint8)


def project_channel_array(rgb: np.ndarray, alpha: np.ndarray, mode: ChannelMode) -> np.ndarray:
    """Route ``(N, 3)`` colour values and ``(N,)`` alpha into ``(N, 4)`` RGBA8."""
    count = rgb.shape[0]
    out = np.zeros((count, 4), dtype=np.uint8)
    if mode is ChannelMode.RGB:
        out[:, :3] = rgb
        out[:, 3] = 255
    elif mode is ChannelMode.RGBA:
        out[:, :3] = rgb
        out[:, 3] = alpha
    elif mode is ChannelMode.R:
        out[:, 0] = rgb[:, 0]
        out[:, 3] = 255
    elif mode is ChannelMode.G:
        out[:, 1] = rgb[:, 1]
        out[:, 3] = 255
    elif mode is ChannelMode.B:
        out[:, 2] = rgb[:, 2]
        out[:, 3] = 255
    elif mode is ChannelMode.A:
        out[:, :3] = alpha[:, None]
    elif mode is ChannelMode.GREYSCALE:
        grey = rgb[:, 0] * 0.2989 + rgb[:, 1] * 0.5870 + rgb[:, 2] * 0.1140
        out[:, :3] = narrow_u8(grey)[:, None]
        out[:, 3] = 255
    else:
        raise UnsupportedChannelMode(f"No projection for channel mode {mode!r}")
    return out


def project_channels(color: Sequence[int], mode: Union[ChannelMode, str]) -> Color:
    """Apply a channel-mode projection to a single pixel."""
    pixel = np.asarray([tuple(color)], dtype=np.uint8)
    projected = project_channel_array(pixel[:, :3], pixel[:, 3], ChannelMode.coerce(mode))
    return Color(*(int(v) for v in projected[0]))


def apply_filter(
    buffer: PixelBuffer, kernel: Kernel, size: Optional[Tuple[int, int]] = None
) -> PixelBuffer:
    """Convolve *buffer* with *kernel*.

    Args:
        buffer: Source pixels.
        kernel: Matrix, factor, bias and channel mode to apply.
        size: Optional ``(width, height)``; when given it must match the buffer.

    Returns:
        New buffer with the same dimensions as *buffer*.

    Raises:
        DimensionMismatch: If *size* disagrees with the buffer dimensions.
    """
    if size is not None and tuple(size) != buffer.size:
        raise DimensionMismatch(f"Declared size {tuple(size)} does not match buffer size {buffer.size}")
    if buffer.is_empty:
        return buffer

    width, height = buffer.size
    count = len(buffer)
    source = buffer.pixels
    colour = source[:, :3].astype(np.float64)
    base = np.arange(count, dtype=np.int64)
    anchor_x, anchor_y = kernel.anchor
    mode = kernel.channel_mode

    LOGGER.debug(
        "Applying %sx%s kernel (factor=%s bias=%s mode=%s) to %sx%s buffer",
        kernel.width, kernel.height, kernel.factor, kernel.bias, mode.value, width, height,
    )

    accum = np.zeros((count, 3), dtype=np.float64)
    for ky in range(kernel.height):
        for kx in range(kernel.width):
            weight = kernel.weights[ky * kernel.width + kx] * kernel.factor
            shift = (ky - anchor_y) * width + (kx - anchor_x)
            index = np.clip(base + shift, 0, count - 1)
            accum += colour[index] * weight + kernel.bias

    if mode.uses_source_alpha:
        alpha = source[:, 3]
    else:
        alpha = np.full(count, 255, dtype=np.uint8)
    pixels = project_channel_array(narrow_u8(accum), alpha, mode)
    return PixelBuffer(width, height, pixels)


def submit_filter(executor: Executor, buffer: PixelBuffer, kernel: Kernel) -> "Future[PixelBuffer]":
    """Schedule :func:`apply_filter` on a caller-owned executor."""
    return executor.submit(apply_filter, buffer, kernel)


__all__ = [
    "ChannelMode",
    "FilterKind",
    "KERNEL_PRESETS",
    "Kernel",
    "apply_filter",
    "named_kernel",
    "narrow_u8",
    "project_channel_array",
    "project_channels",
    "submit_filter",
]
