"""Pixel buffer value type and the RGBA colour tuples that travel with it.

A :class:`PixelBuffer` is an immutable rectangle of 8-bit RGBA pixels stored
row-major from the top-left corner. Every transform in the toolkit receives a
buffer and returns a new one; the backing :mod:`numpy` array is marked
read-only so that accidental in-place edits fail loudly instead of leaking
between callers.

Example Usage
-------------

    from bitmap_toolkit import Color, PixelBuffer

    buffer = PixelBuffer(2, 1, [(255, 0, 0, 255), (0, 0, 255, 128)])
    buffer.get(1, 0)          # Color(r=0, g=0, b=255, a=128)
    buffer.to_array().shape   # (1, 2, 4)
"""
from __future__ import annotations

import dataclasses
from typing import Iterable, NamedTuple, Sequence, Tuple, Union

import numpy as np

from .errors import DimensionMismatch


class Color(NamedTuple):
    """An 8-bit RGBA pixel value."""

    r: int
    g: int
    b: int
    a: int = 255


class LinearColor(NamedTuple):
    """A normalised RGBA colour with channels nominally in ``[0, 1]``."""

    r: float
    g: float
    b: float
    a: float = 1.0


PixelData = Union[np.ndarray, Sequence[Sequence[int]], Iterable[Sequence[int]]]


def _coerce_pixels(pixels: PixelData) -> np.ndarray:
    if isinstance(pixels, np.ndarray) and pixels.dtype == np.uint8:
        arr = pixels
    else:
        raw = np.asarray(list(pixels) if not isinstance(pixels, np.ndarray) else pixels)
        if raw.size == 0:
            return np.zeros((0, 4), dtype=np.uint8)
        if not np.issubdtype(raw.dtype, np.number):
            raise ValueError(f"Pixel channels must be numeric, got dtype {raw.dtype}")
        if np.any(raw < 0) or np.any(raw > 255):
            raise ValueError("Pixel channels must lie within [0, 255]")
        arr = raw.astype(np.uint8)

    if arr.size == 0:
        return np.zeros((0, 4), dtype=np.uint8)
    if arr.shape[-1] != 4:
        raise DimensionMismatch(f"Pixels must carry 4 channels (RGBA), got shape {arr.shape}")
    return np.ascontiguousarray(arr.reshape(-1, 4))


@dataclasses.dataclass(frozen=True, eq=False)
class PixelBuffer:
    """Immutable rectangle of RGBA8 pixels.

    Attributes:
        width: Number of pixel columns.
        height: Number of pixel rows.
        pixels: Read-only ``uint8`` array of shape ``(width * height, 4)``.

    Raises:
        DimensionMismatch: If the pixel count differs from ``width * height``.
    """

    width: int
    height: int
    pixels: np.ndarray

    def __post_init__(self) -> None:
        width = int(self.width)
        height = int(self.height)
        if width < 0 or height < 0:
            raise DimensionMismatch(f"Dimensions must be non-negative, got {width}x{height}")
        arr = _coerce_pixels(self.pixels)
        if arr.shape[0] != width * height:
            raise DimensionMismatch(
                f"Expected {width * height} pixels for a {width}x{height} buffer, got {arr.shape[0]}"
            )
        if arr.base is not None or arr.flags.writeable:
            arr = arr.copy()
        arr.setflags(write=False)
        object.__setattr__(self, "width", width)
        object.__setattr__(self, "height", height)
        object.__setattr__(self, "pixels", arr)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "PixelBuffer":
        """Build a buffer from an ``(height, width, 4)`` array."""
        arr = np.asarray(arr)
        if arr.ndim != 3 or arr.shape[2] != 4:
            raise DimensionMismatch(f"Expected an (H, W, 4) array, got shape {arr.shape}")
        height, width = arr.shape[:2]
        return cls(width, height, arr.reshape(-1, 4))

    @classmethod
    def filled(cls, width: int, height: int, color: Sequence[int]) -> "PixelBuffer":
        """Return a buffer where every pixel equals *color*."""
        row = np.asarray(color, dtype=np.int64)
        pixels = np.broadcast_to(row, (max(width, 0) * max(height, 0), 4))
        return cls(width, height, pixels)

    @classmethod
    def empty(cls) -> "PixelBuffer":
        return cls(0, 0, np.zeros((0, 4), dtype=np.uint8))

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def __len__(self) -> int:
        return int(self.pixels.shape[0])

    def get(self, x: int, y: int) -> Color:
        """Return the pixel at column *x* and row *y*.

        Raises:
            IndexError: If the coordinate lies outside the buffer.
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} buffer")
        r, g, b, a = self.pixels[y * self.width + x]
        return Color(int(r), int(g), int(b), int(a))

    def to_array(self) -> np.ndarray:
        """Return a writable ``(height, width, 4)`` copy of the pixels."""
        return self.pixels.reshape(self.height, self.width, 4).copy()

    def to_bytes(self) -> bytes:
        """Return the raw row-major RGBA8 byte stream."""
        return self.pixels.tobytes()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.size == other.size and np.array_equal(self.pixels, other.pixels)

    def __hash__(self) -> int:
        return hash((self.width, self.height, self.pixels.tobytes()))

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self.width}, height={self.height})"


def resize_buffer(buffer: PixelBuffer, new_width: int, new_height: int) -> PixelBuffer:
    """Resample *buffer* to ``new_width`` x ``new_height`` with bilinear filtering.

    Any zero dimension, on either side, yields an empty buffer.
    """
    if buffer.is_empty or new_width <= 0 or new_height <= 0:
        return PixelBuffer.empty()
    if buffer.size == (new_width, new_height):
        return buffer

    arr = buffer.to_array().astype(np.float32)
    height, width = arr.shape[:2]
    x = np.linspace(0, width - 1, new_width, dtype=np.float32)
    y = np.linspace(0, height - 1, new_height, dtype=np.float32)
    x0 = np.floor(x).astype(int)
    x1 = np.clip(x0 + 1, 0, width - 1)
    y0 = np.floor(y).astype(int)
    y1 = np.clip(y0 + 1, 0, height - 1)
    x_weight = (x - x0).reshape(1, -1, 1)
    y_weight = (y - y0).reshape(-1, 1, 1)

    Ia = arr[np.ix_(y0, x0)]
    Ib = arr[np.ix_(y0, x1)]
    Ic = arr[np.ix_(y1, x0)]
    Id = arr[np.ix_(y1, x1)]

    top = Ia * (1.0 - x_weight) + Ib * x_weight
    bottom = Ic * (1.0 - x_weight) + Id * x_weight
    resized = top * (1.0 - y_weight) + bottom * y_weight
    return PixelBuffer.from_array(np.clip(np.rint(resized), 0, 255).astype(np.uint8))


__all__ = [
    "Color",
    "LinearColor",
    "PixelBuffer",
    "resize_buffer",
]
