"""Exception taxonomy shared by the bitmap toolkit."""
from __future__ import annotations


class BitmapError(Exception):
    """Base class for every error raised by :mod:`bitmap_toolkit`."""


class DimensionMismatch(BitmapError, ValueError):
    """Raised when a pixel count does not agree with the declared dimensions."""


class InvalidKernel(BitmapError, ValueError):
    """Raised when a convolution kernel has no area or a malformed weight list."""


class UnsupportedChannelMode(BitmapError, ValueError):
    """Raised when a channel mode cannot be resolved or honoured."""


class DecodeError(BitmapError):
    """Raised by a codec when a payload cannot be decoded."""


class EncodeError(BitmapError):
    """Raised by a codec when a buffer cannot be represented in the target format."""


class InvalidResource(BitmapError, LookupError):
    """Raised by an asset host for stale, released or empty resource handles."""


__all__ = [
    "BitmapError",
    "DecodeError",
    "DimensionMismatch",
    "EncodeError",
    "InvalidKernel",
    "InvalidResource",
    "UnsupportedChannelMode",
]
