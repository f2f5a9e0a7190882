"""Image format enumerations and the registry that maps between them.

:class:`ImageFormat` is the toolkit's own classification tag. :class:`CodecFormat`
lists the identifiers the codec layer works with natively. The two mapping
functions are total: anything unrecognised, including values of the wrong
type, maps to the ``INVALID`` member of the target enumeration.
"""
from __future__ import annotations

import enum
from pathlib import Path
from typing import Dict, Optional, Union


class ImageFormat(enum.IntEnum):
    """Container formats understood by the toolkit."""

    INVALID = 0
    PNG = 1
    JPEG = 2
    GRAYSCALE_JPEG = 3
    BMP = 4
    ICO = 5
    EXR = 6
    ICNS = 7

    @classmethod
    def coerce(cls, value: Union["ImageFormat", str]) -> "ImageFormat":
        """Resolve a member or its case-insensitive name; unknown names give ``INVALID``."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().upper().replace("-", "_")
            aliases = {"JPG": "JPEG", "GREYSCALE_JPEG": "GRAYSCALE_JPEG"}
            return cls.__members__.get(aliases.get(key, key), cls.INVALID)
        return cls.INVALID


class CodecFormat(enum.Enum):
    """Native format identifiers of the codec layer.

    Each value is ``(pillow_format, pillow_mode)``; ``None`` marks a format the
    codec recognises but cannot read or write. ``TGA`` has no toolkit-side
    counterpart.
    """

    INVALID = (None, None)
    PNG = ("PNG", "RGBA")
    JPEG = ("JPEG", "RGB")
    GRAYSCALE_JPEG = ("JPEG", "L")
    BMP = ("BMP", "RGB")
    ICO = ("ICO", "RGBA")
    EXR = ("EXR", None)
    ICNS = ("ICNS", "RGBA")
    TGA = ("TGA", "RGBA")

    @property
    def pillow_format(self) -> Optional[str]:
        return self.value[0]

    @property
    def pillow_mode(self) -> Optional[str]:
        return self.value[1]


_TO_CODEC: Dict[ImageFormat, CodecFormat] = {
    ImageFormat.INVALID: CodecFormat.INVALID,
    ImageFormat.PNG: CodecFormat.PNG,
    ImageFormat.JPEG: CodecFormat.JPEG,
    ImageFormat.GRAYSCALE_JPEG: CodecFormat.GRAYSCALE_JPEG,
    ImageFormat.BMP: CodecFormat.BMP,
    ImageFormat.ICO: CodecFormat.ICO,
    ImageFormat.EXR: CodecFormat.EXR,
    ImageFormat.ICNS: CodecFormat.ICNS,
}

_FROM_CODEC: Dict[CodecFormat, ImageFormat] = {codec: image for image, codec in _TO_CODEC.items()}


def to_codec_format(image_format: object) -> CodecFormat:
    """Map a toolkit format to the codec's identifier."""
    if not isinstance(image_format, ImageFormat):
        return CodecFormat.INVALID
    return _TO_CODEC.get(image_format, CodecFormat.INVALID)


def from_codec_format(codec_format: object) -> ImageFormat:
    """Map a codec identifier back to the toolkit format."""
    if not isinstance(codec_format, CodecFormat):
        return ImageFormat.INVALID
    return _FROM_CODEC.get(codec_format, ImageFormat.INVALID)


FORMAT_EXTENSIONS: Dict[ImageFormat, str] = {
    ImageFormat.PNG: ".png",
    ImageFormat.JPEG: ".jpg",
    ImageFormat.GRAYSCALE_JPEG: ".jpg",
    ImageFormat.BMP: ".bmp",
    ImageFormat.ICO: ".ico",
    ImageFormat.EXR: ".exr",
    ImageFormat.ICNS: ".icns",
}

_EXTENSION_FORMATS: Dict[str, ImageFormat] = {
    ".png": ImageFormat.PNG,
    ".jpg": ImageFormat.JPEG,
    ".jpeg": ImageFormat.JPEG,
    ".bmp": ImageFormat.BMP,
    ".ico": ImageFormat.ICO,
    ".exr": ImageFormat.EXR,
    ".icns": ImageFormat.ICNS,
}


def format_for_path(path: Union[str, Path]) -> ImageFormat:
    """Guess a format from a file extension (case-insensitive)."""
    return _EXTENSION_FORMATS.get(Path(path).suffix.lower(), ImageFormat.INVALID)


__all__ = [
    "CodecFormat",
    "FORMAT_EXTENSIONS",
    "ImageFormat",
    "format_for_path",
    "from_codec_format",
    "to_codec_format",
]
