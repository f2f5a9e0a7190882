"""Codec boundary: compressed file bytes to :class:`PixelBuffer` and back.

:class:`Codec` is the protocol the rest of the toolkit depends on;
:class:`PillowCodec` is the implementation backed by Pillow. Pillow failures
are wrapped in :class:`DecodeError` / :class:`EncodeError` with the original
exception chained.
"""
from __future__ import annotations

import io
import logging
from typing import Dict, Protocol, Tuple

import numpy as np
from PIL import Image

from .errors import DecodeError, EncodeError
from .formats import CodecFormat, ImageFormat, from_codec_format, to_codec_format
from .pixels import PixelBuffer

LOGGER = logging.getLogger("bitmap_toolkit")

_MAGIC: Tuple[Tuple[bytes, CodecFormat], ...] = (
    (b"\x89PNG\r\n\x1a\n", CodecFormat.PNG),
    (b"\xff\xd8\xff", CodecFormat.JPEG),
    (b"BM", CodecFormat.BMP),
    (b"\x00\x00\x01\x00", CodecFormat.ICO),
    (b"\x76\x2f\x31\x01", CodecFormat.EXR),
    (b"icns", CodecFormat.ICNS),
)

# Pillow resamples ICNS output to a fixed icon set.
_DECODE_ONLY = frozenset({CodecFormat.ICNS})

_MAX_DIMENSION: Dict[CodecFormat, int] = {CodecFormat.ICO: 256}


class Codec(Protocol):
    """Converts between compressed image bytes and pixel buffers."""

    def detect_format(self, data: bytes) -> ImageFormat:
        ...

    def decode(self, data: bytes, image_format: ImageFormat) -> PixelBuffer:
        ...

    def read_size(self, data: bytes, image_format: ImageFormat) -> Tuple[int, int]:
        ...

    def encode(self, buffer: PixelBuffer, image_format: ImageFormat) -> bytes:
        ...


def detect_codec_format(data: bytes) -> CodecFormat:
    """Identify a payload by its leading magic bytes."""
    head = bytes(data[:8])
    for magic, codec_format in _MAGIC:
        if head.startswith(magic):
            return codec_format
    return CodecFormat.INVALID


class PillowCodec:
    """:class:`Codec` implementation that delegates to Pillow."""

    def detect_format(self, data: bytes) -> ImageFormat:
        """Return the container format of *data*, or ``INVALID`` when unrecognised."""
        return from_codec_format(detect_codec_format(data))

    def decode(self, data: bytes, image_format: ImageFormat) -> PixelBuffer:
        """Decode *data* to an RGBA buffer.

        Raises:
            DecodeError: If the format is unsupported or the payload is malformed.
        """
        native = to_codec_format(image_format)
        if native.pillow_mode is None:
            raise DecodeError(f"Cannot decode {getattr(image_format, 'name', image_format)} images")
        try:
            with Image.open(io.BytesIO(data), formats=[native.pillow_format]) as image:
                image.load()
                rgba = np.array(image.convert("RGBA"))
        except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as exc:
            raise DecodeError(f"Malformed {native.pillow_format} payload: {exc}") from exc
        LOGGER.debug("Decoded %s image %sx%s", native.pillow_format, rgba.shape[1], rgba.shape[0])
        return PixelBuffer.from_array(rgba)

    def read_size(self, data: bytes, image_format: ImageFormat) -> Tuple[int, int]:
        """Return ``(width, height)`` from the image header without decoding pixels.

        Raises:
            DecodeError: If the format is unsupported or the header is malformed.
        """
        native = to_codec_format(image_format)
        if native.pillow_mode is None:
            raise DecodeError(f"Cannot read {getattr(image_format, 'name', image_format)} images")
        try:
            with Image.open(io.BytesIO(data), formats=[native.pillow_format]) as image:
                return image.size
        except (OSError, ValueError, SyntaxError) as exc:
            raise DecodeError(f"Malformed {native.pillow_format} header: {exc}") from exc

    def encode(self, buffer: PixelBuffer, image_format: ImageFormat) -> bytes:
        """Compress *buffer* into *image_format* at its exact dimensions.

        Raises:
            EncodeError: If the format cannot be written, the buffer is empty,
                or the format cannot hold the buffer's dimensions.
        """
        native = to_codec_format(image_format)
        if native.pillow_mode is None or native in _DECODE_ONLY:
            raise EncodeError(f"Cannot encode {getattr(image_format, 'name', image_format)} images")
        if buffer.is_empty:
            raise EncodeError("Cannot encode an empty buffer")
        options: Dict[str, object] = {}
        limit = _MAX_DIMENSION.get(native)
        if limit is not None:
            if buffer.width > limit or buffer.height > limit:
                raise EncodeError(
                    f"{native.pillow_format} holds at most {limit}x{limit} pixels, got {buffer.width}x{buffer.height}"
                )
            options["sizes"] = [buffer.size]
        image = Image.fromarray(buffer.to_array())
        if image.mode != native.pillow_mode:
            image = image.convert(native.pillow_mode)
        stream = io.BytesIO()
        try:
            image.save(stream, format=native.pillow_format, **options)
        except (OSError, ValueError, KeyError) as exc:
            raise EncodeError(f"Unable to write {native.pillow_format}: {exc}") from exc
        return stream.getvalue()


__all__ = [
    "Codec",
    "PillowCodec",
    "detect_codec_format",
]
