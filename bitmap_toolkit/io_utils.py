"""File-system helpers around the codec: load, inspect and atomically save images.

Key Components
--------------

ProcessingContext
    Context manager for atomic file operations with staged writes.

Functions
---------

load_image / save_image
    Read a file into a :class:`PixelBuffer` and write one back through a codec.

image_format / image_size
    Inspect a file without running any pixel operation.
"""
from __future__ import annotations

import contextlib
import dataclasses
import logging
import os
import uuid
from pathlib import Path
from typing import Optional, Tuple, Union

from .codec import Codec, PillowCodec
from .errors import DecodeError, EncodeError
from .formats import ImageFormat, format_for_path
from .pixels import PixelBuffer

LOGGER = logging.getLogger("bitmap_toolkit")

PathLike = Union[str, Path]


@dataclasses.dataclass
class ProcessingContext:
    """Context manager for atomic file writes using staged temporary files.

    Writes to a temporary file in the same directory as the destination, then
    atomically moves it to the final location on success. Cleans up temporary
    files on failure.

    Attributes:
        destination: Final output file path.
        suffix: Temporary file suffix (default: ".tmp").
    """

    destination: Path
    suffix: str = ".tmp"

    def __post_init__(self) -> None:
        self._staged_path: Optional[Path] = None

    def _temp_path(self) -> Path:
        unique = uuid.uuid4().hex
        name = f".{self.destination.name}{self.suffix}-{unique}"
        return self.destination.parent / name

    def __enter__(self) -> Path:
        self.destination.parent.mkdir(parents=True, exist_ok=True)
        self._staged_path = self._temp_path()
        return self._staged_path

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self._staged_path is None:
            return False

        staged = self._staged_path
        self._staged_path = None

        if exc_type is None:
            try:
                os.replace(staged, self.destination)
            except Exception:
                with contextlib.suppress(Exception):
                    staged.unlink()
                raise
        else:
            with contextlib.suppress(FileNotFoundError):
                staged.unlink()
        return False


def _default_codec(codec: Optional[Codec]) -> Codec:
    return codec if codec is not None else PillowCodec()


def image_format(path: PathLike, codec: Optional[Codec] = None) -> ImageFormat:
    """Return the format of the file at *path* from its magic bytes.

    Raises:
        FileNotFoundError: If *path* does not exist.
    """
    with open(path, "rb") as handle:
        head = handle.read(16)
    return _default_codec(codec).detect_format(head)


def image_size(path: PathLike, codec: Optional[Codec] = None) -> Tuple[int, int]:
    """Return ``(width, height)`` of the image at *path* from its header.

    Raises:
        FileNotFoundError: If *path* does not exist.
        DecodeError: If the file is not a recognised image.
    """
    codec = _default_codec(codec)
    data = Path(path).read_bytes()
    detected = codec.detect_format(data)
    if detected is ImageFormat.INVALID:
        raise DecodeError(f"Unrecognised image format: {path}")
    return codec.read_size(data, detected)


def load_image(path: PathLike, codec: Optional[Codec] = None) -> PixelBuffer:
    """Decode the file at *path* into an RGBA buffer.

    Raises:
        FileNotFoundError: If *path* does not exist.
        DecodeError: If the format is unrecognised or the payload is malformed.
    """
    codec = _default_codec(codec)
    data = Path(path).read_bytes()
    detected = codec.detect_format(data)
    if detected is ImageFormat.INVALID:
        raise DecodeError(f"Unrecognised image format: {path}")
    LOGGER.debug("Loading %s as %s", path, detected.name)
    return codec.decode(data, detected)


def encode_png(buffer: PixelBuffer, codec: Optional[Codec] = None) -> bytes:
    """Return *buffer* compressed as PNG bytes."""
    return _default_codec(codec).encode(buffer, ImageFormat.PNG)


def save_image(
    destination: PathLike,
    buffer: PixelBuffer,
    image_format: Optional[ImageFormat] = None,
    codec: Optional[Codec] = None,
) -> None:
    """Encode *buffer* and write it to *destination* atomically.

    Args:
        destination: Output path.
        buffer: Pixels to write.
        image_format: Target format; inferred from the extension when omitted.
        codec: Codec to encode with; defaults to :class:`PillowCodec`.

    Raises:
        EncodeError: If the format is unknown or cannot represent the buffer.
    """
    destination = Path(destination)
    target = image_format if image_format is not None else format_for_path(destination)
    if target is ImageFormat.INVALID:
        raise EncodeError(f"Cannot infer an output format for {destination}")
    payload = _default_codec(codec).encode(buffer, target)
    with ProcessingContext(destination) as staged_path:
        staged_path.write_bytes(payload)
    LOGGER.debug("Wrote %s (%s bytes)", destination, len(payload))


__all__ = [
    "ProcessingContext",
    "encode_png",
    "image_format",
    "image_size",
    "load_image",
    "save_image",
]
