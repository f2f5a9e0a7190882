"""Asset host boundary: pixel buffers to displayable resources and back.

:class:`AssetHost` is the protocol; :class:`InMemoryAssetHost` keeps textures
in a process-local registry, which is enough for batch tooling and tests.
Each texture stores a mip chain whose level 0 is the full-resolution buffer.
"""
from __future__ import annotations

import dataclasses
import logging
import threading
import uuid
from typing import Dict, List, Protocol, Tuple

from .errors import InvalidResource
from .pixels import Color, PixelBuffer, resize_buffer

LOGGER = logging.getLogger("bitmap_toolkit")


@dataclasses.dataclass(frozen=True)
class ResourceHandle:
    """Opaque reference to a texture owned by an asset host."""

    resource_id: str
    generation: int


@dataclasses.dataclass
class Texture:
    mips: List[PixelBuffer]
    generation: int


class AssetHost(Protocol):
    """Converts between pixel buffers and host resources."""

    def buffer_to_resource(self, buffer: PixelBuffer) -> ResourceHandle:
        ...

    def resource_to_buffer(self, handle: ResourceHandle) -> PixelBuffer:
        ...


def build_mip_chain(buffer: PixelBuffer) -> List[PixelBuffer]:
    """Return *buffer* followed by successively halved copies down to 1x1."""
    if buffer.is_empty:
        return []
    chain = [buffer]
    width, height = buffer.size
    while width > 1 or height > 1:
        width, height = max(1, width // 2), max(1, height // 2)
        chain.append(resize_buffer(chain[-1], width, height))
    return chain


class InMemoryAssetHost:
    """Thread-safe in-process texture registry.

    Args:
        generate_mips: Build a full mip chain for each uploaded buffer.
    """

    def __init__(self, generate_mips: bool = False) -> None:
        self.generate_mips = generate_mips
        self._textures: Dict[str, Texture] = {}
        self._generation = 0
        self._lock = threading.Lock()

    def buffer_to_resource(self, buffer: PixelBuffer) -> ResourceHandle:
        """Register *buffer* as a new texture and return its handle.

        Empty buffers are accepted but produce a texture without mip data,
        which :meth:`resource_to_buffer` rejects.
        """
        if buffer.is_empty:
            mips: List[PixelBuffer] = []
        elif self.generate_mips:
            mips = build_mip_chain(buffer)
        else:
            mips = [buffer]
        with self._lock:
            self._generation += 1
            handle = ResourceHandle(uuid.uuid4().hex, self._generation)
            self._textures[handle.resource_id] = Texture(mips=mips, generation=handle.generation)
        LOGGER.debug(
            "Registered texture %s (%sx%s, %s mips)", handle.resource_id, buffer.width, buffer.height, len(mips)
        )
        return handle

    def _lookup(self, handle: ResourceHandle, require_mips: bool = True) -> Texture:
        texture = self._textures.get(getattr(handle, "resource_id", None))  # type: ignore[arg-type]
        if texture is None or texture.generation != getattr(handle, "generation", None):
            raise InvalidResource(f"Stale or unknown resource handle: {handle!r}")
        if require_mips and not texture.mips:
            raise InvalidResource(f"Resource {handle.resource_id} has no mip data")
        return texture

    def resource_to_buffer(self, handle: ResourceHandle, mip_level: int = 0) -> PixelBuffer:
        """Read back the pixels of a texture.

        Raises:
            InvalidResource: If the handle is stale, released, or has no mip data.
        """
        with self._lock:
            texture = self._lookup(handle)
        if not 0 <= mip_level < len(texture.mips):
            raise InvalidResource(f"Resource {handle.resource_id} has no mip level {mip_level}")
        return texture.mips[mip_level]

    def resource_size(self, handle: ResourceHandle) -> Tuple[int, int]:
        return self.resource_to_buffer(handle).size

    def pixel_color(self, handle: ResourceHandle, x: int, y: int) -> Color:
        return self.resource_to_buffer(handle).get(x, y)

    def mip_count(self, handle: ResourceHandle) -> int:
        with self._lock:
            return len(self._lookup(handle).mips)

    def release(self, handle: ResourceHandle) -> None:
        """Drop a texture; later reads through *handle* raise :class:`InvalidResource`."""
        with self._lock:
            self._lookup(handle, require_mips=False)
            del self._textures[handle.resource_id]

    def __len__(self) -> int:
        with self._lock:
            return len(self._textures)


__all__ = [
    "AssetHost",
    "InMemoryAssetHost",
    "ResourceHandle",
    "build_mip_chain",
]
