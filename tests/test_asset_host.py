from __future__ import annotations

import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

np = pytest.importorskip("numpy")

from bitmap_toolkit import (  # noqa: E402
    AdjustmentSettings,
    Color,
    InMemoryAssetHost,
    InvalidResource,
    PixelBuffer,
    ResourceHandle,
    process_resource,
)
from bitmap_toolkit.asset_host import build_mip_chain  # noqa: E402


def test_buffer_round_trips_through_host():
    host = InMemoryAssetHost()
    buffer = PixelBuffer.filled(3, 2, (1, 2, 3, 4))

    handle = host.buffer_to_resource(buffer)

    assert host.resource_to_buffer(handle) == buffer
    assert host.resource_size(handle) == (3, 2)
    assert host.pixel_color(handle, 2, 1) == Color(1, 2, 3, 4)
    assert host.mip_count(handle) == 1
    assert len(host) == 1


def test_handles_are_unique_and_generations_increase():
    host = InMemoryAssetHost()
    buffer = PixelBuffer.filled(1, 1, (0, 0, 0, 255))

    first = host.buffer_to_resource(buffer)
    second = host.buffer_to_resource(buffer)

    assert first.resource_id != second.resource_id
    assert second.generation > first.generation


def test_released_and_forged_handles_are_rejected():
    host = InMemoryAssetHost()
    handle = host.buffer_to_resource(PixelBuffer.filled(1, 1, (0, 0, 0, 255)))

    with pytest.raises(InvalidResource):
        host.resource_to_buffer(ResourceHandle(handle.resource_id, handle.generation + 1))
    with pytest.raises(InvalidResource):
        host.resource_to_buffer(ResourceHandle("unknown", 1))

    host.release(handle)
    with pytest.raises(InvalidResource):
        host.resource_to_buffer(handle)
    with pytest.raises(InvalidResource):
        host.release(handle)
    assert len(host) == 0


def test_empty_buffer_creates_resource_without_mip_data():
    host = InMemoryAssetHost()

    handle = host.buffer_to_resource(PixelBuffer.empty())

    with pytest.raises(InvalidResource):
        host.resource_to_buffer(handle)
    host.release(handle)


def test_mip_chain_halves_down_to_one_pixel():
    buffer = PixelBuffer.filled(8, 3, (10, 20, 30, 40))

    chain = build_mip_chain(buffer)

    assert [mip.size for mip in chain] == [(8, 3), (4, 1), (2, 1), (1, 1)]
    assert chain[-1].get(0, 0) == Color(10, 20, 30, 40)


def test_host_serves_mip_levels():
    host = InMemoryAssetHost(generate_mips=True)
    handle = host.buffer_to_resource(PixelBuffer.filled(4, 4, (5, 5, 5, 5)))

    assert host.mip_count(handle) == 3
    assert host.resource_to_buffer(handle, mip_level=2).size == (1, 1)
    with pytest.raises(InvalidResource):
        host.resource_to_buffer(handle, mip_level=3)


def test_process_resource_registers_adjusted_copy():
    host = InMemoryAssetHost()
    source = host.buffer_to_resource(PixelBuffer.filled(2, 2, (100, 100, 100, 255)))

    result = process_resource(host, source, AdjustmentSettings(brightness=1.5))

    assert result != source
    assert host.pixel_color(result, 0, 0) == Color(227, 227, 227, 255)
    assert host.pixel_color(source, 0, 0) == Color(100, 100, 100, 255)


def test_concurrent_registration_is_safe():
    host = InMemoryAssetHost()
    buffer = PixelBuffer.filled(2, 2, (1, 1, 1, 1))

    with ThreadPoolExecutor(max_workers=4) as executor:
        handles = list(executor.map(lambda _: host.buffer_to_resource(buffer), range(32)))

    assert len({handle.resource_id for handle in handles}) == 32
    assert len({handle.generation for handle in handles}) == 32
    assert len(host) == 32
