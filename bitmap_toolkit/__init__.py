"""Bitmap transformation toolkit: tone adjustment, compositing and convolution for RGBA8 images.

Every operation consumes an immutable :class:`PixelBuffer` and returns a new
one, so operations chain freely and are safe to run concurrently on
independent buffers. Compressed files and host textures are reached through
two injectable collaborators, a :class:`Codec` and an :class:`AssetHost`.

Module Organization
-------------------

pixels
    The :class:`PixelBuffer` value type, RGBA colour tuples, and resampling.

color_math
    sRGB/linear and RGB/HSV conversions plus clamped 8-bit quantisation.

adjustments
    Hue/saturation/luminance, contrast and brightness remaps, look presets,
    and the :class:`AdjustmentSettings` chain used by the batch pipeline.

compositing
    Add, multiply and divide blends against another buffer or a constant tint.

convolution
    Kernel convolution with channel-mode routing and the preset kernel table.

formats
    Toolkit and codec format enumerations and the mapping between them.

codec / io_utils
    Pillow-backed codec and file helpers with atomic writes.

asset_host
    In-memory texture registry implementing the asset host boundary.

pipeline / cli
    Batch processing of image folders with progress and parallel workers.

Example Usage
-------------

    from bitmap_toolkit import (
        FilterKind,
        adjust_brightness,
        apply_filter,
        load_image,
        named_kernel,
        save_image,
    )

    buffer = load_image("input.png")
    buffer = adjust_brightness(buffer, 1.2)
    buffer = apply_filter(buffer, named_kernel(FilterKind.SHARPEN))
    save_image("output.png", buffer)
"""
from __future__ import annotations

import logging

from .adjustments import (
    AdjustmentSettings,
    LOOK_PRESETS,
    adjust_brightness,
    adjust_contrast,
    adjust_hsl,
    apply_adjustments,
)
from .asset_host import AssetHost, InMemoryAssetHost, ResourceHandle
from .cli import build_adjustments, main, parse_args, run_pipeline
from .codec import Codec, PillowCodec
from .compositing import add, add_tint, divide, divide_tint, multiply, multiply_tint
from .convolution import (
    ChannelMode,
    FilterKind,
    KERNEL_PRESETS,
    Kernel,
    apply_filter,
    named_kernel,
    project_channels,
    submit_filter,
)
from .errors import (
    BitmapError,
    DecodeError,
    DimensionMismatch,
    EncodeError,
    InvalidKernel,
    InvalidResource,
    UnsupportedChannelMode,
)
from .formats import CodecFormat, ImageFormat, from_codec_format, to_codec_format
from .io_utils import ProcessingContext, encode_png, image_format, image_size, load_image, save_image
from .pipeline import collect_images, ensure_output_path, process_resource, process_single_image
from .pixels import Color, LinearColor, PixelBuffer, resize_buffer

LOGGER = logging.getLogger("bitmap_toolkit")

__all__ = [
    "AdjustmentSettings",
    "AssetHost",
    "BitmapError",
    "ChannelMode",
    "Codec",
    "CodecFormat",
    "Color",
    "DecodeError",
    "DimensionMismatch",
    "EncodeError",
    "FilterKind",
    "ImageFormat",
    "InMemoryAssetHost",
    "InvalidKernel",
    "InvalidResource",
    "KERNEL_PRESETS",
    "Kernel",
    "LOOK_PRESETS",
    "LinearColor",
    "PillowCodec",
    "PixelBuffer",
    "ProcessingContext",
    "ResourceHandle",
    "UnsupportedChannelMode",
    "add",
    "add_tint",
    "adjust_brightness",
    "adjust_contrast",
    "adjust_hsl",
    "apply_adjustments",
    "apply_filter",
    "build_adjustments",
    "collect_images",
    "divide",
    "divide_tint",
    "encode_png",
    "ensure_output_path",
    "from_codec_format",
    "image_format",
    "image_size",
    "load_image",
    "main",
    "multiply",
    "multiply_tint",
    "named_kernel",
    "parse_args",
    "process_resource",
    "process_single_image",
    "project_channels",
    "resize_buffer",
    "run_pipeline",
    "save_image",
    "submit_filter",
    "to_codec_format",
]
