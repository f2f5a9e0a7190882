from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from bitmap_toolkit import CodecFormat, ImageFormat, from_codec_format, to_codec_format  # noqa: E402
from bitmap_toolkit.formats import FORMAT_EXTENSIONS, format_for_path  # noqa: E402


def test_image_format_values_are_stable():
    assert [member.value for member in ImageFormat] == list(range(8))
    assert ImageFormat.INVALID == 0
    assert ImageFormat.ICNS == 7


@pytest.mark.parametrize("image_format", list(ImageFormat))
def test_every_toolkit_format_round_trips(image_format):
    assert from_codec_format(to_codec_format(image_format)) is image_format


def test_codec_only_formats_map_to_invalid():
    assert from_codec_format(CodecFormat.TGA) is ImageFormat.INVALID
    assert from_codec_format(CodecFormat.INVALID) is ImageFormat.INVALID


@pytest.mark.parametrize("value", [None, 3, "PNG", object(), CodecFormat.PNG])
def test_to_codec_format_is_total(value):
    assert to_codec_format(value) is CodecFormat.INVALID


@pytest.mark.parametrize("value", [None, 1, "png", ImageFormat.PNG])
def test_from_codec_format_is_total(value):
    assert from_codec_format(value) is ImageFormat.INVALID


def test_codec_format_exposes_pillow_identifiers():
    assert CodecFormat.GRAYSCALE_JPEG.pillow_format == "JPEG"
    assert CodecFormat.GRAYSCALE_JPEG.pillow_mode == "L"
    assert CodecFormat.EXR.pillow_mode is None


@pytest.mark.parametrize(
    "name, expected",
    [
        ("png", ImageFormat.PNG),
        ("JPG", ImageFormat.JPEG),
        ("greyscale-jpeg", ImageFormat.GRAYSCALE_JPEG),
        ("tiff", ImageFormat.INVALID),
        (ImageFormat.BMP, ImageFormat.BMP),
        (42, ImageFormat.INVALID),
    ],
)
def test_coerce_names(name, expected):
    assert ImageFormat.coerce(name) is expected


def test_extension_lookup():
    assert format_for_path("photo.JPEG") is ImageFormat.JPEG
    assert format_for_path(Path("a/b/icon.ico")) is ImageFormat.ICO
    assert format_for_path("scan.tiff") is ImageFormat.INVALID
    assert FORMAT_EXTENSIONS[ImageFormat.GRAYSCALE_JPEG] == ".jpg"
