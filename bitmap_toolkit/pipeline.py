"""Core processing helpers shared between the CLI and integrations."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Iterator, Optional

from tqdm import tqdm

from .adjustments import AdjustmentSettings, apply_adjustments
from .asset_host import AssetHost, ResourceHandle
from .codec import Codec, PillowCodec
from .formats import FORMAT_EXTENSIONS, ImageFormat
from .io_utils import load_image, save_image

LOGGER = logging.getLogger("bitmap_toolkit")
WORKER_LOGGER = LOGGER.getChild("worker")

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".ico"}


def _tqdm_progress(
    iterable: Iterable[object], *, total: Optional[int], description: Optional[str]
) -> Iterable[object]:
    """Wrap *iterable* with a :mod:`tqdm` progress bar."""

    return tqdm(iterable, total=total, desc=description, unit="image")


_PROGRESS_WRAPPER = _tqdm_progress


def _wrap_with_progress(
    iterable: Iterable[Path],
    *,
    total: Optional[int],
    description: str,
    enabled: bool,
) -> Iterable[Path]:
    """Return an iterable wrapped with the progress helper when enabled."""

    if not enabled:
        return iterable
    return _PROGRESS_WRAPPER(iterable, total=total, description=description)


def collect_images(folder: Path, recursive: bool) -> Iterator[Path]:
    """Yield every supported image under *folder*, matching extensions case-insensitively."""
    candidates = folder.rglob("*") if recursive else folder.glob("*")
    for path in candidates:
        if path.is_file() and path.suffix.lower() in IMAGE_EXTENSIONS:
            yield path


def ensure_output_path(
    input_root: Path,
    output_root: Path,
    source: Path,
    suffix: str,
    recursive: bool,
    *,
    output_format: Optional[ImageFormat] = None,
    create: bool = True,
) -> Path:
    relative = source.relative_to(input_root) if recursive else Path(source.name)
    destination = output_root / relative
    if create:
        destination.parent.mkdir(parents=True, exist_ok=True)
    extension = FORMAT_EXTENSIONS.get(output_format, destination.suffix) if output_format else destination.suffix
    return destination.with_name(destination.stem + suffix + extension)


def _process_image_worker(
    source: Path,
    destination: Path,
    adjustments: AdjustmentSettings,
    *,
    output_format: Optional[ImageFormat] = None,
    dry_run: bool = False,
    codec: Optional[Codec] = None,
) -> bool:
    """Core implementation for processing a single image.

    Returns ``True`` when an output file was written. This helper is isolated so it
    can be safely used with :class:`concurrent.futures.ProcessPoolExecutor`.
    """

    WORKER_LOGGER.info("Processing %s -> %s", source, destination)
    if destination.exists() and not dry_run and not destination.is_file():
        path_type = "directory" if destination.is_dir() else "non-file"
        raise ValueError(f"Destination path exists but is a {path_type}: {destination}")

    codec = codec if codec is not None else PillowCodec()
    buffer = load_image(source, codec)
    adjusted = apply_adjustments(buffer, adjustments)
    if dry_run:
        WORKER_LOGGER.info("Dry run enabled, skipping save for %s", destination)
        return False
    save_image(destination, adjusted, output_format, codec)
    return True


def process_single_image(
    source: Path,
    destination: Path,
    adjustments: AdjustmentSettings,
    *,
    output_format: Optional[ImageFormat] = None,
    dry_run: bool = False,
    codec: Optional[Codec] = None,
) -> bool:
    """Public wrapper around :func:`_process_image_worker`."""

    return _process_image_worker(
        source,
        destination,
        adjustments,
        output_format=output_format,
        dry_run=dry_run,
        codec=codec,
    )


def process_resource(
    host: AssetHost, handle: ResourceHandle, adjustments: AdjustmentSettings
) -> ResourceHandle:
    """Read a texture back from *host*, adjust it, and register the result as a new texture."""
    buffer = host.resource_to_buffer(handle)
    return host.buffer_to_resource(apply_adjustments(buffer, adjustments))


__all__ = [
    "IMAGE_EXTENSIONS",
    "_PROGRESS_WRAPPER",
    "_wrap_with_progress",
    "collect_images",
    "ensure_output_path",
    "process_resource",
    "process_single_image",
]
