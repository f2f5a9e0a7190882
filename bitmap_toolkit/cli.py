"""Command-line interface wiring for the bitmap batch processor."""
from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import uuid
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Tuple

import yaml

from .adjustments import AdjustmentSettings, LOOK_PRESETS
from .compositing import TINT_OPERATIONS
from .convolution import ChannelMode, FilterKind
from .formats import ImageFormat
from .pipeline import (
    _process_image_worker,
    _wrap_with_progress,
    collect_images,
    ensure_output_path,
    process_single_image,
)

LOGGER = logging.getLogger("bitmap_toolkit")

OUTPUT_FORMATS = ("png", "jpeg", "grayscale_jpeg", "bmp", "ico")


_TRUE_WORDS = frozenset({"1", "true", "yes", "on"})
_FALSE_WORDS = frozenset({"0", "false", "no", "off"})


def read_config_file(path: Path) -> dict[str, Any]:
    """Read a JSON or YAML (``.yaml``/``.yml``) settings file.

    Keys may be spelled with dashes or underscores; they are returned with
    underscores so they line up with argparse destinations.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError: If the file does not parse to a mapping of option names.
    """
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() in {".yaml", ".yml"}:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ValueError(f"{path} is not a readable settings file: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, Mapping) or not all(isinstance(key, str) for key in data):
        raise ValueError(f"{path} must map option names to values")
    return {key.replace("-", "_"): value for key, value in data.items()}


def _options_by_name(parser: argparse.ArgumentParser) -> dict[str, argparse.Action]:
    """Index parser actions by destination and by every flag spelling."""
    table: dict[str, argparse.Action] = {}
    for action in parser._actions:  # pylint: disable=protected-access
        if action.dest in {argparse.SUPPRESS, "help", "config"}:
            continue
        spellings = [flag.lstrip("-").replace("-", "_") for flag in action.option_strings]
        table.update(dict.fromkeys([action.dest, *spellings], action))
    return table


def _setting_value(action: argparse.Action, value: Any) -> Any:
    """Convert one settings-file value the way argparse would convert it on the command line."""
    if value is None:
        return None
    if action.nargs == 0:
        if isinstance(value, bool):
            return value
        word = value.strip().lower() if isinstance(value, str) else None
        if word in _TRUE_WORDS or word in _FALSE_WORDS:
            return word in _TRUE_WORDS
        raise ValueError(f"expected true or false, got {value!r}")
    converted = action.type(value) if action.type is not None else value
    if action.choices is not None and converted not in action.choices:
        raise ValueError(f"{converted!r} is not one of {sorted(action.choices)}")
    return converted


def config_defaults(parser: argparse.ArgumentParser, path: Path) -> dict[str, Any]:
    """Translate a settings file into parser defaults keyed by destination.

    Command-line flags still win because they are parsed after these defaults
    are installed.
    """
    options = _options_by_name(parser)
    defaults: dict[str, Any] = {}
    for key, value in read_config_file(path).items():
        action = options.get(key)
        if action is None:
            raise ValueError(f"Unknown option '{key}' in {path}")
        try:
            defaults[action.dest] = _setting_value(action, value)
        except (TypeError, ValueError, argparse.ArgumentTypeError) as exc:
            raise ValueError(f"Invalid '{key}' in {path}: {exc}") from exc
    return defaults


def parse_tint(value: Any) -> Tuple[int, int, int, int]:
    """Parse ``"R,G,B"`` or ``"R,G,B,A"`` (or a list of ints) into an 8-bit tint."""
    parts = value.split(",") if isinstance(value, str) else list(value)
    try:
        channels = [int(str(part).strip()) for part in parts]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Tint channels must be integers: {value!r}") from exc
    if len(channels) == 3:
        channels.append(255)
    if len(channels) != 4 or not all(0 <= c <= 255 for c in channels):
        raise argparse.ArgumentTypeError(f"Tint must be 3 or 4 integers in [0, 255]: {value!r}")
    return tuple(channels)  # type: ignore[return-value]


def default_output_folder(input_folder: Path) -> Path:
    """Return the default output folder for a given input directory."""

    if input_folder.name:
        return input_folder.parent / f"{input_folder.name}_processed"
    return input_folder / "processed_output"


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Batch adjust, tint and filter bitmap images.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional configuration file (JSON, or YAML for .yaml/.yml)",
    )
    parser.add_argument("input", type=Path, help="Folder that contains source images")
    parser.add_argument(
        "output",
        type=Path,
        nargs="?",
        default=None,
        help="Folder where processed files will be written. Defaults to '<input>_processed' next to the input folder.",
    )
    parser.add_argument(
        "--preset",
        default="neutral",
        choices=sorted(LOOK_PRESETS.keys()),
        help="Look preset that provides a starting point",
    )
    parser.add_argument(
        "--recursive",
        action="store_true",
        help="Process folders recursively and mirror the directory tree in the output",
    )
    parser.add_argument(
        "--suffix",
        default="_processed",
        help="Filename suffix appended before the extension for processed files",
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Allow overwriting existing files in the destination",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        default=None,
        choices=OUTPUT_FORMATS,
        help="Output format; defaults to the format implied by each source file's extension",
    )
    parser.add_argument("--dry-run", action="store_true", help="Preview the work without writing any files")
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable progress reporting (useful for minimal or non-interactive environments)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of worker processes for parallel image processing",
    )

    # Fine control overrides.
    parser.add_argument("--hue", type=float, default=None, help="Hue shift in degrees (wraps around 360)")
    parser.add_argument("--saturation", type=float, default=None, help="Saturation multiplier (1 = unchanged)")
    parser.add_argument("--luminance", type=float, default=None, help="Luminance multiplier (1 = unchanged)")
    parser.add_argument("--contrast", type=float, default=None, help="Contrast on a 0-2 scale (1 = unchanged)")
    parser.add_argument("--brightness", type=float, default=None, help="Brightness on a 0-2 scale (1 = unchanged)")
    parser.add_argument(
        "--filter",
        default=None,
        choices=[kind.value for kind in FilterKind],
        help="Preset convolution kernel to apply last",
    )
    parser.add_argument(
        "--channel-mode",
        default=None,
        dest="channel_mode",
        choices=[mode.value for mode in ChannelMode],
        help="Override the filter's default output channel routing",
    )
    parser.add_argument("--tint", type=parse_tint, default=None, help="Constant colour as R,G,B or R,G,B,A")
    parser.add_argument(
        "--tint-mode",
        default=None,
        dest="tint_mode",
        choices=sorted(TINT_OPERATIONS),
        help="How the tint is blended into each image",
    )

    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity",
    )

    argv_list = list(argv) if argv is not None else None

    known, _ = parser.parse_known_args(argv_list)
    if known.config is not None:
        try:
            parser.set_defaults(**config_defaults(parser, known.config))
        except (OSError, ValueError) as exc:
            parser.error(str(exc))

    args = parser.parse_args(argv_list)
    if args.workers < 1:
        parser.error("--workers must be a positive integer")
    if args.output is None:
        args.output = default_output_folder(args.input)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s: %(message)s")
    return args


def build_adjustments(args: argparse.Namespace) -> AdjustmentSettings:
    """Construct adjustment settings from preset and CLI overrides."""
    base = dataclasses.replace(LOOK_PRESETS[args.preset])
    for field in dataclasses.fields(base):
        value = getattr(args, field.name, None)
        if value is not None:
            setattr(base, field.name, value)
    base._validate()  # pylint: disable=protected-access
    LOGGER.debug("Using adjustments: %s", base)
    return base


def _ensure_non_overlapping(input_root: Path, output_root: Path) -> None:
    def _contains(parent: Path, child: Path) -> bool:
        try:
            child.relative_to(parent)
        except ValueError:
            return False
        return True

    if input_root == output_root:
        raise SystemExit("Output folder must be different from the input folder to avoid self-overwrites.")
    if _contains(input_root, output_root):
        raise SystemExit(
            "Output folder cannot be located inside the input folder; choose a sibling or separate directory."
        )
    if _contains(output_root, input_root):
        raise SystemExit(
            "Input folder cannot be located inside the output folder; choose non-overlapping directories."
        )


def run_pipeline(args: argparse.Namespace) -> int:
    """Run the batch processor with the provided arguments."""

    run_id = uuid.uuid4().hex
    adjustments = build_adjustments(args)
    output_format = ImageFormat.coerce(args.output_format) if args.output_format else None
    input_root = args.input.resolve()
    output_root = args.output.resolve()

    if not input_root.is_dir():
        raise SystemExit(f"Input folder '{input_root}' does not exist or is not a directory")

    _ensure_non_overlapping(input_root, output_root)

    LOGGER.info("Starting batch run %s for %s", run_id, input_root)
    images = sorted(collect_images(input_root, args.recursive))
    if not images:
        LOGGER.warning("No images found in %s (run %s)", input_root, run_id)
        return 0

    if not args.dry_run:
        output_root.mkdir(parents=True, exist_ok=True)

    LOGGER.info("Found %s image(s) to process", len(images))
    processed = 0
    workers = getattr(args, "workers", 1)

    def destination_for(image_path: Path) -> Optional[Path]:
        destination = ensure_output_path(
            input_root,
            output_root,
            image_path,
            args.suffix,
            args.recursive,
            output_format=output_format,
            create=not args.dry_run,
        )
        if destination.exists() and not args.overwrite and not args.dry_run:
            LOGGER.warning("Skipping %s (exists, use --overwrite to replace)", destination)
            return None
        if args.dry_run:
            LOGGER.info("Dry run: would process %s -> %s", image_path, destination)
        return destination

    if workers <= 1:
        progress_iterable = _wrap_with_progress(
            images,
            total=len(images),
            description="Processing images",
            enabled=not getattr(args, "no_progress", False),
        )

        for image_path in progress_iterable:
            destination = destination_for(image_path)
            if destination is None:
                continue
            if process_single_image(
                image_path,
                destination,
                adjustments,
                output_format=output_format,
                dry_run=args.dry_run,
            ):
                processed += 1
    else:
        progress_range = _wrap_with_progress(
            range(len(images)),
            total=len(images),
            description="Processing images",
            enabled=not getattr(args, "no_progress", False),
        )
        progress_iterator = iter(progress_range)

        def advance_progress() -> None:
            next(progress_iterator, None)

        futures = []
        with ProcessPoolExecutor(max_workers=workers) as executor:
            for image_path in images:
                destination = destination_for(image_path)
                if destination is None:
                    advance_progress()
                    continue
                futures.append(
                    executor.submit(
                        _process_image_worker,
                        image_path,
                        destination,
                        adjustments,
                        output_format=output_format,
                        dry_run=args.dry_run,
                    )
                )

            for future in as_completed(futures):
                try:
                    wrote_output = future.result()
                except Exception:
                    advance_progress()
                    raise
                if wrote_output:
                    processed += 1
                advance_progress()

    LOGGER.info("Finished batch run %s; processed %s image(s)", run_id, processed)
    return processed


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    run_pipeline(args)
    return 0


__all__ = [
    "build_adjustments",
    "config_defaults",
    "default_output_folder",
    "main",
    "parse_args",
    "parse_tint",
    "read_config_file",
    "run_pipeline",
]
