"""
Command-line interface for label_toolkit.

Commands:
    export PDF             Crop every page into cropped_labels_<name>.zip
    crop PDF --page N      Crop one page into label_page_<N>.png
    detect PDF --page N    Ask the AI model where the label is
    presets list           Show saved templates
    presets add X Y W H    Save a template

The crop region comes from --region X,Y,W,H, --preset N (1-based), or the
default 10,10,80,40.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from openai import AsyncOpenAI

from label_toolkit import __version__
from label_toolkit.config import ToolkitConfig, parse_format
from label_toolkit.core.errors import LabelToolkitError
from label_toolkit.core.models import CropRegion
from label_toolkit.detection.bridge import LabelDetector
from label_toolkit.export.archive import DirectorySaver
from label_toolkit.export.batch import ExportProgress
from label_toolkit.presets.store import JsonFileKeyValueStore, PresetStore
from label_toolkit.session.state import LabelSession
from label_toolkit.utils.logging_utils import configure_logging, detach_handler

logger = logging.getLogger(__name__)


def parse_region(value: str) -> CropRegion:
    """Parse 'X,Y,W,H' in percent."""
    parts = [p.strip() for p in value.split(",")]
    if len(parts) != 4:
        raise argparse.ArgumentTypeError(f"Region must be X,Y,W,H: {value!r}")
    try:
        x, y, w, h = (float(p) for p in parts)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Region values must be numbers: {value!r}") from e
    return CropRegion(x, y, w, h)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="label-toolkit",
        description="Crop one label region out of every page of a PDF.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--settings", type=Path, help="Preset store file")
    parser.add_argument("--scale", type=float, help="Render scale (default 2.0)")

    sub = parser.add_subparsers(dest="command", required=True)

    def add_region_args(p: argparse.ArgumentParser) -> None:
        group = p.add_mutually_exclusive_group()
        group.add_argument("--region", type=parse_region, help="X,Y,W,H in percent")
        group.add_argument("--preset", type=int, help="Saved template number (1-based)")

    export = sub.add_parser("export", help="Crop every page into a ZIP archive")
    export.add_argument("pdf", type=Path)
    export.add_argument("-o", "--output-dir", type=Path)
    export.add_argument("--format", type=parse_format, help="png or jpeg")
    add_region_args(export)

    crop = sub.add_parser("crop", help="Crop a single page")
    crop.add_argument("pdf", type=Path)
    crop.add_argument("--page", type=int, default=1)
    crop.add_argument("-o", "--output-dir", type=Path)
    crop.add_argument("--format", type=parse_format, help="png or jpeg")
    add_region_args(crop)

    detect = sub.add_parser("detect", help="Suggest a region with the AI model")
    detect.add_argument("pdf", type=Path)
    detect.add_argument("--page", type=int, default=1)
    detect.add_argument("--save-preset", action="store_true", help="Save the suggestion")

    presets = sub.add_parser("presets", help="Manage saved templates")
    presets_sub = presets.add_subparsers(dest="presets_command", required=True)
    presets_sub.add_parser("list", help="Show saved templates")
    add = presets_sub.add_parser("add", help="Save a template")
    for name in ("x", "y", "width", "height"):
        add.add_argument(name, type=float)

    return parser


def _print_progress(progress: Optional[ExportProgress]) -> None:
    if progress is None:
        return
    print(f"\rProcessing page {progress.current} of {progress.total}", end="", flush=True)
    if progress.current == progress.total:
        print()


def _build_session(config: ToolkitConfig) -> LabelSession:
    presets = PresetStore(JsonFileKeyValueStore(config.settings_path), key=config.presets_key)
    detector = None
    if config.detection_enabled:
        client = AsyncOpenAI(base_url=config.ai_base_url, api_key=config.ai_api_key)
        detector = LabelDetector(
            client, model=config.ai_model, timeout_s=config.detection_timeout_s
        )
    return LabelSession(config, presets, detector, on_progress=_print_progress)


def _select_region(session: LabelSession, args: argparse.Namespace) -> None:
    if getattr(args, "region", None) is not None:
        session.set_region(args.region)
    elif getattr(args, "preset", None) is not None:
        session.apply_preset(args.preset - 1)


async def _open(session: LabelSession, pdf: Path, page: int = 1) -> None:
    await session.load_path(pdf)
    if page != 1:
        await session.navigator.jump_to(page)


async def _run_export(session: LabelSession, args: argparse.Namespace) -> int:
    _select_region(session, args)
    await _open(session, args.pdf)
    result = await session.export_all(DirectorySaver(session.config.output_dir))
    print(f"Saved {result.page_count} labels to {result.path}")
    return 0


async def _run_crop(session: LabelSession, args: argparse.Namespace) -> int:
    _select_region(session, args)
    await _open(session, args.pdf, args.page)
    filename, encoded = session.export_current()
    path = DirectorySaver(session.config.output_dir)(encoded.data, filename)
    print(f"Saved {encoded.width}x{encoded.height} crop to {path}")
    return 0


async def _run_detect(session: LabelSession, args: argparse.Namespace) -> int:
    if session.detector is None:
        print("Detection is not configured: set AI_API_KEY", file=sys.stderr)
        return 2
    await _open(session, args.pdf, args.page)
    region = await session.auto_detect()
    if region is None:
        print("AI could not find a clear shipping label on this page.")
        return 1
    print(f"Suggested region: {region.x:.2f},{region.y:.2f},{region.width:.2f},{region.height:.2f}")
    if args.save_preset:
        count = len(session.save_preset())
        print(f"Saved as Template {count}")
    return 0


def _run_presets(session: LabelSession, args: argparse.Namespace) -> int:
    if args.presets_command == "add":
        session.set_region(CropRegion(args.x, args.y, args.width, args.height))
        count = len(session.save_preset())
        print(f"Saved as Template {count}")
        return 0

    entries = session.presets.entries()
    if not entries:
        print("No templates. Save one for daily use.")
    for entry in entries:
        r = entry.region
        print(f"{entry.name}: {r.x:g},{r.y:g},{r.width:g},{r.height:g}")
    return 0


async def _dispatch(session: LabelSession, args: argparse.Namespace) -> int:
    try:
        if args.command == "export":
            return await _run_export(session, args)
        if args.command == "crop":
            return await _run_crop(session, args)
        if args.command == "detect":
            return await _run_detect(session, args)
        return _run_presets(session, args)
    finally:
        session.clear()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    handler = configure_logging(args.verbose)
    try:
        config = ToolkitConfig.from_env(
            render_scale=args.scale,
            settings_path=args.settings,
            output_dir=getattr(args, "output_dir", None),
            single_format=getattr(args, "format", None),
            batch_format=getattr(args, "format", None),
        )
        session = _build_session(config)
        return asyncio.run(_dispatch(session, args))
    except (LabelToolkitError, IndexError, ValueError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        detach_handler(handler)


if __name__ == "__main__":
    raise SystemExit(main())
