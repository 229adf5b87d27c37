"""Depth image CLI entry point.

Walks every bundled asset the same way a user tapping through the viewer
would, renders the requested display modes, and writes each frame as a PNG.

Assets are not shipped with the repo; point `--assets` at a directory holding
`test00.jpg`, `test00_depth.npz`, ... (or set `assets.dir` in the config).

Example (run from repo root):
    python -m depthmaps.depth_images.cli_main --config configs/default.yaml --assets /path/to/photos --output outputs
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

import cv2

from depthmaps.depth_images.config import ViewerConfig, load_config, update_config
from depthmaps.depth_images.display import DepthImageController, ImageMode
from depthmaps.depth_images.filters import FilterType
from depthmaps.depth_images.log import setup_logging
from depthmaps.depth_images.render import BACKENDS

logger = logging.getLogger(__name__)


def run_depth_images(
    config: ViewerConfig,
    *,
    output_dir: Path,
    modes: Sequence[ImageMode] = tuple(ImageMode),
    focus: Optional[float] = None,
    filter_type: FilterType = FilterType.SPOTLIGHT,
) -> list[Path]:
    """Render `modes` for every bundled asset into `output_dir`.

    Modes that have nothing to show for an asset (e.g. no depth data) are
    skipped.

    Returns:
        Paths of the written PNG files, in render order.
    """
    controller = DepthImageController.from_config(config)
    if not controller.asset_names:
        logger.warning("No bundled images found in %s", config.asset_dir)
        return []

    output_dir.mkdir(parents=True, exist_ok=True)
    controller.filter_type = filter_type
    if focus is not None:
        controller.set_focus(focus)

    written: list[Path] = []
    for i, name in enumerate(controller.asset_names):
        if i == 0:
            controller.load_current()
        else:
            controller.next_image()
        if controller.image is None:
            continue

        for mode in modes:
            update = controller.select_mode(mode)
            if not update.changed or update.frame is None:
                logger.info("%s: nothing to render in %s mode", name, mode.name.lower())
                continue

            suffix = mode.name.lower()
            if mode == ImageMode.FILTERED:
                suffix = f"{suffix}_{filter_type.name.lower()}"
            output_path = output_dir / f"{name}_{suffix}.png"
            # cv2 expects BGR
            if not cv2.imwrite(str(output_path), cv2.cvtColor(update.frame, cv2.COLOR_RGB2BGR)):
                raise OSError(f"Failed to write {output_path}")
            logger.debug("Saved %s", output_path)
            written.append(output_path)

    logger.info("Rendered %d frame(s) into %s", len(written), output_dir)
    return written


def parse_arguments(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render bundled photos with their depth maps, masks and filters")
    parser.add_argument("--config", "-c", type=str, help="YAML configuration file", default=None)
    parser.add_argument("--assets", "-a", type=str, help="Asset directory (default: from config)", default=None)
    parser.add_argument("--output", "-o", type=str, help="Output directory for rendered frames", default="outputs")
    parser.add_argument(
        "--mode",
        "-m",
        action="append",
        choices=[m.name.lower() for m in ImageMode],
        help="Display mode to render; repeat for several (default: all)",
        default=None,
    )
    parser.add_argument("--focus", "-f", type=float, help="Focus distance in [0, 1] (default: from config)", default=None)
    parser.add_argument(
        "--filter",
        choices=[f.name.lower() for f in FilterType],
        help="Filter used by the filtered mode",
        default=FilterType.SPOTLIGHT.name.lower(),
    )
    parser.add_argument(
        "--backend",
        choices=sorted(BACKENDS),
        help="Render backend (default: from config)",
        default=None,
    )
    parser.add_argument("--colormap", type=str, help="Matplotlib colormap for depth frames", default=None)
    parser.add_argument("--log-file", type=str, help="Also write logs to this file", default=None)
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument("--quiet", "-q", action="store_true", help="Suppress non-error output")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_arguments(argv)

    if args.quiet:
        level = logging.ERROR
    elif args.verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO
    setup_logging(level, args.log_file)

    try:
        config = load_config(args.config)
        config = update_config(
            config,
            {
                "asset_dir": args.assets,
                "render_backend": args.backend,
                "depth_colormap": args.colormap,
            },
        )
        modes = [ImageMode[m.upper()] for m in args.mode] if args.mode else list(ImageMode)

        run_depth_images(
            config,
            output_dir=Path(args.output),
            modes=modes,
            focus=args.focus,
            filter_type=FilterType[args.filter.upper()],
        )
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
