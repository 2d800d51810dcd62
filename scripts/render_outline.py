#!/usr/bin/env python3
"""Render an antialiased outline around a shape mask and save it as PNG.

Paints the gradient background, runs the outline pass once and writes the
canvas to disk unmodified.

Usage:
    # Defaults from configs/outline.v1.yaml (image mask, black & white outline)
    python scripts/render_outline.py

    # Analytic circle, simple dark outline
    python scripts/render_outline.py --source analytic-circle --style simple

    # Custom mask, 4 row bands, metadata next to the PNG
    python scripts/render_outline.py --mask shapes/star.png --workers 4 --metadata

Outputs:
    - <output>.png: rendered 8-bit grayscale canvas
    - <output>_metadata.yaml: configuration and timing (with --metadata)

Exit status is 1 when the config, mask or dimensions are invalid.
"""

import argparse
import logging
import sys
import time
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src import __version__
from src.outline_renderer import OutlineError, build_renderer, render_outline
from src.utils import fs, validators
from src.utils.logging_config import install_excepthook, push_context, setup_logging

DEFAULT_CONFIG = Path(__file__).parent.parent / "configs" / "outline.v1.yaml"
DEFAULT_OUTPUT = Path("outputs/outline.png")

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render an antialiased outline around a shape mask",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument(
        '--config',
        type=Path,
        default=DEFAULT_CONFIG,
        help=f'Outline config YAML (default: {DEFAULT_CONFIG})'
    )
    parser.add_argument(
        '--mask',
        type=Path,
        help='Mask image; overrides mask_path and selects mask_source=image'
    )
    parser.add_argument(
        '--source',
        choices=['image', 'analytic-circle'],
        help='Override mask_source'
    )
    parser.add_argument(
        '--style',
        choices=['black-and-white', 'simple'],
        help='Override outline_style'
    )
    parser.add_argument(
        '--workers',
        type=int,
        help='Override number of row bands rendered concurrently'
    )
    parser.add_argument(
        '--output', '-o',
        type=Path,
        default=DEFAULT_OUTPUT,
        help=f'Output PNG path (default: {DEFAULT_OUTPUT})'
    )
    parser.add_argument(
        '--metadata',
        action='store_true',
        help='Also write <output>_metadata.yaml'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )
    return parser.parse_args(argv)


def build_config(args) -> validators.OutlineConfigV1:
    """Load the YAML config and apply command-line overrides."""
    cfg = validators.load_outline_config(args.config)

    overrides = {}
    if args.mask is not None:
        overrides['mask_source'] = 'image'
        overrides['mask_path'] = str(args.mask)
    if args.source is not None:
        overrides['mask_source'] = args.source
    if args.style is not None:
        overrides['outline_style'] = args.style
    if args.workers is not None:
        overrides['workers'] = args.workers

    if not overrides:
        return cfg

    data = cfg.model_dump(by_alias=True)
    data.update(overrides)
    try:
        return validators.OutlineConfigV1(**data)
    except Exception as e:
        raise ValueError(f"Invalid command-line override: {e}") from e


def main(argv=None) -> int:
    """CLI entrypoint."""
    args = parse_args(argv)

    log_level = "DEBUG" if args.verbose else "INFO"
    setup_logging(log_level=log_level, quiet_libs=["PIL"], context={"app": "outline"})
    install_excepthook()

    try:
        cfg = build_config(args)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Configuration error: {e}")
        return 1

    push_context(style=cfg.outline_style, mask_source=cfg.mask_source)

    try:
        renderer = build_renderer(cfg)

        start_time = time.time()
        canvas = render_outline(cfg, renderer=renderer)
        render_time = time.time() - start_time
    except OutlineError as e:
        logger.error(f"Render failed: {e}")
        return 1

    logger.info(f"Rendering completed in {render_time:.3f}s")

    fs.atomic_save_image(canvas, args.output)
    logger.info(f"Saved render: {args.output}")

    if args.metadata:
        metadata = {
            'version': __version__,
            'render_time_s': float(render_time),
            'pixels_written': int(renderer.pixels_written),
            'config': validators.flatten_config(cfg),
        }
        metadata_path = args.output.with_name(f"{args.output.stem}_metadata.yaml")
        fs.atomic_yaml_dump(metadata, metadata_path)
        logger.info(f"Saved metadata: {metadata_path}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
