"""
Command-line interface for perspective rectification.

Usage:
    # Rectify with a 1:1 ratio (default from config.yaml)
    perspector photo.jpg out.png --anchor 120 180 --anchor 450 165 \\
        --anchor 470 250 --anchor 100 270

    # Rectify to a 4:3 rectangle and save a preview of the anchors
    perspector photo.jpg out.png --anchor 120 180 --anchor 450 165 \\
        --anchor 470 250 --anchor 100 270 --ratio 4:3 --preview anchors.png

    # Force the output size
    perspector photo.jpg out.png --anchor ... --size 800 600
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from src.common.types import AnchorSet, Pixel
from src.perspector.classifier import classify
from src.perspector.config_loader import DEFAULT_CONFIG_PATH, load_config
from src.perspector.errors import InvalidInputError
from src.perspector.image_io import load_image, save_image
from src.perspector.processor import PerspectorProcessor
from src.perspector.sizing import compute_target_size, parse_aspect_ratio
from src.utils.constants import NUM_ANCHORS
from src.utils.visualization import draw_anchors

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="perspector",
        description="Rectify the quadrilateral spanned by 4 anchors into a rectangle",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument("input", type=Path, help="Source picture")
    parser.add_argument("output", type=Path, help="Rectified picture (PNG advised)")

    parser.add_argument(
        "--anchor",
        type=int,
        nargs=2,
        action="append",
        metavar=("X", "Y"),
        default=[],
        help=f"Anchor pixel; give exactly {NUM_ANCHORS}",
    )

    parser.add_argument(
        "--ratio",
        type=str,
        default=None,
        help="Aspect ratio W:H of the output (default: from config)",
    )

    parser.add_argument(
        "--size",
        type=int,
        nargs=2,
        metavar=("WIDTH", "HEIGHT"),
        default=None,
        help="Explicit output size; overrides --ratio",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Configuration file (default: bundled config.yaml)",
    )

    parser.add_argument(
        "--preview",
        type=Path,
        default=None,
        help="Write the source picture with the anchors drawn on it",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    return parser


def _collect_anchors(raw: List[List[int]]) -> AnchorSet:
    """Place anchors the way the interactive tool does: cap and de-duplicate."""
    anchors = AnchorSet()
    for x, y in raw:
        if anchors.is_full():
            raise InvalidInputError("Max number of anchors reached")
        if not anchors.add(Pixel(x=x, y=y)):
            logger.warning(f"Pixel ({x}, {y}) is already an anchor, ignored")
    if anchors.count != NUM_ANCHORS:
        raise InvalidInputError(f"{NUM_ANCHORS} anchors required, got {anchors.count}")
    return anchors


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the perspector CLI."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = load_config(args.config)
        anchors = _collect_anchors(args.anchor)

        if args.size is not None:
            target_width, target_height = args.size
        else:
            if args.ratio is not None:
                ratio_width, ratio_height = parse_aspect_ratio(args.ratio)
            else:
                ratio_width = config.sizing.default_ratio_width
                ratio_height = config.sizing.default_ratio_height
            target_width, target_height = compute_target_size(
                anchors, ratio_width, ratio_height
            )

        source = load_image(args.input)
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return EXIT_USAGE

    if args.preview is not None:
        preview = draw_anchors(source.to_numpy(), anchors, classify(anchors))
        save_image(preview, args.preview)

    logger.info("=" * 60)
    logger.info(f"Perspector - {args.input} -> {args.output}")
    logger.info(f"Anchors: {anchors}")
    logger.info(f"Target: {target_width}x{target_height}")
    logger.info("=" * 60)

    processor = PerspectorProcessor(config=config)
    result = processor.process(source, anchors, target_width, target_height)

    if not result.is_success():
        logger.error(result.get_error_message())
        return EXIT_FAILED

    try:
        save_image(result.image, args.output)
    except ValueError as e:
        logger.error(str(e))
        return EXIT_FAILED

    logger.info(result.get_error_message())
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
