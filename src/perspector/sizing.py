"""
Target size computation.

The rectified picture is the smallest rectangle that contains the anchors'
bounding box and matches the aspect ratio chosen by the user.
"""

import logging
import math
from typing import Tuple

from src.common.types import AnchorSet, round_half_away_from_zero
from src.perspector.errors import InvalidInputError

logger = logging.getLogger(__name__)


def parse_ratio(text: str) -> float:
    """
    Parse one side of an aspect ratio entry.

    Raises:
        InvalidInputError: If the value is not a positive, finite number.

    Example:
        >>> parse_ratio("1.5")
        1.5
    """
    try:
        value = float(str(text).strip())
    except ValueError as e:
        raise InvalidInputError(f"Wrong value for ratio: {text!r}") from e

    if not math.isfinite(value) or value <= 0:
        raise InvalidInputError(f"Ratio must be a positive number, got {text!r}")

    return value


def parse_aspect_ratio(text: str) -> Tuple[float, float]:
    """
    Parse an aspect ratio written as "W:H" (or a single number, meaning W:1).

    Example:
        >>> parse_aspect_ratio("4:3")
        (4.0, 3.0)
    """
    parts = str(text).split(":")
    if len(parts) == 1:
        return parse_ratio(parts[0]), 1.0
    if len(parts) != 2:
        raise InvalidInputError(f"Expected an aspect ratio as W:H, got {text!r}")
    return parse_ratio(parts[0]), parse_ratio(parts[1])


def compute_target_size(
    anchors: AnchorSet, ratio_width: float = 1.0, ratio_height: float = 1.0
) -> Tuple[int, int]:
    """
    Compute the target rectangle for a set of anchors and an aspect ratio.

    The bounding box of the anchors is enlarged along one axis until
    width / height equals ratio_width / ratio_height.

    Args:
        anchors: The anchors (at least one).
        ratio_width: Width part of the aspect ratio.
        ratio_height: Height part of the aspect ratio.

    Returns:
        Tuple (width, height), each at least 1.

    Raises:
        InvalidInputError: If the ratio is not positive or there is no anchor.

    Example:
        >>> anchors = AnchorSet.from_points([[0, 0], [100, 0], [100, 50], [0, 50]])
        >>> compute_target_size(anchors, 1, 1)
        (100, 100)
    """
    if ratio_width <= 0 or ratio_height <= 0:
        raise InvalidInputError(
            f"Ratio must be positive, got {ratio_width}:{ratio_height}"
        )
    if anchors.count == 0:
        raise InvalidInputError("At least one anchor is required")

    min_x, min_y, max_x, max_y = anchors.bounding_box()
    width = float(max_x - min_x)
    height = float(max_y - min_y)
    ratio = ratio_width / ratio_height

    if width < height * ratio:
        width = height * ratio
    elif width > height * ratio:
        height = width / ratio

    target_width = max(1, int(round_half_away_from_zero(width)))
    target_height = max(1, int(round_half_away_from_zero(height)))

    logger.debug(
        f"Bounding box {max_x - min_x}x{max_y - min_y}, ratio {ratio:.3f}: "
        f"target {target_width}x{target_height}"
    )
    return target_width, target_height
