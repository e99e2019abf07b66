"""
Forward mapping of source pixels into the target rectangle.

Every pixel of the source buffer is sent through the transform; the ones
landing inside the target are copied and marked in a coverage mask. The
mapping is many-to-one and leaves holes wherever the target is locally
magnified; those are filled afterwards by the hole filler.
"""

import logging
from typing import Optional, Tuple

import numpy as np

from src.common.types import round_half_away_from_zero
from src.perspector.errors import (
    AllocationError,
    InvalidInputError,
    OversizedTargetError,
)
from src.perspector.types import MapperConfig
from src.utils.constants import COORD_MAX

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_ROWS = 256


def check_target_size(
    width: int, height: int, max_pixel_count: int = COORD_MAX
) -> None:
    """
    Validate target dimensions before anything is allocated.

    Raises:
        InvalidInputError: If a dimension is not positive.
        OversizedTargetError: If width * height exceeds max_pixel_count.
    """
    if width <= 0 or height <= 0:
        raise InvalidInputError(
            f"Target dimensions must be positive, got {width}x{height}"
        )
    if max_pixel_count // width < height:
        raise OversizedTargetError(
            f"The picture is too big: {width}x{height} exceeds "
            f"{max_pixel_count} pixels"
        )


def map_forward(
    matrix: np.ndarray,
    source: np.ndarray,
    width: int,
    height: int,
    config: Optional[MapperConfig] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Scatter the source buffer into a width x height target.

    For each source pixel (x, y), (x', y', w') = M . (x, y, 1) and the
    target pixel is (round(x'/w'), round(y'/w')), rounding half away from
    zero. The whole source buffer is scanned, not only the quadrilateral
    spanned by the anchors. When several source pixels land on the same
    target pixel, the last write wins; which one is last is not part of
    the contract.

    Args:
        matrix: 3x3 homogeneous transform.
        source: Source buffer, shape (H, W) or (H, W, C).
        width: Target width.
        height: Target height.
        config: Mapper configuration (pixel-count limit, band height).

    Returns:
        Tuple of (target buffer with the source dtype and channel count,
        boolean coverage mask of shape (height, width)).

    Raises:
        InvalidInputError: If the dimensions or the source are invalid.
        OversizedTargetError: If width * height is too large.
        AllocationError: If the target buffers cannot be allocated.
    """
    max_pixel_count = config.max_pixel_count if config else COORD_MAX
    chunk_rows = config.chunk_rows if config else DEFAULT_CHUNK_ROWS

    check_target_size(width, height, max_pixel_count)

    if source is None or source.ndim not in (2, 3) or source.size == 0:
        raise InvalidInputError("Invalid source buffer: None, empty or wrong rank")

    src_height, src_width = source.shape[:2]

    try:
        target = np.zeros((height, width) + source.shape[2:], dtype=source.dtype)
        coverage = np.zeros((height, width), dtype=bool)
    except MemoryError as e:
        raise AllocationError(
            f"Cannot allocate a {width}x{height} target buffer"
        ) from e

    xs = np.arange(src_width, dtype=np.float64)
    mapped_count = 0

    for row_start in range(0, src_height, chunk_rows):
        row_stop = min(row_start + chunk_rows, src_height)
        grid_x, grid_y = np.meshgrid(
            xs, np.arange(row_start, row_stop, dtype=np.float64)
        )

        out_x = matrix[0, 0] * grid_x + matrix[0, 1] * grid_y + matrix[0, 2]
        out_y = matrix[1, 0] * grid_x + matrix[1, 1] * grid_y + matrix[1, 2]
        out_w = matrix[2, 0] * grid_x + matrix[2, 1] * grid_y + matrix[2, 2]

        with np.errstate(divide="ignore", invalid="ignore"):
            target_x = round_half_away_from_zero(out_x / out_w)
            target_y = round_half_away_from_zero(out_y / out_w)

        # NaN and infinities compare False and drop out here
        inside = (
            (target_x >= 0)
            & (target_y >= 0)
            & (target_x < width)
            & (target_y < height)
        )
        if not inside.any():
            continue

        tx = target_x[inside].astype(np.intp)
        ty = target_y[inside].astype(np.intp)
        target[ty, tx] = source[row_start:row_stop][inside]
        coverage[ty, tx] = True
        mapped_count += int(inside.sum())

    logger.debug(
        f"Mapped {mapped_count} of {src_width * src_height} source pixels, "
        f"{int(coverage.sum())} of {width * height} target pixels covered"
    )

    return target, coverage
