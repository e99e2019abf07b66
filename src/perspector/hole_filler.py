"""
Hole filling for forward-mapped buffers.

Every target pixel left uncovered by the mapper takes the mean color of the
covered pixels found on the smallest square ring around it that contains
any. Rings grow one pixel at a time: radius r samples the cells at
Chebyshev distance exactly r, clamped to the buffer.

All pending holes advance together, one radius per iteration. Ring sums are
read from summed-area tables of the covered colors and of the coverage
count: the sum over the clamped square of radius r minus the sum over the
clamped square of radius r - 1. Each ring cell is therefore counted once,
and an edge collapsed against the border needs no special walk.
"""

import logging

import numpy as np

from src.perspector.errors import (
    AllocationError,
    EmptyCoverageError,
    InvalidInputError,
)

logger = logging.getLogger(__name__)


def _summed_area_table(values: np.ndarray) -> np.ndarray:
    """
    Integral image with a leading row and column of zeros.

    ``table[y, x]`` is the sum of ``values[:y, :x]``.
    """
    height, width = values.shape[:2]
    table = np.zeros((height + 1, width + 1) + values.shape[2:], dtype=np.int64)
    table[1:, 1:] = values.astype(np.int64).cumsum(axis=0).cumsum(axis=1)
    return table


def _box_sums(
    table: np.ndarray,
    x_min: np.ndarray,
    y_min: np.ndarray,
    x_max: np.ndarray,
    y_max: np.ndarray,
) -> np.ndarray:
    """Sums over the inclusive boxes [x_min, x_max] x [y_min, y_max]."""
    return (
        table[y_max + 1, x_max + 1]
        - table[y_min, x_max + 1]
        - table[y_max + 1, x_min]
        + table[y_min, x_min]
    )


def fill_holes(target: np.ndarray, coverage: np.ndarray) -> int:
    """
    Fill every uncovered pixel of ``target`` in place.

    Only pixels covered by the mapper are sampled; filled values never feed
    other holes. The mean is truncated toward zero (integer floor, since
    channels are non-negative), not rounded.

    Args:
        target: Buffer of shape (H, W) or (H, W, C), unsigned integer dtype.
        coverage: Boolean mask of shape (H, W). Set to all True on return.

    Returns:
        Number of pixels filled.

    Raises:
        InvalidInputError: If shapes do not match.
        EmptyCoverageError: If no pixel is covered.
        AllocationError: If the summed-area tables cannot be allocated.

    Example:
        >>> target = np.array([[10, 0, 21]], dtype=np.uint8)
        >>> coverage = np.array([[True, False, True]])
        >>> fill_holes(target, coverage)
        1
        >>> int(target[0, 1])
        15
    """
    if coverage.shape != target.shape[:2]:
        raise InvalidInputError(
            f"Coverage shape {coverage.shape} does not match target "
            f"shape {target.shape[:2]}"
        )

    holes_y, holes_x = np.nonzero(~coverage)
    hole_count = len(holes_x)
    if hole_count == 0:
        logger.debug("No holes to fill")
        return 0

    if not coverage.any():
        raise EmptyCoverageError("No source pixel maps inside the target")

    height, width = coverage.shape
    try:
        covered_values = np.where(
            coverage.reshape(coverage.shape + (1,) * (target.ndim - 2)), target, 0
        )
        value_table = _summed_area_table(covered_values)
        count_table = _summed_area_table(coverage)
    except MemoryError as e:
        raise AllocationError(
            f"Cannot allocate hole-filling tables for a {width}x{height} target"
        ) from e
    del covered_values

    radius = 1
    while len(holes_x):
        inner = radius - 1
        outer_x_min = np.maximum(holes_x - radius, 0)
        outer_y_min = np.maximum(holes_y - radius, 0)
        outer_x_max = np.minimum(holes_x + radius, width - 1)
        outer_y_max = np.minimum(holes_y + radius, height - 1)
        inner_x_min = np.maximum(holes_x - inner, 0)
        inner_y_min = np.maximum(holes_y - inner, 0)
        inner_x_max = np.minimum(holes_x + inner, width - 1)
        inner_y_max = np.minimum(holes_y + inner, height - 1)

        ring_counts = _box_sums(
            count_table, outer_x_min, outer_y_min, outer_x_max, outer_y_max
        ) - _box_sums(count_table, inner_x_min, inner_y_min, inner_x_max, inner_y_max)

        found = ring_counts > 0
        if found.any():
            ring_sums = _box_sums(
                value_table,
                outer_x_min[found],
                outer_y_min[found],
                outer_x_max[found],
                outer_y_max[found],
            ) - _box_sums(
                value_table,
                inner_x_min[found],
                inner_y_min[found],
                inner_x_max[found],
                inner_y_max[found],
            )
            counts = ring_counts[found].reshape((-1,) + (1,) * (target.ndim - 2))
            target[holes_y[found], holes_x[found]] = (ring_sums // counts).astype(
                target.dtype
            )
            holes_x = holes_x[~found]
            holes_y = holes_y[~found]

        radius += 1

    coverage[...] = True
    logger.debug(f"Filled {hole_count} holes, largest radius {radius - 1}")
    return hole_count
