"""
Perspective transform solver.

A 2D perspective transformation is not linear, so we work in homogeneous
coordinates: (x, y) becomes (x, y, 1), the 3x3 matrix M gives
(x', y', w') = M . (x, y, 1), and the result is projected back on the plane
as (x'/w', y'/w').

M is only defined up to a scale factor, so 8 coefficients must be found:
4 correspondences give 2 equations each. The homogeneous system has a
one-dimensional null space, computed with a singular value decomposition.
"""

import logging
from typing import Optional, Tuple

import numpy as np

from src.common.types import Pixel, round_half_away_from_zero
from src.perspector.classifier import AnchorsLike, classify
from src.perspector.errors import (
    AmbiguousGeometryError,
    DegenerateSystemError,
    InvalidInputError,
)
from src.perspector.types import CornerAssignment, SolverConfig

logger = logging.getLogger(__name__)

DEFAULT_RANK_TOLERANCE = 1e-12

# |w'| below this fraction of |M| * |(x, y, 1)| is treated as a point at
# infinity.
_HOMOGENEOUS_EPSILON = 1e-9


def target_corners(width: int, height: int) -> np.ndarray:
    """Rectangle corners [bl, br, tr, tl] for a width x height target."""
    return np.array(
        [[0, 0], [width, 0], [width, height], [0, height]], dtype=np.float64
    )


def build_system_equation(
    corners: CornerAssignment, width: int, height: int
) -> np.ndarray:
    """
    Build the 8x9 homogeneous system mapping the corners onto the target.

    Each correspondence (x, y) -> (u, v) yields, for the unknowns
    m = (m0 .. m8) of the row-major matrix:

        m0 x + m1 y + m2 - u (m6 x + m7 y + m8) = 0
        m3 x + m4 y + m5 - v (m6 x + m7 y + m8) = 0

    Rows for bl (u = v = 0), br (v = 0) and tl (u = 0) simplify accordingly.

    Args:
        corners: Anchors labeled bl, br, tr, tl.
        width: Target width.
        height: Target height.

    Returns:
        System matrix of shape (8, 9).
    """
    system = np.zeros((8, 9), dtype=np.float64)

    for i, ((x, y), (u, v)) in enumerate(
        zip(corners.to_numpy(), target_corners(width, height))
    ):
        system[2 * i, 0:3] = (x, y, 1.0)
        system[2 * i, 6:9] = (-u * x, -u * y, -u)
        system[2 * i + 1, 3:6] = (x, y, 1.0)
        system[2 * i + 1, 6:9] = (-v * x, -v * y, -v)

    return system


def project(matrix: np.ndarray, points: np.ndarray) -> np.ndarray:
    """
    Apply a homogeneous transform to real-valued points.

    Args:
        matrix: 3x3 transform.
        points: Array of shape (N, 2).

    Returns:
        Projected points, shape (N, 2). Rows whose homogeneous weight is
        (numerically) zero are NaN.
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    homogeneous = np.hstack([points, np.ones((len(points), 1))])
    mapped = homogeneous @ matrix.T

    weights = mapped[:, 2]
    scale = np.linalg.norm(matrix) * np.linalg.norm(homogeneous, axis=1)
    at_infinity = np.abs(weights) <= _HOMOGENEOUS_EPSILON * scale

    with np.errstate(divide="ignore", invalid="ignore"):
        projected = mapped[:, :2] / weights[:, None]
    projected[at_infinity] = np.nan
    return projected


def apply_transform(matrix: np.ndarray, x: int, y: int) -> Optional[Pixel]:
    """
    Map a single pixel through the transform.

    Returns:
        The rounded target pixel (ties away from zero), or None if the
        pixel is sent to infinity.

    Example:
        >>> apply_transform(np.eye(3), 3, 4)
        Pixel(x=3, y=4)
    """
    projected = project(matrix, np.array([[x, y]]))[0]
    if not np.all(np.isfinite(projected)):
        return None
    rounded = round_half_away_from_zero(projected)
    return Pixel(x=rounded[0], y=rounded[1])


def solve_system(system: np.ndarray, rank_tolerance: float) -> np.ndarray:
    """
    Solve the homogeneous 8x9 system by SVD.

    The solution is the right singular vector of the smallest singular
    value (the 9th row of V^T since the system has 8 rows), reshaped
    row-major into a 3x3 matrix.

    Raises:
        DegenerateSystemError: If the SVD fails or the system is not rank 8.
    """
    try:
        _, singular_values, vt = np.linalg.svd(system, full_matrices=True)
    except np.linalg.LinAlgError as e:
        raise DegenerateSystemError(f"SVD did not converge: {e}") from e

    logger.debug(f"Singular values: {singular_values}")

    largest = singular_values[0]
    smallest = singular_values[-1]
    if not np.isfinite(largest) or smallest <= rank_tolerance * largest:
        raise DegenerateSystemError(
            f"System is rank deficient: smallest singular value {smallest:.3e}, "
            f"largest {largest:.3e}"
        )

    return vt[-1].reshape(3, 3)


def solve_transform_matrix(
    anchors: AnchorsLike,
    width: int,
    height: int,
    config: Optional[SolverConfig] = None,
    corners: Optional[CornerAssignment] = None,
) -> Tuple[np.ndarray, CornerAssignment]:
    """
    Compute the perspective matrix sending the anchors to the target corners.

    Args:
        anchors: 4 anchors in any order.
        width: Target width (positive).
        height: Target height (positive).
        config: Solver configuration; defaults to a 1e-12 rank tolerance.
        corners: Corner assignment of the anchors, when the caller already
            classified them.

    Returns:
        Tuple of (3x3 transform matrix, corner assignment). The matrix is
        defined up to scale and is not normalized.

    Raises:
        InvalidInputError: If the target dimensions are not positive.
        AmbiguousGeometryError: If the anchors cannot be classified.
        DegenerateSystemError: If the system has no clean solution, or the
            solution does not send every anchor onto its corner.

    Example:
        >>> matrix, corners = solve_transform_matrix(
        ...     [[0, 0], [10, 0], [10, 10], [0, 10]], 20, 20
        ... )
        >>> apply_transform(matrix, 10, 10)
        Pixel(x=20, y=20)
    """
    if width <= 0 or height <= 0:
        raise InvalidInputError(
            f"Target dimensions must be positive, got {width}x{height}"
        )

    rank_tolerance = config.rank_tolerance if config else DEFAULT_RANK_TOLERANCE

    if corners is None:
        corners = classify(anchors)
    if corners is None:
        raise AmbiguousGeometryError("Anchors configuration is not usable")

    system = build_system_equation(corners, width, height)
    matrix = solve_system(system, rank_tolerance)

    # A singular solution can satisfy the equations by sending an anchor to
    # (0, 0, 0); this happens when 3 anchors are colinear.
    projected = project(matrix, corners.to_numpy())
    expected = target_corners(width, height)
    if not np.all(np.isfinite(projected)) or not np.array_equal(
        round_half_away_from_zero(projected), expected
    ):
        raise DegenerateSystemError(
            f"Transform does not map anchors onto corners: {projected.tolist()}"
        )

    logger.debug(f"Transform matrix:\n{matrix}")
    return matrix, corners
