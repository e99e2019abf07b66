"""
Geometry classification of anchor sets.

Decides whether 4 anchors can be assigned without ambiguity to the corners
of a rectangle (bottom-left, bottom-right, top-right, top-left), and
produces that assignment.

Corners follow the mathematical orientation: "bottom" is the smaller y and
corners run counterclockwise bl -> br -> tr -> tl.
"""

import functools
import logging
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np

from src.common.types import AnchorSet, Pixel, Point, barycenter
from src.perspector.types import CornerAssignment, Position
from src.utils.constants import NUM_ANCHORS

logger = logging.getLogger(__name__)

AnchorsLike = Union[AnchorSet, Sequence[Pixel], np.ndarray, list]


def _as_pixels(anchors: AnchorsLike) -> List[Pixel]:
    """Normalize any supported anchor container to a list of Pixels."""
    if isinstance(anchors, AnchorSet):
        return list(anchors.pixels)
    if len(anchors) and all(isinstance(p, Pixel) for p in anchors):
        return list(anchors)
    points = np.asarray(anchors)
    if points.size == 0:
        return []
    if points.ndim != 2 or points.shape[1] != 2:
        raise ValueError(
            f"Expected anchor points with shape (N, 2), got shape {points.shape}"
        )
    return [Pixel.from_numpy(p) for p in points]


def position(p: Point, ref: Point) -> Position:
    """
    Return the position of vector ``p`` with respect to vector ``ref``.

    LEFT means ``p`` is a counterclockwise turn away from ``ref``, RIGHT a
    clockwise one. Colinear vectors are EQUAL when they point the same way,
    OPPOSED otherwise. UNDEF if either vector is null.

    Example:
        >>> position(Point(x=0, y=1), Point(x=1, y=0))
        <Position.LEFT: 'left'>
    """
    if p.is_zero() or ref.is_zero():
        return Position.UNDEF

    cross = ref.cross(p)
    if cross == 0:
        return Position.EQUAL if ref.dot(p) > 0 else Position.OPPOSED

    return Position.LEFT if cross > 0 else Position.RIGHT


def make_angle_comparator(
    ref: Pixel, center: Point
) -> Callable[[Pixel, Pixel], int]:
    """
    Build a comparator ordering pixels counterclockwise around ``center``.

    Angles are measured from the direction of ``ref``, which compares lowest.
    No trigonometric function is involved: the ordering relies on
    ``position`` only.

    Args:
        ref: Pixel giving the zero angle.
        center: Origin of the angular measure.

    Returns:
        A cmp-style function usable with ``functools.cmp_to_key``.
    """
    refn = Point.from_pixel(ref) - center

    def compare(a: Pixel, b: Pixel) -> int:
        an = Point.from_pixel(a) - center
        bn = Point.from_pixel(b) - center

        an_refn = position(an, refn)
        an_bn = position(an, bn)
        bn_refn = position(bn, refn)

        if an_bn in (Position.EQUAL, Position.UNDEF):
            # Same direction or at the center: not comparable
            return 0
        if (
            an_refn == Position.EQUAL
            or (
                bn_refn == Position.LEFT
                and an_refn == Position.LEFT
                and an_bn == Position.RIGHT
            )
            or (
                bn_refn == Position.RIGHT
                and (an_bn == Position.RIGHT or an_refn == Position.LEFT)
            )
            or (bn_refn == Position.OPPOSED and an_refn == Position.LEFT)
        ):
            return -1
        return 1

    return compare


def _in_cyclic_order(order: List[Pixel], corners: CornerAssignment) -> bool:
    """Check that bl, br, tr, tl follow each other cyclically in ``order``."""
    expected = corners.as_list()
    if expected[0] not in order:
        return False
    start = order.index(expected[0])
    return all(
        order[(start + offset) % len(order)] == expected[offset]
        for offset in range(1, len(expected))
    )


def _ordered_pair(a: Pixel, b: Pixel, axis: str) -> Tuple[Pixel, Pixel]:
    """Order two pixels along ``axis``; on a tie the second one comes first."""
    if getattr(a, axis) < getattr(b, axis):
        return a, b
    return b, a


def _split_by_x(xsorted: List[Pixel]) -> CornerAssignment:
    """Left pair gives bl/tl, right pair gives br/tr, each ordered by y."""
    bl, tl = _ordered_pair(xsorted[0], xsorted[1], "y")
    br, tr = _ordered_pair(xsorted[2], xsorted[3], "y")
    return CornerAssignment(bl=bl, br=br, tr=tr, tl=tl)


def _split_by_y(ysorted: List[Pixel]) -> CornerAssignment:
    """Bottom pair gives bl/br, top pair gives tl/tr, each ordered by x."""
    bl, br = _ordered_pair(ysorted[0], ysorted[1], "x")
    tl, tr = _ordered_pair(ysorted[2], ysorted[3], "x")
    return CornerAssignment(bl=bl, br=br, tr=tr, tl=tl)


def _has_mixed_y_order(xsorted: List[Pixel]) -> bool:
    """True if the left pair is neither entirely below nor above the right pair."""
    left, right = xsorted[:2], xsorted[2:]
    some_below = any(a.y < b.y for a in left for b in right)
    some_above = any(a.y > b.y for a in left for b in right)
    return some_below and some_above


def classify(anchors: AnchorsLike) -> Optional[CornerAssignment]:
    """
    Assign 4 anchors to rectangle corners, if possible without ambiguity.

    Duplicated anchors, an anchor at the barycenter, or two anchors on the
    same ray from the barycenter always fail. Otherwise the plane is split
    at the median x and the median y. Possible configurations:

    - 1 anchor in each of the 4 partitions: no ambiguity.
    - 2 anchors on a split line (e.g. a losange): impossible.
    - 2 anchors in one diagonal partition and 2 in the other: splitting
      on x first and on y first yield different assignments. Each one is
      kept only if its bl -> br -> tr -> tl sequence matches the
      counterclockwise order of the anchors around their barycenter, and
      the result is accepted only if exactly one of them matches.

    Args:
        anchors: AnchorSet, list of Pixels, or (4, 2) array of [x, y].

    Returns:
        CornerAssignment on success, None if the configuration is
        ambiguous or degenerate.

    Example:
        >>> corners = classify([[0, 0], [1, 0], [1, 1], [0, 1]])
        >>> corners.tr
        Pixel(x=1, y=1)
    """
    pixels = _as_pixels(anchors)

    if len(pixels) != NUM_ANCHORS:
        logger.debug(f"Classification needs {NUM_ANCHORS} anchors, got {len(pixels)}")
        return None

    if len(set(pixels)) != NUM_ANCHORS:
        logger.debug(f"Duplicate anchors: {pixels}")
        return None

    # An anchor at the barycenter, or two anchors on the same ray from it,
    # cannot be ordered around it
    center = barycenter(pixels)
    vectors = [Point.from_pixel(p) - center for p in pixels]
    for i in range(NUM_ANCHORS):
        for j in range(i + 1, NUM_ANCHORS):
            if position(vectors[i], vectors[j]) in (Position.EQUAL, Position.UNDEF):
                logger.debug(
                    f"Anchors {pixels[i]} and {pixels[j]} are not comparable "
                    f"around barycenter {center}"
                )
                return None

    xsorted = sorted(pixels, key=lambda p: p.x)
    ysorted = sorted(pixels, key=lambda p: p.y)

    # 1 anchor per partition
    if (
        xsorted[1].x != xsorted[2].x
        and ysorted[1].y != ysorted[2].y
        and _has_mixed_y_order(xsorted)
    ):
        corners = _split_by_x(xsorted)
        logger.debug(f"One anchor per quadrant: {corners}")
        return corners

    # 2 anchors on a split line
    if xsorted[1].x == xsorted[2].x or ysorted[1].y == ysorted[2].y:
        logger.debug("Anchors lie on a split line")
        return None

    # 2 pairs in 2 diagonal partitions
    order = sorted(
        pixels, key=functools.cmp_to_key(make_angle_comparator(pixels[0], center))
    )
    logger.debug(f"Counterclockwise order around {center}: {order}")

    x_result = None
    if (
        xsorted[1].x != xsorted[2].x
        and xsorted[0].y != xsorted[1].y
        and xsorted[2].y != xsorted[3].y
    ):
        candidate = _split_by_x(xsorted)
        if _in_cyclic_order(order, candidate):
            x_result = candidate

    y_result = None
    if (
        ysorted[1].y != ysorted[2].y
        and ysorted[0].x != ysorted[1].x
        and ysorted[2].x != ysorted[3].x
    ):
        candidate = _split_by_y(ysorted)
        if _in_cyclic_order(order, candidate):
            y_result = candidate

    if (x_result is None) == (y_result is None):
        logger.debug(
            f"X-split and Y-split agree on validity "
            f"(x={x_result is not None}, y={y_result is not None}): ambiguous"
        )
        return None

    return x_result if x_result is not None else y_result


def is_projectable(anchors: AnchorsLike) -> bool:
    """Check if anchors can be assigned to rectangle corners without ambiguity."""
    return classify(anchors) is not None
