"""
Visualization Utilities

Functions for drawing anchors and corner assignments on pictures.
"""

from typing import Optional

import cv2
import numpy as np

from src.common.types import AnchorSet
from src.perspector.types import CornerAssignment


def draw_anchors(
    image: np.ndarray,
    anchors: AnchorSet,
    corners: Optional[CornerAssignment] = None,
    radius: int = 5,
    color: tuple = (0, 0, 255, 255),
) -> np.ndarray:
    """
    Draw anchors on a copy of an image.

    Args:
        image: BGRA (or BGR) image array.
        anchors: Anchors to draw.
        corners: Optional corner assignment; when given, each anchor is
            labeled with its corner and the quadrilateral is outlined.
        radius: Brush radius in pixels.
        color: Brush color, in the image's channel order.

    Returns:
        Annotated copy of the image.
    """
    canvas = image.copy()
    color = tuple(int(c) for c in color[: canvas.shape[2] if canvas.ndim == 3 else 1])

    if corners is not None:
        outline = corners.to_numpy().astype(np.int32).reshape(-1, 1, 2)
        cv2.polylines(canvas, [outline], isClosed=True, color=color, thickness=1)

    for anchor in anchors.pixels:
        cv2.circle(canvas, anchor.to_tuple(), radius, color, thickness=-1)

        label = corners.label_of(anchor) if corners is not None else None
        if label:
            cv2.putText(
                canvas,
                label,
                (anchor.x + radius + 2, anchor.y - radius - 2),
                cv2.FONT_HERSHEY_SIMPLEX,
                0.5,
                color,
                1,
            )

    return canvas
