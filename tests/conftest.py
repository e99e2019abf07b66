"""
Pytest Configuration and Shared Fixtures

This file contains pytest configuration and fixtures that are available
to all test modules.
"""

import pytest


@pytest.fixture
def unit_square_anchors():
    """Fixture providing the 4 corners of the unit square (bl, br, tr, tl)."""
    return [[0, 0], [1, 0], [1, 1], [0, 1]]


@pytest.fixture
def sample_quadrilateral_anchors():
    """Fixture providing a perspective-distorted quadrilateral, one per quadrant."""
    import numpy as np

    return np.array(
        [
            [300, 150],  # Right, low y
            [100, 200],  # Left, low y
            [320, 400],  # Right, high y
            [80, 380],  # Left, high y
        ],
        dtype=np.int64,
    )


@pytest.fixture
def gradient_source():
    """Fixture providing a 4-channel source whose colors encode positions."""
    import numpy as np

    height, width = 40, 60
    ys, xs = np.mgrid[0:height, 0:width]
    image = np.zeros((height, width, 4), dtype=np.uint8)
    image[:, :, 0] = xs * 4  # Blue encodes x
    image[:, :, 1] = ys * 6  # Green encodes y
    image[:, :, 2] = 128
    image[:, :, 3] = 255
    return image


@pytest.fixture
def sample_test_image():
    """Fixture providing a BGR picture with a filled tilted quadrilateral."""
    import cv2
    import numpy as np

    image = np.full((200, 300, 3), 255, dtype=np.uint8)
    pts = np.array([[60, 40], [240, 30], [250, 160], [50, 170]], dtype=np.int32)
    cv2.fillPoly(image, [pts], (50, 50, 50))
    return image, pts
