"""
Shared Constants for the Perspector Pipeline

This module contains constants used across multiple modules to ensure
consistency and avoid duplication.
"""

# ============================================================================
# Coordinate Constants
# ============================================================================
# Pixel coordinates are signed so that off-canvas anchors can be expressed.
# Values must fit a signed 32-bit integer.
COORD_MAX = 2**31 - 1
COORD_MIN = -(2**31)

# ============================================================================
# Anchor Constants
# ============================================================================
NUM_ANCHORS = 4  # One anchor per rectangle corner
ANCHOR_REMOVAL_RADIUS = 5  # Square radius (px) used when removing an anchor

# ============================================================================
# Pixel Buffer Constants
# ============================================================================
NUM_CHANNELS = 4  # Blue, green, red, alpha
