"""
Common type definitions for the perspector pipeline.

This module provides Pydantic-based type definitions for core data structures
used throughout the pipeline: pixel buffers, pixels, points, and anchor sets.

These types provide:
- Type validation and conversion
- Consistent interfaces across modules
- Helper methods for common operations
- Integration with numpy arrays and OpenCV
"""

from typing import List, Optional, Tuple, Union

import numpy as np
from pydantic import BaseModel, Field, field_validator

from src.utils.constants import (
    ANCHOR_REMOVAL_RADIUS,
    COORD_MAX,
    COORD_MIN,
    NUM_ANCHORS,
    NUM_CHANNELS,
)

_NUMERIC_TYPES = (int, float, np.integer, np.floating)


def round_half_away_from_zero(values: Union[float, np.ndarray]) -> np.ndarray:
    """
    Round to the nearest integer, ties away from zero.

    ``np.round`` and ``round`` use banker's rounding (ties to even), which
    would send 0.5 to 0 and 2.5 to 2.

    Args:
        values: Scalar or array of real values.

    Returns:
        Array (or 0-d array) of rounded values, still as floats.
    """
    values = np.asarray(values, dtype=np.float64)
    return np.sign(values) * np.floor(np.abs(values) + 0.5)


class PixelBuffer(BaseModel):
    """
    Type-safe wrapper for 4-channel pixel arrays (numpy.ndarray).

    The buffer is row-major: ``data[y, x]`` is the color of pixel (x, y).
    Channels are stored in BGRA order at the I/O boundary; the transform
    core never interprets them.

    Attributes:
        data: The underlying numpy array, shape (H, W, 4), dtype uint8.

    Example:
        >>> buffer = PixelBuffer(data=np.zeros((480, 640, 4), dtype=np.uint8))
        >>> print(buffer.height, buffer.width)  # 480, 640
    """

    data: np.ndarray = Field(..., description="Pixel data as numpy array")

    model_config = {"arbitrary_types_allowed": True}

    @field_validator("data")
    @classmethod
    def _validate_buffer(cls, v: np.ndarray) -> np.ndarray:
        """
        Validate that the numpy array is a 4-channel pixel buffer.

        Raises:
            ValueError: If array is not a valid pixel buffer.
        """
        if not isinstance(v, np.ndarray):
            raise ValueError(f"Expected numpy.ndarray, got {type(v)}")

        if v.size == 0:
            raise ValueError("Pixel buffer is empty")

        if v.ndim != 3 or v.shape[2] != NUM_CHANNELS:
            raise ValueError(
                f"Expected shape (H, W, {NUM_CHANNELS}), got shape {v.shape}"
            )

        if v.dtype != np.uint8:
            raise ValueError(
                f"Expected uint8 dtype for pixel buffer, got {v.dtype}. "
                "Channels should be in range [0, 255]"
            )

        return v

    @classmethod
    def blank(cls, width: int, height: int) -> "PixelBuffer":
        """Create a zero-filled (transparent black) buffer."""
        return cls(data=np.zeros((height, width, NUM_CHANNELS), dtype=np.uint8))

    @property
    def shape(self) -> Tuple[int, ...]:
        """Get buffer shape (H, W, 4)."""
        return self.data.shape

    @property
    def height(self) -> int:
        """Get buffer height in pixels."""
        return int(self.data.shape[0])

    @property
    def width(self) -> int:
        """Get buffer width in pixels."""
        return int(self.data.shape[1])

    def to_numpy(self) -> np.ndarray:
        """Get underlying numpy array."""
        return self.data

    def copy(self) -> "PixelBuffer":
        """Create a deep copy of the pixel buffer."""
        return PixelBuffer(data=self.data.copy())

    def __repr__(self) -> str:
        """String representation of PixelBuffer."""
        return f"PixelBuffer(width={self.width}, height={self.height})"


class Pixel(BaseModel):
    """
    Discrete, signed 2D position (x, y).

    Pixels are immutable and hashable so they can be compared, sorted and
    used as dictionary keys. Negative values express off-canvas positions.

    Attributes:
        x: X-coordinate (horizontal).
        y: Y-coordinate (vertical).

    Example:
        >>> pixel = Pixel(x=100, y=200)
        >>> pixel.to_tuple()
        (100, 200)
    """

    x: int = Field(..., description="X-coordinate (horizontal)")
    y: int = Field(..., description="Y-coordinate (vertical)")

    model_config = {"frozen": True}

    @field_validator("x", "y", mode="before")
    @classmethod
    def _convert_to_int(cls, v: Union[int, float]) -> int:
        """
        Convert coordinate to int, rounding half away from zero if float.

        Raises:
            ValueError: If the value is not numeric or does not fit a
                signed 32-bit coordinate.
        """
        if isinstance(v, bool) or not isinstance(v, _NUMERIC_TYPES):
            raise ValueError(f"Coordinate must be numeric, got {type(v)}")
        if isinstance(v, (float, np.floating)):
            if not np.isfinite(v):
                raise ValueError(f"Coordinate must be finite, got {v}")
            v = round_half_away_from_zero(v)
        v = int(v)
        if not COORD_MIN <= v <= COORD_MAX:
            raise ValueError(f"Coordinate {v} out of range")
        return v

    @classmethod
    def from_numpy(cls, arr: np.ndarray) -> "Pixel":
        """
        Create Pixel from numpy array of shape (2,).

        Raises:
            ValueError: If array shape is not (2,).
        """
        arr = np.asarray(arr)
        if arr.shape != (2,):
            raise ValueError(f"Expected array of shape (2,), got {arr.shape}")
        return cls(x=arr[0], y=arr[1])

    @classmethod
    def from_list(cls, coords: list) -> "Pixel":
        """Create Pixel from [x, y]."""
        if len(coords) != 2:
            raise ValueError(f"Expected list with 2 elements, got {len(coords)}")
        return cls(x=coords[0], y=coords[1])

    def to_numpy(self, dtype: type = np.float64) -> np.ndarray:
        """Convert Pixel to numpy array [x, y]."""
        return np.array([self.x, self.y], dtype=dtype)

    def to_tuple(self) -> Tuple[int, int]:
        """Convert Pixel to tuple (x, y)."""
        return (self.x, self.y)

    def __repr__(self) -> str:
        """String representation of Pixel."""
        return f"Pixel(x={self.x}, y={self.y})"


class Point(BaseModel):
    """
    Real-valued 2D coordinate pair.

    Only used for intermediate geometry (barycenter, vectors relative to
    the barycenter).
    """

    x: float
    y: float

    model_config = {"frozen": True}

    @classmethod
    def from_pixel(cls, pixel: Pixel) -> "Point":
        """Promote a Pixel to a Point."""
        return cls(x=float(pixel.x), y=float(pixel.y))

    def __sub__(self, other: "Point") -> "Point":
        """Subtract two points (vector subtraction)."""
        return Point(x=self.x - other.x, y=self.y - other.y)

    def cross(self, other: "Point") -> float:
        """Z-component of the cross product self × other."""
        return self.x * other.y - self.y * other.x

    def dot(self, other: "Point") -> float:
        """Dot product."""
        return self.x * other.x + self.y * other.y

    def is_zero(self) -> bool:
        """Check if this vector is the null vector."""
        return self.x == 0 and self.y == 0

    def __repr__(self) -> str:
        """String representation of Point."""
        return f"Point(x={self.x}, y={self.y})"


def barycenter(pixels: List[Pixel]) -> Point:
    """Arithmetic mean position of a non-empty list of pixels."""
    if not pixels:
        raise ValueError("Cannot compute the barycenter of no pixels")
    count = len(pixels)
    return Point(
        x=sum(p.x for p in pixels) / count,
        y=sum(p.y for p in pixels) / count,
    )


class AnchorSet(BaseModel):
    """
    Unordered collection of at most 4 anchor pixels.

    Insertion order carries no geometric meaning, but it is kept: the most
    recently added anchor is the first candidate for removal, and the
    classifier uses the first anchor as its angular reference.

    Example:
        >>> anchors = AnchorSet()
        >>> anchors.add(Pixel(x=0, y=0))
        True
        >>> anchors.count
        1
    """

    pixels: List[Pixel] = Field(default_factory=list)

    @field_validator("pixels")
    @classmethod
    def _validate_pixels(cls, v: List[Pixel]) -> List[Pixel]:
        """Enforce the anchor cap."""
        if len(v) > NUM_ANCHORS:
            raise ValueError(
                f"An anchor set holds at most {NUM_ANCHORS} pixels, got {len(v)}"
            )
        return v

    @classmethod
    def from_points(cls, points: Union[np.ndarray, list]) -> "AnchorSet":
        """
        Create an AnchorSet from an (N, 2) array or list of [x, y] pairs.

        Raises:
            ValueError: If more than 4 points are given or shape is wrong.
        """
        points = np.asarray(points)
        if points.size == 0:
            return cls()
        if points.ndim != 2 or points.shape[1] != 2:
            raise ValueError(
                f"Expected anchor points with shape (N, 2), got shape {points.shape}"
            )
        return cls(pixels=[Pixel.from_numpy(p) for p in points])

    @property
    def count(self) -> int:
        """Number of anchors currently placed."""
        return len(self.pixels)

    def is_full(self) -> bool:
        """Check if all 4 anchors are placed."""
        return self.count >= NUM_ANCHORS

    def add(self, pixel: Pixel) -> bool:
        """
        Add an anchor.

        Returns:
            True if the anchor was added, False if the set is full or the
            pixel is already an anchor.
        """
        if self.is_full() or pixel in self.pixels:
            return False
        self.pixels.append(pixel)
        return True

    def remove_near(
        self, position: Pixel, radius: int = ANCHOR_REMOVAL_RADIUS
    ) -> Optional[Pixel]:
        """
        Remove the most recently added anchor within a square radius.

        Returns:
            The removed anchor, or None if no anchor was close enough.
        """
        for i in range(self.count - 1, -1, -1):
            anchor = self.pixels[i]
            if (
                abs(anchor.x - position.x) <= radius
                and abs(anchor.y - position.y) <= radius
            ):
                return self.pixels.pop(i)
        return None

    def bounding_box(self) -> Tuple[int, int, int, int]:
        """
        Bounding box of the anchors.

        Returns:
            Tuple (min_x, min_y, max_x, max_y).

        Raises:
            ValueError: If the set is empty.
        """
        if not self.pixels:
            raise ValueError("Cannot compute the bounding box of an empty anchor set")
        xs = [p.x for p in self.pixels]
        ys = [p.y for p in self.pixels]
        return min(xs), min(ys), max(xs), max(ys)

    def to_numpy(self) -> np.ndarray:
        """Convert anchors to an (N, 2) int64 array."""
        return np.array([p.to_tuple() for p in self.pixels], dtype=np.int64).reshape(
            -1, 2
        )

    def __repr__(self) -> str:
        """String representation of AnchorSet."""
        return f"AnchorSet({[p.to_tuple() for p in self.pixels]})"
