"""
Data types and structures for the Perspector module.

Provides type-safe containers for configuration and results.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import numpy as np

from src.common.types import Pixel


class Position(Enum):
    """Position of a vector with respect to a reference vector."""

    LEFT = "left"  # Counterclockwise turn from the reference
    RIGHT = "right"  # Clockwise turn from the reference
    EQUAL = "equal"  # Colinear, same direction
    OPPOSED = "opposed"  # Colinear, opposite direction
    UNDEF = "undef"  # One of the vectors is null


class TransformStatus(Enum):
    """Pipeline outcomes."""

    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


class FailureReason(Enum):
    """Specific reasons for failure."""

    AMBIGUOUS_GEOMETRY = "Ambiguous Geometry"  # Anchors not projectable
    DEGENERATE_SYSTEM = "Degenerate System"  # No clean 1-D null space
    OVERSIZED_TARGET = "Oversized Target"  # width * height overflows
    ALLOCATION_FAILURE = "Allocation Failure"  # Out of memory
    EMPTY_COVERAGE = "Empty Coverage"  # No source pixel landed in the target
    INVALID_INPUT = "Invalid Input"  # Wrong anchor count, bad dimensions
    NONE = "None"  # No failure


@dataclass(frozen=True)
class CornerAssignment:
    """
    Anchors labeled with the rectangle corner they map onto.

    Corners follow the mathematical orientation: bottom means smaller y.
    bl maps to (0, 0), br to (W, 0), tr to (W, H), tl to (0, H).
    """

    bl: Pixel
    br: Pixel
    tr: Pixel
    tl: Pixel

    def as_list(self) -> List[Pixel]:
        """Corners in counterclockwise order [bl, br, tr, tl]."""
        return [self.bl, self.br, self.tr, self.tl]

    def to_numpy(self) -> np.ndarray:
        """Corners as a (4, 2) float64 array in [bl, br, tr, tl] order."""
        return np.array([p.to_tuple() for p in self.as_list()], dtype=np.float64)

    def label_of(self, pixel: Pixel) -> Optional[str]:
        """Return the corner label ("bl", "br", "tr", "tl") of an anchor."""
        for label in ("bl", "br", "tr", "tl"):
            if getattr(self, label) == pixel:
                return label
        return None


@dataclass
class SolverConfig:
    """Configuration for the transform solver."""

    # A system counts as rank 8 when its 8th singular value exceeds
    # rank_tolerance * largest singular value.
    rank_tolerance: float


@dataclass
class MapperConfig:
    """Configuration for the forward mapper."""

    max_pixel_count: int  # Largest accepted target width * height
    chunk_rows: int  # Source rows mapped per vectorized band


@dataclass
class SizingConfig:
    """Default aspect ratio for target size computation."""

    default_ratio_width: float
    default_ratio_height: float


@dataclass
class PerspectorConfig:
    """Complete perspector module configuration."""

    solver: SolverConfig
    mapper: MapperConfig
    sizing: SizingConfig


@dataclass
class TransformResult:
    """
    Output from the perspector pipeline.

    Attributes:
        status: SUCCESS or FAILURE.
        image: The rectified (H, W, 4) buffer (None on failure).
        failure_reason: Specific reason if failed, NONE otherwise.
        target_width: Requested target width.
        target_height: Requested target height.
        corners: Corner assignment (None if classification failed).
        matrix: 3x3 homogeneous transform (None if solving failed).
        filled_holes: Number of target pixels filled by interpolation.
        detail: Message of the underlying error, if any.
    """

    status: TransformStatus
    image: Optional[np.ndarray]
    failure_reason: FailureReason
    target_width: int
    target_height: int
    corners: Optional[CornerAssignment] = None
    matrix: Optional[np.ndarray] = None
    filled_holes: int = 0
    detail: str = ""

    def is_success(self) -> bool:
        """Check if the pipeline succeeded."""
        return self.status == TransformStatus.SUCCESS

    def get_error_message(self) -> str:
        """Get human-readable error message."""
        if self.is_success():
            return "Transformation applied"

        reason_messages = {
            FailureReason.AMBIGUOUS_GEOMETRY: "Anchors configuration is not usable",
            FailureReason.DEGENERATE_SYSTEM: (
                "Anchors are numerically degenerate (three of them may be colinear)"
            ),
            FailureReason.OVERSIZED_TARGET: (
                f"The picture is too big: {self.target_width}x{self.target_height}"
            ),
            FailureReason.ALLOCATION_FAILURE: "Target buffer allocation error",
            FailureReason.EMPTY_COVERAGE: "No source pixel maps inside the target",
        }

        return reason_messages.get(
            self.failure_reason, f"Failed: {self.detail or self.failure_reason.value}"
        )
