"""
Perspector: Quadrilateral-to-Rectangle Perspective Rectification

Maps the quadrilateral spanned by 4 user-chosen anchors of a picture onto
an axis-aligned rectangle.

Pipeline stages:
1. Geometry classification (assign anchors to rectangle corners)
2. Transform solving (homogeneous matrix via SVD)
3. Forward mapping (scatter source pixels, record coverage)
4. Hole filling (average covered pixels on expanding square rings)
"""

from src.perspector.classifier import classify, is_projectable
from src.perspector.config_loader import load_config
from src.perspector.errors import PerspectorError
from src.perspector.hole_filler import fill_holes
from src.perspector.mapper import map_forward
from src.perspector.processor import PerspectorProcessor, process_perspective
from src.perspector.solver import apply_transform, solve_transform_matrix
from src.perspector.types import (
    CornerAssignment,
    FailureReason,
    PerspectorConfig,
    TransformResult,
    TransformStatus,
)

__all__ = [
    "PerspectorProcessor",
    "process_perspective",
    "load_config",
    "classify",
    "is_projectable",
    "solve_transform_matrix",
    "apply_transform",
    "map_forward",
    "fill_holes",
    "CornerAssignment",
    "FailureReason",
    "PerspectorConfig",
    "PerspectorError",
    "TransformResult",
    "TransformStatus",
]
