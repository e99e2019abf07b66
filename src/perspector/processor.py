"""
Main processor for the Perspector module.

Orchestrates the complete pipeline:
1. Geometry classification (corner assignment)
2. Transform solving (SVD)
3. Forward mapping (scatter + coverage mask)
4. Hole filling (ring averaging)

Implements fail-fast strategy: stops at first failure.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import numpy as np

from src.common.types import AnchorSet, PixelBuffer
from src.perspector.classifier import AnchorsLike, classify
from src.perspector.config_loader import load_config
from src.perspector.errors import (
    AmbiguousGeometryError,
    InvalidInputError,
    PerspectorError,
)
from src.perspector.hole_filler import fill_holes
from src.perspector.mapper import check_target_size, map_forward
from src.perspector.solver import solve_transform_matrix
from src.perspector.types import (
    FailureReason,
    PerspectorConfig,
    TransformResult,
    TransformStatus,
)
from src.utils.constants import NUM_ANCHORS

logger = logging.getLogger(__name__)


class PerspectorProcessor:
    """
    Main processor for perspective rectification.

    Maps the quadrilateral spanned by 4 anchors onto a target rectangle.
    Failures never raise: they come back as a FAILURE TransformResult with
    the reason set, so callers can ask for different anchors or sizes.

    Example:
        >>> processor = PerspectorProcessor()
        >>> source = np.zeros((480, 640, 4), dtype=np.uint8)
        >>> anchors = [[100, 150], [450, 140], [460, 320], [90, 330]]
        >>> result = processor.process(source, anchors, 300, 200)
        >>> if result.is_success():
        ...     rectified = result.image
    """

    def __init__(
        self,
        config: Optional[PerspectorConfig] = None,
        config_path: Optional[Path] = None,
    ):
        """
        Initialize the perspector processor.

        Args:
            config: Pre-loaded configuration object. If None, will load from file.
            config_path: Path to config file. If None, uses default location.
        """
        if config is not None:
            self.config = config
            logger.info("Using provided configuration")
        else:
            self.config = load_config(config_path) if config_path else load_config()
            logger.info("Loaded configuration from file")

    def process(
        self,
        source: Union[np.ndarray, PixelBuffer],
        anchors: AnchorsLike,
        target_width: int,
        target_height: int,
    ) -> TransformResult:
        """
        Execute the complete perspector pipeline.

        Args:
            source: Source buffer (H, W, C), read only.
            anchors: Exactly 4 anchors, in any order.
            target_width: Width of the rectified output.
            target_height: Height of the rectified output.

        Returns:
            TransformResult with the fully covered target buffer on success.
        """
        if isinstance(source, PixelBuffer):
            source = source.to_numpy()

        result = TransformResult(
            status=TransformStatus.FAILURE,
            image=None,
            failure_reason=FailureReason.NONE,
            target_width=target_width,
            target_height=target_height,
        )

        try:
            # Stage 1: Geometry Classification
            logger.info("[Stage 1/4] Geometry Classification")
            pixels = anchors.pixels if isinstance(anchors, AnchorSet) else anchors
            if len(pixels) != NUM_ANCHORS:
                raise InvalidInputError(
                    f"{NUM_ANCHORS} anchors required, got {len(pixels)}"
                )
            result.corners = classify(anchors)
            if result.corners is None:
                raise AmbiguousGeometryError("Anchors configuration is not usable")
            logger.info(f"Corner assignment: {result.corners}")

            # Stage 2: Transform Solving
            logger.info("[Stage 2/4] Transform Solving")
            check_target_size(
                target_width, target_height, self.config.mapper.max_pixel_count
            )
            result.matrix, result.corners = solve_transform_matrix(
                anchors,
                target_width,
                target_height,
                self.config.solver,
                corners=result.corners,
            )

            # Stage 3: Forward Mapping
            logger.info("[Stage 3/4] Forward Mapping")
            target, coverage = map_forward(
                result.matrix,
                source,
                target_width,
                target_height,
                self.config.mapper,
            )

            # Stage 4: Hole Filling
            logger.info("[Stage 4/4] Hole Filling")
            result.filled_holes = fill_holes(target, coverage)
            logger.info(
                f"Filled {result.filled_holes} of "
                f"{target_width * target_height} target pixels"
            )
        except PerspectorError as e:
            logger.warning(f"Pipeline FAILED: {e.reason.value}: {e}")
            result.failure_reason = e.reason
            result.detail = str(e)
            return result
        except ValueError as e:
            logger.warning(f"Pipeline FAILED: invalid input: {e}")
            result.failure_reason = FailureReason.INVALID_INPUT
            result.detail = str(e)
            return result

        logger.info(
            f"Pipeline SUCCEEDED - rectified to {target_width}x{target_height}"
        )
        result.status = TransformStatus.SUCCESS
        result.image = target
        return result


def process_perspective(
    source: Union[np.ndarray, PixelBuffer],
    anchors: AnchorsLike,
    target_width: int,
    target_height: int,
    config: Optional[PerspectorConfig] = None,
) -> TransformResult:
    """
    Convenience function for one-shot perspective rectification.

    Args:
        source: Source buffer.
        anchors: 4 anchors.
        target_width: Width of the rectified output.
        target_height: Height of the rectified output.
        config: Optional custom configuration. Uses default if None.

    Returns:
        TransformResult object.

    Example:
        >>> result = process_perspective(source, anchors, 300, 200)
        >>> if result.is_success():
        ...     print("Transformation applied")
    """
    processor = PerspectorProcessor(config=config)
    return processor.process(source, anchors, target_width, target_height)
