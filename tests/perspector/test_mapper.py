"""
Unit tests for the forward mapper.
"""

import numpy as np
import pytest

from src.perspector import mapper
from src.perspector.errors import (
    AllocationError,
    InvalidInputError,
    OversizedTargetError,
)
from src.perspector.mapper import check_target_size, map_forward
from src.perspector.solver import solve_transform_matrix
from src.perspector.types import MapperConfig
from src.utils.constants import COORD_MAX


def _translation(dx, dy):
    return np.array([[1.0, 0.0, dx], [0.0, 1.0, dy], [0.0, 0.0, 1.0]])


class TestCheckTargetSize:
    """Tests for the pixel-count guard."""

    def test_accepts_largest_square(self):
        """Test a target just under the 32-bit pixel-count limit."""
        check_target_size(46340, 46340)

    @pytest.mark.parametrize("width, height", [(46341, 46341), (65536, 65536)])
    def test_rejects_overflow(self, width, height):
        """Test targets whose pixel count does not fit."""
        with pytest.raises(OversizedTargetError, match="too big"):
            check_target_size(width, height)

    def test_custom_limit(self):
        """Test the guard against a configured limit."""
        check_target_size(10, 10, max_pixel_count=100)
        with pytest.raises(OversizedTargetError):
            check_target_size(10, 11, max_pixel_count=100)

    @pytest.mark.parametrize("width, height", [(0, 1), (1, 0), (-1, 5)])
    def test_rejects_non_positive(self, width, height):
        """Test that empty targets are invalid."""
        with pytest.raises(InvalidInputError):
            check_target_size(width, height)


class TestMapForward:
    """Tests for map_forward function."""

    def test_identity(self, gradient_source):
        """Test that anchors on the source corners copy the source."""
        height, width = gradient_source.shape[:2]
        matrix, _ = solve_transform_matrix(
            [[0, 0], [width, 0], [width, height], [0, height]], width, height
        )

        target, coverage = map_forward(matrix, gradient_source, width, height)

        np.testing.assert_array_equal(target, gradient_source)
        assert coverage.all()

    def test_output_layout(self, gradient_source):
        """Test dtype and shapes of the outputs."""
        target, coverage = map_forward(np.eye(3), gradient_source, 25, 15)

        assert target.shape == (15, 25, 4)
        assert target.dtype == np.uint8
        assert coverage.shape == (15, 25)
        assert coverage.dtype == bool

    def test_scaling_leaves_holes(self):
        """Test that a 2x magnification covers even coordinates only."""
        source = np.arange(4 * 4 * 4, dtype=np.uint8).reshape(4, 4, 4)
        matrix, _ = solve_transform_matrix([[0, 0], [4, 0], [4, 4], [0, 4]], 8, 8)

        target, coverage = map_forward(matrix, source, 8, 8)

        expected_coverage = np.zeros((8, 8), dtype=bool)
        expected_coverage[::2, ::2] = True
        np.testing.assert_array_equal(coverage, expected_coverage)
        np.testing.assert_array_equal(target[::2, ::2], source)
        assert not target[1::2].any()

    def test_minified_source_overlapping_writes(self):
        """
        Test an 8x8 source scattered onto a 4x4 target.

        Several source pixels round onto each target pixel. Each target pixel
        must hold one of them; which colliding pixel wins is not asserted.
        """
        ys, xs = np.mgrid[0:8, 0:8]
        source = np.zeros((8, 8, 4), dtype=np.uint8)
        source[:, :, 0] = xs
        source[:, :, 1] = ys
        source[:, :, 3] = 255
        matrix, _ = solve_transform_matrix([[0, 0], [8, 0], [8, 8], [0, 8]], 4, 4)

        target, coverage = map_forward(matrix, source, 4, 4)

        assert coverage.all()
        for ty in range(4):
            for tx in range(4):
                src_x, src_y = int(target[ty, tx, 0]), int(target[ty, tx, 1])
                # Source (x, y) lands on (x / 2, y / 2), ties rounded away
                assert abs(src_x / 2 - tx) <= 0.5 + 1e-9
                assert abs(src_y / 2 - ty) <= 0.5 + 1e-9
                assert target[ty, tx, 3] == 255

    def test_out_of_bounds_pixels_are_dropped(self, gradient_source):
        """Test that pixels mapped to negative coordinates are discarded."""
        height, width = gradient_source.shape[:2]

        target, coverage = map_forward(
            _translation(-2, 0), gradient_source, width, height
        )

        assert coverage[:, : width - 2].all()
        assert not coverage[:, width - 2 :].any()
        np.testing.assert_array_equal(target[:, 0], gradient_source[:, 2])

    def test_nothing_lands_in_target(self, gradient_source):
        """Test a transform sending every pixel outside the target."""
        target, coverage = map_forward(_translation(1000, 0), gradient_source, 10, 10)

        assert not coverage.any()
        assert not target.any()

    def test_band_height_does_not_change_result(self, gradient_source):
        """Test that the row band size is only a memory knob."""
        height, width = gradient_source.shape[:2]
        matrix, _ = solve_transform_matrix(
            [[0, 0], [width, 0], [width, height], [0, height]], 2 * width, 2 * height
        )

        reference = map_forward(matrix, gradient_source, 2 * width, 2 * height)
        banded = map_forward(
            matrix,
            gradient_source,
            2 * width,
            2 * height,
            MapperConfig(max_pixel_count=COORD_MAX, chunk_rows=7),
        )

        np.testing.assert_array_equal(reference[0], banded[0])
        np.testing.assert_array_equal(reference[1], banded[1])

    def test_single_channel_source(self):
        """Test that channels are copied whatever their count."""
        source = np.full((3, 3), 42, dtype=np.uint8)

        target, coverage = map_forward(np.eye(3), source, 3, 3)

        assert target.shape == (3, 3)
        assert (target == 42).all()
        assert coverage.all()

    def test_oversized_target_fails_before_allocation(self, gradient_source):
        """Test that the guard triggers without allocating."""
        with pytest.raises(OversizedTargetError):
            map_forward(np.eye(3), gradient_source, 100000, 100000)

    def test_configured_pixel_limit(self, gradient_source):
        """Test the limit read from the mapper configuration."""
        config = MapperConfig(max_pixel_count=50, chunk_rows=16)

        with pytest.raises(OversizedTargetError):
            map_forward(np.eye(3), gradient_source, 10, 10, config)

    def test_allocation_failure(self, gradient_source, monkeypatch):
        """Test that a MemoryError becomes an AllocationError."""

        def _no_memory(*args, **kwargs):
            raise MemoryError()

        monkeypatch.setattr(mapper.np, "zeros", _no_memory)

        with pytest.raises(AllocationError):
            map_forward(np.eye(3), gradient_source, 10, 10)

    @pytest.mark.parametrize(
        "source",
        [None, np.zeros((0, 0, 4), dtype=np.uint8), np.zeros(5, dtype=np.uint8)],
    )
    def test_invalid_source(self, source):
        """Test that unusable source buffers are rejected."""
        with pytest.raises(InvalidInputError):
            map_forward(np.eye(3), source, 10, 10)
