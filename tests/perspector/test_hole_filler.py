"""
Unit tests for the hole filler.
"""

import numpy as np
import pytest

from src.perspector import hole_filler
from src.perspector.errors import (
    AllocationError,
    EmptyCoverageError,
    InvalidInputError,
)
from src.perspector.hole_filler import fill_holes
from src.perspector.mapper import map_forward
from src.perspector.solver import solve_transform_matrix


class TestFillHoles:
    """Tests for fill_holes function."""

    def test_mean_of_nearest_ring(self):
        """Test that a hole between 10 and 21 becomes 15."""
        target = np.array([[10, 0, 21]], dtype=np.uint8)
        coverage = np.array([[True, False, True]])

        filled = fill_holes(target, coverage)

        assert filled == 1
        np.testing.assert_array_equal(target, [[10, 15, 21]])

    def test_mean_is_truncated(self):
        """Test that the mean is floored, not rounded."""
        target = np.array([[1, 0, 2]], dtype=np.uint8)
        coverage = np.array([[True, False, True]])

        fill_holes(target, coverage)

        assert target[0, 1] == 1

    def test_sums_do_not_overflow(self):
        """Test channel sums wider than the pixel type."""
        target = np.array([[200, 0, 250]], dtype=np.uint8)
        coverage = np.array([[True, False, True]])

        fill_holes(target, coverage)

        assert target[0, 1] == 225

    def test_per_channel_mean(self):
        """Test that each channel is averaged independently."""
        target = np.zeros((1, 3, 4), dtype=np.uint8)
        target[0, 0] = [10, 20, 30, 255]
        target[0, 2] = [20, 41, 0, 255]
        coverage = np.array([[True, False, True]])

        fill_holes(target, coverage)

        np.testing.assert_array_equal(target[0, 1], [15, 30, 15, 255])

    def test_corner_cells_belong_to_ring(self):
        """Test that diagonal neighbours are at radius 1."""
        target = np.zeros((3, 3), dtype=np.uint8)
        coverage = np.zeros((3, 3), dtype=bool)
        for y, x, value in [(0, 0, 10), (0, 2, 20), (2, 0, 30), (2, 2, 40)]:
            target[y, x] = value
            coverage[y, x] = True

        fill_holes(target, coverage)

        assert target[1, 1] == 25

    def test_filled_values_are_not_resampled(self):
        """Test that only mapped pixels feed the averages."""
        target = np.array([[60, 0, 0, 0]], dtype=np.uint8)
        coverage = np.array([[True, False, False, True]])

        fill_holes(target, coverage)

        np.testing.assert_array_equal(target, [[60, 60, 0, 0]])

    def test_radius_grows_until_covered(self):
        """Test a hole whose nearest covered pixel is several rings away."""
        target = np.zeros((5, 5), dtype=np.uint8)
        coverage = np.zeros((5, 5), dtype=bool)
        target[0, 0] = 7
        coverage[0, 0] = True

        filled = fill_holes(target, coverage)

        assert filled == 24
        assert (target == 7).all()

    def test_rings_clamped_at_borders(self):
        """Test holes on the border, where rings collapse to fewer edges."""
        target = np.zeros((3, 3), dtype=np.uint8)
        coverage = np.zeros((3, 3), dtype=bool)
        target[2, 2] = 9
        coverage[2, 2] = True

        fill_holes(target, coverage)

        assert (target == 9).all()

    def test_single_row_and_column(self):
        """Test degenerate 1-pixel-wide buffers."""
        row = np.array([[0, 0, 0, 0, 8]], dtype=np.uint8)
        column = row.T.copy()

        fill_holes(row, np.array([[False, False, False, False, True]]))
        fill_holes(column, np.array([[False], [False], [False], [False], [True]]))

        assert (row == 8).all()
        assert (column == 8).all()

    def test_coverage_complete_after_filling(self):
        """Test that no uncovered pixel remains."""
        target = np.zeros((4, 6, 4), dtype=np.uint8)
        coverage = np.zeros((4, 6), dtype=bool)
        coverage[1, 4] = True

        fill_holes(target, coverage)

        assert coverage.all()

    def test_no_holes(self):
        """Test that a fully covered buffer is left untouched."""
        target = np.arange(12, dtype=np.uint8).reshape(3, 4)
        expected = target.copy()

        assert fill_holes(target, np.ones((3, 4), dtype=bool)) == 0
        np.testing.assert_array_equal(target, expected)

    def test_empty_coverage(self):
        """Test that nothing can be filled without any mapped pixel."""
        target = np.zeros((3, 3, 4), dtype=np.uint8)

        with pytest.raises(EmptyCoverageError):
            fill_holes(target, np.zeros((3, 3), dtype=bool))

    def test_shape_mismatch(self):
        """Test that the mask must match the buffer."""
        with pytest.raises(InvalidInputError, match="does not match"):
            fill_holes(np.zeros((3, 3), dtype=np.uint8), np.zeros((3, 4), dtype=bool))

    def test_table_allocation_failure(self, monkeypatch):
        """Test that a MemoryError on the tables becomes an AllocationError."""
        target = np.array([[10, 0, 21]], dtype=np.uint8)
        coverage = np.array([[True, False, True]])

        def _no_memory(*args, **kwargs):
            raise MemoryError()

        monkeypatch.setattr(hole_filler.np, "zeros", _no_memory)

        with pytest.raises(AllocationError):
            fill_holes(target, coverage)


class TestFillAfterMapping:
    """Hole filling on the output of the forward mapper."""

    def test_magnified_source(self):
        """Test a 2x magnification of a 4x4 source."""
        source = np.zeros((4, 4, 4), dtype=np.uint8)
        source[:, :, 0] = np.arange(16).reshape(4, 4) * 10 + 1
        source[:, :, 3] = 255
        matrix, _ = solve_transform_matrix([[0, 0], [4, 0], [4, 4], [0, 4]], 8, 8)

        target, coverage = map_forward(matrix, source, 8, 8)
        filled = fill_holes(target, coverage)

        assert filled == 48
        assert coverage.all()
        assert (target[:, :, 3] == 255).all()
        # Between source (0, 0) and (1, 0)
        assert target[0, 1, 0] == (source[0, 0, 0] + source[0, 1, 0]) // 2
        # Only target (6, 6) is covered around the last pixel
        np.testing.assert_array_equal(target[7, 7], target[6, 6])
        # Between 4 source pixels
        assert target[1, 1, 0] == int(source[:2, :2, 0].astype(int).sum()) // 4
