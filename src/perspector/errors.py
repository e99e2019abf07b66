"""
Exceptions raised by the perspector pipeline stages.

Each exception carries the FailureReason the processor reports to callers.
"""

from src.perspector.types import FailureReason


class PerspectorError(ValueError):
    """Base class for expected, recoverable transform failures."""

    reason = FailureReason.INVALID_INPUT


class InvalidInputError(PerspectorError):
    """Wrong anchor count, non-positive dimensions, malformed buffers."""

    reason = FailureReason.INVALID_INPUT


class AmbiguousGeometryError(PerspectorError):
    """Anchors cannot be assigned to rectangle corners without ambiguity."""

    reason = FailureReason.AMBIGUOUS_GEOMETRY


class DegenerateSystemError(PerspectorError):
    """The linear system has no clean one-dimensional null space."""

    reason = FailureReason.DEGENERATE_SYSTEM


class OversizedTargetError(PerspectorError):
    """Target width * height exceeds the pixel-count limit."""

    reason = FailureReason.OVERSIZED_TARGET


class AllocationError(PerspectorError):
    """Target buffer or coverage mask could not be allocated."""

    reason = FailureReason.ALLOCATION_FAILURE


class EmptyCoverageError(PerspectorError):
    """No source pixel was mapped inside the target rectangle."""

    reason = FailureReason.EMPTY_COVERAGE
