"""
Common types and utilities shared across all modules.

This module provides standardized data types for the perspector pipeline,
ensuring consistency and type safety across the classifier, solver, mapper,
hole filler, and I/O collaborators.
"""

from src.common.types import AnchorSet, Pixel, PixelBuffer, Point

__all__ = ["AnchorSet", "Pixel", "PixelBuffer", "Point"]
