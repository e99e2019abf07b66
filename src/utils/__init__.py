"""
Shared Utilities

Constants and helpers used across all modules. Submodules are imported
explicitly (``from src.utils.visualization import draw_anchors``) since
they depend on the common types.
"""
