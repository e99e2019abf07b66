"""
Image decode/encode at the pipeline boundary.

Loads pictures into 4-channel BGRA pixel buffers (OpenCV's channel order
with an alpha channel added) and writes buffers back to disk.
"""

import logging
from pathlib import Path
from typing import Union

import cv2
import numpy as np

from src.common.types import PixelBuffer

logger = logging.getLogger(__name__)


def to_bgra(image: np.ndarray) -> np.ndarray:
    """
    Convert a grayscale, BGR or BGRA uint8 image to BGRA.

    Raises:
        ValueError: If the image layout is not supported.
    """
    if image is None or image.size == 0:
        raise ValueError("Invalid input image: image is None or empty")

    if image.dtype != np.uint8:
        raise ValueError(f"Unsupported format: expected uint8, got {image.dtype}")

    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGRA)
    if image.ndim == 3 and image.shape[2] == 1:
        return cv2.cvtColor(image[:, :, 0], cv2.COLOR_GRAY2BGRA)
    if image.ndim == 3 and image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2BGRA)
    if image.ndim == 3 and image.shape[2] == 4:
        return image.copy()

    raise ValueError(f"Unsupported format: image shape {image.shape}")


def load_image(path: Union[str, Path]) -> PixelBuffer:
    """
    Read a picture from disk into a BGRA pixel buffer.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If OpenCV cannot decode the file.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")

    image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if image is None:
        raise ValueError(f"Could not decode image: {path}")

    # 16-bit pictures are reduced to 8 bits per channel
    if image.dtype == np.uint16:
        image = (image >> 8).astype(np.uint8)

    buffer = PixelBuffer(data=to_bgra(image))
    logger.info(f"Loaded {path} ({buffer.width}x{buffer.height})")
    return buffer


def save_image(buffer: Union[PixelBuffer, np.ndarray], path: Union[str, Path]) -> Path:
    """
    Write a pixel buffer to disk; the format follows the file extension.

    Raises:
        ValueError: If OpenCV fails to encode or write the file.
    """
    data = buffer.to_numpy() if isinstance(buffer, PixelBuffer) else buffer
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if not cv2.imwrite(str(path), data):
        raise ValueError(f"Could not write image: {path}")

    logger.info(f"File successfully written: {path}")
    return path
