"""
Preview Export - Writes images in common raster formats for viewing.
"""

from pathlib import Path
from typing import Union
import numpy as np
import cv2

from lane_detection.core.image import PgmImage


def render(image: PgmImage, scale: int = 1) -> np.ndarray:
    """
    Convert an image to a BGR array for display.

    Args:
        image: Grayscale image
        scale: Integer upscaling factor (nearest neighbour)

    Returns:
        (H*scale, W*scale, 3) uint8 array
    """
    frame = cv2.cvtColor(image.data, cv2.COLOR_GRAY2BGR)
    if scale > 1:
        frame = cv2.resize(
            frame,
            (image.width * scale, image.height * scale),
            interpolation=cv2.INTER_NEAREST,
        )
    return frame


def save_preview(image: PgmImage, path: Union[str, Path], scale: int = 1) -> Path:
    """
    Write a preview in the format given by the file extension (png, jpg, ...).

    Raises:
        OSError: if OpenCV cannot write the file
    """
    path = Path(path)
    try:
        written = cv2.imwrite(str(path), render(image, scale))
    except cv2.error as e:
        raise OSError(f"Cannot write preview: {path}") from e
    if not written:
        raise OSError(f"Cannot write preview: {path}")
    return path
