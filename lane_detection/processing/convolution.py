"""
Convolution Engine - Square-kernel spatial filtering with contrast rescaling.
"""

import logging
from typing import Dict, Optional, Tuple
import numpy as np

from lane_detection.core.image import PgmImage
from lane_detection.core.kernel import Kernel

logger = logging.getLogger(__name__)

WHITE = 255


def truncating_divide(values: np.ndarray, divisor: int) -> np.ndarray:
    """Integer division rounding toward zero (C semantics)."""
    quotient = np.abs(values) // abs(divisor)
    return np.where((values < 0) != (divisor < 0), -quotient, quotient)


def rescale(values: np.ndarray) -> np.ndarray:
    """
    Stretch a signed result into [0, 255] if it leaves that range.

    The bounds are anchored at zero: ``lo = min(0, min)`` and
    ``hi = max(0, max)``. Values already inside [0, 255] are kept as is.
    """
    lo = min(0, int(values.min()))
    hi = max(0, int(values.max()))
    if lo < 0 or hi > WHITE:
        return (values - lo) * WHITE // (hi - lo)
    return values


class ConvolutionEngine:
    """
    Applies integer kernels to a PgmImage.

    Pixels outside the buffer read as white. With ``rotate`` the kernel
    rotated by 90 degrees is applied as well and the normalization divisor
    doubles, which approximates a filter for two perpendicular orientations.
    """

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize convolution engine.

        Args:
            config: Engine configuration. ``legacy_border`` treats row 0 and
                column 0 as outside the buffer, ``threshold_band`` is the
                inclusive acceptance band of the thresholding mode.
        """
        self.config = config or self._default_config()

        self.legacy_border = bool(self.config.get('legacy_border', False))
        band = self.config.get('threshold_band', (120, 135))
        self.threshold_band: Tuple[int, int] = (int(band[0]), int(band[1]))

    def _default_config(self) -> Dict:
        """Default engine configuration."""
        return {
            'legacy_border': False,
            'threshold_band': (120, 135),
        }

    def _padded_source(self, data: np.ndarray, margin: int, fill: int = WHITE) -> np.ndarray:
        """Source samples surrounded by ``margin`` pixels of value ``fill``."""
        height, width = data.shape
        padded = np.full((height + 2 * margin, width + 2 * margin), fill, dtype=np.int64)
        padded[margin:margin + height, margin:margin + width] = data
        if self.legacy_border:
            # row 0 and column 0 count as border as well
            padded[margin, :] = fill
            padded[:, margin] = fill
        return padded

    def response(self, image: PgmImage, kernel: Kernel, rotate: Optional[bool] = None) -> np.ndarray:
        """
        Compute the normalized and rescaled filter response.

        Border samples read as white and only pass through the kernel
        itself; the rotated kernel sees in-bounds samples only.

        Args:
            image: Source image (not modified)
            kernel: Convolution kernel
            rotate: Also apply the rotated kernel; defaults to ``kernel.rotate``

        Returns:
            int64 array with values in [0, 255]
        """
        if rotate is None:
            rotate = kernel.rotate

        height, width = image.shape
        size = kernel.size
        padded = self._padded_source(image.data, kernel.center)

        total = np.zeros((height, width), dtype=np.int64)
        for k in range(size):
            for l in range(size):
                w = int(kernel.weights[k, l])
                if w:
                    total += w * padded[k:k + height, l:l + width]

        if rotate:
            inside = self._padded_source(image.data, kernel.center, fill=0)
            rotated = kernel.rotated()
            for k in range(size):
                for l in range(size):
                    w = int(rotated[k, l])
                    if w:
                        total += w * inside[k:k + height, l:l + width]

        kernel_sum = kernel.total
        if kernel_sum != 0:
            total = truncating_divide(total, kernel_sum * 2 if rotate else kernel_sum)

        return rescale(total)

    def convolve(self, image: PgmImage, kernel: Kernel, rotate: Optional[bool] = None) -> PgmImage:
        """Replace the image samples with the kernel response."""
        result = self.response(image, kernel, rotate)
        image.replace(result.astype(np.uint8))
        logger.debug("Convolved %dx%d image with %s kernel (%dx%d)",
                     image.width, image.height, kernel.name, kernel.size, kernel.size)
        return image

    def convolve_threshold(
        self,
        image: PgmImage,
        kernel: Kernel,
        rotate: Optional[bool] = None,
        band: Optional[Tuple[int, int]] = None,
    ) -> PgmImage:
        """
        Convolve and binarize.

        Samples whose rescaled response lies inside the inclusive band become
        255, all others 0.
        """
        low, high = band or self.threshold_band
        result = self.response(image, kernel, rotate).astype(np.uint8)
        inside = (result >= low) & (result <= high)
        image.replace(np.where(inside, WHITE, 0).astype(np.uint8))
        logger.debug("Thresholded %s response to band [%d, %d]: %d edge pixels",
                     kernel.name, low, high, int(inside.sum()))
        return image
