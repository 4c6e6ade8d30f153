"""
Histogram chart of grey value frequencies.
"""

import numpy as np

from lane_detection.core.image import PgmImage

CHART_HEIGHT = 500


def grey_counts(image: PgmImage) -> np.ndarray:
    """Number of pixels per grey value (length 256)."""
    return np.bincount(image.data.ravel(), minlength=256)


def histogram_chart(image: PgmImage, chart_height: int = CHART_HEIGHT) -> PgmImage:
    """
    Draw the grey value histogram as a 256 x ``chart_height`` image.

    Column ``v`` holds a black bar whose height is proportional to the
    number of pixels with value ``v``; the most frequent value fills the
    whole column. The source image is not modified.
    """
    counts = grey_counts(image)
    peak = int(counts.max())
    bars = counts * chart_height // max(peak, 1)

    rows = np.arange(chart_height)[:, None]
    chart = np.where(rows < chart_height - bars[None, :], 255, 0)
    return PgmImage(chart.astype(np.uint8))
