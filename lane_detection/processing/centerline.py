"""
Lane Centerline Extractor - Smoothed midline of a previously filled lane region.
"""

import logging
from typing import Dict, List, Optional, Tuple
import numpy as np

from lane_detection.core.image import PgmImage

logger = logging.getLogger(__name__)


class LaneCenterlineExtractor:
    """
    Estimates the lane centre per row and paints a smoothed centerline.

    The lane region must already be labelled with ``marker`` (see
    RegionGrowFiller).
    """

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize extractor.

        Args:
            config: Extractor configuration
                - marker: label of the lane region
                - pair_gap: column distance of the two marker pixels that
                  locate the lane start in a row
                - window: rows averaged per centre estimate (odd)
                - stride: row step between painted marks
                - first_row: first painted row
                - bottom_margin: rows left unpainted at the bottom
        """
        self.config = config or self._default_config()

        self.marker = int(self.config.get('marker', 128))
        self.pair_gap = int(self.config.get('pair_gap', 10))
        self.window = int(self.config.get('window', 21))
        self.stride = int(self.config.get('stride', 2))
        self.first_row = int(self.config.get('first_row', 5))
        self.bottom_margin = int(self.config.get('bottom_margin', 10))

    def _default_config(self) -> Dict:
        return {
            'marker': 128,
            'pair_gap': 10,
            'window': 21,
            'stride': 2,
            'first_row': 5,
            'bottom_margin': 10,
        }

    def width_profile(self, image: PgmImage) -> np.ndarray:
        """
        Per-row lane centre estimate.

        Each row starts with its marker count. Rows where a marker pixel has
        another marker pixel ``pair_gap`` columns to its right get
        ``first_column + count // 2`` instead.
        """
        lane = image.data == self.marker
        profile = lane.sum(axis=1).astype(np.int64)

        gap = self.pair_gap
        if image.width > gap:
            pairs = lane[:, :-gap] & lane[:, gap:]
            rows = np.nonzero(pairs.any(axis=1))[0]
            first = pairs[rows].argmax(axis=1)
            profile[rows] = first + profile[rows] // 2
        return profile

    def extract(self, image: PgmImage) -> List[Tuple[int, int]]:
        """
        Paint the smoothed centerline black.

        Returns:
            (row, column) of every painted mark
        """
        profile = self.width_profile(image)
        height, width = image.height, image.width
        half = self.window // 2

        points: List[Tuple[int, int]] = []
        for y in range(self.first_row, height - self.bottom_margin, self.stride):
            window = profile[max(0, y - half):min(height, y + half + 1)]
            centre = int(window.sum()) // len(window)
            if 1 < centre < width - 1:
                image.data[y, centre - 1:centre + 2] = 0
                points.append((y, centre))

        logger.debug("Centerline: %d marks", len(points))
        return points
