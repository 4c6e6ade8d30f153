"""
Region Grow Filler - Relabels a connected region of equal pixel values.
"""

import logging
from typing import List, Tuple

from lane_detection.core.image import PgmImage

logger = logging.getLogger(__name__)

# right, down, left
LANE_DIRECTIONS: Tuple[Tuple[int, int], ...] = ((1, 0), (0, 1), (-1, 0))
ALL_DIRECTIONS: Tuple[Tuple[int, int], ...] = LANE_DIRECTIONS + ((0, -1),)


class RegionGrowFiller:
    """
    Flood fill ("dye") with an explicit work stack.

    By default upward moves are never taken: starting near the top of a
    lane the region grows right, down and left, following the lane towards
    the bottom of the image.
    """

    def __init__(self, upward: bool = False):
        self.directions = ALL_DIRECTIONS if upward else LANE_DIRECTIONS

    def fill(self, image: PgmImage, seed: Tuple[int, int], old_value: int, new_value: int) -> int:
        """
        Relabel the seed and every reachable pixel equal to ``old_value``.

        Args:
            image: Image modified in place
            seed: (x, y) start pixel; relabelled whatever its value
            old_value: Value of the pixels to grow over
            new_value: Label written to the region

        Returns:
            Number of relabelled pixels
        """
        x, y = seed
        if not image.contains(x, y):
            raise ValueError(f"Seed {seed} outside {image.width}x{image.height} image")

        data = image.data
        width, height = image.width, image.height
        data[y, x] = new_value
        if old_value == new_value:
            return 1

        count = 1
        stack: List[Tuple[int, int]] = [(x, y)]
        while stack:
            cx, cy = stack.pop()
            for dx, dy in self.directions:
                nx, ny = cx + dx, cy + dy
                if 0 <= nx < width and 0 <= ny < height and data[ny, nx] == old_value:
                    data[ny, nx] = new_value
                    stack.append((nx, ny))
                    count += 1

        logger.debug("Filled %d pixels from seed %s (%d -> %d)", count, seed, old_value, new_value)
        return count


def fill(image: PgmImage, seed: Tuple[int, int], old_value: int, new_value: int,
         upward: bool = False) -> int:
    """Convenience wrapper around RegionGrowFiller.fill."""
    return RegionGrowFiller(upward=upward).fill(image, seed, old_value, new_value)
