"""
Hough Line Detector - Rho/theta voting, peak extraction and line rasterization.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple
import numpy as np

from lane_detection.core.errors import CalculationError
from lane_detection.core.image import PgmImage

logger = logging.getLogger(__name__)

THETA_STEPS = 360
SAMPLES_PER_PIXEL = 1000


def round_half_away(values: np.ndarray) -> np.ndarray:
    """Round to the nearest integer, halves away from zero."""
    return np.sign(values) * np.floor(np.abs(values) + 0.5)


@dataclass(frozen=True)
class LineCandidate:
    """
    Line in Hough space.

    Line equation: x*cos(theta) + y*sin(theta) = rho, theta in whole degrees.
    """
    theta: int
    rho: int
    votes: int = 0

    @property
    def key(self) -> Tuple[int, int]:
        return (self.theta, self.rho)

    @property
    def radians(self) -> float:
        return self.theta * math.pi / 180

    @property
    def is_vertical(self) -> bool:
        """Theta 0 has no slope/intercept form."""
        return self.theta == 0

    def slope_intercept(self) -> Tuple[float, float]:
        """
        Convert to image-space ``y = m*x + b``.

        Raises:
            ZeroDivisionError: for theta 0
        """
        if self.is_vertical:
            raise ZeroDivisionError("Line with theta 0 is vertical")
        radian = self.radians
        m = -math.cos(radian) / math.sin(radian)
        b = self.rho / math.sin(radian)
        return m, b


def accumulator_height(width: int, height: int) -> int:
    return int(math.sqrt(height * height + width * width)) + 1


def accumulate(image: PgmImage, brightness_threshold: int) -> np.ndarray:
    """
    Build the Hough accumulator.

    Every pixel darker than ``brightness_threshold`` votes once per degree.

    Returns:
        int64 array of shape (rho, theta)
    """
    rho_count = accumulator_height(image.width, image.height)
    akku = np.zeros((rho_count, THETA_STEPS), dtype=np.int64)

    ys, xs = np.nonzero(image.data < brightness_threshold)
    if len(xs) == 0:
        return akku
    xs = xs.astype(np.float64)
    ys = ys.astype(np.float64)

    for t in range(THETA_STEPS):
        radian = t * math.pi / 180
        rho = round_half_away(xs * math.cos(radian) + ys * math.sin(radian)).astype(np.int64)
        rho = rho[(rho >= 0) & (rho < rho_count)]
        akku[:, t] += np.bincount(rho, minlength=rho_count)

    return akku


def climb(akku: np.ndarray, start_theta: int, start_rho: int, window_size: int) -> Tuple[int, int]:
    """
    Follow the steepest ascent inside a sliding window.

    From the current cell the window ``[x-h, x+h) x [y-h, y+h)`` (clipped to
    the accumulator) is scanned column by column and the last cell whose
    value is at least the running maximum becomes the next position. The
    climb stops when the position no longer changes or would come closer
    than ``h`` to the lower edges.

    Returns:
        (theta, rho) of the cell reached
    """
    if window_size % 2 == 0:
        raise CalculationError(f"Peak window size must be odd, got {window_size}")
    half = (window_size - 1) // 2
    if start_theta < half or start_rho < half:
        raise CalculationError(
            f"Start point ({start_theta}, {start_rho}) is closer than {half} to the edge"
        )

    rho_count, theta_count = akku.shape
    x, y = start_theta, start_rho
    while True:
        x_end = min(theta_count, x + half)
        y_end = min(rho_count, y + half)
        window = akku[y - half:y_end, x - half:x_end]
        if window.size == 0:
            return x, y

        # column-major scan, last occurrence of the maximum wins ties
        flat = window.T.ravel()
        last = flat.size - 1 - int(np.argmax(flat[::-1]))
        col, row = divmod(last, window.shape[0])
        new_x, new_y = x - half + col, y - half + row

        if (new_x, new_y) == (x, y):
            return x, y
        if new_x < half or new_y < half:
            return new_x, new_y
        x, y = new_x, new_y


class HoughLineDetector:
    """
    Straight-line detector working on dark pixels.

    Three phases per call: accumulate votes, extract dominant peaks and draw
    the corresponding lines black into the image.
    """

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize detector.

        Args:
            config: Detector configuration
                - brightness_threshold: pixels below this value vote
                - window_size: odd edge length of the peak search window
                - peak_threshold: minimal votes of an accepted peak
                - slope_bands: optional list of open (low, high) slope
                  intervals; lines outside all bands are not drawn
        """
        self.config = config or self._default_config()

        self.brightness_threshold = int(self.config.get('brightness_threshold', 20))
        self.window_size = int(self.config.get('window_size', 15))
        self.peak_threshold = int(self.config.get('peak_threshold', 33))
        bands = self.config.get('slope_bands') or []
        self.slope_bands: List[Tuple[float, float]] = [
            (float(low), float(high)) for low, high in bands
        ]

    def _default_config(self) -> Dict:
        """Default configuration for generic line detection."""
        return {
            'brightness_threshold': 20,
            'window_size': 15,
            'peak_threshold': 33,
            'slope_bands': [],
        }

    @classmethod
    def for_lanes(cls, config: Optional[Dict] = None) -> "HoughLineDetector":
        """Detector tuned for lane markings (larger window, slope bands)."""
        merged = {
            'brightness_threshold': 20,
            'window_size': 21,
            'peak_threshold': 51,
            'slope_bands': [(-0.85, -0.55), (0.55, 1.05)],
        }
        merged.update(config or {})
        return cls(merged)

    def accumulate(self, image: PgmImage) -> np.ndarray:
        return accumulate(image, self.brightness_threshold)

    def find_peaks(self, akku: np.ndarray) -> List[LineCandidate]:
        """
        Tile the accumulator and hill-climb from every window centre.

        Raises:
            CalculationError: if the window size is even
        """
        if self.window_size % 2 == 0:
            raise CalculationError(f"Peak window size must be odd, got {self.window_size}")
        half = (self.window_size - 1) // 2
        rho_count, theta_count = akku.shape

        peaks: List[LineCandidate] = []
        seen = set()
        for r in range(half, rho_count, self.window_size):
            for t in range(half, theta_count, self.window_size):
                theta, rho = climb(akku, t, r, self.window_size)
                votes = int(akku[rho, theta])
                if votes < self.peak_threshold:
                    continue
                if (theta, rho) not in seen:
                    seen.add((theta, rho))
                    peaks.append(LineCandidate(theta, rho, votes))

        logger.debug("Found %d peaks: %s", len(peaks), [p.key for p in peaks])
        return peaks

    def find_rail_pair(self, akku: np.ndarray,
                       theta_tolerance: float = 0.10,
                       rho_exclusion: float = 0.15) -> List[LineCandidate]:
        """
        Find the two strongest roughly parallel lines.

        The first line is the global maximum. The second is the best cell
        whose theta lies within ``theta_tolerance`` of the first and whose
        rho lies outside ``rho_exclusion`` of it. A missing cell is reported
        as (0, 0), which is never drawn.

        Returns:
            [second, first]
        """
        rho_count, theta_count = akku.shape

        best = int(np.argmax(akku))
        high_rho, high_theta = divmod(best, theta_count)
        high_votes = int(akku[high_rho, high_theta])
        if high_votes <= 0:
            high_rho, high_theta = 0, 0

        rhos = np.arange(rho_count)[:, None]
        thetas = np.arange(theta_count)[None, :]
        mask = (
            ((rhos > high_rho + rho_exclusion * high_rho) |
             (rhos < high_rho - rho_exclusion * high_rho)) &
            (thetas < high_theta + theta_tolerance * high_theta) &
            (thetas > high_theta - theta_tolerance * high_theta)
        )
        masked = np.where(mask, akku, 0)
        second = int(np.argmax(masked))
        low_rho, low_theta = divmod(second, theta_count)
        low_votes = int(masked[low_rho, low_theta])
        if low_votes <= 0:
            low_rho, low_theta = 0, 0

        pair = [
            LineCandidate(low_theta, low_rho, low_votes),
            LineCandidate(high_theta, high_rho, high_votes),
        ]
        logger.debug("Rail pair: %s", [p.key for p in pair])
        return pair

    def accepts_slope(self, slope: float) -> bool:
        if not self.slope_bands:
            return True
        return any(low < slope < high for low, high in self.slope_bands)

    def draw(self, image: PgmImage, lines: Sequence[LineCandidate]) -> int:
        """
        Rasterize lines black into the image.

        Each line is sampled 1000 times per pixel column. Vertical lines
        (theta 0) and lines outside the slope bands are skipped.

        Returns:
            Number of lines drawn
        """
        width, height = image.width, image.height
        xs = np.arange(width * SAMPLES_PER_PIXEL) / SAMPLES_PER_PIXEL
        cols = round_half_away(xs).astype(np.int64)

        drawn = 0
        for line in lines:
            if line.is_vertical:
                continue
            m, b = line.slope_intercept()
            if not self.accepts_slope(m):
                continue
            ys = round_half_away(m * xs + b)
            inside = (ys >= 0) & (ys < height) & (cols < width)
            image.data[ys[inside].astype(np.int64), cols[inside]] = 0
            drawn += 1
        return drawn

    def detect(self, image: PgmImage) -> List[LineCandidate]:
        """
        Detect lines and draw them into the image.

        Returns:
            Accepted peaks (before slope filtering)
        """
        akku = self.accumulate(image)
        peaks = self.find_peaks(akku)
        drawn = self.draw(image, peaks)
        logger.info("Hough: %d peaks, %d lines drawn", len(peaks), drawn)
        return peaks

    def detect_rail(self, image: PgmImage,
                    theta_tolerance: float = 0.10,
                    rho_exclusion: float = 0.15) -> List[LineCandidate]:
        """Detect and draw the two rails of a track."""
        akku = self.accumulate(image)
        pair = self.find_rail_pair(akku, theta_tolerance, rho_exclusion)
        drawn = self.draw(image, pair)
        logger.info("Rail Hough: %d lines drawn", drawn)
        return pair
