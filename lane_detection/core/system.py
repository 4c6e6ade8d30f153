"""
Lane Detection System - Orchestrates the codec, filters and detectors into workflows.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union
import numpy as np

from lane_detection.core import codec
from lane_detection.core.image import PgmImage
from lane_detection.core.kernel import Kernel, gauss, sobel_vertical
from lane_detection.processing.centerline import LaneCenterlineExtractor
from lane_detection.processing.convolution import ConvolutionEngine
from lane_detection.processing.fill import RegionGrowFiller
from lane_detection.processing.histogram import histogram_chart
from lane_detection.processing.hough import HoughLineDetector, LineCandidate
from lane_detection.visualization.snapshot import SnapshotStore

logger = logging.getLogger(__name__)


class LaneDetectionSystem:
    """
    Integrated lane and rail detection on PGM images.

    Every workflow takes the image it works on, transforms it in place and
    returns it. After each successful operation the result is rendered into
    a snapshot file (see ``snapshot_path``). Errors propagate to the caller;
    the image then keeps the state of the last completed stage.
    """

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize lane detection system.

        Args:
            config: System configuration with the sections ``convolution``,
                ``hough``, ``lanes``, ``rail`` and ``snapshot``
        """
        self.config = config or self._default_config()

        self.convolution = ConvolutionEngine(self.config.get('convolution', {}))
        self.hough = HoughLineDetector(self.config.get('hough', {}))

        lanes = self.config.get('lanes', {})
        self.lane_gauss_size = int(lanes.get('gauss_size', 7))
        self.lane_hough = HoughLineDetector.for_lanes(lanes.get('hough', {}))
        fill = lanes.get('fill', {})
        self.fill_seed_row = int(fill.get('seed_row', 53))
        self.fill_old_value = int(fill.get('old_value', 255))
        self.fill_new_value = int(fill.get('new_value', 128))
        self.filler = RegionGrowFiller(upward=bool(fill.get('upward', False)))
        centerline = dict(lanes.get('centerline', {}))
        centerline.setdefault('marker', self.fill_new_value)
        self.centerline = LaneCenterlineExtractor(centerline)

        rail = self.config.get('rail', {})
        self.rail_border = int(rail.get('border', 15))
        self.rail_cut_threshold = int(rail.get('cut_threshold', 140))
        self.rail_hough = HoughLineDetector({
            'brightness_threshold': int(rail.get('brightness_threshold', 40)),
        })
        self.rail_theta_tolerance = float(rail.get('theta_tolerance', 0.10))
        self.rail_rho_exclusion = float(rail.get('rho_exclusion', 0.15))

        snapshot = self.config.get('snapshot', {})
        self.attribution = snapshot.get('attribution', codec.ATTRIBUTION)
        self.snapshots = SnapshotStore(
            directory=snapshot.get('directory'),
            attribution=self.attribution,
        )

    def _default_config(self) -> Dict:
        """Default system configuration."""
        return {
            'convolution': {
                'legacy_border': False,
                'threshold_band': (120, 135),
            },
            'hough': {
                'brightness_threshold': 20,
                'window_size': 15,
                'peak_threshold': 33,
            },
            'lanes': {
                'gauss_size': 7,
                'hough': {
                    'brightness_threshold': 20,
                    'window_size': 21,
                    'peak_threshold': 51,
                    'slope_bands': [(-0.85, -0.55), (0.55, 1.05)],
                },
                'fill': {
                    'seed_row': 53,
                    'old_value': 255,
                    'new_value': 128,
                },
                'centerline': {
                    'pair_gap': 10,
                    'window': 21,
                    'stride': 2,
                },
            },
            'rail': {
                'border': 15,
                'cut_threshold': 140,
                'brightness_threshold': 40,
                'theta_tolerance': 0.10,
                'rho_exclusion': 0.15,
            },
            'snapshot': {
                'directory': None,
                'attribution': codec.ATTRIBUTION,
            },
        }

    # ------------------------------------------------------------------
    # File handling
    # ------------------------------------------------------------------

    def load(self, path: Union[str, Path]) -> PgmImage:
        """
        Load an image and render its first snapshot.

        Raises:
            OSError: file cannot be read
            DecodeError: file is not a supported PGM
        """
        image = codec.load(path)
        self.snapshots.write(image)
        return image

    def save(self, image: PgmImage, path: Union[str, Path]) -> Path:
        """Save an image as PGM; raises ``OSError`` on failure."""
        return codec.save(image, path, self.attribution)

    @property
    def snapshot_path(self) -> Optional[Path]:
        """Transient PGM rendering of the latest result."""
        return self.snapshots.path

    def _publish(self, image: PgmImage) -> PgmImage:
        self.snapshots.write(image)
        return image

    # ------------------------------------------------------------------
    # Basic operations
    # ------------------------------------------------------------------

    def histogram(self, image: PgmImage) -> PgmImage:
        """
        Render the grey value histogram as the current snapshot.

        The image itself is left untouched.

        Returns:
            The histogram chart
        """
        chart = histogram_chart(image)
        self.snapshots.write(chart)
        return chart

    def invert(self, image: PgmImage) -> PgmImage:
        image.invert()
        return self._publish(image)

    def convolve(self, image: PgmImage, kernel: Kernel, rotate: Optional[bool] = None) -> PgmImage:
        """
        Convolve with an arbitrary kernel.

        Args:
            image: Image to transform
            kernel: Kernel to apply
            rotate: Also apply the rotated kernel; defaults to the kernel's flag
        """
        self.convolution.convolve(image, kernel, rotate)
        return self._publish(image)

    def detect_lines(self, image: PgmImage) -> List[LineCandidate]:
        """
        Draw every dominant straight line of dark pixels.

        Raises:
            CalculationError: invalid peak window configuration
        """
        peaks = self.hough.detect(image)
        self._publish(image)
        return peaks

    # ------------------------------------------------------------------
    # Lane detection
    # ------------------------------------------------------------------

    def detect_lanes_stage1(self, image: PgmImage) -> PgmImage:
        """Smooth with a Gauss kernel, then mask vertical edges."""
        logger.info("Lane stage 1: Gauss %dx%d + vertical Sobel mask",
                    self.lane_gauss_size, self.lane_gauss_size)
        self.convolution.convolve(image, gauss(self.lane_gauss_size), rotate=False)
        self.convolution.convolve_threshold(image, sobel_vertical(), rotate=False)
        return self._publish(image)

    def detect_lanes_stage2(self, image: PgmImage) -> List[LineCandidate]:
        """Draw lane boundary lines found by the lane-tuned Hough detector."""
        logger.info("Lane stage 2: Hough lane lines")
        peaks = self.lane_hough.detect(image)
        self._publish(image)
        return peaks

    def detect_lanes_stage3(self, image: PgmImage) -> List[Tuple[int, int]]:
        """
        Fill the lane region and paint its centerline.

        The seed is the middle column of row ``seed_row`` (clamped to the
        image).

        Returns:
            (row, column) points of the painted centerline
        """
        seed = (image.width // 2, min(self.fill_seed_row, image.height - 1))
        logger.info("Lane stage 3: fill from %s and extract centerline", seed)
        self.filler.fill(image, seed, self.fill_old_value, self.fill_new_value)
        points = self.centerline.extract(image)
        self._publish(image)
        return points

    def detect_lanes(self, image: PgmImage) -> List[Tuple[int, int]]:
        """Run all three lane stages in sequence."""
        self.detect_lanes_stage1(image)
        self.detect_lanes_stage2(image)
        return self.detect_lanes_stage3(image)

    # ------------------------------------------------------------------
    # Rail detection
    # ------------------------------------------------------------------

    def cut_rail(self, image: PgmImage) -> PgmImage:
        """
        Prepare an image for rail detection.

        A black frame of ``border`` pixels is drawn, then samples below
        ``cut_threshold`` become white and all others black.
        """
        data = image.data
        border = self.rail_border
        if border > 0:
            data[:border, :] = 0
            data[-border:, :] = 0
            data[:, :border] = 0
            data[:, -border:] = 0
        image.replace(np.where(data < self.rail_cut_threshold, 255, 0).astype(np.uint8))
        return image

    def detect_rail(self, image: PgmImage) -> List[LineCandidate]:
        """
        Draw the two rails of a track.

        Returns:
            [second rail, strongest rail] in Hough space
        """
        logger.info("Rail detection: cut below %d, border %d",
                    self.rail_cut_threshold, self.rail_border)
        self.cut_rail(image)
        pair = self.rail_hough.detect_rail(
            image,
            theta_tolerance=self.rail_theta_tolerance,
            rho_exclusion=self.rail_rho_exclusion,
        )
        self._publish(image)
        return pair

    # ------------------------------------------------------------------

    def close(self) -> None:
        """Remove the snapshot file."""
        self.snapshots.close()

    def __enter__(self) -> "LaneDetectionSystem":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
