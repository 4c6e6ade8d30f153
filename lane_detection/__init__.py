"""
Lane Detection - Classical lane and rail detection on grayscale PGM images
==========================================================================

This package provides:
- A binary PGM (P5) codec
- Square-kernel convolution with border handling and contrast rescaling
- A Hough-transform line detector with hill-climbing peak search
- Region-grow flood fill and lane centerline extraction
- Named workflows for line, lane and rail detection

Modules:
    - core: Image model, kernels, codec and the integrated system
    - processing: Convolution, Hough transform, fill and centerline
    - visualization: Snapshot files and preview export

Example Usage:
    >>> from lane_detection import LaneDetectionSystem
    >>>
    >>> with LaneDetectionSystem() as system:
    ...     image = system.load('road.pgm')
    ...     system.detect_lanes(image)
    ...     system.save(image, 'road_lanes.pgm')
"""

__version__ = "1.0.0"

from lane_detection.core import (
    LaneDetectionSystem,
    PgmImage,
    Kernel,
    LaneDetectionError,
    DecodeError,
    FormatError,
    UnsupportedError,
    TruncatedError,
    CalculationError,
)
from lane_detection.core.codec import decode, encode, load, save
from lane_detection.processing import (
    ConvolutionEngine,
    HoughLineDetector,
    LineCandidate,
    RegionGrowFiller,
    LaneCenterlineExtractor,
)

__all__ = [
    # Version
    "__version__",
    # System
    "LaneDetectionSystem",
    # Data classes
    "PgmImage",
    "Kernel",
    "LineCandidate",
    # Codec
    "decode",
    "encode",
    "load",
    "save",
    # Processing
    "ConvolutionEngine",
    "HoughLineDetector",
    "RegionGrowFiller",
    "LaneCenterlineExtractor",
    # Errors
    "LaneDetectionError",
    "DecodeError",
    "FormatError",
    "UnsupportedError",
    "TruncatedError",
    "CalculationError",
]
