"""
Core module - Image model, kernels, codec and the integrated system.
"""

from lane_detection.core.errors import (
    LaneDetectionError,
    DecodeError,
    FormatError,
    UnsupportedError,
    TruncatedError,
    CalculationError,
)
from lane_detection.core.image import PgmImage
from lane_detection.core.kernel import Kernel
from lane_detection.core.system import LaneDetectionSystem

__all__ = [
    "LaneDetectionError",
    "DecodeError",
    "FormatError",
    "UnsupportedError",
    "TruncatedError",
    "CalculationError",
    "PgmImage",
    "Kernel",
    "LaneDetectionSystem",
]
