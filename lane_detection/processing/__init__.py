"""
Processing module - Convolution, Hough transform, flood fill and centerline.
"""

from lane_detection.processing.convolution import ConvolutionEngine
from lane_detection.processing.hough import HoughLineDetector, LineCandidate
from lane_detection.processing.fill import RegionGrowFiller
from lane_detection.processing.centerline import LaneCenterlineExtractor

__all__ = [
    "ConvolutionEngine",
    "HoughLineDetector",
    "LineCandidate",
    "RegionGrowFiller",
    "LaneCenterlineExtractor",
]
