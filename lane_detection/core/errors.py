"""
Error taxonomy for decoding and detection.

I/O failures are not wrapped: opening or writing a path raises the built-in
``OSError`` and callers handle it as such.
"""


class LaneDetectionError(Exception):
    """Base class for all errors raised by this package."""


class DecodeError(LaneDetectionError):
    """Raised when a byte stream is not a readable PGM raster."""


class FormatError(DecodeError):
    """Wrong magic token."""


class UnsupportedError(DecodeError):
    """Header is PGM but describes a variant we cannot handle."""


class TruncatedError(DecodeError):
    """Header or raster data ends early."""


class CalculationError(LaneDetectionError):
    """Invalid detector configuration (e.g. an even window size)."""
