"""
Image Data Structures - Grayscale pixel buffer shared by all workflows.
"""

from dataclasses import dataclass
from typing import Tuple
import numpy as np


@dataclass
class PgmImage:
    """
    Single-channel 8-bit image.

    The samples live in a row-major ``(height, width)`` uint8 array which
    every filter and detector mutates in place.
    """
    data: np.ndarray

    def __post_init__(self):
        data = np.asarray(self.data)
        if data.ndim != 2:
            raise ValueError(f"Expected a 2D sample grid, got shape {data.shape}")
        if data.dtype != np.uint8:
            if data.size and (data.min() < 0 or data.max() > 255):
                raise ValueError("Samples must lie in [0, 255]")
            data = data.astype(np.uint8)
        self.data = np.ascontiguousarray(data)

    @classmethod
    def blank(cls, width: int, height: int, value: int = 255) -> "PgmImage":
        """Create an image filled with a single grey value."""
        return cls(np.full((height, width), value, dtype=np.uint8))

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def shape(self) -> Tuple[int, int]:
        return self.data.shape

    def contains(self, x: int, y: int) -> bool:
        """Check whether pixel (x, y) lies inside the buffer."""
        return 0 <= x < self.width and 0 <= y < self.height

    def copy(self) -> "PgmImage":
        return PgmImage(self.data.copy())

    def replace(self, samples: np.ndarray) -> None:
        """Overwrite every sample with a new grid of the same shape."""
        if samples.shape != self.data.shape:
            raise ValueError(
                f"Shape mismatch: {samples.shape} != {self.data.shape}"
            )
        self.data[...] = samples

    def invert(self) -> "PgmImage":
        """Invert all samples in place (v -> 255 - v)."""
        np.subtract(255, self.data, out=self.data)
        return self

    def __eq__(self, other) -> bool:
        if not isinstance(other, PgmImage):
            return NotImplemented
        return self.data.shape == other.data.shape and bool(
            np.array_equal(self.data, other.data)
        )
