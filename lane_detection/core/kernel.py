"""
Convolution Kernels - Square integer weight grids and the preset filters.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Sequence, Tuple
import numpy as np


MIN_KERNEL_SIZE = 3
MAX_KERNEL_SIZE = 23


def normalize_size(size: int) -> int:
    """
    Turn a requested kernel size into a valid one.

    Even sizes are rounded down by one and the result is clamped to the
    range accepted for user-sized kernels.
    """
    size = int(size)
    if size % 2 != 1:
        size -= 1
    return max(MIN_KERNEL_SIZE, min(MAX_KERNEL_SIZE, size))


@dataclass(frozen=True, eq=False)
class Kernel:
    """
    Odd-sized square grid of signed integer weights.

    ``rotate`` is the default mode a preset was designed for; callers of the
    convolution engine may override it.
    """
    weights: np.ndarray
    rotate: bool = False
    name: str = "custom"

    def __post_init__(self):
        weights = np.array(self.weights, dtype=np.int64)
        if weights.ndim != 2 or weights.shape[0] != weights.shape[1]:
            raise ValueError(f"Kernel must be square, got shape {weights.shape}")
        if weights.shape[0] % 2 != 1:
            raise ValueError(f"Kernel size must be odd, got {weights.shape[0]}")
        weights.setflags(write=False)
        object.__setattr__(self, "weights", weights)

    @property
    def size(self) -> int:
        return int(self.weights.shape[0])

    @property
    def center(self) -> int:
        return (self.size - 1) // 2

    @property
    def total(self) -> int:
        """Sum of all weights."""
        return int(self.weights.sum())

    def rotated(self) -> np.ndarray:
        """Weights rotated by 90 degrees: ``out[k][l] = w[l][size-1-k]``."""
        return np.rot90(self.weights)

    def to_list(self) -> list:
        return self.weights.tolist()

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[int]], rotate: bool = False) -> "Kernel":
        """Build a custom kernel from nested rows of integers."""
        rows = [list(row) for row in rows]
        if not rows or any(len(row) != len(rows) for row in rows):
            raise ValueError("Kernel rows must form a non-empty square")
        try:
            weights = [[int(v) for v in row] for row in rows]
        except (TypeError, ValueError) as e:
            raise ValueError(f"Kernel weights must be integers: {e}") from e
        return cls(np.array(weights), rotate=rotate, name="custom")

    @classmethod
    def parse(cls, text: str, rotate: bool = False) -> "Kernel":
        """
        Parse a kernel written as ``"1,2,1;0,0,0;-1,-2,-1"``.

        Rows are separated by ``;``, weights by ``,`` or whitespace.
        """
        rows = []
        for row in text.strip().split(";"):
            row = row.replace(",", " ").split()
            if row:
                rows.append(row)
        return cls.from_rows(rows, rotate=rotate)


def gauss(size: int = 3) -> Kernel:
    """
    Binomial-like Gauss kernel with weights ``2**min(i, size-1-i)`` per axis.

    3x3 gives [[1,2,1],[2,4,2],[1,2,1]].
    """
    size = normalize_size(size)
    axis = np.array([2 ** min(i, size - 1 - i) for i in range(size)])
    return Kernel(np.outer(axis, axis), rotate=False, name="gauss")


def kirsch() -> Kernel:
    return Kernel(
        [[5, 5, 5],
         [-3, 0, -3],
         [-3, -3, -3]],
        rotate=True,
        name="kirsch",
    )


def laplacian_of_gaussian() -> Kernel:
    """5x5 Laplacian of the Gaussian; zero sum, so results are never divided."""
    return Kernel(
        [[0, 0, -1, 0, 0],
         [0, -1, -2, -1, 0],
         [-1, -2, 16, -2, -1],
         [0, -1, -2, -1, 0],
         [0, 0, -1, 0, 0]],
        rotate=False,
        name="log",
    )


def prewitt1() -> Kernel:
    return Kernel(
        [[1, 1, 1],
         [1, -2, 1],
         [-1, -1, -1]],
        rotate=True,
        name="prewitt1",
    )


def prewitt2() -> Kernel:
    return Kernel(
        [[1, 1, 1],
         [0, 0, 0],
         [-1, -1, -1]],
        rotate=True,
        name="prewitt2",
    )


def sobel() -> Kernel:
    return Kernel(
        [[1, 2, 1],
         [0, 0, 0],
         [-1, -2, -1]],
        rotate=True,
        name="sobel",
    )


def sobel_vertical() -> Kernel:
    """Sobel kernel responding to vertical edges (lane edge mask)."""
    return Kernel(
        [[1, 0, -1],
         [2, 0, -2],
         [1, 0, -1]],
        rotate=False,
        name="sobel_vertical",
    )


# Presets selectable by name; the flag tells whether the preset takes a size
PRESETS: Dict[str, Tuple[Callable[..., Kernel], bool]] = {
    "gauss": (gauss, True),
    "kirsch": (kirsch, False),
    "log": (laplacian_of_gaussian, False),
    "prewitt1": (prewitt1, False),
    "prewitt2": (prewitt2, False),
    "sobel": (sobel, False),
    "sobel_vertical": (sobel_vertical, False),
}


def preset(name: str, size: int = 3) -> Kernel:
    """Look up a preset kernel by name."""
    try:
        factory, sized = PRESETS[name]
    except KeyError:
        raise ValueError(
            f"Unknown kernel '{name}', expected one of {sorted(PRESETS)}"
        ) from None
    return factory(size) if sized else factory()
