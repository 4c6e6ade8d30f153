"""
PGM Codec - Binary grayscale (P5) raster reader and writer.

Only one variant is handled: magic ``P5``, optional ``#`` comment lines,
``<width> <height>``, max value ``255`` and one byte per sample.
"""

import logging
from pathlib import Path
from typing import Tuple, Union
import numpy as np

from lane_detection.core.errors import FormatError, TruncatedError, UnsupportedError
from lane_detection.core.image import PgmImage

logger = logging.getLogger(__name__)

MAGIC = b"P5\n"
MAX_VALUE = 255
ATTRIBUTION = "lane-detection"


def _read_line(raw: bytes, pos: int) -> Tuple[bytes, int]:
    """Return the line starting at ``pos`` (including ``\\n``) and the next offset."""
    end = raw.find(b"\n", pos)
    if end < 0:
        raise TruncatedError("PGM header ends before its last line")
    return raw[pos:end + 1], end + 1


def decode(raw: bytes) -> PgmImage:
    """
    Parse a binary PGM stream.

    Args:
        raw: Complete file contents

    Returns:
        Decoded image

    Raises:
        FormatError: magic token is not ``P5``
        UnsupportedError: malformed dimensions or max value other than 255
        TruncatedError: header or sample data ends early
    """
    if not raw.startswith(MAGIC):
        raise FormatError("Not a binary PGM file (missing P5 magic)")
    pos = len(MAGIC)

    # comments
    line, pos = _read_line(raw, pos)
    while line.startswith(b"#"):
        line, pos = _read_line(raw, pos)

    # width and height
    fields = line.split()
    if len(fields) != 2:
        raise UnsupportedError(f"Cannot parse dimensions line {line!r}")
    try:
        width, height = int(fields[0]), int(fields[1])
    except ValueError:
        raise UnsupportedError(f"Cannot parse dimensions line {line!r}") from None
    if width <= 0 or height <= 0:
        raise UnsupportedError(f"Invalid image size {width}x{height}")

    # max value of a pixel
    line, pos = _read_line(raw, pos)
    if line.strip() != str(MAX_VALUE).encode():
        raise UnsupportedError(f"Unsupported max value {line.strip()!r}")

    count = width * height
    if len(raw) - pos < count:
        raise TruncatedError(
            f"Expected {count} samples, found {len(raw) - pos}"
        )
    samples = np.frombuffer(raw, dtype=np.uint8, count=count, offset=pos)
    return PgmImage(samples.reshape(height, width).copy())


def encode(image: PgmImage, comment: str = ATTRIBUTION) -> bytes:
    """Serialize an image as binary PGM with a ``# Created by`` comment."""
    header = f"# Created by {comment}\n{image.width} {image.height}\n{MAX_VALUE}\n"
    return MAGIC + header.encode() + image.data.tobytes()


def load(path: Union[str, Path]) -> PgmImage:
    """
    Load a PGM file.

    Raises:
        OSError: file cannot be opened
        DecodeError: contents are not a supported PGM raster
    """
    path = Path(path)
    with open(path, "rb") as f:
        raw = f.read()
    image = decode(raw)
    logger.info("Loaded %s (%dx%d)", path, image.width, image.height)
    return image


def save(image: PgmImage, path: Union[str, Path], comment: str = ATTRIBUTION) -> Path:
    """Write an image to ``path``; raises ``OSError`` on failure."""
    path = Path(path)
    with open(path, "wb") as f:
        f.write(encode(image, comment))
    logger.debug("Saved %dx%d image to %s", image.width, image.height, path)
    return path
