"""
Snapshot Store - Transient PGM rendering of the latest result.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from lane_detection.core import codec
from lane_detection.core.image import PgmImage

logger = logging.getLogger(__name__)


class SnapshotStore:
    """
    Keeps one temporary PGM file showing the most recent result.

    Every ``write`` replaces the previous file. ``close`` removes it.
    """

    def __init__(self, directory: Optional[str] = None, attribution: str = codec.ATTRIBUTION):
        self.directory = directory
        self.attribution = attribution
        self._path: Optional[Path] = None

    @property
    def path(self) -> Optional[Path]:
        """Path of the current snapshot, None before the first write."""
        return self._path

    def write(self, image: PgmImage) -> Path:
        """Render an image into a fresh temporary file."""
        fd, name = tempfile.mkstemp(suffix=".pgm", prefix="snapshot-", dir=self.directory)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(codec.encode(image, self.attribution))
        except OSError:
            os.unlink(name)
            raise

        self._remove()
        self._path = Path(name)
        logger.debug("Snapshot written to %s", self._path)
        return self._path

    def _remove(self) -> None:
        if self._path is not None:
            try:
                self._path.unlink()
            except FileNotFoundError:
                pass
            self._path = None

    def close(self) -> None:
        self._remove()

    def __enter__(self) -> "SnapshotStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
