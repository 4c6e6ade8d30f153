"""
Unit tests for the lane centerline extractor.
"""

import pytest
import numpy as np

from lane_detection.core.image import PgmImage
from lane_detection.processing.centerline import LaneCenterlineExtractor

MARKER = 128


@pytest.fixture
def extractor():
    return LaneCenterlineExtractor()


@pytest.fixture
def lane_image():
    """60x40 black image with a marked lane in columns 20..39."""
    data = np.zeros((40, 60), dtype=np.uint8)
    data[:, 20:40] = MARKER
    return PgmImage(data)


class TestWidthProfile:
    """Tests for the per-row centre estimate."""

    def test_wide_rows(self, extractor, lane_image):
        profile = extractor.width_profile(lane_image)
        assert np.all(profile == 20 + 20 // 2)

    def test_narrow_row_keeps_count(self, extractor):
        data = np.zeros((3, 60), dtype=np.uint8)
        data[1, 20:25] = MARKER
        profile = extractor.width_profile(PgmImage(data))

        assert profile.tolist() == [0, 5, 0]

    def test_other_values_ignored(self, extractor):
        data = np.full((2, 30), 255, dtype=np.uint8)
        assert extractor.width_profile(PgmImage(data)).tolist() == [0, 0]

    def test_image_narrower_than_gap(self, extractor):
        image = PgmImage.blank(8, 2, value=MARKER)
        assert extractor.width_profile(image).tolist() == [8, 8]


class TestExtract:
    """Tests for painting the centerline."""

    def test_straight_lane(self, extractor, lane_image):
        points = extractor.extract(lane_image)

        assert points == [(y, 30) for y in range(5, 30, 2)]
        for y, _ in points:
            assert np.all(lane_image.data[y, 29:32] == 0)
        # rows between the marks stay untouched
        assert lane_image.data[6, 30] == MARKER
        assert lane_image.data[35, 30] == MARKER

    def test_window_mean_is_clipped_and_truncated(self, extractor):
        data = np.zeros((40, 60), dtype=np.uint8)
        data[:20, 20:40] = MARKER
        image = PgmImage(data)

        points = dict(extractor.extract(image))

        assert points[5] == 30
        # rows 5..25: 15 rows at 30 and 6 empty rows
        assert points[15] == 450 // 21

    def test_centre_at_edge_not_painted(self, extractor):
        data = np.zeros((40, 40), dtype=np.uint8)
        data[:, 0] = MARKER
        image = PgmImage(data)

        assert extractor.extract(image) == []
        assert np.all(image.data[:, 0] == MARKER)

    def test_custom_marker(self):
        data = np.zeros((40, 60), dtype=np.uint8)
        data[:, 20:40] = 77
        image = PgmImage(data)

        points = LaneCenterlineExtractor({'marker': 77}).extract(image)
        assert len(points) == 13

    def test_short_image(self, extractor):
        assert extractor.extract(PgmImage.blank(60, 12, value=MARKER)) == []
