"""
Test configuration for pytest.
"""

import pytest
import numpy as np

from lane_detection.core.image import PgmImage


@pytest.fixture
def random_seed():
    """Set random seed for reproducibility."""
    np.random.seed(42)
    return 42


@pytest.fixture
def random_image(random_seed):
    """Small image with random samples."""
    return PgmImage(np.random.randint(0, 256, (24, 32), dtype=np.uint8))


@pytest.fixture
def example_pgm_bytes():
    """10x10 binary PGM with every sample 200."""
    return b"P5\n10 10\n255\n" + bytes([200] * 100)


@pytest.fixture
def dark_column_image():
    """11x11 bright field (200) with a dark column (50) at x = 5."""
    data = np.full((11, 11), 200, dtype=np.uint8)
    data[:, 5] = 50
    return PgmImage(data)


@pytest.fixture
def line_image():
    """100x100 white image with a black line y = 0.7 * x + 10."""
    data = np.full((100, 100), 255, dtype=np.uint8)
    for x in range(100):
        y = int(np.floor(0.7 * x + 10 + 0.5))
        data[y, x] = 0
    return PgmImage(data)


@pytest.fixture
def rail_image():
    """
    Dark background with two bright parallel rails.

    Rails follow y = 100 - x and y = 140 - x inside the 15 pixel frame that
    rail detection blanks out.
    """
    data = np.full((100, 100), 50, dtype=np.uint8)
    for offset in (100, 140):
        for x in range(15, 85):
            y = offset - x
            if 15 <= y < 85:
                data[y, x] = 200
    return PgmImage(data)


@pytest.fixture
def base_config(tmp_path):
    """System configuration writing snapshots into a temporary directory."""
    return {
        'convolution': {
            'legacy_border': False,
        },
        'hough': {
            'brightness_threshold': 20,
            'window_size': 15,
            'peak_threshold': 33,
        },
        'snapshot': {
            'directory': str(tmp_path),
        },
    }


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
