"""
Integration tests for the lane detection system.
"""

import pytest
import numpy as np

from lane_detection.core import codec
from lane_detection.core.errors import CalculationError, FormatError
from lane_detection.core.image import PgmImage
from lane_detection.core.kernel import Kernel, sobel
from lane_detection.core.system import LaneDetectionSystem


@pytest.fixture
def system(base_config):
    with LaneDetectionSystem(base_config) as system:
        yield system


@pytest.fixture
def image_file(tmp_path, random_image):
    return codec.save(random_image, tmp_path / "input.pgm")


class TestFiles:
    """Tests for loading, saving and snapshots."""

    def test_load_writes_snapshot(self, system, image_file, random_image, tmp_path):
        image = system.load(image_file)

        assert image == random_image
        assert system.snapshot_path is not None
        assert system.snapshot_path.parent == tmp_path
        assert codec.load(system.snapshot_path) == image

    def test_snapshot_replaced_after_operation(self, system, image_file):
        image = system.load(image_file)
        first = system.snapshot_path

        system.invert(image)

        assert not first.exists()
        assert codec.load(system.snapshot_path) == image

    def test_save_uses_attribution(self, base_config, tmp_path, random_image):
        base_config['snapshot']['attribution'] = 'unit tests'
        with LaneDetectionSystem(base_config) as system:
            path = system.save(random_image, tmp_path / "out.pgm")

        assert b"# Created by unit tests\n" in path.read_bytes()

    def test_close_removes_snapshot(self, base_config, image_file):
        system = LaneDetectionSystem(base_config)
        system.load(image_file)
        path = system.snapshot_path

        system.close()

        assert not path.exists()
        assert system.snapshot_path is None

    def test_load_missing_file(self, system, tmp_path):
        with pytest.raises(OSError):
            system.load(tmp_path / "missing.pgm")
        assert system.snapshot_path is None

    def test_load_wrong_format(self, system, tmp_path):
        path = tmp_path / "plain.pgm"
        path.write_bytes(b"P2\n2 2\n255\n0 0 0 0\n")

        with pytest.raises(FormatError):
            system.load(path)


class TestBasicOperations:
    """Tests for histogram, inversion and convolution."""

    def test_invert_twice(self, system, random_image):
        original = random_image.copy()
        system.invert(system.invert(random_image))

        assert random_image == original

    def test_histogram_keeps_image(self, system, random_image):
        original = random_image.copy()
        chart = system.histogram(random_image)

        assert random_image == original
        assert (chart.width, chart.height) == (256, 500)
        assert codec.load(system.snapshot_path) == chart

    def test_convolve_identity(self, system, random_image):
        original = random_image.copy()
        result = system.convolve(random_image, Kernel([[0, 0, 0], [0, 1, 0], [0, 0, 0]]))

        assert result is random_image
        assert random_image == original

    def test_convolve_rotate_override(self, system, dark_column_image):
        plain = dark_column_image.copy()
        system.convolve(dark_column_image, sobel())
        system.convolve(plain, sobel(), rotate=False)

        assert dark_column_image != plain

    def test_legacy_border_config(self, base_config, random_image):
        base_config['convolution']['legacy_border'] = True
        with LaneDetectionSystem(base_config) as system:
            system.convolve(random_image, Kernel([[0, 0, 0], [0, 1, 0], [0, 0, 0]]))

        assert np.all(random_image.data[0, :] == 255)


class TestLineDetection:
    """Tests for generic line detection."""

    def test_detects_line(self, system, line_image):
        peaks = system.detect_lines(line_image)

        assert (125, 8) in [p.key for p in peaks]
        assert codec.load(system.snapshot_path) == line_image

    def test_even_window_leaves_image(self, base_config, line_image):
        base_config['hough']['window_size'] = 14
        original = line_image.copy()

        with LaneDetectionSystem(base_config) as system:
            with pytest.raises(CalculationError):
                system.detect_lines(line_image)

        assert line_image == original


class TestLaneDetection:
    """Tests for the three lane stages."""

    @pytest.fixture
    def road_image(self):
        """60x80 black image with a white lane in columns 20..39."""
        data = np.zeros((80, 60), dtype=np.uint8)
        data[:, 20:40] = 255
        return PgmImage(data)

    def test_stage1_is_binary(self, system, random_image):
        system.detect_lanes_stage1(random_image)
        assert set(np.unique(random_image.data)) <= {0, 255}

    def test_stage2_returns_candidates(self, system, line_image):
        peaks = system.detect_lanes_stage2(line_image)
        assert all(p.votes >= 51 for p in peaks)

    def test_stage3_fills_below_seed(self, system, road_image):
        points = system.detect_lanes_stage3(road_image)
        data = road_image.data

        # filled lane below the seed row, untouched above
        assert data[60, 25] == 128
        assert data[40, 25] == 255
        for y in (63, 65, 67, 69):
            assert (y, 30) in points
            assert np.all(data[y, 29:32] == 0)

    def test_stage3_seed_clamped(self, system):
        image = PgmImage.blank(10, 20)
        system.detect_lanes_stage3(image)

        assert np.all(image.data[19] == 128)
        assert np.all(image.data[18] == 255)

    def test_stage3_custom_fill(self, base_config, road_image):
        base_config['lanes'] = {'fill': {'seed_row': 10, 'new_value': 100}}
        with LaneDetectionSystem(base_config) as system:
            system.detect_lanes_stage3(road_image)

        assert road_image.data[10, 25] == 100
        assert road_image.data[9, 25] == 255

    def test_full_workflow(self, system, random_image):
        system.detect_lanes(random_image)
        assert codec.load(system.snapshot_path) == random_image


class TestRailDetection:
    """Tests for rail detection."""

    def test_cut_rail(self, system):
        image = PgmImage(np.array([[139, 140], [0, 255]], dtype=np.uint8))
        system.rail_border = 0
        system.cut_rail(image)

        assert image.data.tolist() == [[255, 0], [255, 0]]

    def test_cut_rail_frame_becomes_white(self, system):
        image = PgmImage.blank(40, 40, value=200)
        system.cut_rail(image)

        assert np.all(image.data[:15, :] == 255)
        assert np.all(image.data[15:25, 15:25] == 0)

    def test_detects_both_rails(self, system, rail_image):
        pair = system.detect_rail(rail_image)

        assert [p.key for p in pair] == [(45, 99), (45, 71)]
        # both rails drawn along x + y = const
        assert rail_image.data[50, 50] == 0
        assert rail_image.data[70, 70] == 0
