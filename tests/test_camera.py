"""
CameraFramer 테스트
"""
import math

import pytest

from gcode_preview import DEFAULT_CAMERA, frame
from gcode_preview.models import BoundingBox


class TestFrame:

    def test_cube(self):
        """10mm 큐브 -> 거리 15, 위치 (20,20,20)"""
        placement = frame(BoundingBox(min=(0, 0, 0), max=(10, 10, 10)))
        assert placement.target == (5.0, 5.0, 5.0)
        assert placement.distance == pytest.approx(15.0)
        assert placement.position == pytest.approx((20.0, 20.0, 20.0))
        assert placement.near == pytest.approx(0.1)
        assert placement.far == pytest.approx(2000.0)

    def test_point_box_uses_minimum_size(self):
        placement = frame(BoundingBox(min=(1, 1, 1), max=(1, 1, 1)))
        assert placement.distance == pytest.approx(1.5)
        assert placement.position == pytest.approx((2.5, 2.5, 2.5))

    def test_large_box_scales_clip_planes(self):
        placement = frame(BoundingBox(min=(0, 0, 0), max=(1000, 200, 50)))
        assert placement.distance == pytest.approx(1500.0)
        assert placement.near == pytest.approx(7.5)
        assert placement.far == pytest.approx(30000.0)

    def test_empty_box_returns_default(self):
        assert frame(BoundingBox.empty()) is DEFAULT_CAMERA

    def test_default_camera_distance_matches_position(self):
        assert DEFAULT_CAMERA.distance == pytest.approx(math.sqrt(200 ** 2 + 200 ** 2 + 220 ** 2))

    def test_deterministic(self):
        box = BoundingBox(min=(-3, 2, 0), max=(7, 9, 4.2))
        assert frame(box) == frame(box)

    def test_to_dict(self):
        data = frame(BoundingBox(min=(0, 0, 0), max=(10, 10, 10))).to_dict()
        assert data["target"] == [5.0, 5.0, 5.0]
        assert set(data) == {"target", "position", "near", "far", "distance"}
