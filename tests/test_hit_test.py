"""Tests for pointer hit testing and opening snapping."""

import unittest

from gridplanner import config
from gridplanner.core.model import CameraState, GridPoint, Room, Stair, Wall
from gridplanner.geom.camera import Viewport
from gridplanner.geom.hit_test import (
    SegmentRange,
    find_room_at,
    find_stair_at,
    hit_test_wall,
    hit_tolerance,
    opening_rect_on_wall,
    opening_segment_range,
    project_onto_wall,
    wall_thickness,
)

CAMERA = CameraState(offset_x=0.0, offset_y=0.0, zoom=1.0)


class TestWallHit(unittest.TestCase):
    def setUp(self):
        self.horizontal = Wall(id="h", x1=0, y1=0, x2=5, y2=0)
        self.vertical = Wall(id="v", x1=0, y1=0, x2=0, y2=5)

    def test_tolerance_scales_with_zoom(self):
        zoomed = CameraState(offset_x=0.0, offset_y=0.0, zoom=2.0)
        assert wall_thickness(zoomed) == 2 * wall_thickness(CAMERA)
        self.assertAlmostEqual(
            hit_tolerance(CAMERA), config.GRID_SIZE * config.WALL_THICKNESS_RATIO * config.HIT_TOLERANCE_FACTOR
        )

    def test_hit_returns_wall_and_t(self):
        hit = hit_test_wall([self.horizontal], 2.5 * config.GRID_SIZE, 3.0, None, CAMERA)
        assert hit is not None
        assert hit.wall.id == "h"
        self.assertAlmostEqual(hit.t, 0.5)
        self.assertAlmostEqual(hit.distance, 3.0)

    def test_miss_outside_tolerance(self):
        far = hit_tolerance(CAMERA) + 1.0
        assert hit_test_wall([self.horizontal], 40.0, far, None, CAMERA) is None

    def test_picks_nearest_wall(self):
        px, py = 2.0, 4.0  # near the shared corner, closer to the vertical wall
        hit = hit_test_wall([self.horizontal, self.vertical], px, py, None, CAMERA)
        assert hit.wall.id == "v"

    def test_t_is_clamped_past_endpoints(self):
        hit = project_onto_wall(self.horizontal, -10.0, 0.0, None, CAMERA)
        assert hit.t == 0.0
        self.assertAlmostEqual(hit.distance, 10.0)
        hit = project_onto_wall(self.horizontal, 1000.0, 0.0, None, CAMERA)
        assert hit.t == 1.0

    def test_reversed_wall_measures_t_from_first_endpoint(self):
        reversed_wall = Wall(id="r", x1=5, y1=0, x2=0, y2=0)
        hit = project_onto_wall(reversed_wall, 1.0 * config.GRID_SIZE, 0.0, None, CAMERA)
        self.assertAlmostEqual(hit.t, 0.8)

    def test_viewport_offset(self):
        viewport = Viewport(left=100.0, top=100.0, width=500.0, height=500.0)
        hit = hit_test_wall([self.horizontal], 100.0 + 32.0, 100.0, viewport, CAMERA)
        self.assertAlmostEqual(hit.t, 0.2)

    def test_zero_length_wall_never_hit(self):
        point_wall = Wall(id="p", x1=1, y1=1, x2=1, y2=1)
        assert project_onto_wall(point_wall, 32.0, 32.0, None, CAMERA) is None
        assert hit_test_wall([point_wall], 32.0, 32.0, None, CAMERA) is None


class TestOpeningSegmentRange(unittest.TestCase):
    def setUp(self):
        self.wall = Wall(id="w", x1=0, y1=0, x2=5, y2=0)

    def test_floor_start_ceil_end(self):
        assert opening_segment_range(self.wall, 0.44, 0.56) == SegmentRange(2, 3)

    def test_order_independent(self):
        assert opening_segment_range(self.wall, 0.9, 0.1) == opening_segment_range(self.wall, 0.1, 0.9)

    def test_clamped(self):
        assert opening_segment_range(self.wall, -0.5, 1.5) == SegmentRange(0, 5)

    def test_zero_width_drag_gives_no_range(self):
        for t in (0.0, 0.1, 0.5, 0.55, 1.0):
            assert opening_segment_range(self.wall, t, t) is None

    def test_both_past_end_gives_no_range(self):
        assert opening_segment_range(self.wall, 1.2, 1.4) is None

    def test_opening_rect(self):
        rect = opening_rect_on_wall(self.wall, 1, 3, CAMERA)
        self.assertAlmostEqual(rect.left, 32.0)
        self.assertAlmostEqual(rect.width, 64.0)
        self.assertAlmostEqual(rect.angle_deg, 0.0)
        vertical = Wall(id="v", x1=0, y1=0, x2=0, y2=4)
        self.assertAlmostEqual(opening_rect_on_wall(vertical, 0, 1, CAMERA).angle_deg, 90.0)


class TestContainment(unittest.TestCase):
    def test_room_at(self):
        rooms = [Room(id="a", x=0, y=0, width=2, height=2), Room(id="b", x=2, y=0, width=1, height=1)]
        assert find_room_at(rooms, GridPoint(1, 1)).id == "a"
        assert find_room_at(rooms, GridPoint(2, 0)).id == "b"
        assert find_room_at(rooms, GridPoint(2, 1)) is None

    def test_stair_at(self):
        stairs = [Stair(id="s", x=3, y=3, width=2, length=3)]
        assert find_stair_at(stairs, GridPoint(4, 5)).id == "s"
        assert find_stair_at(stairs, GridPoint(5, 5)) is None


if __name__ == "__main__":
    unittest.main()
