"""Tests for deriving rooms and walls from cell sets."""

import random
import unittest

from gridplanner.core.errors import ConstructionError, OverlapRejected
from gridplanner.core.ids import CounterIdFactory
from gridplanner.core.model import GridPoint, Room, RoomShape
from gridplanner.geom.selection import rect_cells_between
from gridplanner.geom.shapes import (
    bounding_box,
    check_room_overlap,
    circle_cells,
    has_room_overlap,
    perimeter_edges,
    perimeter_segments,
    perimeter_walls,
    room_area,
    room_from_cells,
    room_from_circle,
    room_perimeter_length,
    rooms_overlap,
    wall_key,
)


def _random_cell_sets(count=40, seed=7):
    rng = random.Random(seed)
    sets = []
    for _ in range(count):
        n = rng.randint(1, 14)
        sets.append(frozenset(GridPoint(rng.randint(-3, 3), rng.randint(-3, 3)) for _ in range(n)))
    return sets


def _unit_pieces(edge):
    """Split a merged segment into unit edges."""
    if edge.horizontal:
        return [((x, edge.y1), (x + 1, edge.y1)) for x in range(edge.x1, edge.x2)]
    return [((edge.x1, y), (edge.x1, y + 1)) for y in range(edge.y1, edge.y2)]


class TestPerimeter(unittest.TestCase):
    def test_unit_square_of_four_cells(self):
        cells = rect_cells_between(GridPoint(0, 0), GridPoint(1, 1))
        segments = perimeter_segments(cells)
        keys = {wall_key(e.x1, e.y1, e.x2, e.y2) for e in segments}
        assert keys == {
            ((0, 0), (2, 0)),
            ((0, 2), (2, 2)),
            ((0, 0), (0, 2)),
            ((2, 0), (2, 2)),
        }

    def test_inner_edges_not_emitted(self):
        cells = [GridPoint(0, 0), GridPoint(1, 0)]
        assert len(perimeter_edges(cells)) == 6

    def test_l_shape(self):
        cells = [GridPoint(0, 0), GridPoint(0, 1), GridPoint(1, 1)]
        assert len(perimeter_segments(cells)) == 6

    def test_merged_perimeter_has_no_touching_collinear_walls(self):
        for cells in _random_cell_sets():
            segments = perimeter_segments(cells)
            for a in segments:
                for b in segments:
                    if a is b or a.horizontal != b.horizontal:
                        continue
                    if a.horizontal and a.y1 == b.y1:
                        assert a.x2 != b.x1, (cells, a, b)
                    if not a.horizontal and a.x1 == b.x1:
                        assert a.y2 != b.y1, (cells, a, b)

    def test_every_wall_separates_inside_from_outside(self):
        for cells in _random_cell_sets():
            for edge in perimeter_segments(cells):
                for (x1, y1), (x2, y2) in _unit_pieces(edge):
                    if y1 == y2:
                        sides = [GridPoint(x1, y1 - 1), GridPoint(x1, y1)]
                    else:
                        sides = [GridPoint(x1 - 1, y1), GridPoint(x1, y1)]
                    inside = [c in cells for c in sides]
                    assert inside.count(True) == 1, (cells, edge)

    def test_perimeter_walls_get_fresh_ids(self):
        walls = perimeter_walls(rect_cells_between(GridPoint(0, 0), GridPoint(1, 1)), CounterIdFactory())
        assert sorted(w.id for w in walls) == ["wall-1", "wall-2", "wall-3", "wall-4"]
        assert all(w.is_axis_aligned for w in walls)

    def test_perimeter_walls_empty_set(self):
        with self.assertRaises(ConstructionError):
            perimeter_walls([], CounterIdFactory())


class TestRoomConstruction(unittest.TestCase):
    def test_bounding_box(self):
        assert bounding_box([GridPoint(1, 2), GridPoint(3, 2), GridPoint(2, 5)]) == (1, 2, 3, 4)

    def test_empty_set_is_construction_error(self):
        with self.assertRaises(ConstructionError):
            room_from_cells([], "room-1")

    def test_full_rectangle_is_rectangular(self):
        room = room_from_cells(rect_cells_between(GridPoint(2, 3), GridPoint(4, 4)), "room-1")
        assert room.shape is RoomShape.RECTANGULAR
        assert (room.x, room.y, room.width, room.height) == (2, 3, 3, 2)
        assert room.cells is None

    def test_partial_rectangle_keeps_mask(self):
        cells = frozenset([GridPoint(0, 0), GridPoint(0, 1), GridPoint(1, 1)])
        room = room_from_cells(cells, "room-1")
        assert room.shape is RoomShape.FREEFORM
        assert room.cell_set() == cells
        assert room_area(room) == 3.0
        assert room_perimeter_length(room) == 8.0


class TestCircle(unittest.TestCase):
    def test_cells_within_radius(self):
        cells = circle_cells(0.0, 0.0, 1.0)
        assert cells == frozenset(
            {GridPoint(-1, -1), GridPoint(0, -1), GridPoint(-1, 0), GridPoint(0, 0)}
        )

    def test_non_positive_radius(self):
        with self.assertRaises(ConstructionError):
            circle_cells(0.0, 0.0, 0.0)
        with self.assertRaises(ConstructionError):
            room_from_circle("room-1", 0.0, 0.0, -2.0)

    def test_radius_too_small_for_any_center(self):
        with self.assertRaises(ConstructionError):
            circle_cells(0.0, 0.0, 0.1)

    def test_circle_room(self):
        room = room_from_circle("room-1", 5.5, 5.5, 2.0)
        assert room.shape is RoomShape.CIRCLE
        assert GridPoint(5, 5) in room.cell_set()
        assert room.radius == 2.0
        x, y, w, h = bounding_box(room.cells)
        assert (room.x, room.y, room.width, room.height) == (x, y, w, h)


class TestOverlap(unittest.TestCase):
    def test_touching_edges_do_not_overlap(self):
        a = Room(id="a", x=0, y=0, width=2, height=2)
        b = Room(id="b", x=2, y=0, width=2, height=2)
        c = Room(id="c", x=2, y=2, width=1, height=1)
        assert not rooms_overlap(a, b)
        assert not rooms_overlap(a, c)

    def test_positive_area_overlaps(self):
        a = Room(id="a", x=0, y=0, width=2, height=2)
        b = Room(id="b", x=1, y=1, width=2, height=2)
        assert rooms_overlap(a, b)
        assert rooms_overlap(b, a)

    def test_overlap_uses_bounding_rectangles(self):
        # an L-shaped room's empty corner still counts
        l_room = room_from_cells([GridPoint(0, 0), GridPoint(0, 1), GridPoint(1, 1)], "l")
        corner = Room(id="corner", x=1, y=0, width=1, height=1)
        assert rooms_overlap(l_room, corner)

    def test_check_room_overlap(self):
        rooms = [Room(id="a", x=0, y=0, width=2, height=2)]
        candidate = Room(id="b", x=1, y=0, width=2, height=2)
        with self.assertRaises(OverlapRejected) as ctx:
            check_room_overlap(rooms, candidate)
        assert ctx.exception.other_id == "a"
        assert has_room_overlap(rooms, candidate)
        assert not has_room_overlap(rooms, rooms[0])


if __name__ == "__main__":
    unittest.main()
