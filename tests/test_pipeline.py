"""Tests for the operation registry and the commit pipeline."""

import unittest

from gridplanner.core.errors import ConstructionError, OverlapRejected
from gridplanner.core.ids import CounterIdFactory
from gridplanner.core.model import (
    Door,
    FloorGeometry,
    Room,
    RoomShape,
    Stair,
    StairDirection,
    StairType,
    Wall,
    WindowOpening,
)
from gridplanner.engine.api import apply, apply_all
from gridplanner.engine.ops import _OPERATIONS, get_operation, list_operations, register_operation
from gridplanner.engine.pipeline import commit


class TestRegistry(unittest.TestCase):
    def test_all_operations_registered(self):
        expected = {
            "add_room_from_cells",
            "add_circle_room",
            "add_wall",
            "add_door",
            "add_window",
            "add_stair",
            "update_stair",
            "move_room",
            "set_room_metadata",
            "erase_stair",
            "erase_wall",
            "erase_room",
            "remove_door",
            "remove_window",
        }
        assert expected <= set(list_operations())

    def test_unknown_operation(self):
        with self.assertRaises(KeyError):
            get_operation("teleport_room")
        with self.assertRaises(ValueError):
            apply(FloorGeometry(), {"op": "teleport_room"})
        with self.assertRaises(ValueError):
            apply(FloorGeometry(), {"room": "x"})

    def test_register_custom_operation(self):
        class ClearOp:
            def precheck(self, geometry, **kwargs):
                return True

            def apply(self, geometry, ids, **kwargs):
                return FloorGeometry()

        register_operation("clear_level", ClearOp())
        self.addCleanup(_OPERATIONS.pop, "clear_level", None)
        geometry = apply(FloorGeometry(), {"op": "add_wall", "x1": 0, "y1": 0, "x2": 2, "y2": 0})
        assert apply(geometry, {"type": "clear_level"}).is_empty()


class TestRoomScenario(unittest.TestCase):
    def test_two_by_two_draft_gives_four_walls(self):
        ids = CounterIdFactory()
        geometry = apply(
            FloorGeometry(), {"op": "add_room_from_cells", "cells": ["0,0", "1,0", "0,1", "1,1"]}, ids
        )
        assert len(geometry.rooms) == 1
        assert len(geometry.walls) == 4
        assert len(geometry.doors) == 0
        assert len(geometry.windows) == 0
        assert all(w.length == 2 for w in geometry.walls.values())
        corners = {(w.x1, w.y1) for w in geometry.walls.values()} | {(w.x2, w.y2) for w in geometry.walls.values()}
        assert corners == {(0, 0), (2, 0), (0, 2), (2, 2)}

    def test_new_entities_get_factory_ids_and_metadata(self):
        ids = CounterIdFactory()
        geometry = apply(FloorGeometry(), {"op": "add_room_from_cells", "cells": ["0,0", "1,0"]}, ids)
        room = geometry.rooms["room-1"]
        assert room.id == "room-1"
        assert room.category == "cramped"
        assert room.color == "#f4d3d3"
        assert sorted(geometry.walls) == ["wall-1", "wall-2", "wall-3", "wall-4"]

    def test_overlapping_room_rejected_without_mutation(self):
        ids = CounterIdFactory()
        geometry = apply(FloorGeometry(), {"op": "add_room_from_cells", "cells": ["0,0", "1,0", "0,1", "1,1"]}, ids)
        with self.assertRaises(OverlapRejected):
            apply(geometry, {"op": "add_room_from_cells", "cells": ["1,1", "2,1"]}, ids)
        assert len(geometry.rooms) == 1
        assert len(geometry.walls) == 4

    def test_touching_room_accepted(self):
        geometry = apply_all(
            FloorGeometry(),
            [
                {"op": "add_room_from_cells", "cells": ["0,0"]},
                {"op": "add_room_from_cells", "cells": ["1,0"]},
            ],
            CounterIdFactory(),
        )
        assert len(geometry.rooms) == 2

    def test_move_into_another_room_rejected(self):
        ids = CounterIdFactory()
        geometry = apply_all(
            FloorGeometry(),
            [
                {"op": "add_room_from_cells", "cells": ["0,0"]},
                {"op": "add_room_from_cells", "cells": ["3,0"]},
            ],
            ids,
        )
        with self.assertRaises(OverlapRejected):
            apply(geometry, {"op": "move_room", "room": "room-1", "dx": 3, "dy": 0}, ids)

    def test_empty_cells(self):
        with self.assertRaises(ConstructionError):
            apply(FloorGeometry(), {"op": "add_room_from_cells", "cells": []})

    def test_circle_room(self):
        geometry = apply(
            FloorGeometry(),
            {"op": "add_circle_room", "center_x": 0.0, "center_y": 0.0, "radius": 2.0},
            CounterIdFactory(),
        )
        room = geometry.rooms["room-1"]
        assert room.shape is RoomShape.CIRCLE
        assert geometry.walls
        with self.assertRaises(ConstructionError):
            apply(FloorGeometry(), {"op": "add_circle_room", "center_x": 0.0, "center_y": 0.0, "radius": 0})

    def test_erase_room_keeps_shared_walls(self):
        ids = CounterIdFactory()
        geometry = apply_all(
            FloorGeometry(),
            [
                {"op": "add_room_from_cells", "cells": ["0,0"]},
                {"op": "add_room_from_cells", "cells": ["1,0"]},
            ],
            ids,
        )
        erased = apply(geometry, {"op": "erase_room", "room": "room-1"}, ids)
        assert list(erased.rooms) == ["room-2"]
        assert len(erased.walls) == 4
        assert any(w.x1 == 1 and w.x2 == 1 for w in erased.walls.values())

    def test_set_room_metadata(self):
        ids = CounterIdFactory()
        geometry = apply(FloorGeometry(), {"op": "add_room_from_cells", "cells": ["0,0"]}, ids)
        renamed = apply(geometry, {"op": "set_room_metadata", "room": "room-1", "name": "Armory"}, ids)
        assert renamed.rooms["room-1"].name == "Armory"
        assert renamed.rooms["room-1"].color == geometry.rooms["room-1"].color


class TestWallsAndOpenings(unittest.TestCase):
    def test_erasing_wall_removes_its_door(self):
        ids = CounterIdFactory()
        geometry = apply(FloorGeometry(), {"op": "add_wall", "x1": 0, "y1": 0, "x2": 5, "y2": 0}, ids)
        geometry = apply(geometry, {"op": "add_door", "wall": "wall-1", "seg_start": 2, "seg_end": 3}, ids)
        assert geometry.doors["door-1"] == Door(id="door-1", wall_id="wall-1", seg_start=2, seg_end=3)

        geometry = apply(geometry, {"op": "erase_wall", "wall": "wall-1"}, ids)
        assert geometry.walls == {}
        assert geometry.doors == {}

    def test_zero_length_wall(self):
        with self.assertRaises(ConstructionError):
            apply(FloorGeometry(), {"op": "add_wall", "x1": 1, "y1": 1, "x2": 1, "y2": 1})

    def test_diagonal_wall(self):
        with self.assertRaises(ConstructionError):
            apply(FloorGeometry(), {"op": "add_wall", "x1": 0, "y1": 0, "x2": 2, "y2": 2})

    def test_opening_must_fit_wall(self):
        ids = CounterIdFactory()
        geometry = apply(FloorGeometry(), {"op": "add_wall", "x1": 0, "y1": 0, "x2": 0, "y2": 3}, ids)
        with self.assertRaises(ConstructionError):
            apply(geometry, {"op": "add_window", "wall": "wall-1", "seg_start": 2, "seg_end": 4}, ids)
        with self.assertRaises(ConstructionError):
            apply(geometry, {"op": "add_window", "wall": "wall-1", "seg_start": 2, "seg_end": 2}, ids)
        with self.assertRaises(ValueError):
            apply(geometry, {"op": "add_window", "wall": "wall-9", "seg_start": 0, "seg_end": 1}, ids)

    def test_remove_window(self):
        ids = CounterIdFactory()
        geometry = apply_all(
            FloorGeometry(),
            [
                {"op": "add_wall", "x1": 0, "y1": 0, "x2": 4, "y2": 0},
                {"op": "add_window", "wall": "wall-1", "seg_start": 0, "seg_end": 2},
            ],
            ids,
        )
        assert list(geometry.windows) == ["window-1"]
        geometry = apply(geometry, {"op": "remove_window", "window": "window-1"}, ids)
        assert geometry.windows == {}
        assert "wall-1" in geometry.walls


class TestStairs(unittest.TestCase):
    def test_add_and_update_stair(self):
        ids = CounterIdFactory()
        geometry = apply(
            FloorGeometry(),
            {"op": "add_stair", "x": 1, "y": 1, "width": 2, "length": 3, "target_level_id": "level-1"},
            ids,
        )
        stair = geometry.stairs["stair-1"]
        assert stair.link_id == "stair-link-1"
        assert stair.target_level_id == "level-1"

        geometry = apply(
            geometry, {"op": "update_stair", "stair": "stair-1", "x": 4, "y": 1, "width": 1, "length": 3}, ids
        )
        updated = geometry.stairs["stair-1"]
        assert (updated.x, updated.width) == (4, 1)
        assert updated.link_id == "stair-link-1"

    def test_spiral_stair_keeps_its_type(self):
        geometry = apply(
            FloorGeometry(),
            {"op": "add_stair", "x": 0, "y": 0, "width": 2, "length": 2, "type": "spiral", "direction": "down"},
            CounterIdFactory(),
        )
        stair = geometry.stairs["stair-1"]
        assert stair.type is StairType.SPIRAL
        assert stair.direction is StairDirection.DOWN

    def test_type_selects_operation_without_op(self):
        geometry = apply(FloorGeometry(), {"type": "add_wall", "x1": 0, "y1": 0, "x2": 2, "y2": 0})
        assert len(geometry.walls) == 1

    def test_non_positive_stair(self):
        with self.assertRaises(ConstructionError):
            apply(FloorGeometry(), {"op": "add_stair", "x": 0, "y": 0, "width": 0, "length": 2})

    def test_erase_stair(self):
        ids = CounterIdFactory()
        geometry = apply(FloorGeometry(), {"op": "add_stair", "x": 0, "y": 0, "width": 1, "length": 1}, ids)
        assert apply(geometry, {"op": "erase_stair", "stair": "stair-1"}, ids).stairs == {}


class TestCommit(unittest.TestCase):
    def test_unchanged_geometry_commits_as_is(self):
        geometry = FloorGeometry(
            rooms={"r": Room(id="r", x=0, y=0, width=1, height=1, name="x", color="#fff", category="roomy")},
            walls={"w": Wall(id="w", x1=0, y1=0, x2=1, y2=0)},
        )
        assert commit(geometry, geometry, CounterIdFactory()) == geometry

    def test_new_wall_renamed_and_opening_follows(self):
        proposed = FloorGeometry(
            walls={"tmp": Wall(id="tmp", x1=0, y1=0, x2=3, y2=0)},
            doors={"tmp-door": Door(id="tmp-door", wall_id="tmp", seg_start=0, seg_end=1)},
        )
        accepted = commit(FloorGeometry(), proposed, CounterIdFactory())
        assert list(accepted.walls) == ["wall-1"]
        assert accepted.doors["door-1"].wall_id == "wall-1"

    def test_orphaned_window_dropped(self):
        current = FloorGeometry(
            walls={"w": Wall(id="w", x1=0, y1=0, x2=3, y2=0)},
            windows={"win": WindowOpening(id="win", wall_id="w", seg_start=0, seg_end=1)},
        )
        proposed = FloorGeometry(windows=dict(current.windows))
        assert commit(current, proposed, CounterIdFactory()).windows == {}

    def test_fresh_ids_skip_existing(self):
        current = FloorGeometry(walls={"wall-1": Wall(id="wall-1", x1=0, y1=0, x2=1, y2=0)})
        proposed = FloorGeometry(
            walls={
                "wall-1": current.walls["wall-1"],
                "new": Wall(id="new", x1=0, y1=1, x2=1, y2=1),
            }
        )
        accepted = commit(current, proposed, CounterIdFactory())
        assert sorted(accepted.walls) == ["wall-1", "wall-2"]

    def test_invalid_stair_rejected(self):
        proposed = FloorGeometry(stairs={"s": Stair(id="s", x=0, y=0, width=1, length=0)})
        with self.assertRaises(ConstructionError):
            commit(FloorGeometry(), proposed, CounterIdFactory())


if __name__ == "__main__":
    unittest.main()
