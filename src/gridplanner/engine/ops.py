"""Operations engine for grid floor plans.

Every edit the canvas can make is an operation: it validates its parameters
against the current level geometry and builds a complete proposed
geometry. Proposals are accepted only through
:func:`gridplanner.engine.pipeline.commit`, which also gives new entities
their final ids; operations key new entities with throwaway pending keys.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Protocol

from ..core.errors import ConstructionError
from ..core.ids import IdFactory
from ..core.model import (
    Door,
    FloorGeometry,
    GridPoint,
    Stair,
    StairDirection,
    StairType,
    Wall,
    WindowOpening,
)
from ..geom.selection import parse_cell_key
from ..geom.shapes import perimeter_segments, room_from_cells, room_from_circle, wall_key
from .ownership import move_room, owned_wall_ids


class Operation(Protocol):
    """Protocol for geometry operations.

    All operations must implement this interface to be compatible
    with the operation registry and :func:`gridplanner.engine.api.apply`.
    """

    def precheck(self, geometry: FloorGeometry, **kwargs: Any) -> bool:
        """Validate that the operation can be applied to the geometry.

        Raises:
            ValueError: If a referenced entity does not exist.
            ConstructionError: If the requested entity cannot be built.
        """
        ...

    def apply(self, geometry: FloorGeometry, ids: IdFactory, **kwargs: Any) -> FloorGeometry:
        """Build the proposed geometry. The input is never modified."""
        ...


def _pending_keys(existing: Iterable[str], prefix: str, count: int) -> List[str]:
    taken = set(existing)
    keys: List[str] = []
    n = 0
    while len(keys) < count:
        key = f"pending-{prefix}-{n}"
        if key not in taken:
            keys.append(key)
        n += 1
    return keys


def _as_cells(cells: Iterable[Any]) -> FrozenSet[GridPoint]:
    result = set()
    for cell in cells:
        if isinstance(cell, GridPoint):
            result.add(cell)
        elif isinstance(cell, str):
            result.add(parse_cell_key(cell))
        else:
            x, y = cell
            result.add(GridPoint(int(x), int(y)))
    return frozenset(result)


def _require(mapping: Dict[str, Any], key: str, kind: str) -> None:
    if key not in mapping:
        raise ValueError(f"{kind} '{key}' does not exist")


def _with_room_and_perimeter(geometry: FloorGeometry, room) -> FloorGeometry:
    """Add a room plus perimeter walls not already present on the level."""
    existing = {wall_key(w.x1, w.y1, w.x2, w.y2) for w in geometry.walls.values()}
    segments = [
        e for e in perimeter_segments(room.cell_set())
        if wall_key(e.x1, e.y1, e.x2, e.y2) not in existing
    ]

    room_key = _pending_keys(geometry.rooms, "room", 1)[0]
    wall_keys = _pending_keys(geometry.walls, "wall", len(segments))

    rooms = dict(geometry.rooms)
    rooms[room_key] = replace(room, id=room_key)
    walls = dict(geometry.walls)
    for key, e in zip(wall_keys, segments):
        walls[key] = Wall(id=key, x1=e.x1, y1=e.y1, x2=e.x2, y2=e.y2)

    return replace(geometry, rooms=rooms, walls=walls)


class AddRoomFromCellsOp:
    """Create a room from a drafted cell set, with walls along its perimeter."""

    def precheck(self, geometry: FloorGeometry, cells: Iterable[Any] = (), **kwargs: Any) -> bool:
        if not _as_cells(cells):
            raise ConstructionError("Cannot create a room from an empty cell set")
        return True

    def apply(self, geometry: FloorGeometry, ids: IdFactory, cells: Iterable[Any] = (), **kwargs: Any) -> FloorGeometry:
        room = room_from_cells(_as_cells(cells), room_id="")
        return _with_room_and_perimeter(geometry, room)


class AddCircleRoomOp:
    """Create a circle-derived room approximated on the grid."""

    def precheck(self, geometry: FloorGeometry, center_x: float, center_y: float, radius: float, **kwargs: Any) -> bool:
        if radius <= 0:
            raise ConstructionError(f"Circle radius must be positive, got {radius}")
        return True

    def apply(self, geometry: FloorGeometry, ids: IdFactory, center_x: float, center_y: float, radius: float, **kwargs: Any) -> FloorGeometry:
        room = room_from_circle("", center_x, center_y, radius)
        return _with_room_and_perimeter(geometry, room)


class AddWallOp:
    """Add a single axis-aligned wall."""

    def precheck(self, geometry: FloorGeometry, x1: int, y1: int, x2: int, y2: int, **kwargs: Any) -> bool:
        if x1 == x2 and y1 == y2:
            raise ConstructionError("Wall has zero length")
        if x1 != x2 and y1 != y2:
            raise ConstructionError(f"Wall ({x1},{y1})-({x2},{y2}) is diagonal")
        return True

    def apply(self, geometry: FloorGeometry, ids: IdFactory, x1: int, y1: int, x2: int, y2: int, **kwargs: Any) -> FloorGeometry:
        key = _pending_keys(geometry.walls, "wall", 1)[0]
        walls = dict(geometry.walls)
        walls[key] = Wall(id=key, x1=x1, y1=y1, x2=x2, y2=y2)
        return replace(geometry, walls=walls)


class AddOpeningOp:
    """Add a door or window spanning whole cells of an existing wall."""

    def __init__(self, kind: str):
        self.kind = kind

    def precheck(self, geometry: FloorGeometry, wall: str, seg_start: int, seg_end: int, **kwargs: Any) -> bool:
        _require(geometry.walls, wall, "Wall")
        if not 0 <= seg_start < seg_end <= geometry.walls[wall].length:
            raise ConstructionError(
                f"Opening [{seg_start}, {seg_end}) does not fit wall '{wall}'"
            )
        return True

    def apply(self, geometry: FloorGeometry, ids: IdFactory, wall: str, seg_start: int, seg_end: int, **kwargs: Any) -> FloorGeometry:
        if self.kind == "door":
            key = _pending_keys(geometry.doors, "door", 1)[0]
            doors = dict(geometry.doors)
            doors[key] = Door(id=key, wall_id=wall, seg_start=seg_start, seg_end=seg_end)
            return replace(geometry, doors=doors)

        key = _pending_keys(geometry.windows, "window", 1)[0]
        windows = dict(geometry.windows)
        windows[key] = WindowOpening(id=key, wall_id=wall, seg_start=seg_start, seg_end=seg_end)
        return replace(geometry, windows=windows)


class AddStairOp:
    """Add a stair with a fresh link id pointing at a target level."""

    def precheck(self, geometry: FloorGeometry, x: int, y: int, width: int, length: int, **kwargs: Any) -> bool:
        if width <= 0 or length <= 0:
            raise ConstructionError(f"Stair size must be positive, got {width}x{length}")
        return True

    def apply(
        self,
        geometry: FloorGeometry,
        ids: IdFactory,
        x: int,
        y: int,
        width: int,
        length: int,
        type: str = StairType.STRAIGHT.value,
        direction: str = StairDirection.UP.value,
        link_id: Optional[str] = None,
        target_level_id: str = "",
        **kwargs: Any,
    ) -> FloorGeometry:
        key = _pending_keys(geometry.stairs, "stair", 1)[0]
        stairs = dict(geometry.stairs)
        stairs[key] = Stair(
            id=key,
            x=x,
            y=y,
            width=width,
            length=length,
            type=StairType(type),
            direction=StairDirection(direction),
            link_id=link_id or ids("stair-link"),
            target_level_id=target_level_id or "",
        )
        return replace(geometry, stairs=stairs)


class UpdateStairOp:
    """Reposition or resize an existing stair, keeping its id and link."""

    def precheck(self, geometry: FloorGeometry, stair: str, width: int, length: int, **kwargs: Any) -> bool:
        _require(geometry.stairs, stair, "Stair")
        if width <= 0 or length <= 0:
            raise ConstructionError(f"Stair size must be positive, got {width}x{length}")
        return True

    def apply(self, geometry: FloorGeometry, ids: IdFactory, stair: str, x: int, y: int, width: int, length: int, **kwargs: Any) -> FloorGeometry:
        stairs = dict(geometry.stairs)
        stairs[stair] = replace(stairs[stair], x=x, y=y, width=width, length=length)
        return replace(geometry, stairs=stairs)


class MoveRoomOp:
    """Translate a room together with the walls it exclusively owns."""

    def precheck(self, geometry: FloorGeometry, room: str, dx: int, dy: int, **kwargs: Any) -> bool:
        _require(geometry.rooms, room, "Room")
        return True

    def apply(
        self,
        geometry: FloorGeometry,
        ids: IdFactory,
        room: str,
        dx: int,
        dy: int,
        owned_wall_ids: Optional[Iterable[str]] = None,
        **kwargs: Any,
    ) -> FloorGeometry:
        owned = frozenset(owned_wall_ids) if owned_wall_ids is not None else None
        return move_room(geometry, room, dx, dy, owned)


class SetRoomMetadataOp:
    """Update a room's presentation fields (name, color, category)."""

    def precheck(self, geometry: FloorGeometry, room: str, **kwargs: Any) -> bool:
        _require(geometry.rooms, room, "Room")
        return True

    def apply(self, geometry: FloorGeometry, ids: IdFactory, room: str, **kwargs: Any) -> FloorGeometry:
        fields = {k: v for k, v in kwargs.items() if k in ("name", "color", "category")}
        rooms = dict(geometry.rooms)
        rooms[room] = replace(rooms[room], **fields)
        return replace(geometry, rooms=rooms)


class RemoveEntityOp:
    """Remove one entity by id from one of the geometry collections."""

    def __init__(self, collection: str, kind: str):
        self.collection = collection
        self.kind = kind

    def precheck(self, geometry: FloorGeometry, **kwargs: Any) -> bool:
        _require(getattr(geometry, self.collection), kwargs.get(self.kind), self.kind.capitalize())
        return True

    def apply(self, geometry: FloorGeometry, ids: IdFactory, **kwargs: Any) -> FloorGeometry:
        entity_id = kwargs[self.kind]
        remaining = {k: v for k, v in getattr(geometry, self.collection).items() if k != entity_id}
        return replace(geometry, **{self.collection: remaining})


class EraseRoomOp:
    """Remove a room and the perimeter walls it exclusively owns.

    Walls shared with a neighbouring room stay; openings on removed walls are
    dropped by the commit pipeline.
    """

    def precheck(self, geometry: FloorGeometry, room: str, **kwargs: Any) -> bool:
        _require(geometry.rooms, room, "Room")
        return True

    def apply(self, geometry: FloorGeometry, ids: IdFactory, room: str, **kwargs: Any) -> FloorGeometry:
        doomed = owned_wall_ids(geometry, room)
        rooms = {k: v for k, v in geometry.rooms.items() if k != room}
        walls = {k: v for k, v in geometry.walls.items() if k not in doomed}
        return replace(geometry, rooms=rooms, walls=walls)


# Operation registry
_OPERATIONS: Dict[str, Operation] = {
    "add_room_from_cells": AddRoomFromCellsOp(),
    "add_circle_room": AddCircleRoomOp(),
    "add_wall": AddWallOp(),
    "add_door": AddOpeningOp("door"),
    "add_window": AddOpeningOp("window"),
    "add_stair": AddStairOp(),
    "update_stair": UpdateStairOp(),
    "move_room": MoveRoomOp(),
    "set_room_metadata": SetRoomMetadataOp(),
    "erase_stair": RemoveEntityOp("stairs", "stair"),
    "erase_wall": RemoveEntityOp("walls", "wall"),
    "erase_room": EraseRoomOp(),
    "remove_door": RemoveEntityOp("doors", "door"),
    "remove_window": RemoveEntityOp("windows", "window"),
}


def register_operation(name: str, operation: Operation) -> None:
    """Register a new operation in the registry.

    Args:
        name: Name of the operation.
        operation: Operation instance to register.
    """
    _OPERATIONS[name] = operation


def get_operation(name: str) -> Operation:
    """Get an operation by name.

    Raises:
        KeyError: If the operation is not registered.
    """
    if name not in _OPERATIONS:
        raise KeyError(f"Operation '{name}' is not registered")
    return _OPERATIONS[name]


def list_operations() -> list[str]:
    """List all registered operations."""
    return list(_OPERATIONS.keys())
