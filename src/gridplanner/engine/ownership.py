"""Wall ownership for room moves.

When a room is dragged, only the walls that belong to its perimeter and to
no other room's perimeter travel with it. Walls shared by two adjacent
rooms stay put, even if they coincide with the dragged room's boundary.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import replace
from typing import Dict, FrozenSet, Optional

from ..core.model import FloorGeometry, Room, RoomShape
from ..geom.shapes import WallKey, bounding_box, room_perimeter_keys, wall_key

LOGGER = logging.getLogger(__name__)


def claim_counts(geometry: FloorGeometry) -> Counter:
    """Count how many room perimeters claim each wall key."""
    counts: Counter = Counter()
    for room in geometry.rooms.values():
        counts.update(room_perimeter_keys(room))
    return counts


def owned_wall_keys(geometry: FloorGeometry, room_id: str) -> FrozenSet[WallKey]:
    """Perimeter keys of ``room_id`` claimed by no other room."""
    room = geometry.rooms.get(room_id)
    if room is None:
        return frozenset()
    counts = claim_counts(geometry)
    return frozenset(k for k in room_perimeter_keys(room) if counts[k] == 1)


def owned_wall_ids(geometry: FloorGeometry, room_id: str) -> FrozenSet[str]:
    """IDs of the level's walls exclusively owned by ``room_id``.

    A wall matches when its normalized endpoints equal an owned perimeter
    key.
    """
    owned = owned_wall_keys(geometry, room_id)
    return frozenset(
        wall.id
        for wall in geometry.walls.values()
        if wall_key(wall.x1, wall.y1, wall.x2, wall.y2) in owned
    )


def translate_room(room: Room, dx: int, dy: int) -> Room:
    """Move a room's footprint by (dx, dy), recomputing its bounding box."""
    if room.shape is RoomShape.RECTANGULAR or not room.cells:
        return replace(room, x=room.x + dx, y=room.y + dy)

    cells = frozenset(c.translated(dx, dy) for c in room.cells)
    x, y, width, height = bounding_box(cells)
    moved = replace(room, cells=cells, x=x, y=y, width=width, height=height)
    if room.shape is RoomShape.CIRCLE:
        moved = replace(moved, center_x=room.center_x + dx, center_y=room.center_y + dy)
    return moved


def move_room(
    geometry: FloorGeometry,
    room_id: str,
    dx: int,
    dy: int,
    owned_ids: Optional[FrozenSet[str]] = None,
) -> FloorGeometry:
    """Propose a geometry with ``room_id`` and its owned walls moved.

    Doors and windows are addressed relative to their wall, so openings on
    owned walls follow the walls without being rewritten.

    Args:
        geometry: Current level geometry.
        room_id: The room being dragged.
        dx, dy: Net drag delta in cells.
        owned_ids: Owned wall ids captured at drag start; computed now if
            omitted.

    Returns:
        The proposed geometry (not yet committed).

    Raises:
        KeyError: If the room does not exist.
    """
    if room_id not in geometry.rooms:
        raise KeyError(f"Room '{room_id}' does not exist")
    if owned_ids is None:
        owned_ids = owned_wall_ids(geometry, room_id)

    rooms: Dict[str, Room] = dict(geometry.rooms)
    rooms[room_id] = translate_room(rooms[room_id], dx, dy)

    walls = {
        wall_id: wall.translated(dx, dy) if wall_id in owned_ids else wall
        for wall_id, wall in geometry.walls.items()
    }

    LOGGER.debug(
        "Moving room %s by (%d, %d) with %d owned walls", room_id, dx, dy, len(owned_ids)
    )
    return replace(geometry, rooms=rooms, walls=walls)
