"""Validation of proposed level geometry.

These checks run inside the commit pipeline before a proposed geometry is
accepted. A failing check rejects the whole change.
"""

from __future__ import annotations

from typing import Iterable, List

from ..core.errors import ConstructionError
from ..core.model import FloorGeometry, Room, RoomShape
from ..geom.shapes import bounding_box, check_room_overlap


def invalid_walls(geometry: FloorGeometry) -> List[str]:
    """IDs of walls that are diagonal or have zero length."""
    return [
        wall_id
        for wall_id, wall in geometry.walls.items()
        if not wall.is_axis_aligned or wall.length == 0
    ]


def invalid_stairs(geometry: FloorGeometry) -> List[str]:
    """IDs of stairs with a non-positive width or length."""
    return [
        stair_id
        for stair_id, stair in geometry.stairs.items()
        if stair.width <= 0 or stair.length <= 0
    ]


def invalid_openings(geometry: FloorGeometry) -> List[str]:
    """IDs of doors/windows whose span does not fit their (existing) wall.

    Openings on missing walls are not reported here; the pipeline removes
    them instead.
    """
    bad = []
    for opening_id, opening in list(geometry.doors.items()) + list(geometry.windows.items()):
        wall = geometry.walls.get(opening.wall_id)
        if wall is None:
            continue
        if not 0 <= opening.seg_start < opening.seg_end <= wall.length:
            bad.append(opening_id)
    return bad


def validate_room_shape(room: Room) -> bool:
    """Check that the fields selected by the room's shape tag are consistent."""
    if room.width <= 0 or room.height <= 0:
        return False

    if room.shape is RoomShape.RECTANGULAR:
        return True

    if not room.cells:
        return False
    if bounding_box(room.cells) != (room.x, room.y, room.width, room.height):
        return False

    if room.shape is RoomShape.CIRCLE:
        return (
            room.center_x is not None
            and room.center_y is not None
            and room.radius is not None
            and room.radius > 0
        )
    return True


def validate_no_overlap(geometry: FloorGeometry, room_ids: Iterable[str]) -> bool:
    """Check the listed rooms against every other room on the level.

    Raises:
        OverlapRejected: If one of the listed rooms overlaps another room.
    """
    rooms = list(geometry.rooms.values())
    for room_id in room_ids:
        check_room_overlap(rooms, geometry.rooms[room_id])
    return True


def validate_all(geometry: FloorGeometry, changed_room_ids: Iterable[str] = ()) -> bool:
    """Run all validators on a proposed geometry.

    Args:
        geometry: The proposed geometry.
        changed_room_ids: Rooms that are new or modified by this change and
            must be checked for overlap.

    Returns:
        True if all validations pass.

    Raises:
        ConstructionError: If an entity is malformed.
        OverlapRejected: If a changed room overlaps another room.
    """
    walls = invalid_walls(geometry)
    if walls:
        raise ConstructionError(f"Walls must be axis-aligned with non-zero length: {walls}")

    stairs = invalid_stairs(geometry)
    if stairs:
        raise ConstructionError(f"Stairs must have positive width and length: {stairs}")

    openings = invalid_openings(geometry)
    if openings:
        raise ConstructionError(f"Openings must lie within their wall: {openings}")

    changed_room_ids = list(changed_room_ids)
    for room_id in changed_room_ids:
        if not validate_room_shape(geometry.rooms[room_id]):
            raise ConstructionError(f"Room '{room_id}' has inconsistent shape fields")

    return validate_no_overlap(geometry, changed_room_ids)
