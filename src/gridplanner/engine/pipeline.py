"""Geometry commit pipeline.

:func:`commit` is the single entry point through which a proposed level
geometry replaces the current one. Tools and operations only ever build
proposals; nothing else mutates geometry.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Mapping, Set, Tuple, TypeVar

from ..core.ids import IdFactory
from ..core.metadata import ensure_room_metadata
from ..core.model import FloorGeometry
from .validators import validate_all

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


def _assign_ids(
    current: Mapping[str, T], proposed: Mapping[str, T], ids: IdFactory, prefix: str
) -> Tuple[Dict[str, T], Dict[str, str]]:
    """Give every entity not present in ``current`` a fresh id.

    Returns:
        The re-keyed entities and a mapping of proposal key -> fresh id.
    """
    taken: Set[str] = set(current) | set(proposed)
    result: Dict[str, T] = {}
    renames: Dict[str, str] = {}

    for key, entity in proposed.items():
        if key in current:
            result[key] = entity if entity.id == key else replace(entity, id=key)
            continue
        new_id = ids(prefix)
        while new_id in taken:
            new_id = ids(prefix)
        taken.add(new_id)
        renames[key] = new_id
        result[new_id] = replace(entity, id=new_id)

    return result, renames


def commit(current: FloorGeometry, proposed: FloorGeometry, ids: IdFactory) -> FloorGeometry:
    """Validate a proposed geometry and return the accepted one.

    Steps:
        1. Entities introduced by the proposal get fresh unique ids; door and
           window references to renamed walls follow.
        2. Doors and windows whose wall is gone are dropped.
        3. New rooms get default metadata.
        4. Walls, stairs and openings are validated, and every new or
           changed room is checked for overlap.

    Args:
        current: The level's geometry as it is now.
        proposed: The complete geometry the caller wants instead.
        ids: Id factory for new entities.

    Returns:
        The accepted geometry.

    Raises:
        ConstructionError: If an entity is malformed.
        OverlapRejected: If a new or changed room overlaps another room.
    """
    rooms, room_renames = _assign_ids(current.rooms, proposed.rooms, ids, "room")
    walls, wall_renames = _assign_ids(current.walls, proposed.walls, ids, "wall")
    doors, _ = _assign_ids(current.doors, proposed.doors, ids, "door")
    windows, _ = _assign_ids(current.windows, proposed.windows, ids, "window")
    stairs, _ = _assign_ids(current.stairs, proposed.stairs, ids, "stair")

    if wall_renames:
        doors = {
            k: replace(d, wall_id=wall_renames.get(d.wall_id, d.wall_id))
            for k, d in doors.items()
        }
        windows = {
            k: replace(w, wall_id=wall_renames.get(w.wall_id, w.wall_id))
            for k, w in windows.items()
        }

    orphaned = [k for k, d in doors.items() if d.wall_id not in walls]
    orphaned += [k for k, w in windows.items() if w.wall_id not in walls]
    doors = {k: d for k, d in doors.items() if d.wall_id in walls}
    windows = {k: w for k, w in windows.items() if w.wall_id in walls}

    new_room_ids = set(room_renames.values())
    for room_id in new_room_ids:
        rooms[room_id] = ensure_room_metadata(rooms[room_id])

    changed_room_ids = sorted(
        room_id
        for room_id, room in rooms.items()
        if room_id in new_room_ids or current.rooms.get(room_id) != room
    )

    accepted = FloorGeometry(
        rooms=rooms, walls=walls, doors=doors, windows=windows, stairs=stairs
    )
    validate_all(accepted, changed_room_ids)

    LOGGER.debug(
        "Committed geometry: %d new rooms, %d new walls, %d orphaned openings removed",
        len(room_renames),
        len(wall_renames),
        len(orphaned),
    )
    return accepted
