"""JSON codec for project documents.

This module converts :class:`Project` objects to and from the camelCase
document format exchanged with clients and stored on disk. Entity
collections are JSON arrays; cell masks travel as ``"x,y"`` strings.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..core.model import (
    Door,
    FloorGeometry,
    Level,
    Project,
    ProjectSummary,
    Room,
    RoomShape,
    Stair,
    StairDirection,
    StairType,
    Wall,
    WindowOpening,
)
from ..geom.selection import format_cell_key, parse_cell_key


def _room_to_dict(room: Room) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": room.id,
        "x": room.x,
        "y": room.y,
        "width": room.width,
        "height": room.height,
        "shape": room.shape.value,
    }
    if room.shape is not RoomShape.RECTANGULAR and room.cells:
        data["cellKeys"] = [format_cell_key(c) for c in sorted(room.cells)]
    if room.shape is RoomShape.CIRCLE:
        data["centerX"] = room.center_x
        data["centerY"] = room.center_y
        data["radius"] = room.radius
    if room.name:
        data["name"] = room.name
    if room.color is not None:
        data["color"] = room.color
    if room.category is not None:
        data["category"] = room.category
    return data


def _room_from_dict(data: Dict[str, Any]) -> Room:
    cell_keys = data.get("cellKeys") or []
    cells = frozenset(parse_cell_key(k) for k in cell_keys) or None

    shape_tag = data.get("shape")
    if shape_tag == RoomShape.CIRCLE.value:
        shape = RoomShape.CIRCLE
    elif shape_tag in (None, "grid"):
        # older documents: a cell mask means freeform
        shape = RoomShape.FREEFORM if cells else RoomShape.RECTANGULAR
    else:
        shape = RoomShape(shape_tag)

    return Room(
        id=data["id"],
        x=int(data["x"]),
        y=int(data["y"]),
        width=int(data["width"]),
        height=int(data["height"]),
        shape=shape,
        cells=cells if shape is not RoomShape.RECTANGULAR else None,
        center_x=data.get("centerX") if shape is RoomShape.CIRCLE else None,
        center_y=data.get("centerY") if shape is RoomShape.CIRCLE else None,
        radius=data.get("radius") if shape is RoomShape.CIRCLE else None,
        name=data.get("name", ""),
        color=data.get("color"),
        category=data.get("category"),
    )


def _opening_to_dict(opening) -> Dict[str, Any]:
    return {
        "id": opening.id,
        "wallId": opening.wall_id,
        "segStart": opening.seg_start,
        "segEnd": opening.seg_end,
    }


def _stair_to_dict(stair: Stair) -> Dict[str, Any]:
    return {
        "id": stair.id,
        "x": stair.x,
        "y": stair.y,
        "width": stair.width,
        "length": stair.length,
        "type": stair.type.value,
        "direction": stair.direction.value,
        "linkId": stair.link_id,
        "targetLevelId": stair.target_level_id,
    }


def geometry_to_dict(geometry: FloorGeometry) -> Dict[str, List[Dict[str, Any]]]:
    return {
        "rooms": [_room_to_dict(r) for r in geometry.rooms.values()],
        "walls": [
            {"id": w.id, "x1": w.x1, "y1": w.y1, "x2": w.x2, "y2": w.y2}
            for w in geometry.walls.values()
        ],
        "doors": [_opening_to_dict(d) for d in geometry.doors.values()],
        "windows": [_opening_to_dict(w) for w in geometry.windows.values()],
        "stairs": [_stair_to_dict(s) for s in geometry.stairs.values()],
    }


def geometry_from_dict(data: Dict[str, Any]) -> FloorGeometry:
    """Decode one level's geometry.

    Raises:
        ValueError: If an entity is missing required fields.
    """
    rooms = {}
    for item in data.get("rooms", []):
        try:
            room = _room_from_dict(item)
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid room data {item!r}: {e}") from e
        rooms[room.id] = room

    walls = {}
    for item in data.get("walls", []):
        try:
            wall = Wall(
                id=item["id"],
                x1=int(item["x1"]),
                y1=int(item["y1"]),
                x2=int(item["x2"]),
                y2=int(item["y2"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid wall data {item!r}: {e}") from e
        walls[wall.id] = wall

    def openings(key, cls):
        result = {}
        for item in data.get(key, []):
            try:
                opening = cls(
                    id=item["id"],
                    wall_id=item["wallId"],
                    seg_start=int(item["segStart"]),
                    seg_end=int(item["segEnd"]),
                )
            except (KeyError, TypeError, ValueError) as e:
                raise ValueError(f"Invalid {key} data {item!r}: {e}") from e
            result[opening.id] = opening
        return result

    stairs = {}
    for item in data.get("stairs", []) or []:
        try:
            stair = Stair(
                id=item["id"],
                x=int(item["x"]),
                y=int(item["y"]),
                width=int(item["width"]),
                length=int(item["length"]),
                type=StairType(item.get("type", StairType.STRAIGHT.value)),
                direction=StairDirection(item.get("direction", StairDirection.UP.value)),
                link_id=item.get("linkId", ""),
                target_level_id=item.get("targetLevelId", ""),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid stair data {item!r}: {e}") from e
        stairs[stair.id] = stair

    return FloorGeometry(
        rooms=rooms,
        walls=walls,
        doors=openings("doors", Door),
        windows=openings("windows", WindowOpening),
        stairs=stairs,
    )


def project_to_dict(project: Project) -> Dict[str, Any]:
    return {
        "id": project.id,
        "name": project.name,
        "version": project.version,
        "levels": [
            {
                "id": level.id,
                "name": level.name,
                "elevation": level.elevation,
                "geometry": geometry_to_dict(level.geometry),
            }
            for level in project.levels
        ],
    }


def project_from_dict(data: Dict[str, Any], version: Optional[int] = None) -> Project:
    """Decode a project document.

    Args:
        data: The decoded JSON document.
        version: Overrides the document's own version when given.

    Raises:
        ValueError: If the document is malformed.
    """
    if not isinstance(data, dict):
        raise ValueError("Project document must be a JSON object")
    try:
        levels = tuple(
            Level(
                id=item["id"],
                name=item.get("name", ""),
                elevation=int(item.get("elevation", 0)),
                geometry=geometry_from_dict(item.get("geometry", {})),
            )
            for item in data.get("levels", [])
        )
        return Project(
            id=data["id"],
            name=data.get("name", ""),
            levels=levels,
            version=int(version if version is not None else data.get("version", 1)),
        )
    except (KeyError, TypeError) as e:
        raise ValueError(f"Invalid project document: {e}") from e


def summary_to_dict(summary: ProjectSummary) -> Dict[str, Any]:
    return {"id": summary.id, "name": summary.name, "version": summary.version}


def dumps_project(project: Project) -> str:
    return json.dumps(project_to_dict(project))


def loads_project(text: str) -> Project:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}") from e
    return project_from_dict(data)


def load_project(path: str) -> Project:
    """Load a project from a JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the JSON data is invalid or malformed.
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with open(file_path, encoding="utf-8") as f:
        return loads_project(f.read())


def save_project(project: Project, path: str) -> None:
    """Save a project to a JSON file, creating parent directories."""
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with open(file_path, "w", encoding="utf-8") as f:
        json.dump(project_to_dict(project), f, indent=2)
