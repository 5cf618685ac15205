"""Grid extents covering everything that may be drawn."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from .. import config
from ..core.model import FloorGeometry, GridPoint


@dataclass(frozen=True)
class GridBounds:
    min_x: int
    min_y: int
    max_x: int
    max_y: int


def compute_grid_bounds(
    geometry: FloorGeometry,
    draft_cells: Iterable[GridPoint] = (),
    preview_cells: Iterable[GridPoint] = (),
    underlay: Optional[FloorGeometry] = None,
) -> GridBounds:
    """Conservative grid extents of a level, its drafts and its underlay.

    Starts from the minimum visible grid and grows to include every room,
    wall, stair and drafted cell.
    """
    min_x = min_y = 0
    max_x = max_y = config.MIN_GRID_EXTENT

    def include(x: int, y: int) -> None:
        nonlocal min_x, min_y, max_x, max_y
        min_x, max_x = min(min_x, x), max(max_x, x)
        min_y, max_y = min(min_y, y), max(max_y, y)

    def include_geometry(geom: FloorGeometry) -> None:
        for room in geom.rooms.values():
            include(room.x, room.y)
            include(room.x + room.width, room.y + room.height)
        for wall in geom.walls.values():
            include(wall.x1, wall.y1)
            include(wall.x2, wall.y2)
        for stair in geom.stairs.values():
            include(stair.x, stair.y)
            include(stair.x + stair.width, stair.y + stair.length)

    include_geometry(geometry)
    if underlay is not None:
        include_geometry(underlay)

    for cell in list(draft_cells) + list(preview_cells):
        include(cell.x, cell.y)
        include(cell.x + 1, cell.y + 1)

    return GridBounds(min_x=min_x, min_y=min_y, max_x=max_x, max_y=max_y)
