"""Shape derivation for rooms drafted on the grid.

This module turns a set of selected cells into a room footprint and its
wall perimeter. The perimeter is traced edge by edge (a unit edge on every
side of a selected cell whose neighbour is not selected) and then merged
into the minimal set of axis-aligned segments: no two resulting walls are
collinear and touching end to end.
"""

from __future__ import annotations

import math
from collections import defaultdict
from typing import Dict, FrozenSet, Iterable, List, NamedTuple, Tuple

from shapely.geometry import box
from shapely.ops import unary_union

from ..core.errors import ConstructionError, OverlapRejected
from ..core.ids import IdFactory
from ..core.model import GridPoint, Room, RoomShape, Wall
from .selection import cell_bounds


class Edge(NamedTuple):
    """An axis-aligned boundary segment between grid corners."""

    x1: int
    y1: int
    x2: int
    y2: int
    horizontal: bool

    @property
    def length(self) -> int:
        return (self.x2 - self.x1) + (self.y2 - self.y1)


def bounding_box(cells: Iterable[GridPoint]) -> Tuple[int, int, int, int]:
    """Return (x, y, width, height) of a non-empty cell set.

    Raises:
        ConstructionError: If the cell set is empty.
    """
    bounds = cell_bounds(cells)
    if bounds is None:
        raise ConstructionError("Cannot derive a shape from an empty cell set")
    return bounds.min_x, bounds.min_y, bounds.width, bounds.height


def perimeter_edges(cells: Iterable[GridPoint]) -> List[Edge]:
    """Emit one unit edge per cell side that faces an unselected neighbour."""
    cell_set = frozenset(cells)
    edges: List[Edge] = []

    for cell in cell_set:
        x, y = cell.x, cell.y
        if GridPoint(x, y - 1) not in cell_set:
            edges.append(Edge(x, y, x + 1, y, True))  # north
        if GridPoint(x, y + 1) not in cell_set:
            edges.append(Edge(x, y + 1, x + 1, y + 1, True))  # south
        if GridPoint(x - 1, y) not in cell_set:
            edges.append(Edge(x, y, x, y + 1, False))  # west
        if GridPoint(x + 1, y) not in cell_set:
            edges.append(Edge(x + 1, y, x + 1, y + 1, False))  # east

    return edges


def _merge_runs(edges: List[Edge], horizontal: bool) -> List[Edge]:
    lines: Dict[int, List[Edge]] = defaultdict(list)
    for edge in edges:
        lines[edge.y1 if horizontal else edge.x1].append(edge)

    merged: List[Edge] = []
    for line in sorted(lines):
        run = sorted(lines[line], key=lambda e: e.x1 if horizontal else e.y1)
        current = run[0]
        for nxt in run[1:]:
            if horizontal and current.x2 == nxt.x1:
                current = Edge(current.x1, line, nxt.x2, line, True)
            elif not horizontal and current.y2 == nxt.y1:
                current = Edge(line, current.y1, line, nxt.y2, False)
            else:
                merged.append(current)
                current = nxt
        merged.append(current)

    return merged


def merge_edges(edges: Iterable[Edge]) -> List[Edge]:
    """Merge contiguous collinear edges into maximal segments.

    Horizontal edges are grouped by row and vertical edges by column; within
    a line, edges are sorted and joined whenever one ends where the next
    starts.
    """
    edges = list(edges)
    horizontals = [e for e in edges if e.horizontal]
    verticals = [e for e in edges if not e.horizontal]
    return _merge_runs(horizontals, True) + _merge_runs(verticals, False)


def perimeter_segments(cells: Iterable[GridPoint]) -> List[Edge]:
    """Minimal merged perimeter of a cell set."""
    return merge_edges(perimeter_edges(cells))


def perimeter_walls(cells: Iterable[GridPoint], ids: IdFactory) -> List[Wall]:
    """Build walls along the merged perimeter of a non-empty cell set.

    Raises:
        ConstructionError: If the cell set is empty.
    """
    cells = frozenset(cells)
    if not cells:
        raise ConstructionError("Cannot build walls for an empty cell set")
    return [
        Wall(id=ids("wall"), x1=e.x1, y1=e.y1, x2=e.x2, y2=e.y2)
        for e in perimeter_segments(cells)
    ]


def circle_cells(center_x: float, center_y: float, radius: float) -> FrozenSet[GridPoint]:
    """Cells whose centers lie within ``radius`` of the center.

    Raises:
        ConstructionError: If the radius is not positive or no cell qualifies.
    """
    if radius <= 0:
        raise ConstructionError(f"Circle radius must be positive, got {radius}")

    r2 = radius * radius
    cells = frozenset(
        GridPoint(x, y)
        for y in range(math.floor(center_y - radius), math.ceil(center_y + radius) + 1)
        for x in range(math.floor(center_x - radius), math.ceil(center_x + radius) + 1)
        if (x + 0.5 - center_x) ** 2 + (y + 0.5 - center_y) ** 2 <= r2
    )
    if not cells:
        raise ConstructionError(
            f"No cell center lies within radius {radius} of ({center_x}, {center_y})"
        )
    return cells


def room_from_cells(cells: Iterable[GridPoint], room_id: str) -> Room:
    """Create a room from a drafted cell set.

    A draft that fills its bounding box becomes a rectangular room; anything
    else keeps its exact cell mask as a freeform room.

    Raises:
        ConstructionError: If the cell set is empty.
    """
    cells = frozenset(cells)
    x, y, width, height = bounding_box(cells)
    if len(cells) == width * height:
        return Room(id=room_id, x=x, y=y, width=width, height=height)
    return Room(
        id=room_id,
        x=x,
        y=y,
        width=width,
        height=height,
        shape=RoomShape.FREEFORM,
        cells=cells,
    )


def room_from_circle(room_id: str, center_x: float, center_y: float, radius: float) -> Room:
    """Create a circle-derived room.

    Raises:
        ConstructionError: If the radius is not positive or no cell qualifies.
    """
    cells = circle_cells(center_x, center_y, radius)
    x, y, width, height = bounding_box(cells)
    return Room(
        id=room_id,
        x=x,
        y=y,
        width=width,
        height=height,
        shape=RoomShape.CIRCLE,
        cells=cells,
        center_x=center_x,
        center_y=center_y,
        radius=radius,
    )


def rooms_overlap(a: Room, b: Room) -> bool:
    """True when the bounding rectangles share positive area.

    Rooms that only touch along an edge or at a corner do not overlap.
    """
    return box(*a.bounds()).intersection(box(*b.bounds())).area > 0


def check_room_overlap(rooms: Iterable[Room], candidate: Room) -> None:
    """Raise if ``candidate`` overlaps any other room in ``rooms``.

    Raises:
        OverlapRejected: On the first overlapping room found.
    """
    for room in rooms:
        if room.id != candidate.id and rooms_overlap(room, candidate):
            raise OverlapRejected(candidate.id, room.id)


def has_room_overlap(rooms: Iterable[Room], candidate: Room) -> bool:
    try:
        check_room_overlap(rooms, candidate)
    except OverlapRejected:
        return True
    return False


def room_outline(room: Room):
    """Room footprint as a shapely geometry (union of its cells)."""
    return unary_union([box(c.x, c.y, c.x + 1, c.y + 1) for c in room.cell_set()])


def room_area(room: Room) -> float:
    """Room area in square cells."""
    return room_outline(room).area


def room_perimeter_length(room: Room) -> float:
    """Length of the room boundary in cells."""
    return room_outline(room).length


WallKey = Tuple[Tuple[int, int], Tuple[int, int]]


def wall_key(x1: int, y1: int, x2: int, y2: int) -> WallKey:
    """Direction-independent identity of a segment: A->B and B->A match."""
    a, b = (x1, y1), (x2, y2)
    return (a, b) if a <= b else (b, a)


def room_perimeter_keys(room: Room) -> FrozenSet[WallKey]:
    """Keys of the merged perimeter segments of a room's footprint."""
    return frozenset(
        wall_key(e.x1, e.y1, e.x2, e.y2) for e in perimeter_segments(room.cell_set())
    )
