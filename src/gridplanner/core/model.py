"""Core data models for grid floor plans.

This module defines the fundamental data structures used to represent
a multi-level project: grid cells, walls, rooms, openings, stairs,
levels and the camera looking at them. All models are immutable; edits
produce new instances.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import FrozenSet, Optional, Tuple


@dataclass(frozen=True, order=True)
class GridPoint:
    """Integer address of a grid cell (or grid corner, for wall endpoints).

    Being frozen and hashable, a GridPoint is also the CellKey used for set
    and mapping membership.

    Attributes:
        x: Column index.
        y: Row index.
    """

    x: int
    y: int

    def translated(self, dx: int, dy: int) -> GridPoint:
        return GridPoint(self.x + dx, self.y + dy)


CellKey = GridPoint


@dataclass(frozen=True)
class Wall:
    """An axis-aligned wall between two grid corners.

    Attributes:
        id: Unique identifier for the wall.
        x1, y1: First endpoint.
        x2, y2: Second endpoint. Either x1 == x2 or y1 == y2.
    """

    id: str
    x1: int
    y1: int
    x2: int
    y2: int

    @property
    def is_horizontal(self) -> bool:
        return self.y1 == self.y2 and self.x1 != self.x2

    @property
    def is_vertical(self) -> bool:
        return self.x1 == self.x2 and self.y1 != self.y2

    @property
    def is_axis_aligned(self) -> bool:
        return self.x1 == self.x2 or self.y1 == self.y2

    @property
    def length(self) -> int:
        """Length in cells (axis-aligned walls only)."""
        return abs(self.x2 - self.x1) + abs(self.y2 - self.y1)

    def normalized(self) -> Wall:
        """Return the same wall with endpoints in canonical (lexicographic) order."""
        if (self.x1, self.y1) <= (self.x2, self.y2):
            return self
        return replace(self, x1=self.x2, y1=self.y2, x2=self.x1, y2=self.y1)

    def translated(self, dx: int, dy: int) -> Wall:
        return replace(
            self, x1=self.x1 + dx, y1=self.y1 + dy, x2=self.x2 + dx, y2=self.y2 + dy
        )


class RoomShape(str, Enum):
    """Discriminant selecting which shape fields of a Room are valid."""

    RECTANGULAR = "rectangular"
    FREEFORM = "freeform"
    CIRCLE = "circle"


@dataclass(frozen=True)
class Room:
    """A room on one level.

    The bounding box is always valid. ``cells`` is the exact footprint and is
    only meaningful for freeform and circle rooms; a rectangular room covers
    its whole bounding box. ``center_x``, ``center_y`` and ``radius`` are only
    meaningful for circle rooms.

    Attributes:
        id: Unique identifier for the room.
        x, y: Top-left cell of the bounding box.
        width, height: Bounding box size in cells.
        shape: Which shape fields are valid.
        cells: Exact cell mask (freeform and circle rooms).
        center_x, center_y: Circle center in grid units.
        radius: Circle radius in cells.
        name: Human-readable name.
        color: Display color, e.g. "#c2e7ff".
        category: Size category ("cramped", "roomy", "vast").
    """

    id: str
    x: int
    y: int
    width: int
    height: int
    shape: RoomShape = RoomShape.RECTANGULAR
    cells: Optional[FrozenSet[GridPoint]] = None
    center_x: Optional[float] = None
    center_y: Optional[float] = None
    radius: Optional[float] = None
    name: str = ""
    color: Optional[str] = None
    category: Optional[str] = None

    def cell_set(self) -> FrozenSet[GridPoint]:
        """Return the cells this room actually covers."""
        if self.shape is RoomShape.RECTANGULAR:
            return frozenset(
                GridPoint(x, y)
                for y in range(self.y, self.y + self.height)
                for x in range(self.x, self.x + self.width)
            )
        return self.cells or frozenset()

    def contains_cell(self, cell: GridPoint) -> bool:
        """Bounding-rectangle containment."""
        return (
            self.x <= cell.x < self.x + self.width
            and self.y <= cell.y < self.y + self.height
        )

    def bounds(self) -> Tuple[int, int, int, int]:
        """Return (left, top, right, bottom) in grid corners."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)


@dataclass(frozen=True)
class Door:
    """A door cut into a wall.

    Attributes:
        id: Unique identifier for the door.
        wall_id: ID of the wall this door is on.
        seg_start: First cell offset along the wall (inclusive).
        seg_end: Last cell offset along the wall (exclusive).
    """

    id: str
    wall_id: str
    seg_start: int
    seg_end: int


@dataclass(frozen=True)
class WindowOpening:
    """A window cut into a wall. Same addressing as :class:`Door`."""

    id: str
    wall_id: str
    seg_start: int
    seg_end: int


class StairType(str, Enum):
    STRAIGHT = "straight"
    SPIRAL = "spiral"


class StairDirection(str, Enum):
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class Stair:
    """A stair connecting this level to another.

    Attributes:
        id: Unique identifier for the stair.
        x, y: Top-left cell.
        width: Size across the run, in cells.
        length: Size along the run, in cells.
        type: Straight or spiral.
        direction: Up or down, from the owning level's point of view.
        link_id: Shared with the counterpart stair on the target level.
        target_level_id: The other level of the pair.
    """

    id: str
    x: int
    y: int
    width: int
    length: int
    type: StairType = StairType.STRAIGHT
    direction: StairDirection = StairDirection.UP
    link_id: str = ""
    target_level_id: str = ""

    def contains_cell(self, cell: GridPoint) -> bool:
        return (
            self.x <= cell.x < self.x + self.width
            and self.y <= cell.y < self.y + self.length
        )


@dataclass(frozen=True)
class FloorGeometry:
    """Everything drawn on one level.

    Attributes:
        rooms: Mapping of room ID to Room objects.
        walls: Mapping of wall ID to Wall objects.
        doors: Mapping of door ID to Door objects.
        windows: Mapping of window ID to WindowOpening objects.
        stairs: Mapping of stair ID to Stair objects.
    """

    rooms: Mapping[str, Room] = field(default_factory=dict)
    walls: Mapping[str, Wall] = field(default_factory=dict)
    doors: Mapping[str, Door] = field(default_factory=dict)
    windows: Mapping[str, WindowOpening] = field(default_factory=dict)
    stairs: Mapping[str, Stair] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not (self.rooms or self.walls or self.doors or self.windows or self.stairs)


@dataclass(frozen=True)
class Level:
    """One story of a project.

    Attributes:
        id: Unique identifier for the level.
        name: Display name.
        elevation: Ordering key; negative for basements.
        geometry: What is drawn on this level.
    """

    id: str
    name: str
    elevation: int
    geometry: FloorGeometry = field(default_factory=FloorGeometry)


@dataclass(frozen=True)
class Project:
    """A versioned multi-level floor plan.

    ``version`` is owned by the server and bumped by exactly one per
    accepted write.
    """

    id: str
    name: str
    levels: Tuple[Level, ...]
    version: int = 1

    def level(self, level_id: str) -> Optional[Level]:
        for level in self.levels:
            if level.id == level_id:
                return level
        return None

    def sorted_levels(self) -> Tuple[Level, ...]:
        return tuple(sorted(self.levels, key=lambda lvl: lvl.elevation))


@dataclass(frozen=True)
class ProjectSummary:
    id: str
    name: str
    version: int


@dataclass(frozen=True)
class CameraState:
    """Pixel offset of grid origin plus zoom scalar."""

    offset_x: float = 0.0
    offset_y: float = 0.0
    zoom: float = 1.0
