"""Interaction session state for the editing canvas.

The whole session (active tool, camera, in-progress drag, room draft, hover
cell) is one immutable value. Transitions in :mod:`gridplanner.canvas.tools`
replace it wholesale; rendering reads it through
:mod:`gridplanner.canvas.view`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import FrozenSet, Optional, Union

from ..core.model import CameraState, GridPoint, Wall
from ..geom.camera import Viewport, default_camera


class Tool(str, Enum):
    ROOM = "room"
    WALL = "wall"
    DOOR = "door"
    WINDOW = "window"
    STAIR = "stair"
    ERASE = "erase"
    PAN = "pan"


class PointerButton(IntEnum):
    LEFT = 0
    MIDDLE = 1
    RIGHT = 2


LEFT_BUTTON_MASK = 1


@dataclass(frozen=True)
class PointerEvent:
    """A pointer event in screen pixels.

    Attributes:
        x, y: Pointer position.
        button: Button that changed state (down/up events).
        buttons: Bitmask of buttons currently held; bit 0 is the left button.
    """

    x: float
    y: float
    button: PointerButton = PointerButton.LEFT
    buttons: int = 0

    @property
    def left_held(self) -> bool:
        return bool(self.buttons & LEFT_BUTTON_MASK)


@dataclass(frozen=True)
class PanDrag:
    last_x: float
    last_y: float


@dataclass(frozen=True)
class RectDrag:
    """Room-draft rectangle being dragged out."""

    start: GridPoint
    current: GridPoint


@dataclass(frozen=True)
class RoomMoveDrag:
    """A room being dragged, with the walls that travel with it."""

    room_id: str
    start: GridPoint
    current: GridPoint
    owned_wall_ids: FrozenSet[str]

    @property
    def delta(self):
        return (self.current.x - self.start.x, self.current.y - self.start.y)


@dataclass(frozen=True)
class WallDrag:
    start: GridPoint
    current: GridPoint


@dataclass(frozen=True)
class OpeningDrag:
    """Door or window span being dragged along one wall."""

    wall: Wall
    t_start: float
    t_current: float


@dataclass(frozen=True)
class StairDrag:
    """New stair rectangle being dragged out."""

    start: GridPoint
    current: GridPoint


@dataclass(frozen=True)
class StairEditDrag:
    """Existing stair being repositioned or resized.

    Grabbing the stair's far corner cell resizes it; grabbing any other cell
    moves it.
    """

    stair_id: str
    grab: GridPoint
    current: GridPoint
    resize: bool


Drag = Union[PanDrag, RectDrag, RoomMoveDrag, WallDrag, OpeningDrag, StairDrag, StairEditDrag]


@dataclass(frozen=True)
class CanvasSession:
    """Everything the canvas remembers between pointer events."""

    tool: Tool = Tool.ROOM
    camera: CameraState = field(default_factory=default_camera)
    viewport: Optional[Viewport] = None
    drag: Optional[Drag] = None
    draft: FrozenSet[GridPoint] = frozenset()
    hover: Optional[GridPoint] = None
    selected_room_id: Optional[str] = None
    stair_target_level_id: str = ""

    @property
    def is_dragging(self) -> bool:
        return self.drag is not None
