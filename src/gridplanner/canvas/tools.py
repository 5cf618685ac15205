"""Tool state machine for the editing canvas.

Every transition is a pure function from a :class:`CanvasSession` (and the
current level geometry) to a :class:`Step`: the next session plus, when the
event committed a change, the accepted geometry. Geometry changes go through
:func:`gridplanner.engine.api.apply` only.

Exactly one tool is active. Middle and right buttons always pan. A drag holds
the canvas until it is released, cancelled, or the pointer leaves.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, NamedTuple, Optional

from ..core.errors import ConstructionError, OverlapRejected
from ..core.ids import IdFactory
from ..core.model import FloorGeometry, GridPoint
from ..engine.api import apply
from ..engine.ownership import owned_wall_ids
from ..geom.camera import pan, screen_to_grid, zoom_at_point
from ..geom.hit_test import (
    find_room_at,
    find_stair_at,
    hit_test_wall,
    opening_segment_range,
    project_onto_wall,
)
from ..geom.selection import rect_cells_between, xor_toggle
from .session import (
    CanvasSession,
    OpeningDrag,
    PanDrag,
    PointerButton,
    PointerEvent,
    RectDrag,
    RoomMoveDrag,
    StairDrag,
    StairEditDrag,
    Tool,
    WallDrag,
)

LOGGER = logging.getLogger(__name__)


class Step(NamedTuple):
    """Result of one transition."""

    session: CanvasSession
    geometry: Optional[FloorGeometry] = None


def _cell(session: CanvasSession, event: PointerEvent) -> GridPoint:
    return screen_to_grid(event.x, event.y, session.viewport, session.camera)


def _commit(
    session: CanvasSession, geometry: FloorGeometry, operation: dict, ids: Optional[IdFactory]
) -> Step:
    """Run an operation; construction and overlap failures just return to idle."""
    try:
        accepted = apply(geometry, operation, ids)
    except (ConstructionError, OverlapRejected) as e:
        LOGGER.debug("Discarded %s: %s", operation["op"], e)
        return Step(session)
    return Step(session, accepted)


def snap_wall_end(start: GridPoint, end: GridPoint) -> GridPoint:
    """Flatten the minor axis so the wall from ``start`` is axis-aligned."""
    if abs(end.x - start.x) >= abs(end.y - start.y):
        return GridPoint(end.x, start.y)
    return GridPoint(start.x, end.y)


def stair_rect(a: GridPoint, b: GridPoint):
    """(x, y, width, length) of the inclusive cell rectangle between two corners."""
    min_x, max_x = min(a.x, b.x), max(a.x, b.x)
    min_y, max_y = min(a.y, b.y), max(a.y, b.y)
    return min_x, min_y, max_x - min_x + 1, max_y - min_y + 1


def edited_stair_rect(stair, drag: StairEditDrag):
    """(x, y, width, length) of a stair after an edit drag to ``drag.current``.

    Resizing keeps the top-left corner; the stair never shrinks below one cell.
    """
    if drag.resize:
        return (
            stair.x,
            stair.y,
            max(1, drag.current.x - stair.x + 1),
            max(1, drag.current.y - stair.y + 1),
        )
    return (
        stair.x + drag.current.x - drag.grab.x,
        stair.y + drag.current.y - drag.grab.y,
        stair.width,
        stair.length,
    )


def switch_tool(session: CanvasSession, tool: Tool) -> Step:
    """Activate a tool, abandoning any drag and the room draft."""
    return Step(replace(session, tool=tool, drag=None, draft=frozenset()))


def _erase_at(
    session: CanvasSession,
    geometry: FloorGeometry,
    event: PointerEvent,
    cell: GridPoint,
    ids: Optional[IdFactory],
) -> Step:
    stair = find_stair_at(geometry.stairs.values(), cell)
    if stair is not None:
        return _commit(session, geometry, {"op": "erase_stair", "stair": stair.id}, ids)

    hit = hit_test_wall(geometry.walls.values(), event.x, event.y, session.viewport, session.camera)
    if hit is not None:
        return _commit(session, geometry, {"op": "erase_wall", "wall": hit.wall.id}, ids)

    room = find_room_at(geometry.rooms.values(), cell)
    if room is not None:
        if session.selected_room_id == room.id:
            session = replace(session, selected_room_id=None)
        return _commit(session, geometry, {"op": "erase_room", "room": room.id}, ids)

    return Step(session)


def pointer_down(
    session: CanvasSession,
    geometry: FloorGeometry,
    event: PointerEvent,
    ids: Optional[IdFactory] = None,
) -> Step:
    cell = _cell(session, event)
    session = replace(session, hover=cell)

    if session.drag is not None:
        return Step(session)

    if event.button in (PointerButton.MIDDLE, PointerButton.RIGHT):
        return Step(replace(session, drag=PanDrag(event.x, event.y)))
    if event.button != PointerButton.LEFT:
        return Step(session)

    tool = session.tool

    if tool is Tool.PAN:
        return Step(replace(session, drag=PanDrag(event.x, event.y)))

    if tool is Tool.ROOM:
        room = find_room_at(geometry.rooms.values(), cell)
        if room is not None:
            drag = RoomMoveDrag(
                room_id=room.id,
                start=cell,
                current=cell,
                owned_wall_ids=owned_wall_ids(geometry, room.id),
            )
            return Step(replace(session, selected_room_id=room.id, drag=drag))
        return Step(replace(session, drag=RectDrag(cell, cell)))

    if tool is Tool.WALL:
        return Step(replace(session, drag=WallDrag(cell, cell)))

    if tool in (Tool.DOOR, Tool.WINDOW):
        hit = hit_test_wall(
            geometry.walls.values(), event.x, event.y, session.viewport, session.camera
        )
        if hit is None:
            return Step(session)
        return Step(replace(session, drag=OpeningDrag(hit.wall, hit.t, hit.t)))

    if tool is Tool.STAIR:
        session = replace(session, selected_room_id=None)
        stair = find_stair_at(geometry.stairs.values(), cell)
        if stair is not None:
            far = GridPoint(stair.x + stair.width - 1, stair.y + stair.length - 1)
            drag = StairEditDrag(stair_id=stair.id, grab=cell, current=cell, resize=cell == far)
            return Step(replace(session, drag=drag))
        return Step(replace(session, drag=StairDrag(cell, cell)))

    if tool is Tool.ERASE:
        return _erase_at(session, geometry, event, cell, ids)

    return Step(session)


def pointer_move(
    session: CanvasSession,
    geometry: FloorGeometry,
    event: PointerEvent,
    ids: Optional[IdFactory] = None,
) -> Step:
    cell = _cell(session, event)
    session = replace(session, hover=cell)
    drag = session.drag

    if isinstance(drag, PanDrag):
        camera = pan(session.camera, event.x - drag.last_x, event.y - drag.last_y)
        return Step(replace(session, camera=camera, drag=PanDrag(event.x, event.y)))

    if isinstance(drag, (RectDrag, RoomMoveDrag, WallDrag, StairDrag, StairEditDrag)):
        return Step(replace(session, drag=replace(drag, current=cell)))

    if isinstance(drag, OpeningDrag):
        # follows the anchored wall only; no hit tolerance while dragging
        hit = project_onto_wall(drag.wall, event.x, event.y, session.viewport, session.camera)
        if hit is None:
            return Step(session)
        return Step(replace(session, drag=replace(drag, t_current=hit.t)))

    if drag is None and session.tool is Tool.ERASE and event.left_held:
        return _erase_at(session, geometry, event, cell, ids)

    return Step(session)


def pointer_up(
    session: CanvasSession,
    geometry: FloorGeometry,
    event: PointerEvent,
    ids: Optional[IdFactory] = None,
) -> Step:
    cell = _cell(session, event)
    drag = session.drag
    idle = replace(session, drag=None, hover=cell)

    if drag is None or isinstance(drag, PanDrag):
        return Step(idle)

    if isinstance(drag, RectDrag):
        draft = xor_toggle(session.draft, rect_cells_between(drag.start, cell))
        return Step(replace(idle, draft=draft))

    if isinstance(drag, RoomMoveDrag):
        dx, dy = cell.x - drag.start.x, cell.y - drag.start.y
        if dx == 0 and dy == 0:
            return Step(idle)
        operation = {
            "op": "move_room",
            "room": drag.room_id,
            "dx": dx,
            "dy": dy,
            "owned_wall_ids": drag.owned_wall_ids,
        }
        return _commit(idle, geometry, operation, ids)

    if isinstance(drag, WallDrag):
        end = snap_wall_end(drag.start, cell)
        if end == drag.start:
            return Step(idle)
        operation = {"op": "add_wall", "x1": drag.start.x, "y1": drag.start.y, "x2": end.x, "y2": end.y}
        return _commit(idle, geometry, operation, ids)

    if isinstance(drag, OpeningDrag):
        span = opening_segment_range(drag.wall, drag.t_start, drag.t_current)
        if span is None:
            return Step(idle)
        operation = {
            "op": "add_door" if session.tool is Tool.DOOR else "add_window",
            "wall": drag.wall.id,
            "seg_start": span.seg_start,
            "seg_end": span.seg_end,
        }
        return _commit(idle, geometry, operation, ids)

    if isinstance(drag, StairDrag):
        x, y, width, length = stair_rect(drag.start, cell)
        operation = {
            "op": "add_stair",
            "x": x,
            "y": y,
            "width": width,
            "length": length,
            "target_level_id": session.stair_target_level_id,
        }
        return _commit(idle, geometry, operation, ids)

    if isinstance(drag, StairEditDrag):
        stair = geometry.stairs.get(drag.stair_id)
        if stair is None:
            return Step(idle)
        x, y, width, length = edited_stair_rect(stair, replace(drag, current=cell))
        operation = {
            "op": "update_stair",
            "stair": stair.id,
            "x": x,
            "y": y,
            "width": width,
            "length": length,
        }
        return _commit(idle, geometry, operation, ids)

    return Step(idle)


def pointer_leave(session: CanvasSession) -> Step:
    """Cancel any drag and clear hover. The room draft survives."""
    return Step(replace(session, drag=None, hover=None))


def wheel(session: CanvasSession, delta: float, x: float, y: float) -> Step:
    camera = zoom_at_point(session.camera, delta, x, y, session.viewport)
    return Step(replace(session, camera=camera))


def confirm_draft(
    session: CanvasSession, geometry: FloorGeometry, ids: Optional[IdFactory] = None
) -> Step:
    """Turn the room draft into a room with perimeter walls and select it.

    The draft is cleared whether or not the room is accepted.
    """
    if not session.draft:
        return Step(session)

    cleared = replace(session, draft=frozenset(), drag=None)
    step = _commit(cleared, geometry, {"op": "add_room_from_cells", "cells": sorted(session.draft)}, ids)
    if step.geometry is None:
        return step

    new_rooms = sorted(set(step.geometry.rooms) - set(geometry.rooms))
    if new_rooms:
        return Step(replace(step.session, selected_room_id=new_rooms[0]), step.geometry)
    return step


def cancel_draft(session: CanvasSession) -> Step:
    return Step(replace(session, draft=frozenset(), drag=None))


class EditorCanvas:
    """Stateful wrapper that feeds events through the transitions.

    Holds the current session and level geometry, and reports each accepted
    geometry to ``on_commit``.
    """

    def __init__(
        self,
        geometry: Optional[FloorGeometry] = None,
        session: Optional[CanvasSession] = None,
        ids: Optional[IdFactory] = None,
        on_commit: Optional[Callable[[FloorGeometry], None]] = None,
    ):
        self.geometry = geometry if geometry is not None else FloorGeometry()
        self.session = session if session is not None else CanvasSession()
        self.ids = ids
        self.on_commit = on_commit

    def _run(self, step: Step) -> Optional[FloorGeometry]:
        self.session = step.session
        if step.geometry is not None:
            self.geometry = step.geometry
            if self.on_commit is not None:
                self.on_commit(step.geometry)
        return step.geometry

    def switch_tool(self, tool: Tool) -> None:
        self._run(switch_tool(self.session, tool))

    def pointer_down(self, event: PointerEvent) -> Optional[FloorGeometry]:
        return self._run(pointer_down(self.session, self.geometry, event, self.ids))

    def pointer_move(self, event: PointerEvent) -> Optional[FloorGeometry]:
        return self._run(pointer_move(self.session, self.geometry, event, self.ids))

    def pointer_up(self, event: PointerEvent) -> Optional[FloorGeometry]:
        return self._run(pointer_up(self.session, self.geometry, event, self.ids))

    def pointer_leave(self) -> None:
        self._run(pointer_leave(self.session))

    def wheel(self, delta: float, x: float, y: float) -> None:
        self._run(wheel(self.session, delta, x, y))

    def confirm_draft(self) -> Optional[FloorGeometry]:
        return self._run(confirm_draft(self.session, self.geometry, self.ids))

    def cancel_draft(self) -> None:
        self._run(cancel_draft(self.session))

    def load_geometry(self, geometry: FloorGeometry) -> None:
        """Show geometry that arrived from elsewhere, without committing it."""
        self.geometry = geometry
        session = self.session
        if session.selected_room_id not in geometry.rooms:
            session = replace(session, selected_room_id=None)
        drag = session.drag
        if isinstance(drag, RoomMoveDrag) and drag.room_id not in geometry.rooms:
            session = replace(session, drag=None)
        elif isinstance(drag, StairEditDrag) and drag.stair_id not in geometry.stairs:
            session = replace(session, drag=None)
        elif isinstance(drag, OpeningDrag) and drag.wall.id not in geometry.walls:
            session = replace(session, drag=None)
        self.session = session
