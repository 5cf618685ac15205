"""Read-only projection of a canvas session for rendering."""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple

from .. import config
from ..core.model import CameraState, FloorGeometry, GridPoint
from ..geom.bounds import GridBounds, compute_grid_bounds
from ..geom.camera import ScreenRect, grid_to_screen_rect
from ..geom.hit_test import OpeningRect, opening_rect_on_wall, opening_segment_range
from ..geom.selection import cell_bounds, rect_cells_between
from .session import (
    CanvasSession,
    OpeningDrag,
    RectDrag,
    RoomMoveDrag,
    StairDrag,
    StairEditDrag,
    WallDrag,
)
from .tools import edited_stair_rect, snap_wall_end, stair_rect


@dataclass(frozen=True)
class RoomGhost:
    """A room drawn offset while it is being dragged."""

    room_id: str
    dx: int
    dy: int
    owned_wall_ids: FrozenSet[str]


@dataclass(frozen=True)
class CanvasView:
    camera: CameraState
    grid_bounds: GridBounds
    draft_cells: FrozenSet[GridPoint]
    preview_cells: FrozenSet[GridPoint]
    toolbar_anchor: Optional[Tuple[float, float]]
    wall_preview: Optional[Tuple[GridPoint, GridPoint]]
    opening_preview: Optional[OpeningRect]
    room_ghost: Optional[RoomGhost]
    stair_preview: Optional[ScreenRect]
    hover: Optional[GridPoint]
    selected_room_id: Optional[str]


def _toolbar_anchor(session: CanvasSession) -> Optional[Tuple[float, float]]:
    bounds = cell_bounds(session.draft)
    if bounds is None:
        return None
    rect = grid_to_screen_rect(
        bounds.min_x, bounds.min_y, bounds.max_x + 1, bounds.max_y + 1, session.camera
    )
    return (rect.left + rect.width + config.DRAFT_TOOLBAR_GAP, rect.top)


def project_view(
    session: CanvasSession,
    geometry: FloorGeometry,
    underlay: Optional[FloorGeometry] = None,
) -> CanvasView:
    """Describe what the canvas should draw for this session.

    Args:
        session: Current interaction session.
        geometry: Geometry of the active level.
        underlay: Geometry of the level below, drawn dimmed.

    Returns:
        A CanvasView; neither argument is modified.
    """
    drag = session.drag

    preview_cells: FrozenSet[GridPoint] = frozenset()
    if isinstance(drag, RectDrag):
        preview_cells = frozenset(rect_cells_between(drag.start, drag.current))

    wall_preview = None
    if isinstance(drag, WallDrag):
        end = snap_wall_end(drag.start, drag.current)
        if end != drag.start:
            wall_preview = (drag.start, end)

    opening_preview = None
    if isinstance(drag, OpeningDrag):
        span = opening_segment_range(drag.wall, drag.t_start, drag.t_current)
        if span is not None:
            opening_preview = opening_rect_on_wall(
                drag.wall, span.seg_start, span.seg_end, session.camera
            )

    room_ghost = None
    if isinstance(drag, RoomMoveDrag):
        dx, dy = drag.delta
        if dx or dy:
            room_ghost = RoomGhost(drag.room_id, dx, dy, drag.owned_wall_ids)

    stair_preview = None
    if isinstance(drag, StairDrag):
        x, y, width, length = stair_rect(drag.start, drag.current)
        stair_preview = grid_to_screen_rect(x, y, x + width, y + length, session.camera)
    elif isinstance(drag, StairEditDrag):
        stair = geometry.stairs.get(drag.stair_id)
        if stair is not None:
            x, y, width, length = edited_stair_rect(stair, drag)
            stair_preview = grid_to_screen_rect(x, y, x + width, y + length, session.camera)

    return CanvasView(
        camera=session.camera,
        grid_bounds=compute_grid_bounds(geometry, session.draft, preview_cells, underlay),
        draft_cells=session.draft,
        preview_cells=preview_cells,
        toolbar_anchor=_toolbar_anchor(session),
        wall_preview=wall_preview,
        opening_preview=opening_preview,
        room_ghost=room_ghost,
        stair_preview=stair_preview,
        hover=session.hover,
        selected_room_id=session.selected_room_id,
    )
