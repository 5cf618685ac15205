"""Camera transforms between grid cells and screen pixels.

All functions are pure: a new :class:`CameraState` is returned, the input
is never modified.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from .. import config
from ..core.model import CameraState, GridPoint


@dataclass(frozen=True)
class Viewport:
    """Screen rectangle of the canvas (what a DOM bounding rect would give)."""

    left: float = 0.0
    top: float = 0.0
    width: float = 1.0
    height: float = 1.0


@dataclass(frozen=True)
class ScreenRect:
    left: float
    top: float
    width: float
    height: float


def cell_size(camera: CameraState, grid_size: float = config.GRID_SIZE) -> float:
    """On-screen size of one cell in pixels."""
    return grid_size * camera.zoom


def default_camera() -> CameraState:
    offset_x, offset_y = config.DEFAULT_CAMERA_OFFSET
    return CameraState(offset_x=offset_x, offset_y=offset_y, zoom=1.0)


def screen_to_grid(
    px: float,
    py: float,
    viewport: Optional[Viewport],
    camera: CameraState,
    grid_size: float = config.GRID_SIZE,
) -> GridPoint:
    """Map a pointer position to the grid cell under it.

    Args:
        px, py: Pointer position in screen pixels.
        viewport: Canvas rectangle; None means the pointer is already local.
        camera: Current camera.
        grid_size: Cell size in pixels at zoom 1.

    Returns:
        The cell containing the pointer.
    """
    local_x = px - viewport.left if viewport else px
    local_y = py - viewport.top if viewport else py
    size = cell_size(camera, grid_size)
    return GridPoint(
        math.floor((local_x - camera.offset_x) / size),
        math.floor((local_y - camera.offset_y) / size),
    )


def grid_to_screen(
    gx: float, gy: float, camera: CameraState, grid_size: float = config.GRID_SIZE
) -> tuple:
    """Map a grid coordinate (corner or fractional) to local screen pixels."""
    size = cell_size(camera, grid_size)
    return (camera.offset_x + gx * size, camera.offset_y + gy * size)


def grid_to_screen_rect(
    x1: float,
    y1: float,
    x2: float,
    y2: float,
    camera: CameraState,
    grid_size: float = config.GRID_SIZE,
) -> ScreenRect:
    """Convert a grid rectangle to a screen rectangle.

    Corners may be given in either order. A degenerate side (a wall seen
    along its length) gets a width of two zoomed pixels so it stays visible.
    """
    size = cell_size(camera, grid_size)
    left = min(x1, x2) * size + camera.offset_x
    top = min(y1, y2) * size + camera.offset_y
    width = abs(x2 - x1) * size or 2 * camera.zoom
    height = abs(y2 - y1) * size or 2 * camera.zoom
    return ScreenRect(left=left, top=top, width=width, height=height)


def clamp_zoom(zoom: float, min_zoom: float = config.MIN_ZOOM, max_zoom: float = config.MAX_ZOOM) -> float:
    return min(max_zoom, max(min_zoom, zoom))


def zoom_at_point(
    camera: CameraState,
    wheel_delta: float,
    px: float,
    py: float,
    viewport: Optional[Viewport],
    min_zoom: float = config.MIN_ZOOM,
    max_zoom: float = config.MAX_ZOOM,
    factor: float = config.ZOOM_FACTOR,
) -> CameraState:
    """Zoom around the pointer.

    A negative wheel delta (scrolling up) zooms in by ``factor``, a positive
    one zooms out by its reciprocal. The world point under the pointer keeps
    the same pixel position across the change.
    """
    if wheel_delta == 0:
        return camera

    step = factor if wheel_delta < 0 else 1.0 / factor
    new_zoom = clamp_zoom(camera.zoom * step, min_zoom, max_zoom)

    local_x = px - viewport.left if viewport else px
    local_y = py - viewport.top if viewport else py

    world_x = (local_x - camera.offset_x) / camera.zoom
    world_y = (local_y - camera.offset_y) / camera.zoom

    return CameraState(
        offset_x=local_x - world_x * new_zoom,
        offset_y=local_y - world_y * new_zoom,
        zoom=new_zoom,
    )


def pan(camera: CameraState, dx: float, dy: float) -> CameraState:
    """Translate the camera offset by a screen-space delta."""
    return CameraState(
        offset_x=camera.offset_x + dx, offset_y=camera.offset_y + dy, zoom=camera.zoom
    )
