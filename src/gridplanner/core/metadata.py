"""Room presentation defaults.

Names, colors and categories never take part in geometry invariants; these
helpers only fill in sensible defaults for freshly drawn rooms.
"""

from __future__ import annotations

from dataclasses import replace

from .model import Room

CRAMPED = "cramped"
ROOMY = "roomy"
VAST = "vast"

_DEFAULT_COLORS = {
    CRAMPED: "#f4d3d3",
    ROOMY: "#c2e7ff",
    VAST: "#d8f5d0",
}


def room_cell_count(room: Room) -> int:
    """Number of cells covered by the room (mask size, or the full rectangle)."""
    if room.cells:
        return len(room.cells)
    return room.width * room.height


def infer_room_category(cell_count: int) -> str:
    """Bucket a cell count into cramped (<=4), roomy (<=16) or vast."""
    if cell_count <= 4:
        return CRAMPED
    if cell_count <= 16:
        return ROOMY
    return VAST


def default_color_for_category(category: str) -> str:
    return _DEFAULT_COLORS.get(category, _DEFAULT_COLORS[ROOMY])


def ensure_room_metadata(room: Room) -> Room:
    """Fill in category and color when missing; name defaults to ""."""
    category = room.category or infer_room_category(room_cell_count(room))
    color = room.color or default_color_for_category(category)
    if category == room.category and color == room.color and room.name is not None:
        return room
    return replace(room, name=room.name or "", category=category, color=color)
