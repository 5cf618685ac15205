"""Grid geometry for floor plans.

This module provides the camera transforms, cell selection, shape
derivation and hit testing used by the editing canvas.
"""

from .camera import Viewport, pan, screen_to_grid, zoom_at_point
from .hit_test import hit_test_wall, opening_segment_range
from .selection import rect_cells_between, xor_toggle
from .shapes import circle_cells, perimeter_segments, perimeter_walls, room_from_cells

__all__ = [
    "Viewport",
    "pan",
    "screen_to_grid",
    "zoom_at_point",
    "hit_test_wall",
    "opening_segment_range",
    "rect_cells_between",
    "xor_toggle",
    "circle_cells",
    "perimeter_segments",
    "perimeter_walls",
    "room_from_cells",
]
