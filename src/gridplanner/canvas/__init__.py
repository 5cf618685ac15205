"""Interactive editing canvas.

This module provides the interaction session, the tool state machine that
turns pointer events into committed geometry, and the read-only view
projection used for rendering.
"""

from .session import CanvasSession, PointerButton, PointerEvent, Tool
from .tools import EditorCanvas, Step
from .view import CanvasView, project_view

__all__ = [
    "CanvasSession",
    "CanvasView",
    "EditorCanvas",
    "PointerButton",
    "PointerEvent",
    "Step",
    "Tool",
    "project_view",
]
