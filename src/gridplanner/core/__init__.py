"""Core data models for grid floor plans."""

from .model import (
    CameraState,
    Door,
    FloorGeometry,
    GridPoint,
    Level,
    Project,
    Room,
    RoomShape,
    Stair,
    Wall,
    WindowOpening,
)
from .topology import build_level_graph, build_room_adjacency

__all__ = [
    "CameraState",
    "Door",
    "FloorGeometry",
    "GridPoint",
    "Level",
    "Project",
    "Room",
    "RoomShape",
    "Stair",
    "Wall",
    "WindowOpening",
    "build_level_graph",
    "build_room_adjacency",
]
