"""Grid Planner - A Python library for multi-level grid floor plans."""

__version__ = "0.1.0"

from .core.model import FloorGeometry, GridPoint, Level, Project, Room, Stair, Wall

__all__ = ["FloorGeometry", "GridPoint", "Level", "Project", "Room", "Stair", "Wall"]
