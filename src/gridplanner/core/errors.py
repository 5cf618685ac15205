"""Exceptions raised by the planner.

Every failure is scoped to a single operation: raising one of these never
leaves a partially mutated geometry or project behind.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .model import Project


class PlannerError(Exception):
    """Base class for all planner errors."""

    pass


class GeometryError(PlannerError):
    """Raised when a proposed geometry change is rejected."""

    pass


class ConstructionError(GeometryError):
    """Raised when an entity cannot be built (zero-length wall, empty cell set,
    non-positive stair size or circle radius, opening outside its wall)."""

    pass


class OverlapRejected(GeometryError):
    """Raised when a room's bounding rectangle intersects another room's."""

    def __init__(self, room_id: str, other_id: str):
        super().__init__(f"Room '{room_id}' overlaps room '{other_id}'")
        self.room_id = room_id
        self.other_id = other_id


class LevelError(PlannerError):
    """Raised when a level operation would break the project's level list."""

    pass


class ProjectNotFound(PlannerError):
    """Raised when a project id is unknown to the store."""

    def __init__(self, project_id: str):
        super().__init__(f"Project '{project_id}' not found")
        self.project_id = project_id


class VersionConflict(PlannerError):
    """Raised when a write was based on a stale version.

    Attributes:
        current: The authoritative project the client should rebase onto.
        known_version: The version the rejected write was based on.
    """

    def __init__(self, current: "Project", known_version: int):
        super().__init__(
            f"Project '{current.id}' is at version {current.version}, "
            f"write was based on version {known_version}"
        )
        self.current = current
        self.known_version = known_version


class TransportFailure(PlannerError):
    """Raised when the live channel or HTTP transport drops."""

    pass
