"""Level management for projects.

Levels are ordered by elevation. Inserting a level above or below another
shifts the levels beyond it so that elevations stay distinct, and a project
always keeps at least one level.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from ..core.errors import LevelError
from ..core.ids import IdFactory
from ..core.model import FloorGeometry, Level, Project


def create_default_project(project_id: str, name: str) -> Project:
    """A fresh project with an empty basement and ground floor."""
    return Project(
        id=project_id,
        name=name,
        levels=(
            Level(id="level-0", name="Basement", elevation=-1),
            Level(id="level-1", name="Floor 1", elevation=0),
        ),
        version=1,
    )


def default_level_name(elevation: int) -> str:
    if elevation < 0:
        return f"Basement {abs(elevation)}"
    return f"Level {elevation}"


def level_label(level: Level) -> str:
    """Header label: the level's name at ground, else floor/basement number."""
    if level.elevation == 0:
        return level.name
    if level.elevation > 0:
        return f"Floor {level.elevation}"
    return f"Basement {abs(level.elevation)}"


def _require_level(project: Project, level_id: str) -> Level:
    level = project.level(level_id)
    if level is None:
        raise LevelError(f"Level '{level_id}' does not exist in project '{project.id}'")
    return level


def _insert_level(project: Project, elevation: int, shift_up: bool, ids: IdFactory) -> Project:
    levels = []
    for level in project.levels:
        if shift_up and level.elevation >= elevation:
            level = replace(level, elevation=level.elevation + 1)
        elif not shift_up and level.elevation <= elevation:
            level = replace(level, elevation=level.elevation - 1)
        levels.append(level)

    levels.append(Level(id=ids("level"), name=default_level_name(elevation), elevation=elevation))
    return replace(project, levels=tuple(levels))


def add_level_above(project: Project, level_id: str, ids: IdFactory) -> Project:
    """Insert an empty level directly above ``level_id``.

    Raises:
        LevelError: If the level does not exist.
    """
    level = _require_level(project, level_id)
    return _insert_level(project, level.elevation + 1, shift_up=True, ids=ids)


def add_level_below(project: Project, level_id: str, ids: IdFactory) -> Project:
    """Insert an empty level directly below ``level_id``.

    Raises:
        LevelError: If the level does not exist.
    """
    level = _require_level(project, level_id)
    return _insert_level(project, level.elevation - 1, shift_up=False, ids=ids)


def delete_level(project: Project, level_id: str) -> Project:
    """Remove a level.

    Raises:
        LevelError: If the level does not exist or is the project's last one.
    """
    _require_level(project, level_id)
    if len(project.levels) == 1:
        raise LevelError(f"Cannot delete '{level_id}': a project needs at least one level")
    return replace(project, levels=tuple(lvl for lvl in project.levels if lvl.id != level_id))


def rename_level(project: Project, level_id: str, name: str) -> Project:
    _require_level(project, level_id)
    return replace(
        project,
        levels=tuple(replace(lvl, name=name) if lvl.id == level_id else lvl for lvl in project.levels),
    )


def replace_level_geometry(project: Project, level_id: str, geometry: FloorGeometry) -> Project:
    """Swap in an accepted geometry for one level.

    The geometry is expected to come out of the commit pipeline.
    """
    _require_level(project, level_id)
    return replace(
        project,
        levels=tuple(
            replace(lvl, geometry=geometry) if lvl.id == level_id else lvl for lvl in project.levels
        ),
    )


def underlay_level(project: Project, level_id: str) -> Optional[Level]:
    """The nearest level strictly below ``level_id``, drawn dimmed beneath it."""
    level = project.level(level_id)
    if level is None:
        return None
    below = [lvl for lvl in project.sorted_levels() if lvl.elevation < level.elevation]
    return below[-1] if below else None


def default_level_id(project: Project) -> Optional[str]:
    """First level by elevation order, or None for a project with no levels."""
    ordered = project.sorted_levels()
    return ordered[0].id if ordered else None
