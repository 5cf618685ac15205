"""Durable storage for project documents."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from ..core.model import Project, ProjectSummary
from ..engine.levels import create_default_project
from ..io.codec import load_project, save_project

LOGGER = logging.getLogger(__name__)

DEFAULT_PROJECT_ID = "project-1"
DEFAULT_PROJECT_NAME = "Bastion Alpha"


class ProjectStore(Protocol):
    """Opaque key-value store of whole project documents."""

    def load(self, project_id: str) -> Optional[Project]:
        ...

    def save(self, project: Project) -> None:
        ...

    def delete(self, project_id: str) -> bool:
        ...

    def list_summaries(self) -> List[ProjectSummary]:
        ...


def _summary(project: Project) -> ProjectSummary:
    return ProjectSummary(id=project.id, name=project.name, version=project.version)


class InMemoryProjectStore:
    """Projects held in a dict; nothing survives the process."""

    def __init__(self, projects=()):
        self._projects: Dict[str, Project] = {p.id: p for p in projects}

    def load(self, project_id: str) -> Optional[Project]:
        return self._projects.get(project_id)

    def save(self, project: Project) -> None:
        self._projects[project.id] = project

    def delete(self, project_id: str) -> bool:
        return self._projects.pop(project_id, None) is not None

    def list_summaries(self) -> List[ProjectSummary]:
        return [_summary(p) for p in self._projects.values()]


class JsonDirectoryStore:
    """One ``<id>.json`` file per project under a data directory.

    Every project is read once at startup and served from memory afterwards;
    saves write through to disk. An empty directory is seeded with a default
    project.
    """

    def __init__(self, data_dir: str):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._projects: Dict[str, Project] = {}

        for path in sorted(self.data_dir.glob("*.json")):
            try:
                project = load_project(str(path))
            except ValueError as e:
                LOGGER.warning("Skipping unreadable project file %s: %s", path, e)
                continue
            self._projects[project.id] = project

        if not self._projects:
            LOGGER.info("No projects in %s, creating %s", self.data_dir, DEFAULT_PROJECT_NAME)
            self.save(create_default_project(DEFAULT_PROJECT_ID, DEFAULT_PROJECT_NAME))

    def _path(self, project_id: str) -> Path:
        return self.data_dir / f"{project_id}.json"

    def load(self, project_id: str) -> Optional[Project]:
        return self._projects.get(project_id)

    def save(self, project: Project) -> None:
        save_project(project, str(self._path(project.id)))
        self._projects[project.id] = project

    def delete(self, project_id: str) -> bool:
        if self._projects.pop(project_id, None) is None:
            return False
        self._path(project_id).unlink(missing_ok=True)
        return True

    def list_summaries(self) -> List[ProjectSummary]:
        return [_summary(p) for p in self._projects.values()]
