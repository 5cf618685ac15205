"""Server-side project synchronization.

The hub owns the authoritative, versioned copy of each project. Writes use
optimistic concurrency: a write based on the current version is accepted
and bumps the version by one, anything else is rejected with the current
document. Accepted writes are broadcast to every subscriber of the project.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Dict, List, Optional

from ..core.errors import LevelError, ProjectNotFound, VersionConflict
from ..core.ids import IdFactory, UuidIdFactory
from ..core.model import Project, ProjectSummary
from ..engine.levels import create_default_project
from .registry import Subscriber, SubscriptionRegistry
from .store import ProjectStore

LOGGER = logging.getLogger(__name__)

DEFAULT_NEW_PROJECT_NAME = "New Project"


class ProjectHub:
    """Versioned project documents plus their subscribers.

    Writes, subscriptions and deletes of one project are serialized by a
    per-project lock, so a subscriber sees every accepted write exactly once
    after its initial document.
    """

    def __init__(
        self,
        store: ProjectStore,
        registry: Optional[SubscriptionRegistry] = None,
        ids: Optional[IdFactory] = None,
    ):
        self.store = store
        self.registry = registry if registry is not None else SubscriptionRegistry()
        self.ids = ids if ids is not None else UuidIdFactory()
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock(self, project_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(project_id, threading.Lock())

    def list_projects(self) -> List[ProjectSummary]:
        return self.store.list_summaries()

    def get_project(self, project_id: str) -> Project:
        """
        Raises:
            ProjectNotFound: If the id is unknown.
        """
        project = self.store.load(project_id)
        if project is None:
            raise ProjectNotFound(project_id)
        return project

    def create_project(self, name: Optional[str] = None) -> Project:
        name = name.strip() if isinstance(name, str) else ""
        project = create_default_project(self.ids("project"), name or DEFAULT_NEW_PROJECT_NAME)
        self.store.save(project)
        LOGGER.info("Created project %s (%s)", project.id, project.name)
        return project

    def write(self, project_id: str, document: Project, known_version: int) -> Project:
        """Replace a project's document if the writer saw the current version.

        Args:
            project_id: Project to write.
            document: The complete new document. Its id and version are
                ignored; the hub sets both.
            known_version: The version the writer last observed.

        Returns:
            The accepted document at the new version.

        Raises:
            ProjectNotFound: If the id is unknown.
            VersionConflict: If ``known_version`` is not the current version.
                Nothing is modified.
            LevelError: If the document has no levels. Nothing is modified.
        """
        with self._lock(project_id):
            current = self.get_project(project_id)
            if known_version != current.version:
                LOGGER.warning(
                    "Rejected write to %s based on version %s (current %d)",
                    project_id,
                    known_version,
                    current.version,
                )
                raise VersionConflict(current, known_version)
            if not document.levels:
                raise LevelError(f"Rejected write to {project_id}: a project needs at least one level")

            updated = replace(document, id=project_id, version=current.version + 1)
            self.store.save(updated)
            delivered = self.registry.broadcast(project_id, updated)

        LOGGER.info(
            "Accepted write to %s, now version %d (%d subscribers)",
            project_id,
            updated.version,
            delivered,
        )
        return updated

    def subscribe(self, project_id: str, subscriber: Subscriber) -> Project:
        """Register a subscriber and send it the current document first.

        Returns:
            The document the subscriber received.

        Raises:
            ProjectNotFound: If the id is unknown.
            TransportFailure: If the initial document cannot be delivered;
                the subscriber is not registered.
        """
        with self._lock(project_id):
            current = self.get_project(project_id)
            subscriber.send(current)
            self.registry.add(project_id, subscriber)
        LOGGER.info("New subscriber for %s at version %d", project_id, current.version)
        return current

    def unsubscribe(self, project_id: str, subscriber: Subscriber) -> None:
        self.registry.remove(project_id, subscriber)

    def delete_project(self, project_id: str) -> None:
        """Delete a project and close its subscribers.

        Raises:
            ProjectNotFound: If the id is unknown.
        """
        with self._lock(project_id):
            if not self.store.delete(project_id):
                raise ProjectNotFound(project_id)
            self.registry.close_topic(project_id)
        with self._locks_guard:
            self._locks.pop(project_id, None)
        LOGGER.info("Deleted project %s", project_id)
