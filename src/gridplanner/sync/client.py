"""Client side of project synchronization.

:class:`ProjectClient` holds the local copy of a project and the UI
selection (current level, selected room). It runs on an asyncio loop:
blocking transport calls go to the default executor, so submitting a write
never stalls input handling.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterable, AsyncIterator, Iterator, List, Optional, Protocol

import requests

from .. import config
from ..core.errors import ProjectNotFound, TransportFailure, VersionConflict
from ..core.model import FloorGeometry, Level, Project, ProjectSummary
from ..engine.levels import default_level_id, replace_level_geometry
from ..io.codec import project_from_dict, project_to_dict
from .hub import ProjectHub

LOGGER = logging.getLogger(__name__)


class SubmitStatus(str, Enum):
    ACCEPTED = "accepted"
    CONFLICT = "conflict"
    FAILED = "failed"


@dataclass(frozen=True)
class SubmitOutcome:
    """What happened to a submitted write.

    Attributes:
        status: Accepted, rejected as stale, or not delivered.
        project: The client's document after handling the outcome.
        error: Transport error message for failed submits.
    """

    status: SubmitStatus
    project: Project
    error: Optional[str] = None


class ProjectTransport(Protocol):
    def get_project(self, project_id: str) -> Project:
        ...

    def put_project(self, project: Project, known_version: int) -> Project:
        """
        Raises:
            VersionConflict: If the server holds a different version.
            TransportFailure: If the write could not be delivered.
        """
        ...


class ClientSubscriber:
    """Subscriber that feeds documents into an asyncio queue.

    ``send`` may be called from any thread. Iterate it with ``async for``
    until it is closed.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop if loop is not None else asyncio.get_running_loop()
        self._queue: "asyncio.Queue[Optional[Project]]" = asyncio.Queue()
        self.closed = False

    def send(self, document: Project) -> None:
        if self.closed:
            raise TransportFailure("subscriber closed")
        self._loop.call_soon_threadsafe(self._queue.put_nowait, document)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._loop.call_soon_threadsafe(self._queue.put_nowait, None)

    async def documents(self) -> AsyncIterator[Project]:
        while True:
            document = await self._queue.get()
            if document is None:
                return
            yield document

    def __aiter__(self) -> AsyncIterator[Project]:
        return self.documents()


class LocalTransport:
    """Talks to an in-process hub."""

    def __init__(self, hub: ProjectHub):
        self.hub = hub

    def get_project(self, project_id: str) -> Project:
        return self.hub.get_project(project_id)

    def put_project(self, project: Project, known_version: int) -> Project:
        return self.hub.write(project.id, project, known_version)

    def subscribe(self, project_id: str, subscriber: ClientSubscriber) -> None:
        self.hub.subscribe(project_id, subscriber)


class HttpTransport:
    """Talks to a project server over HTTP using requests."""

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = config.HTTP_TIMEOUT_SECONDS,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    def _url(self, *parts: str) -> str:
        return "/".join([self.base_url, "api", "projects", *parts])

    def list_projects(self) -> List[ProjectSummary]:
        try:
            response = self.session.get(self._url(), timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise TransportFailure(f"Listing projects failed: {e}") from e
        return [ProjectSummary(s["id"], s["name"], s["version"]) for s in response.json()]

    def create_project(self, name: str) -> Project:
        try:
            response = self.session.post(self._url(), json={"name": name}, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise TransportFailure(f"Creating project failed: {e}") from e
        return project_from_dict(response.json())

    def get_project(self, project_id: str) -> Project:
        try:
            response = self.session.get(self._url(project_id), timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportFailure(f"Fetching {project_id} failed: {e}") from e
        if response.status_code == 404:
            raise ProjectNotFound(project_id)
        if not response.ok:
            raise TransportFailure(f"Fetching {project_id} failed: HTTP {response.status_code}")
        return project_from_dict(response.json())

    def put_project(self, project: Project, known_version: int) -> Project:
        body = project_to_dict(project)
        body["version"] = known_version
        try:
            response = self.session.put(self._url(project.id), json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportFailure(f"Writing {project.id} failed: {e}") from e

        if response.status_code == 409:
            raise VersionConflict(project_from_dict(response.json()), known_version)
        if response.status_code == 404:
            raise ProjectNotFound(project.id)
        if not response.ok:
            raise TransportFailure(f"Writing {project.id} failed: HTTP {response.status_code}")
        return project_from_dict(response.json())

    def iter_events(self, project_id: str) -> Iterator[Project]:
        """Yield documents from the project's event stream (blocking)."""
        try:
            with self.session.get(self._url(project_id, "events"), stream=True, timeout=self.timeout) as response:
                if response.status_code == 404:
                    raise ProjectNotFound(project_id)
                response.raise_for_status()
                for line in response.iter_lines(decode_unicode=True):
                    if line and line.startswith("data: "):
                        yield project_from_dict(json.loads(line[len("data: "):]))
        except requests.RequestException as e:
            raise TransportFailure(f"Event stream for {project_id} dropped: {e}") from e

    def subscribe(self, project_id: str, subscriber: ClientSubscriber) -> threading.Thread:
        """Pump the event stream into ``subscriber`` from a background thread.

        The subscriber is closed when the stream ends or fails.
        """

        def pump():
            try:
                for document in self.iter_events(project_id):
                    subscriber.send(document)
            except (TransportFailure, ProjectNotFound) as e:
                LOGGER.warning("%s", e)
            finally:
                subscriber.close()

        thread = threading.Thread(target=pump, name=f"events-{project_id}", daemon=True)
        thread.start()
        return thread


class ProjectClient:
    """Local copy of one project plus UI selection.

    Incoming documents are applied only if their version is at least the
    local one. The current level and selected room survive an update only if
    they still exist; otherwise the level falls back to the first level by
    elevation and the room selection is cleared.
    """

    def __init__(
        self,
        project: Project,
        transport: ProjectTransport,
        level_id: Optional[str] = None,
    ):
        self.project = project
        self.transport = transport
        self.level_id = level_id if level_id and project.level(level_id) else default_level_id(project)
        self.selected_room_id: Optional[str] = None

    @property
    def version(self) -> int:
        return self.project.version

    @property
    def current_level(self) -> Optional[Level]:
        return self.project.level(self.level_id) if self.level_id else None

    def select_level(self, level_id: str) -> None:
        if self.project.level(level_id) is None:
            raise KeyError(f"Level '{level_id}' does not exist")
        self.level_id = level_id
        self.selected_room_id = None

    def select_room(self, room_id: Optional[str]) -> None:
        level = self.current_level
        if room_id is not None and (level is None or room_id not in level.geometry.rooms):
            raise KeyError(f"Room '{room_id}' does not exist on the current level")
        self.selected_room_id = room_id

    def _reconcile_selection(self) -> None:
        if self.level_id is None or self.project.level(self.level_id) is None:
            self.level_id = default_level_id(self.project)
        level = self.current_level
        if self.selected_room_id is not None and (
            level is None or self.selected_room_id not in level.geometry.rooms
        ):
            self.selected_room_id = None

    def _replace_document(self, document: Project) -> None:
        self.project = document
        self._reconcile_selection()

    def apply_incoming(self, document: Project) -> bool:
        """Adopt a document pushed by the server.

        Returns:
            True if it was applied, False if it was stale or for another
            project.
        """
        if document.id != self.project.id:
            return False
        if document.version < self.project.version:
            LOGGER.debug(
                "Ignoring stale version %d of %s (have %d)",
                document.version,
                document.id,
                self.project.version,
            )
            return False
        self._replace_document(document)
        return True

    def commit_level_geometry(self, geometry: FloorGeometry, level_id: Optional[str] = None) -> Project:
        """Record an accepted geometry for a level in the local document.

        The version is left alone; only the server assigns versions.
        """
        level_id = level_id or self.level_id
        self.project = replace_level_geometry(self.project, level_id, geometry)
        self._reconcile_selection()
        return self.project

    async def submit(self) -> SubmitOutcome:
        """Send the local document, based on the version last observed.

        On conflict the local document is replaced by the server's, unless a
        newer document has already been applied. On a transport failure the
        local document stays as it is.
        """
        document = self.project
        known_version = document.version
        loop = asyncio.get_running_loop()

        try:
            accepted = await loop.run_in_executor(
                None, self.transport.put_project, document, known_version
            )
        except VersionConflict as e:
            LOGGER.warning(
                "Write of %s at version %d rejected; server is at %d",
                document.id,
                known_version,
                e.current.version,
            )
            # a newer broadcast may have arrived while the write was in flight
            self.apply_incoming(e.current)
            return SubmitOutcome(SubmitStatus.CONFLICT, self.project)
        except TransportFailure as e:
            LOGGER.warning("Write of %s not delivered: %s", document.id, e)
            return SubmitOutcome(SubmitStatus.FAILED, self.project, error=str(e))

        if self.project is document:
            self.apply_incoming(accepted)
        elif accepted.version > self.project.version:
            # edited while the write was in flight; keep the edits on top of it
            self.project = Project(
                id=self.project.id,
                name=self.project.name,
                levels=self.project.levels,
                version=accepted.version,
            )
        return SubmitOutcome(SubmitStatus.ACCEPTED, self.project)

    async def follow(self, events: AsyncIterable[Project]) -> int:
        """Apply documents from a subscription until it ends.

        Returns:
            How many documents were applied.
        """
        applied = 0
        async for document in events:
            if self.apply_incoming(document):
                applied += 1
        return applied
