"""HTTP interface for the project hub.

Routes:
    GET    /api/projects              project summaries
    POST   /api/projects              create a project ({"name": ...})
    GET    /api/projects/<id>         full document
    PUT    /api/projects/<id>         optimistic write; body is the document
                                      with the version the writer last saw
    DELETE /api/projects/<id>         delete and close subscribers
    GET    /api/projects/<id>/events  server-sent events, one document each
"""

from __future__ import annotations

import json
import logging
import queue
from typing import Iterator, Optional

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from .. import config
from ..core.errors import LevelError, ProjectNotFound, TransportFailure, VersionConflict
from ..core.model import Project
from ..io.codec import project_from_dict, project_to_dict, summary_to_dict
from .hub import ProjectHub

LOGGER = logging.getLogger(__name__)

KEEPALIVE_SECONDS = 15.0

_CLOSED = object()


class QueueSubscriber:
    """Subscriber that hands documents to an event-stream generator."""

    def __init__(self):
        self._queue: "queue.Queue" = queue.Queue()
        self.closed = False

    def send(self, document: Project) -> None:
        if self.closed:
            raise TransportFailure("event stream closed")
        self._queue.put(document)

    def close(self) -> None:
        self.closed = True
        self._queue.put(_CLOSED)

    def events(self, keepalive: float = KEEPALIVE_SECONDS) -> Iterator[str]:
        while True:
            try:
                item = self._queue.get(timeout=keepalive)
            except queue.Empty:
                yield ": keepalive\n\n"
                continue
            if item is _CLOSED:
                return
            yield f"data: {json.dumps(project_to_dict(item))}\n\n"


def create_app(hub: ProjectHub) -> Flask:
    """Build the Flask app serving one hub."""
    app = Flask(__name__)
    CORS(app)

    @app.errorhandler(ProjectNotFound)
    def project_not_found(e):
        return jsonify({"error": "Project not found"}), 404

    @app.route("/api/projects", methods=["GET"])
    def list_projects():
        return jsonify([summary_to_dict(s) for s in hub.list_projects()])

    @app.route("/api/projects", methods=["POST"])
    def create_project():
        data = request.get_json(silent=True) or {}
        project = hub.create_project(data.get("name") if isinstance(data, dict) else None)
        return jsonify(project_to_dict(project)), 201

    @app.route("/api/projects/<project_id>", methods=["GET"])
    def get_project(project_id):
        return jsonify(project_to_dict(hub.get_project(project_id)))

    @app.route("/api/projects/<project_id>", methods=["PUT"])
    def put_project(project_id):
        hub.get_project(project_id)

        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Body must be a project document"}), 400

        version = data.get("version")
        if not isinstance(version, int) or isinstance(version, bool):
            return jsonify({"error": "Missing version"}), 400

        try:
            document = project_from_dict(dict(data, id=project_id))
        except ValueError as e:
            return jsonify({"error": str(e)}), 400

        try:
            updated = hub.write(project_id, document, version)
        except VersionConflict as e:
            return jsonify(project_to_dict(e.current)), 409
        except LevelError as e:
            return jsonify({"error": str(e)}), 400
        return jsonify(project_to_dict(updated))

    @app.route("/api/projects/<project_id>", methods=["DELETE"])
    def delete_project(project_id):
        hub.delete_project(project_id)
        return "", 204

    @app.route("/api/projects/<project_id>/events", methods=["GET"])
    def project_events(project_id):
        subscriber = QueueSubscriber()
        hub.subscribe(project_id, subscriber)

        def stream():
            try:
                yield from subscriber.events()
            finally:
                subscriber.closed = True
                hub.unsubscribe(project_id, subscriber)
                LOGGER.debug("Event stream for %s closed", project_id)

        return Response(
            stream(),
            mimetype="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    return app


def run_server(hub: ProjectHub, host: Optional[str] = None, port: Optional[int] = None) -> None:
    app = create_app(hub)
    host = host or config.SERVER_HOST
    port = port or config.SERVER_PORT
    LOGGER.info("Serving projects on http://%s:%d", host, port)
    app.run(host=host, port=port, threaded=True)
