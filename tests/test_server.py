"""Tests for the Flask project server."""

import json
import unittest
from dataclasses import replace

from gridplanner.core.errors import TransportFailure
from gridplanner.core.ids import CounterIdFactory
from gridplanner.engine.api import apply
from gridplanner.engine.levels import create_default_project, replace_level_geometry
from gridplanner.io.codec import project_to_dict
from gridplanner.sync.hub import ProjectHub
from gridplanner.sync.server import QueueSubscriber, create_app
from gridplanner.sync.store import InMemoryProjectStore


class TestProjectRoutes(unittest.TestCase):
    def setUp(self):
        project = replace(create_default_project("keep", "Keep"), version=3)
        self.hub = ProjectHub(InMemoryProjectStore([project]), ids=CounterIdFactory())
        app = create_app(self.hub)
        app.config["TESTING"] = True
        self.client = app.test_client()

    def edited_body(self, version):
        project = self.hub.get_project("keep")
        geometry = apply(
            project.level("level-1").geometry,
            {"op": "add_wall", "x1": 0, "y1": 0, "x2": 3, "y2": 0},
            CounterIdFactory(),
        )
        body = project_to_dict(replace_level_geometry(project, "level-1", geometry))
        body["version"] = version
        return body

    def test_list_projects(self):
        resp = self.client.get("/api/projects")
        assert resp.status_code == 200
        assert resp.get_json() == [{"id": "keep", "name": "Keep", "version": 3}]

    def test_create_project(self):
        resp = self.client.post("/api/projects", json={"name": "Outpost"})
        assert resp.status_code == 201
        data = resp.get_json()
        assert (data["id"], data["name"], data["version"]) == ("project-1", "Outpost", 1)
        assert len(data["levels"]) == 2

    def test_get_project(self):
        resp = self.client.get("/api/projects/keep")
        assert resp.status_code == 200
        assert resp.get_json()["version"] == 3

    def test_missing_project(self):
        assert self.client.get("/api/projects/nope").get_json() == {"error": "Project not found"}
        assert self.client.get("/api/projects/nope").status_code == 404
        assert self.client.put("/api/projects/nope", json=self.edited_body(3)).status_code == 404
        assert self.client.delete("/api/projects/nope").status_code == 404

    def test_accepted_write(self):
        resp = self.client.put("/api/projects/keep", json=self.edited_body(3))
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["version"] == 4
        level = next(lvl for lvl in data["levels"] if lvl["id"] == "level-1")
        assert len(level["geometry"]["walls"]) == 1
        assert self.hub.get_project("keep").version == 4

    def test_stale_write(self):
        before = self.hub.get_project("keep")
        resp = self.client.put("/api/projects/keep", json=self.edited_body(2))
        assert resp.status_code == 409
        assert resp.get_json() == project_to_dict(before)
        assert self.hub.get_project("keep") == before

    def test_bad_bodies(self):
        body = self.edited_body(3)
        del body["version"]
        assert self.client.put("/api/projects/keep", json=body).status_code == 400
        assert self.client.put("/api/projects/keep", json=dict(body, version="3")).status_code == 400
        assert self.client.put("/api/projects/keep", json=dict(body, version=True)).status_code == 400
        assert self.client.put("/api/projects/keep", json=[1, 2]).status_code == 400
        assert self.client.put("/api/projects/keep", data="nope", content_type="text/plain").status_code == 400
        broken = dict(body, version=3, levels=[{"name": "no id"}])
        assert self.client.put("/api/projects/keep", json=broken).status_code == 400
        assert self.hub.get_project("keep").version == 3

    def test_write_without_levels(self):
        body = dict(self.edited_body(3), levels=[])
        resp = self.client.put("/api/projects/keep", json=body)
        assert resp.status_code == 400
        assert "error" in resp.get_json()
        project = self.hub.get_project("keep")
        assert (project.version, len(project.levels)) == (3, 2)

    def test_delete_project(self):
        assert self.client.delete("/api/projects/keep").status_code == 204
        assert self.client.get("/api/projects/keep").status_code == 404

    def test_event_stream_starts_with_current_document(self):
        resp = self.client.get("/api/projects/keep/events", buffered=False)
        assert resp.status_code == 200
        assert resp.mimetype == "text/event-stream"
        chunk = next(iter(resp.response))
        if isinstance(chunk, bytes):
            chunk = chunk.decode("utf-8")
        assert chunk.startswith("data: ")
        assert json.loads(chunk[len("data: "):])["version"] == 3
        resp.close()

    def test_event_stream_for_missing_project(self):
        assert self.client.get("/api/projects/nope/events").status_code == 404


class TestQueueSubscriber(unittest.TestCase):
    def test_events_until_closed(self):
        subscriber = QueueSubscriber()
        subscriber.send(create_default_project("keep", "Keep"))
        subscriber.close()
        events = list(subscriber.events(keepalive=0.01))
        assert len(events) == 1
        assert events[0].endswith("\n\n")

    def test_keepalive_comment(self):
        subscriber = QueueSubscriber()
        assert next(subscriber.events(keepalive=0.01)) == ": keepalive\n\n"

    def test_send_after_close(self):
        subscriber = QueueSubscriber()
        subscriber.close()
        with self.assertRaises(TransportFailure):
            subscriber.send(create_default_project("keep", "Keep"))


if __name__ == "__main__":
    unittest.main()
