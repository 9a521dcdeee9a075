"""Tests for ui/app.py — HTTP endpoints over a MatrixEngine."""

import pytest
from fastapi.testclient import TestClient

import ui.app as app_module
from quadtags import MatrixEngine, YamlTaskStore, load_settings, tasks_path
from ui.app import app, get_engine


@pytest.fixture
def client(engine, monkeypatch):
    monkeypatch.delenv("QUADTAGS_USERNAME", raising=False)
    monkeypatch.delenv("QUADTAGS_PASSWORD", raising=False)
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_healthz(client):
    assert client.get("/healthz").json() == {"ok": "true"}


def test_matrix(client):
    data = client.get("/api/matrix").json()
    assert [q["number"] for q in data["quadrants"]] == [1, 2, 3, 4]
    assert data["canUndo"] is False
    q4 = data["quadrants"][3]
    assert q4["groups"][0]["slug"] == "trip"
    assert q4["ungrouped"][0]["orphan"] is True


def test_index_renders_grid(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert "Important &amp; Urgent" in resp.text
    assert "Plan trip" in resp.text


def test_move_record_then_undo_redo(client, store):
    resp = client.post("/api/records/call/quadrant", json={"quadrant": 1})
    assert resp.status_code == 200
    assert store.get("call").notes == "#important #urgent"

    resp = client.post("/api/undo")
    assert resp.json()["canRedo"] is True
    assert store.get("call").notes is None

    client.post("/api/redo")
    assert store.get("call").notes == "#important #urgent"


def test_move_record_bad_input(client):
    assert client.post("/api/records/call/quadrant", json={"quadrant": 9}).status_code == 400
    assert client.post("/api/records/nope/quadrant", json={"quadrant": 1}).status_code == 404


def test_undo_with_empty_history(client):
    assert client.post("/api/undo").status_code == 409
    assert client.post("/api/redo").status_code == 409


def test_group_record_conflict(client, store):
    resp = client.post("/api/records/milk/group", json={"target": "call", "slug": "trip"})
    assert resp.status_code == 409
    assert store.get("call").notes is None


def test_group_record_creates_group(client, store):
    resp = client.post("/api/records/milk/group", json={"target": "call", "slug": "errands"})
    assert resp.json() == {"ok": True, "slug": "errands"}
    assert store.get("milk").notes == "#important #i-errands"


def test_group_record_missing_slug(client):
    assert client.post("/api/records/milk/group", json={"target": "call"}).status_code == 400


def test_ungroup_and_orphan(client, store):
    assert client.delete("/api/records/hotel/group").status_code == 200
    assert store.get("hotel").notes is None
    assert client.post("/api/records/report/orphan", json={}).status_code == 200
    assert store.get("report").notes is None


def test_group_endpoints(client, store):
    assert client.post("/api/groups/nope/rename", json={"name": "x"}).status_code == 404
    resp = client.post("/api/groups/trip/rename", json={"name": "Vacation"})
    assert resp.json()["slug"] == "vacation"
    assert client.post("/api/groups/vacation/quadrant", json={"quadrant": 2}).status_code == 200
    assert store.get("hotel").notes == "#i-vacation #important"
    assert client.delete("/api/groups/vacation").status_code == 200
    assert store.get("trip").notes == "#important"


def test_section_endpoints(client, store):
    resp = client.post("/api/records/call/section", json={"tag": "misc"})
    assert resp.json()["tag"] == "misc"
    resp = client.post("/api/records/milk/section", json={"tag": "misc"})
    assert resp.json()["tag"] == "misc2"
    assert client.delete("/api/records/call/section").status_code == 200
    assert store.get("call").notes is None


def test_complete(client, store):
    assert client.post("/api/records/call/complete").status_code == 200
    assert store.get("call").completed is True


def test_basic_auth(client, monkeypatch):
    monkeypatch.setenv("QUADTAGS_USERNAME", "ana")
    monkeypatch.setenv("QUADTAGS_PASSWORD", "s3cret")
    assert client.get("/api/matrix").status_code == 401
    assert client.get("/api/matrix", auth=("ana", "wrong")).status_code == 401
    assert client.get("/api/matrix", auth=("ana", "s3cret")).status_code == 200


def test_get_engine_uses_workspace(workspace, monkeypatch):
    monkeypatch.setattr(app_module, "_ENGINE", None)
    engine = get_engine()
    assert engine.find("milk") is not None
    assert engine.find("done") is None
    assert get_engine() is engine


def test_list_selection_filters_matrix(client):
    resp = client.post("/api/lists", json={"included_lists": ["work"]})
    assert resp.json()["included_lists"] == ["work"]
    data = client.get("/api/matrix").json()
    ids = [e["id"] for q in data["quadrants"] for e in q["ungrouped"]]
    assert ids == ["report"]
    assert client.post("/api/lists", json={"excluded_lists": "work"}).status_code == 400


def test_list_selection_saved_to_config(workspace, monkeypatch):
    monkeypatch.delenv("QUADTAGS_USERNAME", raising=False)
    monkeypatch.delenv("QUADTAGS_PASSWORD", raising=False)
    engine = MatrixEngine(YamlTaskStore(tasks_path(workspace)), load_settings(workspace))
    engine.refresh()
    app.dependency_overrides[get_engine] = lambda: engine
    try:
        client = TestClient(app)
        assert [l["id"] for l in client.get("/api/lists").json()["lists"]] == ["home", "work"]
        client.post("/api/lists", json={"excluded_lists": ["work"], "use_exclusion": True})
    finally:
        app.dependency_overrides.clear()
    saved = load_settings(workspace)
    assert saved.excluded_lists == ["work"]
    assert saved.use_exclusion is True
    assert saved.log_level == "DEBUG"
