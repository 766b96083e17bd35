"""Tests for the dialogue HTTP API (backend.app / backend.routes)."""

import json

import pytest
from fastapi.testclient import TestClient

from backend.app import create_app
from npc_dialogue.llm import CanonReplyGenerator
from npc_dialogue.service import DialogueService


@pytest.fixture(autouse=True)
def no_llm_env(monkeypatch):
    for var in ("DIALOGUE_LLM_API_KEY", "OPENAI_API_KEY", "DIALOGUE_DATABASE", "DIALOGUE_NPC_SPEAKER"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def client():
    with TestClient(create_app()) as c:
        yield c


def test_lists_demo_conversations(client):
    resp = client.get("/api/conversations")
    assert resp.status_code == 200
    assert resp.json() == ["npc_intro"]


def test_view_hidden_before_start(client):
    view = client.get("/api/view").json()
    assert view["state"] == "hidden"
    assert view["node_id"] is None
    assert view["options"] == []


def test_start_unknown_is_404(client):
    resp = client.post("/api/conversations/nope/start")
    assert resp.status_code == 404


def test_walk_through_demo(client):
    view = client.post("/api/conversations/npc_intro/start").json()
    assert view["state"] == "npc_speaking"
    assert view["node_id"] == "start"
    assert view["speaker"] == "NPC"

    view = client.post("/api/advance").json()
    assert view["state"] == "player_choosing"
    assert view["options"][0] == "Steel. What do you have?"

    view = client.post("/api/select", json={"index": 1}).json()
    assert view["node_id"] == "about"
    assert view["body"].startswith("Name's Hild")
    assert view["is_generating"] is False


def test_select_ending_choice_hides(client):
    client.post("/api/conversations/npc_intro/start")
    client.post("/api/advance")
    view = client.post("/api/select", json={"index": 2}).json()
    assert view["state"] == "hidden"


def test_select_out_of_range_ignored(client):
    client.post("/api/conversations/npc_intro/start")
    client.post("/api/advance")
    view = client.post("/api/select", json={"index": 9}).json()
    assert view["state"] == "player_choosing"


def test_select_requires_index(client):
    resp = client.post("/api/select", json={})
    assert resp.status_code == 422


def test_end(client):
    client.post("/api/conversations/npc_intro/start")
    view = client.post("/api/end").json()
    assert view["state"] == "hidden"
    assert client.post("/api/end").json()["state"] == "hidden"


def test_database_from_path(tmp_path):
    path = tmp_path / "db.json"
    path.write_text(json.dumps({"conversations": [
        {"id": "guard", "startNodeId": "a", "nodes": [{"id": "a", "speaker": "Guard", "text": "Halt."}]},
    ]}))
    with TestClient(create_app(database_path=path)) as c:
        assert c.get("/api/conversations").json() == ["guard"]
        assert c.post("/api/conversations/guard/start").json()["body"] == "Halt."


def test_database_from_env(tmp_path, monkeypatch):
    path = tmp_path / "db.json"
    path.write_text(json.dumps({"conversations": [{"id": "from_env", "startNodeId": "a", "nodes": []}]}))
    monkeypatch.setenv("DIALOGUE_DATABASE", str(path))
    with TestClient(create_app()) as c:
        assert c.get("/api/conversations").json() == ["from_env"]


def test_generator_used_after_choice():
    with TestClient(create_app(generator=CanonReplyGenerator())) as c:
        c.post("/api/conversations/npc_intro/start")
        c.post("/api/advance")
        view = c.post("/api/select", json={"index": 1}).json()
        assert view["is_generating"] is True
        assert view["body"] == "Generating..."


def test_shutdown_releases_service():
    with TestClient(create_app()):
        pass
    DialogueService().close()
