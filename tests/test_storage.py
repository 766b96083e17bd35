"""Tests for npc_dialogue.storage — JSON content loading."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from npc_dialogue.storage import ContentError, load_database, parse_database

ASSET = {
    "conversations": [
        {
            "id": "npc_intro",
            "startNodeId": "start",
            "nodes": [
                {
                    "id": "start",
                    "speaker": "NPC",
                    "text": "Well met, traveller.",
                    "choices": [
                        {"text": "Who are you?", "nextNodeId": "about"},
                        {"text": "Goodbye.", "nextNodeId": "end"},
                    ],
                },
                {"id": "about", "speaker": "NPC", "text": "A smith.", "choices": []},
            ],
        }
    ]
}


class TestParseDatabase:
    def test_asset_shape(self) -> None:
        db = parse_database(json.dumps(ASSET))
        conv = db.conversations[0]
        assert conv.id == "npc_intro"
        assert conv.start_node_id == "start"
        assert conv.nodes[0].choices[0].next_node_id == "about"
        assert conv.nodes[1].choices == ()

    def test_bytes_accepted(self) -> None:
        db = parse_database(json.dumps(ASSET).encode("utf-8"))
        assert len(db.conversations) == 1

    def test_broken_links_still_load(self) -> None:
        asset = {"conversations": [{"id": "c", "startNodeId": "missing", "nodes": []}]}
        assert parse_database(json.dumps(asset)).conversations[0].nodes == ()

    def test_empty_object(self) -> None:
        assert parse_database("{}").conversations == ()

    def test_malformed_json(self) -> None:
        with pytest.raises(ContentError, match="Invalid dialogue database"):
            parse_database("{not json")

    def test_wrong_shape(self) -> None:
        with pytest.raises(ContentError):
            parse_database(json.dumps({"conversations": [{"nodes": "oops"}]}))


class TestLoadDatabase:
    def test_reads_file(self, tmp_path) -> None:
        path = tmp_path / "dialogue.json"
        path.write_text(json.dumps(ASSET), encoding="utf-8")
        db = load_database(path)
        assert db.conversations[0].nodes[0].text == "Well met, traveller."

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ContentError, match="not found"):
            load_database(tmp_path / "nope.json")

    def test_invalid_utf8(self, tmp_path) -> None:
        path = tmp_path / "dialogue.json"
        path.write_bytes(b'{"conversations": [{"id": "\xff"}]}')
        with pytest.raises(ContentError, match="Cannot read"):
            load_database(path)

    def test_unreadable_file(self, tmp_path) -> None:
        path = tmp_path / "dialogue.json"
        path.write_text(json.dumps(ASSET), encoding="utf-8")
        with patch.object(Path, "read_text", side_effect=PermissionError("denied")):
            with pytest.raises(ContentError, match="denied"):
                load_database(path)
