"""JSON content loading.

The dialogue asset is a single JSON document:

    {
      "conversations": [
        {
          "id": "npc_intro",
          "startNodeId": "start",
          "nodes": [
            {
              "id": "start",
              "speaker": "NPC",
              "text": "Well met, traveller.",
              "choices": [{"text": "Goodbye.", "nextNodeId": "end"}]
            }
          ]
        }
      ]
    }

Only the structure is checked here. Dangling node references, empty ids and
duplicate conversation ids load fine and are dealt with by the runtime.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import ValidationError

from npc_dialogue.models import Database


class ContentError(ValueError):
    """The dialogue asset could not be read or does not match the expected shape."""


def parse_database(text: str | bytes) -> Database:
    try:
        return Database.model_validate_json(text)
    except ValidationError as e:
        raise ContentError(f"Invalid dialogue database: {e}") from e


def load_database(path: Path) -> Database:
    path = Path(path)
    if not path.is_file():
        raise ContentError(f"Dialogue database not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ContentError(f"Cannot read dialogue database {path}: {e}") from e
    return parse_database(text)
