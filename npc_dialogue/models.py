"""Conversation content model.

A Database holds Conversations, a Conversation holds Nodes, a Node holds
Choices. Instances are frozen: once loaded they are shared by reference and
never copied or mutated by the runtime.

Field names follow the JSON asset (camelCase aliases such as `startNodeId`
and `nextNodeId`); snake_case names are accepted too. Missing or null
fields load as empty strings / empty tuples, so a broken asset still loads
and only fails when the affected conversation is actually started.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

NPC_SPEAKER = "NPC"  # speaker convention for lines eligible for augmentation
END_SENTINEL = "end"


def is_end_sentinel(next_node_id: str | None) -> bool:
    """True when a choice target means "end the conversation"."""
    return not next_node_id or next_node_id.lower() == END_SENTINEL


def _empty_if_none(value: Any) -> Any:
    return "" if value is None else value


def _tuple_if_none(value: Any) -> Any:
    return () if value is None else value


Text = Annotated[str, BeforeValidator(_empty_if_none)]


class _Content(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Choice(_Content):
    """A labelled transition to another node, or to the end of the conversation."""

    text: Text = ""
    next_node_id: Text = Field(default="", alias="nextNodeId")

    @property
    def ends_conversation(self) -> bool:
        return is_end_sentinel(self.next_node_id)


class Node(_Content):
    """One beat of dialogue. No choices means a terminal node."""

    id: Text = ""
    speaker: Text = ""
    text: Text = ""
    choices: Annotated[tuple[Choice, ...], BeforeValidator(_tuple_if_none)] = ()


class Conversation(_Content):
    id: Text = ""
    start_node_id: Text = Field(default="", alias="startNodeId")
    nodes: Annotated[tuple[Node, ...], BeforeValidator(_tuple_if_none)] = ()


class Database(_Content):
    """All dialogue content available to a runtime."""

    conversations: Annotated[
        tuple[Conversation, ...], BeforeValidator(_tuple_if_none)
    ] = ()
