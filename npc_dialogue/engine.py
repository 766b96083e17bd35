"""Conversation runtime — the conversation/node state machine.

Given a Database, the runtime indexes every conversation by id and every
node by (conversation_id, node_id), starts conversations, moves between
nodes as choices are made, and emits lifecycle events on `events`:

    conversation_started(conversation)
    node_entered(node)
    choice_selected(node, choice_index)
    conversation_ended(conversation)

States:
  idle             — no current conversation
  in conversation  — current conversation set; current node set once the
                     start node resolves (it is None only inside
                     try_start_conversation, between the started event and
                     the first node transition)

All events fire synchronously inside the call that caused them. Calling
back into the runtime from an event listener is not supported: the runtime
does not guard against reentrancy and the resulting event order is
undefined.

Failure modes:
  - Missing required arguments raise InvalidArgumentError (caller bug).
  - Unknown conversation ids and out-of-range choices return False / do
    nothing (normal outcomes).
  - A choice or start node pointing at a node that does not exist ends the
    conversation and logs a warning, so broken content links can be found.
"""

from __future__ import annotations

import logging

from npc_dialogue.events import DialogueEvents
from npc_dialogue.models import Conversation, Database, Node

logger = logging.getLogger(__name__)

NodeKey = tuple[str, str]


class InvalidArgumentError(ValueError):
    """A required argument was missing or empty."""


class DialogueRuntime:
    def __init__(self, database: Database, events: DialogueEvents | None = None) -> None:
        self.events = events or DialogueEvents()
        self._database: Database | None = None
        self._conversations: dict[str, Conversation] = {}
        self._nodes: dict[NodeKey, Node] = {}
        self._current_conversation: Conversation | None = None
        self._current_node: Node | None = None
        self.load_database(database)

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def database(self) -> Database | None:
        return self._database

    @property
    def current_conversation(self) -> Conversation | None:
        return self._current_conversation

    @property
    def current_node(self) -> Node | None:
        return self._current_node

    @property
    def is_active(self) -> bool:
        return self._current_conversation is not None

    def conversation_ids(self) -> list[str]:
        return list(self._conversations)

    def get_conversation(self, conversation_id: str) -> Conversation | None:
        return self._conversations.get(conversation_id)

    def get_node(self, conversation_id: str, node_id: str) -> Node | None:
        return self._nodes.get((conversation_id, node_id))

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_database(self, database: Database) -> None:
        """Index `database` and reset to idle.

        Both lookup tables are built off to the side and swapped in together.
        A conversation in progress is dropped WITHOUT a conversation_ended
        event: a reload is a hard reset, so listeners tracking start/end
        pairs must treat a reload as an implicit end.
        """
        if database is None:
            raise InvalidArgumentError("database is required")

        conversations: dict[str, Conversation] = {}
        nodes: dict[NodeKey, Node] = {}

        for conversation in database.conversations:
            if not conversation.id:
                logger.debug("Skipping conversation without an id")
                continue
            if conversation.id in conversations:
                # Last one wins. Kept for compatibility; duplicate ids are an
                # authoring mistake, not a feature.
                logger.warning("Duplicate conversation id %r, later definition wins", conversation.id)
            conversations[conversation.id] = conversation

            for node in conversation.nodes:
                if not node.id:
                    logger.debug("Skipping node without an id in conversation %r", conversation.id)
                    continue
                nodes[(conversation.id, node.id)] = node

        if self._current_conversation is not None:
            logger.warning(
                "Database reloaded during conversation %r; it was discarded without an end event",
                self._current_conversation.id,
            )

        self._database = database
        self._conversations = conversations
        self._nodes = nodes
        self._current_conversation = None
        self._current_node = None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def try_start_conversation(self, conversation_id: str) -> bool:
        """Start `conversation_id`. Returns False if it is not in the database.

        Returns True once the conversation has started, even if its start
        node is missing and it therefore ends again straight away.
        """
        if not conversation_id:
            raise InvalidArgumentError("conversation_id cannot be empty")

        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            logger.info("Unknown conversation %r", conversation_id)
            return False

        self._current_conversation = conversation
        self._current_node = None
        self.events.conversation_started.emit(conversation)

        self.go_to_node(conversation.start_node_id)
        return True

    def choose(self, choice_index: int) -> None:
        """Pick a choice on the current node. Invalid picks are ignored."""
        node = self._current_node
        if not self.is_active or node is None:
            return
        if not 0 <= choice_index < len(node.choices):
            logger.debug("Ignoring choice %d on node %r", choice_index, node.id)
            return

        # Listeners see the selection while the node it was made on is current.
        self.events.choice_selected.emit(node, choice_index)

        choice = node.choices[choice_index]
        if choice.ends_conversation:
            self.end_conversation()
        else:
            self.go_to_node(choice.next_node_id)

    def go_to_node(self, node_id: str) -> None:
        """Enter `node_id` in the current conversation, or end it if that is impossible."""
        conversation = self._current_conversation
        if conversation is None or not node_id:
            self.end_conversation()
            return

        node = self._nodes.get((conversation.id, node_id))
        if node is None:
            logger.warning(
                "Conversation %r references missing node %r, ending conversation",
                conversation.id, node_id,
            )
            self.end_conversation()
            return

        self._current_node = node
        self.events.node_entered.emit(node)

    def end_conversation(self) -> None:
        if self._current_conversation is None:
            return

        ended = self._current_conversation
        self._current_conversation = None
        self._current_node = None
        self.events.conversation_ended.emit(ended)
