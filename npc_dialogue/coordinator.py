"""Presentation coordinator — what the player currently sees.

Listens to the lifecycle events of a conversation (normally the service's
`events`) and to two input signals from the host, and keeps an abstract view
of the dialogue panel: which state it is in, the speaker and body text shown,
and the options offered.

States:
  HIDDEN           — no conversation
  NPC_SPEAKING     — a node's line is shown; `advance()` opens its choices
  PLAYER_CHOOSING  — options are shown; `select_option(i)` picks one

`is_generating` is a busy flag on top of the state: while it is set, input is
ignored and the body shows GENERATING_PLACEHOLDER.

When the player picks an option and the next node entered is spoken by the
NPC, its canonical line is sent to the reply generator together with the
option text. This runs as an asyncio task on the running loop; the event
handler itself never awaits. Only one request may be outstanding at a time.
A result is applied only if the node-entry that asked for it is still the
one on screen: later node entries and conversation_ended invalidate it, and
it is then dropped. Any generator failure, or cancellation of the task,
shows the canonical line.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from enum import Enum
from typing import Callable

from pydantic import BaseModel

from npc_dialogue.events import DialogueEvents, Subscription
from npc_dialogue.llm import ReplyGenerator
from npc_dialogue.models import NPC_SPEAKER, Conversation, Node

logger = logging.getLogger(__name__)

GENERATING_PLACEHOLDER = "Generating..."


class UIState(str, Enum):
    HIDDEN = "hidden"
    NPC_SPEAKING = "npc_speaking"
    PLAYER_CHOOSING = "player_choosing"


class DialogueView(BaseModel):
    """Snapshot of the dialogue panel."""

    state: UIState
    node_id: str | None = None
    speaker: str = ""
    body: str = ""
    options: list[str] = []
    is_generating: bool = False


class PresentationCoordinator:
    def __init__(
        self,
        events: DialogueEvents,
        choose: Callable[[int], None],
        generator: ReplyGenerator | None = None,
        npc_speaker: str = NPC_SPEAKER,
    ) -> None:
        self._choose = choose
        self._generator = generator
        self._npc_speaker = npc_speaker

        self.state = UIState.HIDDEN
        self.current_node: Node | None = None
        self.speaker = ""
        self.body = ""
        self.options: tuple[str, ...] = ()
        self.is_generating = False
        self.last_player_choice = ""

        self._augment_next = False
        # Bumped on every node entry and conversation end; a generation
        # result is applied only if the token it captured is still current.
        self._entry = 0
        self._pending: asyncio.Task | None = None

        self._subscriptions: list[Subscription] = [
            events.conversation_started.subscribe(self._on_conversation_started),
            events.conversation_ended.subscribe(self._on_conversation_ended),
            events.node_entered.subscribe(self._on_node_entered),
            events.choice_selected.subscribe(self._on_choice_selected),
        ]

    @property
    def pending(self) -> asyncio.Task | None:
        """The outstanding generation task, if any."""
        return self._pending

    def view(self) -> DialogueView:
        return DialogueView(
            state=self.state,
            node_id=self.current_node.id if self.current_node else None,
            speaker=self.speaker,
            body=self.body,
            options=list(self.options),
            is_generating=self.is_generating,
        )

    # ------------------------------------------------------------------
    # Host input
    # ------------------------------------------------------------------

    def advance(self) -> bool:
        """Click/confirm: open the choices of the current node. Returns True if shown."""
        if self.is_generating or self.state is not UIState.NPC_SPEAKING:
            return False
        node = self.current_node
        if node is None or not node.choices:
            return False

        self.state = UIState.PLAYER_CHOOSING
        self.options = tuple(choice.text for choice in node.choices)
        return True

    def select_option(self, index: int) -> bool:
        """Pick option `index`. Returns True if it was forwarded to the runtime."""
        if self.is_generating or self.state is not UIState.PLAYER_CHOOSING:
            return False
        if not 0 <= index < len(self.options):
            return False

        self.last_player_choice = self.options[index]
        # Must be armed before choose(): the next node_entered fires inside it.
        self._augment_next = True
        self._choose(index)
        return True

    # ------------------------------------------------------------------
    # Lifecycle events
    # ------------------------------------------------------------------

    def _on_conversation_started(self, conversation: Conversation) -> None:
        self.state = UIState.NPC_SPEAKING
        self.current_node = None
        self.speaker = ""
        self.body = ""
        self.options = ()
        self._augment_next = False

    def _on_node_entered(self, node: Node) -> None:
        self._entry += 1
        self.state = UIState.NPC_SPEAKING
        self.current_node = node
        self.options = ()
        self.speaker = node.speaker
        self.body = node.text
        self.is_generating = False

        augment, self._augment_next = self._augment_next, False
        if not augment or node.speaker != self._npc_speaker or self._generator is None:
            return
        if self._pending is not None:
            logger.debug("Generation already in flight, showing canonical line for %r", node.id)
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop, showing canonical line for %r", node.id)
            return

        self.is_generating = True
        self.body = GENERATING_PLACEHOLDER
        self._pending = loop.create_task(self._generate(node, self.last_player_choice))
        self._pending.add_done_callback(functools.partial(self._settle, node, self._entry))

    def _on_choice_selected(self, node: Node, index: int) -> None:
        # Also covers choices made on the runtime directly, not via select_option().
        self.last_player_choice = node.choices[index].text

    def _on_conversation_ended(self, conversation: Conversation) -> None:
        self._entry += 1
        self.state = UIState.HIDDEN
        self.current_node = None
        self.speaker = ""
        self.body = ""
        self.options = ()
        self.is_generating = False
        self._augment_next = False
        self.last_player_choice = ""

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def _generate(self, node: Node, choice_text: str) -> str | None:
        try:
            return await self._generator.generate_reply(choice_text, node.text)
        except Exception as e:
            logger.warning("NPC line generation failed for %r, using canonical line: %s", node.id, e)
            return None

    def _settle(self, node: Node, entry: int, task: asyncio.Task) -> None:
        # Done callback: runs for success, failure and cancellation alike,
        # including a task cancelled before it ever started.
        self._pending = None
        if task.cancelled() or task.exception() is not None:
            reply = None
        else:
            reply = task.result()

        if entry != self._entry:
            logger.debug("Dropping generated line for %r, no longer on screen", node.id)
            return
        self.is_generating = False
        self.body = reply or node.text

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Stop listening. An outstanding generation result will be dropped.

        If a line was being generated, the canonical line is put back.
        """
        for sub in self._subscriptions:
            sub.unsubscribe()
        self._subscriptions.clear()
        self._entry += 1
        if self.is_generating and self.current_node is not None:
            self.body = self.current_node.text
        self.is_generating = False

    def __enter__(self) -> PresentationCoordinator:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
