"""Dialogue service — the single entry point the host talks to.

Owns one DialogueRuntime at a time and re-emits its four events on its own
`events`, so listeners subscribe once and survive `reload()`. Only one
service may be open per process; it is handed to collaborators explicitly
(there is no global accessor).

    with DialogueService(load_database(path)) as service:
        coordinator = PresentationCoordinator(service.events, service.choose, generator)
        service.start("npc_intro")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import ClassVar

from npc_dialogue.engine import DialogueRuntime, InvalidArgumentError
from npc_dialogue.events import DialogueEvents, Subscription
from npc_dialogue.models import Database
from npc_dialogue.storage import load_database, parse_database

logger = logging.getLogger(__name__)


class ServiceAlreadyActiveError(RuntimeError):
    """Another DialogueService is already open in this process."""


class DialogueService:
    _active: ClassVar[DialogueService | None] = None

    def __init__(self, database: Database | None = None) -> None:
        if DialogueService._active is not None:
            raise ServiceAlreadyActiveError(
                "A DialogueService is already open; close it before creating another"
            )
        DialogueService._active = self

        self.events = DialogueEvents()
        self._runtime: DialogueRuntime | None = None
        self._forwarding: list[Subscription] = []
        self._closed = False

        if database is not None:
            self.reload(database)

    # ------------------------------------------------------------------
    # Runtime management
    # ------------------------------------------------------------------

    @property
    def runtime(self) -> DialogueRuntime | None:
        return self._runtime

    @property
    def database(self) -> Database | None:
        return self._runtime.database if self._runtime else None

    @property
    def is_conversation_active(self) -> bool:
        return self._runtime is not None and self._runtime.is_active

    def reload(self, database: Database) -> DialogueRuntime:
        """Replace the runtime with a fresh one built from `database`.

        A conversation in progress is dropped without a conversation_ended
        event (see DialogueRuntime.load_database).
        """
        if database is None:
            raise InvalidArgumentError("database is required")

        runtime = DialogueRuntime(database)
        if self._runtime is not None:
            self._unhook()
            if self._runtime.is_active:
                logger.warning(
                    "Runtime replaced during conversation %r; it was discarded without an end event",
                    self._runtime.current_conversation.id,
                )
        self._runtime = runtime
        self._forwarding = runtime.events.forward_to(self.events)
        logger.info("Dialogue database loaded: %d conversations", len(runtime.conversation_ids()))
        return runtime

    def load_json(self, text: str | bytes) -> DialogueRuntime:
        return self.reload(parse_database(text))

    def load_file(self, path: Path) -> DialogueRuntime:
        return self.reload(load_database(path))

    def _unhook(self) -> None:
        for sub in self._forwarding:
            sub.unsubscribe()
        self._forwarding = []

    # ------------------------------------------------------------------
    # Delegation
    # ------------------------------------------------------------------

    def start(self, conversation_id: str) -> bool:
        if self._runtime is None:
            logger.error("Cannot start conversation %r: no dialogue database loaded", conversation_id)
            return False
        return self._runtime.try_start_conversation(conversation_id)

    def choose(self, choice_index: int) -> None:
        if self._runtime is None:
            logger.error("Cannot choose: no dialogue database loaded")
            return
        self._runtime.choose(choice_index)

    def end(self) -> None:
        if self._runtime is None:
            logger.error("Cannot end conversation: no dialogue database loaded")
            return
        self._runtime.end_conversation()

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._unhook()
        if DialogueService._active is self:
            DialogueService._active = None

    def __enter__(self) -> DialogueService:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
