"""Synchronous publish/subscribe channels for dialogue lifecycle events.

Each channel is an ordered listener list. `emit()` calls every listener that
was subscribed when the emit started, in subscription order, inside the
caller's stack frame. There is no queueing: an event is fully delivered
before `emit()` returns. Listener exceptions propagate to whoever emitted.

    events = DialogueEvents()
    sub = events.node_entered.subscribe(lambda node: print(node.text))
    ...
    sub.unsubscribe()
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, ParamSpec

from npc_dialogue.models import Conversation, Node

P = ParamSpec("P")


@dataclass
class Subscription:
    """Handle returned by `EventChannel.subscribe`."""

    channel: EventChannel
    listener: Callable[..., None]
    active: bool = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self.channel.unsubscribe(self.listener)


class EventChannel(Generic[P]):
    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: list[Callable[P, None]] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def __repr__(self) -> str:
        return f"EventChannel({self.name!r}, listeners={len(self._listeners)})"

    def subscribe(self, listener: Callable[P, None]) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    def unsubscribe(self, listener: Callable[P, None]) -> None:
        """Remove the first registration of `listener`; unknown listeners are ignored."""
        for i, registered in enumerate(self._listeners):
            if registered == listener:
                del self._listeners[i]
                return

    def emit(self, *args: P.args, **kwargs: P.kwargs) -> None:
        # Snapshot so listeners may unsubscribe themselves mid-delivery.
        for listener in list(self._listeners):
            listener(*args, **kwargs)

    def clear(self) -> None:
        self._listeners.clear()


class DialogueEvents:
    """The four lifecycle notifications of a conversation runtime."""

    def __init__(self) -> None:
        self.conversation_started: EventChannel[[Conversation]] = EventChannel("conversation_started")
        self.conversation_ended: EventChannel[[Conversation]] = EventChannel("conversation_ended")
        self.node_entered: EventChannel[[Node]] = EventChannel("node_entered")
        self.choice_selected: EventChannel[[Node, int]] = EventChannel("choice_selected")

    def channels(self) -> tuple[EventChannel, ...]:
        return (
            self.conversation_started,
            self.conversation_ended,
            self.node_entered,
            self.choice_selected,
        )

    def forward_to(self, other: DialogueEvents) -> list[Subscription]:
        """Re-emit every event of this set on the matching channel of `other`."""
        return [
            source.subscribe(target.emit)
            for source, target in zip(self.channels(), other.channels())
        ]

    def clear(self) -> None:
        for channel in self.channels():
            channel.clear()
