"""Tests for npc_dialogue.events — EventChannel and DialogueEvents."""

import pytest

from npc_dialogue.events import DialogueEvents, EventChannel
from npc_dialogue.models import Conversation, Node


class TestEventChannel:
    def test_emit_calls_listeners_in_subscription_order(self) -> None:
        channel = EventChannel("test")
        calls = []
        channel.subscribe(lambda x: calls.append(("a", x)))
        channel.subscribe(lambda x: calls.append(("b", x)))
        channel.emit(1)
        assert calls == [("a", 1), ("b", 1)]

    def test_emit_with_no_listeners(self) -> None:
        EventChannel("test").emit("anything")

    def test_multiple_payload_arguments(self) -> None:
        channel = EventChannel("test")
        calls = []
        channel.subscribe(lambda node, i: calls.append((node, i)))
        channel.emit("n", 2)
        assert calls == [("n", 2)]

    def test_subscription_unsubscribe(self) -> None:
        channel = EventChannel("test")
        calls = []
        sub = channel.subscribe(calls.append)
        sub.unsubscribe()
        channel.emit(1)
        assert calls == []
        assert len(channel) == 0

    def test_unsubscribe_is_idempotent(self) -> None:
        channel = EventChannel("test")
        calls = []
        sub = channel.subscribe(calls.append)
        channel.subscribe(calls.append)
        sub.unsubscribe()
        sub.unsubscribe()
        assert len(channel) == 1

    def test_unsubscribe_unknown_listener_ignored(self) -> None:
        channel = EventChannel("test")
        channel.unsubscribe(print)
        assert len(channel) == 0

    def test_listener_may_unsubscribe_during_emit(self) -> None:
        channel = EventChannel("test")
        calls = []
        sub = None

        def once(x):
            calls.append(("once", x))
            sub.unsubscribe()

        sub = channel.subscribe(once)
        channel.subscribe(lambda x: calls.append(("always", x)))
        channel.emit(1)
        channel.emit(2)
        assert calls == [("once", 1), ("always", 1), ("always", 2)]

    def test_listener_exception_propagates(self) -> None:
        channel = EventChannel("test")

        def boom(x):
            raise RuntimeError("listener failed")

        channel.subscribe(boom)
        with pytest.raises(RuntimeError, match="listener failed"):
            channel.emit(1)

    def test_clear(self) -> None:
        channel = EventChannel("test")
        channel.subscribe(print)
        channel.clear()
        assert len(channel) == 0


class TestDialogueEvents:
    def test_four_channels(self) -> None:
        events = DialogueEvents()
        names = [c.name for c in events.channels()]
        assert names == [
            "conversation_started",
            "conversation_ended",
            "node_entered",
            "choice_selected",
        ]

    def test_forward_to_reemits_unchanged(self) -> None:
        source, target = DialogueEvents(), DialogueEvents()
        calls = []
        target.conversation_started.subscribe(lambda c: calls.append(("started", c)))
        target.node_entered.subscribe(lambda n: calls.append(("node", n)))
        target.choice_selected.subscribe(lambda n, i: calls.append(("choice", n, i)))
        target.conversation_ended.subscribe(lambda c: calls.append(("ended", c)))
        source.forward_to(target)

        conv = Conversation(id="c")
        node = Node(id="n")
        source.conversation_started.emit(conv)
        source.node_entered.emit(node)
        source.choice_selected.emit(node, 1)
        source.conversation_ended.emit(conv)

        assert calls == [("started", conv), ("node", node), ("choice", node, 1), ("ended", conv)]
        assert calls[0][1] is conv

    def test_forwarding_subscriptions_can_be_removed(self) -> None:
        source, target = DialogueEvents(), DialogueEvents()
        calls = []
        target.node_entered.subscribe(calls.append)
        subs = source.forward_to(target)
        for sub in subs:
            sub.unsubscribe()
        source.node_entered.emit(Node(id="n"))
        assert calls == []
        assert all(len(c) == 0 for c in source.channels())
