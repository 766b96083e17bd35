"""Demo dialogue content: a short exchange with a village blacksmith."""

from npc_dialogue.models import Choice, Conversation, Database, Node


def demo_database() -> Database:
    """Return a small database that exercises every branch type."""
    intro = Conversation(
        id="npc_intro",
        start_node_id="start",
        nodes=(
            Node(
                id="start",
                speaker="NPC",
                text="Another traveller. Looking for steel, or just shelter from the rain?",
                choices=(
                    Choice(text="Steel. What do you have?", next_node_id="wares"),
                    Choice(text="Who are you?", next_node_id="about"),
                    Choice(text="Neither. Farewell.", next_node_id="end"),
                ),
            ),
            Node(
                id="wares",
                speaker="NPC",
                text="Swords on the left, axes on the right. Prices are fair and not negotiable.",
                choices=(
                    Choice(text="Tell me about yourself first.", next_node_id="about"),
                    Choice(text="I'll think about it.", next_node_id=""),
                ),
            ),
            Node(
                id="about",
                speaker="NPC",
                text="Name's Hild. I've kept this forge since the old bridge fell.",
                choices=(
                    Choice(text="What happened to the bridge?", next_node_id="bridge"),
                    Choice(text="Show me your wares.", next_node_id="wares"),
                ),
            ),
            Node(
                id="bridge",
                speaker="Narrator",
                text="Hild's hammer stops mid-swing.",
                choices=(
                    Choice(text="Sorry, I didn't mean to pry.", next_node_id="END"),
                ),
            ),
        ),
    )
    return Database(conversations=(intro,))
