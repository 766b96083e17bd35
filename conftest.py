import pytest

from npc_dialogue.service import DialogueService


@pytest.fixture(autouse=True)
def release_dialogue_service():
    """Free the one-open-service slot after every test, even if a test forgot close()."""
    yield
    DialogueService._active = None
