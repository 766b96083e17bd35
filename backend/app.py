import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from backend.demo import demo_database
from backend.routes import router
from npc_dialogue.config import load_settings
from npc_dialogue.coordinator import PresentationCoordinator
from npc_dialogue.llm import HttpReplyGenerator, ReplyGenerator
from npc_dialogue.service import DialogueService
from npc_dialogue.storage import load_database

load_dotenv(Path(__file__).parent.parent / ".env")


def create_app(
    database_path: Path | None = None,
    generator: ReplyGenerator | None = None,
) -> FastAPI:
    """Build the app around one DialogueService and one PresentationCoordinator.

    Content comes from `database_path`, else the DIALOGUE_DATABASE env var,
    else the built-in demo. Without an explicit generator, lines are
    rewritten only when an API key is configured.
    """
    resolved = database_path or os.getenv("DIALOGUE_DATABASE") or None
    database = load_database(Path(resolved)) if resolved else demo_database()
    settings = load_settings()
    if generator is None and settings.has_credentials:
        generator = HttpReplyGenerator.from_settings(settings)

    service = DialogueService(database)
    coordinator = PresentationCoordinator(
        service.events,
        service.choose,
        generator,
        npc_speaker=settings.npc_speaker,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        coordinator.close()
        service.close()

    app = FastAPI(title="NPC Dialogue", lifespan=lifespan)
    app.state.service = service
    app.state.coordinator = coordinator
    app.include_router(router, prefix="/api")
    return app
