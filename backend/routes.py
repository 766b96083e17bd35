"""Dialogue API routes.

All state lives on app.state:
  service      — the DialogueService
  coordinator  — the PresentationCoordinator listening to it
"""

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from npc_dialogue.coordinator import DialogueView, PresentationCoordinator
from npc_dialogue.service import DialogueService

router = APIRouter()


class SelectBody(BaseModel):
    index: int


def _service(request: Request) -> DialogueService:
    return request.app.state.service


def _coordinator(request: Request) -> PresentationCoordinator:
    return request.app.state.coordinator


@router.get("/conversations")
async def list_conversations(request: Request) -> list[str]:
    runtime = _service(request).runtime
    return runtime.conversation_ids() if runtime else []


@router.post("/conversations/{conversation_id}/start")
async def start_conversation(conversation_id: str, request: Request) -> DialogueView:
    if not _service(request).start(conversation_id):
        raise HTTPException(404, f"Conversation not found: {conversation_id}")
    return _coordinator(request).view()


@router.post("/advance")
async def advance(request: Request) -> DialogueView:
    coordinator = _coordinator(request)
    coordinator.advance()
    return coordinator.view()


@router.post("/select")
async def select_option(body: SelectBody, request: Request) -> DialogueView:
    coordinator = _coordinator(request)
    coordinator.select_option(body.index)
    return coordinator.view()


@router.post("/end")
async def end_conversation(request: Request) -> DialogueView:
    _service(request).end()
    return _coordinator(request).view()


@router.get("/view")
async def get_view(request: Request) -> DialogueView:
    return _coordinator(request).view()
