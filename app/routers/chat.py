"""
Coach chat router.

GET    /api/chat/messages
DELETE /api/chat/messages
POST   /api/chat            — text/event-stream reply
"""
from __future__ import annotations

from typing import Callable

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.db.base import get_db, get_session_factory
from app.models.user import User
from app.schemas.chat import ChatMessageOut, ChatRequest
from app.schemas.common import AUTH_RESPONSES, ErrorResponse, MessageResponse
from app.services import storage
from app.services.chat import start_reply
from app.services.llm import LLMClient, get_llm_client

router = APIRouter(prefix="/api/chat", tags=["chat"], responses=AUTH_RESPONSES)

_SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "X-Accel-Buffering": "no",
}


@router.get("/messages", response_model=list[ChatMessageOut], summary="Chat transcript, oldest first")
def list_messages(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return storage.get_chat_messages(db, current_user.id)


@router.delete("/messages", response_model=MessageResponse, summary="Clear the chat transcript")
def clear_messages(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    storage.clear_chat_messages(db, current_user.id)
    return MessageResponse(message="Chat cleared")


@router.post(
    "",
    summary="Send a message to the coach (streamed reply)",
    response_class=StreamingResponse,
    responses={
        200: {
            "content": {"text/event-stream": {}},
            "description": 'Events `data: {"content": ...}`, terminated by `data: [DONE]` '
                           'or `data: {"error": ...}`.',
        },
        500: {"model": ErrorResponse, "description": "Generation failed before streaming began."},
    },
)
def send_message(
    payload: ChatRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    llm: LLMClient = Depends(get_llm_client),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
):
    """
    Persist the message, then stream the coach's reply token by token.

    The user's message is stored before generation starts, so it survives a
    generation failure. The assistant reply is stored once complete.
    """
    reply = start_reply(db, llm, current_user, payload.message)
    return StreamingResponse(
        reply.events(session_factory),
        media_type="text/event-stream",
        headers=_SSE_HEADERS,
    )
