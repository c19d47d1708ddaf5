"""
Coach chat orchestrator.

start_reply() does everything that can fail cleanly before the HTTP
response starts: persist the user's turn, assemble the bounded context,
open the generation stream and pull its first fragment. A failure there
propagates as GenerationError (→ 500 envelope). Afterwards
ChatReply.events() relays fragments as server-sent events and persists
the assembled reply once the stream is exhausted.

Wire format (one event per line pair):
  data: {"content": "<fragment>"}
  data: [DONE]
  data: {"error": "Failed to get response"}     (failure mid-stream)
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import GenerationError
from app.models.chat_message import ChatMessage, ChatRole
from app.models.daily_score import DailyScore
from app.models.productivity_entry import ProductivityEntry
from app.models.user import User
from app.services import storage
from app.services.llm import LLMClient
from app.services.scoring import _ev
from app.services.week import get_week_bounds

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 20
ENTRY_SUMMARY_LIMIT = 20
DONE_EVENT = "data: [DONE]\n\n"
STREAM_ERROR_MESSAGE = "Failed to get response"


def sse_event(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


# ---------------------------------------------------------------------------
# Context assembly
# ---------------------------------------------------------------------------

def summarize_entries(entries: list[ProductivityEntry]) -> str:
    if not entries:
        return "No recent activities logged."
    return "\n".join(
        f"{e.date.isoformat()}: {e.title} ({_ev(e.category)}, {e.duration}min, "
        f"{'done' if e.completed else 'pending'})"
        for e in entries[:ENTRY_SUMMARY_LIMIT]
    )


def summarize_scores(scores: list[DailyScore]) -> str:
    if not scores:
        return "No scores yet."
    return ", ".join(f"{s.date.isoformat()}: Score {s.score:g}/100" for s in scores)


def build_system_prompt(
    user: User, entries: list[ProductivityEntry], scores: list[DailyScore]
) -> str:
    return (
        "You are an expert productivity coach. You help users maximize their "
        "productivity with actionable, personalized advice.\n"
        "\n"
        "User Profile:\n"
        f"- Name: {user.full_name}\n"
        f"- Occupation: {user.occupation}\n"
        f"- Goals: {user.goals}\n"
        "\n"
        "Recent Activities This Week:\n"
        f"{summarize_entries(entries)}\n"
        "\n"
        f"Recent Scores: {summarize_scores(scores)}\n"
        "\n"
        "Guidelines:\n"
        "- Be encouraging but honest\n"
        "- Give specific, actionable advice\n"
        "- Reference their actual activities and scores when relevant\n"
        "- Keep responses concise (2-4 sentences unless they ask for detailed plans)\n"
        "- Use their name occasionally for a personal touch"
    )


def build_chat_context(
    user: User,
    history: list[ChatMessage],
    entries: list[ProductivityEntry],
    scores: list[DailyScore],
    message: str,
) -> list[dict]:
    """System instruction, then the last HISTORY_LIMIT prior turns, then the new message."""
    messages = [{"role": "system", "content": build_system_prompt(user, entries, scores)}]
    for turn in history[-HISTORY_LIMIT:]:
        messages.append({"role": _ev(turn.role), "content": turn.content})
    messages.append({"role": ChatRole.user.value, "content": message})
    return messages


# ---------------------------------------------------------------------------
# Streaming
# ---------------------------------------------------------------------------

@dataclass
class ChatReply:
    """An opened generation stream whose first fragment has already been pulled."""
    user_id: int
    first: Optional[str]
    fragments: Iterator[str]

    def events(self, session_factory: Callable[[], Session]) -> Iterator[str]:
        parts: list[str] = []
        try:
            if self.first:
                parts.append(self.first)
                yield sse_event({"content": self.first})
            for fragment in self.fragments:
                parts.append(fragment)
                yield sse_event({"content": fragment})

            with session_factory() as db:
                storage.save_chat_message(
                    db, self.user_id, ChatRole.assistant.value, "".join(parts)
                )
        except (GenerationError, SQLAlchemyError):
            logger.exception("Chat stream failed for user=%s", self.user_id)
            yield sse_event({"error": STREAM_ERROR_MESSAGE})
            return

        yield DONE_EVENT


def start_reply(db: Session, llm: LLMClient, user: User, message: str) -> ChatReply:
    history = storage.get_chat_messages(db, user.id)
    storage.save_chat_message(db, user.id, ChatRole.user.value, message)

    bounds = get_week_bounds()
    entries = storage.get_entries_by_date_range(db, user.id, bounds.week_start, bounds.week_end)
    scores = storage.get_daily_scores(db, user.id, bounds.week_start, bounds.week_end)

    context = build_chat_context(user, history, entries, scores, message)
    fragments = llm.stream(context, max_tokens=settings.CHAT_MAX_TOKENS)
    first = next(fragments, None)
    return ChatReply(user_id=user.id, first=first, fragments=fragments)
