"""
Scoring orchestrator — AI-rated daily productivity and its weekly mean.

Flow for score_day(db, llm, user, day):
  1. Read the day's entries. None → score 0 + fixed nudge, nothing stored,
     no external call.
  2. Build a digest of the entries plus the user's profile and ask the
     text-generation service for strict JSON {"score", "insight"}.
  3. Parse leniently: the brace-delimited span of the reply is decoded;
     anything unparseable falls back to NEUTRAL_SCORE with the raw text
     as the insight.
  4. Clamp to [0, 100], upsert daily_scores for (user, day).
  5. Re-read every daily score in the Monday–Sunday window of `day` and
     upsert weekly_scores with the mean (one decimal, half-up) and count.

Public API
----------
score_day(db, llm, user, day)          -> DailyScoreResult
refresh_weekly_score(db, user_id, day) -> WeeklyScore | None
parse_score_response(text)             -> tuple[int, str]
"""
from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.productivity_entry import ProductivityEntry
from app.models.user import User
from app.models.weekly_score import WeeklyScore
from app.services import storage
from app.services.llm import LLMClient
from app.services.week import get_week_bounds

logger = logging.getLogger(__name__)

MIN_SCORE = 0
MAX_SCORE = 100
NEUTRAL_SCORE = 50

NO_ENTRIES_INSIGHT = (
    "No activities logged today. Start tracking to get your productivity score!"
)
DEFAULT_INSIGHT = "Keep pushing your productivity!"
EMPTY_REPLY = '{"score": 50, "insight": "Keep going!"}'

_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


@dataclass
class DailyScoreResult:
    score: int
    insight: str
    date: date


def _ev(v) -> str:
    return v.value if hasattr(v, "value") else str(v)


# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------

def format_entry_line(entry: ProductivityEntry) -> str:
    state = "completed" if entry.completed else "incomplete"
    line = f"- {entry.title} ({_ev(entry.category)}, {entry.duration}min, {state})"
    if entry.notes:
        line += f" Notes: {entry.notes}"
    return line


def build_scoring_prompt(user: User, day: date, entries: list[ProductivityEntry]) -> str:
    digest = "\n".join(format_entry_line(e) for e in entries)
    return (
        "You are a productivity analyst. Rate this person's daily productivity "
        "on a scale of 0-100 and provide a brief insight.\n"
        "\n"
        "User Profile:\n"
        f"- Name: {user.full_name}\n"
        f"- Occupation: {user.occupation}\n"
        f"- Goals: {user.goals}\n"
        "\n"
        f"Today's Activities ({day.isoformat()}):\n"
        f"{digest}\n"
        "\n"
        "Respond in this exact JSON format:\n"
        '{"score": <number 0-100>, "insight": "<2-3 sentence insight about their productivity>"}'
    )


# ---------------------------------------------------------------------------
# Reply parsing
# ---------------------------------------------------------------------------

def clamp_score(value: Any) -> int:
    """Coerce to an integer in [MIN_SCORE, MAX_SCORE]; non-numeric → NEUTRAL_SCORE."""
    if isinstance(value, bool):
        return NEUTRAL_SCORE
    if isinstance(value, int):
        # Arbitrarily large JSON integers do not fit a float.
        return min(MAX_SCORE, max(MIN_SCORE, value))
    try:
        number = float(value)
    except (TypeError, ValueError):
        return NEUTRAL_SCORE
    if math.isnan(number):
        return NEUTRAL_SCORE
    bounded = min(float(MAX_SCORE), max(float(MIN_SCORE), number))
    return int(Decimal(str(bounded)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def parse_score_response(text: str) -> tuple[int, str]:
    """
    Extract (score, insight) from a free-text model reply.

    Never raises: an unparseable reply yields NEUTRAL_SCORE and the raw
    text as the insight.
    """
    content = text or EMPTY_REPLY
    match = _JSON_OBJECT_RE.search(content)
    try:
        parsed = json.loads(match.group(0) if match else content)
    except ValueError:
        parsed = None

    if not isinstance(parsed, dict):
        logger.info("Unparseable score reply, falling back to %d", NEUTRAL_SCORE)
        return NEUTRAL_SCORE, content

    insight = parsed.get("insight")
    if not isinstance(insight, str) or not insight.strip():
        insight = DEFAULT_INSIGHT
    return clamp_score(parsed.get("score")), insight


# ---------------------------------------------------------------------------
# Weekly aggregate
# ---------------------------------------------------------------------------

def weekly_average(scores: list[float]) -> float:
    """Arithmetic mean rounded half-up to one decimal place."""
    if not scores:
        return 0.0
    mean = Decimal(str(sum(scores))) / Decimal(len(scores))
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def refresh_weekly_score(db: Session, user_id: int, day: date) -> Optional[WeeklyScore]:
    """Recompute and upsert the weekly aggregate for the week containing `day`."""
    bounds = get_week_bounds(day)
    daily = storage.get_daily_scores(db, user_id, bounds.week_start, bounds.week_end)
    if not daily:
        return None
    return storage.save_weekly_score(
        db,
        user_id=user_id,
        week_start=bounds.week_start,
        week_end=bounds.week_end,
        avg_score=weekly_average([d.score for d in daily]),
        total_entries=len(daily),
    )


# ---------------------------------------------------------------------------
# Public — score one day
# ---------------------------------------------------------------------------

def score_day(db: Session, llm: LLMClient, user: User, day: date) -> DailyScoreResult:
    entries = storage.get_entries_by_date(db, user.id, day)
    if not entries:
        return DailyScoreResult(score=0, insight=NO_ENTRIES_INSIGHT, date=day)

    prompt = build_scoring_prompt(user, day, entries)
    reply = llm.complete(
        [{"role": "user", "content": prompt}],
        max_tokens=settings.SCORE_MAX_TOKENS,
    )
    score, insight = parse_score_response(reply)

    storage.save_daily_score(db, user.id, day, score, insight)
    weekly = refresh_weekly_score(db, user.id, day)
    logger.info(
        "Scored user=%s day=%s score=%s week_avg=%s",
        user.id, day, score, weekly.avg_score if weekly else None,
    )
    return DailyScoreResult(score=score, insight=insight, date=day)
