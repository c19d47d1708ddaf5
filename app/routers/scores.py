"""
Scores router.

POST /api/scores/daily   — compute, persist and return a day's AI score
GET  /api/scores/daily   — the caller's daily scores for one Monday–Sunday week
GET  /api/scores/weekly  — the caller's weekly aggregates
GET  /api/scoreboard     — leaderboard for one week
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.db.base import get_db
from app.models.user import User
from app.schemas.common import AUTH_RESPONSES, ErrorResponse
from app.schemas.score import (
    DailyScoreOut,
    ScoreboardResponse,
    ScoreboardRowOut,
    ScoreRequest,
    ScoreResponse,
    WeeklyScoreOut,
)
from app.services import storage
from app.services.llm import LLMClient, get_llm_client
from app.services.scoring import score_day
from app.services.week import get_week_bounds, today

router = APIRouter(prefix="/api", tags=["scores"], responses=AUTH_RESPONSES)

_WEEK_QUERY = Query(
    default=None,
    description="Any day inside the wanted week. Defaults to today (UTC).",
    examples=["2026-02-07"],
)


@router.post(
    "/scores/daily",
    response_model=ScoreResponse,
    summary="Generate the AI productivity score for a day",
    responses={500: {"model": ErrorResponse, "description": "Text generation failed."}},
)
def generate_daily_score(
    payload: Optional[ScoreRequest] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    llm: LLMClient = Depends(get_llm_client),
):
    """
    Rate the day's logged activities 0–100 with a short insight.

    - No activities → score 0 and a nudge to start logging; nothing stored.
    - Otherwise the score is upserted for the day and the weekly average
      of the enclosing Monday–Sunday window is recomputed.
    """
    day = (payload.date if payload else None) or today()
    result = score_day(db, llm, current_user, day)
    return ScoreResponse(score=result.score, insight=result.insight, date=result.date)


@router.get(
    "/scores/daily",
    response_model=list[DailyScoreOut],
    summary="Daily scores of one week, most recent first",
)
def list_daily_scores(
    day: Optional[date] = _WEEK_QUERY,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    bounds = get_week_bounds(day)
    return storage.get_daily_scores(db, current_user.id, bounds.week_start, bounds.week_end)


@router.get(
    "/scores/weekly",
    response_model=list[WeeklyScoreOut],
    summary="Weekly averages, most recent week first",
)
def list_weekly_scores(
    limit: int = Query(default=12, ge=1, le=104),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return storage.get_weekly_scores(db, current_user.id, limit=limit)


@router.get(
    "/scoreboard",
    response_model=ScoreboardResponse,
    summary="Weekly leaderboard",
)
def scoreboard(
    day: Optional[date] = _WEEK_QUERY,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Every user with a weekly average for the week, best first."""
    bounds = get_week_bounds(day)
    rows = storage.get_weekly_scoreboard(db, bounds.week_start)
    return ScoreboardResponse(
        week_start=bounds.week_start,
        week_end=bounds.week_end,
        scoreboard=[
            ScoreboardRowOut(
                rank=position,
                user_id=row.user_id,
                full_name=row.full_name,
                occupation=row.occupation,
                avg_score=row.avg_score,
                total_entries=row.total_entries,
            )
            for position, row in enumerate(rows, start=1)
        ],
    )
