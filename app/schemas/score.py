"""
Score schemas.

POST /api/scores/daily  → ScoreRequest → ScoreResponse
GET  /api/scores/daily  → list[DailyScoreOut]
GET  /api/scores/weekly → list[WeeklyScoreOut]
GET  /api/scoreboard    → ScoreboardResponse
"""
import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ScoreRequest(BaseModel):
    date: Optional[dt.date] = Field(
        default=None,
        description="Day to score. Defaults to today (UTC).",
        examples=["2026-02-07"],
    )


class ScoreResponse(BaseModel):
    score: int = Field(ge=0, le=100)
    insight: str
    date: dt.date


class DailyScoreOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date: dt.date
    score: float
    ai_insight: Optional[str]
    created_at: dt.datetime


class WeeklyScoreOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    week_start: dt.date
    week_end: dt.date
    avg_score: float
    total_entries: int = Field(description="Number of scored days in the week.")


class ScoreboardRowOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rank: int
    user_id: int
    full_name: str
    occupation: str
    avg_score: float
    total_entries: int


class ScoreboardResponse(BaseModel):
    week_start: dt.date
    week_end: dt.date
    scoreboard: list[ScoreboardRowOut] = Field(description="Best weekly average first.")
