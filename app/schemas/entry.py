import datetime as dt
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.productivity_entry import EntryCategory


class EntryCreate(BaseModel):
    """A single logged activity."""
    model_config = ConfigDict(use_enum_values=True)

    title: Annotated[str, Field(min_length=1, max_length=200, examples=["Deep work: API design"])]
    category: EntryCategory = Field(examples=["work", "exercise"])
    duration: Annotated[int, Field(ge=1, le=24 * 60, description="Duration in minutes.")]
    completed: bool = False
    notes: Optional[Annotated[str, Field(max_length=2_000)]] = None
    date: Optional[dt.date] = Field(
        default=None,
        description="ISO date of the activity. Defaults to today (UTC).",
        examples=["2026-02-07"],
    )

    @field_validator("title", mode="before")
    @classmethod
    def strip_and_check_empty(cls, v):
        stripped = v.strip() if isinstance(v, str) else v
        if isinstance(stripped, str) and not stripped:
            raise ValueError("title must not be empty after stripping whitespace")
        return stripped


class EntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: int
    user_id: int
    title: str
    category: EntryCategory
    duration: int
    completed: bool
    notes: Optional[str]
    date: dt.date
    created_at: dt.datetime
