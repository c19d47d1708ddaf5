"""
Entries router.

POST   /api/entries
GET    /api/entries?date=
GET    /api/entries/range?start=&end=
DELETE /api/entries/{entry_id}
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.core.errors import EntryNotFoundError, InvalidDateRangeError
from app.db.base import get_db
from app.models.user import User
from app.schemas.common import AUTH_RESPONSES, ErrorResponse, MessageResponse
from app.schemas.entry import EntryCreate, EntryOut
from app.services import storage
from app.services.week import today

router = APIRouter(prefix="/api/entries", tags=["entries"], responses=AUTH_RESPONSES)


@router.post(
    "",
    response_model=EntryOut,
    status_code=status.HTTP_201_CREATED,
    summary="Log an activity",
)
def create_entry(
    payload: EntryCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return storage.create_entry(
        db,
        current_user.id,
        title=payload.title,
        category=payload.category,
        duration=payload.duration,
        completed=payload.completed,
        notes=payload.notes,
        day=payload.date or today(),
    )


@router.get("", response_model=list[EntryOut], summary="Activities of one day, newest first")
def list_entries(
    day: Optional[date] = Query(
        default=None,
        alias="date",
        description="ISO date (YYYY-MM-DD). Defaults to today UTC.",
        examples=["2026-02-07"],
    ),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return storage.get_entries_by_date(db, current_user.id, day or today())


@router.get(
    "/range",
    response_model=list[EntryOut],
    summary="Activities in an inclusive date range",
    responses={422: {"model": ErrorResponse, "description": "Missing dates or start after end."}},
)
def list_entries_in_range(
    start: date = Query(description="First day (inclusive).", examples=["2026-02-02"]),
    end: date = Query(description="Last day (inclusive).", examples=["2026-02-08"]),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if start > end:
        raise InvalidDateRangeError(start=start, end=end)
    return storage.get_entries_by_date_range(db, current_user.id, start, end)


@router.delete(
    "/{entry_id}",
    response_model=MessageResponse,
    summary="Delete one of your activities",
    responses={404: {"model": ErrorResponse, "description": "No such entry owned by the caller."}},
)
def delete_entry(
    entry_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not storage.delete_entry(db, entry_id, current_user.id):
        raise EntryNotFoundError(entry_id)
    return MessageResponse(message="Deleted")
