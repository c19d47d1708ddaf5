"""
Persistence accessors.

Thin translations of domain operations onto SQLAlchemy queries. No
business rules live here; callers decide what to store.

Writers commit their own change (one statement, one commit). The two
score writers are upserts keyed by their unique constraints.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from app.models.auth_session import AuthSession
from app.models.chat_message import ChatMessage
from app.models.daily_score import DailyScore
from app.models.productivity_entry import ProductivityEntry
from app.models.user import User
from app.models.weekly_score import WeeklyScore


@dataclass
class ScoreboardRow:
    user_id: int
    full_name: str
    occupation: str
    avg_score: float
    total_entries: int


# ---------------------------------------------------------------------------
# Users & sessions
# ---------------------------------------------------------------------------

def create_user(
    db: Session,
    *,
    username: str,
    email: str,
    password_hash: str,
    full_name: str,
    occupation: str,
    goals: str,
) -> User:
    """Insert a user. Uniqueness violations surface as IntegrityError."""
    user = User(
        username=username,
        email=email,
        password_hash=password_hash,
        full_name=full_name,
        occupation=occupation,
        goals=goals,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(User.username == username).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def create_session(db: Session, user_id: int, jti: str, expires_at: datetime) -> AuthSession:
    session = AuthSession(user_id=user_id, token_jti=jti, expires_at=expires_at)
    db.add(session)
    db.commit()
    return session


def is_session_active(db: Session, jti: str) -> bool:
    session = db.query(AuthSession).filter(AuthSession.token_jti == jti).first()
    return session is not None and not session.is_revoked


def revoke_session(db: Session, jti: str) -> bool:
    session = db.query(AuthSession).filter(AuthSession.token_jti == jti).first()
    if session is None or session.is_revoked:
        return False
    session.is_revoked = True
    db.commit()
    return True


# ---------------------------------------------------------------------------
# Productivity entries
# ---------------------------------------------------------------------------

def create_entry(
    db: Session,
    user_id: int,
    *,
    title: str,
    category: str,
    duration: int,
    completed: bool,
    notes: Optional[str],
    day: date,
) -> ProductivityEntry:
    entry = ProductivityEntry(
        user_id=user_id,
        title=title,
        category=category,
        duration=duration,
        completed=completed,
        notes=notes,
        date=day,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def get_entries_by_date(db: Session, user_id: int, day: date) -> list[ProductivityEntry]:
    """Entries of one day, newest first."""
    return (
        db.query(ProductivityEntry)
        .filter(ProductivityEntry.user_id == user_id, ProductivityEntry.date == day)
        .order_by(ProductivityEntry.created_at.desc(), ProductivityEntry.id.desc())
        .all()
    )


def get_entries_by_date_range(
    db: Session, user_id: int, start: date, end: date
) -> list[ProductivityEntry]:
    """Entries with start <= date <= end, newest first."""
    return (
        db.query(ProductivityEntry)
        .filter(
            ProductivityEntry.user_id == user_id,
            ProductivityEntry.date >= start,
            ProductivityEntry.date <= end,
        )
        .order_by(ProductivityEntry.created_at.desc(), ProductivityEntry.id.desc())
        .all()
    )


def delete_entry(db: Session, entry_id: int, user_id: int) -> bool:
    """Delete an entry owned by user_id. False when missing or owned by someone else."""
    entry = (
        db.query(ProductivityEntry)
        .filter(ProductivityEntry.id == entry_id, ProductivityEntry.user_id == user_id)
        .first()
    )
    if entry is None:
        return False
    db.delete(entry)
    db.commit()
    return True


# ---------------------------------------------------------------------------
# Scores
# ---------------------------------------------------------------------------

def save_daily_score(
    db: Session, user_id: int, day: date, score: float, ai_insight: Optional[str]
) -> DailyScore:
    """Persist or overwrite the score row for (user_id, day)."""
    existing = (
        db.query(DailyScore)
        .filter(DailyScore.user_id == user_id, DailyScore.date == day)
        .first()
    )
    if existing is not None:
        existing.score = score
        existing.ai_insight = ai_insight
        row = existing
    else:
        row = DailyScore(user_id=user_id, date=day, score=score, ai_insight=ai_insight)
        db.add(row)
    db.commit()
    db.refresh(row)
    return row


def get_daily_scores(db: Session, user_id: int, start: date, end: date) -> list[DailyScore]:
    """Daily scores with start <= date <= end, most recent day first."""
    return (
        db.query(DailyScore)
        .filter(
            DailyScore.user_id == user_id,
            DailyScore.date >= start,
            DailyScore.date <= end,
        )
        .order_by(DailyScore.date.desc())
        .all()
    )


def save_weekly_score(
    db: Session,
    user_id: int,
    week_start: date,
    week_end: date,
    avg_score: float,
    total_entries: int,
) -> WeeklyScore:
    """Persist or overwrite the aggregate row for (user_id, week_start)."""
    existing = (
        db.query(WeeklyScore)
        .filter(WeeklyScore.user_id == user_id, WeeklyScore.week_start == week_start)
        .first()
    )
    if existing is not None:
        existing.week_end = week_end
        existing.avg_score = avg_score
        existing.total_entries = total_entries
        row = existing
    else:
        row = WeeklyScore(
            user_id=user_id,
            week_start=week_start,
            week_end=week_end,
            avg_score=avg_score,
            total_entries=total_entries,
        )
        db.add(row)
    db.commit()
    db.refresh(row)
    return row


def get_weekly_scores(db: Session, user_id: int, limit: int = 12) -> list[WeeklyScore]:
    """A user's weekly aggregates, most recent week first."""
    return (
        db.query(WeeklyScore)
        .filter(WeeklyScore.user_id == user_id)
        .order_by(WeeklyScore.week_start.desc())
        .limit(limit)
        .all()
    )


def get_weekly_scoreboard(db: Session, week_start: date) -> list[ScoreboardRow]:
    """Every user with an aggregate for week_start, best average first."""
    rows = (
        db.query(WeeklyScore, User.full_name, User.occupation)
        .join(User, WeeklyScore.user_id == User.id)
        .filter(WeeklyScore.week_start == week_start)
        .order_by(WeeklyScore.avg_score.desc(), WeeklyScore.user_id.asc())
        .all()
    )
    return [
        ScoreboardRow(
            user_id=weekly.user_id,
            full_name=full_name,
            occupation=occupation,
            avg_score=weekly.avg_score,
            total_entries=weekly.total_entries,
        )
        for weekly, full_name, occupation in rows
    ]


# ---------------------------------------------------------------------------
# Chat transcript
# ---------------------------------------------------------------------------

def get_chat_messages(db: Session, user_id: int) -> list[ChatMessage]:
    """Full transcript, oldest first."""
    return (
        db.query(ChatMessage)
        .filter(ChatMessage.user_id == user_id)
        .order_by(ChatMessage.created_at.asc(), ChatMessage.id.asc())
        .all()
    )


def save_chat_message(db: Session, user_id: int, role: str, content: str) -> ChatMessage:
    message = ChatMessage(
        user_id=user_id,
        role=role,
        content=content,
        created_at=datetime.now(tz=timezone.utc),
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


def clear_chat_messages(db: Session, user_id: int) -> int:
    """Delete the whole transcript. Returns the number of removed messages."""
    deleted = (
        db.query(ChatMessage)
        .filter(ChatMessage.user_id == user_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted
