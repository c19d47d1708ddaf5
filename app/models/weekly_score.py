"""
WeeklyScore — derived aggregate of a user's daily scores.

Recomputed from daily_scores every time a day inside the Monday–Sunday
window is scored. One row per (user_id, week_start); the row is
overwritten, never duplicated.
"""
from datetime import datetime, date
from sqlalchemy import Integer, Float, DateTime, Date, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class WeeklyScore(Base):
    __tablename__ = "weekly_scores"
    __table_args__ = (
        UniqueConstraint("user_id", "week_start", name="uq_weekly_score_user_week"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    week_start: Mapped[date] = mapped_column(Date, nullable=False, index=True, comment="Monday")
    week_end: Mapped[date] = mapped_column(Date, nullable=False, comment="Sunday")
    avg_score: Mapped[float] = mapped_column(
        Float, nullable=False,
        comment="Mean of the window's daily scores, one decimal place",
    )
    total_entries: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
        comment="Number of daily scores that contributed to avg_score",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
