import datetime as dt
from sqlalchemy import Integer, String, Text, Boolean, DateTime, Date, Enum, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column
import enum

from app.db.base import Base


class EntryCategory(str, enum.Enum):
    work = "work"
    learning = "learning"
    exercise = "exercise"
    creative = "creative"
    health = "health"
    social = "social"


class ProductivityEntry(Base):
    """One logged activity. Deleted only by its owner."""

    __tablename__ = "productivity_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str] = mapped_column(
        Enum(EntryCategory, name="entry_category_enum"), nullable=False
    )
    duration: Mapped[int] = mapped_column(Integer, nullable=False, comment="Minutes")
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
