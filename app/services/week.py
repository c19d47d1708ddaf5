"""
Week-bounds calculator.

Weeks run Monday–Sunday. A Sunday belongs to the week that started six
days earlier. Used to group daily scores into a weekly aggregate and to
scope the leaderboard.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional


@dataclass(frozen=True)
class WeekBounds:
    week_start: date  # Monday
    week_end: date    # Sunday

    def __contains__(self, day: date) -> bool:
        return self.week_start <= day <= self.week_end


def today() -> date:
    return datetime.now(tz=timezone.utc).date()


def get_week_bounds(reference: Optional[date] = None) -> WeekBounds:
    """Return the Monday–Sunday window enclosing `reference` (default: today UTC)."""
    day = reference or today()
    monday = day - timedelta(days=day.weekday())
    return WeekBounds(week_start=monday, week_end=monday + timedelta(days=6))
