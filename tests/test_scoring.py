"""
Tests for the scoring orchestrator.

Unit tests cover reply parsing, clamping, prompt building and the weekly
mean. Service tests run score_day() against the SQLite session with the
FakeLLM from conftest. Every test creates its own user, so shared dates
never collide.
"""
from __future__ import annotations

import uuid
from datetime import date
from types import SimpleNamespace as NS

import pytest

from app.core.errors import GenerationError
from app.models.daily_score import DailyScore
from app.models.weekly_score import WeeklyScore
from app.services import storage
from app.services.scoring import (
    DEFAULT_INSIGHT,
    NEUTRAL_SCORE,
    NO_ENTRIES_INSIGHT,
    build_scoring_prompt,
    clamp_score,
    format_entry_line,
    parse_score_response,
    refresh_weekly_score,
    score_day,
    weekly_average,
)

SATURDAY = date(2026, 2, 7)
MONDAY = date(2026, 2, 2)
WEDNESDAY = date(2026, 2, 4)
SUNDAY = date(2026, 2, 8)


def _user(db):
    suffix = uuid.uuid4().hex[:10]
    return storage.create_user(
        db,
        username=f"scorer_{suffix}",
        email=f"scorer_{suffix}@example.com",
        password_hash="x",
        full_name="Grace Hopper",
        occupation="Rear Admiral",
        goals="Debug everything",
    )


def _entry(db, user, day, **overrides):
    fields = dict(title="Write report", category="work", duration=30, completed=True, notes=None)
    fields.update(overrides)
    return storage.create_entry(db, user.id, day=day, **fields)


# ---------------------------------------------------------------------------
# Unit tests on pure functions
# ---------------------------------------------------------------------------

class TestClampScore:
    @pytest.mark.parametrize("value, expected", [
        (72, 72),
        (0, 0),
        (100, 100),
        (150, 100),
        (-20, 0),
        ("88", 88),
        (64.5, 65),
        (64.4, 64),
        (10 ** 400, 100),
        (-(10 ** 400), 0),
        ("1e400", 100),
    ])
    def test_numeric_values(self, value, expected):
        assert clamp_score(value) == expected

    @pytest.mark.parametrize("value", [None, "great", [], {}, True, float("nan")])
    def test_non_numeric_defaults_to_neutral(self, value):
        assert clamp_score(value) == NEUTRAL_SCORE


class TestParseScoreResponse:
    def test_strict_json(self):
        assert parse_score_response('{"score": 81, "insight": "Nice."}') == (81, "Nice.")

    def test_json_wrapped_in_prose(self):
        text = 'Here you go:\n```json\n{"score": 67, "insight": "Balanced day."}\n```'
        assert parse_score_response(text) == (67, "Balanced day.")

    def test_unparseable_falls_back_to_neutral_with_raw_text(self):
        text = "I think this was a pretty good day overall."
        assert parse_score_response(text) == (NEUTRAL_SCORE, text)

    def test_broken_json_falls_back(self):
        text = '{"score": 90, "insight": '
        assert parse_score_response(text) == (NEUTRAL_SCORE, text)

    def test_missing_score_is_neutral(self):
        assert parse_score_response('{"insight": "Hmm."}') == (NEUTRAL_SCORE, "Hmm.")

    def test_missing_insight_uses_default(self):
        assert parse_score_response('{"score": 40}') == (40, DEFAULT_INSIGHT)

    def test_out_of_range_score_is_clamped(self):
        assert parse_score_response('{"score": 250, "insight": "Wow"}')[0] == 100

    def test_huge_integer_score_is_clamped(self):
        text = '{"score": 1' + "0" * 400 + ', "insight": "x"}'
        assert parse_score_response(text) == (100, "x")

    def test_empty_reply(self):
        assert parse_score_response("") == (50, "Keep going!")


class TestPrompt:
    def test_entry_line_with_notes(self):
        entry = NS(title="Run", category="exercise", duration=45, completed=False, notes="Rainy")
        assert format_entry_line(entry) == "- Run (exercise, 45min, incomplete) Notes: Rainy"

    def test_entry_line_without_notes(self):
        entry = NS(title="Read", category="learning", duration=20, completed=True, notes=None)
        assert format_entry_line(entry) == "- Read (learning, 20min, completed)"

    def test_prompt_contains_profile_and_digest(self):
        user = NS(full_name="Ada", occupation="Engineer", goals="Ship it")
        entries = [NS(title="Code", category="work", duration=90, completed=True, notes=None)]
        prompt = build_scoring_prompt(user, SATURDAY, entries)
        assert "- Name: Ada" in prompt
        assert "- Occupation: Engineer" in prompt
        assert "- Goals: Ship it" in prompt
        assert "Today's Activities (2026-02-07):" in prompt
        assert "- Code (work, 90min, completed)" in prompt
        assert '"score"' in prompt and '"insight"' in prompt


class TestWeeklyAverage:
    def test_rounds_to_one_decimal(self):
        assert weekly_average([80, 60, 72]) == 70.7

    def test_half_rounds_up(self):
        assert weekly_average([70, 70.5]) == 70.3  # 70.25 → 70.3

    def test_empty_is_zero(self):
        assert weekly_average([]) == 0.0


# ---------------------------------------------------------------------------
# Service tests (SQLite session + FakeLLM)
# ---------------------------------------------------------------------------

class TestScoreDay:
    def test_no_entries_short_circuits(self, db, fake_llm):
        user = _user(db)
        result = score_day(db, fake_llm, user, SATURDAY)

        assert result.score == 0
        assert result.insight == NO_ENTRIES_INSIGHT
        assert fake_llm.complete_calls == []
        assert db.query(DailyScore).filter(DailyScore.user_id == user.id).count() == 0
        assert db.query(WeeklyScore).filter(WeeklyScore.user_id == user.id).count() == 0

    def test_week_example(self, db, fake_llm):
        """Saturday scored after Monday=80 and Wednesday=60 → one weekly row of 3 days."""
        user = _user(db)
        _entry(db, user, SATURDAY, duration=30, completed=True)
        _entry(db, user, SATURDAY, title="Side project", category="creative", duration=45, completed=False)
        storage.save_daily_score(db, user.id, MONDAY, 80, "Good start")
        storage.save_daily_score(db, user.id, WEDNESDAY, 60, "Midweek dip")
        fake_llm.completion = '{"score": 72, "insight": "Solid."}'

        result = score_day(db, fake_llm, user, SATURDAY)

        assert result.score == 72
        weekly = db.query(WeeklyScore).filter(WeeklyScore.user_id == user.id).all()
        assert len(weekly) == 1
        assert weekly[0].week_start == MONDAY
        assert weekly[0].week_end == SUNDAY
        assert weekly[0].total_entries == 3
        assert weekly[0].avg_score == round((80 + 60 + 72) / 3, 1)

    def test_prompt_sent_as_single_user_message(self, db, fake_llm):
        user = _user(db)
        _entry(db, user, SATURDAY, title="Plan sprint", notes="with team")
        score_day(db, fake_llm, user, SATURDAY)

        assert len(fake_llm.complete_calls) == 1
        messages = fake_llm.complete_calls[0]
        assert len(messages) == 1
        assert messages[0]["role"] == "user"
        assert "- Plan sprint (work, 30min, completed) Notes: with team" in messages[0]["content"]

    def test_rescoring_overwrites_daily_and_weekly(self, db, fake_llm):
        user = _user(db)
        _entry(db, user, SATURDAY)
        fake_llm.completion = '{"score": 40, "insight": "Slow."}'
        score_day(db, fake_llm, user, SATURDAY)
        fake_llm.completion = '{"score": 90, "insight": "Turned it around."}'
        score_day(db, fake_llm, user, SATURDAY)

        daily = db.query(DailyScore).filter(DailyScore.user_id == user.id).all()
        assert len(daily) == 1
        assert daily[0].score == 90
        assert daily[0].ai_insight == "Turned it around."

        weekly = db.query(WeeklyScore).filter(WeeklyScore.user_id == user.id).all()
        assert len(weekly) == 1
        assert weekly[0].avg_score == 90.0
        assert weekly[0].total_entries == 1

    def test_unparseable_reply_is_not_an_error(self, db, fake_llm):
        user = _user(db)
        _entry(db, user, SATURDAY)
        fake_llm.completion = "Honestly, a decent day."
        result = score_day(db, fake_llm, user, SATURDAY)
        assert result.score == NEUTRAL_SCORE
        assert result.insight == "Honestly, a decent day."

    def test_generation_failure_propagates_and_stores_nothing(self, db, fake_llm):
        user = _user(db)
        _entry(db, user, SATURDAY)
        fake_llm.fail_complete = True
        with pytest.raises(GenerationError):
            score_day(db, fake_llm, user, SATURDAY)
        assert db.query(DailyScore).filter(DailyScore.user_id == user.id).count() == 0

    def test_scores_in_other_weeks_are_ignored(self, db, fake_llm):
        user = _user(db)
        storage.save_daily_score(db, user.id, date(2026, 2, 1), 10, None)  # previous Sunday
        storage.save_daily_score(db, user.id, date(2026, 2, 9), 20, None)  # next Monday
        _entry(db, user, SATURDAY)
        fake_llm.completion = '{"score": 70, "insight": "ok"}'
        score_day(db, fake_llm, user, SATURDAY)

        weekly = (
            db.query(WeeklyScore)
            .filter(WeeklyScore.user_id == user.id, WeeklyScore.week_start == MONDAY)
            .one()
        )
        assert weekly.avg_score == 70.0
        assert weekly.total_entries == 1


class TestRefreshWeeklyScore:
    def test_no_daily_scores_writes_nothing(self, db):
        user = _user(db)
        assert refresh_weekly_score(db, user.id, SATURDAY) is None

    def test_mean_and_count(self, db):
        user = _user(db)
        for day, score in [(MONDAY, 55), (WEDNESDAY, 65), (SUNDAY, 75)]:
            storage.save_daily_score(db, user.id, day, score, None)
        weekly = refresh_weekly_score(db, user.id, WEDNESDAY)
        assert weekly.avg_score == 65.0
        assert weekly.total_entries == 3
        assert (weekly.week_start, weekly.week_end) == (MONDAY, SUNDAY)
