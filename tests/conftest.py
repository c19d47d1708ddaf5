"""
Shared pytest fixtures.

Uses a file-backed SQLite database so no Postgres is required for tests.
The text-generation client is replaced by FakeLLM, which replays scripted
replies and records every call.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_coach.db")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import uuid
from typing import Iterator, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.errors import GenerationError
from app.db.base import Base, get_db, get_session_factory
from app.main import app
from app.services.llm import get_llm_client

SQLITE_URL = "sqlite:///./test_coach.db"

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeLLM:
    """Stand-in for LLMClient with the same complete()/stream() surface."""

    def __init__(self):
        self.completion = '{"score": 72, "insight": "Solid focus today."}'
        self.fragments: list[str] = ["Great ", "job ", "today!"]
        self.fail_complete = False
        self.fail_stream_after: Optional[int] = None
        self.complete_calls: list[list[dict]] = []
        self.stream_calls: list[list[dict]] = []

    def complete(self, messages: list[dict], max_tokens: int) -> str:
        self.complete_calls.append(messages)
        if self.fail_complete:
            raise GenerationError()
        return self.completion

    def stream(self, messages: list[dict], max_tokens: int) -> Iterator[str]:
        self.stream_calls.append(messages)
        for index, fragment in enumerate(self.fragments):
            if self.fail_stream_after is not None and index >= self.fail_stream_after:
                raise GenerationError()
            yield fragment
        if self.fail_stream_after is not None and self.fail_stream_after >= len(self.fragments):
            raise GenerationError()


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def fake_llm():
    return FakeLLM()


@pytest.fixture()
def client(fake_llm):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    app.dependency_overrides[get_llm_client] = lambda: fake_llm
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def make_user_payload(**overrides) -> dict:
    suffix = uuid.uuid4().hex[:10]
    payload = {
        "username": f"user_{suffix}",
        "email": f"{suffix}@example.com",
        "password": "s3cret-pass",
        "full_name": "Ada Lovelace",
        "occupation": "Engineer",
        "goals": "Ship the analytical engine",
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def register(client):
    """Register a fresh user; returns (payload, response body)."""
    def _register(**overrides):
        payload = make_user_payload(**overrides)
        r = client.post("/api/auth/register", json=payload)
        assert r.status_code == 201, r.text
        return payload, r.json()
    return _register


@pytest.fixture()
def auth_headers(register):
    """Bearer headers for a freshly registered user, plus the user body."""
    def _auth(**overrides):
        _, body = register(**overrides)
        return bearer(body["access_token"]), body["user"]
    return _auth


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
