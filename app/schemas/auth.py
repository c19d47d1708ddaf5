"""
Auth schemas.

POST /api/auth/register → RegisterRequest → AuthResponse
POST /api/auth/login    → LoginRequest    → AuthResponse
GET  /api/auth/me       → UserOut
"""
from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


def _strip_required(v):
    stripped = v.strip() if isinstance(v, str) else v
    if isinstance(stripped, str) and not stripped:
        raise ValueError("must not be empty")
    return stripped


class RegisterRequest(BaseModel):
    username: Annotated[str, Field(min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_.-]+$")]
    email: EmailStr
    password: Annotated[str, Field(min_length=6, max_length=128)]
    full_name: Annotated[str, Field(min_length=1, max_length=128)]
    occupation: Annotated[str, Field(min_length=1, max_length=128)]
    goals: Annotated[str, Field(min_length=1, max_length=2_000)]

    @field_validator("full_name", "occupation", "goals", mode="before")
    @classmethod
    def strip_text(cls, v):
        return _strip_required(v)


class LoginRequest(BaseModel):
    username: Annotated[str, Field(min_length=1)]
    password: Annotated[str, Field(min_length=1)]


class UserOut(BaseModel):
    """A user without the password hash."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    full_name: str
    occupation: str
    goals: str
    created_at: datetime


class AuthResponse(BaseModel):
    user: UserOut
    access_token: str = Field(
        description="Also set as an HttpOnly session cookie. Send as a Bearer token from non-browser clients."
    )
    token_type: str = "bearer"
