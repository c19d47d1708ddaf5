"""
Auth router.

POST /api/auth/register
POST /api/auth/login
POST /api/auth/logout
GET  /api/auth/me
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.auth import get_current_user, get_session_token
from app.core.config import settings
from app.core.errors import EmailTakenError, InvalidCredentialsError, UsernameTakenError
from app.core.security import create_access_token, decode_access_token, hash_password, verify_password
from app.db.base import get_db
from app.models.user import User
from app.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, UserOut
from app.schemas.common import AUTH_RESPONSES, ErrorResponse, MessageResponse
from app.services import storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _open_session(db: Session, response: Response, user: User) -> AuthResponse:
    """Issue a token, record its jti and hand it back as body + cookie."""
    token, jti, expires_at = create_access_token(user.id)
    storage.create_session(db, user.id, jti, expires_at)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    return AuthResponse(user=UserOut.model_validate(user), access_token=token)


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account and start a session",
    responses={409: {"model": ErrorResponse, "description": "Username or email already in use."}},
)
def register(payload: RegisterRequest, response: Response, db: Session = Depends(get_db)):
    if storage.get_user_by_username(db, payload.username) is not None:
        raise UsernameTakenError(payload.username)

    try:
        user = storage.create_user(
            db,
            username=payload.username,
            email=payload.email,
            password_hash=hash_password(payload.password),
            full_name=payload.full_name,
            occupation=payload.occupation,
            goals=payload.goals,
        )
    except IntegrityError:
        # Lost a race on username, or the email is taken.
        db.rollback()
        logger.info("Registration conflict for username=%s", payload.username)
        if storage.get_user_by_username(db, payload.username) is not None:
            raise UsernameTakenError(payload.username)
        raise EmailTakenError(payload.email)

    return _open_session(db, response, user)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Start a session",
    responses={401: {"model": ErrorResponse, "description": "Invalid credentials."}},
)
def login(payload: LoginRequest, response: Response, db: Session = Depends(get_db)):
    user = storage.get_user_by_username(db, payload.username)
    if user is None or not verify_password(payload.password, user.password_hash):
        raise InvalidCredentialsError()
    return _open_session(db, response, user)


@router.post("/logout", response_model=MessageResponse, summary="End the current session")
def logout(
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    db: Session = Depends(get_db),
):
    """Revoke the presented session, if any, and clear the cookie. Always succeeds."""
    claims = decode_access_token(token) if token else None
    if claims and claims.get("jti"):
        storage.revoke_session(db, claims["jti"])
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserOut, summary="Session check", responses=AUTH_RESPONSES)
def me(current_user: User = Depends(get_current_user)):
    return current_user
