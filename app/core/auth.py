"""
Request authentication.

The session token is read from the session cookie or, for non-browser
clients, from an `Authorization: Bearer` header. The resolved `User` is
handed to routes explicitly through `Depends(get_current_user)`.
"""
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import NotAuthenticatedError
from app.core.security import decode_access_token
from app.db.base import get_db
from app.models.user import User
from app.services import storage

bearer_scheme = HTTPBearer(auto_error=False)


def get_session_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def get_current_user(
    token: Optional[str] = Depends(get_session_token),
    db: Session = Depends(get_db),
) -> User:
    if not token:
        raise NotAuthenticatedError()

    claims = decode_access_token(token)
    if claims is None or claims.get("sub") is None or claims.get("jti") is None:
        raise NotAuthenticatedError()

    if not storage.is_session_active(db, claims["jti"]):
        raise NotAuthenticatedError()

    try:
        user_id = int(claims["sub"])
    except (TypeError, ValueError):
        raise NotAuthenticatedError()

    user = storage.get_user_by_id(db, user_id)
    if user is None:
        raise NotAuthenticatedError()
    return user
