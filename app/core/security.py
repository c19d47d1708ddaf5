"""
Password hashing and login-token helpers.

Tokens are HS256 JWTs carrying the user id (`sub`) and a unique `jti`.
The `jti` is what `auth_sessions` tracks, so a token can be revoked on
logout even though the JWT itself is stateless.
"""
import uuid
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from app.core.config import settings


def hash_password(password: str) -> str:
    """Hash a plain-text password with bcrypt (input capped at bcrypt's 72 bytes)."""
    pw_bytes = password.encode("utf-8")[:72]
    hashed = bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8")[:72],
            hashed_password.encode("utf-8"),
        )
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


def create_access_token(user_id: int) -> tuple[str, str, datetime]:
    """Return (token, jti, expires_at) for a freshly issued session."""
    jti = uuid.uuid4().hex
    expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    token = jwt.encode(
        {"sub": str(user_id), "jti": jti, "exp": expires_at},
        settings.SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )
    return token, jti, expires_at


def decode_access_token(token: str) -> dict | None:
    """Decode and verify a token. Returns the claims or None when invalid/expired."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
