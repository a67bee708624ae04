"""Password hashing and access-token helpers.

Passwords are stored as bcrypt hashes.  Access tokens are HS256 JWTs that
carry the user id (``sub``) and role; the role is re-read from the
database on every request so demotions take effect immediately.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt

from obd_dashboard.config import settings

ALGORITHM = "HS256"


class InvalidTokenError(Exception):
    """Raised when an access token is missing, malformed or expired."""


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Constant-time bcrypt comparison; ``False`` for empty or corrupt hashes."""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(
    user_id: int,
    role: str,
    expires_minutes: Optional[int] = None,
    secret_key: Optional[str] = None,
) -> str:
    minutes = expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": now + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, secret_key or settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str, secret_key: Optional[str] = None) -> Dict[str, Any]:
    """Validate *token* and return its claims.

    Raises:
        InvalidTokenError: On a bad signature, malformed payload or expiry.
    """
    try:
        claims = jwt.decode(token, secret_key or settings.secret_key, algorithms=[ALGORITHM])
    except jwt.PyJWTError as exc:
        raise InvalidTokenError(str(exc)) from exc
    if not str(claims.get("sub", "")).isdigit():
        raise InvalidTokenError("Token subject is not a user id")
    return claims
