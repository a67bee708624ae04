"""Shared FastAPI dependencies: DB session, current user, role checks."""

from __future__ import annotations

from typing import Callable, Generator, Optional

import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from obd_dashboard import crud
from obd_dashboard.db import session as db_session
from obd_dashboard.models_db import User
from obd_dashboard.security import InvalidTokenError, decode_access_token

logger = structlog.get_logger()

_bearer = HTTPBearer(auto_error=False)

WRITE_ROLES = ("admin", "tester")


def get_db() -> Generator[Session, None, None]:
    db = db_session.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to an active :class:`User` or raise 401."""
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Not authenticated")

    try:
        claims = decode_access_token(credentials.credentials)
    except InvalidTokenError as exc:
        logger.info("auth_token_rejected", reason=str(exc))
        raise _unauthorized("Invalid or expired token")

    user = crud.get_user(db, int(claims["sub"]))
    if user is None:
        raise _unauthorized("Invalid or expired token")
    if user.status != "Active":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is inactive")
    return user


def require_roles(*roles: str) -> Callable[[User], User]:
    """Dependency factory allowing only users whose role is in *roles*."""

    def _check(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return _check


require_admin = require_roles("admin")
require_writer = require_roles(*WRITE_ROLES)
