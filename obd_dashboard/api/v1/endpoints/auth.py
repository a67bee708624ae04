"""POST /v1/auth/login and GET /v1/auth/me."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from obd_dashboard import crud
from obd_dashboard.api.deps import get_current_user, get_db
from obd_dashboard.api.v1.schemas import LoginRequest, LoginResponse, ProjectRef, UserInfo
from obd_dashboard.models_db import User
from obd_dashboard.security import create_access_token, verify_password

logger = structlog.get_logger()

router = APIRouter()


def user_info(db: Session, user: User) -> UserInfo:
    return UserInfo(
        id=user.id,
        name=user.username,
        email=user.email,
        role=user.role,
        projects=[ProjectRef(id=p.id, name=p.name) for p in crud.user_projects(db, user.id)],
    )


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> LoginResponse:
    """Exchange email and password for a bearer token."""
    email = payload.email.strip()
    if not email or not payload.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email and password are required",
        )

    user = crud.get_user_by_email(db, email)
    if user is None or not verify_password(payload.password, user.password_hash):
        logger.info("login_failed", email=email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    if user.status != "Active":
        logger.info("login_rejected_inactive", user_id=user.id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )

    crud.touch_last_login(db, user)
    token = create_access_token(user.id, user.role)
    logger.info("login_succeeded", user_id=user.id, role=user.role)
    return LoginResponse(user=user_info(db, user), access_token=token)


@router.get("/me", response_model=UserInfo)
def me(
    user: User = Depends(get_current_user), db: Session = Depends(get_db),
) -> UserInfo:
    return user_info(db, user)
