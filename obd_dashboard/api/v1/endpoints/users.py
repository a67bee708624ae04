"""Admin-only user management under /v1/users."""

from __future__ import annotations

from typing import List

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from obd_dashboard import crud
from obd_dashboard.api.deps import get_db, require_admin
from obd_dashboard.api.v1.schemas import ProjectRef, UserCreate, UserOut, UserUpdate
from obd_dashboard.models_db import User

logger = structlog.get_logger()

router = APIRouter(dependencies=[Depends(require_admin)])

_DUPLICATE_DETAIL = "Username or email already exists"


def user_out(db: Session, user: User) -> UserOut:
    return UserOut(
        id=user.id,
        username=user.username,
        email=user.email,
        role=user.role,
        status=user.status,
        last_login=user.last_login.isoformat() if user.last_login else "Never",
        created_at=user.created_at,
        projects=[ProjectRef(id=p.id, name=p.name) for p in crud.user_projects(db, user.id)],
    )


def _get_or_404(db: Session, user_id: int) -> User:
    user = crud.get_user(db, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User {user_id} not found",
        )
    return user


@router.get("", response_model=List[UserOut])
def list_users(db: Session = Depends(get_db)) -> List[UserOut]:
    return [user_out(db, u) for u in crud.list_users(db)]


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, db: Session = Depends(get_db)) -> UserOut:
    if crud.find_conflicting_user(db, payload.username, payload.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=_DUPLICATE_DETAIL)
    try:
        user = crud.create_user(
            db,
            username=payload.username,
            email=payload.email,
            password=payload.password,
            role=payload.role,
            status=payload.status,
            project_ids=payload.projects,
        )
    except IntegrityError:
        # Lost a race with a concurrent insert of the same username/email.
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=_DUPLICATE_DETAIL)
    logger.info("user_created", user_id=user.id, role=user.role)
    return user_out(db, user)


@router.patch("/{user_id}", response_model=UserOut)
def update_user(user_id: int, payload: UserUpdate, db: Session = Depends(get_db)) -> UserOut:
    user = _get_or_404(db, user_id)
    changes = payload.model_dump(exclude_unset=True)
    if crud.find_conflicting_user(db, changes.get("username"), changes.get("email"), exclude_id=user.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=_DUPLICATE_DETAIL)
    try:
        user = crud.update_user(db, user, changes)
    except IntegrityError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=_DUPLICATE_DETAIL)
    logger.info("user_updated", user_id=user.id, fields=sorted(k for k in changes if k != "password"))
    return user_out(db, user)


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current: User = Depends(require_admin),
) -> dict:
    user = _get_or_404(db, user_id)
    if user.id == current.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account",
        )
    crud.delete_user(db, user)
    logger.info("user_deleted", user_id=user_id)
    return {"status": "success", "user_id": user_id}
