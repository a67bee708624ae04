"""Shared fixtures for the dashboard API tests.

The app is pointed at an in-memory SQLite database before any
``obd_dashboard`` module is imported; every test gets a freshly created
schema, an empty query cache and one account per role.
"""

from __future__ import annotations

import os

os.environ["DATABASE_URL"] = "sqlite://"

from datetime import date  # noqa: E402
from typing import Callable, Dict, Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from obd_dashboard.api.deps import get_db  # noqa: E402
from obd_dashboard.cache import query_cache  # noqa: E402
from obd_dashboard.db import session as db_session  # noqa: E402
from obd_dashboard.db.base import Base  # noqa: E402
from obd_dashboard.db.query_log import query_log  # noqa: E402
from obd_dashboard.main import app  # noqa: E402
from obd_dashboard.models_db import (  # noqa: E402
    FaultCode,
    Project,
    User,
    UserProject,
    Vehicle,
)
from obd_dashboard.security import create_access_token, hash_password  # noqa: E402

PASSWORD = "correct-horse-1"
# Hash once; bcrypt is deliberately slow.
_PASSWORD_HASH = hash_password(PASSWORD)

ROLES = ("admin", "tester", "viewer")


@pytest.fixture()
def db() -> Generator[Session, None, None]:
    Base.metadata.create_all(bind=db_session.engine)
    session = db_session.SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=db_session.engine)
        query_cache.clear()
        query_log.clear()


@pytest.fixture()
def client(db: Session) -> Generator[TestClient, None, None]:
    def _override_get_db() -> Generator[Session, None, None]:
        session = db_session.SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def project(db: Session) -> Project:
    row = Project(
        name="Nexon EV",
        description="Electric Nexon validation",
        status="Active",
        manager="Jane Smith",
        created_date=date(2024, 3, 1),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture()
def users(db: Session, project: Project) -> Dict[str, User]:
    """One active account per role, each assigned to *project*."""
    created = {}
    for role in ROLES:
        user = User(
            username=role,
            email=f"{role}@example.com",
            password_hash=_PASSWORD_HASH,
            role=role,
            status="Active",
        )
        user.project_links = [UserProject(project_id=project.id)]
        db.add(user)
        created[role] = user
    db.commit()
    for user in created.values():
        db.refresh(user)
    return created


@pytest.fixture()
def auth_headers(users: Dict[str, User]) -> Dict[str, Dict[str, str]]:
    return {
        role: {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}
        for role, user in users.items()
    }


@pytest.fixture()
def make_vehicle(db: Session) -> Callable[..., Vehicle]:
    def _make(project_id=None, make="Tata", model="Nexon", year=2023, **fields) -> Vehicle:
        row = Vehicle(project_id=project_id, make=make, model=model, year=year, **fields)
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    return _make


@pytest.fixture()
def make_fault(db: Session) -> Callable[..., FaultCode]:
    def _make(vehicle_id: int, code: str = "P0300", severity: str = "High",
              status: str = "Active", **fields) -> FaultCode:
        row = FaultCode(vehicle_id=vehicle_id, code=code, severity=severity, status=status, **fields)
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    return _make


@pytest.fixture()
def password() -> str:
    """Plain-text password shared by the per-role accounts."""
    return PASSWORD
