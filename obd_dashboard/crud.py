"""CRUD operations for the OBD dashboard API.

Functions here add and modify ORM objects; writes are committed through
:func:`commit`, which rolls back, logs and re-raises on failure.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import structlog
from sqlalchemy import or_
from sqlalchemy.orm import Session

from obd_analysis.project_import import DEFAULT_MANAGER, ProjectRecord
from obd_dashboard import models_db
from obd_dashboard.models_db import _utcnow
from obd_dashboard.security import hash_password

logger = structlog.get_logger()


def commit(db: Session, event: str, **context: Any) -> None:
    """Commit the session; on failure roll back, log *event* and re-raise."""
    try:
        db.commit()
    except Exception as exc:
        db.rollback()
        logger.error(event, error=str(exc), exc_info=True, **context)
        raise


def end_of_day(day: date) -> datetime:
    """Exclusive upper bound covering the whole of *day*."""
    return datetime.combine(day + timedelta(days=1), time.min)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def get_user(db: Session, user_id: int) -> Optional[models_db.User]:
    return db.query(models_db.User).filter(models_db.User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[models_db.User]:
    return db.query(models_db.User).filter(models_db.User.email == email).first()


def find_conflicting_user(
    db: Session,
    username: Optional[str],
    email: Optional[str],
    exclude_id: Optional[int] = None,
) -> Optional[models_db.User]:
    """Return another user already holding *username* or *email*."""
    clauses = []
    if username:
        clauses.append(models_db.User.username == username)
    if email:
        clauses.append(models_db.User.email == email)
    if not clauses:
        return None
    query = db.query(models_db.User).filter(or_(*clauses))
    if exclude_id is not None:
        query = query.filter(models_db.User.id != exclude_id)
    return query.first()


def list_users(db: Session) -> List[models_db.User]:
    return db.query(models_db.User).order_by(models_db.User.id).all()


def user_projects(db: Session, user_id: int) -> List[models_db.Project]:
    """Projects assigned to *user_id*, ordered by name."""
    return (
        db.query(models_db.Project)
        .join(models_db.UserProject, models_db.UserProject.project_id == models_db.Project.id)
        .filter(models_db.UserProject.user_id == user_id)
        .order_by(models_db.Project.name)
        .all()
    )


def first_project(db: Session) -> Optional[models_db.Project]:
    return db.query(models_db.Project).order_by(models_db.Project.id).first()


def set_user_projects(db: Session, user: models_db.User, project_ids: Iterable[int]) -> None:
    """Replace *user*'s project assignments; unknown ids are ignored."""
    wanted = set(project_ids)
    existing = set()
    if wanted:
        existing = {
            pid for (pid,) in db.query(models_db.Project.id)
            .filter(models_db.Project.id.in_(wanted))
            .all()
        }
    # Reuse surviving links so the flush never re-inserts an existing pair.
    current = {link.project_id: link for link in user.project_links}
    user.project_links = [
        current.get(pid) or models_db.UserProject(project_id=pid)
        for pid in sorted(existing)
    ]


def create_user(
    db: Session,
    username: str,
    email: str,
    password: str,
    role: str = "viewer",
    status: str = "Active",
    project_ids: Optional[Sequence[int]] = None,
) -> models_db.User:
    """Create a user with a bcrypt-hashed password.

    When *project_ids* is empty the user is assigned the lowest-id project,
    if any exists.
    """
    user = models_db.User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=role,
        status=status,
    )
    db.add(user)
    if project_ids:
        set_user_projects(db, user, project_ids)
    else:
        default = first_project(db)
        if default is not None:
            user.project_links = [models_db.UserProject(project_id=default.id)]
    commit(db, "user_create_failed", username=username)
    db.refresh(user)
    return user


def update_user(db: Session, user: models_db.User, changes: dict) -> models_db.User:
    """Apply a partial update in a single transaction."""
    for field in ("username", "email", "role", "status"):
        if changes.get(field) is not None:
            setattr(user, field, changes[field])
    if changes.get("password"):
        user.password_hash = hash_password(changes["password"])
    if changes.get("projects") is not None:
        set_user_projects(db, user, changes["projects"])
    user.updated_at = _utcnow()
    commit(db, "user_update_failed", user_id=user.id)
    db.refresh(user)
    return user


def delete_user(db: Session, user: models_db.User) -> None:
    user_id = user.id
    db.delete(user)
    commit(db, "user_delete_failed", user_id=user_id)


def touch_last_login(db: Session, user: models_db.User) -> None:
    user.last_login = _utcnow()
    commit(db, "user_last_login_failed", user_id=user.id)


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


def list_projects(db: Session) -> List[models_db.Project]:
    return db.query(models_db.Project).order_by(models_db.Project.name).all()


def get_project(db: Session, project_id: int) -> Optional[models_db.Project]:
    return db.query(models_db.Project).filter(models_db.Project.id == project_id).first()


def create_project(
    db: Session,
    name: str,
    description: str = "",
    status: str = "Active",
    manager: Optional[str] = None,
) -> models_db.Project:
    project = models_db.Project(
        name=name,
        description=description,
        status=status,
        manager=manager or DEFAULT_MANAGER,
        created_date=date.today(),
    )
    db.add(project)
    commit(db, "project_create_failed", name=name)
    db.refresh(project)
    return project


def create_projects(db: Session, records: Sequence[ProjectRecord]) -> int:
    """Insert imported project records in one transaction."""
    for record in records:
        db.add(models_db.Project(**record.to_dict()))
    commit(db, "project_import_failed", count=len(records))
    return len(records)


def delete_project(db: Session, project: models_db.Project) -> None:
    project_id = project.id
    db.delete(project)
    commit(db, "project_delete_failed", project_id=project_id)


# ---------------------------------------------------------------------------
# Vehicles
# ---------------------------------------------------------------------------


def list_vehicles(db: Session, project_id: Optional[int] = None) -> List[models_db.Vehicle]:
    query = db.query(models_db.Vehicle)
    if project_id is not None:
        query = query.filter(models_db.Vehicle.project_id == project_id)
    return query.order_by(
        models_db.Vehicle.make, models_db.Vehicle.model, models_db.Vehicle.year,
    ).all()


def get_vehicle(db: Session, vehicle_id: int) -> Optional[models_db.Vehicle]:
    return db.query(models_db.Vehicle).filter(models_db.Vehicle.id == vehicle_id).first()


def create_vehicle(db: Session, data: dict) -> models_db.Vehicle:
    vehicle = models_db.Vehicle(**data)
    db.add(vehicle)
    commit(db, "vehicle_create_failed", make=data.get("make"), model=data.get("model"))
    db.refresh(vehicle)
    return vehicle


def delete_vehicle(db: Session, vehicle: models_db.Vehicle) -> None:
    vehicle_id = vehicle.id
    db.delete(vehicle)
    commit(db, "vehicle_delete_failed", vehicle_id=vehicle_id)


# ---------------------------------------------------------------------------
# Fault codes
# ---------------------------------------------------------------------------


def list_fault_codes(
    db: Session,
    vehicle_id: Optional[int] = None,
    project_id: Optional[int] = None,
    severity: Optional[str] = None,
    status: Optional[str] = None,
    limit: int = 100,
    offset: int = 0,
) -> List[Tuple[models_db.FaultCode, Optional[str], Optional[str]]]:
    """Return ``(fault_code, make, model)`` tuples, newest first."""
    query = (
        db.query(models_db.FaultCode, models_db.Vehicle.make, models_db.Vehicle.model)
        .join(models_db.Vehicle, models_db.Vehicle.id == models_db.FaultCode.vehicle_id)
    )
    if vehicle_id is not None:
        query = query.filter(models_db.FaultCode.vehicle_id == vehicle_id)
    if project_id is not None:
        query = query.filter(models_db.Vehicle.project_id == project_id)
    if severity:
        query = query.filter(models_db.FaultCode.severity == severity)
    if status:
        query = query.filter(models_db.FaultCode.status == status)
    return (
        query.order_by(models_db.FaultCode.created_at.desc(), models_db.FaultCode.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def get_fault_code(db: Session, fault_id: int) -> Optional[models_db.FaultCode]:
    return db.query(models_db.FaultCode).filter(models_db.FaultCode.id == fault_id).first()


def clear_fault_codes(db: Session, vehicle_id: Optional[int] = None, fault_id: Optional[int] = None) -> int:
    """Mark matching non-cleared fault codes as ``Cleared``; return the count."""
    query = db.query(models_db.FaultCode).filter(models_db.FaultCode.status != "Cleared")
    if fault_id is not None:
        query = query.filter(models_db.FaultCode.id == fault_id)
    if vehicle_id is not None:
        query = query.filter(models_db.FaultCode.vehicle_id == vehicle_id)
    cleared = query.update({models_db.FaultCode.status: "Cleared"}, synchronize_session=False)
    commit(db, "fault_code_clear_failed", vehicle_id=vehicle_id, fault_id=fault_id)
    return cleared


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


def list_reports(
    db: Session,
    project_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    report_type: Optional[str] = None,
) -> List[Tuple[models_db.Report, Optional[str]]]:
    """Return ``(report, project_name)`` tuples, newest first."""
    query = (
        db.query(models_db.Report, models_db.Project.name)
        .outerjoin(models_db.Project, models_db.Project.id == models_db.Report.project_id)
    )
    if project_id is not None:
        query = query.filter(models_db.Report.project_id == project_id)
    if date_from is not None:
        query = query.filter(models_db.Report.created_at >= datetime.combine(date_from, time.min))
    if date_to is not None:
        query = query.filter(models_db.Report.created_at < end_of_day(date_to))
    if report_type:
        query = query.filter(models_db.Report.report_type == report_type)
    return query.order_by(models_db.Report.created_at.desc(), models_db.Report.id.desc()).all()


def get_report(db: Session, report_id: int) -> Optional[models_db.Report]:
    return db.query(models_db.Report).filter(models_db.Report.id == report_id).first()


def create_report(db: Session, data: dict) -> models_db.Report:
    report = models_db.Report(**data)
    db.add(report)
    commit(db, "report_create_failed", project_id=data.get("project_id"))
    db.refresh(report)
    return report


def delete_report(db: Session, report: models_db.Report) -> None:
    report_id = report.id
    db.delete(report)
    commit(db, "report_delete_failed", report_id=report_id)
