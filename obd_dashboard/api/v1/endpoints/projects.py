"""Project CRUD, template download, file import and analysis."""

from __future__ import annotations

import asyncio
from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from obd_analysis.project_import import (
    TEMPLATE_CSV,
    ProjectFileParseError,
    UnsupportedFileTypeError,
    load_project_file,
    resolve_file_type,
)
from obd_dashboard import crud
from obd_dashboard.api.deps import get_current_user, get_db, require_admin, require_writer
from obd_dashboard.api.v1.schemas import ImportResult, ProjectCreate, ProjectOut, TimeRange
from obd_dashboard.cache import query_cache
from obd_dashboard.config import settings
from obd_dashboard.services.analytics import AnalyticsService

logger = structlog.get_logger()

router = APIRouter()


@router.get("", response_model=List[ProjectOut], dependencies=[Depends(get_current_user)])
def list_projects(db: Session = Depends(get_db)) -> List[ProjectOut]:
    return [ProjectOut.model_validate(p) for p in crud.list_projects(db)]


@router.post(
    "",
    response_model=ProjectOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_writer)],
)
def create_project(payload: ProjectCreate, db: Session = Depends(get_db)) -> ProjectOut:
    project = crud.create_project(
        db,
        name=payload.name.strip(),
        description=payload.description.strip(),
        status=payload.status,
        manager=(payload.manager or "").strip() or None,
    )
    query_cache.clear()
    logger.info("project_created", project_id=project.id)
    return ProjectOut.model_validate(project)


@router.get("/template", dependencies=[Depends(get_current_user)])
def download_template() -> Response:
    """CSV template with the accepted header and four example rows."""
    return Response(
        content=TEMPLATE_CSV,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="project_template.csv"'},
    )


@router.post("/import", response_model=ImportResult, dependencies=[Depends(require_writer)])
async def import_projects(
    file: UploadFile = File(...),
    file_type: Optional[str] = Form(None),
    db: Session = Depends(get_db),
) -> ImportResult:
    """Import projects from an uploaded CSV, Excel or PDF file.

    Raises:
        HTTPException 400: Unsupported type or no valid project rows.
        HTTPException 413: File exceeds the configured size limit.
        HTTPException 422: File cannot be parsed as its type.
    """
    content = await file.read()
    if len(content) > settings.max_import_file_size:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds maximum size of {settings.max_import_file_size} bytes.",
        )

    try:
        resolved = resolve_file_type(file_type, file.filename)
    except UnsupportedFileTypeError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    try:
        records = await asyncio.to_thread(load_project_file, content, resolved)
    except ProjectFileParseError as exc:
        logger.warning("project_import_parse_failed", file_type=resolved, error=str(exc))
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))

    if not records:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No valid projects found in file",
        )

    count = crud.create_projects(db, records)
    query_cache.clear()
    logger.info(
        "project_import_completed",
        file_type=resolved,
        filename=file.filename,
        count=count,
    )
    return ImportResult(message=f"Successfully imported {count} projects", count=count)


@router.get("/analysis", dependencies=[Depends(get_current_user)])
def project_analysis(
    time_range: TimeRange = Query("all"),
    db: Session = Depends(get_db),
) -> dict:
    return AnalyticsService(db).project_analysis(time_range)


@router.get("/{project_id}", response_model=ProjectOut, dependencies=[Depends(get_current_user)])
def get_project(project_id: int, db: Session = Depends(get_db)) -> ProjectOut:
    project = crud.get_project(db, project_id)
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return ProjectOut.model_validate(project)


@router.delete("/{project_id}", dependencies=[Depends(require_admin)])
def delete_project(project_id: int, db: Session = Depends(get_db)) -> dict:
    project = crud.get_project(db, project_id)
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    crud.delete_project(db, project)
    query_cache.clear()
    logger.info("project_deleted", project_id=project_id)
    return {"status": "success", "project_id": project_id}
