"""Report metadata, generation, viewing and download under /v1/reports."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from obd_dashboard import crud
from obd_dashboard.api.deps import get_current_user, get_db, require_writer
from obd_dashboard.api.v1.schemas import (
    ReportFormat,
    ReportGenerateRequest,
    ReportGenerateResponse,
    ReportOut,
    ReportSummary,
)
from obd_dashboard.models_db import Report
from obd_dashboard.services.reporting import (
    CONTENT_TYPES,
    ReportBuilder,
    content_disposition,
    default_date_range,
    render_report,
    report_filename,
    report_name,
)

logger = structlog.get_logger()

router = APIRouter()


def report_out(report: Report, project_name: Optional[str]) -> ReportOut:
    return ReportOut(
        id=report.id,
        project_id=report.project_id,
        project_name=project_name,
        name=report.name,
        report_type=report.report_type,
        format=report.format,
        created_at=report.created_at,
        date_from=report.date_from,
        date_to=report.date_to,
        include_vehicles=report.include_vehicles,
        include_fault_codes=report.include_fault_codes,
        include_readiness=report.include_readiness,
        include_live_data=report.include_live_data,
    )


def _get_or_404(db: Session, report_id: int) -> Report:
    report = crud.get_report(db, report_id)
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
    return report


@router.get("", response_model=List[ReportOut], dependencies=[Depends(get_current_user)])
def list_reports(
    project_id: Optional[int] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    report_type: Optional[str] = Query(None),
    db: Session = Depends(get_db),
) -> List[ReportOut]:
    rows = crud.list_reports(
        db, project_id=project_id, date_from=date_from, date_to=date_to, report_type=report_type,
    )
    return [report_out(report, name) for report, name in rows]


@router.post(
    "/generate",
    response_model=ReportGenerateResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_writer)],
)
def generate_report(
    payload: ReportGenerateRequest, db: Session = Depends(get_db),
) -> ReportGenerateResponse:
    """Store report metadata and return a summary plus its download link.

    Raises:
        HTTPException 404: Unknown project.
        HTTPException 400: ``date_from`` after ``date_to``.
    """
    project = crud.get_project(db, payload.project_id)
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

    default_from, default_to = default_date_range()
    date_from = payload.date_from or default_from
    date_to = payload.date_to or default_to
    if date_from > date_to:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="date_from must not be after date_to",
        )

    report = crud.create_report(db, {
        "project_id": project.id,
        "name": report_name(project.name, payload.report_type),
        "report_type": payload.report_type,
        "format": payload.format,
        "date_from": date_from,
        "date_to": date_to,
        "include_vehicles": payload.include_vehicles,
        "include_fault_codes": payload.include_fault_codes,
        "include_readiness": payload.include_readiness,
        "include_live_data": payload.include_live_data,
    })

    builder = ReportBuilder(db)
    summary = ReportSummary(
        date_range=f"{date_from.isoformat()} to {date_to.isoformat()}",
        vehicles_count=len(builder.vehicles(project.id)),
        fault_codes_count=builder.count_fault_codes(project.id, date_from, date_to),
    )
    logger.info(
        "report_generated",
        report_id=report.id,
        project_id=project.id,
        format=report.format,
        report_type=report.report_type,
    )
    return ReportGenerateResponse(
        id=report.id,
        name=report.name,
        format=report.format,
        timestamp=report.created_at,
        download_url=f"/v1/reports/{report.id}/download",
        summary=summary,
    )


@router.get("/{report_id}", response_model=ReportOut, dependencies=[Depends(get_current_user)])
def get_report(report_id: int, db: Session = Depends(get_db)) -> ReportOut:
    report = _get_or_404(db, report_id)
    return report_out(report, report.project.name if report.project else None)


@router.delete("/{report_id}", dependencies=[Depends(require_writer)])
def delete_report(report_id: int, db: Session = Depends(get_db)) -> dict:
    report = _get_or_404(db, report_id)
    crud.delete_report(db, report)
    logger.info("report_deleted", report_id=report_id)
    return {"status": "success", "report_id": report_id}


@router.get("/{report_id}/view", dependencies=[Depends(get_current_user)])
def view_report(report_id: int, db: Session = Depends(get_db)) -> dict:
    report = _get_or_404(db, report_id)
    data = ReportBuilder(db).collect(report, report.project)
    return {
        "report": report_out(report, report.project.name).model_dump(),
        "date_range": data.date_range,
        "vehicles": data.vehicles,
        "fault_codes": data.fault_codes,
        "readiness": data.readiness,
        "live_data": data.live_data,
    }


@router.get("/{report_id}/download", dependencies=[Depends(get_current_user)])
def download_report(
    report_id: int,
    format: Optional[ReportFormat] = Query(None),
    db: Session = Depends(get_db),
) -> Response:
    report = _get_or_404(db, report_id)
    fmt = format or report.format
    data = ReportBuilder(db).collect(report, report.project)
    body = render_report(data, fmt)
    filename = report_filename(report.name, fmt)
    logger.info("report_downloaded", report_id=report_id, format=fmt, size_bytes=len(body))
    return Response(
        content=body,
        media_type=CONTENT_TYPES[fmt],
        headers={"Content-Disposition": content_disposition(filename)},
    )
