"""Analytics endpoints: fault-code breakdowns, live gauges, readiness, comparison."""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from obd_analysis.comparison import parse_vehicle_ids
from obd_dashboard.api.deps import get_current_user, get_db
from obd_dashboard.services.analytics import AnalyticsService, UnknownComparisonTypeError

logger = structlog.get_logger()

router = APIRouter(dependencies=[Depends(get_current_user)])


def _first_vehicle_id(vehicle_id: Optional[int], vehicle_ids: Optional[str]) -> int:
    if vehicle_id is not None:
        return vehicle_id
    ids = parse_vehicle_ids(vehicle_ids)
    if not ids:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A vehicle_id or vehicle_ids parameter is required",
        )
    return ids[0]


@router.get("/fault-codes")
def fault_code_analytics(
    project_id: Optional[int] = Query(None),
    vehicle_ids: Optional[str] = Query(None, description="Comma-separated vehicle ids"),
    db: Session = Depends(get_db),
) -> dict:
    return AnalyticsService(db).fault_code_analytics(parse_vehicle_ids(vehicle_ids), project_id)


@router.get("/live-data")
def live_data(vehicle_id: int = Query(...), db: Session = Depends(get_db)) -> dict:
    snapshot = AnalyticsService(db).live_data_snapshot(vehicle_id)
    if snapshot is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No live data found for this vehicle",
        )
    return snapshot


@router.get("/live-data-history")
def live_data_history(
    vehicle_ids: Optional[str] = Query(None),
    vehicle_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
) -> dict:
    return AnalyticsService(db).live_data_history(_first_vehicle_id(vehicle_id, vehicle_ids))


@router.get("/obd-readiness")
def obd_readiness(vehicle_id: int = Query(...), db: Session = Depends(get_db)) -> dict:
    summary = AnalyticsService(db).obd_readiness(vehicle_id)
    if summary is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No readiness data found for this vehicle",
        )
    return summary


@router.get("/obd2-readiness")
def obd2_readiness(
    vehicle_id: Optional[int] = Query(None),
    vehicle_ids: Optional[str] = Query(None),
    db: Session = Depends(get_db),
) -> dict:
    result = AnalyticsService(db).obd2_readiness(_first_vehicle_id(vehicle_id, vehicle_ids))
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vehicle not found")
    return result


@router.get("/vehicle-comparison")
def vehicle_comparison(
    vehicle_ids: Optional[str] = Query(None),
    data_type: str = Query("speed"),
    db: Session = Depends(get_db),
) -> dict:
    ids = parse_vehicle_ids(vehicle_ids)
    if not ids:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one vehicle id is required",
        )
    try:
        return AnalyticsService(db).vehicle_comparison(ids, data_type)
    except UnknownComparisonTypeError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
