"""Fault-code listing and clearing under /v1/fault-codes."""

from __future__ import annotations

from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from obd_analysis.fault_codes import categorize_code
from obd_dashboard import crud
from obd_dashboard.api.deps import get_current_user, get_db, require_writer
from obd_dashboard.api.v1.schemas import ClearResult, FaultCodeOut
from obd_dashboard.cache import query_cache

logger = structlog.get_logger()

router = APIRouter()


@router.get("", response_model=List[FaultCodeOut], dependencies=[Depends(get_current_user)])
def list_fault_codes(
    vehicle_id: Optional[int] = Query(None),
    project_id: Optional[int] = Query(None),
    severity: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
) -> List[FaultCodeOut]:
    rows = crud.list_fault_codes(
        db,
        vehicle_id=vehicle_id,
        project_id=project_id,
        severity=severity,
        status=status_filter,
        limit=limit,
        offset=offset,
    )
    return [
        FaultCodeOut(
            id=fc.id,
            vehicle_id=fc.vehicle_id,
            test_id=fc.test_id,
            code=fc.code,
            description=fc.description,
            severity=fc.severity,
            status=fc.status,
            created_at=fc.created_at,
            vehicle_make=make,
            vehicle_model=model,
            category=categorize_code(fc.code),
        )
        for fc, make, model in rows
    ]


@router.post("/clear", response_model=ClearResult, dependencies=[Depends(require_writer)])
def clear_vehicle_fault_codes(
    vehicle_id: int = Query(...),
    db: Session = Depends(get_db),
) -> ClearResult:
    if crud.get_vehicle(db, vehicle_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vehicle not found")
    cleared = crud.clear_fault_codes(db, vehicle_id=vehicle_id)
    query_cache.clear()
    logger.info("fault_codes_cleared", vehicle_id=vehicle_id, cleared=cleared)
    return ClearResult(cleared=cleared)


@router.post("/{fault_id}/clear", response_model=ClearResult, dependencies=[Depends(require_writer)])
def clear_fault_code(fault_id: int, db: Session = Depends(get_db)) -> ClearResult:
    if crud.get_fault_code(db, fault_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fault code not found")
    cleared = crud.clear_fault_codes(db, fault_id=fault_id)
    query_cache.clear()
    logger.info("fault_code_cleared", fault_id=fault_id)
    return ClearResult(cleared=cleared)
