"""Vehicle CRUD under /v1/vehicles."""

from __future__ import annotations

from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from obd_dashboard import crud
from obd_dashboard.api.deps import get_current_user, get_db, require_admin, require_writer
from obd_dashboard.api.v1.schemas import VehicleCreate, VehicleOut
from obd_dashboard.cache import query_cache

logger = structlog.get_logger()

router = APIRouter()


@router.get("", response_model=List[VehicleOut], dependencies=[Depends(get_current_user)])
def list_vehicles(
    project_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
) -> List[VehicleOut]:
    return [VehicleOut.model_validate(v) for v in crud.list_vehicles(db, project_id)]


@router.get("/{vehicle_id}", response_model=VehicleOut, dependencies=[Depends(get_current_user)])
def get_vehicle(vehicle_id: int, db: Session = Depends(get_db)) -> VehicleOut:
    vehicle = crud.get_vehicle(db, vehicle_id)
    if vehicle is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vehicle not found")
    return VehicleOut.model_validate(vehicle)


@router.post(
    "",
    response_model=VehicleOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_writer)],
)
def create_vehicle(payload: VehicleCreate, db: Session = Depends(get_db)) -> VehicleOut:
    if payload.project_id is not None and crud.get_project(db, payload.project_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    vehicle = crud.create_vehicle(db, payload.model_dump())
    query_cache.clear()
    logger.info("vehicle_created", vehicle_id=vehicle.id, project_id=vehicle.project_id)
    return VehicleOut.model_validate(vehicle)


@router.delete("/{vehicle_id}", dependencies=[Depends(require_admin)])
def delete_vehicle(vehicle_id: int, db: Session = Depends(get_db)) -> dict:
    vehicle = crud.get_vehicle(db, vehicle_id)
    if vehicle is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vehicle not found")
    crud.delete_vehicle(db, vehicle)
    query_cache.clear()
    logger.info("vehicle_deleted", vehicle_id=vehicle_id)
    return {"status": "success", "vehicle_id": vehicle_id}
