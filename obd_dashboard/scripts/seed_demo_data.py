"""CLI entry point: ``python -m obd_dashboard.scripts.seed_demo_data``.

Inserts a demo project with a small fleet, diagnostic tests, fault codes,
telemetry and readiness rows so every dashboard page has something to
show.  Values are generated with a seeded numpy RNG, so repeated runs
produce the same readings.
"""

from __future__ import annotations

import argparse
from datetime import date, datetime, timedelta
from typing import List, Optional

import numpy as np
import structlog
from sqlalchemy.orm import Session

from obd_analysis.readiness import MONITOR_COLUMNS
from obd_dashboard import crud
from obd_dashboard.config import settings
from obd_dashboard.db import session as db_session
from obd_dashboard.db.base import Base
from obd_dashboard.logging_config import configure_logging
from obd_dashboard.models_db import (
    DiagnosticTest,
    FaultCode,
    HistoricalData,
    LiveData,
    OBDMonitor,
    OBDReadiness,
    Project,
    SensorData,
    Vehicle,
    _utcnow,
)

logger = structlog.get_logger("obd_dashboard.seed_demo_data")

DEMO_PROJECT = "Demo Fleet"

DEMO_VEHICLES = (
    ("Tata", "Nexon", 2023, "MAT625487KLP12345"),
    ("Mahindra", "XUV700", 2022, "MA1TA2XUV70012345"),
    ("Maruti", "Baleno", 2021, "MA3EWB22S00123456"),
)

DEMO_FAULTS = (
    ("P0300", "Random/multiple cylinder misfire detected", "Critical", "Active"),
    ("P0171", "System too lean (bank 1)", "High", "Active"),
    ("P0420", "Catalyst system efficiency below threshold", "Medium", "Pending"),
    ("B1318", "Battery voltage low", "Low", "Cleared"),
    ("C0035", "Left front wheel speed sensor circuit", "Medium", "Active"),
    ("U0100", "Lost communication with ECM/PCM", "High", "Permanent"),
)

_READINESS_CHOICES = ("Complete", "Incomplete", "Not Applicable", "Not Supported")


def _live_row(rng: np.random.Generator, vehicle_id: int, ts: datetime) -> LiveData:
    rpm = float(rng.uniform(750, 3500))
    return LiveData(
        vehicle_id=vehicle_id,
        timestamp=ts,
        speed=round(float(rng.uniform(0, 120)), 1),
        rpm=round(rpm),
        throttle_position=round(float(rng.uniform(5, 60)), 1),
        engine_load=round(float(rng.uniform(15, 80)), 1),
        coolant_temp=round(float(rng.normal(90, 3)), 1),
        fuel_pressure=round(float(rng.uniform(300, 400)), 1),
        intake_pressure=round(float(rng.uniform(30, 100)), 1),
        maf=round(float(rng.uniform(2, 25)), 2),
        o2_voltage=round(float(rng.uniform(0.1, 0.9)), 3),
        fuel_level=round(float(rng.uniform(10, 95)), 1),
        battery_voltage=round(float(rng.normal(13.8, 0.2)), 2),
    )


def seed(db: Session, days: int = 14, seed_value: int = 42, now: Optional[datetime] = None) -> Project:
    """Insert the demo project and its data; returns the project."""
    rng = np.random.default_rng(seed_value)
    now = now or _utcnow()

    project = Project(
        name=DEMO_PROJECT,
        description="Demonstration data for the OBD dashboard",
        status="Active",
        manager="Demo Manager",
        created_date=date.today(),
    )
    db.add(project)
    db.flush()

    vehicles: List[Vehicle] = []
    for make, model, year, vin in DEMO_VEHICLES:
        vehicle = Vehicle(
            project_id=project.id, name=f"{make} {model}", make=make, model=model, year=year, vin=vin,
        )
        db.add(vehicle)
        vehicles.append(vehicle)
    db.flush()

    for index, vehicle in enumerate(vehicles):
        test = DiagnosticTest(
            project_id=project.id,
            vehicle_id=vehicle.id,
            name=f"Baseline scan {index + 1}",
            status="Completed" if index % 2 == 0 else "Running",
            created_at=now - timedelta(days=index),
        )
        db.add(test)
        db.flush()

        for offset, (code, description, severity, status) in enumerate(DEMO_FAULTS[index::2]):
            db.add(FaultCode(
                vehicle_id=vehicle.id,
                test_id=test.id,
                code=code,
                description=description,
                severity=severity,
                status=status,
                created_at=now - timedelta(days=offset, hours=index),
            ))

        for step in range(days * 4):
            ts = now - timedelta(hours=6 * step)
            db.add(_live_row(rng, vehicle.id, ts))
            db.add(SensorData(
                vehicle_id=vehicle.id, sensor_type="rpm", value=float(rng.uniform(750, 3500)), timestamp=ts,
            ))

        for day in range(days):
            ts = now - timedelta(days=day)
            for data_type, low, high in (
                ("speed", 20, 90),
                ("rpm", 900, 3000),
                ("coolant_temp", 85, 95),
                ("fuel_efficiency", 12, 22),
            ):
                db.add(HistoricalData(
                    vehicle_id=vehicle.id,
                    data_type=data_type,
                    value=round(float(rng.uniform(low, high)), 2),
                    timestamp=ts,
                ))

        readiness = {
            column: str(rng.choice(_READINESS_CHOICES)) for column in MONITOR_COLUMNS.values()
        }
        db.add(OBDReadiness(vehicle_id=vehicle.id, module_id="7E8", timestamp=now, **readiness))
        for key, column in MONITOR_COLUMNS.items():
            db.add(OBDMonitor(
                vehicle_id=vehicle.id,
                monitor_name=key.replace("_", " ").title(),
                status=readiness[column],
                last_updated=now,
            ))

    crud.commit(db, "demo_seed_failed", project=DEMO_PROJECT)
    logger.info("demo_data_seeded", project_id=project.id, vehicles=len(vehicles), days=days)
    return project


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        prog="obd_dashboard.scripts.seed_demo_data",
        description="Insert a demo project with telemetry for local development",
    )
    parser.add_argument("--days", type=int, default=14, help="Days of telemetry to generate")
    parser.add_argument("--seed", type=int, default=42, help="RNG seed")
    args = parser.parse_args(argv)

    configure_logging(settings.log_level, settings.log_format)
    Base.metadata.create_all(bind=db_session.engine)

    db = db_session.SessionLocal()
    try:
        existing = db.query(Project).filter(Project.name == DEMO_PROJECT).first()
        if existing is not None:
            logger.info("demo_data_present", project_id=existing.id)
            return
        seed(db, days=args.days, seed_value=args.seed)
    finally:
        db.close()


if __name__ == "__main__":
    main()
