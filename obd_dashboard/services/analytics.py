"""Aggregate queries behind the dashboard, analytics and project pages.

Each public method issues a handful of grouped SQL queries and shapes the
result into the JSON payload the matching endpoint returns.  Pure data
munging (trend fitting, readiness scoring, pivoting) is delegated to
:mod:`obd_analysis`.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd
from sqlalchemy import distinct, func, select
from sqlalchemy.orm import Session

from obd_analysis.comparison import (
    COMPARISON_TYPES,
    DIRECT_COLUMNS,
    MAX_COMPARISON_ROWS,
    dtc_point,
    pivot_by_date,
    unit_for,
    vehicle_label,
)
from obd_analysis.fault_codes import categorize_code, count_categories, order_by_severity
from obd_analysis.live_data import LIVE_PARAMETERS, build_gauges
from obd_analysis.readiness import MONITOR_COLUMNS, summarize_readiness
from obd_analysis.scoring import score_project
from obd_analysis.trends import TRENDED_DATA_TYPES, compute_trends, group_history
from obd_dashboard.models_db import (
    DiagnosticTest,
    FaultCode,
    HistoricalData,
    LiveData,
    OBDMonitor,
    OBDReadiness,
    Project,
    Report,
    SensorData,
    Vehicle,
    _utcnow,
)

TREND_HISTORY_ROWS = 100
RPM_HISTORY_ROWS = 30
ACTIVE_WINDOW_DAYS = 30

TIME_RANGE_OFFSETS = {
    "week": pd.DateOffset(weeks=1),
    "month": pd.DateOffset(months=1),
    "year": pd.DateOffset(years=1),
}


class UnknownComparisonTypeError(ValueError):
    """Raised for a vehicle-comparison ``data_type`` with no data source."""


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _as_date_str(value: Any) -> Optional[str]:
    # func.date() yields a str on SQLite and a date on PostgreSQL.
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()[:10]
    return str(value)


def range_start(time_range: str, today: Optional[date] = None) -> Optional[date]:
    """First ``created_date`` included by *time_range*, or ``None`` for all."""
    offset = TIME_RANGE_OFFSETS.get(time_range)
    if offset is None:
        return None
    today = today or date.today()
    return (pd.Timestamp(today) - offset).date()


def vehicle_info(vehicle: Vehicle) -> Dict[str, Any]:
    return {
        "id": vehicle.id,
        "name": vehicle.name,
        "make": vehicle.make,
        "model": vehicle.model,
        "year": vehicle.year,
        "vin": vehicle.vin,
    }


def live_row(row: LiveData) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"timestamp": _iso(row.timestamp)}
    for column in LIVE_PARAMETERS:
        payload[column] = getattr(row, column)
    return payload


class AnalyticsService:
    """Read-only aggregate queries over a single DB session."""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    def dashboard_stats(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or _utcnow()
        db = self.db

        active_since = now - timedelta(days=ACTIVE_WINDOW_DAYS)
        active_vehicles = (
            db.query(func.count(distinct(SensorData.vehicle_id)))
            .filter(SensorData.timestamp > active_since)
            .scalar()
        )

        severity_rows = (
            db.query(FaultCode.severity, func.count(FaultCode.id).label("count"))
            .group_by(FaultCode.severity)
            .order_by(func.count(FaultCode.id).desc())
            .all()
        )
        make_rows = (
            db.query(Vehicle.make, func.count(Vehicle.id).label("count"))
            .group_by(Vehicle.make)
            .order_by(func.count(Vehicle.id).desc())
            .limit(5)
            .all()
        )
        recent_rows = (
            db.query(FaultCode.code, FaultCode.created_at, Vehicle.make, Vehicle.model)
            .join(Vehicle, Vehicle.id == FaultCode.vehicle_id)
            .order_by(FaultCode.created_at.desc(), FaultCode.id.desc())
            .limit(10)
            .all()
        )
        categories = count_categories(code for (code,) in db.query(FaultCode.code).all())

        return {
            "vehicles_count": db.query(func.count(Vehicle.id)).scalar(),
            "projects_count": db.query(func.count(Project.id)).scalar(),
            "fault_codes_count": db.query(func.count(FaultCode.id)).scalar(),
            "active_vehicles_count": active_vehicles,
            "severity_distribution": [
                {"severity": severity, "count": count} for severity, count in severity_rows
            ],
            "vehicles_by_make": [{"make": make, "count": count} for make, count in make_rows],
            "recent_activity": [
                {
                    "type": "fault_code",
                    "vehicle": f"{make} {model}",
                    "code": code,
                    "timestamp": _iso(created_at),
                }
                for code, created_at, make, model in recent_rows
            ],
            "fault_code_categories": [
                {"category": category, "count": count}
                for category, count in sorted(categories.items(), key=lambda kv: kv[1], reverse=True)
            ],
        }

    def data_page(self, data_type: str, limit: int, page: int) -> Dict[str, Any]:
        """One page of sensor readings, daily sensor aggregates or fault codes."""
        db = self.db
        offset = (page - 1) * limit

        if data_type == "historical":
            day = func.date(SensorData.timestamp)
            rows = (
                db.query(
                    day.label("date"),
                    func.avg(SensorData.value),
                    func.max(SensorData.value),
                    func.min(SensorData.value),
                    func.count(SensorData.id),
                )
                .group_by(day)
                .order_by(day.desc())
                .limit(limit)
                .offset(offset)
                .all()
            )
            data = [
                {
                    "date": _as_date_str(d),
                    "avg_value": float(avg) if avg is not None else None,
                    "max_value": mx,
                    "min_value": mn,
                    "count": count,
                }
                for d, avg, mx, mn, count in rows
            ]
            total = db.query(func.count(distinct(day))).scalar()
        elif data_type == "faults":
            faults = (
                db.query(FaultCode)
                .order_by(FaultCode.created_at.desc(), FaultCode.id.desc())
                .limit(limit)
                .offset(offset)
                .all()
            )
            data = [
                {
                    "id": f.id,
                    "vehicle_id": f.vehicle_id,
                    "code": f.code,
                    "description": f.description,
                    "severity": f.severity,
                    "status": f.status,
                    "category": categorize_code(f.code),
                    "created_at": _iso(f.created_at),
                }
                for f in faults
            ]
            total = db.query(func.count(FaultCode.id)).scalar()
        else:
            readings = (
                db.query(SensorData)
                .order_by(SensorData.timestamp.desc(), SensorData.id.desc())
                .limit(limit)
                .offset(offset)
                .all()
            )
            data = [
                {
                    "id": r.id,
                    "vehicle_id": r.vehicle_id,
                    "sensor_type": r.sensor_type,
                    "value": r.value,
                    "timestamp": _iso(r.timestamp),
                }
                for r in readings
            ]
            total = db.query(func.count(SensorData.id)).scalar()

        total = total or 0
        return {
            "data": data,
            "pagination": {
                "total": total,
                "page": page,
                "limit": limit,
                "pages": math.ceil(total / limit) if limit else 0,
            },
        }

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def _counts_by_project(self, query) -> Dict[int, int]:
        return {pid: count for pid, count in query.all() if pid is not None}

    def project_analysis(self, time_range: str = "all", today: Optional[date] = None) -> Dict[str, Any]:
        db = self.db
        start = range_start(time_range, today)

        projects_q = db.query(Project)
        if start is not None:
            projects_q = projects_q.filter(Project.created_date >= start)
        projects = projects_q.order_by(Project.id).all()

        tests = self._counts_by_project(
            db.query(DiagnosticTest.project_id, func.count(DiagnosticTest.id))
            .group_by(DiagnosticTest.project_id)
        )
        completed = self._counts_by_project(
            db.query(DiagnosticTest.project_id, func.count(DiagnosticTest.id))
            .filter(DiagnosticTest.status == "Completed")
            .group_by(DiagnosticTest.project_id)
        )
        faults = self._counts_by_project(
            db.query(DiagnosticTest.project_id, func.count(distinct(FaultCode.id)))
            .join(FaultCode, FaultCode.test_id == DiagnosticTest.id)
            .group_by(DiagnosticTest.project_id)
        )
        reports = self._counts_by_project(
            db.query(Report.project_id, func.count(Report.id)).group_by(Report.project_id)
        )

        status_counts: Dict[str, int] = {}
        manager_counts: Dict[str, int] = {}
        created_counts: Dict[date, int] = {}
        for project in projects:
            status_counts[project.status] = status_counts.get(project.status, 0) + 1
            manager_counts[project.manager] = manager_counts.get(project.manager, 0) + 1
            if project.created_date is not None:
                created_counts[project.created_date] = created_counts.get(project.created_date, 0) + 1

        comparison = [
            {
                "name": p.name,
                "tests": tests.get(p.id, 0),
                "faults": faults.get(p.id, 0),
                "reports": reports.get(p.id, 0),
            }
            for p in projects
        ]
        comparison.sort(key=lambda row: row["tests"], reverse=True)

        performance = []
        for p in projects:
            scores = score_project(
                tests.get(p.id, 0), completed.get(p.id, 0), faults.get(p.id, 0), reports.get(p.id, 0),
            )
            performance.append({"name": p.name, **scores.to_dict()})
        performance.sort(key=lambda row: row["performance"], reverse=True)

        return {
            "status_distribution": [
                {"name": name, "value": value} for name, value in status_counts.items()
            ],
            "projects_by_manager": [
                {"name": name, "value": value}
                for name, value in sorted(manager_counts.items(), key=lambda kv: kv[1], reverse=True)[:10]
            ],
            "projects_over_time": [
                {"date": day.isoformat(), "count": count}
                for day, count in sorted(created_counts.items())
            ],
            "tests_by_project": [
                {"name": row["name"], "tests": row["tests"]} for row in comparison[:10]
            ],
            "project_comparison": comparison[:10],
            "project_performance": performance[:6],
        }

    # ------------------------------------------------------------------
    # Fault codes
    # ------------------------------------------------------------------

    def fault_code_analytics(
        self, vehicle_ids: Sequence[int] = (), project_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        db = self.db

        def scoped(query):
            if vehicle_ids:
                return query.filter(FaultCode.vehicle_id.in_(list(vehicle_ids)))
            if project_id is not None:
                project_vehicles = select(Vehicle.id).where(Vehicle.project_id == project_id)
                return query.filter(FaultCode.vehicle_id.in_(project_vehicles))
            return query

        count = func.count(FaultCode.id)
        severity_rows = scoped(
            db.query(FaultCode.severity, count).group_by(FaultCode.severity)
        ).all()
        top_rows = scoped(
            db.query(FaultCode.code, FaultCode.description, count.label("count"))
            .group_by(FaultCode.code, FaultCode.description)
        ).order_by(count.desc(), FaultCode.code).limit(10).all()
        make_rows = scoped(
            db.query(Vehicle.make, count)
            .select_from(FaultCode)
            .join(Vehicle, Vehicle.id == FaultCode.vehicle_id)
            .group_by(Vehicle.make)
        ).order_by(count.desc()).all()
        status_rows = scoped(
            db.query(FaultCode.status, count).group_by(FaultCode.status)
        ).order_by(count.desc()).all()

        return {
            "by_severity": order_by_severity(
                [{"severity": s, "count": c} for s, c in severity_rows]
            ),
            "top_fault_codes": [
                {"code": code, "description": desc, "count": c} for code, desc, c in top_rows
            ],
            "by_vehicle_make": [{"make": make, "count": c} for make, c in make_rows],
            "by_status": [{"status": s, "count": c} for s, c in status_rows],
        }

    # ------------------------------------------------------------------
    # Live data
    # ------------------------------------------------------------------

    def live_data_snapshot(self, vehicle_id: int) -> Optional[Dict[str, Any]]:
        """Latest reading, gauges and trends; ``None`` when there is no live data."""
        db = self.db
        vehicle = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
        latest = (
            db.query(LiveData)
            .filter(LiveData.vehicle_id == vehicle_id)
            .order_by(LiveData.timestamp.desc(), LiveData.id.desc())
            .first()
        )
        if vehicle is None or latest is None:
            return None

        history_rows = (
            db.query(HistoricalData.data_type, HistoricalData.value, HistoricalData.timestamp)
            .filter(
                HistoricalData.vehicle_id == vehicle_id,
                HistoricalData.data_type.in_(TRENDED_DATA_TYPES),
            )
            .order_by(HistoricalData.timestamp.desc())
            .limit(TREND_HISTORY_ROWS)
            .all()
        )
        grouped = group_history(row._asdict() for row in history_rows)
        current = live_row(latest)

        return {
            "vehicle_info": vehicle_info(vehicle),
            "live_data": current,
            "gauge_data": build_gauges(current, grouped),
            "trends": {name: trend.to_dict() for name, trend in compute_trends(grouped).items()},
        }

    def live_data_history(self, vehicle_id: int) -> Dict[str, Any]:
        db = self.db
        rpm_rows = (
            db.query(LiveData.timestamp, LiveData.rpm)
            .filter(LiveData.vehicle_id == vehicle_id, LiveData.rpm.isnot(None))
            .order_by(LiveData.timestamp.desc())
            .limit(RPM_HISTORY_ROWS)
            .all()
        )
        rpm_rows.reverse()

        counts = db.query(
            *[func.count(getattr(LiveData, column)) for column in LIVE_PARAMETERS]
        ).filter(LiveData.vehicle_id == vehicle_id).one()
        distribution = [
            {"parameter": column, "count": count}
            for column, count in zip(LIVE_PARAMETERS, counts)
            if count
        ]
        distribution.sort(key=lambda row: row["count"], reverse=True)

        return {
            "vehicle_id": vehicle_id,
            "historical_data": [
                {"timestamp": _iso(ts), "value": value} for ts, value in rpm_rows
            ],
            "parameter_distribution": distribution[:10],
        }

    # ------------------------------------------------------------------
    # Readiness
    # ------------------------------------------------------------------

    def obd_readiness(self, vehicle_id: int) -> Optional[Dict[str, Any]]:
        """Latest readiness summary; ``None`` when the vehicle has no rows."""
        row = (
            self.db.query(OBDReadiness)
            .filter(OBDReadiness.vehicle_id == vehicle_id)
            .order_by(OBDReadiness.timestamp.desc(), OBDReadiness.id.desc())
            .first()
        )
        if row is None:
            return None
        columns = {column: getattr(row, column) for column in MONITOR_COLUMNS.values()}
        columns["module_id"] = row.module_id
        summary = summarize_readiness(columns)
        return {
            "vehicle_id": vehicle_id,
            "timestamp": _iso(row.timestamp),
            **summary.to_dict(),
        }

    def obd2_readiness(self, vehicle_id: int) -> Optional[Dict[str, Any]]:
        """Vehicle info plus its ten most recent monitor rows."""
        vehicle = self.db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
        if vehicle is None:
            return None
        monitors = (
            self.db.query(OBDMonitor)
            .filter(OBDMonitor.vehicle_id == vehicle_id)
            .order_by(OBDMonitor.last_updated.desc(), OBDMonitor.id.desc())
            .limit(10)
            .all()
        )
        return {
            "vehicle_info": vehicle_info(vehicle),
            "monitors": [
                {
                    "name": m.monitor_name,
                    "status": m.status or "Not Available",
                    "last_updated": _iso(m.last_updated),
                }
                for m in monitors
            ],
        }

    # ------------------------------------------------------------------
    # Vehicle comparison
    # ------------------------------------------------------------------

    def vehicle_comparison(self, vehicle_ids: Sequence[int], data_type: str = "speed") -> Dict[str, Any]:
        """Per-day series for each vehicle.

        Raises:
            UnknownComparisonTypeError: If *data_type* is not comparable.
        """
        if data_type not in COMPARISON_TYPES:
            raise UnknownComparisonTypeError(f"Unsupported data type: {data_type}")

        db = self.db
        ids = list(vehicle_ids)
        vehicles = db.query(Vehicle).filter(Vehicle.id.in_(ids)).all()
        by_id = {v.id: v for v in vehicles}
        labels = {
            vid: vehicle_label(by_id[vid].make, by_id[vid].model, by_id[vid].year)
            for vid in ids if vid in by_id
        }

        data: List[Dict[str, Any]]
        if data_type in DIRECT_COLUMNS:
            column = getattr(LiveData, data_type)
            rows = (
                db.query(LiveData.vehicle_id, LiveData.timestamp, column.label("value"))
                .filter(LiveData.vehicle_id.in_(ids), column.isnot(None))
                .order_by(LiveData.timestamp, LiveData.id)
                .limit(MAX_COMPARISON_ROWS)
                .all()
            )
            data = pivot_by_date((row._asdict() for row in rows), labels)
        elif data_type == "dtc_count":
            counts: List[Tuple[int, int]] = (
                db.query(FaultCode.vehicle_id, func.count(FaultCode.id))
                .filter(FaultCode.vehicle_id.in_(ids))
                .group_by(FaultCode.vehicle_id)
                .all()
            )
            data = dtc_point(dict(counts), labels)
        else:
            rows = (
                db.query(HistoricalData.vehicle_id, HistoricalData.timestamp, HistoricalData.value)
                .filter(
                    HistoricalData.vehicle_id.in_(ids),
                    HistoricalData.data_type == data_type,
                    HistoricalData.value.isnot(None),
                )
                .order_by(HistoricalData.timestamp, HistoricalData.id)
                .limit(MAX_COMPARISON_ROWS)
                .all()
            )
            data = pivot_by_date((row._asdict() for row in rows), labels)

        return {
            "data": data,
            "vehicles": list(labels.values()),
            "unit": unit_for(data_type),
        }
