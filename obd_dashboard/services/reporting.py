"""Report data collection and rendering (CSV, plain text, PDF).

Report rows only store metadata; the content is collected from the
relational tables and rendered each time the report is viewed or
downloaded.  Fault codes and live data are limited to the report's date
range, inclusive of the whole ``date_to`` day.
"""

from __future__ import annotations

import csv
import io
import re
import unicodedata
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import structlog
from fpdf import FPDF
from sqlalchemy.orm import Session

from obd_analysis.live_data import LIVE_PARAMETERS
from obd_analysis.readiness import MONITOR_COLUMNS, summarize_readiness
from obd_dashboard.crud import end_of_day
from obd_dashboard.models_db import FaultCode, LiveData, OBDReadiness, Project, Report, Vehicle

logger = structlog.get_logger()

DEFAULT_RANGE_DAYS = 30
LIVE_DATA_LIMIT = 100
READINESS_LIMIT = 200

CONTENT_TYPES = {
    "csv": "text/csv",
    "txt": "text/plain",
    "pdf": "application/pdf",
}

_RULE = "=" * 59


def default_date_range(today: Optional[date] = None) -> Tuple[date, date]:
    """Last 30 days ending *today*."""
    today = today or date.today()
    return today - timedelta(days=DEFAULT_RANGE_DAYS), today


def report_name(project_name: str, report_type: str) -> str:
    return f"{project_name} {report_type[:1].upper()}{report_type[1:]} Report"


def report_filename(name: str, fmt: str, today: Optional[date] = None) -> str:
    today = today or date.today()
    stem = re.sub(r"\s+", "_", name)
    return f"{stem}_{today:%Y%m%d}.{fmt}"


def content_disposition(filename: str) -> str:
    """``attachment`` header value safe for any *filename*.

    Header values must be Latin-1, so the plain ``filename`` parameter gets
    an ASCII rendering and the exact name travels as RFC 5987 ``filename*``.
    """
    ascii_name = unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
    ascii_name = re.sub(r'[^\x20-\x7e]|["\\]', "_", ascii_name)
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename, safe='')}"


def _vehicle_name(row: Dict[str, Any]) -> str:
    name = row.get("vehicle_name") or f"{row.get('make') or ''} {row.get('model') or ''}".strip()
    return name or f"Vehicle ID {row.get('vehicle_id')}"


def _fmt(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


@dataclass
class ReportData:
    """Everything a renderer needs for one report."""

    project: Dict[str, Any]
    date_from: date
    date_to: date
    report_type: str
    vehicles: List[Dict[str, Any]] = field(default_factory=list)
    fault_codes: List[Dict[str, Any]] = field(default_factory=list)
    readiness: List[Dict[str, Any]] = field(default_factory=list)
    live_data: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def date_range(self) -> str:
        return f"{self.date_from.isoformat()} to {self.date_to.isoformat()}"


class ReportBuilder:
    """Collects report data for a project over a date range."""

    def __init__(self, db: Session):
        self.db = db

    def _range(self, date_from: Optional[date], date_to: Optional[date]) -> Tuple[datetime, datetime]:
        return datetime.combine(date_from, time.min), end_of_day(date_to)

    def vehicles(self, project_id: int) -> List[Dict[str, Any]]:
        rows = (
            self.db.query(Vehicle)
            .filter(Vehicle.project_id == project_id)
            .order_by(Vehicle.make, Vehicle.model, Vehicle.year)
            .all()
        )
        return [
            {
                "id": v.id,
                "name": v.name,
                "make": v.make,
                "model": v.model,
                "year": v.year,
                "vin": v.vin,
                "status": v.status,
            }
            for v in rows
        ]

    def fault_codes(self, project_id: int, date_from: date, date_to: date) -> List[Dict[str, Any]]:
        start, end = self._range(date_from, date_to)
        rows = (
            self.db.query(FaultCode, Vehicle.make, Vehicle.model, Vehicle.name)
            .join(Vehicle, Vehicle.id == FaultCode.vehicle_id)
            .filter(
                Vehicle.project_id == project_id,
                FaultCode.created_at >= start,
                FaultCode.created_at < end,
            )
            .order_by(FaultCode.created_at.desc(), FaultCode.id.desc())
            .all()
        )
        return [
            {
                "id": fc.id,
                "vehicle_id": fc.vehicle_id,
                "vehicle_name": name,
                "make": make,
                "model": model,
                "code": fc.code,
                "description": fc.description,
                "severity": fc.severity,
                "status": fc.status,
                "created_at": fc.created_at,
            }
            for fc, make, model, name in rows
        ]

    def readiness(self, project_id: int) -> List[Dict[str, Any]]:
        rows = (
            self.db.query(OBDReadiness, Vehicle.make, Vehicle.model, Vehicle.name)
            .join(Vehicle, Vehicle.id == OBDReadiness.vehicle_id)
            .filter(Vehicle.project_id == project_id)
            .order_by(OBDReadiness.timestamp.desc(), OBDReadiness.id.desc())
            .limit(READINESS_LIMIT)
            .all()
        )
        items = []
        for row, make, model, name in rows:
            columns = {column: getattr(row, column) for column in MONITOR_COLUMNS.values()}
            summary = summarize_readiness(columns)
            items.append({
                "vehicle_id": row.vehicle_id,
                "vehicle_name": name,
                "make": make,
                "model": model,
                "module_id": row.module_id,
                "readiness_percentage": summary.readiness_percentage,
                "status": (
                    f"{summary.completed_monitors}/{summary.applicable_monitors} monitors complete"
                ),
                "timestamp": row.timestamp,
            })
        return items

    def live_data(self, project_id: int, date_from: date, date_to: date) -> List[Dict[str, Any]]:
        start, end = self._range(date_from, date_to)
        rows = (
            self.db.query(LiveData, Vehicle.make, Vehicle.model, Vehicle.name)
            .join(Vehicle, Vehicle.id == LiveData.vehicle_id)
            .filter(
                Vehicle.project_id == project_id,
                LiveData.timestamp >= start,
                LiveData.timestamp < end,
            )
            .order_by(LiveData.timestamp.desc(), LiveData.id.desc())
            .limit(LIVE_DATA_LIMIT)
            .all()
        )
        items = []
        for row, make, model, name in rows:
            item = {
                "vehicle_id": row.vehicle_id,
                "vehicle_name": name,
                "make": make,
                "model": model,
                "timestamp": row.timestamp,
            }
            for column in LIVE_PARAMETERS:
                item[column] = getattr(row, column)
            items.append(item)
        return items

    def count_fault_codes(self, project_id: int, date_from: date, date_to: date) -> int:
        start, end = self._range(date_from, date_to)
        return (
            self.db.query(FaultCode)
            .join(Vehicle, Vehicle.id == FaultCode.vehicle_id)
            .filter(
                Vehicle.project_id == project_id,
                FaultCode.created_at >= start,
                FaultCode.created_at < end,
            )
            .count()
        )

    def collect(self, report: Report, project: Project) -> ReportData:
        """Gather the sections enabled by *report*'s include flags."""
        default_from, default_to = default_date_range(report.created_at.date() if report.created_at else None)
        date_from = report.date_from or default_from
        date_to = report.date_to or default_to

        data = ReportData(
            project={
                "id": project.id,
                "name": project.name,
                "description": project.description,
                "manager": project.manager,
                "created_at": project.created_at,
            },
            date_from=date_from,
            date_to=date_to,
            report_type=report.report_type,
        )
        if report.include_vehicles:
            data.vehicles = self.vehicles(project.id)
        if report.include_fault_codes:
            data.fault_codes = self.fault_codes(project.id, date_from, date_to)
        if report.include_readiness:
            data.readiness = self.readiness(project.id)
        if report.include_live_data:
            data.live_data = self.live_data(project.id, date_from, date_to)

        logger.debug(
            "report_data_collected",
            report_id=report.id,
            vehicles=len(data.vehicles),
            fault_codes=len(data.fault_codes),
            readiness=len(data.readiness),
            live_data=len(data.live_data),
        )
        return data


# ---------------------------------------------------------------------------
# Renderers
# ---------------------------------------------------------------------------


def render_csv(data: ReportData, generated_at: datetime) -> str:
    """Sectioned CSV: project header, then one block per included section."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")

    writer.writerow(["Project", "Date Generated", "Date Range"])
    writer.writerow([data.project["name"], generated_at.isoformat(), data.date_range])

    if data.vehicles:
        writer.writerow([])
        writer.writerow(["Vehicles"])
        writer.writerow(["ID", "Make", "Model", "Year", "VIN"])
        for v in data.vehicles:
            writer.writerow([v["id"], _fmt(v["make"]), _fmt(v["model"]), _fmt(v["year"]), _fmt(v["vin"])])

    if data.fault_codes:
        writer.writerow([])
        writer.writerow(["Fault Codes"])
        writer.writerow(["Vehicle", "Code", "Description", "Severity", "Status", "Reported"])
        for fc in data.fault_codes:
            writer.writerow([
                _vehicle_name(fc), fc["code"], _fmt(fc["description"]),
                fc["severity"], fc["status"], _fmt(fc["created_at"]),
            ])

    if data.readiness:
        writer.writerow([])
        writer.writerow(["OBD Readiness"])
        writer.writerow(["Vehicle", "Module", "Readiness %", "Status", "Timestamp"])
        for item in data.readiness:
            writer.writerow([
                _vehicle_name(item), _fmt(item["module_id"]), item["readiness_percentage"],
                item["status"], _fmt(item["timestamp"]),
            ])

    if data.live_data:
        writer.writerow([])
        writer.writerow(["Live Data"])
        writer.writerow(["Vehicle", "Timestamp", *LIVE_PARAMETERS])
        for item in data.live_data:
            writer.writerow([
                _vehicle_name(item), _fmt(item["timestamp"]),
                *(_fmt(item[column]) for column in LIVE_PARAMETERS),
            ])

    return buffer.getvalue()


def render_text(data: ReportData, generated_at: datetime) -> str:
    """Plain-text report laid out in titled sections."""
    project = data.project
    lines: List[str] = [
        _RULE,
        f"{project['name']} Report".center(len(_RULE)).rstrip(),
        _RULE,
        "",
        "REPORT INFORMATION",
        "------------------",
        f"Date Generated: {generated_at:%Y-%m-%d %H:%M}",
        f"Report Type: {data.report_type}",
        f"Date Range: {data.date_range}",
        "",
        "PROJECT INFORMATION",
        "-------------------",
        f"Project Name: {project['name']}",
        f"Description: {project['description'] or 'N/A'}",
        f"Manager: {project['manager'] or 'N/A'}",
        "",
        "VEHICLES SUMMARY",
        "----------------",
        f"Total Vehicles: {len(data.vehicles)}",
        "",
    ]
    for i, v in enumerate(data.vehicles, start=1):
        lines += [
            f"[{i}] {_fmt(v['make'])} {_fmt(v['model'])} ({v['year'] or 'N/A'})",
            f"    VIN: {v['vin'] or 'N/A'}",
            f"    Status: {v['status'] or 'N/A'}",
            "",
        ]

    lines += [
        "FAULT CODES SUMMARY",
        "-------------------",
        f"Total Fault Codes: {len(data.fault_codes)}",
        "",
    ]
    for i, fc in enumerate(data.fault_codes, start=1):
        lines += [
            f"[{i}] {fc['code']}: {fc['description'] or 'N/A'}",
            f"    Vehicle: {_vehicle_name(fc)}",
            f"    Severity: {fc['severity']}",
            f"    Status: {fc['status']}",
            "",
        ]

    if data.readiness:
        lines += ["OBD READINESS", "-------------"]
        for item in data.readiness:
            lines.append(
                f"{_vehicle_name(item)}: {item['readiness_percentage']}% "
                f"({item['status']}, {_fmt(item['timestamp'])})"
            )
        lines.append("")

    if data.live_data:
        lines += [
            "LIVE DATA SUMMARY",
            "-----------------",
            f"Total Records: {len(data.live_data)}",
            "",
            "Sample of data (limited to 10 records):",
        ]
        for i, item in enumerate(data.live_data[:10], start=1):
            readings = ", ".join(
                f"{column}={item[column]}" for column in LIVE_PARAMETERS if item[column] is not None
            )
            lines += [
                f"[{i}] {_vehicle_name(item)} @ {_fmt(item['timestamp'])}",
                f"    {readings or 'no readings'}",
                "",
            ]

    lines += [_RULE, "End of report", _RULE]
    return "\n".join(lines) + "\n"


def _latin1(text: Any) -> str:
    # Core PDF fonts only cover Latin-1.
    return _fmt(text).encode("latin-1", "replace").decode("latin-1")


class _ReportPDF(FPDF):
    def __init__(self, title: str):
        super().__init__()
        self._report_title = title

    def header(self) -> None:
        self.set_font("Helvetica", "B", 9)
        self.cell(0, 6, _latin1(self._report_title), new_x="LMARGIN", new_y="NEXT", align="R")
        self.ln(2)

    def footer(self) -> None:
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.cell(0, 10, f"Page {self.page_no()}", align="C")


def _section(pdf: FPDF, title: str) -> None:
    pdf.ln(3)
    pdf.set_fill_color(240, 240, 240)
    pdf.set_font("Helvetica", "B", 11)
    pdf.cell(0, 7, f"  {title}", new_x="LMARGIN", new_y="NEXT", fill=True)
    pdf.set_font("Helvetica", "", 9)


def _table(pdf: FPDF, widths: List[int], header: List[str], rows: List[List[Any]]) -> None:
    pdf.set_font("Helvetica", "B", 9)
    for width, title in zip(widths, header):
        pdf.cell(width, 6, title, border="B")
    pdf.ln()
    pdf.set_font("Helvetica", "", 8)
    for row in rows:
        for width, value in zip(widths, row):
            text = _latin1(value)
            # Trim to roughly fit the column at 8 pt.
            limit = max(4, width // 2)
            if len(text) > limit:
                text = text[: limit - 1] + "~"
            pdf.cell(width, 5, text)
        pdf.ln()


def render_pdf(data: ReportData, generated_at: datetime) -> bytes:
    """Render *data* as a PDF document and return its bytes."""
    project = data.project
    pdf = _ReportPDF(f"{project['name']} Report")
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()

    pdf.set_font("Helvetica", "B", 18)
    pdf.cell(0, 10, _latin1(f"{project['name']} Report"), new_x="LMARGIN", new_y="NEXT", align="C")
    pdf.set_font("Helvetica", "", 10)
    pdf.cell(0, 6, _latin1(f"Report type: {data.report_type}"), new_x="LMARGIN", new_y="NEXT", align="C")
    pdf.cell(0, 6, f"Date range: {data.date_range}", new_x="LMARGIN", new_y="NEXT", align="C")
    pdf.cell(0, 6, f"Generated: {generated_at:%Y-%m-%d %H:%M}", new_x="LMARGIN", new_y="NEXT", align="C")

    _section(pdf, "Project Information")
    pdf.cell(0, 5, _latin1(f"Name: {project['name']}"), new_x="LMARGIN", new_y="NEXT")
    pdf.cell(0, 5, _latin1(f"Manager: {project['manager'] or 'N/A'}"), new_x="LMARGIN", new_y="NEXT")
    pdf.multi_cell(0, 5, _latin1(f"Description: {project['description'] or 'N/A'}"))

    _section(pdf, f"Vehicles ({len(data.vehicles)})")
    if data.vehicles:
        _table(
            pdf,
            [15, 35, 40, 20, 60],
            ["ID", "Make", "Model", "Year", "VIN"],
            [[v["id"], v["make"], v["model"], v["year"], v["vin"]] for v in data.vehicles],
        )

    _section(pdf, f"Fault Codes ({len(data.fault_codes)})")
    if data.fault_codes:
        _table(
            pdf,
            [40, 20, 70, 25, 25],
            ["Vehicle", "Code", "Description", "Severity", "Status"],
            [
                [_vehicle_name(fc), fc["code"], fc["description"], fc["severity"], fc["status"]]
                for fc in data.fault_codes
            ],
        )

    if data.readiness:
        _section(pdf, "OBD Readiness")
        _table(
            pdf,
            [50, 20, 25, 85],
            ["Vehicle", "Module", "Ready %", "Status"],
            [
                [_vehicle_name(r), r["module_id"], r["readiness_percentage"], r["status"]]
                for r in data.readiness
            ],
        )

    if data.live_data:
        _section(pdf, f"Live Data ({len(data.live_data)} records)")
        _table(
            pdf,
            [45, 45, 20, 20, 25, 25],
            ["Vehicle", "Timestamp", "Speed", "RPM", "Coolant", "Battery"],
            [
                [
                    _vehicle_name(item), item["timestamp"], item["speed"], item["rpm"],
                    item["coolant_temp"], item["battery_voltage"],
                ]
                for item in data.live_data
            ],
        )

    return bytes(pdf.output())


RENDERERS = {
    "csv": render_csv,
    "txt": render_text,
    "pdf": render_pdf,
}


def render_report(data: ReportData, fmt: str, generated_at: Optional[datetime] = None) -> bytes:
    """Render *data* in *fmt* and return the encoded body."""
    generated_at = generated_at or datetime.now()
    body = RENDERERS[fmt](data, generated_at)
    return body if isinstance(body, bytes) else body.encode("utf-8")
