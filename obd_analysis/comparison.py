"""Pivot per-vehicle readings into a date-keyed comparison series.

The chart on the comparison page plots one line per vehicle; each point is
``{"timestamp": "2024-03-01", "<vehicle label>": value, ...}``.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

UNITS: Dict[str, str] = {
    "speed": "km/h",
    "rpm": "RPM",
    "throttle_position": "%",
    "engine_load": "%",
    "coolant_temp": "°C",
    "fuel_pressure": "kPa",
    "intake_pressure": "kPa",
    "maf": "g/s",
    "o2_voltage": "V",
    "fuel_level": "%",
    "battery_voltage": "V",
    "fuel_efficiency": "MPG",
    "dtc_count": "codes",
}

DIRECT_COLUMNS: tuple[str, ...] = (
    "speed",
    "rpm",
    "throttle_position",
    "engine_load",
    "coolant_temp",
    "fuel_pressure",
    "intake_pressure",
    "maf",
    "o2_voltage",
    "fuel_level",
    "battery_voltage",
)

HISTORICAL_TYPES: tuple[str, ...] = ("fuel_efficiency",)

COMPARISON_TYPES: tuple[str, ...] = DIRECT_COLUMNS + HISTORICAL_TYPES + ("dtc_count",)

MAX_COMPARISON_ROWS = 500


def unit_for(data_type: str) -> str:
    return UNITS.get(data_type, "")


def vehicle_label(make: Optional[str], model: Optional[str], year: Any) -> str:
    """Human label used as the series key, e.g. ``"Tata Nexon (2023)"``."""
    return f"{make} {model} ({year})"


def parse_vehicle_ids(raw: Optional[str]) -> List[int]:
    """Parse a comma-separated id list, ignoring blanks and non-integers."""
    if not raw:
        return []
    ids = []
    for part in raw.split(","):
        part = part.strip()
        if part.isdigit():
            ids.append(int(part))
    return ids


def pivot_by_date(
    rows: Iterable[Mapping[str, Any]], labels: Mapping[int, str],
) -> List[Dict[str, Any]]:
    """Collapse ``{vehicle_id, timestamp, value}`` rows into one point per day.

    Rows must already be in ascending time order; when a vehicle has several
    readings on the same day the later one wins.  Points keep the order in
    which their date first appeared.
    """
    frame = pd.DataFrame(list(rows), columns=["vehicle_id", "timestamp", "value"])
    if frame.empty:
        return []

    frame["date"] = pd.to_datetime(frame["timestamp"]).dt.strftime("%Y-%m-%d")
    frame["label"] = [
        labels.get(vid, f"Vehicle {vid}") for vid in frame["vehicle_id"]
    ]
    latest = frame.drop_duplicates(subset=["date", "label"], keep="last")

    points: Dict[str, Dict[str, Any]] = {}
    for date_key in frame["date"].drop_duplicates():
        points[date_key] = {"timestamp": date_key}
    for row in latest.itertuples(index=False):
        points[row.date][row.label] = float(row.value)
    return list(points.values())


def dtc_point(
    counts: Mapping[int, int], labels: Mapping[int, str],
) -> List[Dict[str, Any]]:
    """Single ``Current`` point holding each vehicle's fault-code count."""
    if not counts:
        return []
    point: Dict[str, Any] = {"timestamp": "Current"}
    for vehicle_id, count in counts.items():
        point[labels.get(vehicle_id, f"Vehicle {vehicle_id}")] = int(count)
    return [point]
