"""Gauge definitions for the live-data dashboard.

Each gauge pairs the latest live reading with a short history series taken
from :func:`obd_analysis.trends.group_history`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from obd_analysis.trends import HistoryPoint

CHART_POINTS = 10


@dataclass(frozen=True)
class GaugeSpec:
    """Static description of one dashboard gauge."""

    id: str
    label: str
    color: str
    min: float
    max: float
    charted: bool = True


GAUGES: tuple[GaugeSpec, ...] = (
    GaugeSpec("speed", "Speed", "#8884d8", 0, 200),
    GaugeSpec("rpm", "RPM", "#82ca9d", 0, 8000),
    GaugeSpec("throttle_position", "Throttle Position", "#ffc658", 0, 100),
    GaugeSpec("engine_load", "Engine Load", "#ff8042", 0, 100),
    GaugeSpec("coolant_temp", "Coolant Temperature", "#00C49F", 0, 150),
    GaugeSpec("battery_voltage", "Battery Voltage", "#FFBB28", 0, 20, charted=False),
)

LIVE_PARAMETERS: tuple[str, ...] = (
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


def chart_points(
    series: Sequence[HistoryPoint], limit: int = CHART_POINTS,
) -> List[Dict[str, Any]]:
    """Return the last *limit* points of *series* as chart dicts."""
    return [
        {"timestamp": point.timestamp.isoformat(), "value": point.value}
        for point in list(series)[-limit:]
    ]


def build_gauges(
    latest: Mapping[str, Optional[float]],
    history: Mapping[str, Sequence[HistoryPoint]],
) -> List[Dict[str, Any]]:
    """Build gauge payloads from the latest live row and grouped history."""
    gauges = []
    for gauge in GAUGES:
        series = history.get(gauge.id, ()) if gauge.charted else ()
        gauges.append({
            "id": gauge.id,
            "label": gauge.label,
            "value": latest.get(gauge.id),
            "color": gauge.color,
            "range": {"min": gauge.min, "max": gauge.max},
            "chart_data": chart_points(series),
        })
    return gauges
