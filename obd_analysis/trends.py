"""Least-squares trend detection over historical telemetry.

Historical readings are grouped by ``data_type``, ordered in time, and a
first-degree polynomial is fitted against the sample index (``0..n-1``).
The slope decides the direction; the first and last readings give the
percentage change shown next to each gauge.

The fit is computed with numpy.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Literal, Mapping, Sequence

import numpy as np

TrendDirection = Literal["up", "down", "stable"]

SLOPE_THRESHOLD = 0.01

TRENDED_DATA_TYPES: tuple[str, ...] = (
    "speed",
    "rpm",
    "throttle_position",
    "engine_load",
    "coolant_temp",
    "fuel_efficiency",
)


@dataclass(frozen=True)
class HistoryPoint:
    """A single historical reading."""

    timestamp: datetime
    value: float


@dataclass(frozen=True)
class Trend:
    """Direction and magnitude of change for one data type."""

    direction: TrendDirection
    percentage: int
    slope: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def fit_slope(values: Sequence[float]) -> float:
    """Return the least-squares slope of *values* against their index.

    Raises:
        ValueError: If fewer than two values are given.
    """
    if len(values) < 2:
        raise ValueError("At least two values are required to fit a slope")
    x = np.arange(len(values), dtype=float)
    y = np.asarray(values, dtype=float)
    slope, _intercept = np.polyfit(x, y, 1)
    return float(slope)


def percentage_change(first: float, last: float) -> int:
    """Absolute rounded percentage change from *first* to *last*.

    Returns 0 when *first* is zero.
    """
    if first == 0:
        return 0
    return abs(_round_half_up((last - first) / first * 100))


def classify_slope(slope: float, threshold: float = SLOPE_THRESHOLD) -> TrendDirection:
    if slope > threshold:
        return "up"
    if slope < -threshold:
        return "down"
    return "stable"


def compute_trend(points: Sequence[HistoryPoint]) -> Trend:
    """Fit a trend over *points* (any order; sorted by timestamp here)."""
    ordered = sorted(points, key=lambda p: p.timestamp)
    values = [p.value for p in ordered]
    slope = fit_slope(values)
    return Trend(
        direction=classify_slope(slope),
        percentage=percentage_change(values[0], values[-1]),
        slope=slope,
    )


def group_history(
    rows: Iterable[Mapping[str, Any]],
) -> Dict[str, List[HistoryPoint]]:
    """Group ``{data_type, value, timestamp}`` rows into time-ordered series.

    Rows with a ``None`` value are skipped.
    """
    grouped: Dict[str, List[HistoryPoint]] = {}
    for row in rows:
        if row.get("value") is None:
            continue
        grouped.setdefault(row["data_type"], []).append(
            HistoryPoint(timestamp=row["timestamp"], value=float(row["value"]))
        )
    for series in grouped.values():
        series.sort(key=lambda p: p.timestamp)
    return grouped


def compute_trends(grouped: Mapping[str, Sequence[HistoryPoint]]) -> Dict[str, Trend]:
    """Compute a :class:`Trend` for every series with at least two points."""
    return {
        data_type: compute_trend(points)
        for data_type, points in grouped.items()
        if len(points) >= 2
    }
