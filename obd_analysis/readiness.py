"""Summarise OBD-II readiness monitor rows.

A readiness row stores free-text status strings per monitor column.  Each
value is normalised to one of four states; the readiness percentage counts
only monitors that apply to the vehicle.

==================================  =====================================
Monitor key                         Source column
==================================  =====================================
misfire_monitor                     misfire_monitoring
fuel_system_monitor                 fuel_system_monitoring
component_monitor                   comprehensive_component_monitoring
catalyst_monitor                    catalyst_monitoring
heated_catalyst_monitor             heated_catalyst_monitoring
evaporative_system_monitor          evaporative_system_monitoring
secondary_air_monitor               secondary_air_system_monitoring
oxygen_sensor_monitor               oxygen_sensor_monitoring
oxygen_sensor_heater_monitor        oxygen_sensor_heater_monitoring
egr_system_monitor                  egr_system_monitoring
==================================  =====================================
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Literal, Mapping, Optional

MonitorStatus = Literal["COMPLETE", "INCOMPLETE", "NOT_APPLICABLE", "UNSUPPORTED"]

MONITOR_COLUMNS: Dict[str, str] = {
    "misfire_monitor": "misfire_monitoring",
    "fuel_system_monitor": "fuel_system_monitoring",
    "component_monitor": "comprehensive_component_monitoring",
    "catalyst_monitor": "catalyst_monitoring",
    "heated_catalyst_monitor": "heated_catalyst_monitoring",
    "evaporative_system_monitor": "evaporative_system_monitoring",
    "secondary_air_monitor": "secondary_air_system_monitoring",
    "oxygen_sensor_monitor": "oxygen_sensor_monitoring",
    "oxygen_sensor_heater_monitor": "oxygen_sensor_heater_monitoring",
    "egr_system_monitor": "egr_system_monitoring",
}

_STATUS_ALIASES: Dict[str, MonitorStatus] = {
    "complete": "COMPLETE",
    "completed": "COMPLETE",
    "incomplete": "INCOMPLETE",
    "not ready": "INCOMPLETE",
    "not applicable": "NOT_APPLICABLE",
    "na": "NOT_APPLICABLE",
}

_NON_APPLICABLE = ("NOT_APPLICABLE", "UNSUPPORTED")


@dataclass(frozen=True)
class ReadinessSummary:
    """Normalised monitor states plus the derived readiness figures."""

    module_id: str
    monitor_status: Dict[str, MonitorStatus]
    readiness_percentage: int
    completed_monitors: int
    applicable_monitors: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def to_standard_status(value: Optional[str]) -> MonitorStatus:
    """Map a free-text monitor value to a :data:`MonitorStatus`.

    Matching ignores case and surrounding whitespace; scanner exports often
    pad cells, and ``" Complete "`` still means complete.
    """
    if not value:
        return "UNSUPPORTED"
    return _STATUS_ALIASES.get(value.strip().lower(), "UNSUPPORTED")


def summarize_readiness(row: Mapping[str, Any]) -> ReadinessSummary:
    """Summarise one ``obd_readiness`` row given as a column mapping."""
    monitor_status: Dict[str, MonitorStatus] = {
        key: to_standard_status(row.get(column))
        for key, column in MONITOR_COLUMNS.items()
    }

    applicable = [s for s in monitor_status.values() if s not in _NON_APPLICABLE]
    completed = sum(1 for s in applicable if s == "COMPLETE")
    percentage = (
        math.floor(completed / len(applicable) * 100 + 0.5) if applicable else 0
    )

    return ReadinessSummary(
        module_id=row.get("module_id") or "",
        monitor_status=monitor_status,
        readiness_percentage=int(percentage),
        completed_monitors=completed,
        applicable_monitors=len(applicable),
    )
