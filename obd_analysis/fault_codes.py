"""Fault-code categorisation and severity ordering."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping

SEVERITY_ORDER: tuple[str, ...] = ("Critical", "High", "Medium", "Low", "Unknown")

_CATEGORY_PREFIXES: tuple[tuple[str, str], ...] = (
    ("P0", "Engine"),
    ("P1", "Transmission"),
    ("P2", "Fuel System"),
    ("P3", "Emissions"),
    ("B", "Body"),
    ("C", "Chassis"),
)


def categorize_code(code: str) -> str:
    """Return the subsystem category for a DTC such as ``P0301``."""
    code = (code or "").strip().upper()
    for prefix, category in _CATEGORY_PREFIXES:
        if code.startswith(prefix):
            return category
    return "Other"


def severity_rank(severity: str) -> int:
    try:
        return SEVERITY_ORDER.index(severity)
    except ValueError:
        return len(SEVERITY_ORDER)


def order_by_severity(
    rows: Iterable[Mapping[str, Any]], key: str = "severity",
) -> List[Mapping[str, Any]]:
    """Sort rows Critical, High, Medium, Low, Unknown, then anything else.

    The sort is stable so unknown severities keep their incoming order.
    """
    return sorted(rows, key=lambda row: severity_rank(row[key]))


def count_categories(codes: Iterable[str]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for code in codes:
        category = categorize_code(code)
        counts[category] = counts.get(category, 0) + 1
    return counts
