"""Heuristic project scores shown on the project analysis page.

All scores live in ``[0, 100]``; a project without tests scores a neutral
50 on every axis.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict

NEUTRAL_SCORE = 50.0


@dataclass(frozen=True)
class ProjectScores:
    performance: float
    reliability: float
    efficiency: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def score_project(
    tests: int, completed_tests: int, fault_codes: int, reports: int,
) -> ProjectScores:
    """Score a project from its test, fault-code and report counts.

    Args:
        tests: Total diagnostic tests.
        completed_tests: Tests with status ``Completed``.
        fault_codes: Distinct fault codes recorded against the project.
        reports: Generated reports.
    """
    if tests == 0:
        return ProjectScores(NEUTRAL_SCORE, NEUTRAL_SCORE, NEUTRAL_SCORE)

    return ProjectScores(
        performance=clamp(50 + completed_tests * 10 / tests),
        reliability=clamp(80 - fault_codes * 5 / tests),
        efficiency=clamp(60 + reports * 8 / max(1, tests)),
    )
