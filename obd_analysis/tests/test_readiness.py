"""Tests for readiness monitor summarisation."""

from __future__ import annotations

import pytest

from obd_analysis.readiness import MONITOR_COLUMNS, summarize_readiness, to_standard_status


class TestToStandardStatus:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Complete", "COMPLETE"),
            ("completed", "COMPLETE"),
            (" INCOMPLETE ", "INCOMPLETE"),
            ("Not Ready", "INCOMPLETE"),
            ("Not Applicable", "NOT_APPLICABLE"),
            ("NA", "NOT_APPLICABLE"),
            ("unavailable", "UNSUPPORTED"),
            ("", "UNSUPPORTED"),
            (None, "UNSUPPORTED"),
        ],
    )
    def test_mapping(self, raw, expected: str) -> None:
        assert to_standard_status(raw) == expected

    def test_padding_is_ignored(self) -> None:
        assert to_standard_status(" complete ") == "COMPLETE"
        assert to_standard_status("\tNot Applicable\n") == "NOT_APPLICABLE"
        assert to_standard_status("   ") == "UNSUPPORTED"


class TestSummarizeReadiness:
    def test_all_ten_monitors_reported(self) -> None:
        summary = summarize_readiness({"module_id": "7E8"})
        assert set(summary.monitor_status) == set(MONITOR_COLUMNS)
        assert summary.module_id == "7E8"

    def test_percentage_over_applicable_only(self) -> None:
        row = {
            "misfire_monitoring": "Complete",
            "fuel_system_monitoring": "Complete",
            "comprehensive_component_monitoring": "Incomplete",
            "catalyst_monitoring": "Not Applicable",
            "heated_catalyst_monitoring": None,
        }
        summary = summarize_readiness(row)
        assert summary.applicable_monitors == 3
        assert summary.completed_monitors == 2
        assert summary.readiness_percentage == 67

    def test_nothing_applicable(self) -> None:
        summary = summarize_readiness({"catalyst_monitoring": "na"})
        assert summary.applicable_monitors == 0
        assert summary.readiness_percentage == 0

    def test_fully_ready(self) -> None:
        row = {column: "complete" for column in MONITOR_COLUMNS.values()}
        summary = summarize_readiness(row)
        assert summary.readiness_percentage == 100
        assert summary.to_dict()["completed_monitors"] == 10

    def test_column_mapping(self) -> None:
        summary = summarize_readiness({"comprehensive_component_monitoring": "complete"})
        assert summary.monitor_status["component_monitor"] == "COMPLETE"
        assert summary.monitor_status["egr_system_monitor"] == "UNSUPPORTED"
