"""Tests for telemetry trend fitting and live-data gauges."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from obd_analysis.live_data import CHART_POINTS, GAUGES, build_gauges, chart_points
from obd_analysis.trends import (
    HistoryPoint,
    Trend,
    classify_slope,
    compute_trend,
    compute_trends,
    fit_slope,
    group_history,
    percentage_change,
)


# ---------------------------------------------------------------------------
# Primitive helpers
# ---------------------------------------------------------------------------


class TestFitSlope:
    def test_perfect_line(self) -> None:
        assert fit_slope([1.0, 3.0, 5.0, 7.0]) == pytest.approx(2.0)

    def test_flat(self) -> None:
        assert fit_slope([4.0, 4.0, 4.0]) == pytest.approx(0.0)

    def test_noisy_descending(self) -> None:
        assert fit_slope([10.0, 9.0, 9.5, 7.0, 6.0]) < 0

    def test_requires_two_points(self) -> None:
        with pytest.raises(ValueError):
            fit_slope([1.0])


class TestClassifySlope:
    @pytest.mark.parametrize(
        "slope, expected",
        [
            (0.5, "up"),
            (0.011, "up"),
            (0.01, "stable"),
            (0.0, "stable"),
            (-0.01, "stable"),
            (-0.011, "down"),
            (-3.0, "down"),
        ],
    )
    def test_threshold(self, slope: float, expected: str) -> None:
        assert classify_slope(slope) == expected


class TestPercentageChange:
    def test_increase(self) -> None:
        assert percentage_change(50, 75) == 50

    def test_decrease_is_absolute(self) -> None:
        assert percentage_change(80, 60) == 25

    def test_zero_first(self) -> None:
        assert percentage_change(0, 100) == 0

    def test_half_rounds_up(self) -> None:
        # 12.5 % rounds to 13
        assert percentage_change(80, 90) == 13

    def test_negative_half_rounds_toward_positive(self) -> None:
        # -12.5 % rounds to -12 before taking the absolute value
        assert percentage_change(80, 70) == 12


# ---------------------------------------------------------------------------
# Grouping and trend computation
# ---------------------------------------------------------------------------


class TestGroupHistory:
    def test_groups_and_sorts(self, make_history) -> None:
        rows = make_history("rpm", [900, 1200, 1500]) + make_history("speed", [10, 20])
        rows.reverse()
        grouped = group_history(rows)
        assert set(grouped) == {"rpm", "speed"}
        assert [p.value for p in grouped["rpm"]] == [900.0, 1200.0, 1500.0]

    def test_skips_null_values(self, make_history) -> None:
        grouped = group_history(make_history("rpm", [900, None, 1500]))
        assert len(grouped["rpm"]) == 2


class TestComputeTrend:
    def test_rising_series(self, make_history) -> None:
        series = group_history(make_history("speed", [40, 50, 60]))["speed"]
        trend = compute_trend(series)
        assert trend.direction == "up"
        assert trend.percentage == 50
        assert trend.slope == pytest.approx(10.0)

    def test_falling_series(self, make_history) -> None:
        series = group_history(make_history("coolant_temp", [100, 95, 90, 80]))["coolant_temp"]
        trend = compute_trend(series)
        assert trend.direction == "down"
        assert trend.percentage == 20

    def test_orders_by_timestamp(self) -> None:
        t0 = datetime(2024, 1, 1)
        points = [
            HistoryPoint(t0 + timedelta(minutes=2), 30.0),
            HistoryPoint(t0, 10.0),
            HistoryPoint(t0 + timedelta(minutes=1), 20.0),
        ]
        assert compute_trend(points).direction == "up"

    def test_to_dict(self, make_history) -> None:
        series = group_history(make_history("rpm", [1000, 1000]))["rpm"]
        payload = compute_trend(series).to_dict()
        assert payload == {"direction": "stable", "percentage": 0, "slope": pytest.approx(0.0)}


def test_compute_trends_skips_single_point(make_history) -> None:
    rows = make_history("rpm", [900, 1100]) + make_history("speed", [30])
    trends = compute_trends(group_history(rows))
    assert list(trends) == ["rpm"]
    assert isinstance(trends["rpm"], Trend)


# ---------------------------------------------------------------------------
# Gauges
# ---------------------------------------------------------------------------


class TestBuildGauges:
    def test_all_gauges_present(self) -> None:
        gauges = build_gauges({}, {})
        assert [g["id"] for g in gauges] == [gauge.id for gauge in GAUGES]

    def test_ranges(self) -> None:
        gauges = {g["id"]: g for g in build_gauges({}, {})}
        assert gauges["rpm"]["range"] == {"min": 0, "max": 8000}
        assert gauges["battery_voltage"]["range"] == {"min": 0, "max": 20}

    def test_latest_values(self) -> None:
        gauges = {g["id"]: g for g in build_gauges({"speed": 88.0, "rpm": None}, {})}
        assert gauges["speed"]["value"] == 88.0
        assert gauges["rpm"]["value"] is None

    def test_chart_data_last_ten(self, make_history) -> None:
        history = group_history(make_history("speed", list(range(15))))
        gauges = {g["id"]: g for g in build_gauges({}, history)}
        chart = gauges["speed"]["chart_data"]
        assert len(chart) == CHART_POINTS
        assert chart[0]["value"] == 5.0
        assert chart[-1]["value"] == 14.0

    def test_battery_voltage_has_no_chart(self, make_history) -> None:
        history = group_history(make_history("battery_voltage", [12.1, 12.4]))
        gauges = {g["id"]: g for g in build_gauges({}, history)}
        assert gauges["battery_voltage"]["chart_data"] == []


def test_chart_points_iso_timestamps(make_history) -> None:
    series = group_history(make_history("rpm", [800, 900]))["rpm"]
    assert chart_points(series)[0]["timestamp"] == "2024-03-01T08:00:00"
