"""Tests for /v1/dashboard/stats and the paginated /v1/data browser."""

from __future__ import annotations

from datetime import datetime, timedelta

from obd_dashboard.cache import query_cache
from obd_dashboard.models_db import SensorData, _utcnow


class TestDashboardStats:
    def test_counts_and_breakdowns(self, client, db, auth_headers, project, make_vehicle, make_fault) -> None:
        nexon = make_vehicle(project_id=project.id, make="Tata", model="Nexon")
        make_vehicle(make="Tata", model="Harrier")
        baleno = make_vehicle(make="Maruti", model="Baleno")
        make_fault(nexon.id, code="P0300", severity="High", created_at=datetime(2024, 3, 1))
        make_fault(baleno.id, code="B1318", severity="High", created_at=datetime(2024, 3, 2))
        make_fault(baleno.id, code="U0100", severity="Low", created_at=datetime(2024, 3, 3))
        now = _utcnow()
        db.add(SensorData(vehicle_id=nexon.id, sensor_type="rpm", value=900, timestamp=now))
        db.add(SensorData(vehicle_id=baleno.id, sensor_type="rpm", value=900,
                          timestamp=now - timedelta(days=45)))
        db.commit()

        resp = client.get("/v1/dashboard/stats", headers=auth_headers["viewer"])
        assert resp.status_code == 200
        body = resp.json()
        assert body["vehicles_count"] == 3
        assert body["projects_count"] == 1
        assert body["fault_codes_count"] == 3
        assert body["active_vehicles_count"] == 1
        assert body["severity_distribution"][0] == {"severity": "High", "count": 2}
        assert body["vehicles_by_make"][0] == {"make": "Tata", "count": 2}
        assert body["recent_activity"][0]["code"] == "U0100"
        assert body["recent_activity"][0]["vehicle"] == "Maruti Baleno"
        categories = {row["category"]: row["count"] for row in body["fault_code_categories"]}
        assert categories == {"Engine": 1, "Body": 1, "Other": 1}

    def test_served_from_cache_until_cleared(self, client, auth_headers, make_vehicle) -> None:
        first = client.get("/v1/dashboard/stats", headers=auth_headers["viewer"]).json()
        make_vehicle()
        assert client.get("/v1/dashboard/stats", headers=auth_headers["viewer"]).json() == first

        query_cache.clear()
        refreshed = client.get("/v1/dashboard/stats", headers=auth_headers["viewer"]).json()
        assert refreshed["vehicles_count"] == first["vehicles_count"] + 1

    def test_writes_through_api_invalidate_cache(self, client, auth_headers) -> None:
        client.get("/v1/dashboard/stats", headers=auth_headers["viewer"])
        client.post("/v1/vehicles", json={"make": "Tata", "model": "Punch"}, headers=auth_headers["tester"])
        body = client.get("/v1/dashboard/stats", headers=auth_headers["viewer"]).json()
        assert body["vehicles_count"] == 1

    def test_requires_auth(self, client, users) -> None:
        assert client.get("/v1/dashboard/stats").status_code == 401


class TestDataPage:
    def _seed_sensor(self, db, vehicle_id: int) -> None:
        base = datetime(2024, 3, 1, 8)
        for i, value in enumerate((10.0, 20.0, 30.0)):
            db.add(SensorData(vehicle_id=vehicle_id, sensor_type="speed", value=value,
                              timestamp=base + timedelta(hours=i)))
        db.add(SensorData(vehicle_id=vehicle_id, sensor_type="speed", value=50.0,
                          timestamp=base + timedelta(days=1)))
        db.commit()

    def test_live_pagination(self, client, db, auth_headers, make_vehicle) -> None:
        self._seed_sensor(db, make_vehicle().id)
        body = client.get("/v1/data?type=live&limit=3&page=2", headers=auth_headers["viewer"]).json()
        assert body["pagination"] == {"total": 4, "page": 2, "limit": 3, "pages": 2}
        assert [row["value"] for row in body["data"]] == [10.0]

    def test_historical_daily_aggregates(self, client, db, auth_headers, make_vehicle) -> None:
        self._seed_sensor(db, make_vehicle().id)
        body = client.get("/v1/data?type=historical", headers=auth_headers["viewer"]).json()
        assert body["pagination"]["total"] == 2
        assert body["data"][0]["date"] == "2024-03-02"
        day_one = body["data"][1]
        assert day_one["date"] == "2024-03-01"
        assert day_one["avg_value"] == 20.0
        assert day_one["max_value"] == 30.0
        assert day_one["min_value"] == 10.0
        assert day_one["count"] == 3

    def test_faults(self, client, auth_headers, make_vehicle, make_fault) -> None:
        make_fault(make_vehicle().id, code="C0035")
        body = client.get("/v1/data?type=faults", headers=auth_headers["viewer"]).json()
        assert body["pagination"]["total"] == 1
        assert body["data"][0]["category"] == "Chassis"

    def test_unknown_type_is_422(self, client, auth_headers) -> None:
        assert client.get("/v1/data?type=bogus", headers=auth_headers["viewer"]).status_code == 422

    def test_empty_table(self, client, auth_headers) -> None:
        body = client.get("/v1/data", headers=auth_headers["viewer"]).json()
        assert body == {"data": [], "pagination": {"total": 0, "page": 1, "limit": 10, "pages": 0}}
