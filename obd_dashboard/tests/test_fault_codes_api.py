"""Tests for /v1/fault-codes listing and clearing."""

from __future__ import annotations

from datetime import datetime

from obd_dashboard.models_db import FaultCode


class TestListFaultCodes:
    def test_newest_first_with_vehicle_and_category(
        self, client, auth_headers, make_vehicle, make_fault,
    ) -> None:
        vehicle = make_vehicle(make="Tata", model="Nexon")
        make_fault(vehicle.id, code="P0300", created_at=datetime(2024, 3, 1, 8))
        make_fault(vehicle.id, code="b1318", created_at=datetime(2024, 3, 2, 8))

        resp = client.get("/v1/fault-codes", headers=auth_headers["viewer"])
        assert resp.status_code == 200
        body = resp.json()
        assert [f["code"] for f in body] == ["b1318", "P0300"]
        assert body[0]["category"] == "Body"
        assert body[1]["category"] == "Engine"
        assert body[1]["vehicle_make"] == "Tata"
        assert body[1]["vehicle_model"] == "Nexon"

    def test_filters(self, client, auth_headers, project, make_vehicle, make_fault) -> None:
        in_project = make_vehicle(project_id=project.id)
        other = make_vehicle(make="Maruti", model="Baleno")
        make_fault(in_project.id, code="P0171", severity="High", status="Active")
        make_fault(in_project.id, code="P0420", severity="Medium", status="Cleared")
        make_fault(other.id, code="C0035", severity="High", status="Active")

        def codes(query: str) -> list:
            return sorted(f["code"] for f in client.get(
                f"/v1/fault-codes?{query}", headers=auth_headers["viewer"],
            ).json())

        assert codes(f"project_id={project.id}") == ["P0171", "P0420"]
        assert codes(f"vehicle_id={other.id}") == ["C0035"]
        assert codes("severity=High") == ["C0035", "P0171"]
        assert codes("status=Cleared") == ["P0420"]

    def test_limit_and_offset(self, client, auth_headers, make_vehicle, make_fault) -> None:
        vehicle = make_vehicle()
        for day in range(1, 6):
            make_fault(vehicle.id, code=f"P010{day}", created_at=datetime(2024, 3, day))
        resp = client.get("/v1/fault-codes?limit=2&offset=1", headers=auth_headers["viewer"])
        assert [f["code"] for f in resp.json()] == ["P0104", "P0103"]


class TestClearFaultCodes:
    def test_clear_single(self, client, db, auth_headers, make_vehicle, make_fault) -> None:
        vehicle = make_vehicle()
        fault = make_fault(vehicle.id)
        resp = client.post(f"/v1/fault-codes/{fault.id}/clear", headers=auth_headers["tester"])
        assert resp.status_code == 200
        assert resp.json() == {"cleared": 1}
        db.expire_all()
        assert db.get(FaultCode, fault.id).status == "Cleared"

    def test_clear_already_cleared_counts_zero(self, client, auth_headers, make_vehicle, make_fault) -> None:
        fault = make_fault(make_vehicle().id, status="Cleared")
        resp = client.post(f"/v1/fault-codes/{fault.id}/clear", headers=auth_headers["tester"])
        assert resp.json() == {"cleared": 0}

    def test_clear_all_for_vehicle(self, client, db, auth_headers, make_vehicle, make_fault) -> None:
        vehicle = make_vehicle()
        other = make_vehicle(make="Maruti", model="Baleno")
        make_fault(vehicle.id, code="P0171")
        make_fault(vehicle.id, code="P0420", status="Pending")
        untouched = make_fault(other.id, code="C0035")

        resp = client.post(f"/v1/fault-codes/clear?vehicle_id={vehicle.id}", headers=auth_headers["admin"])
        assert resp.json() == {"cleared": 2}
        db.expire_all()
        assert db.get(FaultCode, untouched.id).status == "Active"

    def test_unknown_fault_is_404(self, client, auth_headers) -> None:
        assert client.post("/v1/fault-codes/999/clear", headers=auth_headers["tester"]).status_code == 404

    def test_unknown_vehicle_is_404(self, client, auth_headers) -> None:
        resp = client.post("/v1/fault-codes/clear?vehicle_id=999", headers=auth_headers["tester"])
        assert resp.status_code == 404

    def test_viewer_cannot_clear(self, client, auth_headers, make_vehicle, make_fault) -> None:
        fault = make_fault(make_vehicle().id)
        resp = client.post(f"/v1/fault-codes/{fault.id}/clear", headers=auth_headers["viewer"])
        assert resp.status_code == 403
