"""Tests for /v1/reports generation, listing, viewing and download."""

from __future__ import annotations

from datetime import date, datetime, timedelta

import fitz  # PyMuPDF
import pytest

from obd_dashboard.models_db import LiveData, OBDReadiness, Report


@pytest.fixture()
def fleet(db, project, make_vehicle, make_fault):
    """One project vehicle with an in-range and an out-of-range fault."""
    vehicle = make_vehicle(project_id=project.id, make="Tata", model="Nexon", vin="MAT625487KLP12345")
    make_fault(vehicle.id, code="P0300", description="Misfire", created_at=datetime(2024, 3, 10, 23, 30))
    make_fault(vehicle.id, code="P0171", description="Lean", created_at=datetime(2024, 2, 1))
    db.add(LiveData(vehicle_id=vehicle.id, timestamp=datetime(2024, 3, 5, 9), speed=50.0, rpm=1800.0))
    db.add(OBDReadiness(vehicle_id=vehicle.id, module_id="7E8", timestamp=datetime(2024, 3, 5),
                        misfire_monitoring="Complete", catalyst_monitoring="Incomplete"))
    db.commit()
    return vehicle


def _generate(client, headers, project_id: int, **overrides) -> dict:
    payload = {
        "project_id": project_id,
        "format": "csv",
        "date_from": "2024-03-01",
        "date_to": "2024-03-10",
    }
    payload.update(overrides)
    resp = client.post("/v1/reports/generate", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestGenerate:
    def test_summary_and_download_url(self, client, auth_headers, project, fleet) -> None:
        body = _generate(client, auth_headers["tester"], project.id)
        assert body["name"] == "Nexon EV Comprehensive Report"
        assert body["format"] == "csv"
        assert body["download_url"] == f"/v1/reports/{body['id']}/download"
        assert body["summary"] == {
            "date_range": "2024-03-01 to 2024-03-10",
            "vehicles_count": 1,
            "fault_codes_count": 1,
        }

    def test_default_range_is_last_30_days(self, client, db, auth_headers, project) -> None:
        resp = client.post(
            "/v1/reports/generate", json={"project_id": project.id}, headers=auth_headers["tester"],
        )
        assert resp.status_code == 201
        report = db.get(Report, resp.json()["id"])
        assert report.format == "pdf"
        assert report.date_to == date.today()
        assert report.date_from == date.today() - timedelta(days=30)

    def test_unknown_project_is_404(self, client, auth_headers) -> None:
        resp = client.post("/v1/reports/generate", json={"project_id": 999}, headers=auth_headers["tester"])
        assert resp.status_code == 404

    def test_invalid_format_is_422(self, client, auth_headers, project) -> None:
        resp = client.post(
            "/v1/reports/generate", json={"project_id": project.id, "format": "docx"},
            headers=auth_headers["tester"],
        )
        assert resp.status_code == 422

    def test_inverted_range_is_400(self, client, auth_headers, project) -> None:
        resp = client.post(
            "/v1/reports/generate",
            json={"project_id": project.id, "date_from": "2024-03-10", "date_to": "2024-03-01"},
            headers=auth_headers["tester"],
        )
        assert resp.status_code == 400

    def test_viewer_cannot_generate(self, client, auth_headers, project) -> None:
        resp = client.post("/v1/reports/generate", json={"project_id": project.id}, headers=auth_headers["viewer"])
        assert resp.status_code == 403


class TestListAndView:
    def test_list_newest_first_with_project_name(self, client, auth_headers, project) -> None:
        first = _generate(client, auth_headers["tester"], project.id, report_type="summary")
        second = _generate(client, auth_headers["tester"], project.id)
        resp = client.get("/v1/reports", headers=auth_headers["viewer"])
        body = resp.json()
        assert [r["id"] for r in body] == [second["id"], first["id"]]
        assert body[0]["project_name"] == "Nexon EV"

        filtered = client.get("/v1/reports?report_type=summary", headers=auth_headers["viewer"]).json()
        assert [r["id"] for r in filtered] == [first["id"]]

    def test_view_respects_range_and_flags(self, client, auth_headers, project, fleet) -> None:
        report = _generate(client, auth_headers["tester"], project.id, include_live_data=False)
        resp = client.get(f"/v1/reports/{report['id']}/view", headers=auth_headers["viewer"])
        assert resp.status_code == 200
        body = resp.json()
        assert body["report"]["name"] == "Nexon EV Comprehensive Report"
        assert [v["vin"] for v in body["vehicles"]] == ["MAT625487KLP12345"]
        # The 23:30 fault on date_to is inside the range; February is not.
        assert [f["code"] for f in body["fault_codes"]] == ["P0300"]
        assert body["readiness"][0]["status"] == "1/2 monitors complete"
        assert body["live_data"] == []

    def test_get_and_delete(self, client, auth_headers, project) -> None:
        report = _generate(client, auth_headers["tester"], project.id)
        assert client.get(f"/v1/reports/{report['id']}", headers=auth_headers["viewer"]).status_code == 200
        assert client.delete(f"/v1/reports/{report['id']}", headers=auth_headers["tester"]).status_code == 200
        assert client.get(f"/v1/reports/{report['id']}", headers=auth_headers["viewer"]).status_code == 404

    def test_unknown_report_is_404(self, client, auth_headers) -> None:
        assert client.get("/v1/reports/999/view", headers=auth_headers["viewer"]).status_code == 404


class TestDownload:
    def test_csv_sections_and_filename(self, client, auth_headers, project, fleet) -> None:
        report = _generate(client, auth_headers["tester"], project.id)
        resp = client.get(f"/v1/reports/{report['id']}/download", headers=auth_headers["viewer"])
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        stamp = date.today().strftime("%Y%m%d")
        assert f'filename="Nexon_EV_Comprehensive_Report_{stamp}.csv"' in resp.headers["content-disposition"]

        lines = resp.text.splitlines()
        assert lines[0] == "Project,Date Generated,Date Range"
        for section in ("Vehicles", "Fault Codes", "OBD Readiness", "Live Data"):
            assert section in lines
        assert any(line.startswith("Tata Nexon,P0300,Misfire") for line in lines)
        assert not any("P0171" in line for line in lines)

    def test_text_override(self, client, auth_headers, project, fleet) -> None:
        report = _generate(client, auth_headers["tester"], project.id)
        resp = client.get(f"/v1/reports/{report['id']}/download?format=txt", headers=auth_headers["viewer"])
        assert resp.headers["content-type"].startswith("text/plain")
        assert "FAULT CODES SUMMARY" in resp.text
        assert "Total Fault Codes: 1" in resp.text

    def test_pdf_is_a_real_document(self, client, auth_headers, project, fleet) -> None:
        report = _generate(client, auth_headers["tester"], project.id, format="pdf")
        resp = client.get(f"/v1/reports/{report['id']}/download", headers=auth_headers["viewer"])
        assert resp.headers["content-type"] == "application/pdf"
        assert resp.content.startswith(b"%PDF")
        doc = fitz.open(stream=resp.content, filetype="pdf")
        try:
            text = "".join(page.get_text() for page in doc)
        finally:
            doc.close()
        assert "Nexon EV Report" in text
        assert "P0300" in text

    def test_bad_format_is_422(self, client, auth_headers, project) -> None:
        report = _generate(client, auth_headers["tester"], project.id)
        resp = client.get(f"/v1/reports/{report['id']}/download?format=xml", headers=auth_headers["viewer"])
        assert resp.status_code == 422

    @pytest.mark.parametrize("fmt", ["csv", "txt", "pdf"])
    def test_non_latin1_project_name(self, client, auth_headers, fmt) -> None:
        resp = client.post(
            "/v1/projects", json={"name": "Škoda Kushaq – 2024"}, headers=auth_headers["tester"],
        )
        assert resp.status_code == 201
        report = _generate(client, auth_headers["tester"], resp.json()["id"], format=fmt)

        resp = client.get(f"/v1/reports/{report['id']}/download", headers=auth_headers["viewer"])
        assert resp.status_code == 200
        stamp = date.today().strftime("%Y%m%d")
        disposition = resp.headers["content-disposition"]
        assert f'filename="Skoda_Kushaq__2024_Comprehensive_Report_{stamp}.{fmt}"' in disposition
        assert (
            f"filename*=UTF-8''%C5%A0koda_Kushaq_%E2%80%93_2024_Comprehensive_Report_{stamp}.{fmt}"
            in disposition
        )
