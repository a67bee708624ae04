"""Tests for admin-only user management."""

from __future__ import annotations

from obd_dashboard.models_db import Project, User, UserProject


def _new_user(**overrides) -> dict:
    payload = {
        "username": "operator",
        "email": "operator@example.com",
        "password": "long-enough-1",
        "role": "tester",
    }
    payload.update(overrides)
    return payload


class TestAccess:
    def test_non_admin_is_403(self, client, auth_headers) -> None:
        assert client.get("/v1/users", headers=auth_headers["tester"]).status_code == 403
        assert client.get("/v1/users", headers=auth_headers["viewer"]).status_code == 403

    def test_anonymous_is_401(self, client, users) -> None:
        assert client.get("/v1/users").status_code == 401


class TestListUsers:
    def test_lists_all_with_projects(self, client, auth_headers) -> None:
        resp = client.get("/v1/users", headers=auth_headers["admin"])
        assert resp.status_code == 200
        body = resp.json()
        assert [u["username"] for u in body] == ["admin", "tester", "viewer"]
        assert body[0]["last_login"] == "Never"
        assert body[0]["projects"][0]["name"] == "Nexon EV"
        assert "password_hash" not in body[0]


class TestCreateUser:
    def test_creates_with_default_project(self, client, auth_headers, project) -> None:
        resp = client.post("/v1/users", json=_new_user(), headers=auth_headers["admin"])
        assert resp.status_code == 201
        body = resp.json()
        assert body["role"] == "tester"
        assert body["status"] == "Active"
        assert [p["id"] for p in body["projects"]] == [project.id]

    def test_password_is_stored_hashed(self, client, db, auth_headers) -> None:
        client.post("/v1/users", json=_new_user(), headers=auth_headers["admin"])
        stored = db.query(User).filter(User.username == "operator").one()
        assert stored.password_hash.startswith("$2")

    def test_explicit_projects_and_unknown_ids(self, client, db, auth_headers) -> None:
        other = Project(name="Altroz", status="Active")
        db.add(other)
        db.commit()
        resp = client.post(
            "/v1/users", json=_new_user(projects=[other.id, 999]), headers=auth_headers["admin"],
        )
        assert [p["name"] for p in resp.json()["projects"]] == ["Altroz"]

    def test_duplicate_email_is_409(self, client, auth_headers) -> None:
        resp = client.post(
            "/v1/users", json=_new_user(email="viewer@example.com"), headers=auth_headers["admin"],
        )
        assert resp.status_code == 409

    def test_short_password_is_422(self, client, auth_headers) -> None:
        resp = client.post("/v1/users", json=_new_user(password="short"), headers=auth_headers["admin"])
        assert resp.status_code == 422

    def test_unknown_role_is_422(self, client, auth_headers) -> None:
        resp = client.post("/v1/users", json=_new_user(role="owner"), headers=auth_headers["admin"])
        assert resp.status_code == 422


class TestUpdateUser:
    def test_partial_update(self, client, auth_headers, users) -> None:
        resp = client.patch(
            f"/v1/users/{users['viewer'].id}",
            json={"role": "tester", "status": "Inactive"},
            headers=auth_headers["admin"],
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["role"] == "tester"
        assert body["status"] == "Inactive"
        assert body["email"] == "viewer@example.com"

    def test_replace_projects(self, client, db, auth_headers, users, project) -> None:
        other = Project(name="Altroz", status="Active")
        db.add(other)
        db.commit()
        resp = client.patch(
            f"/v1/users/{users['viewer'].id}",
            json={"projects": [other.id, project.id]},
            headers=auth_headers["admin"],
        )
        assert [p["name"] for p in resp.json()["projects"]] == ["Altroz", "Nexon EV"]
        links = db.query(UserProject).filter(UserProject.user_id == users["viewer"].id).count()
        assert links == 2

    def test_username_taken_is_409(self, client, auth_headers, users) -> None:
        resp = client.patch(
            f"/v1/users/{users['viewer'].id}", json={"username": "tester"}, headers=auth_headers["admin"],
        )
        assert resp.status_code == 409

    def test_unknown_user_is_404(self, client, auth_headers) -> None:
        resp = client.patch("/v1/users/999", json={"role": "viewer"}, headers=auth_headers["admin"])
        assert resp.status_code == 404


class TestDeleteUser:
    def test_deletes_user_and_links(self, client, db, auth_headers, users) -> None:
        viewer_id = users["viewer"].id
        resp = client.delete(f"/v1/users/{viewer_id}", headers=auth_headers["admin"])
        assert resp.status_code == 200
        assert resp.json() == {"status": "success", "user_id": viewer_id}
        db.expire_all()
        assert db.get(User, viewer_id) is None
        assert db.query(UserProject).filter(UserProject.user_id == viewer_id).count() == 0

    def test_cannot_delete_self(self, client, auth_headers, users) -> None:
        resp = client.delete(f"/v1/users/{users['admin'].id}", headers=auth_headers["admin"])
        assert resp.status_code == 400

    def test_unknown_user_is_404(self, client, auth_headers) -> None:
        assert client.delete("/v1/users/999", headers=auth_headers["admin"]).status_code == 404
