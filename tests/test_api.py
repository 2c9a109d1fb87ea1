# tests/test_api.py
"""HTTP-level tests: routing, token handling and error translation."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from fastapi.testclient import TestClient
from vehicle_portal.config import get_settings
from vehicle_portal.database import get_db
from vehicle_portal.dependencies import get_notifier
from vehicle_portal.main import app

FORM = {
    "vehicle_type": "Car", "make": "Honda", "model": "Civic", "year": "2022",
    "vin": "2HGFC2F59MH000001", "license_plate": "CIV-2022", "owner_name": "Casey",
    "owner_contact": "casey@example.com", "expiry_date": "2030-05-01",
}


@pytest.fixture()
def client(db_session, config, notifier):
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_settings] = lambda: config
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def register(client, email, role="user", secret_key=None):
    resp = client.post("/api/auth/register", json={
        "name": email.split("@")[0], "email": email, "password": "pass-word",
        "role": role, "secret_key": secret_key,
    })
    assert resp.status_code == 201, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


def submit(client, headers, **overrides):
    return client.post("/api/registrations", data={**FORM, **overrides}, headers=headers)


class TestAuthEndpoints:
    def test_register_login_me(self, client):
        register(client, "casey@example.com")
        resp = client.post("/api/auth/login", json={"email": "casey@example.com", "password": "pass-word"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["role"] == "user" and body["token"]

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.json()["email"] == "casey@example.com"

    def test_duplicate_email_is_409(self, client):
        register(client, "casey@example.com")
        resp = client.post("/api/auth/register", json={
            "name": "Again", "email": "casey@example.com", "password": "pass-word"})
        assert resp.status_code == 409
        assert resp.json() == {"detail": "User already exists"}

    def test_bad_login_is_401(self, client):
        resp = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "x"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid email or password"

    def test_second_admin_needs_secret(self, client):
        register(client, "first@example.com", role="admin")
        resp = client.post("/api/auth/register", json={
            "name": "Second", "email": "second@example.com", "password": "pass-word", "role": "admin"})
        assert resp.status_code == 403
        register(client, "second@example.com", role="admin", secret_key="letmein")

    def test_profile_update(self, client):
        headers = register(client, "casey@example.com")
        resp = client.put("/api/auth/profile", json={"phone": "555-0199"}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["token"]


class TestProtectedEndpoints:
    def test_missing_token_is_401(self, client):
        resp = client.get("/api/registrations")
        assert resp.status_code == 401
        assert resp.headers["www-authenticate"] == "Bearer"

    def test_garbage_token_is_401(self, client):
        resp = client.get("/api/registrations", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401


class TestRegistrationEndpoints:
    def test_full_lifecycle(self, client, notifier):
        admin = register(client, "admin@example.com", role="admin")
        user = register(client, "casey@example.com")

        created = submit(client, user)
        assert created.status_code == 201, created.text
        reg = created.json()
        assert reg["status"] == "Pending"
        assert reg["display_status"] == "Pending"
        assert reg["is_expired"] is False
        assert reg["year"] == 2022

        reviewed = client.put(f"/api/registrations/{reg['id']}/status", json={"status": "Approved"}, headers=admin)
        assert reviewed.json()["status"] == "Approved"

        renewed = client.put(f"/api/registrations/{reg['id']}/renew", headers=user)
        assert renewed.json()["expiry_date"].startswith("2031-05-01")
        assert renewed.json()["status"] == "Approved"

        edited = client.put(f"/api/registrations/{reg['id']}", json={"model": "Civic Si"}, headers=user)
        assert edited.json()["status"] == "Pending"
        assert edited.json()["model"] == "Civic Si"

        subjects = [s for _, s, _ in notifier.sent]
        assert "Vehicle Registration Status Update" in subjects
        assert "Vehicle Registration Renewed" in subjects

        deleted = client.delete(f"/api/registrations/{reg['id']}", headers=user)
        assert deleted.status_code == 200
        assert client.get(f"/api/registrations/{reg['id']}", headers=user).status_code == 404

    def test_missing_field_is_422(self, client):
        user = register(client, "casey@example.com")
        form = dict(FORM)
        form.pop("vin")
        resp = client.post("/api/registrations", data=form, headers=user)
        assert resp.status_code == 422
        assert "vin" in resp.json()["detail"]

    def test_duplicate_plate_is_409(self, client):
        user = register(client, "casey@example.com")
        assert submit(client, user).status_code == 201
        resp = submit(client, user, vin="2HGFC2F59MH000002")
        assert resp.status_code == 409

    def test_upload_documents(self, client):
        user = register(client, "casey@example.com")
        resp = client.post(
            "/api/registrations", data=FORM, headers=user,
            files=[("documents", ("title.pdf", b"%PDF-1.4 title", "application/pdf"))],
        )
        assert resp.status_code == 201, resp.text
        documents = resp.json()["documents"]
        assert len(documents) == 1 and documents[0].startswith("uploads/")

    def test_other_user_forbidden(self, client):
        owner = register(client, "casey@example.com")
        stranger = register(client, "sam@example.com")
        reg_id = submit(client, owner).json()["id"]

        assert client.get(f"/api/registrations/{reg_id}", headers=stranger).status_code == 403
        assert client.put(f"/api/registrations/{reg_id}/renew", headers=stranger).status_code == 403
        assert client.delete(f"/api/registrations/{reg_id}", headers=stranger).status_code == 403
        assert client.put(f"/api/registrations/{reg_id}/status", json={"status": "Approved"},
                          headers=owner).status_code == 403

    def test_search_and_stats(self, client):
        admin = register(client, "admin@example.com", role="admin")
        user = register(client, "casey@example.com")
        submit(client, user)

        found = client.get("/api/registrations/search", params={"query": "civ"}, headers=user)
        assert [r["license_plate"] for r in found.json()] == ["CIV-2022"]

        assert client.get("/api/registrations/stats", headers=user).status_code == 403
        stats = client.get("/api/registrations/stats", headers=admin).json()
        assert stats["total"] == 1 and stats["pending"] == 1
        assert stats["by_type"] == [{"vehicle_type": "Car", "count": 1}]

    def test_admin_list_includes_owner(self, client):
        admin = register(client, "admin@example.com", role="admin")
        user = register(client, "casey@example.com")
        submit(client, user)

        listed = client.get("/api/registrations", headers=admin).json()
        assert listed[0]["owner"]["email"] == "casey@example.com"

    def test_certificate_and_report(self, client):
        admin = register(client, "admin@example.com", role="admin")
        user = register(client, "casey@example.com")
        reg_id = submit(client, user).json()["id"]

        cert = client.get(f"/api/registrations/{reg_id}/certificate", headers=user)
        assert cert.status_code == 200
        assert cert.headers["content-type"] == "application/pdf"
        assert cert.content.startswith(b"%PDF")

        report = client.post("/api/registrations/report", json={"ids": [reg_id]}, headers=admin)
        assert report.status_code == 200
        assert client.post("/api/registrations/report", json={"ids": []}, headers=admin).status_code == 422


class TestHealth:
    def test_health_reports_database(self, client):
        body = client.get("/api/health").json()
        assert body["database"] == "ok"
        assert body["status"] == "ok"
