from __future__ import annotations

import uuid

from fastapi.testclient import TestClient

from main import app


def _signup(client: TestClient, name: str = "Api User") -> dict:
    email = f"api_{uuid.uuid4().hex[:8]}@example.com"
    resp = client.post("/api/auth/signup", json={"email": email, "password": "Secret!123", "name": name})
    assert resp.status_code == 201
    body = resp.json()
    body["email"] = email
    return body


def test_health_endpoint():
    client = TestClient(app)
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert resp.headers["X-Content-Type-Options"] == "nosniff"


def test_signup_sets_session_cookie_and_me_works():
    client = TestClient(app)
    body = _signup(client, name="Cookie User")
    assert body["user"]["display_name"] == "Cookie User"
    assert client.cookies.get("glucotrack_session")

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["email"] == body["email"]


def test_bearer_token_is_accepted_without_cookie():
    client = TestClient(app)
    body = _signup(client)
    client.cookies.clear()

    assert client.get("/api/auth/me").status_code == 401
    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200


def test_duplicate_signup_returns_409():
    client = TestClient(app)
    body = _signup(client)
    again = client.post(
        "/api/auth/signup",
        json={"email": body["email"].upper(), "password": "Other!123", "name": "Other"},
    )
    assert again.status_code == 409


def test_login_wrong_password_returns_401():
    client = TestClient(app)
    body = _signup(client)
    client.post("/api/auth/logout")

    bad = client.post("/api/auth/login", json={"email": body["email"], "password": "wrong"})
    assert bad.status_code == 401
    assert bad.json()["detail"] == "Invalid email or password."

    good = client.post("/api/auth/login", json={"email": body["email"], "password": "Secret!123"})
    assert good.status_code == 200


def test_login_is_rate_limited():
    client = TestClient(app)
    body = _signup(client)
    statuses = [
        client.post("/api/auth/login", json={"email": body["email"], "password": "wrong"}).status_code
        for _ in range(11)
    ]
    assert statuses[:10] == [401] * 10
    assert statuses[10] == 429


def test_logout_clears_session():
    client = TestClient(app)
    _signup(client)
    assert client.post("/api/auth/logout").json() == {"status": "ok"}
    assert client.get("/api/auth/me").status_code == 401


def test_data_endpoints_require_authentication():
    client = TestClient(app)
    for path in ("/api/profile", "/api/weights", "/api/glucose", "/api/dashboard"):
        assert client.get(path).status_code == 401


def test_profile_patch_updates_only_supplied_fields():
    client = TestClient(app)
    _signup(client, name="Profile User")

    first = client.patch("/api/profile", json={"height_cm": 175, "birthdate": "1985-02-20"})
    assert first.status_code == 200
    second = client.patch("/api/profile", json={"name": "  Renamed   User "})
    assert second.status_code == 200
    body = second.json()
    assert body["name"] == "Renamed User"
    assert body["height_cm"] == 175
    assert body["birthdate"] == "1985-02-20"

    assert client.get("/api/auth/me").json()["display_name"] == "Renamed User"


def test_profile_rejects_null_name():
    client = TestClient(app)
    _signup(client)
    resp = client.patch("/api/profile", json={"name": None})
    assert resp.status_code == 400


def test_profile_rejects_blank_name():
    client = TestClient(app)
    _signup(client, name="Blank Check")
    resp = client.patch("/api/profile", json={"name": "    "})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Name cannot be empty"
    assert client.get("/api/profile").json()["name"] == "Blank Check"


def test_weight_crud_flow():
    client = TestClient(app)
    _signup(client)

    a = client.post("/api/weights", json={"weight_kg": 80.0, "date": "2024-01-10T00:00:00Z"})
    b = client.post("/api/weights", json={"weight_kg": 81.0, "date": "2024-01-05T00:00:00Z"})
    assert a.status_code == 201 and b.status_code == 201

    listed = client.get("/api/weights").json()
    assert [w["weight_kg"] for w in listed] == [80.0, 81.0]
    assert listed[0]["date"].startswith("2024-01-10")

    updated = client.put(
        f"/api/weights/{b.json()['id']}",
        json={"weight_kg": 79.5, "date": "2024-01-12T08:00:00Z"},
    )
    assert updated.status_code == 200
    assert [w["id"] for w in client.get("/api/weights").json()] == [b.json()["id"], a.json()["id"]]

    deleted = client.delete(f"/api/weights/{a.json()['id']}")
    assert deleted.json() == {"status": "ok", "deleted": 1}
    assert client.delete(f"/api/weights/{a.json()['id']}").json()["deleted"] == 0


def test_weight_validation_and_missing_entry():
    client = TestClient(app)
    _signup(client)
    assert client.post("/api/weights", json={"weight_kg": 0}).status_code == 422
    missing = client.put("/api/weights/999999", json={"weight_kg": 70, "date": "2024-01-01T00:00:00Z"})
    assert missing.status_code == 404


def test_glucose_bulk_delete_and_defaults():
    client = TestClient(app)
    _signup(client)

    created = [
        client.post(
            "/api/glucose",
            json={"glycemia": value, "meal_type": "Lunch", "dosage": 2, "timestamp": f"2024-02-0{day}T12:00:00Z"},
        ).json()
        for day, value in ((1, 1.1), (2, 1.3), (3, 0.95))
    ]
    default_log = client.post("/api/glucose", json={"glycemia": 1.0})
    assert default_log.status_code == 201
    assert default_log.json()["meal_type"] == "Fasting"
    assert default_log.json()["dosage"] == 0

    resp = client.post("/api/glucose/bulk-delete", json={"ids": [created[0]["id"], created[2]["id"]]})
    assert resp.json()["deleted"] == 2
    remaining = [g["id"] for g in client.get("/api/glucose").json()]
    assert remaining == [default_log.json()["id"], created[1]["id"]]


def test_glucose_rejects_unknown_meal_type():
    client = TestClient(app)
    _signup(client)
    resp = client.post("/api/glucose", json={"glycemia": 1.0, "meal_type": "Brunch"})
    assert resp.status_code == 422


def test_users_cannot_touch_each_others_entries():
    owner = TestClient(app)
    _signup(owner)
    entry = owner.post("/api/weights", json={"weight_kg": 70}).json()

    intruder = TestClient(app)
    _signup(intruder)
    assert intruder.get("/api/weights").json() == []
    assert intruder.delete(f"/api/weights/{entry['id']}").json()["deleted"] == 0
    assert intruder.put(
        f"/api/weights/{entry['id']}", json={"weight_kg": 1, "date": "2024-01-01T00:00:00Z"}
    ).status_code == 404
    assert [w["id"] for w in owner.get("/api/weights").json()] == [entry["id"]]


def test_dashboard_and_report():
    client = TestClient(app)
    _signup(client)
    client.patch("/api/profile", json={"height_cm": 180})
    client.post("/api/weights", json={"weight_kg": 80})
    client.post("/api/glucose", json={"glycemia": 1.0, "timestamp": "2020-01-01T07:00:00Z"})
    client.post("/api/glucose", json={"glycemia": 0.9})

    dash = client.get("/api/dashboard").json()
    assert dash["trend"] == "down"
    assert dash["bmi"] == 24.7
    assert dash["latest_glycemia_mg_dl"] == 90.0

    report = client.get("/api/reports/glucose", params={"days": 7}).json()
    assert report["days"] == 7
    assert report["count"] == 1
    assert client.get("/api/reports/glucose", params={"days": 3}).status_code == 400
