from __future__ import annotations

from fastapi.testclient import TestClient

from restaurant_map.app import app
from restaurant_map.auth.users import authenticate, get_plan, get_user, set_plan

client = TestClient(app)


def _login_user(c):
    c.post("/auth/login", json={"username": "user", "password": "user123"})


def _login_admin(c):
    c.post("/auth/login", json={"username": "admin", "password": "admin123"})


# ── Login / Logout ───────────────────────────────────────────────────────


def test_login_success_user():
    resp = client.post("/auth/login", json={"username": "user", "password": "user123"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["user"]["username"] == "user"
    assert body["user"]["role"] == "user"
    assert body["user"]["plan"] == "free"


def test_login_success_premium():
    resp = client.post("/auth/login", json={"username": "premium", "password": "premium123"})
    assert resp.status_code == 200
    assert resp.json()["user"]["plan"] == "premium"


def test_login_success_admin():
    resp = client.post("/auth/login", json={"username": "admin", "password": "admin123"})
    assert resp.status_code == 200
    assert resp.json()["user"]["role"] == "admin"


def test_login_wrong_password():
    resp = client.post("/auth/login", json={"username": "user", "password": "wrong"})
    assert resp.status_code == 401


def test_login_unknown_user():
    resp = client.post("/auth/login", json={"username": "nobody", "password": "x"})
    assert resp.status_code == 401


def test_auth_me_when_logged_in():
    _login_user(client)
    resp = client.get("/auth/me")
    assert resp.status_code == 200
    assert resp.json()["username"] == "user"


def test_auth_me_not_logged_in():
    c = TestClient(app)  # fresh client, no session
    resp = c.get("/auth/me")
    assert resp.status_code == 401


def test_logout():
    _login_user(client)
    resp = client.post("/auth/logout")
    assert resp.status_code == 200
    assert resp.json()["status"] == "logged_out"
    # Session should be cleared
    resp = client.get("/auth/me")
    assert resp.status_code == 401


def test_plan_lookup():
    assert get_plan("premium") == "premium"
    assert get_plan("user") == "free"
    assert get_plan("nobody") is None
    assert authenticate("user", "nope") is None


# ── Route protection ─────────────────────────────────────────────────────


def test_add_restaurant_requires_login():
    c = TestClient(app)
    resp = c.post("/restaurants", json={"name": "Anywhere"})
    assert resp.status_code == 401


def test_patch_restaurant_requires_login():
    c = TestClient(app)
    resp = c.patch("/restaurants/abc", json={"rating": 4.0})
    assert resp.status_code == 401


def test_analytics_requires_admin():
    _login_user(client)
    resp = client.get("/analytics")
    assert resp.status_code == 403


def test_analytics_allowed_for_admin():
    _login_admin(client)
    resp = client.get("/analytics")
    assert resp.status_code == 200


def test_index_sync_requires_admin():
    c = TestClient(app)
    _login_user(c)
    resp = c.post("/admin/index/sync-all")
    assert resp.status_code == 403


def test_add_event_requires_admin():
    c = TestClient(app)
    _login_user(c)
    resp = c.post("/events", json={
        "name": "Test Week", "start_date": "2026-01-01", "end_date": "2026-01-07",
        "latitude": 37.7, "longitude": -122.4,
    })
    assert resp.status_code == 403


def test_menu_upsert_requires_admin():
    c = TestClient(app)
    resp = c.put("/menus", json={
        "restaurant_id": "r", "event_id": "e", "meal": "lunch", "price": 30,
    })
    assert resp.status_code == 401


# ── Public endpoints stay public ─────────────────────────────────────────


def test_health_is_public():
    c = TestClient(app)
    assert c.get("/health").status_code == 200


def test_metadata_is_public():
    c = TestClient(app)
    assert c.get("/metadata").status_code == 200


def test_bounds_query_is_public():
    c = TestClient(app)
    resp = c.post("/restaurants/in-bounds", json={
        "bounds": {"north": 38, "south": 37, "east": -122, "west": -123},
    })
    assert resp.status_code == 200


# ── Plans ────────────────────────────────────────────────────────────────


def test_get_user_hides_password_hash():
    assert get_user("premium") == {"username": "premium", "role": "user", "plan": "premium"}
    assert get_user("nobody") is None


def test_admin_upgrade_unlocks_combined_filters():
    multi = {
        "bounds": {"north": 38, "south": 37, "east": -122, "west": -123},
        "max_lunch_price": 40,
        "max_dinner_price": 80,
    }
    c = TestClient(app)
    _login_user(c)
    assert c.post("/restaurants/in-bounds", json=multi).status_code == 402

    admin = TestClient(app)
    _login_admin(admin)
    try:
        resp = admin.put("/admin/users/user/plan", json={"plan": "premium"})
        assert resp.status_code == 200
        assert resp.json()["plan"] == "premium"
        assert c.get("/auth/me").json()["plan"] == "premium"
        assert c.post("/restaurants/in-bounds", json=multi).status_code == 200
    finally:
        set_plan("user", "free")


def test_set_plan_requires_admin_and_known_user():
    c = TestClient(app)
    _login_user(c)
    assert c.put("/admin/users/user/plan", json={"plan": "premium"}).status_code == 403

    admin = TestClient(app)
    _login_admin(admin)
    assert admin.put("/admin/users/ghost/plan", json={"plan": "premium"}).status_code == 404
    assert admin.put("/admin/users/user/plan", json={"plan": "gold"}).status_code == 422
