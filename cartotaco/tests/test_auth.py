from __future__ import annotations

import asyncio

from fastapi.testclient import TestClient

from cartotaco.auth.provider import SessionAuthProvider, StaticAuthProvider, resolve_user
from cartotaco.auth.users import UserDirectory


def _login_user(c):
    c.post("/auth/login", json={"username": "taco_fan", "password": "salsa123"})


def _login_admin(c):
    c.post("/auth/login", json={"username": "admin", "password": "admin123"})


# ── Login / Logout ───────────────────────────────────────────────────────


def test_login_success_user(client):
    resp = client.post("/auth/login", json={"username": "taco_fan", "password": "salsa123"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["user"]["username"] == "taco_fan"
    assert body["user"]["role"] == "user"


def test_login_success_admin(client):
    resp = client.post("/auth/login", json={"username": "admin", "password": "admin123"})
    assert resp.status_code == 200
    assert resp.json()["user"]["role"] == "admin"


def test_login_wrong_password(client):
    resp = client.post("/auth/login", json={"username": "taco_fan", "password": "wrong"})
    assert resp.status_code == 401


def test_login_unknown_user(client):
    resp = client.post("/auth/login", json={"username": "nobody", "password": "x"})
    assert resp.status_code == 401


def test_auth_me_when_logged_in(client):
    _login_user(client)
    resp = client.get("/auth/me")
    assert resp.status_code == 200
    assert resp.json()["username"] == "taco_fan"


def test_auth_me_not_logged_in(app):
    c = TestClient(app)  # fresh client, no session
    resp = c.get("/auth/me")
    assert resp.status_code == 401


def test_logout(client):
    _login_user(client)
    resp = client.post("/auth/logout")
    assert resp.status_code == 200
    assert resp.json()["status"] == "logged_out"
    # Session should be cleared
    resp = client.get("/auth/me")
    assert resp.status_code == 401


def test_logout_releases_user_state(app, client):
    _login_user(client)
    client.get("/sites")
    client.get("/favorites")
    client.put("/trail/stops/1")
    state = app.state.cartotaco
    view = state._views["taco_fan"]
    assert view._on_sites in state.sites._subscribers

    client.post("/auth/logout")

    assert "taco_fan" not in state._views
    assert "taco_fan" not in state._favorites
    assert "taco_fan" not in state._trails
    assert view._on_sites not in state.sites._subscribers
    assert view._unsubscribe == []


def test_logout_without_session(client):
    resp = client.post("/auth/logout")
    assert resp.status_code == 200
    assert resp.json()["status"] == "logged_out"


# ── Registration ─────────────────────────────────────────────────────────


def test_register_logs_in(client):
    resp = client.post("/auth/register", json={"username": "new_eater", "password": "tortilla"})
    assert resp.status_code == 200
    assert resp.json()["user"]["role"] == "user"
    assert client.get("/auth/me").json()["username"] == "new_eater"


def test_register_taken_username(client):
    resp = client.post("/auth/register", json={"username": "taco_fan", "password": "another1"})
    assert resp.status_code == 409


def test_register_validates_input(client):
    resp = client.post("/auth/register", json={"username": "x", "password": "123"})
    assert resp.status_code == 422


# ── Route protection ─────────────────────────────────────────────────────


def test_favorites_requires_login(client):
    assert client.get("/favorites").status_code == 401
    assert client.put("/favorites/1").status_code == 401


def test_filters_requires_login(client):
    assert client.get("/filters").status_code == 401


def test_submissions_requires_login(client):
    assert client.get("/submissions").status_code == 401


def test_admin_refresh_requires_admin(client):
    _login_user(client)
    resp = client.post("/admin/refresh")
    assert resp.status_code == 403


def test_admin_refresh_allowed_for_admin(client):
    _login_admin(client)
    resp = client.post("/admin/refresh")
    assert resp.status_code == 200
    body = resp.json()
    assert body["applied"] is True
    assert body["sites"] == 3


# ── Directory and providers ──────────────────────────────────────────────


def test_user_directory_hashes_passwords():
    users = UserDirectory(seed_demo=False)
    user = users.register("cook", "secret99")
    assert user == {"id": "cook", "username": "cook", "role": "user"}
    assert users.authenticate("cook", "secret99") == user
    assert users.authenticate("cook", "wrong") is None
    assert users.register("cook", "again") is None


def test_resolve_user():
    user = {"id": "u1"}
    assert asyncio.run(resolve_user(StaticAuthProvider(user))) == user
    assert asyncio.run(resolve_user(StaticAuthProvider(None))) is None
    assert asyncio.run(resolve_user(SessionAuthProvider({}))) is None
    assert asyncio.run(resolve_user(SessionAuthProvider({"user": user}))) == user
    assert asyncio.run(resolve_user(None)) is None
