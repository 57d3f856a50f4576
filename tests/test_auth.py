from datetime import datetime, timedelta, timezone

from rangers_portal.core.auth import ADMIN_COOKIE
from rangers_portal.core.security import create_access_token, decode_access_token
from rangers_portal.models.seed import seed_admin

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "correct-password"


def test_login_success(client, admin):
    resp = client.post("/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["admin"]["email"] == ADMIN_EMAIL
    assert body["admin"]["last_login"] is not None
    payload = decode_access_token(body["access_token"])
    assert payload["sub"] == admin.id
    assert payload["email"] == ADMIN_EMAIL
    login_time = datetime.fromisoformat(payload["login_time"])
    assert payload["exp"] == int((login_time + timedelta(hours=24)).timestamp())


def test_login_invalid_password(client, admin):
    resp = client.post("/auth/login", json={"email": ADMIN_EMAIL, "password": "wrong-password"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid email or password"


def test_login_unknown_email(client):
    resp = client.post("/auth/login", json={"email": "missing@example.com", "password": "whatever"})
    assert resp.status_code == 401


def test_login_email_wildcards_do_not_match(client, admin):
    resp = client.post("/auth/login", json={"email": "a_min@example.com", "password": ADMIN_PASSWORD})
    assert resp.status_code == 401
    resp = client.post("/admin/login", data={"email": "%", "password": ADMIN_PASSWORD}, follow_redirects=False)
    assert resp.headers["location"] == "/admin/login?error=invalid"
    assert ADMIN_COOKIE not in resp.cookies


def test_me_returns_session(client, auth_headers):
    resp = client.get("/auth/me", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["email"] == ADMIN_EMAIL


def test_me_rejects_expired_session(client, admin):
    stale = create_access_token(admin.id, ADMIN_EMAIL, datetime.now(timezone.utc) - timedelta(hours=25))
    resp = client.get("/auth/me", headers={"Authorization": f"Bearer {stale}"})
    assert resp.status_code == 401


def test_dashboard_redirects_without_session(client):
    for path in ("/admin", "/admin/dashboard", "/admin/dashboard/export"):
        resp = client.get(path, follow_redirects=False)
        assert resp.status_code == 303
        assert resp.headers["location"] == "/admin/login"


def test_form_login_sets_cookie_and_opens_dashboard(client, admin):
    resp = client.post(
        "/admin/login",
        data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD},
        follow_redirects=False,
    )
    assert resp.status_code == 303
    assert resp.headers["location"] == "/admin/dashboard"
    assert ADMIN_COOKIE in resp.cookies

    resp = client.get("/admin/dashboard")
    assert resp.status_code == 200
    body = resp.json()
    assert body["admin"] == ADMIN_EMAIL
    assert body["stats"]["total"] == 0
    assert body["summary"] == "Showing 0-0 of 0 applications"

    resp = client.get("/admin", follow_redirects=False)
    assert resp.headers["location"] == "/admin/dashboard"


def test_form_login_failure_redirects_back(client, admin):
    resp = client.post(
        "/admin/login",
        data={"email": ADMIN_EMAIL, "password": "nope"},
        follow_redirects=False,
    )
    assert resp.status_code == 303
    assert resp.headers["location"] == "/admin/login?error=invalid"


def test_expired_cookie_redirects_to_login(client, admin):
    stale = create_access_token(admin.id, ADMIN_EMAIL, datetime.now(timezone.utc) - timedelta(hours=25))
    client.cookies.set(ADMIN_COOKIE, stale)
    resp = client.get("/admin/dashboard", follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/admin/login"


def test_logout_clears_cookie(client, admin):
    client.post("/admin/login", data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}, follow_redirects=False)
    resp = client.post("/admin/logout", follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/admin/login"
    resp = client.get("/admin/dashboard", follow_redirects=False)
    assert resp.status_code == 303


def test_seed_admin_is_idempotent(db_session):
    assert seed_admin(db_session, "seed@example.com", "seed-pass") is not None
    assert seed_admin(db_session, "seed@example.com", "seed-pass") is None
