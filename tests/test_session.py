from datetime import datetime, timedelta, timezone

import pytest

from rangers_portal.controllers.session_controller import LOGIN_PATH, AdminSessionManager
from rangers_portal.core.local_store import SESSION_KEY, LocalStore
from rangers_portal.core.result import ErrorKind

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "correct-password"


class Now:
    def __init__(self):
        self.value = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.value


@pytest.fixture()
def now():
    return Now()


@pytest.fixture()
def manager(data_service, now):
    return AdminSessionManager(data_service, store=LocalStore(), now=now)


def test_login_persists_session(manager, admin, now):
    result = manager.login(ADMIN_EMAIL.upper(), ADMIN_PASSWORD)
    assert result.success
    session = manager.get_session()
    assert session["email"] == ADMIN_EMAIL
    assert session["id"] == admin.id
    assert session["login_time"] == now.value.isoformat()


def test_login_rejects_bad_credentials(manager, admin):
    assert manager.login(ADMIN_EMAIL, "wrong").kind == ErrorKind.PERMISSION
    assert manager.login("nobody@example.com", ADMIN_PASSWORD).kind == ErrorKind.PERMISSION
    assert manager.login("", "").kind == ErrorKind.VALIDATION


@pytest.mark.parametrize("email", ["a_min@example.com", "%", "admin@%"])
def test_login_matches_email_exactly(manager, admin, email):
    result = manager.login(email, ADMIN_PASSWORD)
    assert result.kind == ErrorKind.PERMISSION
    assert manager.get_session() is None
    assert SESSION_KEY not in manager.store


def test_session_expires_after_a_day(manager, admin, now):
    manager.login(ADMIN_EMAIL, ADMIN_PASSWORD)
    now.value += timedelta(hours=23, minutes=59)
    assert manager.is_session_valid()
    now.value += timedelta(minutes=2)
    assert not manager.is_session_valid()
    assert SESSION_KEY not in manager.store
    assert manager.require_session() == LOGIN_PATH


def test_unparseable_session_is_removed(manager):
    manager.store.set_raw(SESSION_KEY, "not-json")
    assert not manager.is_session_valid()
    assert SESSION_KEY not in manager.store
    manager.store.set(SESSION_KEY, {"id": "x", "email": "a@b.c", "login_time": "yesterday"})
    assert manager.get_session() is None


def test_logout(manager, admin):
    manager.login(ADMIN_EMAIL, ADMIN_PASSWORD)
    assert manager.require_session() is None
    assert manager.logout() == LOGIN_PATH
    assert not manager.is_session_valid()


def test_from_settings_uses_session_ttl(data_service):
    manager = AdminSessionManager.from_settings(data_service)
    assert manager.ttl == timedelta(hours=24)
