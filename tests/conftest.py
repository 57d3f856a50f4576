import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("SESSION_TTL_HOURS", "24")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rangers_portal.core.db import get_db
from rangers_portal.core.deps import get_storage
from rangers_portal.core.security import hash_password
from rangers_portal.main import app
from rangers_portal.models.base import Base
from rangers_portal.models.admin_user_model import AdminUser
from rangers_portal.models.email_log_model import EmailLog
from rangers_portal.models import application_model  # noqa: F401
from rangers_portal.services.data_service import SqlDataService
from rangers_portal.services.storage import LocalObjectStorage

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "correct-password"


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def db_session():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture()
def storage(tmp_path):
    return LocalObjectStorage(tmp_path / "storage", "applications", "http://testserver")


@pytest.fixture()
def data_service(db_session, storage):
    return SqlDataService(db_session, storage)


@pytest.fixture()
def admin(db_session):
    account = AdminUser(email=ADMIN_EMAIL, password_hash=hash_password(ADMIN_PASSWORD))
    db_session.add(account)
    db_session.commit()
    db_session.refresh(account)
    return account


@pytest.fixture()
def client(db_session, storage):
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers(client, admin):
    resp = client.post("/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def application_payload(**overrides):
    payload = {
        "application_id": "CR-TEST-00001",
        "full_name": "Ada Lovelace",
        "email": "ada@example.org",
        "phone": "+44 20 7946 0958",
        "organization": "Analytical Engines",
        "organization_type": "ngo",
        "selected_topic": 2,
        "selected_module": "2.1",
        "motivation": "I want to understand how the UNFCCC shapes national climate commitments.",
        "cv_url": None,
        "recommendation_letter_url": None,
        "logo_url": None,
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def payload_factory():
    return application_payload


@pytest.fixture()
def add_email_log(db_session):
    def _add(application_id: str, recipient: str = "applicant@example.org", subject: str = "Application received"):
        log = EmailLog(application_id=application_id, recipient=recipient, subject=subject)
        db_session.add(log)
        db_session.commit()
        return log

    return _add
