import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from rangers_portal.core.config import get_settings
from rangers_portal.core.local_store import SESSION_KEY, LocalStore
from rangers_portal.core.result import ErrorKind, Result
from rangers_portal.services.data_service import DataService

logger = logging.getLogger(__name__)

LOGIN_PATH = "/admin/login"
DASHBOARD_PATH = "/admin/dashboard"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AdminSessionManager:
    """Admin session kept in client-local storage under ``SESSION_KEY``."""

    def __init__(
        self,
        data_service: DataService,
        store: LocalStore | None = None,
        now: Callable[[], datetime] = _utcnow,
        ttl_hours: int = 24,
    ):
        self.data_service = data_service
        self.store = store or LocalStore()
        self.now = now
        self.ttl = timedelta(hours=ttl_hours)

    @classmethod
    def from_settings(cls, data_service: DataService) -> "AdminSessionManager":
        settings = get_settings()
        return cls(data_service, store=LocalStore(settings.local_store_path), ttl_hours=settings.session_ttl_hours)

    def login(self, email: str, password: str) -> Result:
        if not email or not password:
            return Result.invalid({"email": "Email and password are required"})
        result = self.data_service.authenticate_admin(email.strip(), password)
        if not result.success:
            logger.warning("admin login failed for %s: %s", email, result.message)
            if result.kind in (ErrorKind.NOT_FOUND, ErrorKind.PERMISSION):
                return Result.fail(ErrorKind.PERMISSION, "Invalid email or password")
            return result
        admin = result.data
        session = {"id": admin["id"], "email": admin["email"], "login_time": self.now().isoformat()}
        self.store.set(SESSION_KEY, session)
        logger.info("admin %s logged in", admin["email"])
        return Result.ok(session)

    def _load(self) -> dict[str, Any] | None:
        try:
            session = self.store.get(SESSION_KEY)
        except ValueError:
            logger.warning("stored admin session is unreadable")
            return None
        if not isinstance(session, dict):
            return None
        return session

    def is_session_valid(self) -> bool:
        if SESSION_KEY not in self.store:
            return False
        session = self._load()
        login_time = None
        if session is not None:
            try:
                login_time = datetime.fromisoformat(session["login_time"])
            except (KeyError, TypeError, ValueError):
                login_time = None
        if login_time is None:
            self.store.remove(SESSION_KEY)
            return False
        if login_time.tzinfo is None:
            login_time = login_time.replace(tzinfo=timezone.utc)
        if self.now() - login_time > self.ttl:
            self.store.remove(SESSION_KEY)
            return False
        return True

    def get_session(self) -> dict[str, Any] | None:
        if not self.is_session_valid():
            return None
        return self._load()

    def require_session(self) -> str | None:
        """Navigation target when the dashboard may not be shown, else None."""
        return None if self.is_session_valid() else LOGIN_PATH

    def logout(self) -> str:
        self.store.remove(SESSION_KEY)
        return LOGIN_PATH
