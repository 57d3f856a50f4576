"""The narrow Data Service boundary both state machines talk to.

:class:`DataService` is the request/result contract; :class:`SqlDataService`
is the in-process implementation over a SQLAlchemy session and the local
object storage. Every method returns a :class:`Result` and never raises for
backend failures.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from rangers_portal.core.result import ErrorKind, Result
from rangers_portal.core.security import verify_password
from rangers_portal.models.enums import ApplicationStatus
from rangers_portal.repositories import admin_user_repo, application_repo, email_log_repo
from rangers_portal.schemas.admin_schema import AdminRead
from rangers_portal.schemas.application_schema import (
    ApplicationCreate,
    ApplicationRead,
    ApplicationStats,
    ApplicationUpdate,
)
from rangers_portal.services.storage import InvalidObjectPath, LocalObjectStorage

logger = logging.getLogger(__name__)

DELETE_WITH_LOGS_PROCEDURE = "delete_application_with_logs"


class DataService(ABC):
    @abstractmethod
    def create_record(self, payload: dict[str, Any]) -> Result:
        ...

    @abstractmethod
    def get_records(self, status: str | None = None, limit: int | None = 50, offset: int = 0) -> Result:
        ...

    @abstractmethod
    def get_record(self, record_id: str) -> Result:
        ...

    @abstractmethod
    def update_record(self, record_id: str, fields: dict[str, Any]) -> Result:
        ...

    @abstractmethod
    def delete_record(self, record_id: str) -> Result:
        ...

    @abstractmethod
    def upload_object(self, data: bytes, path: str, content_type: str | None = None) -> Result:
        ...

    @abstractmethod
    def remove_objects(self, paths: list[str]) -> Result:
        ...

    @abstractmethod
    def search_records(self, term: str, field: str = "full_name") -> Result:
        ...

    @abstractmethod
    def delete_dependent_logs(self, record_id: str) -> Result:
        ...

    @abstractmethod
    def call_procedure(self, name: str, **params: Any) -> Result:
        ...

    @abstractmethod
    def authenticate_admin(self, email: str, password: str) -> Result:
        ...

    @abstractmethod
    def get_stats(self) -> Result:
        ...

    @abstractmethod
    def path_from_url(self, url: str | None) -> str | None:
        ...


def _validation_failure(exc: ValidationError) -> Result:
    field_errors = {}
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or "payload"
        field_errors[loc] = err.get("msg", "Invalid value")
    return Result.invalid(field_errors)


def _serialize(app) -> dict[str, Any]:
    return ApplicationRead.model_validate(app).model_dump(mode="json")


class SqlDataService(DataService):
    def __init__(self, db: Session, storage: LocalObjectStorage):
        self.db = db
        self.storage = storage

    def _service_failure(self, action: str, exc: Exception) -> Result:
        self.db.rollback()
        logger.exception("%s failed", action)
        return Result.fail(ErrorKind.SERVICE, f"{action} failed")

    def create_record(self, payload: dict[str, Any]) -> Result:
        try:
            data = ApplicationCreate.model_validate({**payload, "status": ApplicationStatus.PENDING})
        except ValidationError as exc:
            return _validation_failure(exc)
        try:
            app = application_repo.create_application(self.db, data)
        except SQLAlchemyError as exc:
            return self._service_failure("Application submission", exc)
        logger.info("created application %s (%s)", app.application_id, app.id)
        return Result.ok(_serialize(app))

    def get_records(self, status: str | None = None, limit: int | None = 50, offset: int = 0) -> Result:
        try:
            status_filter = ApplicationStatus(status) if status else None
        except ValueError:
            return Result.invalid({"status": f"Unknown status: {status}"})
        try:
            apps = application_repo.list_applications(self.db, status=status_filter, limit=limit, offset=offset)
        except SQLAlchemyError as exc:
            return self._service_failure("Fetching applications", exc)
        return Result.ok([_serialize(app) for app in apps])

    def get_record(self, record_id: str) -> Result:
        try:
            app = application_repo.get_application_by_id(self.db, record_id)
        except SQLAlchemyError as exc:
            return self._service_failure("Fetching application", exc)
        if app is None:
            return Result.fail(ErrorKind.NOT_FOUND, f"Application not found with ID: {record_id}")
        return Result.ok(_serialize(app))

    def update_record(self, record_id: str, fields: dict[str, Any]) -> Result:
        try:
            data = ApplicationUpdate.model_validate(fields)
        except ValidationError as exc:
            return _validation_failure(exc)
        try:
            app = application_repo.get_application_by_id(self.db, record_id)
            if app is None:
                return Result.fail(ErrorKind.NOT_FOUND, f"Application not found: {record_id}")
            app = application_repo.update_application(self.db, app, data)
        except SQLAlchemyError as exc:
            return self._service_failure("Updating application", exc)
        return Result.ok(_serialize(app))

    def delete_record(self, record_id: str) -> Result:
        try:
            app = application_repo.get_application_by_id(self.db, record_id)
            if app is None:
                # Already gone; the end result is the same.
                return Result.ok({"deleted": 0})
            application_repo.delete_application(self.db, app)
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning("delete of %s hit a foreign key constraint: %s", record_id, exc.orig)
            return Result.fail(
                ErrorKind.CONSTRAINT,
                f"Application {record_id} is still referenced (foreign key constraint)",
            )
        except SQLAlchemyError as exc:
            return self._service_failure("Deleting application", exc)
        return Result.ok({"deleted": 1})

    def upload_object(self, data: bytes, path: str, content_type: str | None = None) -> Result:
        try:
            stored = self.storage.upload(data, path)
        except InvalidObjectPath as exc:
            return Result.invalid({"path": str(exc)})
        except OSError as exc:
            logger.exception("upload of %s failed", path)
            return Result.fail(ErrorKind.SERVICE, "Upload failed")
        return Result.ok(stored.model_dump())

    def remove_objects(self, paths: list[str]) -> Result:
        removed, failed = self.storage.remove(paths)
        return Result.ok({"removed": removed, "failed": failed})

    def search_records(self, term: str, field: str = "full_name") -> Result:
        try:
            apps = application_repo.search_applications(self.db, term, field)
        except ValueError as exc:
            return Result.invalid({"field": str(exc)})
        except SQLAlchemyError as exc:
            return self._service_failure("Searching applications", exc)
        return Result.ok([_serialize(app) for app in apps])

    def delete_dependent_logs(self, record_id: str) -> Result:
        try:
            deleted = email_log_repo.delete_email_logs(self.db, record_id)
        except SQLAlchemyError as exc:
            return self._service_failure("Deleting email logs", exc)
        return Result.ok(deleted)

    def call_procedure(self, name: str, **params: Any) -> Result:
        if name != DELETE_WITH_LOGS_PROCEDURE:
            return Result.fail(ErrorKind.NOT_FOUND, f"Unknown procedure: {name}")
        record_id = params.get("app_id")
        if not record_id:
            return Result.invalid({"app_id": "app_id is required"})
        try:
            deleted = application_repo.delete_application_with_logs(self.db, record_id)
        except SQLAlchemyError as exc:
            return self._service_failure(f"Procedure {name}", exc)
        return Result.ok({"deleted": deleted})

    def authenticate_admin(self, email: str, password: str) -> Result:
        try:
            admin = admin_user_repo.get_admin_by_email(self.db, email)
        except SQLAlchemyError as exc:
            return self._service_failure("Admin lookup", exc)
        if admin is None:
            return Result.fail(ErrorKind.NOT_FOUND, "Admin user not found")
        if not verify_password(password, admin.password_hash):
            return Result.fail(ErrorKind.PERMISSION, "Invalid password")
        try:
            admin = admin_user_repo.touch_last_login(self.db, admin, datetime.now(timezone.utc))
        except SQLAlchemyError as exc:
            return self._service_failure("Admin login", exc)
        return Result.ok(AdminRead.model_validate(admin).model_dump(mode="json"))

    def get_stats(self) -> Result:
        try:
            counts = application_repo.count_by_status(self.db)
        except SQLAlchemyError as exc:
            return self._service_failure("Fetching application stats", exc)
        stats = ApplicationStats(
            total=sum(counts.values()),
            **{status.value: counts.get(status, 0) for status in ApplicationStatus},
        )
        return Result.ok(stats.model_dump())

    def path_from_url(self, url: str | None) -> str | None:
        return self.storage.path_from_url(url)
