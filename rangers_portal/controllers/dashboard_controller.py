"""Admin review dashboard.

All applications are loaded once into ``DashboardState.all_applications``;
filtering, stats, pagination and CSV export run over that cache. Writes go
through the Data Service and are merged back into the cache on success.
"""
import enum
import logging
import math
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable

from rangers_portal.core.catalog import organization_type_label, topic_label
from rangers_portal.core.config import get_settings
from rangers_portal.core.debounce import Debouncer
from rangers_portal.core.notifications import NotificationCenter
from rangers_portal.core.result import ErrorKind, Result
from rangers_portal.models.enums import ApplicationStatus, ViewMode
from rangers_portal.services.data_service import DELETE_WITH_LOGS_PROCEDURE, DataService

logger = logging.getLogger(__name__)

ELLIPSIS = "…"
UNKNOWN_ADMIN = "Unknown Admin"
SEARCH_FIELDS = ("full_name", "email", "organization", "application_id")
FILE_URL_FIELDS = ("cv_url", "recommendation_letter_url", "logo_url")

CSV_HEADERS = [
    "Application ID",
    "Full Name",
    "Email",
    "Phone",
    "Organization",
    "Organization Type",
    "Selected Topic",
    "Selected Module",
    "Motivation",
    "Status",
    "Created At",
    "Reviewed At",
    "Reviewed By",
    "Admin Notes",
]
EXPORT_FILENAME = "climate-rangers-applications.csv"
EXPORT_CONTENT_TYPE = "text/csv;charset=utf-8;"

DELETE_CONSTRAINT_MESSAGE = (
    "Failed to delete application due to foreign key constraints. "
    "The email_logs cleanup needs the delete_application_with_logs procedure on the backend."
)
DELETE_PERMISSION_MESSAGE = (
    "Permission denied. Backend delete permissions for applications must be granted to admins."
)


class DashboardAction(str, enum.Enum):
    LOAD = "load"
    REFRESH = "refresh"
    SET_SEARCH = "set_search"
    SET_FILTER = "set_filter"
    GO_TO_PAGE = "go_to_page"
    CHANGE_PAGE = "change_page"
    SET_VIEW_MODE = "set_view_mode"
    VIEW = "view"
    CLOSE_DETAIL = "close_detail"
    QUICK_STATUS = "quick_status"
    STAGE_STATUS = "stage_status"
    CONFIRM_STATUS = "confirm_status"
    CANCEL_STATUS = "cancel_status"
    EXPORT = "export"
    DELETE = "delete"


@dataclass
class Filters:
    search: str = ""
    status: str = ""
    topic: str = ""
    organization_type: str = ""


@dataclass
class PendingStatusChange:
    record_id: str
    application_id: str
    applicant_name: str
    new_status: ApplicationStatus


@dataclass(frozen=True)
class CsvExport:
    filename: str
    content_type: str
    content: str

    @property
    def body(self) -> bytes:
        return self.content.encode("utf-8")


@dataclass
class DashboardState:
    all_applications: list[dict[str, Any]] = field(default_factory=list)
    filtered: list[dict[str, Any]] = field(default_factory=list)
    filters: Filters = field(default_factory=Filters)
    current_page: int = 1
    items_per_page: int = 10
    view_mode: ViewMode = ViewMode.TABLE
    selected: dict[str, Any] | None = None
    pending_status_change: PendingStatusChange | None = None
    stats: dict[str, int] = field(default_factory=dict)
    loading: bool = False

    @property
    def empty(self) -> bool:
        return not self.filtered


def parse_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_date(value: Any) -> str:
    parsed = parse_timestamp(value)
    if parsed is None:
        return ""
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def format_datetime(value: Any) -> str:
    parsed = parse_timestamp(value)
    if parsed is None:
        return ""
    return f"{parsed:%Y-%m-%d %H:%M}"


def matches_filters(app: dict[str, Any], filters: Filters) -> bool:
    term = filters.search.strip().lower()
    if term and not any(term in str(app.get(name) or "").lower() for name in SEARCH_FIELDS):
        return False
    if filters.status and app.get("status") != filters.status:
        return False
    if filters.topic and str(app.get("selected_topic")) != str(filters.topic):
        return False
    if filters.organization_type and app.get("organization_type") != filters.organization_type:
        return False
    return True


def apply_filters(applications: Iterable[dict[str, Any]], filters: Filters) -> list[dict[str, Any]]:
    return [app for app in applications if matches_filters(app, filters)]


def compute_stats(applications: Iterable[dict[str, Any]]) -> dict[str, int]:
    stats = {"total": 0, **{status.value: 0 for status in ApplicationStatus}}
    for app in applications:
        stats["total"] += 1
        if app.get("status") in stats:
            stats[app["status"]] += 1
    return stats


def total_pages(total_items: int, per_page: int) -> int:
    return math.ceil(total_items / per_page) if total_items else 0


def page_window(current: int, pages: int) -> list[int | str]:
    """Page buttons to render, with ``ELLIPSIS`` marking skipped ranges."""
    if pages <= 1:
        return []
    if pages <= 5:
        return list(range(1, pages + 1))
    if current <= 3:
        return [1, 2, 3, 4, ELLIPSIS, pages]
    if current >= pages - 2:
        return [1, ELLIPSIS, *range(pages - 3, pages + 1)]
    return [1, ELLIPSIS, current - 1, current, current + 1, ELLIPSIS, pages]


def page_slice(items: list[Any], page: int, per_page: int) -> list[Any]:
    start = (page - 1) * per_page
    return items[start:start + per_page]


def pagination_summary(page: int, per_page: int, total_items: int) -> str:
    if total_items == 0:
        return "Showing 0-0 of 0 applications"
    start = (page - 1) * per_page + 1
    end = min(page * per_page, total_items)
    return f"Showing {start}-{end} of {total_items} applications"


def row_view(app: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": app["id"],
        "application_id": app.get("application_id"),
        "full_name": app.get("full_name"),
        "email": app.get("email"),
        "organization": app.get("organization"),
        "organization_type": organization_type_label(app.get("organization_type")),
        "topic": topic_label(app.get("selected_topic")),
        "module": app.get("selected_module"),
        "status": app.get("status"),
        "created_at": format_date(app.get("created_at")),
    }


def _quote(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


def generate_csv(applications: Iterable[dict[str, Any]]) -> str:
    """CSV of the given applications.

    Motivation is always quoted and admin notes are quoted when present;
    every other column is written as is.
    """
    lines = [",".join(CSV_HEADERS)]
    for app in applications:
        notes = app.get("admin_notes")
        row = [
            app.get("application_id") or "",
            app.get("full_name") or "",
            app.get("email") or "",
            app.get("phone") or "",
            app.get("organization") or "",
            organization_type_label(app.get("organization_type")),
            topic_label(app.get("selected_topic")),
            app.get("selected_module") or "",
            _quote(app.get("motivation") or ""),
            app.get("status") or "",
            format_datetime(app.get("created_at")),
            format_datetime(app.get("reviewed_at")),
            app.get("reviewed_by") or "",
            _quote(notes) if notes else "",
        ]
        lines.append(",".join(str(value) for value in row))
    return "\n".join(lines)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReviewDashboard:
    def __init__(
        self,
        data_service: DataService,
        admin_email: str | None = None,
        notifications: NotificationCenter | None = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = _utcnow,
        items_per_page: int = 10,
        search_debounce: float = 0.3,
    ):
        self.data_service = data_service
        self.admin_email = admin_email
        self.notifications = notifications or NotificationCenter(clock=clock)
        self.now = now
        self.state = DashboardState(items_per_page=items_per_page)
        self._search = Debouncer(search_debounce, self._apply_search, clock)
        self._handlers: dict[DashboardAction, Callable[..., Any]] = {
            DashboardAction.LOAD: self.load,
            DashboardAction.REFRESH: self.refresh,
            DashboardAction.SET_SEARCH: self.set_search,
            DashboardAction.SET_FILTER: self.set_filter,
            DashboardAction.GO_TO_PAGE: self.go_to_page,
            DashboardAction.CHANGE_PAGE: self.change_page,
            DashboardAction.SET_VIEW_MODE: self.set_view_mode,
            DashboardAction.VIEW: self.view,
            DashboardAction.CLOSE_DETAIL: self.close_detail,
            DashboardAction.QUICK_STATUS: self.quick_status,
            DashboardAction.STAGE_STATUS: self.stage_status_change,
            DashboardAction.CONFIRM_STATUS: self.confirm_status_change,
            DashboardAction.CANCEL_STATUS: self.cancel_status_change,
            DashboardAction.EXPORT: self.export_csv,
            DashboardAction.DELETE: self.delete_application,
        }

    @classmethod
    def from_settings(
        cls,
        data_service: DataService,
        admin_email: str | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> "ReviewDashboard":
        settings = get_settings()
        return cls(
            data_service,
            admin_email=admin_email,
            notifications=NotificationCenter(settings.notification_timeout_seconds, clock),
            clock=clock,
            items_per_page=settings.items_per_page,
            search_debounce=settings.search_debounce_ms / 1000,
        )

    def dispatch(self, action: DashboardAction | str, **payload: Any) -> Any:
        try:
            handler = self._handlers[DashboardAction(action)]
        except ValueError:
            return Result.invalid({"action": f"Unknown dashboard action: {action}"})
        return handler(**payload)

    def poll(self) -> bool:
        """Apply a debounced search once it is due."""
        return self._search.poll()

    # -- loading ----------------------------------------------------------

    def load(self) -> Result:
        state = self.state
        state.loading = True
        try:
            result = self.data_service.get_records(limit=None)
        finally:
            state.loading = False
        if not result.success:
            logger.error("error loading applications: %s", result.message)
            state.all_applications = []
            self._refilter(reset_page=True)
            self.notifications.error("Failed to load applications")
            return result
        state.all_applications = list(result.data or [])
        self._refilter(reset_page=True)
        return Result.ok(len(state.all_applications))

    def refresh(self) -> Result:
        self.notifications.info("Refreshing data...")
        result = self.load()
        if result.success:
            self.notifications.success("Data refreshed successfully")
        return result

    # -- filters and pagination -------------------------------------------

    def _refilter(self, reset_page: bool = False) -> None:
        state = self.state
        state.filtered = apply_filters(state.all_applications, state.filters)
        state.stats = compute_stats(state.all_applications)
        if reset_page:
            state.current_page = 1
        else:
            state.current_page = max(1, min(state.current_page, self.total_pages))

    def _apply_search(self, term: str) -> None:
        self.state.filters.search = term
        self._refilter(reset_page=True)

    def set_search(self, term: str, immediate: bool = False) -> None:
        if immediate:
            self._search.cancel()
            self._apply_search(term)
        else:
            self._search.trigger(term)

    def set_filter(self, name: str, value: str | None) -> Result:
        if name not in ("status", "topic", "organization_type"):
            return Result.invalid({name: f"Unknown filter: {name}"})
        setattr(self.state.filters, name, "" if value is None else str(value))
        self._refilter(reset_page=True)
        return Result.ok(len(self.state.filtered))

    @property
    def total_pages(self) -> int:
        return total_pages(len(self.state.filtered), self.state.items_per_page)

    @property
    def page_items(self) -> list[dict[str, Any]]:
        return page_slice(self.state.filtered, self.state.current_page, self.state.items_per_page)

    @property
    def page_numbers(self) -> list[int | str]:
        return page_window(self.state.current_page, self.total_pages)

    @property
    def summary(self) -> str:
        return pagination_summary(self.state.current_page, self.state.items_per_page, len(self.state.filtered))

    def go_to_page(self, page: int) -> bool:
        if page < 1 or page > self.total_pages:
            return False
        self.state.current_page = page
        return True

    def change_page(self, direction: int) -> bool:
        return self.go_to_page(self.state.current_page + direction)

    def set_view_mode(self, mode: ViewMode | str) -> ViewMode:
        self.state.view_mode = ViewMode(mode)
        return self.state.view_mode

    # -- detail -----------------------------------------------------------

    def _cached(self, record_id: str) -> dict[str, Any] | None:
        return next((app for app in self.state.all_applications if app["id"] == record_id), None)

    def view(self, record_id: str) -> Result:
        app = self._cached(record_id)
        if app is None:
            return Result.fail(ErrorKind.NOT_FOUND, "Application not found")
        self.state.selected = app
        return Result.ok(app)

    def close_detail(self) -> None:
        self.state.selected = None
        self.state.pending_status_change = None

    # -- status changes ---------------------------------------------------

    def _update_status(self, record_id: str, status: ApplicationStatus | str, admin_notes: str) -> Result:
        try:
            status = ApplicationStatus(status)
        except ValueError:
            return Result.invalid({"status": f"Unknown status: {status}"})
        if self._cached(record_id) is None:
            self.notifications.error("Failed to update application status")
            return Result.fail(ErrorKind.NOT_FOUND, "Application not found")

        fields = {
            "status": status.value,
            "reviewed_at": self.now().isoformat(),
            "reviewed_by": self.admin_email or UNKNOWN_ADMIN,
            "admin_notes": admin_notes,
        }
        result = self.data_service.update_record(record_id, fields)
        if not result.success:
            logger.error("error updating application %s: %s", record_id, result.message)
            self.notifications.error("Failed to update application status")
            return result

        apps = self.state.all_applications
        for index, app in enumerate(apps):
            if app["id"] == record_id:
                apps[index] = {**app, **result.data}
                if self.state.selected is not None and self.state.selected["id"] == record_id:
                    self.state.selected = apps[index]
                break
        self._refilter()
        self.notifications.success(f"Application {status.value} successfully")
        return Result.ok(result.data)

    def quick_status(self, record_id: str, status: ApplicationStatus | str) -> Result:
        try:
            status = ApplicationStatus(status)
        except ValueError:
            return Result.invalid({"status": f"Unknown status: {status}"})
        return self._update_status(record_id, status, f"Quick {status.value} action by admin")

    def stage_status_change(self, status: ApplicationStatus | str, record_id: str | None = None) -> Result:
        try:
            status = ApplicationStatus(status)
        except ValueError:
            return Result.invalid({"status": f"Unknown status: {status}"})
        app = self._cached(record_id) if record_id else self.state.selected
        if app is None:
            return Result.fail(ErrorKind.NOT_FOUND, "No application selected")
        self.state.selected = None
        self.state.pending_status_change = PendingStatusChange(
            record_id=app["id"],
            application_id=app.get("application_id") or "",
            applicant_name=app.get("full_name") or "",
            new_status=status,
        )
        return Result.ok(self.state.pending_status_change)

    def confirm_status_change(self, admin_notes: str = "") -> Result:
        pending = self.state.pending_status_change
        if pending is None:
            return Result.fail(ErrorKind.VALIDATION, "No status change to confirm")
        result = self._update_status(pending.record_id, pending.new_status, admin_notes or "")
        if result.success:
            self.state.pending_status_change = None
        return result

    def cancel_status_change(self) -> None:
        self.state.pending_status_change = None

    # -- export -----------------------------------------------------------

    def export_csv(self) -> Result:
        content = generate_csv(self.state.filtered)
        self.notifications.success("Applications exported successfully")
        return Result.ok(CsvExport(EXPORT_FILENAME, EXPORT_CONTENT_TYPE, content))

    # -- deletion ---------------------------------------------------------

    def delete_application(self, record_id: str) -> Result:
        """Delete an application together with its files and email logs."""
        fetched = self.data_service.get_record(record_id)
        if not fetched.success:
            if fetched.kind == ErrorKind.NOT_FOUND:
                self._forget(record_id)
                self.notifications.info("Application was already deleted")
                return Result.ok({"deleted": 0})
            return self._delete_failed(fetched, f"Failed to delete application: {fetched.message}")
        app = fetched.data

        paths = [
            path for path in (self.data_service.path_from_url(app.get(name)) for name in FILE_URL_FIELDS) if path
        ]
        removed_files: list[str] = []
        if paths:
            removal = self.data_service.remove_objects(paths)
            if not removal.success:
                logger.warning("could not remove files for %s: %s", record_id, removal.message)
            else:
                removed_files = removal.data.get("removed", [])
                if removal.data.get("failed"):
                    logger.warning("some files for %s were not removed: %s", record_id, removal.data["failed"])

        logs = self.data_service.delete_dependent_logs(record_id)
        if not logs.success:
            logger.warning("could not delete email logs for %s: %s", record_id, logs.message)

        deleted = self.data_service.delete_record(record_id)
        if not deleted.success:
            if deleted.kind == ErrorKind.CONSTRAINT:
                logger.info("falling back to %s for %s", DELETE_WITH_LOGS_PROCEDURE, record_id)
                deleted = self.data_service.call_procedure(DELETE_WITH_LOGS_PROCEDURE, app_id=record_id)
                if not deleted.success:
                    return self._delete_failed(deleted, DELETE_CONSTRAINT_MESSAGE, ErrorKind.CONSTRAINT)
            elif deleted.kind == ErrorKind.PERMISSION:
                return self._delete_failed(deleted, DELETE_PERMISSION_MESSAGE)
            else:
                return self._delete_failed(deleted, f"Failed to delete application: {deleted.message}")

        self._forget(record_id)
        self.notifications.success("Application and related files deleted successfully")
        return Result.ok({"deleted": (deleted.data or {}).get("deleted", 1), "removed_files": removed_files})

    def _forget(self, record_id: str) -> None:
        self.state.all_applications = [app for app in self.state.all_applications if app["id"] != record_id]
        if self.state.selected is not None and self.state.selected["id"] == record_id:
            self.close_detail()
        self._refilter()

    def _delete_failed(self, result: Result, message: str, kind: ErrorKind | None = None) -> Result:
        logger.error("delete failed: %s (%s)", message, result.message)
        self.notifications.error(message)
        return Result.fail(kind or result.kind or ErrorKind.SERVICE, message)
