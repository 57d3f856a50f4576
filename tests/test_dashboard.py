import csv
import io

import pytest

from rangers_portal.controllers.dashboard_controller import (
    CSV_HEADERS,
    DELETE_CONSTRAINT_MESSAGE,
    ELLIPSIS,
    EXPORT_CONTENT_TYPE,
    EXPORT_FILENAME,
    DashboardAction,
    Filters,
    ReviewDashboard,
    apply_filters,
    compute_stats,
    generate_csv,
    page_window,
    pagination_summary,
)
from rangers_portal.core.result import ErrorKind, Result
from rangers_portal.models.application_model import Application
from rangers_portal.models.email_log_model import EmailLog
from rangers_portal.services.data_service import SqlDataService

ADMIN = "reviewer@example.com"


class BrokenLoads(SqlDataService):
    def get_records(self, status=None, limit=50, offset=0):
        return Result.fail(ErrorKind.SERVICE, "connection refused")


class LogsCleanupDenied(SqlDataService):
    def delete_dependent_logs(self, record_id):
        return Result.fail(ErrorKind.PERMISSION, "permission denied for table email_logs")


class NoProcedure(LogsCleanupDenied):
    def call_procedure(self, name, **params):
        return Result.fail(ErrorKind.NOT_FOUND, f"function {name} does not exist")


def make_app(index, **overrides):
    app = {
        "id": f"id-{index}",
        "application_id": f"CR-{index:04d}",
        "full_name": f"Applicant {index}",
        "email": f"applicant{index}@example.org",
        "phone": "+1 555 000 0000",
        "organization": "Org",
        "organization_type": "ngo",
        "selected_topic": 1,
        "selected_module": "1.1",
        "motivation": "m",
        "status": "pending",
        "created_at": "2024-01-05T15:07:00+00:00",
        "reviewed_at": None,
        "reviewed_by": None,
        "admin_notes": None,
    }
    app.update(overrides)
    return app


def seed(data_service, payload_factory, count, **overrides):
    records = []
    for index in range(count):
        result = data_service.create_record(
            payload_factory(application_id=f"CR-SEED-{index:03d}", full_name=f"Applicant {index}", **overrides)
        )
        assert result.success
        records.append(result.data)
    return records


@pytest.fixture()
def dashboard(data_service, clock):
    return ReviewDashboard(data_service, admin_email=ADMIN, clock=clock)


@pytest.mark.parametrize(
    "current,pages,expected",
    [
        (1, 1, []),
        (2, 4, [1, 2, 3, 4]),
        (1, 10, [1, 2, 3, 4, ELLIPSIS, 10]),
        (9, 10, [1, ELLIPSIS, 7, 8, 9, 10]),
        (5, 10, [1, ELLIPSIS, 4, 5, 6, ELLIPSIS, 10]),
    ],
)
def test_page_window(current, pages, expected):
    assert page_window(current, pages) == expected


def test_pagination_summary():
    assert pagination_summary(2, 10, 25) == "Showing 11-20 of 25 applications"
    assert pagination_summary(3, 10, 25) == "Showing 21-25 of 25 applications"


def test_filters_combine_and_keep_order():
    apps = [
        make_app(1, full_name="Ada Lovelace", status="approved"),
        make_app(2, email="ADA@example.org"),
        make_app(3, organization="Adaptation Fund", selected_topic=2),
        make_app(4, organization_type="igo"),
    ]
    assert [a["id"] for a in apply_filters(apps, Filters(search="ada"))] == ["id-1", "id-2", "id-3"]
    assert [a["id"] for a in apply_filters(apps, Filters(search="ada", status="pending"))] == ["id-2", "id-3"]
    assert [a["id"] for a in apply_filters(apps, Filters(topic="2"))] == ["id-3"]
    assert [a["id"] for a in apply_filters(apps, Filters(organization_type="igo"))] == ["id-4"]
    assert [a["id"] for a in apply_filters(apps, Filters(search="cr-0004"))] == ["id-4"]


def test_compute_stats():
    apps = [make_app(1), make_app(2, status="approved"), make_app(3, status="rejected")]
    assert compute_stats(apps) == {"total": 3, "pending": 1, "reviewing": 0, "approved": 1, "rejected": 1}


def test_csv_quotes_motivation_and_notes():
    motivation = 'We said "climate first", then acted.\nTwice.'
    notes = 'Strong "finance" background'
    content = generate_csv(
        [
            make_app(1, motivation=motivation, admin_notes=notes, organization_type="private", selected_topic=4),
            make_app(2),
        ]
    )
    rows = list(csv.reader(io.StringIO(content)))
    assert rows[0] == CSV_HEADERS
    assert len(rows[0]) == 14
    first = rows[1]
    assert first[5] == "Private Sector"
    assert first[6] == "Climate Negotiation Strategies"
    assert first[8] == motivation
    assert first[10] == "2024-01-05 15:07"
    assert first[13] == notes
    assert rows[2][13] == ""
    assert rows[2][8] == "m"


def test_load_computes_stats(dashboard, data_service, payload_factory):
    seed(data_service, payload_factory, 3)
    assert dashboard.dispatch(DashboardAction.LOAD).data == 3
    assert dashboard.state.stats["total"] == 3
    assert dashboard.state.stats["pending"] == 3
    assert not dashboard.state.empty


def test_load_failure_shows_empty_state(db_session, storage, clock):
    dashboard = ReviewDashboard(BrokenLoads(db_session, storage), clock=clock)
    dashboard.state.all_applications = [make_app(1)]
    result = dashboard.load()
    assert result.kind == ErrorKind.SERVICE
    assert dashboard.state.empty
    assert dashboard.notifications.current.message == "Failed to load applications"


def test_refresh_notifies(dashboard):
    dashboard.refresh()
    assert [n.message for n in dashboard.notifications.history] == ["Refreshing data...", "Data refreshed successfully"]


def test_search_is_debounced(dashboard, data_service, payload_factory, clock):
    seed(data_service, payload_factory, 3)
    dashboard.load()
    dashboard.set_search("Applicant 1")
    assert len(dashboard.state.filtered) == 3
    clock.advance(0.2)
    assert not dashboard.poll()
    clock.advance(0.2)
    assert dashboard.poll()
    assert [a["full_name"] for a in dashboard.state.filtered] == ["Applicant 1"]


def test_paging_and_filter_reset(dashboard, data_service, payload_factory):
    seed(data_service, payload_factory, 25)
    dashboard.load()
    assert dashboard.total_pages == 3
    assert dashboard.go_to_page(3)
    assert len(dashboard.page_items) == 5
    assert not dashboard.go_to_page(4)
    assert not dashboard.change_page(1)
    assert dashboard.state.current_page == 3
    dashboard.set_filter("status", "pending")
    assert dashboard.state.current_page == 1
    assert dashboard.summary == "Showing 1-10 of 25 applications"


def test_view_mode_and_detail(dashboard, data_service, payload_factory):
    record = seed(data_service, payload_factory, 1)[0]
    dashboard.load()
    assert dashboard.set_view_mode("cards").value == "cards"
    assert dashboard.view(record["id"]).data["application_id"] == "CR-SEED-000"
    assert dashboard.view("missing").kind == ErrorKind.NOT_FOUND


def test_quick_approve_updates_stats(dashboard, data_service, payload_factory):
    records = seed(data_service, payload_factory, 2)
    dashboard.load()
    result = dashboard.dispatch(DashboardAction.QUICK_STATUS, record_id=records[0]["id"], status="approved")
    assert result.success
    assert result.data["reviewed_by"] == ADMIN
    assert result.data["admin_notes"] == "Quick approved action by admin"
    assert result.data["reviewed_at"] is not None
    assert dashboard.state.stats["approved"] == 1
    assert dashboard.state.stats["pending"] == 1
    assert dashboard.notifications.current.message == "Application approved successfully"


def test_unknown_admin_is_recorded(data_service, payload_factory, clock):
    record = seed(data_service, payload_factory, 1)[0]
    dashboard = ReviewDashboard(data_service, clock=clock)
    dashboard.load()
    assert dashboard.quick_status(record["id"], "reviewing").data["reviewed_by"] == "Unknown Admin"


def test_confirmed_status_change(dashboard, data_service, payload_factory):
    record = seed(data_service, payload_factory, 1)[0]
    dashboard.load()
    dashboard.view(record["id"])
    staged = dashboard.stage_status_change("rejected").data
    assert staged.applicant_name == "Applicant 0"
    assert dashboard.state.selected is None
    dashboard.cancel_status_change()
    assert dashboard.confirm_status_change("nope").kind == ErrorKind.VALIDATION

    dashboard.stage_status_change("rejected", record_id=record["id"])
    result = dashboard.confirm_status_change("Outside the programme scope")
    assert result.data["status"] == "rejected"
    assert result.data["admin_notes"] == "Outside the programme scope"
    assert dashboard.state.pending_status_change is None


def test_export_uses_filtered_set(dashboard, data_service, payload_factory):
    records = seed(data_service, payload_factory, 3)
    dashboard.load()
    dashboard.quick_status(records[1]["id"], "approved")
    dashboard.set_filter("status", "approved")
    export = dashboard.export_csv().data
    assert export.filename == EXPORT_FILENAME
    assert export.content_type == EXPORT_CONTENT_TYPE
    lines = export.content.split("\n")
    assert len(lines) == 2
    assert lines[1].startswith("CR-SEED-001,")


def test_delete_removes_files_logs_and_record(
    dashboard, data_service, storage, db_session, payload_factory, add_email_log
):
    uploaded = data_service.upload_object(b"cv", "CR-SEED-000/cv/cv.pdf").data
    record = seed(data_service, payload_factory, 1, cv_url=uploaded["url"])[0]
    add_email_log(record["id"])
    dashboard.load()

    result = dashboard.dispatch(DashboardAction.DELETE, record_id=record["id"])
    assert result.success
    assert result.data["removed_files"] == ["CR-SEED-000/cv/cv.pdf"]
    assert not storage.resolve("CR-SEED-000/cv/cv.pdf").exists()
    assert db_session.query(EmailLog).count() == 0
    assert db_session.query(Application).count() == 0
    assert dashboard.state.stats["total"] == 0


def test_delete_falls_back_to_procedure(db_session, storage, payload_factory, clock, add_email_log):
    service = LogsCleanupDenied(db_session, storage)
    record = seed(service, payload_factory, 1)[0]
    add_email_log(record["id"])
    dashboard = ReviewDashboard(service, admin_email=ADMIN, clock=clock)
    dashboard.load()

    result = dashboard.delete_application(record["id"])
    assert result.success
    assert db_session.query(Application).count() == 0
    assert db_session.query(EmailLog).count() == 0


def test_delete_reports_constraint_guidance(db_session, storage, payload_factory, clock, add_email_log):
    service = NoProcedure(db_session, storage)
    record = seed(service, payload_factory, 1)[0]
    add_email_log(record["id"])
    dashboard = ReviewDashboard(service, clock=clock)
    dashboard.load()

    result = dashboard.delete_application(record["id"])
    assert result.kind == ErrorKind.CONSTRAINT
    assert result.message == DELETE_CONSTRAINT_MESSAGE
    assert dashboard.notifications.current.message == DELETE_CONSTRAINT_MESSAGE
    assert db_session.query(Application).count() == 1
    assert len(dashboard.state.all_applications) == 1


def test_delete_missing_record_is_resolved(dashboard):
    result = dashboard.delete_application("does-not-exist")
    assert result.success
    assert result.data["deleted"] == 0


def test_unknown_status_is_rejected(dashboard, data_service, payload_factory):
    record = seed(data_service, payload_factory, 1)[0]
    dashboard.load()
    assert dashboard.quick_status(record["id"], "archived").kind == ErrorKind.VALIDATION
    assert dashboard.stage_status_change("archived", record_id=record["id"]).kind == ErrorKind.VALIDATION
    assert dashboard.state.pending_status_change is None
