from fastapi import APIRouter, Depends, Form, Query, Request, Response, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session
from rangers_portal.core.auth import ADMIN_COOKIE, cookie_session
from rangers_portal.core.config import get_settings
from rangers_portal.core.db import get_db
from rangers_portal.core.deps import get_data_service
from rangers_portal.controllers.dashboard_controller import ReviewDashboard, row_view
from rangers_portal.controllers.session_controller import DASHBOARD_PATH, LOGIN_PATH
from rangers_portal.controllers.auth_controller import authenticate
from rangers_portal.schemas.admin_schema import AdminSession
from rangers_portal.services.data_service import SqlDataService

router = APIRouter(prefix="/admin", tags=["pages"])


def _to_login() -> RedirectResponse:
    return RedirectResponse(LOGIN_PATH, status_code=status.HTTP_303_SEE_OTHER)


def _build_dashboard(
    service: SqlDataService,
    session: AdminSession,
    search: str,
    status_filter: str,
    topic: str,
    organization_type: str,
) -> tuple[ReviewDashboard, str | None]:
    dashboard = ReviewDashboard.from_settings(service, admin_email=session.email)
    loaded = dashboard.load()
    error = None if loaded.success else dashboard.notifications.last.message
    dashboard.set_filter("status", status_filter)
    dashboard.set_filter("topic", topic)
    dashboard.set_filter("organization_type", organization_type)
    dashboard.set_search(search, immediate=True)
    return dashboard, error


@router.get("")
def admin_index_route(request: Request):
    if cookie_session(request) is None:
        return _to_login()
    return RedirectResponse(DASHBOARD_PATH, status_code=status.HTTP_303_SEE_OTHER)


@router.get("/login")
def login_page_route(request: Request, error: str | None = None):
    if cookie_session(request) is not None:
        return RedirectResponse(DASHBOARD_PATH, status_code=status.HTTP_303_SEE_OTHER)
    return {"form": ["email", "password"], "action": LOGIN_PATH, "error": error}


@router.post("/login")
def login_form_route(
    email: str = Form(...),
    password: str = Form(...),
    db: Session = Depends(get_db),
):
    issued = authenticate(db, email, password)
    if issued is None:
        return RedirectResponse(f"{LOGIN_PATH}?error=invalid", status_code=status.HTTP_303_SEE_OTHER)
    response = RedirectResponse(DASHBOARD_PATH, status_code=status.HTTP_303_SEE_OTHER)
    response.set_cookie(
        ADMIN_COOKIE,
        issued.access_token,
        max_age=get_settings().session_ttl_hours * 3600,
        httponly=True,
        samesite="lax",
    )
    return response


@router.post("/logout")
def logout_route():
    response = _to_login()
    response.delete_cookie(ADMIN_COOKIE)
    return response


@router.get("/dashboard")
def dashboard_route(
    request: Request,
    search: str = "",
    status_filter: str = Query(default="", alias="status"),
    topic: str = "",
    organization_type: str = "",
    page: int = 1,
    view: str = "table",
    service: SqlDataService = Depends(get_data_service),
):
    session = cookie_session(request)
    if session is None:
        return _to_login()
    dashboard, error = _build_dashboard(service, session, search, status_filter, topic, organization_type)
    dashboard.go_to_page(page)
    dashboard.set_view_mode(view if view in ("table", "cards") else "table")
    return {
        "admin": session.email,
        "error": error,
        "stats": dashboard.state.stats,
        "view_mode": dashboard.state.view_mode.value,
        "current_page": dashboard.state.current_page,
        "total_pages": dashboard.total_pages,
        "pages": dashboard.page_numbers,
        "summary": dashboard.summary,
        "applications": [row_view(app) for app in dashboard.page_items],
    }


@router.get("/dashboard/export")
def export_route(
    request: Request,
    search: str = "",
    status_filter: str = Query(default="", alias="status"),
    topic: str = "",
    organization_type: str = "",
    service: SqlDataService = Depends(get_data_service),
):
    session = cookie_session(request)
    if session is None:
        return _to_login()
    dashboard, _error = _build_dashboard(service, session, search, status_filter, topic, organization_type)
    export = dashboard.export_csv().data
    return Response(
        content=export.body,
        media_type=export.content_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )
