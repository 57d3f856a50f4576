from fastapi import APIRouter, Depends, Query, status
from rangers_portal.core.auth import require_admin
from rangers_portal.core.deps import get_data_service
from rangers_portal.controllers.application_controller import (
    create_application,
    list_applications,
    search_applications,
    get_stats,
    get_application,
    update_application,
    delete_application,
    delete_email_logs,
)
from rangers_portal.schemas.application_schema import (
    ApplicationCreate,
    ApplicationRead,
    ApplicationStats,
    ApplicationUpdate,
    DeleteLogsResponse,
)
from rangers_portal.services.data_service import SqlDataService

router = APIRouter(prefix="/applications", tags=["applications"])


@router.post("", response_model=ApplicationRead, status_code=status.HTTP_201_CREATED)
def create_application_route(
    payload: ApplicationCreate,
    service: SqlDataService = Depends(get_data_service),
):
    return create_application(service, payload)


@router.get("", response_model=list[ApplicationRead])
def list_applications_route(
    status_filter: str | None = Query(default=None, alias="status"),
    limit: int | None = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    service: SqlDataService = Depends(get_data_service),
    _admin=Depends(require_admin),
):
    return list_applications(service, status_filter, limit, offset)


@router.get("/search", response_model=list[ApplicationRead])
def search_applications_route(
    term: str = Query(...),
    field: str = Query(default="full_name"),
    service: SqlDataService = Depends(get_data_service),
    _admin=Depends(require_admin),
):
    return search_applications(service, term, field)


@router.get("/stats", response_model=ApplicationStats)
def stats_route(
    service: SqlDataService = Depends(get_data_service),
    _admin=Depends(require_admin),
):
    return get_stats(service)


@router.get("/{record_id}", response_model=ApplicationRead)
def get_application_route(
    record_id: str,
    service: SqlDataService = Depends(get_data_service),
    _admin=Depends(require_admin),
):
    return get_application(service, record_id)


@router.patch("/{record_id}", response_model=ApplicationRead)
def update_application_route(
    record_id: str,
    payload: ApplicationUpdate,
    service: SqlDataService = Depends(get_data_service),
    admin=Depends(require_admin),
):
    return update_application(service, record_id, payload, admin)


@router.delete("/{record_id}")
def delete_application_route(
    record_id: str,
    service: SqlDataService = Depends(get_data_service),
    _admin=Depends(require_admin),
):
    return delete_application(service, record_id)


@router.delete("/{record_id}/email-logs", response_model=DeleteLogsResponse)
def delete_email_logs_route(
    record_id: str,
    service: SqlDataService = Depends(get_data_service),
    _admin=Depends(require_admin),
):
    return delete_email_logs(service, record_id)
