import logging
from datetime import datetime, timezone
from fastapi import HTTPException, status
from rangers_portal.core.result import ErrorKind, Result
from rangers_portal.schemas.admin_schema import AdminSession
from rangers_portal.schemas.application_schema import (
    ApplicationCreate,
    ApplicationUpdate,
    DeleteLogsResponse,
    ProcedureCall,
)
from rangers_portal.services.data_service import SqlDataService

logger = logging.getLogger(__name__)

_HTTP_STATUS = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONSTRAINT: status.HTTP_409_CONFLICT,
    ErrorKind.PERMISSION: status.HTTP_403_FORBIDDEN,
    ErrorKind.SERVICE: status.HTTP_502_BAD_GATEWAY,
}


def unwrap(result: Result):
    """Return the result's data or raise the matching HTTPException."""
    if result.success:
        return result.data
    raise HTTPException(status_code=_HTTP_STATUS[result.kind], detail=result.message)


def create_application(service: SqlDataService, payload: ApplicationCreate) -> dict:
    return unwrap(service.create_record(payload.model_dump(mode="json")))


def list_applications(service: SqlDataService, status_filter: str | None, limit: int | None, offset: int) -> list:
    return unwrap(service.get_records(status=status_filter, limit=limit, offset=offset))


def search_applications(service: SqlDataService, term: str, field: str) -> list:
    return unwrap(service.search_records(term, field))


def get_stats(service: SqlDataService) -> dict:
    return unwrap(service.get_stats())


def get_application(service: SqlDataService, record_id: str) -> dict:
    return unwrap(service.get_record(record_id))


def update_application(
    service: SqlDataService,
    record_id: str,
    data: ApplicationUpdate,
    session: AdminSession,
) -> dict:
    fields = data.model_dump(exclude_unset=True, mode="json")
    if "status" in fields:
        fields.setdefault("reviewed_at", datetime.now(timezone.utc).isoformat())
        fields.setdefault("reviewed_by", session.email)
    return unwrap(service.update_record(record_id, fields))


def delete_application(service: SqlDataService, record_id: str) -> dict:
    return unwrap(service.delete_record(record_id))


def delete_email_logs(service: SqlDataService, record_id: str) -> DeleteLogsResponse:
    return DeleteLogsResponse(deleted=unwrap(service.delete_dependent_logs(record_id)))


def call_procedure(service: SqlDataService, name: str, data: ProcedureCall) -> dict:
    logger.info("procedure %s called for %s", name, data.app_id)
    return unwrap(service.call_procedure(name, **data.model_dump()))
