from fastapi import APIRouter, Depends
from rangers_portal.core.auth import require_admin
from rangers_portal.core.deps import get_data_service
from rangers_portal.controllers.application_controller import call_procedure
from rangers_portal.schemas.application_schema import ProcedureCall
from rangers_portal.services.data_service import SqlDataService

router = APIRouter(prefix="/rpc", tags=["rpc"])


@router.post("/{name}")
def call_procedure_route(
    name: str,
    payload: ProcedureCall,
    service: SqlDataService = Depends(get_data_service),
    _admin=Depends(require_admin),
):
    return call_procedure(service, name, payload)
