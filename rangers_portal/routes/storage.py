from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from rangers_portal.core.auth import require_admin
from rangers_portal.core.config import get_settings
from rangers_portal.core.deps import get_data_service, get_storage
from rangers_portal.controllers.storage_controller import (
    read_upload_bytes,
    upload_object,
    remove_objects,
    serve_object,
)
from rangers_portal.schemas.storage_schema import RemoveObjectsRequest, RemoveObjectsResponse, StoredObject
from rangers_portal.services.data_service import SqlDataService
from rangers_portal.services.storage import LocalObjectStorage

router = APIRouter(prefix="/storage", tags=["storage"])


@router.get("/v1/object/public/{bucket}/{path:path}")
def serve_object_route(
    bucket: str,
    path: str,
    storage: LocalObjectStorage = Depends(get_storage),
):
    if bucket != storage.bucket:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Bucket not found")
    return serve_object(storage, path)


@router.post("/{path:path}", response_model=StoredObject)
async def upload_object_route(
    path: str,
    file: UploadFile = File(...),
    service: SqlDataService = Depends(get_data_service),
):
    settings = get_settings()
    data = await read_upload_bytes(file, max(settings.max_document_bytes, settings.max_image_bytes))
    return upload_object(service, path, data, file.content_type)


@router.delete("", response_model=RemoveObjectsResponse)
def remove_objects_route(
    payload: RemoveObjectsRequest,
    service: SqlDataService = Depends(get_data_service),
    _admin=Depends(require_admin),
):
    return remove_objects(service, payload.paths)
