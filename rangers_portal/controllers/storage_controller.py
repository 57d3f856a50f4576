import logging
from fastapi import HTTPException, UploadFile, status
from fastapi.responses import FileResponse
from rangers_portal.controllers.application_controller import unwrap
from rangers_portal.schemas.storage_schema import RemoveObjectsResponse, StoredObject
from rangers_portal.services.data_service import SqlDataService
from rangers_portal.services.storage import InvalidObjectPath, LocalObjectStorage

logger = logging.getLogger(__name__)


async def read_upload_bytes(file: UploadFile, max_bytes: int) -> bytes:
    buffer = bytearray()
    while True:
        chunk = await file.read(1024 * 1024)
        if not chunk:
            break
        buffer.extend(chunk)
        if len(buffer) > max_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File too large. Max size is {max_bytes} bytes.",
            )
    return bytes(buffer)


def upload_object(service: SqlDataService, path: str, data: bytes, content_type: str | None) -> StoredObject:
    return StoredObject(**unwrap(service.upload_object(data, path, content_type)))


def remove_objects(service: SqlDataService, paths: list[str]) -> RemoveObjectsResponse:
    return RemoveObjectsResponse(**unwrap(service.remove_objects(paths)))


def serve_object(storage: LocalObjectStorage, path: str) -> FileResponse:
    try:
        full_path = storage.resolve(path)
    except InvalidObjectPath:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid object path")
    if not full_path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Object not found")
    return FileResponse(full_path, filename=full_path.name)
