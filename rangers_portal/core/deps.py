from fastapi import Depends
from sqlalchemy.orm import Session
from rangers_portal.core.db import get_db
from rangers_portal.services.data_service import SqlDataService
from rangers_portal.services.storage import LocalObjectStorage


def get_storage() -> LocalObjectStorage:
    return LocalObjectStorage.from_settings()


def get_data_service(
    db: Session = Depends(get_db),
    storage: LocalObjectStorage = Depends(get_storage),
) -> SqlDataService:
    return SqlDataService(db, storage)
