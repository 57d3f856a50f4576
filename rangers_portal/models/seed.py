from __future__ import annotations

import logging
import os

from sqlalchemy.orm import Session

from rangers_portal.core.db import SessionLocal, get_engine
from rangers_portal.core.logging import configure_logging
from rangers_portal.core.security import hash_password
from rangers_portal.models.admin_user_model import AdminUser
from rangers_portal.repositories.admin_user_repo import create_admin, get_admin_by_email
from rangers_portal.models.base import Base
from rangers_portal.models import application_model, email_log_model  # noqa: F401

logger = logging.getLogger(__name__)


def seed_admin(db: Session, email: str, password: str) -> AdminUser | None:
    existing = get_admin_by_email(db, email)
    if existing:
        logger.info("admin %s already exists", email)
        return None
    admin = create_admin(db, email, hash_password(password))
    logger.info("created admin %s", email)
    return admin


def run_seed() -> None:
    if SessionLocal is None:
        raise RuntimeError("DATABASE_URL is not set")
    email = os.getenv("SEED_ADMIN_EMAIL")
    password = os.getenv("SEED_ADMIN_PASSWORD")
    if not email or not password:
        raise RuntimeError("SEED_ADMIN_EMAIL and SEED_ADMIN_PASSWORD must be set")
    Base.metadata.create_all(bind=get_engine())
    db = SessionLocal()
    try:
        seed_admin(db, email, password)
    finally:
        db.close()


if __name__ == "__main__":
    configure_logging()
    run_seed()
