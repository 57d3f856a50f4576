from datetime import datetime, timezone
from sqlalchemy.orm import Session
from sqlalchemy import func, select
from rangers_portal.models.admin_user_model import AdminUser


def get_admin_by_email(db: Session, email: str) -> AdminUser | None:
    stmt = select(AdminUser).where(func.lower(AdminUser.email) == email.lower())
    return db.execute(stmt).scalars().first()


def get_admin_by_id(db: Session, admin_id: str) -> AdminUser | None:
    stmt = select(AdminUser).where(AdminUser.id == admin_id)
    return db.execute(stmt).scalars().first()


def create_admin(db: Session, email: str, password_hash: str) -> AdminUser:
    admin = AdminUser(email=email, password_hash=password_hash)
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


def touch_last_login(db: Session, admin: AdminUser, when: datetime | None = None) -> AdminUser:
    admin.last_login = when or datetime.now(timezone.utc)
    db.commit()
    db.refresh(admin)
    return admin
