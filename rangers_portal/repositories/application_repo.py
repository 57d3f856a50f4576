from sqlalchemy.orm import Session
from sqlalchemy import select, delete, func
from rangers_portal.models.application_model import Application
from rangers_portal.models.email_log_model import EmailLog
from rangers_portal.models.enums import ApplicationStatus
from rangers_portal.schemas.application_schema import ApplicationCreate, ApplicationUpdate

SEARCHABLE_FIELDS = ("full_name", "email", "organization", "application_id", "phone")


def create_application(db: Session, data: ApplicationCreate) -> Application:
    app = Application(**data.model_dump())
    db.add(app)
    db.commit()
    db.refresh(app)
    return app


def get_application_by_id(db: Session, record_id: str) -> Application | None:
    stmt = select(Application).where(Application.id == record_id)
    return db.execute(stmt).scalars().first()


def list_applications(
    db: Session,
    status: ApplicationStatus | None = None,
    limit: int | None = 50,
    offset: int = 0,
) -> list[Application]:
    stmt = select(Application).order_by(Application.created_at.desc())
    if status:
        stmt = stmt.where(Application.status == status)
    if offset:
        stmt = stmt.offset(offset)
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(db.execute(stmt).scalars().all())


def search_applications(db: Session, term: str, field: str = "full_name") -> list[Application]:
    if field not in SEARCHABLE_FIELDS:
        raise ValueError(f"Unsupported search field: {field}")
    column = getattr(Application, field)
    stmt = (
        select(Application)
        .where(column.ilike(f"%{term}%"))
        .order_by(Application.created_at.desc())
    )
    return list(db.execute(stmt).scalars().all())


def count_by_status(db: Session) -> dict[ApplicationStatus, int]:
    stmt = select(Application.status, func.count()).group_by(Application.status)
    return {status: count for status, count in db.execute(stmt).all()}


def update_application(db: Session, app: Application, data: ApplicationUpdate) -> Application:
    updates = data.model_dump(exclude_unset=True)
    for k, v in updates.items():
        setattr(app, k, v)
    db.commit()
    db.refresh(app)
    return app


def delete_application(db: Session, app: Application) -> None:
    db.delete(app)
    db.commit()


def delete_application_with_logs(db: Session, record_id: str) -> int:
    """Remove the dependent email logs and the application in one transaction."""
    try:
        db.execute(delete(EmailLog).where(EmailLog.application_id == record_id))
        deleted = db.execute(delete(Application).where(Application.id == record_id)).rowcount
        db.commit()
    except Exception:
        db.rollback()
        raise
    return deleted
