from sqlalchemy.orm import Session
from sqlalchemy import delete
from rangers_portal.models.email_log_model import EmailLog


def delete_email_logs(db: Session, application_id: str) -> int:
    result = db.execute(delete(EmailLog).where(EmailLog.application_id == application_id))
    db.commit()
    return result.rowcount
