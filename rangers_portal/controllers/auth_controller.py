import logging
from datetime import datetime, timezone
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from rangers_portal.schemas.admin_schema import AdminLogin, AdminRead, TokenResponse
from rangers_portal.repositories.admin_user_repo import get_admin_by_email, touch_last_login
from rangers_portal.core.security import verify_password, create_access_token

logger = logging.getLogger(__name__)


def authenticate(db: Session, email: str, password: str) -> TokenResponse | None:
    """Check the credentials, stamp ``last_login`` and issue a session token."""
    admin = get_admin_by_email(db, email.strip())
    if not admin or not verify_password(password, admin.password_hash):
        logger.warning("failed admin login for %s", email)
        return None
    login_time = datetime.now(timezone.utc)
    admin = touch_last_login(db, admin, login_time)
    token = create_access_token(subject=str(admin.id), email=admin.email, login_time=login_time)
    logger.info("admin %s logged in", admin.email)
    return TokenResponse(access_token=token, admin=AdminRead.model_validate(admin), login_time=login_time)


def login(db: Session, data: AdminLogin) -> TokenResponse:
    token = authenticate(db, data.email, data.password)
    if token is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    return token
