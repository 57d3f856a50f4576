from datetime import datetime
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from jose import JWTError
from rangers_portal.core.db import get_db
from rangers_portal.core.security import decode_access_token, session_is_fresh
from rangers_portal.repositories.admin_user_repo import get_admin_by_id
from rangers_portal.schemas.admin_schema import AdminSession

security = HTTPBearer()

ADMIN_COOKIE = "admin_session"


def session_from_token(token: str | None) -> AdminSession | None:
    """Decode a session token; None when it is invalid, expired or older than the TTL."""
    if not token:
        return None
    try:
        payload = decode_access_token(token)
        session = AdminSession(
            id=payload["sub"],
            email=payload["email"],
            login_time=datetime.fromisoformat(payload["login_time"]),
        )
    except (JWTError, KeyError, TypeError, ValueError):
        return None
    if not session_is_fresh(session.login_time):
        return None
    return session


def get_current_session(credentials: HTTPAuthorizationCredentials = Depends(security)) -> AdminSession:
    session = session_from_token(credentials.credentials)
    if session is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired session")
    return session


def require_admin(
    session: AdminSession = Depends(get_current_session),
    db: Session = Depends(get_db),
) -> AdminSession:
    if get_admin_by_id(db, session.id) is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Admin account not found")
    return session


def cookie_session(request: Request) -> AdminSession | None:
    return session_from_token(request.cookies.get(ADMIN_COOKIE))
