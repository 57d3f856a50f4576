from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from rangers_portal.core.db import get_db
from rangers_portal.core.auth import require_admin
from rangers_portal.controllers.auth_controller import login
from rangers_portal.schemas.admin_schema import AdminLogin, AdminSession, TokenResponse

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login_route(payload: AdminLogin, db: Session = Depends(get_db)):
    return login(db, payload)


@router.get("/me", response_model=AdminSession)
def me_route(session: AdminSession = Depends(require_admin)):
    return session
