from datetime import datetime, timedelta, timezone
from passlib.context import CryptContext
from jose import jwt
from rangers_portal.core.config import get_settings

settings = get_settings()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(subject: str, email: str, login_time: datetime) -> str:
    """Issue a bearer token that expires together with the admin session."""
    expire = login_time + timedelta(minutes=settings.jwt_expires_minutes)
    to_encode = {
        "sub": subject,
        "email": email,
        "login_time": login_time.isoformat(),
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])


def session_is_fresh(login_time: datetime, now: datetime | None = None) -> bool:
    now = now or datetime.now(timezone.utc)
    if login_time.tzinfo is None:
        login_time = login_time.replace(tzinfo=timezone.utc)
    return now - login_time <= timedelta(hours=settings.session_ttl_hours)
