from pydantic import BaseModel
import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseModel):
    database_url: str
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    session_ttl_hours: int = 24
    storage_dir: str = "storage"
    storage_bucket: str = "applications"
    public_base_url: str = "http://localhost:8000"
    local_store_path: str | None = None
    max_document_bytes: int = 5 * 1024 * 1024
    max_image_bytes: int = 2 * 1024 * 1024
    items_per_page: int = 10
    search_debounce_ms: int = 300
    draft_debounce_ms: int = 1000
    notification_timeout_seconds: float = 5.0
    cors_allow_origins: list[str] = ["http://localhost:8080", "http://127.0.0.1:8080"]
    log_level: str = "INFO"

    @property
    def jwt_expires_minutes(self) -> int:
        return self.session_ttl_hours * 60


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        database_url = os.getenv("DATABASE_URL", "")
        jwt_secret_key = os.getenv("JWT_SECRET_KEY", "")
        if not jwt_secret_key:
            raise RuntimeError("JWT_SECRET_KEY is not set")
        _settings = Settings(
            database_url=database_url,
            jwt_secret_key=jwt_secret_key,
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            session_ttl_hours=int(os.getenv("SESSION_TTL_HOURS", "24")),
            storage_dir=os.getenv("STORAGE_DIR", "storage"),
            storage_bucket=os.getenv("STORAGE_BUCKET", "applications"),
            public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/"),
            local_store_path=os.getenv("LOCAL_STORE_PATH"),
            max_document_bytes=int(os.getenv("MAX_DOCUMENT_BYTES", str(5 * 1024 * 1024))),
            max_image_bytes=int(os.getenv("MAX_IMAGE_BYTES", str(2 * 1024 * 1024))),
            items_per_page=int(os.getenv("ITEMS_PER_PAGE", "10")),
            search_debounce_ms=int(os.getenv("SEARCH_DEBOUNCE_MS", "300")),
            draft_debounce_ms=int(os.getenv("DRAFT_DEBOUNCE_MS", "1000")),
            notification_timeout_seconds=float(os.getenv("NOTIFICATION_TIMEOUT_SECONDS", "5")),
            cors_allow_origins=[
                origin.strip()
                for origin in os.getenv(
                    "CORS_ALLOW_ORIGINS", "http://localhost:8080,http://127.0.0.1:8080"
                ).split(",")
                if origin.strip()
            ],
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
    return _settings
