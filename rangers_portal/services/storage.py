import logging
import os
import re
from pathlib import Path, PurePosixPath

from rangers_portal.core.config import get_settings
from rangers_portal.schemas.storage_schema import StoredObject

logger = logging.getLogger(__name__)

SAFE_NAME = re.compile(r"[^A-Za-z0-9._-]")
PUBLIC_PREFIX = "/storage/v1/object/public/"


def safe_filename(name: str | None, default: str = "file") -> str:
    base = os.path.basename(name or "") or default
    return SAFE_NAME.sub("_", base)


class InvalidObjectPath(ValueError):
    pass


class LocalObjectStorage:
    """A single public bucket kept on the local filesystem."""

    def __init__(self, root: str | Path, bucket: str, public_base_url: str):
        self.root = Path(root)
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")

    @classmethod
    def from_settings(cls) -> "LocalObjectStorage":
        settings = get_settings()
        return cls(settings.storage_dir, settings.storage_bucket, settings.public_base_url)

    def _bucket_dir(self) -> Path:
        return self.root / self.bucket

    def resolve(self, path: str) -> Path:
        parts = PurePosixPath(path.strip("/")).parts
        if not parts or any(part in ("..", ".", "") for part in parts):
            raise InvalidObjectPath(f"Invalid object path: {path!r}")
        return self._bucket_dir().joinpath(*parts)

    def public_url(self, path: str) -> str:
        return f"{self.public_base_url}{PUBLIC_PREFIX}{self.bucket}/{path.strip('/')}"

    def upload(self, data: bytes, path: str) -> StoredObject:
        dest = self.resolve(path)
        dest.parent.mkdir(parents=True, exist_ok=True)
        tmp = dest.with_name(dest.name + ".part")
        with tmp.open("wb") as f:
            f.write(data)
        tmp.replace(dest)
        logger.info("stored object %s (%d bytes)", path, len(data))
        return StoredObject(path=path.strip("/"), url=self.public_url(path))

    def remove(self, paths: list[str]) -> tuple[list[str], list[str]]:
        removed: list[str] = []
        failed: list[str] = []
        for path in paths:
            try:
                self.resolve(path).unlink()
                removed.append(path)
            except (OSError, InvalidObjectPath) as exc:
                logger.warning("could not remove object %s: %s", path, exc)
                failed.append(path)
        return removed, failed

    def path_from_url(self, url: str | None) -> str | None:
        return path_from_url(url, self.bucket)


def path_from_url(url: str | None, bucket: str = "applications") -> str | None:
    """Recover the object path from a public URL, or None if it is not ours."""
    if not url:
        return None
    parts = url.split(f"{PUBLIC_PREFIX}{bucket}/")
    if len(parts) > 1:
        return parts[1]
    alt = url.split(f"/{bucket}/")
    if len(alt) > 1:
        return alt[1]
    return None
