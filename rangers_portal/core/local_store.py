import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DRAFT_KEY = "climateRangersApplication"
SESSION_KEY = "climate_rangers_admin"
LAST_APPLICATION_KEY = "lastApplicationId"


class LocalStore:
    """Client-local key/value storage of JSON-serialisable values.

    With a ``path`` every write is flushed to that JSON file, otherwise the
    values only live in memory.
    """

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path else None
        self._items: dict[str, str] = {}
        if self.path and self.path.exists():
            try:
                self._items = json.loads(self.path.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                logger.warning("local store %s is unreadable; starting empty", self.path)
                self._items = {}

    def _flush(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._items), encoding="utf-8")

    def get_raw(self, key: str) -> str | None:
        return self._items.get(key)

    def set_raw(self, key: str, value: str) -> None:
        self._items[key] = value
        self._flush()

    def get(self, key: str, default: Any = None) -> Any:
        raw = self._items.get(key)
        if raw is None:
            return default
        return json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        self.set_raw(key, json.dumps(value))

    def remove(self, key: str) -> None:
        if self._items.pop(key, None) is not None:
            self._flush()

    def __contains__(self, key: str) -> bool:
        return key in self._items
