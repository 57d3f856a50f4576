import itertools
import logging
import time
from dataclasses import dataclass
from typing import Callable

from rangers_portal.models.enums import NotificationType

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    id: int
    message: str
    type: NotificationType
    created_at: float
    expires_at: float


class NotificationCenter:
    """Holds the single visible toast; a new one replaces the previous."""

    def __init__(self, timeout: float = 5.0, clock: Callable[[], float] = time.monotonic):
        self.timeout = timeout
        self.clock = clock
        self._ids = itertools.count(1)
        self._current: Notification | None = None
        self.history: list[Notification] = []

    def show(self, message: str, type: NotificationType = NotificationType.INFO) -> Notification:
        now = self.clock()
        notification = Notification(
            id=next(self._ids),
            message=message,
            type=NotificationType(type),
            created_at=now,
            expires_at=now + self.timeout,
        )
        self._current = notification
        self.history.append(notification)
        log = logger.error if notification.type == NotificationType.ERROR else logger.info
        log("notification [%s] %s", notification.type.value, message)
        return notification

    def success(self, message: str) -> Notification:
        return self.show(message, NotificationType.SUCCESS)

    def error(self, message: str) -> Notification:
        return self.show(message, NotificationType.ERROR)

    def info(self, message: str) -> Notification:
        return self.show(message, NotificationType.INFO)

    def dismiss(self, notification_id: int) -> bool:
        if self._current is not None and self._current.id == notification_id:
            self._current = None
            return True
        return False

    @property
    def current(self) -> Notification | None:
        if self._current is not None and self.clock() >= self._current.expires_at:
            self._current = None
        return self._current

    @property
    def last(self) -> Notification | None:
        return self.history[-1] if self.history else None
