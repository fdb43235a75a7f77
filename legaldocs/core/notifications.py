import logging
from collections import deque
from datetime import datetime
from typing import Callable, Deque, List

from legaldocs.core.clock import utcnow

logger = logging.getLogger(__name__)

_LEVELS = {
    "success": logging.INFO,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class Notification:
    """Человекочитаемое уведомление для пользователя"""

    def __init__(self, level: str, message: str, created_at: datetime = None):
        self.level = level
        self.message = message
        self.created_at = created_at or utcnow()

    def to_dict(self) -> dict:
        return {
            "level": self.level,
            "message": self.message,
            "created_at": self.created_at.isoformat(),
        }

    def __repr__(self) -> str:
        return f"Notification(level={self.level}, message={self.message})"


class Notifier:
    """Побочный канал уведомлений: логирует и раздает слушателям"""

    def __init__(self, history_size: int = 50):
        self.history: Deque[Notification] = deque(maxlen=history_size)
        self._listeners: List[Callable[[Notification], None]] = []

    def add_listener(self, listener: Callable[[Notification], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def notify(self, level: str, message: str) -> Notification:
        notification = Notification(level, message)
        self.history.append(notification)
        logger.log(_LEVELS.get(level, logging.INFO), f"[{level}] {message}")

        for listener in list(self._listeners):
            listener(notification)

        return notification
