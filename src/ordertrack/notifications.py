"""Notification log for order lifecycle events."""

import threading
from dataclasses import replace

from .config import NOTIFICATION_CAPACITY
from .errors import NotificationNotFoundError
from .models import Notification, NotificationType


class NotificationLog:
    """Bounded ring of the most recent lifecycle notifications, newest first."""

    def __init__(self, capacity: int = NOTIFICATION_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._items: list[Notification] = []
        self._lock = threading.Lock()

    def emit(
        self,
        type: NotificationType,
        title: str,
        message: str,
        order_id: str,
    ) -> Notification:
        """Append a new unread notification, dropping the oldest beyond capacity."""
        notification = Notification.create(type, title, message, order_id)
        with self._lock:
            self._items.insert(0, notification)
            del self._items[self.capacity:]
        return replace(notification)

    def recent(self, limit: int = 10) -> list[Notification]:
        """Return copies of the newest `limit` notifications."""
        if limit < 1:
            return []
        with self._lock:
            return [replace(n) for n in self._items[:limit]]

    def mark_read(self, notification_id: str) -> Notification:
        """
        Mark a notification as read.

        Raises:
            NotificationNotFoundError: If the notification isn't in the log.
        """
        with self._lock:
            for n in self._items:
                if n.id == notification_id:
                    n.read = True
                    return replace(n)
        raise NotificationNotFoundError(notification_id)

    def unread_count(self) -> int:
        with self._lock:
            return sum(1 for n in self._items if not n.read)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
