# resumekit/sync/notifications.py
"""
User-facing notifications.

The sync layer reports every settled mutation through a Notifier. What the
user actually sees (terminal line, toast, log entry) is up to the notifier.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class NotificationLevel(Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    message: str


class Notifier(ABC):
    """Receives user-facing success and error messages."""

    @abstractmethod
    def notify(self, notification: Notification) -> None:
        pass

    def success(self, message: str) -> None:
        self.notify(Notification(NotificationLevel.SUCCESS, message))

    def error(self, message: str) -> None:
        self.notify(Notification(NotificationLevel.ERROR, message))


class LoggingNotifier(Notifier):
    """Default notifier: writes notifications to the log."""

    def notify(self, notification: Notification) -> None:
        if notification.level is NotificationLevel.ERROR:
            logger.warning(f"[notify] {notification.message}")
        else:
            logger.info(f"[notify] {notification.message}")


class RecordingNotifier(Notifier):
    """
    Keeps every notification in order.

    Optionally forwards to another notifier, so a caller can both show
    messages and inspect them afterwards.
    """

    def __init__(self, forward_to: Notifier | None = None) -> None:
        self.notifications: list[Notification] = []
        self._forward_to = forward_to

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)
        if self._forward_to is not None:
            self._forward_to.notify(notification)

    @property
    def messages(self) -> list[str]:
        return [n.message for n in self.notifications]

    @property
    def errors(self) -> list[str]:
        return [n.message for n in self.notifications if n.level is NotificationLevel.ERROR]
