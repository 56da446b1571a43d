"""Desktop notification delivery."""

from __future__ import annotations

import logging
from typing import Protocol

from plyer import notification

logger = logging.getLogger(__name__)

APP_TITLE = "Screen Time Monitor"


class Notifier(Protocol):
    def notify(self, message: str) -> None:
        ...


class DesktopNotifier:
    """Shows a native notification; delivery problems are only logged."""

    def __init__(self, title: str = APP_TITLE, timeout: int = 5) -> None:
        self.title = title
        self.timeout = timeout

    def notify(self, message: str) -> None:
        try:
            notification.notify(
                title=self.title,
                message=message,
                app_name=APP_TITLE,
                timeout=self.timeout,
            )
        except Exception:
            logger.exception("Failed to show desktop notification: %s", message)


class LogNotifier:
    def notify(self, message: str) -> None:
        logger.info("Notification: %s", message)
