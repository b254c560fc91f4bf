"""User-facing warnings for rejected actions."""

from typing import Protocol

import structlog

logger = structlog.get_logger(__name__)


class Notifier(Protocol):
    """Shows a short warning to the player who triggered an action."""

    def warn(self, message: str) -> None:
        """Display a warning."""
        ...


class NotificationLog:
    """Keeps warnings in memory and mirrors them to the log."""

    def __init__(self) -> None:
        self.warnings: list[str] = []

    def warn(self, message: str) -> None:
        """Record a warning."""
        self.warnings.append(message)
        logger.info("user_warned", message=message)
