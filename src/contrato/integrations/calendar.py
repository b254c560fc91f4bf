"""In-fiction calendar used to remind players when their character must hunt."""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Protocol

import structlog

logger = structlog.get_logger(__name__)


class CalendarUnavailableError(Exception):
    """Raised when a reminder cannot be scheduled."""

    pass


class ReminderScheduler(Protocol):
    """Calendar integration consumed by the attribute deriver."""

    async def schedule_reminder(self, offset_days: int, title: str, description: str) -> None:
        """
        Schedule a reminder `offset_days` from today (0 means today).

        Raises:
            CalendarUnavailableError: If the calendar cannot take the reminder
        """
        ...


@dataclass
class CalendarReminder:
    """A scheduled calendar note."""

    date: date
    title: str
    description: str


@dataclass
class HuntCalendar:
    """
    Minimal in-fiction calendar.

    Tracks the campaign's current date and the reminders scheduled against
    it. An inactive calendar refuses reminders, which is how a table without
    calendar support looks to the deriver.
    """

    current_date: date = field(default_factory=date.today)
    active: bool = True
    reminders: list[CalendarReminder] = field(default_factory=list)

    async def schedule_reminder(self, offset_days: int, title: str, description: str) -> None:
        """Add a reminder relative to the current in-fiction date."""
        if not self.active:
            raise CalendarUnavailableError("Calendar is not active")

        if offset_days < 0:
            raise ValueError(f"Reminder offset must not be negative, got {offset_days}")

        reminder = CalendarReminder(
            date=self.current_date + timedelta(days=offset_days),
            title=title,
            description=description,
        )
        self.reminders.append(reminder)

        logger.info(
            "calendar_reminder_scheduled",
            date=reminder.date.isoformat(),
            title=title,
        )
