"""Collaborators the rules core talks to: dice, calendar, chat, notifications, strings."""

from .calendar import CalendarReminder, CalendarUnavailableError, HuntCalendar, ReminderScheduler
from .chat import ChatChannel, ChatLog, ChatMessage
from .dice import DiceRoller, RandomDiceRoller
from .i18n import Localizer
from .notifications import NotificationLog, Notifier

__all__ = [
    "CalendarReminder",
    "CalendarUnavailableError",
    "HuntCalendar",
    "ReminderScheduler",
    "ChatChannel",
    "ChatLog",
    "ChatMessage",
    "DiceRoller",
    "RandomDiceRoller",
    "Localizer",
    "NotificationLog",
    "Notifier",
]
