"""In-memory reminder records and their store."""

from src.reminders.models import DEFAULT_DATE, DEFAULT_TIME, ReminderRecord, make_reminder_id
from src.reminders.store import ReminderStore

__all__ = [
    "DEFAULT_DATE",
    "DEFAULT_TIME",
    "ReminderRecord",
    "ReminderStore",
    "make_reminder_id",
]
