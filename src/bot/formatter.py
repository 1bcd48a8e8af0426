"""Reply templates. Pure presentation, no side effects."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from src.reminders.models import ReminderRecord

NO_TIME_LABEL = "No time set"


def help_text() -> str:
    return (
        "👋 Hi! I'm your reminder bot!\n\n"
        "📝 Just tell me things like:\n"
        '• "Remind me to call mom at 6pm"\n'
        '• "Shopping list for tomorrow"\n'
        '• "Meeting with boss at 3pm tomorrow"\n\n'
        '📋 Type "list" to see all reminders\n'
        '🗑️ Type "clear" to delete all reminders'
    )


def empty_list() -> str:
    return "📭 No reminders yet!"


def list_of(records: Iterable[ReminderRecord]) -> str:
    """Render reminders as a numbered list, falling back to ``empty_list()``."""
    lines = []
    for index, record in enumerate(records, start=1):
        time_label = record.time if record.has_time else NO_TIME_LABEL
        lines.append(f"{index}. {record.task}\n   ⏰ {time_label}")
    if not lines:
        return empty_list()
    return "📝 *Your Reminders:*\n\n" + "\n\n".join(lines)


def cleared() -> str:
    return "🗑️ All reminders cleared!"


def confirmation(task: str, time: str, date: str) -> str:
    return (
        "✅ *Got it!*\n\n"
        f"📌 Task: {task}\n"
        f"⏰ Time: {time}\n"
        f"📅 Date: {date}\n\n"
        'Type "list" to see all reminders'
    )


def extraction_failed() -> str:
    return (
        "❌ Sorry, I didn't understand that.\n\n"
        "Try saying:\n"
        '• "Remind me to [task] at [time]"\n'
        '• Type "help" for examples'
    )
