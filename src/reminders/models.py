"""ReminderRecord data model."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import UTC, datetime

# Placeholders the extraction model uses when the message omits a field.
DEFAULT_TIME = "not specified"
DEFAULT_DATE = "today"

_last_id = 0


@dataclass(frozen=True)
class ReminderRecord:
    """A reminder extracted from one inbound message.

    Attributes:
        id: Strictly increasing token, unique within the process.
        conversation_id: Opaque id of the originating conversation. Kept
            for future scoping; listings currently ignore it.
        task: What to do. Never empty.
        time: Free text, or ``"not specified"``.
        date: Free text, or ``"today"``.
        original_text: The message the reminder was extracted from.
        created_at: UTC time the record was created.
    """

    id: int
    conversation_id: str
    task: str
    time: str = DEFAULT_TIME
    date: str = DEFAULT_DATE
    original_text: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if not self.task.strip():
            raise ValueError("ReminderRecord.task must not be empty")

    @property
    def has_time(self) -> bool:
        return bool(self.time.strip()) and self.time.strip().lower() != DEFAULT_TIME


def make_reminder_id() -> int:
    """Generate a new reminder ID from the wall clock in nanoseconds.

    Two calls inside the same clock tick still get distinct, increasing ids.
    """
    global _last_id  # noqa: PLW0603
    _last_id = max(time.time_ns(), _last_id + 1)
    return _last_id
