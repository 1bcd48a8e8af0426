"""ReminderStore — in-memory, insertion-ordered reminder collection."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.reminders.models import ReminderRecord

logger = logging.getLogger(__name__)


class ReminderStore:
    """Holds reminders for the lifetime of the process.

    Build one at startup and hand it to the router; tests create their own
    instances. Nothing is persisted, so a restart starts empty.

    All mutations go through a single ``asyncio.Lock`` so interleaved
    handlers never drop or reorder records.
    """

    def __init__(self) -> None:
        self._records: list[ReminderRecord] = []
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._records)

    async def append(self, record: ReminderRecord) -> None:
        """Add a record to the end of the collection."""
        async with self._lock:
            self._records.append(record)
        logger.debug("Stored reminder %s (total=%d)", record.id, len(self._records))

    async def list(self) -> tuple[ReminderRecord, ...]:
        """Return a snapshot of all records in insertion order."""
        async with self._lock:
            return tuple(self._records)

    async def clear(self) -> int:
        """Remove every record. Returns how many were removed."""
        async with self._lock:
            count = len(self._records)
            self._records = []
        logger.info("Cleared %d reminder(s)", count)
        return count
