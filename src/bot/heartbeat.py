"""Heartbeat — periodic liveness log on APScheduler.

The heartbeat only reports that the bot is alive and how many reminders
it holds. It does not fire, inspect or modify individual reminders.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from src.config import settings

if TYPE_CHECKING:
    from src.reminders.store import ReminderStore

logger = logging.getLogger(__name__)

JOB_ID = "heartbeat"


class Heartbeat:
    """Owns an AsyncIOScheduler with a single interval job.

    Args:
        store: ReminderStore whose size is reported on each tick.
        interval_seconds: Tick period (default from settings).
    """

    def __init__(self, store: ReminderStore, interval_seconds: int | None = None) -> None:
        self._store = store
        self._interval = interval_seconds or settings.heartbeat_interval_seconds
        self._scheduler = AsyncIOScheduler()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def tick(self) -> None:
        logger.info(
            "Bot is running at %s (%d reminder(s) stored)",
            datetime.now().strftime("%H:%M:%S"),
            len(self._store),
        )

    async def start(self) -> None:
        """Schedule the tick job and start the scheduler."""
        if self._running:
            return
        self._scheduler.add_job(
            self.tick,
            trigger=IntervalTrigger(seconds=self._interval),
            id=JOB_ID,
            replace_existing=True,
        )
        self._scheduler.start()
        self._running = True
        logger.info("Heartbeat started (every %ds)", self._interval)

    async def stop(self) -> None:
        """Shut down the scheduler."""
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Heartbeat stopped")
