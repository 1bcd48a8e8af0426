"""Shared test fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.bot.router import MessageRouter
from src.llm.extraction import ExtractedReminder
from src.reminders.store import ReminderStore


@pytest.fixture
def store() -> ReminderStore:
    """A fresh, empty ReminderStore per test."""
    return ReminderStore()


@pytest.fixture
def extractor() -> MagicMock:
    """Extraction client stub returning the 'call mom' reminder."""
    mock = MagicMock()
    mock.extract = AsyncMock(
        return_value=ExtractedReminder(task="call mom", time="6pm", date="today")
    )
    return mock


@pytest.fixture
def router(store: ReminderStore, extractor: MagicMock) -> MessageRouter:
    return MessageRouter(store=store, extractor=extractor)
