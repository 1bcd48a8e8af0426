"""Structured reminder extraction from free-text messages.

The extraction model is asked for a bare JSON object with ``task``,
``time`` and ``date``. Its answer is treated as untrusted input: after
removing an optional code fence the text must parse to exactly that shape
or the call fails with one of the ``ExtractionError`` subclasses below.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import dataclass

import anthropic

from src.config import settings
from src.llm.client import complete_text
from src.reminders.models import DEFAULT_DATE, DEFAULT_TIME

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("task", "time", "date")

PROMPT_TEMPLATE = (
    "Extract reminder details from the message below.\n\n"
    "<message>{text}</message>\n\n"
    "Return ONLY a JSON object like this, with no other text:\n"
    '{{"task": "what to do", '
    '"time": "time mentioned or \'' + DEFAULT_TIME + '\'", '
    '"date": "date mentioned or \'' + DEFAULT_DATE + '\'"}}'
)

# ```json\n{...}\n``` or ```{...}``` around the whole response
_FENCE_RE = re.compile(r"\A```[\w+-]*[ \t]*\n?(?P<body>.*?)\n?[ \t]*```\Z", re.DOTALL)


# -- Errors ------------------------------------------------------------------


class ExtractionError(Exception):
    """Extraction failed. Callers only need to catch this base class."""

    def __init__(self, message: str, raw: str | None = None) -> None:
        super().__init__(message)
        self.raw = raw

    @property
    def kind(self) -> str:
        return type(self).__name__


class BackendUnavailable(ExtractionError):
    """The backend call errored or timed out."""


class MalformedResponse(ExtractionError):
    """The response was not a JSON object of string fields."""


class IncompleteResult(ExtractionError):
    """The response parsed but a required field was missing or empty."""


# -- Parsing -----------------------------------------------------------------


@dataclass(frozen=True)
class ExtractedReminder:
    task: str
    time: str
    date: str


def build_prompt(text: str) -> str:
    """Build the single user message sent to the extraction model."""
    return PROMPT_TEMPLATE.format(text=text)


def strip_code_fence(text: str) -> str:
    """Remove a triple-backtick fence (with optional language tag) around *text*."""
    cleaned = text.strip()
    match = _FENCE_RE.match(cleaned)
    if match:
        return match.group("body").strip()
    return cleaned


def parse_extraction(text: str) -> ExtractedReminder:
    """Parse the model's raw output into an ``ExtractedReminder``.

    Raises:
        MalformedResponse: not JSON, not an object, unexpected keys, or
            non-string values.
        IncompleteResult: a required key is missing or ``task`` is blank.
    """
    cleaned = strip_code_fence(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise MalformedResponse(f"Response is not valid JSON: {exc.msg}", raw=text) from exc

    if not isinstance(data, dict):
        raise MalformedResponse(
            f"Expected a JSON object, got {type(data).__name__}", raw=text
        )

    missing = [key for key in REQUIRED_KEYS if key not in data]
    if missing:
        raise IncompleteResult(f"Missing key(s): {', '.join(missing)}", raw=text)

    extra = sorted(set(data) - set(REQUIRED_KEYS))
    if extra:
        raise MalformedResponse(f"Unexpected key(s): {', '.join(extra)}", raw=text)

    not_strings = [key for key in REQUIRED_KEYS if not isinstance(data[key], str)]
    if not_strings:
        raise MalformedResponse(f"Non-string value(s): {', '.join(not_strings)}", raw=text)

    task = data["task"].strip()
    if not task:
        raise IncompleteResult("Empty task", raw=text)

    return ExtractedReminder(
        task=task,
        time=data["time"].strip() or DEFAULT_TIME,
        date=data["date"].strip() or DEFAULT_DATE,
    )


# -- Client ------------------------------------------------------------------


class ExtractionClient:
    """Turns a raw message into an ``ExtractedReminder`` via Claude.

    Args:
        model: Model ID (default from settings).
        timeout: Seconds to wait for one backend call before giving up.
        max_retries: Extra attempts after a ``BackendUnavailable`` failure.
            Malformed or incomplete answers are never retried.
    """

    def __init__(
        self,
        model: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        max_tokens: int | None = None,
    ) -> None:
        self.model = model or settings.extraction_model
        self.timeout = timeout if timeout is not None else settings.extraction_timeout_seconds
        self.max_retries = (
            max_retries if max_retries is not None else settings.extraction_max_retries
        )
        self.max_tokens = max_tokens or settings.extraction_max_tokens

    async def _call_backend(self, prompt: str) -> str:
        try:
            return await asyncio.wait_for(
                complete_text(
                    [{"role": "user", "content": prompt}],
                    model=self.model,
                    max_tokens=self.max_tokens,
                ),
                timeout=self.timeout,
            )
        except TimeoutError as exc:
            raise BackendUnavailable(f"Backend timed out after {self.timeout}s") from exc
        except anthropic.APIError as exc:
            raise BackendUnavailable(f"Backend error: {exc}") from exc
        except Exception as exc:
            raise BackendUnavailable(f"Backend call failed: {exc!r}") from exc

    async def extract(self, text: str) -> ExtractedReminder:
        """Extract task, time and date from *text*.

        Raises:
            ExtractionError: one of ``BackendUnavailable``,
                ``MalformedResponse`` or ``IncompleteResult``.
        """
        prompt = build_prompt(text)
        attempts = self.max_retries + 1

        for attempt in range(1, attempts + 1):
            try:
                raw = await self._call_backend(prompt)
                break
            except BackendUnavailable as exc:
                if attempt >= attempts:
                    raise
                logger.warning(
                    "Extraction attempt %d/%d failed: %s", attempt, attempts, exc
                )

        result = parse_extraction(raw)
        logger.debug("Extracted %s from %r", result, text[:80])
        return result
