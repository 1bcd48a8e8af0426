"""Tests for the reminder extraction client and its parser."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import pytest

from src.llm.extraction import (
    BackendUnavailable,
    ExtractedReminder,
    ExtractionClient,
    ExtractionError,
    IncompleteResult,
    MalformedResponse,
    build_prompt,
    parse_extraction,
    strip_code_fence,
)

CALL_MOM = '{"task": "call mom", "time": "6pm", "date": "today"}'


# -- build_prompt --------------------------------------------------------------


def test_prompt_contains_message_and_keys() -> None:
    prompt = build_prompt("Remind me to call mom at 6pm")
    assert "Remind me to call mom at 6pm" in prompt
    assert '"task"' in prompt
    assert '"time"' in prompt
    assert '"date"' in prompt
    assert "not specified" in prompt
    assert "'today'" in prompt
    assert "ONLY a JSON object" in prompt


def test_prompt_tolerates_braces_in_message() -> None:
    prompt = build_prompt("buy {milk} and {eggs}")
    assert "buy {milk} and {eggs}" in prompt


# -- strip_code_fence ----------------------------------------------------------


@pytest.mark.parametrize(
    "raw",
    [
        CALL_MOM,
        f"```json\n{CALL_MOM}\n```",
        f"```\n{CALL_MOM}\n```",
        f"  ```JSON\n{CALL_MOM}\n```  \n",
        f"```json {CALL_MOM}```",
    ],
)
def test_strip_code_fence(raw: str) -> None:
    assert strip_code_fence(raw) == CALL_MOM


def test_strip_code_fence_leaves_inner_backticks_alone() -> None:
    text = '{"task": "run `make`", "time": "6pm", "date": "today"}'
    assert strip_code_fence(text) == text


# -- parse_extraction ----------------------------------------------------------


def test_parse_valid_object() -> None:
    assert parse_extraction(CALL_MOM) == ExtractedReminder(
        task="call mom", time="6pm", date="today"
    )


def test_fenced_and_plain_parse_the_same() -> None:
    assert parse_extraction(f"```json\n{CALL_MOM}\n```") == parse_extraction(CALL_MOM)


def test_parse_trims_values() -> None:
    result = parse_extraction('{"task": "  call mom ", "time": " 6pm", "date": "today "}')
    assert result == ExtractedReminder(task="call mom", time="6pm", date="today")


def test_parse_blank_time_and_date_fall_back_to_sentinels() -> None:
    result = parse_extraction('{"task": "water plants", "time": "", "date": " "}')
    assert result.time == "not specified"
    assert result.date == "today"


def test_parse_not_json() -> None:
    with pytest.raises(MalformedResponse) as exc_info:
        parse_extraction("Sure! Here's your reminder: call mom")
    assert exc_info.value.raw == "Sure! Here's your reminder: call mom"


def test_parse_prose_around_fence_is_rejected() -> None:
    with pytest.raises(MalformedResponse):
        parse_extraction(f"Here you go:\n```json\n{CALL_MOM}\n```")


@pytest.mark.parametrize("raw", ["[]", '"call mom"', "42", "null"])
def test_parse_not_an_object(raw: str) -> None:
    with pytest.raises(MalformedResponse, match="JSON object"):
        parse_extraction(raw)


def test_parse_missing_date_is_incomplete() -> None:
    with pytest.raises(IncompleteResult, match="date"):
        parse_extraction('{"task": "call mom", "time": "6pm"}')


def test_parse_missing_several_keys() -> None:
    with pytest.raises(IncompleteResult, match="time, date"):
        parse_extraction('{"task": "call mom"}')


def test_parse_blank_task_is_incomplete() -> None:
    with pytest.raises(IncompleteResult, match="task"):
        parse_extraction('{"task": "  ", "time": "6pm", "date": "today"}')


def test_parse_extra_keys_rejected() -> None:
    with pytest.raises(MalformedResponse, match="priority"):
        parse_extraction('{"task": "a", "time": "b", "date": "c", "priority": "high"}')


def test_parse_non_string_value_rejected() -> None:
    with pytest.raises(MalformedResponse, match="time"):
        parse_extraction('{"task": "call mom", "time": 18, "date": "today"}')


def test_error_kinds() -> None:
    assert BackendUnavailable("x").kind == "BackendUnavailable"
    assert MalformedResponse("x").kind == "MalformedResponse"
    assert IncompleteResult("x").kind == "IncompleteResult"
    for cls in (BackendUnavailable, MalformedResponse, IncompleteResult):
        assert issubclass(cls, ExtractionError)


# -- ExtractionClient ----------------------------------------------------------


def _api_connection_error() -> anthropic.APIConnectionError:
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    return anthropic.APIConnectionError(request=request)


async def test_extract_success() -> None:
    with patch(
        "src.llm.extraction.complete_text", new_callable=AsyncMock, return_value=CALL_MOM
    ) as mock_complete:
        client = ExtractionClient(model="claude-test-model", timeout=5, max_retries=0)
        result = await client.extract("Remind me to call mom at 6pm")

    assert result == ExtractedReminder(task="call mom", time="6pm", date="today")
    mock_complete.assert_awaited_once()
    messages = mock_complete.call_args.args[0]
    assert messages[0]["role"] == "user"
    assert "Remind me to call mom at 6pm" in messages[0]["content"]
    assert mock_complete.call_args.kwargs["model"] == "claude-test-model"


async def test_extract_fenced_response() -> None:
    fenced = f"```json\n{CALL_MOM}\n```"
    with patch("src.llm.extraction.complete_text", new_callable=AsyncMock, return_value=fenced):
        result = await ExtractionClient(timeout=5).extract("Remind me to call mom at 6pm")
    assert result.task == "call mom"


async def test_extract_api_error_is_backend_unavailable() -> None:
    with patch(
        "src.llm.extraction.complete_text",
        new_callable=AsyncMock,
        side_effect=_api_connection_error(),
    ):
        with pytest.raises(BackendUnavailable):
            await ExtractionClient(timeout=5, max_retries=0).extract("hello there")


async def test_extract_timeout_is_backend_unavailable() -> None:
    async def _hang(*args, **kwargs):
        await asyncio.sleep(10)

    with patch("src.llm.extraction.complete_text", side_effect=_hang):
        with pytest.raises(BackendUnavailable, match="timed out"):
            await ExtractionClient(timeout=0.05, max_retries=0).extract("hello there")


async def test_extract_single_attempt_by_default() -> None:
    with patch(
        "src.llm.extraction.complete_text",
        new_callable=AsyncMock,
        side_effect=_api_connection_error(),
    ) as mock_complete:
        with pytest.raises(BackendUnavailable):
            await ExtractionClient(timeout=5, max_retries=0).extract("hello there")
    assert mock_complete.await_count == 1


async def test_extract_retries_backend_failures() -> None:
    with patch(
        "src.llm.extraction.complete_text",
        new_callable=AsyncMock,
        side_effect=[_api_connection_error(), CALL_MOM],
    ) as mock_complete:
        result = await ExtractionClient(timeout=5, max_retries=2).extract("call mom at 6pm")
    assert result.task == "call mom"
    assert mock_complete.await_count == 2


async def test_extract_gives_up_after_max_retries() -> None:
    with patch(
        "src.llm.extraction.complete_text",
        new_callable=AsyncMock,
        side_effect=_api_connection_error(),
    ) as mock_complete:
        with pytest.raises(BackendUnavailable):
            await ExtractionClient(timeout=5, max_retries=2).extract("hello there")
    assert mock_complete.await_count == 3


async def test_extract_does_not_retry_malformed_response() -> None:
    with patch(
        "src.llm.extraction.complete_text",
        new_callable=AsyncMock,
        return_value="not json",
    ) as mock_complete:
        with pytest.raises(MalformedResponse):
            await ExtractionClient(timeout=5, max_retries=3).extract("hello there")
    assert mock_complete.await_count == 1


async def test_extract_missing_date_is_incomplete() -> None:
    payload = json.dumps({"task": "call mom", "time": "6pm"})
    with patch("src.llm.extraction.complete_text", new_callable=AsyncMock, return_value=payload):
        with pytest.raises(IncompleteResult):
            await ExtractionClient(timeout=5).extract("Remind me to call mom at 6pm")


async def test_extract_goes_through_anthropic_client() -> None:
    """End to end through complete_text with a mocked Anthropic client."""
    mock_response = MagicMock()
    mock_response.content = [MagicMock(type="text", text=CALL_MOM)]

    mock_client = MagicMock()
    mock_client.messages.create = AsyncMock(return_value=mock_response)

    with patch("src.llm.client._get_client", return_value=mock_client):
        result = await ExtractionClient(model="claude-test-model", timeout=5).extract(
            "Remind me to call mom at 6pm"
        )

    assert result.time == "6pm"
    call_kwargs = mock_client.messages.create.call_args.kwargs
    assert call_kwargs["model"] == "claude-test-model"
    assert "system" not in call_kwargs


async def test_extract_unexpected_client_error_is_backend_unavailable() -> None:
    """A client failing before the request (e.g. no API key) is still a backend failure."""
    with patch(
        "src.llm.extraction.complete_text",
        new_callable=AsyncMock,
        side_effect=TypeError("Could not resolve authentication method"),
    ):
        with pytest.raises(BackendUnavailable, match="authentication"):
            await ExtractionClient(timeout=5, max_retries=0).extract("hello there")


async def test_extract_without_api_key_is_backend_unavailable(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr("src.config.settings.anthropic_api_key", "")
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("ANTHROPIC_AUTH_TOKEN", raising=False)
    monkeypatch.setattr("src.llm.client._client", None)

    with pytest.raises(BackendUnavailable):
        await ExtractionClient(timeout=5, max_retries=0).extract("Remind me to call mom at 6pm")
