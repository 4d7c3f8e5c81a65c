"""Processor tests with a mocked Gemini client."""

import asyncio
import json
from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from google.genai.errors import ClientError, ServerError

from capture_inbox.errors import ClassificationUnavailable
from capture_inbox.llm.processor import (
    OUTCOME_DEFAULTED,
    OUTCOME_PARSED,
    _is_retryable,
    build_capture,
    classify_capture,
    parse_llm_response,
)
from capture_inbox.llm.schemas import LLMCaptureResponse
from capture_inbox.models.capture import (
    CaptureContext,
    Category,
    Classifier,
    ContentType,
    EntityType,
    SimpleType,
    summarize_prefix,
)

TODAY = date(2026, 3, 10)


def _api_error(cls, code: int):
    return cls(code, {"error": {"code": code, "message": "boom", "status": "ERR"}})


def _make_response(payload) -> MagicMock:
    """Build a fake GenerateContentResponse with JSON text and no usage data."""
    response = MagicMock()
    response.text = payload if isinstance(payload, str) or payload is None else json.dumps(payload)
    response.usage_metadata = None
    return response


def _make_client(payload=None, side_effect=None) -> MagicMock:
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(
        return_value=_make_response(payload), side_effect=side_effect
    )
    return client


def _full_payload() -> dict:
    return {
        "response": "Got it, I'll remind you Tuesday",
        "summary": "Call John by Tuesday",
        "type": "task",
        "category": "tasks",
        "context": "personal",
        "tags": ["calls"],
        "due_date": "2026-03-17",
        "mentions": ["John"],
        "needs_action": True,
        "suggested_action": "Call John",
        "task_data": {"title": "Call John", "priority": "high"},
    }


# --- classify_capture tests ---


async def test_classify_capture_maps_response():
    client = _make_client(_full_payload())

    capture = await classify_capture(client, "call John by Tuesday", today=TODAY, timeout=5)

    assert capture.category == Category.TASKS
    assert capture.context == CaptureContext.PERSONAL
    assert capture.summary == "Call John by Tuesday"
    assert capture.due_date == "2026-03-17"
    assert capture.needs_action is True
    assert capture.task_data.title == "Call John"
    assert capture.response == "Got it, I'll remind you Tuesday"
    assert capture.simple_type == SimpleType.TASK
    assert capture.classified_by == Classifier.REMOTE


async def test_classify_capture_requests_json_at_classification_temperature():
    client = _make_client(_full_payload())

    await classify_capture(client, "call John", today=TODAY, timeout=5)

    config = client.aio.models.generate_content.call_args.kwargs["config"]
    assert config.temperature == 0.4
    assert config.response_mime_type == "application/json"


async def test_defaulting_safety():
    """A response missing every optional field yields a safe default capture."""
    content = "something I jotted down " * 20
    client = _make_client({})

    capture = await classify_capture(client, content, today=TODAY, timeout=5)

    assert capture.category == Category.NOTES
    assert capture.tags == []
    assert capture.needs_action is False
    assert capture.summary == summarize_prefix(content)


async def test_empty_text_is_defaulted_not_failed():
    client = _make_client(None)
    capture = await classify_capture(client, "hello", today=TODAY, timeout=5)
    assert capture.category == Category.NOTES
    assert capture.classified_by == Classifier.REMOTE


async def test_url_capture_keeps_source():
    client = _make_client({"type": "reference"})
    capture = await classify_capture(
        client, "https://example.com/a", ContentType.URL, today=TODAY, timeout=5
    )
    assert capture.source == "https://example.com/a"
    assert capture.category == Category.REFERENCE


async def test_timeout_raises_classification_unavailable():
    async def slow(*args, **kwargs):
        await asyncio.sleep(1)

    client = _make_client(side_effect=slow)

    with pytest.raises(ClassificationUnavailable) as exc_info:
        await classify_capture(client, "hello", today=TODAY, timeout=0.01)
    assert isinstance(exc_info.value.__cause__, TimeoutError)


async def test_permanent_api_error_raises_classification_unavailable():
    client = _make_client(side_effect=_api_error(ClientError, 400))

    with pytest.raises(ClassificationUnavailable) as exc_info:
        await classify_capture(client, "hello", today=TODAY, timeout=5)
    assert isinstance(exc_info.value.__cause__, ClientError)
    assert client.aio.models.generate_content.await_count == 1


async def test_transport_error_raises_classification_unavailable():
    client = _make_client(side_effect=httpx.ConnectError("connection refused"))

    with pytest.raises(ClassificationUnavailable):
        await classify_capture(client, "hello", today=TODAY, timeout=5)


async def test_server_error_is_retried_then_succeeds():
    client = _make_client(_full_payload())
    client.aio.models.generate_content.side_effect = [
        _api_error(ServerError, 503),
        _make_response(_full_payload()),
    ]

    with patch("asyncio.sleep", new_callable=AsyncMock):
        capture = await classify_capture(client, "call John", today=TODAY, timeout=5)

    assert capture.category == Category.TASKS
    assert client.aio.models.generate_content.await_count == 2


async def test_invalid_json_raises_classification_unavailable():
    client = _make_client("not json {")
    with pytest.raises(ClassificationUnavailable):
        await classify_capture(client, "hello", today=TODAY, timeout=5)


# --- parse_llm_response tests ---


def test_parse_full_payload_is_parsed():
    result, outcome = parse_llm_response(json.dumps(_full_payload()))
    assert outcome == OUTCOME_PARSED
    assert result.category == Category.TASKS


def test_parse_partial_payload_is_defaulted():
    result, outcome = parse_llm_response('{"summary": "just a summary"}')
    assert outcome == OUTCOME_DEFAULTED
    assert result.summary == "just a summary"


def test_parse_empty_text_is_defaulted():
    result, outcome = parse_llm_response("")
    assert outcome == OUTCOME_DEFAULTED
    assert result == LLMCaptureResponse()


def test_parse_non_object_raises():
    with pytest.raises(ClassificationUnavailable):
        parse_llm_response('["tasks"]')


# --- build_capture tests ---


def test_category_falls_back_to_mapped_type():
    llm = LLMCaptureResponse.model_validate({"type": "reminder"})
    assert build_capture(llm, "x", ContentType.TEXT).category == Category.TASKS


def test_valid_category_wins_over_type():
    llm = LLMCaptureResponse.model_validate({"type": "idea", "category": "projects"})
    assert build_capture(llm, "x", ContentType.TEXT).category == Category.PROJECTS


def test_unset_context_defaults_to_business():
    llm = LLMCaptureResponse.model_validate({})
    assert build_capture(llm, "x", ContentType.TEXT).context == CaptureContext.BUSINESS


def test_mentions_become_person_entities():
    llm = LLMCaptureResponse.model_validate({"mentions": ["Sarah", "Ben"]})
    capture = build_capture(llm, "x", ContentType.TEXT)
    assert [(e.type, e.value, e.confidence) for e in capture.entities] == [
        (EntityType.PERSON, "Sarah", 0.8),
        (EntityType.PERSON, "Ben", 0.8),
    ]


def test_payloads_kept_only_for_matching_category():
    llm = LLMCaptureResponse.model_validate(
        {
            "category": "notes",
            "lead_data": {"name": "Sarah"},
            "show_data": {"client": "Acme"},
            "task_data": {"title": "x"},
        }
    )
    capture = build_capture(llm, "x", ContentType.TEXT)
    assert capture.lead_data is None
    assert capture.show_data is None
    assert capture.task_data is None


def test_lead_without_lead_data_gets_extracted_fields():
    llm = LLMCaptureResponse.model_validate({"category": "leads"})
    capture = build_capture(llm, "Inquiry from Sarah, sarah@marriott.com, $5k", ContentType.TEXT)
    assert capture.lead_data is not None
    assert capture.lead_data.email == "sarah@marriott.com"
    assert capture.lead_data.budget == "$5k"


def test_tags_capped_at_five():
    llm = LLMCaptureResponse.model_validate({"tags": ["a", "b", "c", "d", "e", "f", "g"]})
    assert len(build_capture(llm, "x", ContentType.TEXT).tags) == 5


# --- _is_retryable tests ---


def test_is_retryable_server_error():
    assert _is_retryable(_api_error(ServerError, 500)) is True


def test_is_retryable_rate_limit():
    assert _is_retryable(_api_error(ClientError, 429)) is True


def test_is_retryable_client_error():
    assert _is_retryable(_api_error(ClientError, 400)) is False
    assert _is_retryable(_api_error(ClientError, 401)) is False


def test_is_retryable_other_exception():
    assert _is_retryable(ValueError("nope")) is False
