"""Tests for conversational answers, semantic search and lead parsing."""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from capture_inbox.errors import InvalidInput
from capture_inbox.llm.chat import FALLBACK_ANSWER, answer_question, parse_lead, semantic_search
from capture_inbox.models.capture import Capture

LEAD_TEXT = "Inquiry from Sarah at Marriott Hotels, sarah@marriott.com, budget $5k"


def _make_client(text=None, side_effect=None) -> MagicMock:
    response = MagicMock()
    response.text = text
    response.usage_metadata = None
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(return_value=response, side_effect=side_effect)
    return client


# --- answer_question tests ---


async def test_answer_question_returns_model_text():
    client = _make_client("You have one task about John.")

    answer = await answer_question(client, "what about John?", [Capture(raw_content="call John")])

    assert answer == "You have one task about John."
    config = client.aio.models.generate_content.call_args.kwargs["config"]
    assert config.temperature == 0.7
    assert "call John" in client.aio.models.generate_content.call_args.kwargs["contents"]


async def test_answer_question_failure_returns_fallback():
    client = _make_client(side_effect=httpx.ConnectError("offline"))
    assert await answer_question(client, "what's due?", []) == FALLBACK_ANSWER


async def test_answer_question_empty_reply_returns_fallback():
    client = _make_client("   ")
    assert await answer_question(client, "what's due?", []) == FALLBACK_ANSWER


async def test_answer_question_blank_query_raises():
    with pytest.raises(InvalidInput):
        await answer_question(_make_client("x"), "  ", [])


# --- parse_lead tests ---


async def test_parse_lead_merges_model_fields_over_extracted():
    client = _make_client(json.dumps({"name": "Sarah Connor", "event_type": "gala", "phone": None}))

    lead = await parse_lead(client, LEAD_TEXT)

    assert lead.name == "Sarah Connor"
    assert lead.event_type == "gala"
    assert lead.email == "sarah@marriott.com"
    assert lead.budget == "$5k"
    config = client.aio.models.generate_content.call_args.kwargs["config"]
    assert config.temperature == 0.2


async def test_parse_lead_failure_uses_extracted_fields():
    client = _make_client(side_effect=httpx.ReadTimeout("slow"))

    lead = await parse_lead(client, LEAD_TEXT)

    assert lead.name == "Sarah"
    assert lead.company == "Marriott Hotels"
    assert lead.email == "sarah@marriott.com"


async def test_parse_lead_bad_json_uses_extracted_fields():
    lead = await parse_lead(_make_client("{oops"), LEAD_TEXT)
    assert lead.email == "sarah@marriott.com"


async def test_parse_lead_blank_raises():
    with pytest.raises(InvalidInput):
        await parse_lead(_make_client("{}"), "")


# --- semantic_search tests ---


def _make_captures() -> list[Capture]:
    return [
        Capture(
            id="cap_gig", raw_content="Ryman show", summary="Show at the Ryman", tags=["show"]
        ),
        Capture(id="cap_paint", raw_content="paint", summary="Blue paint for the hallway"),
        Capture(id="cap_vendor", raw_content="vendor", summary="Call the vendor"),
    ]


async def test_semantic_search_keeps_model_relevance_order():
    captures = _make_captures()
    client = _make_client(
        json.dumps(
            {
                "matching_ids": ["cap_vendor", "cap_missing", "cap_gig", "cap_vendor"],
                "explanation": "Both involve booking work.",
            }
        )
    )

    matches = await semantic_search(client, "work stuff", captures)

    assert [c.id for c in matches.results] == ["cap_vendor", "cap_gig"]
    assert matches.explanation == "Both involve booking work."
    assert matches.semantic is True
    kwargs = client.aio.models.generate_content.call_args.kwargs
    assert kwargs["config"].temperature == 0.2
    assert kwargs["config"].response_mime_type == "application/json"
    assert "ID: cap_paint" in kwargs["contents"]
    assert 'Search Query: "work stuff"' in kwargs["contents"]


async def test_semantic_search_no_matches():
    matches = await semantic_search(
        _make_client(json.dumps({"matching_ids": []})), "taxes", _make_captures()
    )
    assert matches.results == []
    assert matches.explanation == ""
    assert matches.semantic is True


async def test_semantic_search_failure_falls_back_to_keyword_search():
    client = _make_client(side_effect=httpx.ConnectError("offline"))

    matches = await semantic_search(client, "vendor", _make_captures())

    assert [c.id for c in matches.results] == ["cap_vendor"]
    assert matches.semantic is False


@pytest.mark.parametrize("text", ["{oops", "[1, 2]", '"just a string"'])
async def test_semantic_search_bad_payload_falls_back_to_keyword_search(text: str):
    matches = await semantic_search(_make_client(text), "paint", _make_captures())

    assert [c.id for c in matches.results] == ["cap_paint"]
    assert matches.semantic is False


@pytest.mark.parametrize("query", ["", "   "])
async def test_semantic_search_blank_query_skips_gemini(query: str):
    client = _make_client("{}")

    matches = await semantic_search(client, query, _make_captures())

    assert matches.results == []
    client.aio.models.generate_content.assert_not_called()


async def test_semantic_search_without_captures_skips_gemini():
    client = _make_client("{}")
    assert (await semantic_search(client, "anything", [])).results == []
    client.aio.models.generate_content.assert_not_called()
