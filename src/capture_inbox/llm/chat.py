"""Conversational answers, semantic search and lead parsing on top of Gemini.

None of these calls is allowed to break the caller: a failed answer becomes
a fixed "try searching" reply, a failed semantic search becomes keyword
search, a failed lead parse becomes the regex-built lead data.
"""

import asyncio
import json
import logging

from google import genai
from pydantic import BaseModel, ValidationError

from capture_inbox.config import get_settings
from capture_inbox.errors import InvalidInput
from capture_inbox.fallback import lead_data_from_text
from capture_inbox.llm.processor import GEMINI_ERRORS, call_gemini
from capture_inbox.llm.prompts import (
    Purpose,
    build_chat_prompt,
    build_lead_prompt,
    build_search_prompt,
)
from capture_inbox.llm.schemas import LLMLeadData, LLMSearchResult
from capture_inbox.models.capture import Capture, LeadData
from capture_inbox.search import search_captures

logger = logging.getLogger(__name__)

FALLBACK_ANSWER = "I'm having trouble connecting right now. Try searching your captures instead."


async def answer_question(client: genai.Client, query: str, captures: list[Capture]) -> str:
    """Answer a question about the user's captures, newest first as context.

    Raises:
        InvalidInput: The question is blank.
    """
    if not isinstance(query, str) or not query.strip():
        raise InvalidInput("Question must not be empty")

    prompt = build_chat_prompt(query.strip(), captures)
    try:
        async with asyncio.timeout(get_settings().classify_timeout_seconds):
            response = await call_gemini(client, prompt, Purpose.CONVERSATION)
    except GEMINI_ERRORS:
        logger.warning("Chat answer unavailable, returning fallback", exc_info=True)
        return FALLBACK_ANSWER

    answer = (response.text or "").strip()
    return answer or FALLBACK_ANSWER


class SemanticMatches(BaseModel):
    results: list[Capture] = []
    explanation: str = ""
    semantic: bool = True


def _keyword_matches(captures: list[Capture], query: str) -> SemanticMatches:
    return SemanticMatches(results=search_captures(captures, query), semantic=False)


async def semantic_search(
    client: genai.Client, query: str, captures: list[Capture]
) -> SemanticMatches:
    """Let Gemini pick the captures that match a query by meaning.

    Ids Gemini returns are kept in its relevance order; unknown or repeated
    ids are dropped. Any Gemini or payload failure falls back to keyword
    search, flagged with ``semantic=False``. A blank query matches nothing.
    """
    if not isinstance(query, str) or not query.strip() or not captures:
        return SemanticMatches()

    try:
        async with asyncio.timeout(get_settings().classify_timeout_seconds):
            response = await call_gemini(
                client,
                build_search_prompt(query.strip(), captures),
                Purpose.EXTRACTION,
                response_schema=LLMSearchResult,
            )
        payload = json.loads(response.text or "{}")
    except (*GEMINI_ERRORS, json.JSONDecodeError):
        logger.warning("Semantic search unavailable, using keyword search", exc_info=True)
        return _keyword_matches(captures, query)

    try:
        found = LLMSearchResult.model_validate(payload)
    except ValidationError:
        logger.warning("Semantic search returned an unusable payload, using keyword search")
        return _keyword_matches(captures, query)

    by_id = {c.id: c for c in captures}
    results = []
    for capture_id in found.matching_ids:
        capture = by_id.pop(capture_id, None)
        if capture is not None:
            results.append(capture)
    return SemanticMatches(results=results, explanation=found.explanation or "")


async def parse_lead(client: genai.Client, content: str) -> LeadData:
    """Extract lead fields from free text.

    Fields Gemini found override the extractor's; fields it left null keep
    the extractor's value.

    Raises:
        InvalidInput: The text is blank.
    """
    if not isinstance(content, str) or not content.strip():
        raise InvalidInput("Lead text must not be empty")

    extracted = lead_data_from_text(content)
    try:
        async with asyncio.timeout(get_settings().classify_timeout_seconds):
            response = await call_gemini(
                client, build_lead_prompt(content), Purpose.EXTRACTION, response_schema=LLMLeadData
            )
        payload = json.loads(response.text or "{}")
    except (*GEMINI_ERRORS, json.JSONDecodeError):
        logger.warning("Lead parsing unavailable, using extracted fields", exc_info=True)
        return extracted

    if not isinstance(payload, dict):
        logger.warning("Lead parsing returned a non-object payload, using extracted fields")
        return extracted

    parsed = LLMLeadData.model_validate(payload)
    found = {key: value for key, value in parsed.model_dump().items() if value is not None}
    return extracted.model_copy(update=found)
