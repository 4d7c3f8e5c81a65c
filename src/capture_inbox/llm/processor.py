"""LLM processor: raw capture text -> Capture via Gemini.

Wires together the schema, client, and prompt modules. Gemini calls are
retried with tenacity on transient errors and bounded by an overall
timeout; anything that goes wrong on the way (transport, API status,
timeout, undecodable JSON) surfaces as ClassificationUnavailable so the
repository can fall back to the rule-based classifier.
"""

import asyncio
import json
import logging
from datetime import date

import httpx
from google import genai
from google.genai import types
from google.genai.errors import APIError, ClientError, ServerError
from pydantic import BaseModel, ValidationError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from capture_inbox.config import get_settings
from capture_inbox.cost import extract_usage, log_usage
from capture_inbox.errors import ClassificationUnavailable
from capture_inbox.fallback import lead_data_from_text
from capture_inbox.llm.prompts import (
    GEMINI_MODEL,
    Purpose,
    build_classification_prompt,
    temperature_for,
)
from capture_inbox.llm.schemas import EXPECTED_KEYS, LLMCaptureResponse
from capture_inbox.models.capture import (
    SIMPLE_TYPE_CATEGORIES,
    Capture,
    CaptureContext,
    Category,
    Classifier,
    ContentType,
    Entity,
    EntityType,
    LeadData,
    ShowData,
    TaskData,
)
from capture_inbox.models.context import ClassificationContext

logger = logging.getLogger(__name__)

# Errors a Gemini call can raise once retries are exhausted
GEMINI_ERRORS = (APIError, httpx.HTTPError, OSError)

OUTCOME_PARSED = "parsed"
OUTCOME_DEFAULTED = "defaulted"

_MENTION_CONFIDENCE = 0.8


def _is_retryable(error: BaseException) -> bool:
    """Determine if a Gemini API error is transient and worth retrying.

    Returns True for server errors (5xx) and rate limits (429).
    Returns False for permanent client errors (400, 401, 403).
    """
    if isinstance(error, ServerError):
        return True
    if isinstance(error, ClientError) and error.code == 429:
        return True
    return False


@retry(
    retry=retry_if_exception(_is_retryable),
    wait=wait_exponential_jitter(initial=1, max=8, jitter=1),
    stop=stop_after_attempt(3),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def call_gemini(
    client: genai.Client,
    contents: str,
    purpose: Purpose,
    response_schema: type[BaseModel] | None = None,
) -> object:
    """Call Gemini at the temperature for purpose, retrying on transient errors.

    Args:
        client: Configured Gemini client instance.
        contents: The fully rendered prompt.
        purpose: Why the call is made; fixes the temperature.
        response_schema: When given, request JSON output matching this model.

    Returns:
        Raw GenerateContentResponse (caller reads .text).

    Raises:
        ClientError: On permanent API errors (400, 401, 403).
        ServerError: After exhausting retries on server errors.
    """
    options: dict = {"temperature": temperature_for(purpose)}
    if response_schema is not None:
        options["response_mime_type"] = "application/json"
        options["response_schema"] = response_schema

    response = await client.aio.models.generate_content(
        model=GEMINI_MODEL,
        contents=contents,
        config=types.GenerateContentConfig(**options),
    )
    log_usage(purpose.value, extract_usage(response))
    return response


def parse_llm_response(text: str | None) -> tuple[LLMCaptureResponse, str]:
    """Decode Gemini's JSON text into an LLMCaptureResponse.

    Empty text is treated as ``{}``. Any JSON object validates (missing or
    malformed fields fall back to defaults); the outcome is "parsed" when
    every expected key was present, "defaulted" otherwise.

    Raises:
        ClassificationUnavailable: The text is not JSON, or not a JSON object.
    """
    text = (text or "").strip()
    if not text:
        return LLMCaptureResponse(), OUTCOME_DEFAULTED

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ClassificationUnavailable("Gemini returned undecodable JSON") from exc
    if not isinstance(payload, dict):
        raise ClassificationUnavailable(
            f"Gemini returned a JSON {type(payload).__name__}, expected an object"
        )

    try:
        result = LLMCaptureResponse.model_validate(payload)
    except ValidationError as exc:
        raise ClassificationUnavailable("Gemini response failed schema validation") from exc

    outcome = OUTCOME_PARSED if EXPECTED_KEYS <= payload.keys() else OUTCOME_DEFAULTED
    return result, outcome


def build_capture(
    llm_result: LLMCaptureResponse, content: str, content_type: ContentType
) -> Capture:
    """Combine LLM-generated fields with the submitted content into a Capture.

    Category resolution: a valid category wins, then the mapped simple type,
    then notes. Category payloads survive only on their own category; a lead
    without lead data gets one built from the extractor.
    """
    category = llm_result.category
    if category is None and llm_result.type is not None:
        category = SIMPLE_TYPE_CATEGORIES[llm_result.type]
    category = category or Category.NOTES

    entities = [
        Entity(type=e.type, value=e.value, confidence=e.confidence) for e in llm_result.entities
    ]
    if not entities:
        entities = [
            Entity(type=EntityType.PERSON, value=m, confidence=_MENTION_CONFIDENCE)
            for m in llm_result.mentions
        ]

    lead_data = None
    if category == Category.LEADS:
        if llm_result.lead_data is not None:
            lead_data = LeadData(**llm_result.lead_data.model_dump())
        else:
            lead_data = lead_data_from_text(content)

    show_data = None
    if category == Category.SHOWS and llm_result.show_data is not None:
        show_data = ShowData(**llm_result.show_data.model_dump())

    task_data = None
    if category == Category.TASKS and llm_result.task_data is not None:
        task_data = TaskData(**llm_result.task_data.model_dump())

    return Capture(
        raw_content=content,
        content_type=content_type,
        category=category,
        context=llm_result.context or CaptureContext.BUSINESS,
        summary=llm_result.summary,
        tags=llm_result.tags,
        entities=entities,
        due_date=llm_result.due_date,
        reminder_date=llm_result.reminder_date,
        time_context=llm_result.time_context,
        mentions=llm_result.mentions,
        needs_action=llm_result.needs_action,
        suggested_action=llm_result.suggested_action,
        lead_data=lead_data,
        show_data=show_data,
        task_data=task_data,
        response=llm_result.response or None,
        simple_type=llm_result.type,
        classified_by=Classifier.REMOTE,
        source=content.strip() if content_type == ContentType.URL else None,
    )


async def classify_capture(
    client: genai.Client,
    content: str,
    content_type: ContentType = ContentType.TEXT,
    context: ClassificationContext | None = None,
    today: date | None = None,
    timeout: float | None = None,
) -> Capture:
    """Classify content with Gemini structured output.

    This is the main public API for remote classification. It builds the
    prompt, calls Gemini under an overall timeout, parses the JSON through
    the lenient schema and maps the result onto a Capture.

    Args:
        client: Configured Gemini client instance.
        content: Raw captured text.
        content_type: How the content was submitted.
        context: Optional user rules and memories for the prompt.
        today: Anchor date for relative deadlines. Defaults to date.today().
        timeout: Overall budget in seconds, retries included. Defaults to
            classify_timeout_seconds from settings.

    Returns:
        A Capture with classified_by=REMOTE and fresh id/timestamps.

    Raises:
        ClassificationUnavailable: On timeout, API or transport failure, or
            an unparseable response.
    """
    if timeout is None:
        timeout = get_settings().classify_timeout_seconds
    prompt = build_classification_prompt(content, content_type, today or date.today(), context)

    try:
        async with asyncio.timeout(timeout):
            response = await call_gemini(
                client, prompt, Purpose.CLASSIFICATION, response_schema=LLMCaptureResponse
            )
    except TimeoutError as exc:
        logger.warning("Gemini classification timed out after %.1fs", timeout)
        raise ClassificationUnavailable(f"Classification timed out after {timeout}s") from exc
    except GEMINI_ERRORS as exc:
        logger.warning("Gemini classification failed: %s", exc)
        raise ClassificationUnavailable("Gemini classification failed") from exc

    llm_result, outcome = parse_llm_response(response.text)
    capture = build_capture(llm_result, content, content_type)
    logger.info(
        "Classification complete",
        extra={"outcome": outcome, "category": capture.category.value},
    )
    return capture
