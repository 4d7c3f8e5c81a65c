"""LLM processing: capture classification and chat via Gemini.

Public API:
    classify_capture(client, content, content_type, context) -> Capture
        Classifies raw text via Gemini structured output with retry logic.
        Raises ClassificationUnavailable on any failure.
    answer_question(client, query, captures) -> str
    semantic_search(client, query, captures) -> SemanticMatches
        Gemini-ranked matches, falling back to keyword search.
    parse_lead(client, content) -> LeadData
"""

from capture_inbox.llm.chat import (
    FALLBACK_ANSWER,
    SemanticMatches,
    answer_question,
    parse_lead,
    semantic_search,
)
from capture_inbox.llm.client import get_gemini_client, reset_client
from capture_inbox.llm.processor import classify_capture
from capture_inbox.llm.schemas import LLMCaptureResponse

__all__ = [
    "answer_question",
    "classify_capture",
    "FALLBACK_ANSWER",
    "get_gemini_client",
    "LLMCaptureResponse",
    "parse_lead",
    "reset_client",
    "semantic_search",
    "SemanticMatches",
]
