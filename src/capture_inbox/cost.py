"""Token usage extraction, cost calculation, and structured cost logging.

Centralizes Gemini pricing constants (single source of truth) and provides
utilities for extracting token usage from Gemini responses and logging it
as structured data.
"""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Gemini 2.5 Flash pricing -- single source of truth
INPUT_PRICE_PER_TOKEN = 0.30 / 1_000_000  # $0.30 per 1M input tokens
OUTPUT_PRICE_PER_TOKEN = 2.50 / 1_000_000  # $2.50 per 1M output tokens


@dataclass
class TokenUsage:
    """Token counts and calculated cost for a single Gemini API call."""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    cost_usd: float


def extract_usage(response: object) -> TokenUsage:
    """Extract token usage from a Gemini GenerateContentResponse.

    Safely handles None values in usage_metadata by defaulting to 0.
    """
    metadata = getattr(response, "usage_metadata", None)
    prompt_tokens = getattr(metadata, "prompt_token_count", 0) or 0
    completion_tokens = getattr(metadata, "candidates_token_count", 0) or 0
    cost_usd = (prompt_tokens * INPUT_PRICE_PER_TOKEN) + (
        completion_tokens * OUTPUT_PRICE_PER_TOKEN
    )
    return TokenUsage(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=prompt_tokens + completion_tokens,
        cost_usd=cost_usd,
    )


def log_usage(purpose: str, usage: TokenUsage) -> None:
    """Log structured token usage for one Gemini call.

    Args:
        purpose: What the call was for (classification, conversation, ...).
        usage: Token usage data from extract_usage.
    """
    # Lazy import to avoid circular dependency (cost -> llm.prompts -> llm -> processor -> cost)
    from capture_inbox.llm.prompts import GEMINI_MODEL

    logger.info(
        "Gemini call complete",
        extra={
            "purpose": purpose,
            "model": GEMINI_MODEL,
            "prompt_tokens": usage.prompt_tokens,
            "completion_tokens": usage.completion_tokens,
            "total_tokens": usage.total_tokens,
            "cost_usd": round(usage.cost_usd, 6),
        },
    )
