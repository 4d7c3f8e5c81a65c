"""Rule-based classification for when the remote classifier is unavailable.

Public API:
    classify_fallback(text, content_type, context, today) -> Capture
        Ordered keyword cascade; total and deterministic.
"""

from capture_inbox.fallback.classifier import (
    FALLBACK_RULES,
    FallbackRule,
    classify_fallback,
    entities_from_fields,
    lead_data_from_text,
)

__all__ = [
    "classify_fallback",
    "entities_from_fields",
    "FALLBACK_RULES",
    "FallbackRule",
    "lead_data_from_text",
]
