"""Deterministic field extraction from raw capture text.

Public API:
    extract_fields(text) -> ExtractedFields
        First-match email, phone, money, date and website candidates.
    detect_content_type(text) -> ContentType
    to_iso_date(raw, today) -> str | None
"""

from capture_inbox.extraction.content_type import detect_content_type
from capture_inbox.extraction.patterns import ExtractedFields, extract_fields, to_iso_date

__all__ = [
    "detect_content_type",
    "extract_fields",
    "ExtractedFields",
    "to_iso_date",
]
