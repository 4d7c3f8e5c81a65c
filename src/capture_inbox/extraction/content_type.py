"""Content type detection for raw captures."""

import re

from capture_inbox.models.capture import ContentType

URL_PATTERN = re.compile(r"^https?://\S+$", re.IGNORECASE)


def detect_content_type(text: str) -> ContentType:
    """A lone http(s) link is a URL capture. Everything else defaults to TEXT.

    IMAGE and VOICE are never inferred; callers set them explicitly.
    """
    if URL_PATTERN.match((text or "").strip()):
        return ContentType.URL
    return ContentType.TEXT
