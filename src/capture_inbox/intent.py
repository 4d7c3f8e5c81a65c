"""Route a chat utterance to search or to capture creation.

The split is a lexical prefix check, not intent classification: "Remind me
what the budget was" is filed as a capture.
"""

import logging
import re
from typing import Literal

from pydantic import BaseModel

from capture_inbox.errors import InvalidInput
from capture_inbox.models.capture import Capture, ContentType
from capture_inbox.repository import CaptureRepository
from capture_inbox.search import search_captures

logger = logging.getLogger(__name__)

QUESTION_PATTERN = re.compile(
    r"^(what|how|when|where|why|who|find|search|show|list|get|tell)", re.IGNORECASE
)

NO_RESULTS_MESSAGE = (
    "I couldn't find anything matching that. Try different keywords or capture something new!"
)


def is_question(utterance: str) -> bool:
    return bool(QUESTION_PATTERN.match(utterance.strip()))


class RouteResult(BaseModel):
    mode: Literal["search", "capture"]
    message: str
    results: list[Capture] = []
    result: Capture | None = None


class IntentRouter:
    def __init__(self, repository: CaptureRepository) -> None:
        self._repository = repository

    async def route(self, utterance: str, content_type: ContentType | None = None) -> RouteResult:
        """Search for question-like utterances, capture everything else.

        Raises:
            InvalidInput: utterance is blank.
        """
        if not isinstance(utterance, str) or not utterance.strip():
            raise InvalidInput("Message must not be empty")

        if is_question(utterance):
            results = search_captures(self._repository.list(), utterance)
            logger.info("Routed utterance to search (%d results)", len(results))
            if not results:
                return RouteResult(mode="search", message=NO_RESULTS_MESSAGE)
            plural = "s" if len(results) > 1 else ""
            return RouteResult(
                mode="search",
                message=f"Found {len(results)} related capture{plural}:",
                results=results,
            )

        capture = await self._repository.create(utterance, content_type)
        return RouteResult(
            mode="capture",
            message=f"Got it! I've saved this as a {capture.category.value} capture.",
            result=capture,
        )
