"""User-supplied classification context: free-text rules and remembered facts."""

from pydantic import BaseModel

from capture_inbox.config import Settings


class ClassificationContext(BaseModel):
    """Rules and memories passed alongside each capture to the classifiers.

    ``rules`` and ``memories`` are injected into the LLM prompt. The priority
    keyword lists extend the fallback classifier's urgency detection.
    """

    rules: str | None = None
    memories: list[str] = []
    high_priority_keywords: list[str] = []
    low_priority_keywords: list[str] = []

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClassificationContext":
        return cls(
            rules=settings.brain_rules or None,
            memories=settings.brain_memories,
            high_priority_keywords=settings.high_priority_keywords,
            low_priority_keywords=settings.low_priority_keywords,
        )
