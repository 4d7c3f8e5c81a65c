"""Prompt builder and purpose/temperature tests."""

from datetime import date, datetime, timezone

from capture_inbox.llm.prompts import (
    CHAT_CONTEXT_LIMIT,
    Purpose,
    build_chat_prompt,
    build_classification_prompt,
    build_lead_prompt,
    temperature_for,
)
from capture_inbox.models.capture import Capture, Category, ContentType
from capture_inbox.models.context import ClassificationContext


def test_temperatures_per_purpose():
    assert temperature_for(Purpose.EXTRACTION) == 0.2
    assert temperature_for(Purpose.CLASSIFICATION) == 0.4
    assert temperature_for(Purpose.CONVERSATION) == 0.7


def test_classification_prompt_anchors_today():
    """Prompt carries the weekday and ISO date for resolving relative deadlines."""
    prompt = build_classification_prompt("call John by Tuesday", ContentType.TEXT, date(2026, 3, 10))
    assert "TODAY: Tuesday, 2026-03-10" in prompt
    assert "call John by Tuesday" in prompt
    assert "CONTENT TYPE: text" in prompt


def test_classification_prompt_lists_all_categories():
    prompt = build_classification_prompt("x", ContentType.TEXT, date(2026, 3, 10))
    for category in Category:
        assert category.value in prompt


def test_classification_prompt_includes_rules_and_memories():
    context = ClassificationContext(
        rules="Drumline gigs are always shows",
        memories=["Sarah works at Marriott", "  "],
    )
    prompt = build_classification_prompt("x", ContentType.TEXT, date(2026, 3, 10), context)
    assert "USER'S RULES:\nDrumline gigs are always shows" in prompt
    assert "- Sarah works at Marriott" in prompt


def test_classification_prompt_omits_empty_sections():
    prompt = build_classification_prompt("x", ContentType.TEXT, date(2026, 3, 10))
    assert "USER'S RULES" not in prompt
    assert "THINGS TO REMEMBER" not in prompt


def test_chat_prompt_limits_captures():
    created = datetime(2026, 3, 1, tzinfo=timezone.utc)
    captures = [
        Capture(raw_content=f"note {i}", tags=["t"], created_at=created) for i in range(30)
    ]
    prompt = build_chat_prompt("what did I note?", captures)
    assert prompt.count("[NOTES]") == CHAT_CONTEXT_LIMIT
    assert "note 0 (Tags: t) - Created: 2026-03-01" in prompt
    assert "note 25" not in prompt
    assert 'User\'s Question: "what did I note?"' in prompt


def test_chat_prompt_without_captures():
    assert "No captures available yet." in build_chat_prompt("anything?", [])


def test_lead_prompt_embeds_content():
    assert "Hi, we'd love to book you" in build_lead_prompt("Hi, we'd love to book you")
