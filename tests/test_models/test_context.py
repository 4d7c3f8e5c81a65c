"""Tests for ClassificationContext."""

from capture_inbox.config import Settings
from capture_inbox.models.context import ClassificationContext


def test_from_settings_copies_rules_and_keywords():
    settings = Settings(
        _env_file=None,
        brain_rules="Anything about drumline is a show",
        brain_memories=["Sarah works at Marriott"],
        high_priority_keywords=["invoice"],
        low_priority_keywords=["newsletter"],
    )
    context = ClassificationContext.from_settings(settings)
    assert context.rules == "Anything about drumline is a show"
    assert context.memories == ["Sarah works at Marriott"]
    assert context.high_priority_keywords == ["invoice"]
    assert context.low_priority_keywords == ["newsletter"]


def test_from_settings_blank_rules_become_none():
    context = ClassificationContext.from_settings(Settings(_env_file=None, brain_rules=""))
    assert context.rules is None
    assert context.memories == []
