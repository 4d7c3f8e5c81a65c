"""Deterministic fallback classification used when the remote classifier is down.

The cascade is an ordered list of FallbackRule(predicate, builder) pairs,
evaluated top to bottom; the first predicate that matches decides the
category. Builders only contribute the category-specific fields, the shared
fields (summary, tags, entities) are assembled here for every rule.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable

from capture_inbox.extraction.patterns import ExtractedFields, extract_fields, to_iso_date
from capture_inbox.fallback import rules
from capture_inbox.fallback.rules import RuleInput
from capture_inbox.models.capture import (
    Capture,
    CaptureContext,
    Category,
    Classifier,
    ContentType,
    Entity,
    EntityType,
    LeadData,
    ShowData,
    ShowStatus,
    TaskData,
    summarize_prefix,
)
from capture_inbox.models.context import ClassificationContext

logger = logging.getLogger(__name__)

_TITLE_LIMIT = 80


@dataclass(frozen=True)
class FallbackRule:
    name: str
    category: Category
    predicate: Callable[[RuleInput], bool]
    build: Callable[[RuleInput], dict] | None = None


def build_lead(inp: RuleInput) -> dict:
    lead = lead_data_from_text(inp.text, inp.fields)
    who = lead.name or lead.company or "the lead"
    return {
        "context": CaptureContext.BUSINESS,
        "lead_data": lead,
        "needs_action": True,
        "suggested_action": f"Follow up with {who}",
    }


def build_show(inp: RuleInput) -> dict:
    status = rules.show_status(inp.text)
    client = rules.extract_company(inp.text) or next(iter(rules.extract_names(inp.text)), None)
    show = ShowData(
        client=client,
        show_type=rules.extract_event_type(inp.text),
        date=to_iso_date(inp.fields.date, inp.today) or inp.fields.date,
        fee=inp.fields.money,
        status=status,
    )
    updates: dict = {"context": CaptureContext.BUSINESS, "show_data": show}
    if status == ShowStatus.INQUIRY:
        updates["needs_action"] = True
        updates["suggested_action"] = f"Send a quote to {client}" if client else "Send a quote"
    elif status == ShowStatus.QUOTED:
        updates["needs_action"] = True
        updates["suggested_action"] = "Follow up on the quote"
    return updates


def build_task(inp: RuleInput) -> dict:
    title = _first_line(inp.text)
    due = to_iso_date(inp.fields.date, inp.today)
    names = rules.extract_names(inp.text)
    return {
        "context": _context_for(inp),
        "task_data": TaskData(
            title=title,
            due_date=due,
            priority=rules.task_priority(inp.text, inp.context),
            related_to=names[0] if names else None,
        ),
        "due_date": due,
        "time_context": inp.fields.date,
        "needs_action": True,
        "suggested_action": title,
    }


def build_meeting(inp: RuleInput) -> dict:
    if not inp.fields.date:
        return {}
    return {
        "due_date": to_iso_date(inp.fields.date, inp.today),
        "time_context": inp.fields.date,
        "needs_action": True,
        "suggested_action": "Add to calendar",
    }


FALLBACK_RULES: list[FallbackRule] = [
    FallbackRule("lead", Category.LEADS, rules.is_lead, build_lead),
    FallbackRule("show", Category.SHOWS, rules.is_show, build_show),
    FallbackRule("task", Category.TASKS, rules.is_task, build_task),
    FallbackRule("bookmark", Category.BOOKMARKS, rules.is_bookmark),
    FallbackRule("meeting", Category.MEETINGS, rules.is_meeting, build_meeting),
    FallbackRule("idea", Category.IDEAS, rules.is_idea),
    FallbackRule("contact", Category.CONTACTS, rules.is_contact),
    FallbackRule("quote", Category.QUOTES, rules.is_quote),
]

_DEFAULT_RULE = FallbackRule("note", Category.NOTES, lambda _: True)


def select_rule(inp: RuleInput) -> FallbackRule:
    """Return the first rule whose predicate matches, or the notes default."""
    for rule in FALLBACK_RULES:
        if rule.predicate(inp):
            return rule
    return _DEFAULT_RULE


def classify_fallback(
    text: str,
    content_type: ContentType = ContentType.TEXT,
    context: ClassificationContext | None = None,
    today: date | None = None,
) -> Capture:
    """Classify text with keyword rules alone. Total: never raises.

    Args:
        text: Raw captured text (may be empty).
        content_type: How the text was captured.
        context: Optional user rules; only the priority keywords are used here.
        today: Anchor for resolving year-less dates. Defaults to date.today().

    Returns:
        A Capture with classified_by=FALLBACK and fresh id/timestamps.
    """
    text = text if isinstance(text, str) else ""
    inp = RuleInput(
        text=text,
        content_type=content_type,
        fields=extract_fields(text),
        context=context or ClassificationContext(),
        today=today or date.today(),
    )
    rule = select_rule(inp)

    data: dict = {
        "raw_content": text,
        "content_type": content_type,
        "category": rule.category,
        "context": _context_for(inp),
        "summary": summarize_prefix(text),
        "entities": entities_from_fields(inp.fields),
        "mentions": _mentions(text),
        "classified_by": Classifier.FALLBACK,
        "source": text.strip() if content_type == ContentType.URL else None,
    }
    if rule.build is not None:
        data.update(rule.build(inp))

    data["tags"] = _tags(text, rule.category, data["context"])
    data["response"] = f"Got it, saved to {rule.category.value}."

    logger.info("Fallback classified capture as %s via %s rule", rule.category.value, rule.name)
    return Capture(**data)


def lead_data_from_text(text: str, fields: ExtractedFields | None = None) -> LeadData:
    """Best-effort LeadData from regex name/company capture plus extracted fields."""
    fields = fields or extract_fields(text)
    names = rules.extract_names(text)
    company = rules.extract_company(text)
    name = next((n for n in names if n != company), None)
    source = "email" if fields.email else ("website" if fields.website else None)
    return LeadData(
        name=name,
        company=company,
        email=fields.email,
        phone=fields.phone,
        website=fields.website,
        source=source,
        event_date=fields.date,
        event_type=rules.extract_event_type(text),
        budget=fields.money,
    )


def entities_from_fields(fields: ExtractedFields) -> list[Entity]:
    entities: list[Entity] = []
    if fields.email:
        entities.append(Entity(type=EntityType.EMAIL, value=fields.email, confidence=1.0))
    if fields.phone:
        entities.append(Entity(type=EntityType.PHONE, value=fields.phone, confidence=1.0))
    if fields.money:
        entities.append(Entity(type=EntityType.MONEY, value=fields.money, confidence=0.8))
    if fields.date:
        entities.append(Entity(type=EntityType.DATE, value=fields.date, confidence=0.8))
    return entities


def _context_for(inp: RuleInput) -> CaptureContext:
    return CaptureContext.BUSINESS if rules.has_company(inp) else CaptureContext.PERSONAL


def _tags(text: str, category: Category, context: CaptureContext) -> list[str]:
    tags = rules.extract_hashtags(text)[:5]
    if context == CaptureContext.BUSINESS:
        if category == Category.LEADS:
            tags.append("lead")
        elif category == Category.SHOWS:
            tags.append("show")
    return tags


def _mentions(text: str) -> list[str]:
    mentions = rules.extract_names(text)
    company = rules.extract_company(text)
    if company and company not in mentions:
        mentions.append(company)
    return mentions


def _first_line(text: str) -> str:
    line = text.strip().splitlines()[0].strip() if text.strip() else ""
    if len(line) > _TITLE_LIMIT:
        return line[: _TITLE_LIMIT - 3] + "..."
    return line
