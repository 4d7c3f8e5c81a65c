"""Keyword patterns and pure predicates for the rule-based fallback classifier.

Each predicate takes a RuleInput and returns a bool. They hold no state and
can be exercised one at a time in tests; the cascade order lives in
classifier.py.
"""

import re
from dataclasses import dataclass, field
from datetime import date

from capture_inbox.extraction.patterns import ExtractedFields
from capture_inbox.models.capture import ContentType, ShowStatus, TaskPriority
from capture_inbox.models.context import ClassificationContext

LEAD_KEYWORDS = re.compile(
    r"\b(inquir(?:y|ies|ing|ed)|enquir(?:y|ies|ing)|booking|book(?:ed)? us"
    r"|interested in (?:booking|hiring)|looking for (?:entertainment|a performer|a band|a dj)"
    r"|agency|agent|quote request|request(?:ed|ing)? a quote|rfp)\b",
    re.IGNORECASE,
)

COMPANY_KEYWORDS = re.compile(
    r"\b(hotels?|resorts?|inc|llc|ltd|corp(?:oration)?|corporate|compan(?:y|ies)|agency"
    r"|venues?|group|productions|entertainment|events|casino|club|university|church"
    r"|foundation|association|brand|client)\b",
    re.IGNORECASE,
)

SHOW_KEYWORDS = re.compile(
    r"\b(shows?|gigs?|performances?|perform(?:ing)?|concerts?|drumline|dj|festival|residency"
    r"|headlin(?:e|ing))\b",
    re.IGNORECASE,
)

SHOW_CONFIRMED = re.compile(r"\b(confirmed|booked|locked in|signed)\b", re.IGNORECASE)
SHOW_QUOTED = re.compile(
    r"\b(quoted|quote sent|sent (?:a |the )?quote|proposal|offer)\b", re.IGNORECASE
)
SHOW_COMPLETED = re.compile(r"\b(completed|played|wrapped|finished)\b", re.IGNORECASE)

TASK_KEYWORDS = re.compile(
    r"\b(todo|to-do|task|need to|needs to|must|should|have to|remember to|remind me"
    r"|don'?t forget|call|(?:email|text) (?:him|her|them|back)|send|follow[ -]?up|reply"
    r"|buy|pick up|schedule|finish|submit|pay|asap|urgent)\b",
    re.IGNORECASE,
)

HIGH_PRIORITY = re.compile(
    r"\b(urgent(?:ly)?|asap|immediately|right away|critical|important|today|tonight|eod)\b|!{2,}",
    re.IGNORECASE,
)
LOW_PRIORITY = re.compile(
    r"\b(someday|eventually|maybe|whenever|no rush|low priority|fyi"
    r"|when (?:i|you) (?:get|have) (?:a )?(?:chance|time))\b",
    re.IGNORECASE,
)

MEETING_KEYWORDS = re.compile(
    r"\b(meeting|meet with|meet up|agenda|stand-?up|appointment|zoom|conference call"
    r"|one-on-one)\b",
    re.IGNORECASE,
)

IDEA_KEYWORDS = re.compile(
    r"\b(idea|ideas|thought|what if|maybe|could|concept|brainstorm|imagine|how about)\b",
    re.IGNORECASE,
)

QUOTE_MARKERS = re.compile(r"[\"“”].+[\"“”]|\b(said|says|quote|quoted)\b", re.IGNORECASE)

HASHTAG = re.compile(r"(?<![\w#])#(\w[\w-]*)")

# Case-sensitive on purpose: names and companies are Capitalized
NAME_PATTERN = re.compile(
    r"\b(?i:from|with|call|email|text|meet|ask|tell|contact|ping)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)"
)
COMPANY_PATTERN = re.compile(
    r"\b(?i:at|for)\s+([A-Z][\w&'.-]*(?:\s+(?:[A-Z][\w&'.-]*|&|of))*)"
)

EVENT_TYPES = re.compile(
    r"\b(wedding|gala|conference|convention|corporate event|holiday party|private party"
    r"|birthday|festival|fundraiser|graduation|reunion|corporate)\b",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class RuleInput:
    """Everything a fallback predicate or builder may look at."""

    text: str
    content_type: ContentType
    fields: ExtractedFields
    context: ClassificationContext = field(default_factory=ClassificationContext)
    today: date = field(default_factory=date.today)


def is_lead(inp: RuleInput) -> bool:
    """Inquiry wording, a way to reach them, and a company in the picture."""
    return (
        bool(LEAD_KEYWORDS.search(inp.text))
        and bool(inp.fields.email or inp.fields.website)
        and has_company(inp)
    )


def is_show(inp: RuleInput) -> bool:
    return bool(SHOW_KEYWORDS.search(inp.text)) and bool(inp.fields.date or inp.fields.money)


def is_task(inp: RuleInput) -> bool:
    return bool(TASK_KEYWORDS.search(inp.text))


def is_bookmark(inp: RuleInput) -> bool:
    return inp.content_type == ContentType.URL


def is_meeting(inp: RuleInput) -> bool:
    return bool(MEETING_KEYWORDS.search(inp.text))


def is_idea(inp: RuleInput) -> bool:
    return bool(IDEA_KEYWORDS.search(inp.text))


def is_contact(inp: RuleInput) -> bool:
    return inp.fields.has_contact()


def is_quote(inp: RuleInput) -> bool:
    return bool(QUOTE_MARKERS.search(inp.text))


def has_company(inp: RuleInput) -> bool:
    return bool(COMPANY_KEYWORDS.search(inp.text))


def show_status(text: str) -> ShowStatus:
    if SHOW_CONFIRMED.search(text):
        return ShowStatus.CONFIRMED
    if SHOW_QUOTED.search(text):
        return ShowStatus.QUOTED
    if SHOW_COMPLETED.search(text):
        return ShowStatus.COMPLETED
    return ShowStatus.INQUIRY


def task_priority(text: str, context: ClassificationContext | None = None) -> TaskPriority:
    """High on urgency words, low on deferral words, medium otherwise.

    User-configured priority keywords are matched as case-insensitive
    substrings and checked alongside the built-in patterns.
    """
    context = context or ClassificationContext()
    lowered = text.lower()
    if HIGH_PRIORITY.search(text) or _any_keyword(lowered, context.high_priority_keywords):
        return TaskPriority.HIGH
    if LOW_PRIORITY.search(text) or _any_keyword(lowered, context.low_priority_keywords):
        return TaskPriority.LOW
    return TaskPriority.MEDIUM


def extract_hashtags(text: str) -> list[str]:
    return [tag.lower() for tag in HASHTAG.findall(text)]


def extract_names(text: str) -> list[str]:
    return _unique(m.group(1) for m in NAME_PATTERN.finditer(text))


def extract_company(text: str) -> str | None:
    match = COMPANY_PATTERN.search(text)
    if not match:
        return None
    company = match.group(1).rstrip(".,'&- ")
    return company or None


def extract_event_type(text: str) -> str | None:
    match = EVENT_TYPES.search(text)
    return match.group(1).lower() if match else None


def _any_keyword(lowered: str, keywords: list[str]) -> bool:
    return any(k.strip() and k.strip().lower() in lowered for k in keywords)


def _unique(values) -> list[str]:
    seen: list[str] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen
