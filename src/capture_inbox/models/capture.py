"""Capture model, its structured payloads, and the enums they draw from."""

import re
import uuid
from datetime import date, datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

SUMMARY_LIMIT = 200
MAX_TAGS = 5
EMPTY_SUMMARY = "(empty capture)"

_ISO_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")


class ContentType(str, Enum):
    """How the capture was submitted."""

    TEXT = "text"
    URL = "url"
    IMAGE = "image"
    VOICE = "voice"


class Category(str, Enum):
    """Closed set of buckets used for filtering and display (11 values)."""

    IDEAS = "ideas"
    TASKS = "tasks"
    CONTACTS = "contacts"
    LEADS = "leads"
    SHOWS = "shows"
    NOTES = "notes"
    REFERENCE = "reference"
    QUOTES = "quotes"
    BOOKMARKS = "bookmarks"
    MEETINGS = "meetings"
    PROJECTS = "projects"


class CaptureContext(str, Enum):
    """Coarse visibility/routing tag."""

    BUSINESS = "business"
    PERSONAL = "personal"


class SimpleType(str, Enum):
    """The simple type the LLM is asked for. Mapped onto Category."""

    TASK = "task"
    REMINDER = "reminder"
    IDEA = "idea"
    NOTE = "note"
    CONTACT = "contact"
    SHOW = "show"
    LEAD = "lead"
    REFERENCE = "reference"


SIMPLE_TYPE_CATEGORIES: dict[SimpleType, Category] = {
    SimpleType.TASK: Category.TASKS,
    SimpleType.REMINDER: Category.TASKS,
    SimpleType.IDEA: Category.IDEAS,
    SimpleType.NOTE: Category.NOTES,
    SimpleType.CONTACT: Category.CONTACTS,
    SimpleType.SHOW: Category.SHOWS,
    SimpleType.LEAD: Category.LEADS,
    SimpleType.REFERENCE: Category.REFERENCE,
}


class EntityType(str, Enum):
    PERSON = "person"
    COMPANY = "company"
    DATE = "date"
    LOCATION = "location"
    PROJECT = "project"
    EMAIL = "email"
    PHONE = "phone"
    MONEY = "money"


class ShowStatus(str, Enum):
    INQUIRY = "inquiry"
    QUOTED = "quoted"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ActionTaken(str, Enum):
    """Downstream actions recorded against a capture after creation."""

    ADDED_TO_LEADTRACK = "added_to_leadtrack"
    ADDED_TO_SHOWSYNC = "added_to_showsync"
    ADDED_TO_TASKS = "added_to_tasks"


class Classifier(str, Enum):
    """Which classification path produced the AI-derived fields."""

    REMOTE = "remote"
    FALLBACK = "fallback"


class Entity(BaseModel):
    type: EntityType
    value: str
    confidence: float = Field(ge=0.0, le=1.0)


class LeadData(BaseModel):
    """Best-effort lead fields. Any of them may be missing."""

    name: str | None = None
    company: str | None = None
    email: str | None = None
    phone: str | None = None
    website: str | None = None
    source: str | None = None
    event_date: str | None = None
    event_type: str | None = None
    venue: str | None = None
    budget: str | None = None
    notes: str | None = None


class ShowData(BaseModel):
    client: str | None = None
    show_type: str | None = None
    date: str | None = None
    venue: str | None = None
    fee: str | None = None
    status: ShowStatus = ShowStatus.INQUIRY


class TaskData(BaseModel):
    title: str | None = None
    due_date: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    related_to: str | None = None


# Fields replaced wholesale when a capture is reprocessed
AI_DERIVED_FIELDS = frozenset(
    {
        "category",
        "context",
        "summary",
        "tags",
        "entities",
        "due_date",
        "reminder_date",
        "time_context",
        "mentions",
        "needs_action",
        "suggested_action",
        "lead_data",
        "show_data",
        "task_data",
        "response",
        "simple_type",
        "classified_by",
    }
)


def new_capture_id() -> str:
    return f"cap_{uuid.uuid4().hex}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def summarize_prefix(content: str) -> str:
    """Return the content-prefix summary: 197 chars plus an ellipsis past 200 chars."""
    text = (content or "").strip()
    if not text:
        return EMPTY_SUMMARY
    if len(text) > SUMMARY_LIMIT:
        return text[: SUMMARY_LIMIT - 3] + "..."
    return text


def normalize_tags(tags: list[str]) -> list[str]:
    """Lower-case, strip '#', drop blanks and duplicates, keep the first five."""
    seen: list[str] = []
    for tag in tags:
        if not isinstance(tag, str):
            continue
        cleaned = tag.strip().lstrip("#").strip().lower()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen[:MAX_TAGS]


def coerce_iso_date(value: object) -> str | None:
    """Return value as YYYY-MM-DD if it is (or starts with) a valid ISO date, else None."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not _ISO_DATE_PREFIX.match(value):
        return None
    try:
        return date.fromisoformat(value[:10]).isoformat()
    except ValueError:
        return None


class Capture(BaseModel):
    """A captured piece of text plus its classified, structured metadata."""

    id: str = Field(default_factory=new_capture_id)
    raw_content: str
    content_type: ContentType = ContentType.TEXT

    category: Category = Category.NOTES
    context: CaptureContext = CaptureContext.PERSONAL
    summary: str = ""
    tags: list[str] = []
    entities: list[Entity] = []

    due_date: str | None = None
    reminder_date: str | None = None
    time_context: str | None = None
    mentions: list[str] = []
    needs_action: bool = False
    suggested_action: str | None = None

    lead_data: LeadData | None = None
    show_data: ShowData | None = None
    task_data: TaskData | None = None

    action_taken: ActionTaken | None = None
    response: str | None = None  # Conversational acknowledgment
    simple_type: SimpleType | None = None
    classified_by: Classifier = Classifier.FALLBACK
    source: str | None = None  # Original URL for url captures

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("tags", mode="after")
    @classmethod
    def _normalize_tags(cls, value: list[str]) -> list[str]:
        return normalize_tags(value)

    @field_validator("due_date", "reminder_date", mode="before")
    @classmethod
    def _iso_dates(cls, value: object) -> str | None:
        return coerce_iso_date(value)

    @model_validator(mode="after")
    def _ensure_summary(self) -> "Capture":
        if not self.summary.strip():
            self.summary = summarize_prefix(self.raw_content)
        return self
