"""LLM response schema for Gemini structured output.

The same models serve as the ``response_schema`` sent to Gemini and as the
validation boundary for what comes back. Every field is optional and runs
through a coalescing BeforeValidator: whatever shape the payload has, a
model_validate() on a dict never fails, it just falls back to defaults.
"""

from typing import Annotated, Any, Callable

from pydantic import BaseModel, BeforeValidator, Field

from capture_inbox.models.capture import (
    CaptureContext,
    Category,
    EntityType,
    ShowStatus,
    SimpleType,
    TaskPriority,
    coerce_iso_date,
)

# Keys the classification prompt always asks for; a payload missing any of
# them is still accepted but counts as "defaulted"
EXPECTED_KEYS = frozenset({"response", "summary", "type", "tags", "needs_action"})

_NULL_WORDS = {"null", "none", "n/a", "na", ""}


def _coalesce_str(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _coalesce_optional_str(value: Any) -> str | None:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if not isinstance(value, str) or value.strip().lower() in _NULL_WORDS:
        return None
    return value.strip()


def _coalesce_str_list(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _coalesce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def _coalesce_dict(value: Any) -> dict | BaseModel | None:
    return value if isinstance(value, (dict, BaseModel)) else None


def _enum_or(enum_cls: type, default: Any) -> Callable[[Any], Any]:
    """Build a validator mapping a raw value onto enum_cls, or default when unknown."""

    def coerce(value: Any) -> Any:
        if isinstance(value, enum_cls):
            return value
        if isinstance(value, str):
            try:
                return enum_cls(value.strip().lower())
            except ValueError:
                return default
        return default

    return coerce


def _coalesce_confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.8
    return min(max(float(value), 0.0), 1.0)


def _coalesce_entities(value: Any) -> list[dict]:
    if not isinstance(value, list):
        return []
    entities = []
    for item in value:
        if isinstance(item, BaseModel):
            item = item.model_dump()
        if not isinstance(item, dict):
            continue
        entity_type = _enum_or(EntityType, None)(item.get("type"))
        text = _coalesce_optional_str(item.get("value"))
        if entity_type is None or text is None:
            continue
        entities.append(
            {
                "type": entity_type,
                "value": text,
                "confidence": _coalesce_confidence(item.get("confidence")),
            }
        )
    return entities


LenientStr = Annotated[str, BeforeValidator(_coalesce_str)]
OptionalText = Annotated[str | None, BeforeValidator(_coalesce_optional_str)]
StrList = Annotated[list[str], BeforeValidator(_coalesce_str_list)]
LenientBool = Annotated[bool, BeforeValidator(_coalesce_bool)]
IsoDate = Annotated[str | None, BeforeValidator(coerce_iso_date)]


class LLMEntity(BaseModel):
    type: EntityType
    value: str
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)


class LLMLeadData(BaseModel):
    """Lead fields as the LLM returns them. Also the schema for lead parsing."""

    name: OptionalText = Field(default=None, description="Contact person name")
    company: OptionalText = Field(default=None, description="Company, venue or organization")
    email: OptionalText = Field(default=None, description="Email address")
    phone: OptionalText = Field(default=None, description="Phone number")
    website: OptionalText = Field(default=None, description="Website if mentioned")
    source: OptionalText = Field(default=None, description="How the lead came in")
    event_date: OptionalText = Field(default=None, description="Event date if mentioned")
    event_type: OptionalText = Field(default=None, description="Type of event")
    venue: OptionalText = Field(default=None, description="Venue or location")
    budget: OptionalText = Field(default=None, description="Budget in its original format")
    notes: OptionalText = Field(default=None, description="Other relevant notes")


class LLMShowData(BaseModel):
    client: OptionalText = None
    show_type: OptionalText = None
    date: OptionalText = None
    venue: OptionalText = None
    fee: OptionalText = None
    status: Annotated[ShowStatus, BeforeValidator(_enum_or(ShowStatus, ShowStatus.INQUIRY))] = (
        ShowStatus.INQUIRY
    )


class LLMTaskData(BaseModel):
    title: OptionalText = None
    due_date: IsoDate = None
    priority: Annotated[
        TaskPriority, BeforeValidator(_enum_or(TaskPriority, TaskPriority.MEDIUM))
    ] = TaskPriority.MEDIUM
    related_to: OptionalText = None


class LLMCaptureResponse(BaseModel):
    """Schema for Gemini structured output. Used as the response_schema parameter."""

    response: LenientStr = Field(
        default="",
        description='Short conversational acknowledgment, e.g. "Got it, I\'ll remind you Tuesday"',
    )
    summary: LenientStr = Field(default="", description="One or two sentence summary")
    type: Annotated[SimpleType | None, BeforeValidator(_enum_or(SimpleType, None))] = Field(
        default=None, description="Simple type used for filtering"
    )
    category: Annotated[Category | None, BeforeValidator(_enum_or(Category, None))] = Field(
        default=None, description="Best-fit category"
    )
    context: Annotated[
        CaptureContext | None, BeforeValidator(_enum_or(CaptureContext, None))
    ] = Field(default=None, description="business or personal")
    tags: StrList = Field(default_factory=list, description="2-5 short lowercase tags")
    entities: Annotated[list[LLMEntity], BeforeValidator(_coalesce_entities)] = Field(
        default_factory=list
    )
    due_date: IsoDate = Field(default=None, description="Deadline as YYYY-MM-DD, or null")
    reminder_date: IsoDate = Field(default=None, description="When to remind, YYYY-MM-DD, or null")
    time_context: OptionalText = Field(
        default=None, description='Human-readable time context, e.g. "by Tuesday"'
    )
    mentions: StrList = Field(
        default_factory=list, description="People, companies, projects or topics mentioned"
    )
    needs_action: LenientBool = Field(
        default=False, description="True if the user needs to DO something"
    )
    suggested_action: OptionalText = Field(
        default=None, description='Short imperative next step, e.g. "Call Sarah"'
    )
    lead_data: Annotated[LLMLeadData | None, BeforeValidator(_coalesce_dict)] = None
    show_data: Annotated[LLMShowData | None, BeforeValidator(_coalesce_dict)] = None
    task_data: Annotated[LLMTaskData | None, BeforeValidator(_coalesce_dict)] = None


class LLMSearchResult(BaseModel):
    """Semantic search answer: capture ids by relevance plus a short reason."""

    matching_ids: StrList = Field(
        default_factory=list,
        description="IDs of captures that match the search query, ordered by relevance",
    )
    explanation: OptionalText = Field(
        default=None, description="Brief explanation of why these captures match"
    )
