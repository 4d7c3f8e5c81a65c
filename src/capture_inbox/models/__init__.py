"""Data models and enums for the capture pipeline."""

from capture_inbox.models.capture import (
    AI_DERIVED_FIELDS,
    ActionTaken,
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
    SimpleType,
    TaskData,
    TaskPriority,
    summarize_prefix,
)
from capture_inbox.models.context import ClassificationContext

__all__ = [
    "AI_DERIVED_FIELDS",
    "ActionTaken",
    "Capture",
    "CaptureContext",
    "Category",
    "ClassificationContext",
    "Classifier",
    "ContentType",
    "Entity",
    "EntityType",
    "LeadData",
    "ShowData",
    "ShowStatus",
    "SimpleType",
    "TaskData",
    "TaskPriority",
    "summarize_prefix",
]
