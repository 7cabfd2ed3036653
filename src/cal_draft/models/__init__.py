"""Data models for cal-draft."""

from __future__ import annotations

from cal_draft.models.draft import (
    CLARIFICATION_FIELDS,
    ClarificationField,
    DraftEvent,
    ParsedEventPatch,
    Recurrence,
    RecurrenceType,
)

__all__ = [
    "CLARIFICATION_FIELDS",
    "ClarificationField",
    "DraftEvent",
    "ParsedEventPatch",
    "Recurrence",
    "RecurrenceType",
]
