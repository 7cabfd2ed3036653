"""Pydantic models for event drafts.

Defines the structured data types shared by the rule-based parser, the LLM
parsers and the clarification engine:

- :class:`Recurrence` -- repeat rule attached to a draft.
- :class:`DraftEvent` -- candidate event under construction (datetimes as
  ISO 8601 strings).
- :class:`ParsedEventPatch` -- the partial draft returned by an LLM source;
  also used as Gemini's ``response_schema``.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

RecurrenceType = Literal[
    "none", "daily", "weekly", "monthly", "yearly", "weekdays", "custom"
]

ClarificationField = Literal["title", "start", "end", "location"]

CLARIFICATION_FIELDS: tuple[ClarificationField, ...] = (
    "title",
    "start",
    "end",
    "location",
)

_KNOWN_RECURRENCE_TYPES: set[str] = {
    "none",
    "daily",
    "weekly",
    "monthly",
    "yearly",
    "weekdays",
    "custom",
}


# ---------------------------------------------------------------------------
# Recurrence
# ---------------------------------------------------------------------------


class Recurrence(BaseModel):
    """Repeat rule for a draft.

    Field names are snake_case in Python and camelCase on the wire
    (``daysOfWeek``, ``endType``, ``endDate``, ``endCount``); both spellings
    are accepted on input.

    Attributes:
        type: Repeat frequency.
        days_of_week: Weekday indexes with Sunday as ``0``.
        interval: Repeat every *n* periods.
        end_type: How the series ends (e.g. ``"date"`` or ``"count"``).
        end_date: ISO 8601 date the series ends on.
        end_count: Number of occurrences.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    type: RecurrenceType = "none"
    days_of_week: list[int] | None = Field(default=None, alias="daysOfWeek")
    interval: int | None = None
    end_type: str | None = Field(default=None, alias="endType")
    end_date: str | None = Field(default=None, alias="endDate")
    end_count: int | None = Field(default=None, alias="endCount")

    @model_validator(mode="before")
    @classmethod
    def _coerce_llm_shapes(cls, data: Any) -> Any:
        """Map loose LLM output onto the known recurrence types.

        ``"biweekly"`` becomes weekly with an interval of 2, ``count``
        becomes ``endCount`` and any other unknown type becomes ``custom``.
        """
        if not isinstance(data, dict):
            return data

        result = dict(data)
        raw_type = result.get("type")
        if isinstance(raw_type, str):
            lowered = raw_type.strip().lower()
            if lowered == "biweekly":
                result["type"] = "weekly"
                result.setdefault("interval", 2)
            elif lowered in _KNOWN_RECURRENCE_TYPES:
                result["type"] = lowered
            else:
                result["type"] = "custom"

        if "count" in result and "endCount" not in result and "end_count" not in result:
            result["endCount"] = result.pop("count")

        return result


# ---------------------------------------------------------------------------
# DraftEvent
# ---------------------------------------------------------------------------


class DraftEvent(BaseModel):
    """A candidate calendar event awaiting confirmation.

    Drafts are immutable; every pipeline stage returns a new copy via
    :meth:`pydantic.BaseModel.model_copy`.

    Attributes:
        title: Inferred or AI-provided title.
        start: ISO 8601 start datetime, absent until a time is resolved.
        end: ISO 8601 end datetime.  Never present without ``start``.
        location: Free-text location.
        recurring: Repeat rule, if the request described one.
        category: Event category (see :data:`cal_draft.schema.EVENT_CATEGORIES`).
        color: Display colour, set by the finalizer.
        description: Longer free-text description.
        reminder: Reminder setting, passed through untouched.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    title: str | None = None
    start: str | None = None
    end: str | None = None
    location: str | None = None
    recurring: Recurrence | None = None
    category: str | None = None
    color: str | None = None
    description: str | None = None
    reminder: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Return the draft as a camelCase dict without unset fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# ParsedEventPatch -- LLM output
# ---------------------------------------------------------------------------


class ParsedEventPatch(BaseModel):
    """Partial draft produced by an LLM source.

    Every field is optional; the reconciler merges whatever is present onto
    the rule-based draft.  ``error`` carries the model's own refusal
    (``{"error": "Insufficient information for calendar event"}``).
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str | None = None
    start: str | None = None
    end: str | None = None
    location: str | None = None
    description: str | None = None
    category: str | None = None
    recurring: Recurrence | None = None
    error: str | None = None
