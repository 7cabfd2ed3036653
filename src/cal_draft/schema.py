"""Draft validation, sanitising, merging and finalising.

- :func:`sanitize_draft` drops invalid fields instead of rejecting a draft.
- :func:`merge_parsed_fields` lays an LLM patch over a rule-based draft
  with explicit per-field precedence.
- :func:`validate_event_input` lists problems that block saving an event.
- :func:`finalize_draft` fills display defaults before a draft is saved.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from cal_draft.models import DraftEvent, ParsedEventPatch, Recurrence
from cal_draft.sanitizer import sanitize_ai_output
from cal_draft.temporal import parse_iso

EVENT_CATEGORIES: tuple[str, ...] = (
    "work",
    "personal",
    "fun",
    "hobby",
    "task",
    "todo",
    "event",
    "appointment",
    "health",
    "social",
    "travel",
    "other",
)

CATEGORY_COLORS: dict[str, str] = {
    "work": "#3b82f6",
    "personal": "#10b981",
    "fun": "#ec4899",
    "hobby": "#8b5cf6",
    "task": "#f59e0b",
    "todo": "#22c55e",
    "event": "#ef4444",
    "appointment": "#06b6d4",
}
DEFAULT_COLOR = "#6b7280"
DEFAULT_CATEGORY = "personal"
DEFAULT_TITLE = "New Event"

MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 2000
MAX_YEARS_PAST = 1
MAX_YEARS_FUTURE = 10


def get_event_color(category: str | None) -> str:
    """Return the display colour for *category*."""
    return CATEGORY_COLORS.get(category or "", DEFAULT_COLOR)


# ---------------------------------------------------------------------------
# Sanitize
# ---------------------------------------------------------------------------


def sanitize_draft(draft: DraftEvent) -> DraftEvent:
    """Drop an unknown category, unparsable start/end and an orphaned end.

    Idempotent: sanitising a sanitised draft returns an equal draft.
    """
    updates: dict[str, Any] = {}

    if draft.category and draft.category not in EVENT_CATEGORIES:
        updates["category"] = None

    start = draft.start
    if start and parse_iso(start) is None:
        updates["start"] = None
        start = None

    if draft.end and (parse_iso(draft.end) is None or not start):
        updates["end"] = None

    if not updates:
        return draft
    return draft.model_copy(update=updates)


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------


def _clean_text(value: str | None) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = sanitize_ai_output(value)
    return cleaned or None


def merge_parsed_fields(draft: DraftEvent, patch: ParsedEventPatch) -> DraftEvent:
    """Overlay an LLM *patch* on *draft*, field by field.

    - ``title``, ``location``, ``description``: the patch wins when its
      value is non-empty after output sanitising.
    - ``start``, ``end``: the patch wins when its value parses as ISO 8601.
    - ``category``: the patch wins when it is a known category.
    - ``recurring``: the patch wins when present.

    Args:
        draft: The running draft (rule-based, or already merged).
        patch: A parsed LLM result.

    Returns:
        A new :class:`DraftEvent`.
    """
    updates: dict[str, Any] = {}

    for field in ("title", "location", "description"):
        value = _clean_text(getattr(patch, field))
        if value is not None:
            updates[field] = value

    for field in ("start", "end"):
        value = getattr(patch, field)
        if value and parse_iso(value) is not None:
            updates[field] = value

    category = (patch.category or "").strip().lower()
    if category in EVENT_CATEGORIES:
        updates["category"] = category

    if patch.recurring is not None:
        updates["recurring"] = patch.recurring

    if not updates:
        return draft
    return draft.model_copy(update=updates)


# ---------------------------------------------------------------------------
# Validate
# ---------------------------------------------------------------------------


def _shift_years(value: datetime, years: int) -> datetime:
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        # 29 February in a non-leap target year.
        return value.replace(year=value.year + years, day=28)


def _align(reference: datetime, value: datetime) -> datetime:
    """Give *value* the same awareness as *reference* so they compare."""
    if reference.tzinfo is None and value.tzinfo is not None:
        return value.replace(tzinfo=None)
    if reference.tzinfo is not None and value.tzinfo is None:
        return value.replace(tzinfo=reference.tzinfo)
    return value


def validate_event_input(event: DraftEvent, now: datetime | None = None) -> list[str]:
    """Return the problems that would block saving *event*.

    Args:
        event: A draft, typically after :func:`finalize_draft`.
        now: Reference instant for the allowed date window.  Defaults to
            the current time.

    Returns:
        Human-readable error messages; empty when the event is valid.
    """
    errors: list[str] = []

    title = event.title or ""
    if not title.strip():
        errors.append("Event title is required")
    if len(title) > MAX_TITLE_LENGTH:
        errors.append(f"Event title must be less than {MAX_TITLE_LENGTH} characters")

    if event.description and len(event.description) > MAX_DESCRIPTION_LENGTH:
        errors.append(
            f"Event description must be less than {MAX_DESCRIPTION_LENGTH} characters"
        )

    start = parse_iso(event.start)
    end = parse_iso(event.end)
    if start is None:
        errors.append("Start date is invalid")
    if end is None:
        errors.append("End date is invalid")

    if event.category and event.category not in EVENT_CATEGORIES:
        errors.append("Event category is invalid")

    if start is not None and end is not None:
        if start >= _align(start, end):
            errors.append("End time must be after start time")

        reference = _align(start, now or datetime.now(start.tzinfo))
        if start < _shift_years(reference, -MAX_YEARS_PAST):
            errors.append(f"Events cannot be more than {MAX_YEARS_PAST} year in the past")
        if start > _shift_years(reference, MAX_YEARS_FUTURE):
            errors.append(
                f"Events cannot be more than {MAX_YEARS_FUTURE} years in the future"
            )

    return errors


# ---------------------------------------------------------------------------
# Finalize
# ---------------------------------------------------------------------------


def finalize_draft(draft: DraftEvent) -> DraftEvent:
    """Fill the defaults a saved event needs.

    Title falls back to ``"New Event"``, category to ``"personal"``,
    description and location to ``""``, recurrence to ``type="none"``, and
    the colour follows the category.
    """
    category = draft.category or DEFAULT_CATEGORY
    return draft.model_copy(
        update={
            "title": (draft.title or "").strip() or DEFAULT_TITLE,
            "description": draft.description or "",
            "location": draft.location or "",
            "category": category,
            "recurring": draft.recurring or Recurrence(),
            "color": draft.color or get_event_color(category),
        }
    )
