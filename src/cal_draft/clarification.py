"""Clarification dialog for incomplete drafts.

A draft that is missing fields, or scored below the confidence threshold,
enters a small state machine: the engine always asks about the first
missing field in the fixed order ``title, start, end, location``, applies
the user's free-text answer to the draft, and repeats until nothing is
missing.  :class:`ClarificationState` holds one step of that dialog.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any

from cal_draft.models import CLARIFICATION_FIELDS, ClarificationField, DraftEvent
from cal_draft.temporal import (
    DEFAULT_DURATION_MINUTES,
    apply_time,
    extract_location,
    extract_time,
    extract_time_range,
    find_explicit_date,
    has_explicit_time,
    has_meeting_hint,
    parse_iso,
    start_of_day,
)

logger = logging.getLogger(__name__)

GENERIC_PROMPT = "Could you share more details?"


# ---------------------------------------------------------------------------
# Field listing and prompts
# ---------------------------------------------------------------------------


def list_clarification_fields(draft: DraftEvent, text: str) -> list[ClarificationField]:
    """Return the fields to ask about, in ``title, start, end, location`` order.

    - ``title`` when the draft has none.
    - ``start`` when the draft has none or *text* stated no explicit time.
    - ``end`` when the draft has none.
    - ``location`` when *text* mentions a meeting or contains a
      location-looking phrase and the draft has no location.
    """
    missing: list[ClarificationField] = []

    if not draft.title:
        missing.append("title")
    if not draft.start or not has_explicit_time(text):
        missing.append("start")
    if not draft.end:
        missing.append("end")
    if (has_meeting_hint(text) or extract_location(text)) and not draft.location:
        missing.append("location")

    return missing


def get_clarification_prompt(field: str, draft: DraftEvent | None = None) -> str:
    """Return the question to ask for *field*.

    Args:
        field: One of ``title``, ``start``, ``end``, ``location``.
        draft: The current draft; its title, when known, is quoted in the
            question.

    Returns:
        The prompt text, or a generic request for unknown fields.
    """
    suffix = f' for "{draft.title}"' if draft is not None and draft.title else ""

    if field == "title":
        return "What should I call this event?"
    if field == "start":
        return f"What time should it start{suffix}?"
    if field == "end":
        return f"What time should it end{suffix}?"
    if field == "location":
        return f"Clarify the location{suffix}."
    return GENERIC_PROMPT


# ---------------------------------------------------------------------------
# Answer application
# ---------------------------------------------------------------------------


def _anchor_date(answer: str, existing: datetime | None, now: datetime) -> datetime:
    """Pick the day a time answer lands on.

    Date words in the answer win; otherwise the existing start's day is
    kept; otherwise today.
    """
    resolved = find_explicit_date(answer, now)
    if resolved is None:
        return start_of_day(existing or now)
    if existing is not None and (existing.tzinfo is None) != (resolved.tzinfo is None):
        resolved = resolved.replace(tzinfo=existing.tzinfo)
    return resolved


def _roll_forward(start: datetime, end: datetime) -> datetime:
    if end <= start:
        return end + timedelta(days=1)
    return end


def _apply_start(
    draft: DraftEvent, answer: str, existing_start: datetime | None, now: datetime
) -> DraftEvent | None:
    anchor = _anchor_date(answer, existing_start, now)

    time_range = extract_time_range(answer)
    if time_range is not None:
        start = apply_time(anchor, time_range.start)
        end = _roll_forward(start, apply_time(anchor, time_range.end))
    else:
        parsed = extract_time(answer)
        if parsed is None:
            return None
        start = apply_time(anchor, parsed)
        duration = timedelta(minutes=DEFAULT_DURATION_MINUTES)
        existing_end = parse_iso(draft.end)
        if existing_start is not None and existing_end is not None:
            try:
                previous = existing_end - existing_start
            except TypeError:
                previous = duration
            if previous > timedelta(0):
                duration = previous
        end = start + duration

    return draft.model_copy(update={"start": start.isoformat(), "end": end.isoformat()})


def _apply_end(
    draft: DraftEvent, answer: str, existing_start: datetime | None, now: datetime
) -> DraftEvent | None:
    anchor = _anchor_date(answer, existing_start, now)

    time_range = extract_time_range(answer)
    parsed = time_range.end if time_range is not None else extract_time(answer)
    if parsed is None:
        return None

    end = apply_time(anchor, parsed)
    if existing_start is None:
        start = end - timedelta(minutes=DEFAULT_DURATION_MINUTES)
        return draft.model_copy(
            update={"start": start.isoformat(), "end": end.isoformat()}
        )

    end = _roll_forward(existing_start, end)
    return draft.model_copy(update={"end": end.isoformat()})


def apply_clarification_answer(
    draft: DraftEvent,
    field: str,
    answer: str,
    now: datetime | None = None,
) -> DraftEvent:
    """Apply a free-text *answer* for *field* to *draft*.

    ``title`` and ``location`` take the trimmed answer.  ``start`` and
    ``end`` re-run the time-range and single-time rules on the answer;
    date words in it are resolved against *now*, otherwise the current
    start's day is kept.  A new start keeps the previous duration (60
    minutes when there was none); a new end keeps the start, or sets the
    start 60 minutes earlier when there was none.  An end at or before
    the start rolls to the next day.

    Args:
        draft: The draft being clarified.
        field: The field the answer is for.
        answer: The user's reply.
        now: Reference instant for date words.  Defaults to the current
            time in the draft's timezone.

    Returns:
        The updated draft, or *draft* itself when the answer is empty or
        cannot be parsed as a time.
    """
    updated = _read_answer(draft, field, answer, now)
    return draft if updated is None else updated


def _read_answer(
    draft: DraftEvent, field: str, answer: str, now: datetime | None
) -> DraftEvent | None:
    """Apply *answer* to *draft*, or return ``None`` when it is unusable.

    An answer that repeats the current value still counts as usable.
    """
    if field in ("title", "location"):
        value = (answer or "").strip()
        if not value:
            return None
        return draft.model_copy(update={field: value})

    if field not in ("start", "end"):
        return None

    existing_start = parse_iso(draft.start)
    if now is None:
        now = datetime.now(existing_start.tzinfo if existing_start else None)

    if field == "start":
        updated = _apply_start(draft, answer or "", existing_start, now)
    else:
        updated = _apply_end(draft, answer or "", existing_start, now)

    if updated is None:
        logger.debug("Could not read a time from %s answer %r", field, answer)
    return updated


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ClarificationState:
    """One step of a clarification dialog.

    The state is ``COMPLETE`` when :attr:`missing_fields` is empty and
    ``AWAITING(field)`` otherwise, where ``field`` is the first missing
    field.  Cancelling is simply dropping the state.

    Attributes:
        draft: The draft as clarified so far.
        missing_fields: Fields still to ask about, in canonical order.
        original_text: The request that produced the draft.
    """

    draft: DraftEvent
    missing_fields: tuple[ClarificationField, ...]
    original_text: str = ""

    @classmethod
    def from_result(cls, result: Any, original_text: str = "") -> ClarificationState:
        """Start a dialog from an :class:`~cal_draft.pipeline.EventDraftResult`."""
        return cls(
            draft=result.draft,
            missing_fields=_ordered(result.missing_fields),
            original_text=original_text,
        )

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields

    @property
    def current_field(self) -> ClarificationField | None:
        """The field being asked about, or ``None`` when complete."""
        return self.missing_fields[0] if self.missing_fields else None

    def prompt(self) -> str | None:
        """The question for :attr:`current_field`, or ``None`` when complete."""
        if self.current_field is None:
            return None
        return get_clarification_prompt(self.current_field, self.draft)

    def answer(self, text: str, now: datetime | None = None) -> ClarificationState:
        """Apply *text* as the answer for :attr:`current_field`.

        The field is resolved whenever the answer is usable, even if it
        repeats the current value; an unusable answer returns this same
        state so the caller asks again.
        A start answer also sets the end, so ``end`` is resolved with it,
        and an end answer that had to invent a start resolves ``start``.

        Returns:
            The next state.
        """
        field = self.current_field
        if field is None:
            return self

        updated = _read_answer(self.draft, field, text, now)
        if updated is None:
            return self

        resolved: set[str] = {field}
        if field == "start":
            resolved.add("end")
        if field == "end" and not self.draft.start and updated.start:
            resolved.add("start")

        remaining = tuple(f for f in self.missing_fields if f not in resolved)
        logger.debug("Resolved %s; still missing %s", sorted(resolved), list(remaining))
        return replace(self, draft=updated, missing_fields=remaining)


def _ordered(fields: Any) -> tuple[ClarificationField, ...]:
    wanted = set(fields)
    return tuple(f for f in CLARIFICATION_FIELDS if f in wanted)
