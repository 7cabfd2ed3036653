"""Rule-based draft builder.

Composes the temporal extractor and the title inferrer into a single
:class:`~cal_draft.models.DraftEvent`.  This is the fallback every
pipeline run starts from; it is synchronous, performs no I/O and never
raises on user text.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from cal_draft.models import DraftEvent
from cal_draft.temporal import (
    DEFAULT_DURATION_MINUTES,
    apply_time,
    extract_duration_minutes,
    extract_explicit_date,
    extract_location,
    extract_recurrence,
    extract_time,
    extract_time_range,
    weekday_index,
)
from cal_draft.title import infer_title

logger = logging.getLogger(__name__)


def build_draft(text: str, now: datetime | None = None) -> DraftEvent:
    """Build a candidate draft from free text.

    A time range sets both start and end (an end at or before the start
    rolls to the next day).  A single time sets the start, with the end
    one parsed duration (default 60 minutes) later.  Without any time,
    neither is set.  A recurrence on a specific weekday moves the start
    forward to that weekday, keeping the duration.

    Args:
        text: The raw user request.
        now: Reference instant for relative dates.  Defaults to the
            current local time.

    Returns:
        A new :class:`DraftEvent`; missing information is left as ``None``.
    """
    now = now or datetime.now()
    base_date = extract_explicit_date(text, now)

    start: datetime | None = None
    end: datetime | None = None

    time_range = extract_time_range(text)
    if time_range is not None:
        start = apply_time(base_date, time_range.start)
        end = apply_time(base_date, time_range.end)
        if end <= start:
            end += timedelta(days=1)
    else:
        parsed = extract_time(text)
        if parsed is not None:
            start = apply_time(base_date, parsed)
            duration = extract_duration_minutes(text) or DEFAULT_DURATION_MINUTES
            end = start + timedelta(minutes=duration)

    recurrence = extract_recurrence(text)
    if recurrence is not None and recurrence.days_of_week and start is not None:
        delta = (recurrence.days_of_week[0] - weekday_index(start)) % 7
        if delta:
            start += timedelta(days=delta)
            end = end + timedelta(days=delta) if end is not None else None

    draft = DraftEvent(
        title=infer_title(text) or None,
        start=start.isoformat() if start else None,
        end=end.isoformat() if end else None,
        location=extract_location(text),
        recurring=recurrence,
    )
    logger.debug("Rule-based draft for %r: %s", text, draft.to_payload())
    return draft
