"""Accuracy checks for one benchmark sample.

A parsed sample is accurate when all three checks hold:

- :func:`title_matches` -- expected title is a case-insensitive substring.
- :func:`time_matches` -- whether the start carries a time of day.
- :func:`date_matches` -- whether a start was returned at all.
"""

from __future__ import annotations

from datetime import timezone
from typing import Any

from cal_draft.temporal import parse_iso


def parsed_field(parsed: Any, name: str) -> Any:
    """Read *name* from a parse result that is a model, object or dict."""
    if parsed is None:
        return None
    if isinstance(parsed, dict):
        return parsed.get(name)
    return getattr(parsed, name, None)


def title_matches(actual: str | None, expected: str | None) -> bool:
    """Whether *expected* occurs in *actual*, ignoring case.

    No expectation always matches; a missing title never does.
    """
    if not expected:
        return True
    if not actual:
        return False
    return expected.lower() in actual.lower()


def time_matches(parsed: Any, expected: bool | None) -> bool:
    """Whether the presence of a time of day matches *expected*.

    The start has a time of day when it is not midnight in UTC.  Naive
    starts are read as they are.  A missing or unparsable start never
    matches.
    """
    if expected is None:
        return True
    start = parse_iso(parsed_field(parsed, "start"))
    if start is None:
        return False
    if start.tzinfo is not None:
        start = start.astimezone(timezone.utc)
    has_time = start.hour != 0 or start.minute != 0
    return has_time == expected


def date_matches(parsed: Any, expected: bool | None) -> bool:
    """Whether the presence of a start matches *expected*."""
    if expected is None:
        return True
    return bool(parsed_field(parsed, "start")) == expected
