"""Rule-based temporal extraction for free-text event requests.

Finds an explicit date, a time or time range, a duration, a recurrence
pattern and a location inside text such as ``"Team sync tomorrow at 3pm"``.
Every rule is an ordered regular expression; the first match wins.  The
rules are heuristics and keep their known blind spots (a bare number is
read as an hour, ``"in the morning"`` reads as a location).

All functions are pure and never raise on user text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta

from cal_draft.models.draft import Recurrence

DEFAULT_DURATION_MINUTES = 60

_WEEKDAY_NAMES = "monday|tuesday|wednesday|thursday|friday|saturday|sunday"

_DAY_INDEX: dict[str, int] = {
    "sunday": 0,
    "monday": 1,
    "tuesday": 2,
    "wednesday": 3,
    "thursday": 4,
    "friday": 5,
    "saturday": 6,
}

_MONTH_INDEX: dict[str, int] = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

# ---------------------------------------------------------------------------
# Date patterns (checked in this order)
# ---------------------------------------------------------------------------

_TODAY_RE = re.compile(r"\btoday\b", re.I)
_TOMORROW_RE = re.compile(r"\btomorrow\b", re.I)
_NEXT_WEEKDAY_RE = re.compile(rf"\bnext\s+({_WEEKDAY_NAMES})\b", re.I)
# M/D[/Y] or M-D[-Y]; not part of a longer date and not a time range ("3-4 pm").
_NUMERIC_DATE_RE = re.compile(
    r"(?<![\d/-])\b(\d{1,2})[/-](\d{1,2})(?:[/-](\d{2,4}))?\b(?![/-]\d)(?!\s*(?:am|pm)\b)",
    re.I,
)
_ISO_DATE_RE = re.compile(r"\b(20\d{2})-(\d{1,2})-(\d{1,2})\b")
_MONTH_NAME_DATE_RE = re.compile(
    r"\b(jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|"
    r"aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)"
    r"\.?\s+(\d{1,2})(?:st|nd|rd|th)?\b(?:,?\s+(\d{4})\b)?",
    re.I,
)
_WEEKDAY_RE = re.compile(rf"\b({_WEEKDAY_NAMES})\b", re.I)

# ---------------------------------------------------------------------------
# Time patterns
# ---------------------------------------------------------------------------

# "3-4pm", "3:00-4:30pm", "3 to 4pm", "9-10"
_TIME_RANGE_RE = re.compile(
    r"\b(\d{1,2})(?::(\d{2}))?\s*(am|pm)?\s*(?:-|to)\s*"
    r"(\d{1,2})(?::(\d{2}))?\s*(am|pm)?\b",
    re.I,
)
_MERIDIEM_TIME_RE = re.compile(r"\b(\d{1,2})(?::(\d{2}))?\s*(am|pm)\b", re.I)
_CLOCK_TIME_RE = re.compile(r"\b(\d{1,2}):(\d{2})\b")
_NAMED_TIME_RE = re.compile(r"\b(noon|midnight)\b", re.I)
# Bare hour: not part of a date ("5/12") and not a duration ("2 hours").
_BARE_TIME_RE = re.compile(
    r"(?<![/-])\b(\d{1,2})(?::(\d{2}))?\b"
    r"(?![/-]\d)(?!\s*(?:h|hrs?|hours?|min|mins|minutes?)\b)",
    re.I,
)
# Single-time token used when stripping times out of a title.
TIME_TOKEN_RE = re.compile(r"\b\d{1,2}(?::\d{2})?\s*(?:am|pm)?\b", re.I)
TIME_RANGE_RE = _TIME_RANGE_RE

# ---------------------------------------------------------------------------
# Duration, recurrence and location
# ---------------------------------------------------------------------------

_DURATION_HOURS_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:hours?|hrs?)\b", re.I)
_DURATION_MINUTES_RE = re.compile(r"(\d+)\s*(?:minutes?|mins?)\b", re.I)

_RECURRENCE_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\bevery\s+day\b|\bdaily\b", re.I), "daily"),
    (re.compile(r"\bevery\s+weekdays?\b", re.I), "weekdays"),
    (re.compile(rf"\bevery\s+({_WEEKDAY_NAMES})\b", re.I), "weekly_on"),
    (re.compile(r"\bweekly\b|\b(?:once|1)\s+a\s+week\b|\bevery\s+week\b", re.I), "weekly"),
    (re.compile(r"\bmonthly\b|\bevery\s+month\b", re.I), "monthly"),
    (re.compile(r"\byearly\b|\bannually\b|\bevery\s+year\b", re.I), "yearly"),
]

RECURRENCE_PHRASE_RE = re.compile(
    "|".join(pattern.pattern for pattern, _kind in _RECURRENCE_RULES), re.I
)

_LOCATION_RE = re.compile(
    r"(?:(?<=\s)|^)(?:at|in|@)\s+([^,]+?)"
    r"(?=\s+(?:on|tomorrow|today|next|this|at|from|between|until|for|with)\b|\s*,|\s*$)",
    re.I,
)
_TIME_LIKE_RE = re.compile(
    r"^(?:\d{1,2}(?::\d{2})?\s*(?:am|pm)?|noon|midnight)$", re.I
)
_DURATION_LIKE_RE = re.compile(
    r"^\d+(?:\.\d+)?\s*(?:hours?|hrs?|minutes?|mins?)$", re.I
)

# ---------------------------------------------------------------------------
# Hint vocabularies
# ---------------------------------------------------------------------------

LOCATION_HINTS: tuple[str, ...] = ("at", "in", "@")
# No "sync": "Team sync tomorrow at 3pm" must not ask for a location.
MEETING_HINTS: tuple[str, ...] = ("meeting", "meet", "call", "standup")
AMBIGUITY_HINTS: tuple[str, ...] = (
    "sometime",
    "later",
    "soon",
    "this week",
    "next week",
    "sometime next",
)


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParsedTime:
    """A wall-clock time of day in 24-hour form."""

    hours: int
    minutes: int


@dataclass(frozen=True)
class TimeRange:
    """Start and end wall-clock times parsed from one phrase."""

    start: ParsedTime
    end: ParsedTime


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------


def day_name_to_index(day_name: str) -> int:
    """Map a weekday name to its index (Sunday = 0); unknown names map to 0."""
    return _DAY_INDEX.get(day_name.lower(), 0)


def weekday_index(value: datetime) -> int:
    """Return the Sunday-based weekday index of *value*."""
    return (value.weekday() + 1) % 7


def start_of_day(value: datetime) -> datetime:
    """Return midnight of *value*'s day, keeping its ``tzinfo``."""
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def next_weekday(value: datetime, day_index: int) -> datetime:
    """Return the next date strictly after *value* that falls on *day_index*."""
    delta = (day_index - weekday_index(value)) % 7 or 7
    return value + timedelta(days=delta)


def parse_iso(value: str | None) -> datetime | None:
    """Parse an ISO 8601 string, accepting a trailing ``Z``.

    Returns:
        The parsed datetime, or ``None`` if *value* is empty or invalid.
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def apply_time(base_date: datetime, parsed: ParsedTime) -> datetime:
    """Set *parsed*'s hours and minutes on the start of *base_date*."""
    return start_of_day(base_date).replace(hour=parsed.hours, minute=parsed.minutes)


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def _build_date(today: datetime, year: int, month: int, day: int) -> datetime | None:
    try:
        return today.replace(year=year, month=month, day=day)
    except ValueError:
        return None


def find_explicit_date(text: str, now: datetime) -> datetime | None:
    """Resolve the first explicit date phrase in *text*.

    Order: ``today``/``tomorrow``, ``next <weekday>``, numeric ``M/D[/Y]``,
    ISO ``YYYY-M-D``, month name (``March 5``), bare weekday.  Weekday
    phrases resolve to the next occurrence strictly after today.

    Args:
        text: Free text to search.
        now: Reference instant.

    Returns:
        Midnight of the resolved day, or ``None`` if no rule matched.
    """
    today = start_of_day(now)

    if _TODAY_RE.search(text):
        return today
    if _TOMORROW_RE.search(text):
        return today + timedelta(days=1)

    match = _NEXT_WEEKDAY_RE.search(text)
    if match:
        return next_weekday(today, day_name_to_index(match.group(1)))

    for match in _NUMERIC_DATE_RE.finditer(text):
        month, day = int(match.group(1)), int(match.group(2))
        year = today.year
        if match.group(3):
            year = int(match.group(3))
            if len(match.group(3)) == 2:
                year += 2000
        resolved = _build_date(today, year, month, day)
        if resolved is not None:
            return resolved

    for match in _ISO_DATE_RE.finditer(text):
        resolved = _build_date(
            today, int(match.group(1)), int(match.group(2)), int(match.group(3))
        )
        if resolved is not None:
            return resolved

    for match in _MONTH_NAME_DATE_RE.finditer(text):
        month = _MONTH_INDEX[match.group(1)[:3].lower()]
        year = int(match.group(3)) if match.group(3) else today.year
        resolved = _build_date(today, year, month, int(match.group(2)))
        if resolved is not None:
            return resolved

    match = _WEEKDAY_RE.search(text)
    if match:
        return next_weekday(today, day_name_to_index(match.group(1)))

    return None


def extract_explicit_date(text: str, now: datetime) -> datetime:
    """Return the explicit date in *text*, falling back to today."""
    return find_explicit_date(text, now) or start_of_day(now)


def has_explicit_date(text: str) -> bool:
    """Whether *text* contains any recognised date phrase."""
    return any(
        pattern.search(text)
        for pattern in (
            _TODAY_RE,
            _TOMORROW_RE,
            _NEXT_WEEKDAY_RE,
            _NUMERIC_DATE_RE,
            _ISO_DATE_RE,
            _MONTH_NAME_DATE_RE,
            _WEEKDAY_RE,
        )
    )


# ---------------------------------------------------------------------------
# Times
# ---------------------------------------------------------------------------


def to_24_hour(hour: int | str, meridiem: str | None) -> int:
    """Convert a 12-hour clock hour to 24-hour form.

    ``pm`` adds 12 unless the hour is 12; ``12am`` becomes 0.  Without a
    meridiem the hour is returned unchanged, so a bare ``12`` stays 12.
    """
    value = int(hour)
    if not meridiem:
        return value
    lowered = meridiem.lower()
    if lowered == "pm" and value < 12:
        value += 12
    if lowered == "am" and value == 12:
        value = 0
    return value


def format_12_hour(hours: int, minutes: int = 0) -> str:
    """Format a 24-hour time as ``"3:00pm"``."""
    meridiem = "pm" if hours >= 12 else "am"
    display = hours % 12 or 12
    return f"{display}:{minutes:02d}{meridiem}"


def _make_time(hour: str, minutes: str | None, meridiem: str | None) -> ParsedTime | None:
    hours = to_24_hour(hour, meridiem)
    mins = int(minutes) if minutes else 0
    if hours > 23 or mins > 59:
        return None
    return ParsedTime(hours=hours, minutes=mins)


def extract_time_range(text: str) -> TimeRange | None:
    """Find the first time range such as ``3-4pm`` or ``3 to 4:30pm``.

    The end token inherits the start token's meridiem when it has none.
    Two bare numbers joined by a dash (``9-10``) also count, so the
    ``04-15`` of an ISO date can be read as a range.
    """
    for match in _TIME_RANGE_RE.finditer(text):
        start_h, start_m, start_mer, end_h, end_m, end_mer = match.groups()
        start = _make_time(start_h, start_m, start_mer)
        end = _make_time(end_h, end_m, end_mer or start_mer)
        if start is not None and end is not None:
            return TimeRange(start=start, end=end)
    return None


def extract_time(text: str) -> ParsedTime | None:
    """Find a single time of day in *text*.

    Tokens carrying a meridiem (``2pm``) win over clock times (``14:30``),
    which win over ``noon``/``midnight``, which win over a bare hour.
    """
    for match in _MERIDIEM_TIME_RE.finditer(text):
        parsed = _make_time(match.group(1), match.group(2), match.group(3))
        if parsed is not None:
            return parsed

    for match in _CLOCK_TIME_RE.finditer(text):
        parsed = _make_time(match.group(1), match.group(2), None)
        if parsed is not None:
            return parsed

    match = _NAMED_TIME_RE.search(text)
    if match:
        hours = 12 if match.group(1).lower() == "noon" else 0
        return ParsedTime(hours=hours, minutes=0)

    for match in _BARE_TIME_RE.finditer(text):
        parsed = _make_time(match.group(1), match.group(2), None)
        if parsed is not None:
            return parsed

    return None


def extract_explicit_time(text: str) -> ParsedTime | None:
    """Find a time stated unambiguously: with a meridiem or as ``HH:MM``.

    Used to check LLM output against the user's own words, so bare
    numbers and ``noon``/``midnight`` are not considered.
    """
    for pattern in (_MERIDIEM_TIME_RE, _CLOCK_TIME_RE):
        for match in pattern.finditer(text):
            meridiem = match.group(3) if pattern is _MERIDIEM_TIME_RE else None
            parsed = _make_time(match.group(1), match.group(2), meridiem)
            if parsed is not None:
                return parsed
    return None


def has_explicit_time(text: str) -> bool:
    """Whether *text* contains a time range or a single time."""
    return extract_time_range(text) is not None or extract_time(text) is not None


def extract_duration_minutes(text: str) -> int | None:
    """Parse ``"1.5 hours"`` or ``"30 minutes"`` into minutes.

    Hours are checked first; ``"1 hour 30 minutes"`` yields 60.
    """
    match = _DURATION_HOURS_RE.search(text)
    if match:
        return round(float(match.group(1)) * 60)

    match = _DURATION_MINUTES_RE.search(text)
    if match:
        return int(match.group(1))

    return None


# ---------------------------------------------------------------------------
# Recurrence and location
# ---------------------------------------------------------------------------


def extract_recurrence(text: str) -> Recurrence | None:
    """Return the first recurrence pattern described in *text*."""
    for pattern, kind in _RECURRENCE_RULES:
        match = pattern.search(text)
        if not match:
            continue
        if kind == "weekly_on":
            return Recurrence(
                type="weekly", days_of_week=[day_name_to_index(match.group(1))]
            )
        return Recurrence(type=kind)
    return None


def extract_location(text: str) -> str | None:
    """Return the text following ``at``/``in``/``@``, if it is not a time.

    The run stops at a comma, the end of the text or a temporal keyword
    (``on``, ``tomorrow``, ``at``, ``for``, ``with`` ...).  Candidates that
    look like a time (``at 3pm``) or a duration are skipped.
    """
    for match in _LOCATION_RE.finditer(text):
        candidate = match.group(1).strip()
        if not candidate:
            continue
        if _TIME_LIKE_RE.match(candidate) or _DURATION_LIKE_RE.match(candidate):
            continue
        return candidate
    return None


# ---------------------------------------------------------------------------
# Hint predicates
# ---------------------------------------------------------------------------


def has_location_hint(text: str) -> bool:
    """Whether *text* contains `` at ``, `` in `` or `` @ ``."""
    lowered = text.lower()
    return any(f" {hint} " in lowered for hint in LOCATION_HINTS)


def has_meeting_hint(text: str) -> bool:
    """Whether *text* contains a :data:`MEETING_HINTS` word, as a substring."""
    lowered = text.lower()
    return any(hint in lowered for hint in MEETING_HINTS)


def has_ambiguity_hint(text: str) -> bool:
    """Whether *text* contains a vague-time phrase such as ``sometime``."""
    lowered = text.lower()
    return any(hint in lowered for hint in AMBIGUITY_HINTS)
