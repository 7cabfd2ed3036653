"""Console formatter for drafting results.

Renders an :class:`~cal_draft.pipeline.EventDraftResult` as structured
console output: the request, the draft, how it was assessed, and the
local model's readiness.

The primary entry point is :func:`format_draft_result`, which returns the
formatted string.  :func:`print_draft_result` is a convenience wrapper
that writes directly to stdout.
"""

from __future__ import annotations

import sys

from cal_draft.clarification import get_clarification_prompt
from cal_draft.models import DraftEvent, Recurrence
from cal_draft.pipeline import EventDraftResult
from cal_draft.temporal import parse_iso

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_BANNER_WIDTH = 60
_SEPARATOR = "=" * _BANNER_WIDTH

_DAY_ABBREVIATIONS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

_RECURRENCE_LABELS = {
    "daily": "Daily",
    "weekly": "Weekly",
    "monthly": "Monthly",
    "yearly": "Yearly",
    "weekdays": "Weekdays",
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def format_draft_result(result: EventDraftResult, text: str = "") -> str:
    """Render an :class:`EventDraftResult` for the console.

    Sections:

    - **Request** -- the request text, when given.
    - **Draft** -- title, time, location, recurrence and category.
    - **Assessment** -- source, confidence, status, the next question and
      any recovered parser errors.
    - **Local model** -- the readiness benchmark, when one ran.

    Args:
        result: The pipeline result to format.
        text: The request that produced *result*.

    Returns:
        A multi-line string ready for console display.
    """
    lines: list[str] = []

    lines.append(_SEPARATOR)
    lines.append("  EVENT DRAFT")
    lines.append(_SEPARATOR)

    if text:
        lines.append("")
        lines.append("--- REQUEST ---")
        lines.append(f"  {text}")

    lines.append("")
    lines.append("--- DRAFT ---")
    lines.extend(format_draft_lines(result.draft))

    _append_assessment(lines, result)
    _append_benchmark(lines, result)

    lines.append(_SEPARATOR)
    return "\n".join(lines)


def print_draft_result(result: EventDraftResult, text: str = "") -> None:
    """Format and print an :class:`EventDraftResult` to stdout."""
    sys.stdout.write(format_draft_result(result, text) + "\n")


def format_draft_lines(draft: DraftEvent) -> list[str]:
    """Return the indented detail lines for *draft*."""
    lines = [f"  Title: {draft.title or '(none)'}"]
    lines.append(f"  When: {format_event_time(draft.start, draft.end)}")
    if draft.location:
        lines.append(f"  Where: {draft.location}")
    lines.append(f"  Repeats: {format_recurrence_text(draft.recurring)}")
    if draft.category:
        lines.append(f"  Category: {draft.category}")
    return lines


def format_recurrence_text(recurrence: Recurrence | None) -> str:
    """Describe a recurrence as ``"Weekly (Mon, Wed)"``, ``"Daily"`` and so on."""
    if recurrence is None or recurrence.type == "none":
        return "No recurrence"

    label = _RECURRENCE_LABELS.get(recurrence.type, "Custom")
    if recurrence.interval and recurrence.interval > 1:
        label = f"{label}, every {recurrence.interval}"
    if recurrence.days_of_week:
        days = ", ".join(
            _DAY_ABBREVIATIONS[day] for day in recurrence.days_of_week if 0 <= day <= 6
        )
        if days:
            label = f"{label} ({days})"
    return label


def format_event_time(start: str | None, end: str | None) -> str:
    """Format start and end for display.

    Falls back to the raw strings if they do not parse, and to
    ``"(no time yet)"`` without a start.
    """
    if not start:
        return "(no time yet)"

    start_dt = parse_iso(start)
    if start_dt is None:
        return start
    start_str = start_dt.strftime("%A %Y-%m-%d, %I:%M %p")

    if not end:
        return start_str

    end_dt = parse_iso(end)
    if end_dt is None:
        return f"{start_str} - {end}"
    if end_dt.date() == start_dt.date():
        return f"{start_str} - {end_dt.strftime('%I:%M %p')}"
    return f"{start_str} - {end_dt.strftime('%A %Y-%m-%d, %I:%M %p')}"


# ---------------------------------------------------------------------------
# Internal formatters
# ---------------------------------------------------------------------------


def _append_assessment(lines: list[str], result: EventDraftResult) -> None:
    lines.append("")
    lines.append("--- ASSESSMENT ---")
    lines.append(f"  Source: {result.source}")
    lines.append(f"  Confidence: {result.confidence:.2f}")
    lines.append(f"  Status: {result.status}")

    if result.missing_fields:
        lines.append(f"  Missing: {', '.join(result.missing_fields)}")
        question = get_clarification_prompt(result.missing_fields[0], result.draft)
        lines.append(f"  Next question: {question}")

    for error in result.errors:
        lines.append(f"  Recovered error: {error}")


def _append_benchmark(lines: list[str], result: EventDraftResult) -> None:
    benchmark = result.benchmark
    if benchmark is None:
        return
    lines.append("")
    lines.append("--- LOCAL MODEL ---")
    lines.append(
        f"  Ready: {'yes' if benchmark.ready else 'no'}  "
        f"Accuracy: {benchmark.accuracy:.0%}"
    )
