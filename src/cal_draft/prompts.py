"""Prompt builder for LLM event parsing.

Both the Gemini parser and the local Ollama parser send the same
instructions: parse one request into a single JSON event, resolving
relative dates against the supplied current time and timezone.  The
rule-based draft can be passed along as hints.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from cal_draft.schema import EVENT_CATEGORIES

INSUFFICIENT_INFORMATION = "Insufficient information for calendar event"


def build_event_prompt(
    text: str,
    current_datetime: datetime,
    timezone: str,
    hints: dict[str, Any] | None = None,
) -> str:
    """Build the prompt asking an LLM to parse *text* into one event.

    Args:
        text: The user's request.
        current_datetime: "Now", used to resolve relative references such
            as "tomorrow" or "next Friday".
        timezone: IANA timezone the user's wall-clock times are in.
        hints: Fields already extracted by the rule-based parser, shown to
            the model as guidance.  Omitted when empty.

    Returns:
        The complete prompt string.
    """
    categories = ", ".join(EVENT_CATEGORIES)
    prompt = f"""\
You parse natural-language requests into a single calendar event.
The text might be a casual request, a pasted email, or a message.

Text: "{text}"

Current date and time: {current_datetime.isoformat()} ({current_datetime:%A})
User timezone: {timezone}

## Fields

- title: the event name only, never the command. If the text says
  "called X", "named X" or "titled X", the title is exactly "X".
  Drop time words ("today", "tomorrow", "at", "hour"), command words
  ("create", "add", "schedule", "book", "set", "please") and filler
  ("an event", "a meeting").
- description: extra details or context, if any.
- start, end: ISO 8601 datetimes with the user's UTC offset. Times the
  user gives ("8am") are wall-clock times in {timezone}. Honour an
  explicit range ("11:30 to 4pm") exactly. Without an end, assume one
  hour. A date without a time starts at 12:00.
- location: the full address or a specific place name, if given.
- category: one of {categories}.
- recurring: {{"type": "none"}} unless the event repeats. Types are
  "none", "daily", "weekly", "monthly", "yearly", "weekdays" or
  "custom"; "daysOfWeek" uses 0=Sunday through 6=Saturday; "every 2
  weeks" is {{"type": "weekly", "interval": 2}}. For "every Monday",
  start on the next Monday on or after the mentioned date.

## Output

Respond with one JSON object and nothing else, for example:
{{"title": "Team sync", "start": "2026-03-03T15:00:00-08:00", \
"end": "2026-03-03T16:00:00-08:00", "location": "Room 4", \
"category": "work", "recurring": {{"type": "none"}}}}

If the text holds several events, parse only the first.
If the text does not describe a calendar event, respond with:
{{"error": "{INSUFFICIENT_INFORMATION}"}}
"""

    if hints:
        prompt += (
            "\n## Hints from the rule-based parser\n\n"
            + json.dumps(hints, indent=2, default=str)
            + "\n"
        )

    return prompt
