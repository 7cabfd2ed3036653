"""Best-guess event title from free text.

The title is whatever is left after temporal phrases, recurrence phrases,
leading verbs and filler words are removed.  Everything from the first
temporal keyword onwards is dropped, so a title that itself contains a
word such as ``"next"`` is truncated there.
"""

from __future__ import annotations

import re

from cal_draft.temporal import RECURRENCE_PHRASE_RE, TIME_RANGE_RE, TIME_TOKEN_RE

_TEMPORAL_TAIL_RE = re.compile(
    r"\b(?:on|at|from|between|until|tomorrow|today|next|this|last)\b.*$",
    re.I | re.S,
)
_LEADING_VERB_RE = re.compile(
    r"^\s*(?:schedule|book|add|create|set up|remind me to)\b", re.I
)
_NOISE_WORDS_RE = re.compile(
    r"\b(?:recurring|repeating|event|called|named|titled)\b", re.I
)
_PUNCTUATION_RE = re.compile(r"[.,!?;:/\"]")
_WHITESPACE_RE = re.compile(r"\s+")

MIN_TITLE_LENGTH = 2


def infer_title(text: str) -> str:
    """Infer an event title from *text*.

    Args:
        text: The raw user request.

    Returns:
        The title with its first letter capitalised, or ``""`` when fewer
        than two characters survive (the caller treats that as missing).
    """
    cleaned = TIME_RANGE_RE.sub(" ", text)
    cleaned = TIME_TOKEN_RE.sub(" ", cleaned)
    cleaned = _TEMPORAL_TAIL_RE.sub("", cleaned)
    cleaned = RECURRENCE_PHRASE_RE.sub(" ", cleaned)
    cleaned = _LEADING_VERB_RE.sub("", cleaned)
    cleaned = _NOISE_WORDS_RE.sub(" ", cleaned)
    cleaned = _PUNCTUATION_RE.sub("", cleaned)
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip()

    if len(cleaned) < MIN_TITLE_LENGTH:
        return ""
    return cleaned[0].upper() + cleaned[1:]
