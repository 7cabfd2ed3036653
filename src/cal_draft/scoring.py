"""Heuristic confidence score for a draft."""

from __future__ import annotations

from cal_draft.models import DraftEvent
from cal_draft.temporal import (
    has_ambiguity_hint,
    has_explicit_date,
    has_explicit_time,
    has_location_hint,
)

CONFIDENCE_THRESHOLD = 0.8

TITLE_WEIGHT = 0.2
DATE_WEIGHT = 0.3
TIME_WEIGHT = 0.3
END_WEIGHT = 0.1
LOCATION_WEIGHT = 0.1
AMBIGUITY_PENALTY = 0.1


def score_draft_confidence(draft: DraftEvent, text: str) -> float:
    """Score how complete and certain *draft* is, in ``[0, 1]``.

    Title, explicit date, explicit time, a derived end and a present or
    hinted location each add their weight; vague wording such as
    ``"sometime"`` or ``"next week"`` subtracts a penalty.

    Args:
        draft: The draft to score.
        text: The original user request.

    Returns:
        The clamped score.
    """
    score = 0.0
    if draft.title:
        score += TITLE_WEIGHT
    if has_explicit_date(text):
        score += DATE_WEIGHT
    if has_explicit_time(text):
        score += TIME_WEIGHT
    if draft.end:
        score += END_WEIGHT
    if draft.location or has_location_hint(text):
        score += LOCATION_WEIGHT

    if has_ambiguity_hint(text):
        score -= AMBIGUITY_PENALTY

    return round(max(0.0, min(1.0, score)), 4)
