"""Tests for draft confidence scoring."""

from __future__ import annotations

from datetime import datetime

import pytest

from cal_draft.drafting import build_draft
from cal_draft.models import DraftEvent
from cal_draft.scoring import CONFIDENCE_THRESHOLD, score_draft_confidence

_NOW = datetime(2026, 3, 2, 10, 0, 0)


class TestScoreDraftConfidence:
    """Tests for score_draft_confidence."""

    def test_complete_request_scores_full(self) -> None:
        text = "Team sync tomorrow at 3pm"

        assert score_draft_confidence(build_draft(text, _NOW), text) == 1.0

    def test_vague_request_is_penalised(self) -> None:
        """Title only (0.2) minus the ambiguity penalty (0.1)."""
        text = "lunch sometime next week"

        score = score_draft_confidence(build_draft(text, _NOW), text)

        assert score == pytest.approx(0.1)
        assert score < CONFIDENCE_THRESHOLD

    def test_missing_date_scores_below_threshold(self) -> None:
        text = "Team sync at 3pm"

        score = score_draft_confidence(build_draft(text, _NOW), text)

        assert score == pytest.approx(0.7)

    def test_location_counts_without_hint(self) -> None:
        draft = DraftEvent(title="Lunch", location="Cafe Rio")

        assert score_draft_confidence(draft, "Lunch") == pytest.approx(0.3)

    def test_empty_draft_never_goes_negative(self) -> None:
        assert score_draft_confidence(DraftEvent(), "sometime later") == 0.0

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "Team sync tomorrow at 3pm at HQ",
            "lunch sometime next week",
            "Standup every monday at 9am in Room 4 soon later",
            "3-4pm",
            "meeting",
        ],
    )
    def test_score_is_within_bounds(self, text: str) -> None:
        draft = build_draft(text, _NOW)
        rich = draft.model_copy(update={"location": "HQ", "title": "T"})

        for candidate in (draft, rich, DraftEvent()):
            assert 0.0 <= score_draft_confidence(candidate, text) <= 1.0
