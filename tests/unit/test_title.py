"""Tests for title inference."""

from __future__ import annotations

import pytest

from cal_draft.title import infer_title


class TestInferTitle:
    """Tests for infer_title."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Team sync tomorrow at 3pm", "Team sync"),
            ("Lunch with Sara at noon", "Lunch with Sara"),
            ("Dinner with Sara on 5/12 at 7pm", "Dinner with Sara"),
            ("Schedule dentist appointment on Friday", "Dentist appointment"),
            ("remind me to call mom", "Call mom"),
            ("every monday standup at 9am", "Standup"),
            ("Daily standup at 9am", "Standup"),
            ("Yoga, every Friday!", "Yoga"),
            ("Review 3pm-4:30pm", "Review"),
        ],
    )
    def test_titles(self, text: str, expected: str) -> None:
        assert infer_title(text) == expected

    def test_first_letter_is_capitalised(self) -> None:
        assert infer_title("lunch sometime") == "Lunch sometime"

    def test_leading_verb_only_stripped_at_start(self) -> None:
        assert infer_title("Please book a room") == "Please book a room"

    def test_noise_words_removed(self) -> None:
        assert infer_title("recurring event called Planning") == "Planning"

    @pytest.mark.parametrize("text", ["at 3pm", "x at 5", "", "   "])
    def test_too_short_returns_empty(self, text: str) -> None:
        assert infer_title(text) == ""

    def test_temporal_keyword_truncates_title(self) -> None:
        """Everything from the first temporal keyword onwards is dropped."""
        assert infer_title("Planning for next quarter") == "Planning for"
