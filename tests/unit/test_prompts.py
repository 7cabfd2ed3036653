"""Unit tests for the event prompt builder."""

from __future__ import annotations

from datetime import datetime

from cal_draft.prompts import INSUFFICIENT_INFORMATION, build_event_prompt
from cal_draft.schema import EVENT_CATEGORIES

_NOW = datetime(2026, 3, 2, 10, 0, 0)


class TestBuildEventPrompt:
    """Tests for build_event_prompt."""

    def test_request_text_is_embedded(self) -> None:
        prompt = build_event_prompt("Team sync tomorrow at 3pm", _NOW, "America/Vancouver")

        assert 'Text: "Team sync tomorrow at 3pm"' in prompt

    def test_current_datetime_and_weekday(self) -> None:
        prompt = build_event_prompt("x", _NOW, "America/Vancouver")

        assert "Current date and time: 2026-03-02T10:00:00 (Monday)" in prompt

    def test_timezone_is_stated(self) -> None:
        prompt = build_event_prompt("x", _NOW, "Europe/Berlin")

        assert "User timezone: Europe/Berlin" in prompt
        assert "wall-clock times in Europe/Berlin" in prompt

    def test_all_categories_listed(self) -> None:
        prompt = build_event_prompt("x", _NOW, "UTC")

        for category in EVENT_CATEGORIES:
            assert category in prompt

    def test_refusal_instruction_present(self) -> None:
        prompt = build_event_prompt("x", _NOW, "UTC")

        assert f'{{"error": "{INSUFFICIENT_INFORMATION}"}}' in prompt

    def test_no_hints_section_without_hints(self) -> None:
        prompt = build_event_prompt("x", _NOW, "UTC", hints={})

        assert "Hints from the rule-based parser" not in prompt

    def test_hints_are_appended_as_json(self) -> None:
        prompt = build_event_prompt(
            "x", _NOW, "UTC", hints={"title": "Team sync", "start": "2026-03-03T15:00:00"}
        )

        assert "## Hints from the rule-based parser" in prompt
        assert '"title": "Team sync"' in prompt
        assert prompt.index("## Hints") > prompt.index("## Output")
