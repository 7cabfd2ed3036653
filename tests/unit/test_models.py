"""Tests for draft data models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from cal_draft.models import DraftEvent, ParsedEventPatch, Recurrence


class TestRecurrence:
    """Tests for the Recurrence model."""

    def test_defaults_to_none(self) -> None:
        assert Recurrence().type == "none"

    def test_camel_case_aliases_are_accepted(self) -> None:
        recurrence = Recurrence.model_validate(
            {"type": "weekly", "daysOfWeek": [1, 3], "endType": "count", "endCount": 5}
        )

        assert recurrence.days_of_week == [1, 3]
        assert recurrence.end_type == "count"
        assert recurrence.end_count == 5

    def test_snake_case_names_are_accepted(self) -> None:
        recurrence = Recurrence(type="weekly", days_of_week=[2])

        assert recurrence.days_of_week == [2]

    def test_biweekly_becomes_weekly_every_two(self) -> None:
        recurrence = Recurrence.model_validate({"type": "biweekly"})

        assert recurrence.type == "weekly"
        assert recurrence.interval == 2

    def test_biweekly_keeps_explicit_interval(self) -> None:
        assert Recurrence.model_validate({"type": "biweekly", "interval": 3}).interval == 3

    def test_type_is_case_insensitive(self) -> None:
        assert Recurrence.model_validate({"type": " Monthly "}).type == "monthly"

    def test_unknown_type_becomes_custom(self) -> None:
        assert Recurrence.model_validate({"type": "fortnightly"}).type == "custom"

    def test_count_becomes_end_count(self) -> None:
        assert Recurrence.model_validate({"type": "daily", "count": 4}).end_count == 4

    def test_is_frozen(self) -> None:
        with pytest.raises(ValidationError):
            Recurrence().type = "daily"  # type: ignore[misc]


class TestDraftEvent:
    """Tests for the DraftEvent model."""

    def test_all_fields_optional(self) -> None:
        draft = DraftEvent()

        assert draft.title is None
        assert draft.start is None
        assert draft.recurring is None

    def test_payload_is_camel_case_without_unset_fields(self) -> None:
        draft = DraftEvent(
            title="Standup",
            start="2026-03-09T09:00:00",
            recurring=Recurrence(type="weekly", days_of_week=[1]),
        )

        assert draft.to_payload() == {
            "title": "Standup",
            "start": "2026-03-09T09:00:00",
            "recurring": {"type": "weekly", "daysOfWeek": [1]},
        }

    def test_unknown_keys_are_ignored(self) -> None:
        draft = DraftEvent.model_validate({"title": "x", "attendees": ["Bob"]})

        assert draft == DraftEvent(title="x")

    def test_is_frozen(self) -> None:
        with pytest.raises(ValidationError):
            DraftEvent().title = "x"  # type: ignore[misc]

    def test_equality(self) -> None:
        assert DraftEvent(title="x") == DraftEvent(title="x")
        assert DraftEvent(title="x") != DraftEvent(title="y")


class TestParsedEventPatch:
    """Tests for the LLM patch model."""

    def test_refusal_payload(self) -> None:
        patch = ParsedEventPatch.model_validate(
            {"error": "Insufficient information for calendar event"}
        )

        assert patch.error == "Insufficient information for calendar event"
        assert patch.title is None

    def test_nested_recurrence_is_coerced(self) -> None:
        patch = ParsedEventPatch.model_validate(
            {"title": "Review", "recurring": {"type": "biweekly", "daysOfWeek": [5]}}
        )

        assert patch.recurring == Recurrence(type="weekly", interval=2, days_of_week=[5])

    def test_invalid_recurrence_shape_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ParsedEventPatch.model_validate({"recurring": "sometimes"})
