"""cal-draft: natural-language event drafting.

Turns free-text requests such as "Team sync tomorrow at 3pm" into
structured calendar drafts, using rule-based extraction, optional cloud
(Gemini) and local (Ollama) LLM parsers, confidence scoring and a
clarification dialog.
"""

from __future__ import annotations

from cal_draft.clarification import (
    ClarificationState,
    apply_clarification_answer,
    get_clarification_prompt,
    list_clarification_fields,
)
from cal_draft.drafting import build_draft
from cal_draft.events import EventEmitter
from cal_draft.exceptions import (
    DraftError,
    MalformedResponseError,
    SourceParseError,
    SourceTimeoutError,
    SourceUnavailableError,
)
from cal_draft.models import DraftEvent, ParsedEventPatch, Recurrence
from cal_draft.pipeline import DraftPipeline, EventDraftResult, process_event_input
from cal_draft.sanitizer import sanitize_ai_output
from cal_draft.schema import (
    finalize_draft,
    merge_parsed_fields,
    sanitize_draft,
    validate_event_input,
)
from cal_draft.scoring import score_draft_confidence
from cal_draft.title import infer_title

__version__ = "0.1.0"

__all__ = [
    "ClarificationState",
    "DraftError",
    "DraftEvent",
    "DraftPipeline",
    "EventDraftResult",
    "EventEmitter",
    "MalformedResponseError",
    "ParsedEventPatch",
    "Recurrence",
    "SourceParseError",
    "SourceTimeoutError",
    "SourceUnavailableError",
    "apply_clarification_answer",
    "build_draft",
    "finalize_draft",
    "get_clarification_prompt",
    "infer_title",
    "list_clarification_fields",
    "merge_parsed_fields",
    "process_event_input",
    "sanitize_ai_output",
    "sanitize_draft",
    "score_draft_confidence",
    "validate_event_input",
]
