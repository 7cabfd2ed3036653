"""Custom exceptions for the cal-draft pipeline.

Parser sources (Gemini, the local Ollama model) raise these; the
reconciler in :mod:`cal_draft.pipeline` catches every :class:`DraftError`
at its boundary and degrades to the rule-based draft.
"""

from __future__ import annotations


class DraftError(Exception):
    """Base class for all cal-draft errors."""


class SourceParseError(DraftError):
    """Raised when a parser source cannot produce an event patch.

    Covers API failures, refusals (``{"error": ...}`` payloads) and
    responses missing the fields a usable draft needs.  The reconciler
    treats it as a source failure and tries the single fallback source.

    Attributes:
        source: Label of the failing source (``"gemini"`` or ``"webllm"``).
    """

    def __init__(self, message: str, source: str = "") -> None:
        super().__init__(message)
        self.source = source


class SourceUnavailableError(SourceParseError):
    """Raised when a source is not initialised, not loaded or unreachable."""


class SourceTimeoutError(SourceParseError):
    """Raised when a source attempt exceeds its time limit."""


class MalformedResponseError(DraftError):
    """Raised when an LLM response cannot be parsed or validated.

    This covers JSON parse failures and Pydantic schema validation errors.
    :class:`~cal_draft.llm.GeminiEventParser` catches it to retry once
    before giving up.

    Attributes:
        raw_response: The raw LLM output that failed to parse.
    """

    def __init__(self, message: str, raw_response: str = "") -> None:
        super().__init__(message)
        self.raw_response = raw_response
