"""Multi-source reconciler for natural-language event requests.

Wires all components together: the rule-based draft, the local model's
readiness benchmark, the cloud and local LLM parsers with a single
fallback between them, merging, sanitising, confidence scoring and
clarification.  The top-level entry point is :func:`process_event_input`,
which always returns an :class:`EventDraftResult`; parser failures are
recovered here and never reach the caller.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Literal, Protocol

from cal_draft.benchmark import BenchmarkEvaluator, BenchmarkResult
from cal_draft.clarification import list_clarification_fields
from cal_draft.drafting import build_draft
from cal_draft.events import (
    EVENT_PROCESSED,
    GEMINI_ERROR,
    WEBLLM_ERROR,
    EventEmitter,
)
from cal_draft.exceptions import SourceParseError, SourceTimeoutError
from cal_draft.models import ClarificationField, DraftEvent, ParsedEventPatch
from cal_draft.schema import merge_parsed_fields, sanitize_draft
from cal_draft.scoring import CONFIDENCE_THRESHOLD, score_draft_confidence
from cal_draft.temporal import has_explicit_date, has_explicit_time, has_meeting_hint

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0

SourceName = Literal["rule", "gemini", "webllm"]
DraftStatus = Literal["draft", "needs_clarification"]

_ERROR_EVENTS: dict[str, str] = {
    "gemini": GEMINI_ERROR,
    "webllm": WEBLLM_ERROR,
}


# ---------------------------------------------------------------------------
# Collaborator protocols
# ---------------------------------------------------------------------------


class CloudEventParser(Protocol):
    """What the reconciler needs from the cloud parser."""

    @property
    def is_initialized(self) -> bool: ...

    async def parse_event_from_text(
        self, text: str, hints: dict[str, Any] | None = None
    ) -> ParsedEventPatch: ...


class LocalEventParser(Protocol):
    """What the reconciler needs from the local parser."""

    @property
    def is_loaded(self) -> bool: ...

    def get_prefer_local(self) -> bool: ...

    async def parse_event(
        self, text: str, hints: dict[str, Any] | None = None
    ) -> ParsedEventPatch: ...


class Evaluator(Protocol):
    """What the reconciler needs from the readiness benchmark."""

    async def evaluate(
        self, parse_event: Callable[[str], Awaitable[Any]] | None
    ) -> BenchmarkResult: ...

    def get_cached(self) -> BenchmarkResult | None: ...


# ---------------------------------------------------------------------------
# Result dataclass
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EventDraftResult:
    """Outcome of one :func:`process_event_input` call.

    Attributes:
        status: ``"draft"`` when the draft can be confirmed as is,
            ``"needs_clarification"`` otherwise.
        draft: The sanitised, merged draft.
        missing_fields: Fields to ask about, in canonical order.
        confidence: Heuristic score in ``[0, 1]``.
        source: Which parser produced the merged fields (``"rule"`` when
            neither LLM succeeded).
        benchmark: The local model's readiness result, if one exists.
        errors: Messages of parser failures that were recovered.
    """

    status: DraftStatus
    draft: DraftEvent
    missing_fields: tuple[ClarificationField, ...] = ()
    confidence: float = 0.0
    source: SourceName = "rule"
    benchmark: BenchmarkResult | None = None
    errors: tuple[str, ...] = field(default_factory=tuple)

    @property
    def needs_clarification(self) -> bool:
        return self.status == "needs_clarification"


# ---------------------------------------------------------------------------
# Pipeline entry point
# ---------------------------------------------------------------------------


async def process_event_input(
    text: str,
    *,
    gemini_service: CloudEventParser | None = None,
    local_brain_service: LocalEventParser | None = None,
    evaluator: Evaluator | None = None,
    emitter: EventEmitter | None = None,
    now: datetime | None = None,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> EventDraftResult:
    """Turn a free-text request into a draft, using the best available parser.

    Executes these stages in order:

    1. **Rule draft** -- always built; it is the fallback.
    2. **Readiness** -- the cached benchmark, or one benchmark run when the
       local model is loaded and nothing is cached.
    3. **Sources** -- the cloud parser first unless the user prefers local;
       otherwise the local parser first when it is loaded and ready.  A
       failing source gets exactly one fallback to the other.  Every
       attempt is bounded by *timeout_seconds*.
    4. **Merge** -- parsed fields win over rule fields when valid.
    5. **Sanitise, score, clarify** -- low-confidence drafts with nothing
       missing are forced to ask about one field.
    6. **Emit** ``calai-event-processed``.

    Args:
        text: The user's request.
        gemini_service: Cloud parser, or ``None``.
        local_brain_service: Local parser, or ``None``.
        evaluator: Readiness benchmark.  A fresh
            :class:`~cal_draft.benchmark.BenchmarkEvaluator` is used when
            omitted.
        emitter: Receives lifecycle events.  A private emitter is used when
            omitted.
        now: Reference instant for relative dates.  Defaults to now.
        timeout_seconds: Time limit for each parser attempt.

    Returns:
        An :class:`EventDraftResult`.  Parser failures are recorded in
        ``errors`` and never raised.
    """
    emitter = emitter or EventEmitter()
    evaluator = evaluator or BenchmarkEvaluator(emitter=emitter)
    now = now or datetime.now()

    # ------------------------------------------------------------------
    # Stage 1: Rule-based draft
    # ------------------------------------------------------------------
    base_draft = build_draft(text, now)
    hints = base_draft.to_payload()

    # ------------------------------------------------------------------
    # Stage 2: Local model readiness
    # ------------------------------------------------------------------
    benchmark = await _resolve_benchmark(evaluator, local_brain_service)
    local_loaded = bool(local_brain_service is not None and local_brain_service.is_loaded)
    local_ready = local_loaded and benchmark is not None and benchmark.ready
    cloud_ready = bool(gemini_service is not None and gemini_service.is_initialized)
    prefer_local = bool(
        local_brain_service is not None and local_brain_service.get_prefer_local()
    )

    # ------------------------------------------------------------------
    # Stage 3: Source attempts with a single fallback
    # ------------------------------------------------------------------
    attempts: list[tuple[SourceName, Callable[..., Awaitable[Any]]]] = []
    if not prefer_local and cloud_ready:
        attempts.append(("gemini", gemini_service.parse_event_from_text))
        if local_ready:
            attempts.append(("webllm", local_brain_service.parse_event))
    elif local_ready:
        attempts.append(("webllm", local_brain_service.parse_event))
        if cloud_ready:
            attempts.append(("gemini", gemini_service.parse_event_from_text))
    elif cloud_ready:
        attempts.append(("gemini", gemini_service.parse_event_from_text))

    draft = base_draft
    source: SourceName = "rule"
    errors: list[str] = []

    for name, parse in attempts[:2]:
        try:
            draft = await _attempt(name, parse, text, hints, base_draft, timeout_seconds)
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            logger.warning("Source %s failed: %s", name, message)
            errors.append(f"{name}: {message}")
            emitter.emit(_ERROR_EVENTS[name], {"message": message})
            continue
        source = name
        break

    # ------------------------------------------------------------------
    # Stage 4: Sanitise, score and clarify
    # ------------------------------------------------------------------
    draft = sanitize_draft(draft)
    confidence = score_draft_confidence(draft, text)
    missing = list_clarification_fields(draft, text)

    if confidence < CONFIDENCE_THRESHOLD and not missing:
        missing.append(_forced_field(draft, text))

    status: DraftStatus = (
        "needs_clarification"
        if missing or confidence < CONFIDENCE_THRESHOLD
        else "draft"
    )

    result = EventDraftResult(
        status=status,
        draft=draft,
        missing_fields=tuple(missing),
        confidence=confidence,
        source=source,
        benchmark=benchmark,
        errors=tuple(errors),
    )

    logger.info(
        "Processed %r: source=%s confidence=%.2f status=%s missing=%s",
        text,
        source,
        confidence,
        status,
        missing,
    )
    emitter.emit(
        EVENT_PROCESSED,
        {
            "input": text,
            "source": source,
            "confidence": confidence,
            "missingFields": list(missing),
            "benchmark": benchmark.to_payload() if benchmark is not None else None,
        },
    )
    return result


# ---------------------------------------------------------------------------
# Stage helpers
# ---------------------------------------------------------------------------


async def _resolve_benchmark(
    evaluator: Evaluator,
    local_brain_service: LocalEventParser | None,
) -> BenchmarkResult | None:
    """Return the cached benchmark, running it once if the local model is loaded."""
    cached = evaluator.get_cached()
    if cached is not None:
        return cached
    if local_brain_service is None or not local_brain_service.is_loaded:
        return None

    logger.info("Benchmarking local model before first use")
    try:
        return await evaluator.evaluate(local_brain_service.parse_event)
    except Exception:
        logger.exception("Benchmark run failed; treating local model as not ready")
        return None


async def _attempt(
    name: SourceName,
    parse: Callable[..., Awaitable[Any]],
    text: str,
    hints: dict[str, Any],
    draft: DraftEvent,
    timeout_seconds: float,
) -> DraftEvent:
    """Run one source and merge its result onto *draft*.

    Raises:
        SourceTimeoutError: If the source exceeds *timeout_seconds*.
        Exception: Whatever the source or the merge raised.
    """
    try:
        parsed = await asyncio.wait_for(parse(text, hints), timeout=timeout_seconds)
    except asyncio.TimeoutError as exc:
        raise SourceTimeoutError(
            f"{name} timed out after {timeout_seconds:g}s", source=name
        ) from exc

    if parsed is None:
        raise SourceParseError(f"{name} returned no event", source=name)
    if not isinstance(parsed, ParsedEventPatch):
        parsed = ParsedEventPatch.model_validate(parsed)

    merged = merge_parsed_fields(draft, parsed)
    logger.debug("Merged %s result: %s", name, merged.to_payload())
    return merged


def _forced_field(draft: DraftEvent, text: str) -> ClarificationField:
    """Pick one field to ask about when confidence is low but nothing is missing."""
    if not has_explicit_time(text) or not draft.start:
        return "start"
    if not has_explicit_date(text):
        return "start"
    if not draft.title:
        return "title"
    if has_meeting_hint(text) and not draft.location:
        return "location"
    return "title"


# ---------------------------------------------------------------------------
# Composed pipeline
# ---------------------------------------------------------------------------


class DraftPipeline:
    """A reconciler bound to its parsers, emitter and benchmark cache.

    The benchmark result is cached on the evaluator owned here, so the
    local model is benchmarked at most once per pipeline.

    Args:
        gemini_service: Cloud parser, or ``None``.
        local_brain_service: Local parser, or ``None``.
        evaluator: Readiness benchmark.  One sharing *emitter* is created
            when omitted.
        emitter: Receives lifecycle events.  Created when omitted.
        timeout_seconds: Time limit for each parser attempt.
    """

    def __init__(
        self,
        gemini_service: CloudEventParser | None = None,
        local_brain_service: LocalEventParser | None = None,
        evaluator: Evaluator | None = None,
        emitter: EventEmitter | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.emitter = emitter or EventEmitter()
        self.evaluator = evaluator or BenchmarkEvaluator(emitter=self.emitter)
        self.gemini_service = gemini_service
        self.local_brain_service = local_brain_service
        self.timeout_seconds = timeout_seconds

    async def process(self, text: str, now: datetime | None = None) -> EventDraftResult:
        """Run :func:`process_event_input` with this pipeline's collaborators."""
        return await process_event_input(
            text,
            gemini_service=self.gemini_service,
            local_brain_service=self.local_brain_service,
            evaluator=self.evaluator,
            emitter=self.emitter,
            now=now,
            timeout_seconds=self.timeout_seconds,
        )
