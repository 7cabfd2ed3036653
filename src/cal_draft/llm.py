"""Gemini LLM parser for single-event requests.

Wraps the Google ``google-genai`` SDK to turn a request such as
``"Team sync tomorrow at 3pm"`` into a :class:`ParsedEventPatch`.  Handles
prompt construction, the async API call, response parsing and validation,
a single retry on malformed responses, and correction of the model's
times against times the user stated explicitly.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timedelta, tzinfo
from typing import Any
from zoneinfo import ZoneInfo

from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types
from pydantic import ValidationError

from cal_draft.exceptions import (
    MalformedResponseError,
    SourceParseError,
    SourceUnavailableError,
)
from cal_draft.models import ParsedEventPatch
from cal_draft.prompts import build_event_prompt
from cal_draft.temporal import (
    DEFAULT_DURATION_MINUTES,
    apply_time,
    extract_explicit_time,
    extract_time_range,
    parse_iso,
)

logger = logging.getLogger(__name__)

SOURCE_NAME = "gemini"
DEFAULT_MODEL = "gemini-2.0-flash"
DEFAULT_TIMEZONE = "America/Vancouver"

_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.S)


# ---------------------------------------------------------------------------
# Response parsing (shared with the local parser)
# ---------------------------------------------------------------------------


def extract_json_object(raw: str) -> dict[str, Any]:
    """Extract the first JSON object from a raw model response.

    Tries the whole text first, then the outermost ``{...}`` region, so
    prose or code fences around the object are tolerated.

    Raises:
        MalformedResponseError: If no JSON object can be read.
    """
    text = (raw or "").strip()
    if not text:
        raise MalformedResponseError("Empty response from LLM", raw_response=raw or "")

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        match = _JSON_OBJECT_RE.search(text)
        if not match:
            raise MalformedResponseError(
                "Response did not contain a JSON object", raw_response=raw
            ) from None
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as exc:
            raise MalformedResponseError(
                f"Invalid JSON: {exc}", raw_response=raw
            ) from exc

    if not isinstance(data, dict):
        raise MalformedResponseError(
            "Extracted JSON was not an object", raw_response=raw
        )
    return data


def parse_event_response(raw: str) -> ParsedEventPatch:
    """Parse raw model output into a :class:`ParsedEventPatch`.

    Raises:
        MalformedResponseError: If the output is not a JSON object or does
            not conform to the patch schema.
    """
    data = extract_json_object(raw)
    try:
        return ParsedEventPatch.model_validate(data)
    except ValidationError as exc:
        raise MalformedResponseError(
            f"Schema validation failed: {exc}", raw_response=raw
        ) from exc


def require_usable_patch(patch: ParsedEventPatch, source: str) -> ParsedEventPatch:
    """Reject a refusal or a patch without a title and start.

    Raises:
        SourceParseError: With the model's own error message, or naming the
            missing fields.
    """
    if patch.error:
        raise SourceParseError(patch.error, source=source)
    missing = [name for name in ("title", "start") if not getattr(patch, name)]
    if missing:
        raise SourceParseError(
            f"Missing required event fields: {', '.join(missing)}", source=source
        )
    return patch


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------


def normalize_parsed_event(
    patch: ParsedEventPatch,
    text: str,
    tz: tzinfo | None = None,
) -> ParsedEventPatch:
    """Correct an LLM patch against times stated in *text*.

    Works in *tz* (the user's timezone) when the model returned aware
    datetimes.  In order:

    1. An explicit range in *text* (``"3-4pm"``) replaces start and end on
       the model's start date.
    2. An explicit single time (``"2pm"``, ``"14:30"``) replaces a
       different start time, keeping the duration.
    3. A missing, unparsable or non-positive end becomes start plus the
       duration.

    The duration is the model's ``end - start``, at least 60 minutes.

    Returns:
        A corrected copy, or *patch* unchanged when it has no usable start.
    """
    start = parse_iso(patch.start)
    if start is None:
        return patch
    if tz is not None and start.tzinfo is not None:
        start = start.astimezone(tz)

    end = parse_iso(patch.end)
    if end is not None and (end.tzinfo is None) != (start.tzinfo is None):
        end = None
    if end is not None and tz is not None and end.tzinfo is not None:
        end = end.astimezone(tz)

    minimum = timedelta(minutes=DEFAULT_DURATION_MINUTES)
    duration = max(end - start, minimum) if end is not None else minimum

    time_range = extract_time_range(text or "")
    if time_range is not None:
        new_start = apply_time(start, time_range.start)
        new_end = apply_time(start, time_range.end)
        if new_end <= new_start:
            new_end += timedelta(days=1)
        return patch.model_copy(
            update={"start": new_start.isoformat(), "end": new_end.isoformat()}
        )

    explicit = extract_explicit_time(text or "")
    if explicit is not None and (start.hour, start.minute) != (
        explicit.hours,
        explicit.minutes,
    ):
        new_start = apply_time(start, explicit)
        logger.debug(
            "Correcting model start %s to stated time %s", start.isoformat(), new_start
        )
        return patch.model_copy(
            update={
                "start": new_start.isoformat(),
                "end": (new_start + duration).isoformat(),
            }
        )

    if end is None or end <= start:
        return patch.model_copy(
            update={"start": start.isoformat(), "end": (start + duration).isoformat()}
        )

    return patch.model_copy(update={"start": start.isoformat(), "end": end.isoformat()})


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class GeminiEventParser:
    """Cloud event parser backed by Google Gemini.

    Wraps ``google.genai.Client`` to call Gemini with structured JSON output
    and Pydantic-based parsing/validation.

    Args:
        api_key: Google Gemini API key.  When empty the parser is not
            initialised and every parse raises
            :class:`~cal_draft.exceptions.SourceUnavailableError`.
        model: Model identifier.  Defaults to ``"gemini-2.0-flash"``.
        timezone: IANA timezone of the user's wall-clock times.
    """

    def __init__(
        self,
        api_key: str | None,
        model: str = DEFAULT_MODEL,
        timezone: str = DEFAULT_TIMEZONE,
    ) -> None:
        self._client = genai.Client(api_key=api_key) if api_key else None
        self._model = model
        self._timezone = timezone

    @property
    def is_initialized(self) -> bool:
        return self._client is not None

    @property
    def model(self) -> str:
        return self._model

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def parse_event_from_text(
        self,
        text: str,
        hints: dict[str, Any] | None = None,
        now: datetime | None = None,
    ) -> ParsedEventPatch:
        """Parse *text* into an event patch.

        On a malformed response the call is retried **once**.

        Args:
            text: The user's request.
            hints: Rule-based fields passed to the model as guidance.
            now: Reference time for relative dates.  Defaults to the
                current time in the configured timezone.

        Returns:
            A normalised :class:`ParsedEventPatch` with a title and start.

        Raises:
            SourceUnavailableError: If no API key was configured.
            SourceParseError: On API failures, a refusal, or missing fields.
            MalformedResponseError: If both attempts returned unparsable
                output.
        """
        if self._client is None:
            raise SourceUnavailableError("Gemini API key not configured", source=SOURCE_NAME)

        zone = ZoneInfo(self._timezone)
        prompt = build_event_prompt(
            text,
            current_datetime=now or datetime.now(zone),
            timezone=self._timezone,
            hints=hints,
        )
        logger.debug("Prompt sent to Gemini:\n%s", prompt)

        config = genai_types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=ParsedEventPatch,
            temperature=0.2,
        )

        last_error: MalformedResponseError | None = None
        for attempt in range(1, 3):
            raw_text = await self._call_api(prompt, config)
            logger.debug("Raw Gemini response (attempt %d):\n%s", attempt, raw_text)

            try:
                patch = parse_event_response(raw_text)
            except MalformedResponseError as exc:
                last_error = exc
                if attempt == 1:
                    logger.warning(
                        "Malformed Gemini response on attempt %d, retrying: %s",
                        attempt,
                        exc,
                    )
                continue

            require_usable_patch(patch, SOURCE_NAME)
            normalized = normalize_parsed_event(patch, text, zone)
            logger.info("Gemini parsed %r as %r", text, normalized.title)
            return normalized

        logger.error(
            "Gemini response malformed after 2 attempts. Raw response: %s | Error: %s",
            last_error.raw_response if last_error else "<unknown>",
            last_error,
        )
        raise last_error or MalformedResponseError("Gemini returned no response")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _call_api(
        self,
        prompt: str,
        config: genai_types.GenerateContentConfig,
    ) -> str:
        """Call the Gemini API and return the raw response text.

        Raises:
            SourceParseError: On API-level failures (network, auth, quota).
        """
        try:
            response = await self._client.aio.models.generate_content(
                model=self._model,
                contents=prompt,
                config=config,
            )
        except genai_errors.APIError as exc:
            logger.error("Gemini API error: %s", exc)
            raise SourceParseError(
                f"Gemini API call failed: {exc}", source=SOURCE_NAME
            ) from exc

        return response.text or ""
