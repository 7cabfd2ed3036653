"""Local event parser backed by an Ollama model.

Talks to the Ollama HTTP API (``/api/tags`` to check the model is
available, ``/api/generate`` to parse).  The blocking HTTP call runs in a
worker thread so the event loop stays free.  In pipeline events and
results this source is labelled ``"webllm"``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import urllib.error
import urllib.request
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from cal_draft.exceptions import SourceParseError, SourceUnavailableError
from cal_draft.llm import normalize_parsed_event, parse_event_response, require_usable_patch
from cal_draft.models import ParsedEventPatch
from cal_draft.prompts import build_event_prompt

logger = logging.getLogger(__name__)

SOURCE_NAME = "webllm"
DEFAULT_HOST = "http://localhost:11434"
DEFAULT_MODEL = "qwen2.5:0.5b"


class OllamaEventParser:
    """Event parser running against a local Ollama server.

    Args:
        host: Base URL of the Ollama server.
        model: Model tag to generate with.
        prefer_local: Whether the user prefers this parser over the cloud.
        timeout: Per-request HTTP timeout in seconds.
        timezone: IANA timezone of the user's wall-clock times.
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        model: str = DEFAULT_MODEL,
        prefer_local: bool = False,
        timeout: float = 30.0,
        timezone: str = "America/Vancouver",
    ) -> None:
        self._host = host.rstrip("/")
        self._model = model
        self._prefer_local = prefer_local
        self._timeout = timeout
        self._timezone = timezone
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def model(self) -> str:
        return self._model

    def get_prefer_local(self) -> bool:
        return self._prefer_local

    def set_prefer_local(self, value: bool) -> None:
        self._prefer_local = bool(value)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load(self) -> bool:
        """Check that the server is reachable and has the model pulled.

        Returns:
            Whether the parser is now loaded.
        """
        try:
            data = self._request_json("/api/tags")
        except (urllib.error.URLError, OSError, ValueError) as exc:
            logger.warning("Ollama server at %s unavailable: %s", self._host, exc)
            self._loaded = False
            return False

        names = {entry.get("name", "") for entry in data.get("models", [])}
        wanted = {self._model, f"{self._model}:latest"}
        self._loaded = bool(names & wanted)
        if self._loaded:
            logger.info("Local model %s loaded from %s", self._model, self._host)
        else:
            logger.warning(
                "Model %s not found on %s (available: %s)",
                self._model,
                self._host,
                ", ".join(sorted(names)) or "none",
            )
        return self._loaded

    def unload(self) -> None:
        self._loaded = False

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    async def parse_event(
        self,
        text: str,
        hints: dict[str, Any] | None = None,
        now: datetime | None = None,
    ) -> ParsedEventPatch:
        """Parse *text* into an event patch with the local model.

        Args:
            text: The user's request.
            hints: Rule-based fields passed to the model as guidance.
            now: Reference time for relative dates.

        Returns:
            A normalised :class:`ParsedEventPatch` with a title and start.

        Raises:
            SourceUnavailableError: If :meth:`load` has not succeeded.
            SourceParseError: On HTTP failures, a refusal or missing fields.
            MalformedResponseError: If the output holds no valid JSON object.
        """
        if not self._loaded:
            raise SourceUnavailableError("Local model not loaded", source=SOURCE_NAME)

        zone = ZoneInfo(self._timezone)
        prompt = build_event_prompt(
            text,
            current_datetime=now or datetime.now(zone),
            timezone=self._timezone,
            hints=hints,
        )

        try:
            raw = await asyncio.to_thread(self._generate, prompt)
        except (urllib.error.URLError, OSError, ValueError) as exc:
            logger.error("Ollama generate failed: %s", exc)
            raise SourceParseError(
                f"Local model request failed: {exc}", source=SOURCE_NAME
            ) from exc

        logger.debug("Raw Ollama response:\n%s", raw)
        patch = require_usable_patch(parse_event_response(raw), SOURCE_NAME)
        return normalize_parsed_event(patch, text, zone)

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def _generate(self, prompt: str) -> str:
        payload = {
            "model": self._model,
            "prompt": prompt,
            "stream": False,
            "format": "json",
            "options": {"temperature": 0.2},
        }
        data = self._request_json("/api/generate", payload)
        return (data.get("response") or "").strip()

    def _request_json(self, path: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        if payload is None:
            req = urllib.request.Request(url=f"{self._host}{path}", method="GET")
        else:
            req = urllib.request.Request(
                url=f"{self._host}{path}",
                data=json.dumps(payload).encode("utf-8"),
                headers={"Content-Type": "application/json"},
                method="POST",
            )

        with urllib.request.urlopen(req, timeout=self._timeout) as resp:  # noqa: S310
            return json.loads(resp.read().decode("utf-8"))
