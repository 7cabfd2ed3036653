"""Structured logging setup for cal-draft.

Provides a consistent log format across the application with ISO 8601
timestamps and pipe-separated fields, and a bridge that writes pipeline
events to the log.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Callable

from cal_draft.events import (
    EVENT_PROCESSED,
    GEMINI_ERROR,
    WEBLLM_BENCHMARK,
    WEBLLM_ERROR,
    EventEmitter,
)

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Sentinel to detect handlers added by setup_logging so repeated calls
# are idempotent without interfering with handlers added externally.
_HANDLER_ATTR = "_cal_draft_log_handler"

_EVENT_LOGGER_NAME = "cal_draft.events.log"


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger with a structured formatter.

    Sets the root logger level and attaches a :class:`logging.StreamHandler`
    that writes to *stderr* using the project log format.

    Calling this function multiple times is safe -- it will not add
    duplicate handlers.

    Args:
        level: A standard logging level name (e.g. ``"DEBUG"``,
            ``"INFO"``, ``"WARNING"``).

    Raises:
        ValueError: If *level* is not a recognised logging level string.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level!r}")

    root = logging.getLogger()
    root.setLevel(numeric_level)

    for handler in root.handlers:
        if getattr(handler, _HANDLER_ATTR, False):
            handler.setLevel(numeric_level)
            return

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)

    formatter = logging.Formatter(_LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S")
    handler.setFormatter(formatter)

    setattr(handler, _HANDLER_ATTR, True)
    root.addHandler(handler)


def attach_event_logging(emitter: EventEmitter) -> Callable[[], None]:
    """Log every pipeline event published on *emitter*.

    Parser errors are logged at WARNING, processed requests at INFO and
    benchmark results at DEBUG.

    Args:
        emitter: The pipeline's event emitter.

    Returns:
        A callable that removes all the subscriptions.
    """
    event_logger = logging.getLogger(_EVENT_LOGGER_NAME)

    def on_processed(detail: Any) -> None:
        detail = detail or {}
        event_logger.info(
            "%s source=%s confidence=%s missing=%s",
            EVENT_PROCESSED,
            detail.get("source"),
            detail.get("confidence"),
            detail.get("missingFields"),
        )

    def on_error(name: str) -> Callable[[Any], None]:
        def handler(detail: Any) -> None:
            message = (detail or {}).get("message", "")
            event_logger.warning("%s: %s", name, message)

        return handler

    def on_benchmark(detail: Any) -> None:
        detail = detail or {}
        event_logger.debug(
            "%s ready=%s latencyMs=%s accuracy=%s",
            WEBLLM_BENCHMARK,
            detail.get("ready"),
            detail.get("latencyMs"),
            detail.get("accuracy"),
        )

    unsubscribers = [
        emitter.on(EVENT_PROCESSED, on_processed),
        emitter.on(GEMINI_ERROR, on_error(GEMINI_ERROR)),
        emitter.on(WEBLLM_ERROR, on_error(WEBLLM_ERROR)),
        emitter.on(WEBLLM_BENCHMARK, on_benchmark),
    ]

    def detach() -> None:
        for unsubscribe in unsubscribers:
            unsubscribe()

    return detach
