"""Injectable publish/subscribe channel for pipeline observability.

Each :class:`~cal_draft.pipeline.DraftPipeline` owns one
:class:`EventEmitter`; tests create their own and assert on what was
emitted.  Emission is fire-and-forget: a failing handler is logged and
never affects the pipeline.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)

EVENT_PROCESSED = "calai-event-processed"
GEMINI_ERROR = "calai-gemini-error"
WEBLLM_ERROR = "calai-webllm-error"
WEBLLM_BENCHMARK = "calai-webllm-benchmark"

EVENT_NAMES: tuple[str, ...] = (
    EVENT_PROCESSED,
    GEMINI_ERROR,
    WEBLLM_ERROR,
    WEBLLM_BENCHMARK,
)

Handler = Callable[[Any], None]


class EventEmitter:
    """Named-event pub/sub delivering a detail payload to every listener."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)
        self._lock = threading.Lock()

    def on(self, name: str, handler: Handler) -> Callable[[], None]:
        """Subscribe *handler* to *name*.

        Returns:
            A callable that removes the subscription; calling it twice is
            harmless.
        """
        with self._lock:
            self._handlers[name].append(handler)

        def unsubscribe() -> None:
            with self._lock:
                handlers = self._handlers.get(name, [])
                if handler in handlers:
                    handlers.remove(handler)

        return unsubscribe

    def emit(self, name: str, detail: Any = None) -> None:
        """Deliver *detail* to the listeners of *name*, in subscription order."""
        with self._lock:
            handlers = list(self._handlers.get(name, ()))

        for handler in handlers:
            try:
                handler(detail)
            except Exception:
                logger.exception("Listener for %s failed", name)

    def listener_count(self, name: str) -> int:
        with self._lock:
            return len(self._handlers.get(name, ()))
