"""Readiness benchmark for the local parser model.

Runs a fixed battery of requests through a parse function, timing each
call, and decides whether the model is fast and accurate enough to be
trusted as a parsing source.

Key objects:
    :class:`BenchmarkEvaluator` -- runs the samples and caches the result.
    :class:`ResultCache` -- the single result slot the evaluator writes.
"""

from __future__ import annotations

import inspect
import logging
import math
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from cal_draft.benchmark.scoring import (
    date_matches,
    parsed_field,
    time_matches,
    title_matches,
)
from cal_draft.events import WEBLLM_BENCHMARK, EventEmitter

logger = logging.getLogger(__name__)

READY_MAX_LATENCY_MS = 2000.0
READY_MIN_ACCURACY = 0.9

ParseFunction = Callable[[str], Awaitable[Any]]


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BenchmarkCase:
    """A benchmark input and what a correct parse must contain.

    Attributes:
        input: The request text.
        title: Expected title substring (case-insensitive).
        has_time: Whether the start should carry a time of day.
        has_date: Whether a start should be returned.
    """

    input: str
    title: str | None = None
    has_time: bool | None = None
    has_date: bool | None = None


@dataclass(frozen=True)
class BenchmarkSampleResult:
    """Outcome of one benchmark sample.

    Attributes:
        input: The request text.
        latency_ms: Wall-clock time of the parse call.
        accurate: Whether every expectation held.
        error: The exception message when the call failed.
    """

    input: str
    latency_ms: float
    accurate: bool
    error: str | None = None


@dataclass(frozen=True)
class BenchmarkResult:
    """Aggregate outcome of a benchmark run.

    Attributes:
        ready: ``latency_ms <= 2000`` and ``accuracy >= 0.9``.
        latency_ms: Mean latency across samples (``inf`` when not run).
        accuracy: Fraction of accurate samples.
        results: Per-sample outcomes, in benchmark order.
    """

    ready: bool
    latency_ms: float
    accuracy: float
    results: tuple[BenchmarkSampleResult, ...] = field(default_factory=tuple)

    def to_payload(self) -> dict[str, Any]:
        """Return a camelCase dict for event payloads."""
        return {
            "ready": self.ready,
            "latencyMs": self.latency_ms,
            "accuracy": self.accuracy,
            "results": [
                {
                    "input": sample.input,
                    "latencyMs": sample.latency_ms,
                    "accurate": sample.accurate,
                    **({"error": sample.error} if sample.error else {}),
                }
                for sample in self.results
            ],
        }


NOT_READY = BenchmarkResult(ready=False, latency_ms=math.inf, accuracy=0.0)

DEFAULT_BENCHMARKS: tuple[BenchmarkCase, ...] = (
    BenchmarkCase(
        input="Team sync tomorrow at 3pm",
        title="Team sync",
        has_time=True,
        has_date=True,
    ),
    BenchmarkCase(
        input="Dinner with Sara on 5/12 at 7pm",
        title="Dinner with Sara",
        has_time=True,
        has_date=True,
    ),
    BenchmarkCase(
        input="Yoga class next Friday morning",
        title="Yoga class",
        has_time=False,
        has_date=True,
    ),
)


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


class ResultCache:
    """A single-slot holder for the latest :class:`BenchmarkResult`."""

    def __init__(self) -> None:
        self._value: BenchmarkResult | None = None
        self._lock = threading.Lock()

    def get(self) -> BenchmarkResult | None:
        with self._lock:
            return self._value

    def set(self, value: BenchmarkResult) -> None:
        with self._lock:
            self._value = value

    def clear(self) -> None:
        with self._lock:
            self._value = None


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------


def is_accurate(case: BenchmarkCase, parsed: Any) -> bool:
    """Whether *parsed* meets every expectation in *case*."""
    return (
        title_matches(parsed_field(parsed, "title"), case.title)
        and time_matches(parsed, case.has_time)
        and date_matches(parsed, case.has_date)
    )


class BenchmarkEvaluator:
    """Decides whether a local parser is ready to be trusted.

    Args:
        benchmarks: The cases to run.  Defaults to
            :data:`DEFAULT_BENCHMARKS`.
        emitter: Receives ``calai-webllm-benchmark`` after each run.
        cache: Where results are stored.  A private cache is created when
            omitted.
    """

    def __init__(
        self,
        benchmarks: tuple[BenchmarkCase, ...] | list[BenchmarkCase] = DEFAULT_BENCHMARKS,
        emitter: EventEmitter | None = None,
        cache: ResultCache | None = None,
    ) -> None:
        self._benchmarks = tuple(benchmarks)
        self._emitter = emitter
        self._cache = cache if cache is not None else ResultCache()

    @property
    def cache(self) -> ResultCache:
        return self._cache

    def get_cached(self) -> BenchmarkResult | None:
        """Return the last result, or ``None`` before the first run."""
        return self._cache.get()

    async def evaluate(self, parse_event: ParseFunction | None) -> BenchmarkResult:
        """Run every benchmark case through *parse_event*, one at a time.

        A call that raises marks its sample inaccurate and records the
        message; the run continues with the next sample.

        Args:
            parse_event: Coroutine function taking the request text.  When
                ``None``, the not-ready result is cached and returned
                without running anything.

        Returns:
            The new :class:`BenchmarkResult`.
        """
        if parse_event is None:
            logger.info("No local parse function; benchmark reports not ready")
            self._cache.set(NOT_READY)
            return NOT_READY

        samples: list[BenchmarkSampleResult] = []
        for case in self._benchmarks:
            samples.append(await self._run_case(case, parse_event))

        count = len(samples)
        latency_ms = sum(s.latency_ms for s in samples) / count if count else math.inf
        accuracy = sum(1 for s in samples if s.accurate) / count if count else 0.0
        result = BenchmarkResult(
            ready=latency_ms <= READY_MAX_LATENCY_MS and accuracy >= READY_MIN_ACCURACY,
            latency_ms=latency_ms,
            accuracy=accuracy,
            results=tuple(samples),
        )

        logger.info(
            "Benchmark finished: ready=%s latency=%.0fms accuracy=%.2f",
            result.ready,
            result.latency_ms,
            result.accuracy,
        )
        self._cache.set(result)
        if self._emitter is not None:
            self._emitter.emit(WEBLLM_BENCHMARK, result.to_payload())
        return result

    async def _run_case(
        self, case: BenchmarkCase, parse_event: ParseFunction
    ) -> BenchmarkSampleResult:
        t0 = time.perf_counter()
        try:
            parsed = parse_event(case.input)
            if inspect.isawaitable(parsed):
                parsed = await parsed
        except Exception as exc:
            latency_ms = (time.perf_counter() - t0) * 1000
            logger.warning("Benchmark sample %r failed: %s", case.input, exc)
            return BenchmarkSampleResult(
                input=case.input,
                latency_ms=latency_ms,
                accurate=False,
                error=str(exc),
            )

        latency_ms = (time.perf_counter() - t0) * 1000
        accurate = is_accurate(case, parsed)
        logger.debug(
            "Benchmark sample %r: accurate=%s (%.0fms)", case.input, accurate, latency_ms
        )
        return BenchmarkSampleResult(
            input=case.input, latency_ms=latency_ms, accurate=accurate
        )
