"""Unit tests for the local model readiness benchmark."""

from __future__ import annotations

import asyncio
import itertools
import math
from typing import Any
from unittest.mock import patch

from cal_draft.benchmark.runner import (
    DEFAULT_BENCHMARKS,
    NOT_READY,
    BenchmarkCase,
    BenchmarkEvaluator,
    BenchmarkResult,
    BenchmarkSampleResult,
    ResultCache,
    is_accurate,
)
from cal_draft.events import WEBLLM_BENCHMARK, EventEmitter

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_EXPECTED = {
    "Team sync tomorrow at 3pm": {"title": "Team sync", "start": "2026-03-03T15:00:00"},
    "Dinner with Sara on 5/12 at 7pm": {
        "title": "Dinner with Sara",
        "start": "2026-05-12T19:00:00",
    },
    "Yoga class next Friday morning": {
        "title": "Yoga class",
        "start": "2026-03-06T00:00:00",
    },
}


async def _perfect_parse(text: str) -> dict[str, Any]:
    return _EXPECTED[text]


async def _broken_parse(text: str) -> dict[str, Any]:
    raise RuntimeError("model crashed")


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestDefaultBenchmarks:
    """Tests for the fixed sample battery."""

    def test_three_cases(self) -> None:
        assert [case.input for case in DEFAULT_BENCHMARKS] == list(_EXPECTED)

    def test_one_case_expects_no_time(self) -> None:
        assert [case.has_time for case in DEFAULT_BENCHMARKS] == [True, True, False]


class TestIsAccurate:
    """Tests for per-sample accuracy."""

    def test_all_expectations_hold(self) -> None:
        case = DEFAULT_BENCHMARKS[0]

        assert is_accurate(case, _EXPECTED[case.input]) is True

    def test_wrong_title(self) -> None:
        case = DEFAULT_BENCHMARKS[0]

        assert is_accurate(case, {"title": "Lunch", "start": "2026-03-03T15:00:00"}) is False

    def test_unexpected_time(self) -> None:
        case = DEFAULT_BENCHMARKS[2]

        assert is_accurate(case, {"title": "Yoga class", "start": "2026-03-06T09:00:00"}) is False

    def test_no_expectations_always_accurate(self) -> None:
        assert is_accurate(BenchmarkCase(input="x"), None) is True


class TestResultCache:
    """Tests for the single-slot cache."""

    def test_get_set_clear(self) -> None:
        cache = ResultCache()
        assert cache.get() is None

        cache.set(NOT_READY)
        assert cache.get() is NOT_READY

        cache.clear()
        assert cache.get() is None


class TestBenchmarkEvaluator:
    """Tests for BenchmarkEvaluator.evaluate."""

    def test_no_parse_function_caches_not_ready(self) -> None:
        evaluator = BenchmarkEvaluator()

        result = asyncio.run(evaluator.evaluate(None))

        assert result is NOT_READY
        assert result.ready is False
        assert math.isinf(result.latency_ms)
        assert evaluator.get_cached() is NOT_READY

    def test_perfect_fast_model_is_ready(self) -> None:
        evaluator = BenchmarkEvaluator()

        result = asyncio.run(evaluator.evaluate(_perfect_parse))

        assert result.ready is True
        assert result.accuracy == 1.0
        assert result.latency_ms < 2000
        assert [s.input for s in result.results] == list(_EXPECTED)
        assert evaluator.get_cached() is result

    def test_sync_parse_function_is_accepted(self) -> None:
        result = asyncio.run(BenchmarkEvaluator().evaluate(lambda text: _EXPECTED[text]))

        assert result.accuracy == 1.0

    def test_failing_samples_are_recorded(self) -> None:
        result = asyncio.run(BenchmarkEvaluator().evaluate(_broken_parse))

        assert result.ready is False
        assert result.accuracy == 0.0
        assert all(s.error == "model crashed" for s in result.results)
        assert len(result.results) == 3

    def test_slow_model_is_not_ready(self) -> None:
        case = DEFAULT_BENCHMARKS[0]
        evaluator = BenchmarkEvaluator(benchmarks=[case])
        clock = itertools.chain([0.0, 3.0], itertools.repeat(3.0))

        with patch("cal_draft.benchmark.runner.time.perf_counter", side_effect=clock):
            result = asyncio.run(evaluator.evaluate(_perfect_parse))

        assert result.accuracy == 1.0
        assert result.latency_ms == 3000.0
        assert result.ready is False

    def test_low_accuracy_is_not_ready(self) -> None:
        async def two_of_three(text: str) -> dict[str, Any]:
            if text.startswith("Yoga"):
                return {"title": "Stretching"}
            return _EXPECTED[text]

        result = asyncio.run(BenchmarkEvaluator().evaluate(two_of_three))

        assert result.accuracy == 2 / 3
        assert result.ready is False

    def test_result_is_emitted(self) -> None:
        emitter = EventEmitter()
        received: list[Any] = []
        emitter.on(WEBLLM_BENCHMARK, received.append)

        result = asyncio.run(BenchmarkEvaluator(emitter=emitter).evaluate(_perfect_parse))

        assert received == [result.to_payload()]

    def test_shared_cache(self) -> None:
        cache = ResultCache()
        evaluator = BenchmarkEvaluator(cache=cache)

        asyncio.run(evaluator.evaluate(None))

        assert evaluator.cache is cache
        assert cache.get() is NOT_READY


class TestBenchmarkResult:
    """Tests for the result payload."""

    def test_to_payload_is_camel_case(self) -> None:
        result = BenchmarkResult(
            ready=False,
            latency_ms=10.0,
            accuracy=0.5,
            results=(
                BenchmarkSampleResult(input="a", latency_ms=5.0, accurate=True),
                BenchmarkSampleResult(input="b", latency_ms=15.0, accurate=False, error="boom"),
            ),
        )

        assert result.to_payload() == {
            "ready": False,
            "latencyMs": 10.0,
            "accuracy": 0.5,
            "results": [
                {"input": "a", "latencyMs": 5.0, "accurate": True},
                {"input": "b", "latencyMs": 15.0, "accurate": False, "error": "boom"},
            ],
        }
