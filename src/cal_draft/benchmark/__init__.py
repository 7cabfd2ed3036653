"""Readiness benchmark for the local parser model.

Provides the fixed sample battery, per-sample accuracy checks, the
evaluator with its single-slot result cache, and a console report.
"""

from __future__ import annotations

from cal_draft.benchmark.report import format_benchmark_report
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
from cal_draft.benchmark.scoring import date_matches, time_matches, title_matches

__all__ = [
    "DEFAULT_BENCHMARKS",
    "NOT_READY",
    "BenchmarkCase",
    "BenchmarkEvaluator",
    "BenchmarkResult",
    "BenchmarkSampleResult",
    "ResultCache",
    "date_matches",
    "format_benchmark_report",
    "is_accurate",
    "time_matches",
    "title_matches",
]
