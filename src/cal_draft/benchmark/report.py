"""Console report for a readiness benchmark run.

Follows the ``demo_output.py`` pattern of building a list of strings.
"""

from __future__ import annotations

import math

from cal_draft.benchmark.runner import (
    READY_MAX_LATENCY_MS,
    READY_MIN_ACCURACY,
    BenchmarkResult,
    BenchmarkSampleResult,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_BANNER_WIDTH = 60
_SEPARATOR = "=" * _BANNER_WIDTH


def format_benchmark_report(result: BenchmarkResult | None, model: str = "") -> str:
    """Format a benchmark result for the console.

    Args:
        result: The result to format.  ``None`` means no run happened.
        model: Model name shown in the header, if known.

    Returns:
        Multi-line string for console display.
    """
    lines: list[str] = []

    lines.append(_SEPARATOR)
    lines.append("  LOCAL MODEL BENCHMARK")
    lines.append(_SEPARATOR)
    if model:
        lines.append(f"  Model: {model}")

    if result is None or not result.results:
        lines.append("")
        lines.append("  No samples were run; the local model is not ready.")
        lines.append(_SEPARATOR)
        return "\n".join(lines)

    lines.append("")
    lines.append("--- SAMPLES ---")
    for idx, sample in enumerate(result.results, 1):
        lines.append(_format_sample_line(idx, sample))
        if sample.error:
            lines.append(f"      error: {sample.error}")

    lines.append("")
    lines.append("--- SUMMARY ---")
    lines.append(
        f"  Accuracy: {result.accuracy:.1%} (needs >= {READY_MIN_ACCURACY:.0%})"
    )
    lines.append(
        f"  Mean latency: {_format_latency(result.latency_ms)} "
        f"(needs <= {READY_MAX_LATENCY_MS:.0f}ms)"
    )
    lines.append(f"  Ready: {'yes' if result.ready else 'no'}")

    lines.append(_SEPARATOR)
    return "\n".join(lines)


def _format_sample_line(idx: int, sample: BenchmarkSampleResult) -> str:
    """Format one sample as ``"  [1] PASS  Team sync tomorrow at 3pm (412ms)"``."""
    status = "PASS" if sample.accurate else "FAIL"
    return f"  [{idx}] {status}  {sample.input} ({_format_latency(sample.latency_ms)})"


def _format_latency(latency_ms: float) -> str:
    if math.isinf(latency_ms):
        return "n/a"
    return f"{latency_ms:.0f}ms"
