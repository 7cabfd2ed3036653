"""Entry point for ``python -m cal_draft``.

Provides a CLI that turns a free-text request into a calendar draft.
Uses stdlib :mod:`argparse` for argument parsing (no extra dependencies).

Subcommands:
    draft     -- Default. Draft an event from text, optionally asking
                 clarification questions on stdin.
    benchmark -- Run the readiness benchmark against the local model.
    sanitize  -- Clean a piece of LLM output.

Exit codes:
    0 -- Completed successfully.
    1 -- An error occurred (invalid configuration, local model missing).
    2 -- Argument parsing error (handled by argparse).
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import datetime
from zoneinfo import ZoneInfo

from cal_draft.benchmark import BenchmarkEvaluator, format_benchmark_report
from cal_draft.clarification import ClarificationState
from cal_draft.config import ConfigError, Settings, load_settings
from cal_draft.demo_output import format_draft_lines, print_draft_result
from cal_draft.llm import GeminiEventParser
from cal_draft.local_llm import OllamaEventParser
from cal_draft.log import attach_event_logging, setup_logging
from cal_draft.pipeline import DraftPipeline
from cal_draft.sanitizer import sanitize_ai_output
from cal_draft.schema import finalize_draft, validate_event_input

_CANCEL_WORDS = {"cancel", "quit", "exit"}


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser with subcommands.

    Returns:
        Configured :class:`argparse.ArgumentParser` with ``draft``,
        ``benchmark`` and ``sanitize`` subcommands.
    """
    parser = argparse.ArgumentParser(
        prog="cal-draft",
        description="Turn a natural-language request into a calendar event draft.",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- "draft" subcommand (default) ---------------------------------
    draft_parser = subparsers.add_parser(
        "draft",
        help="Draft an event from free text.",
    )
    draft_parser.add_argument(
        "text",
        type=str,
        help='The request, e.g. "Team sync tomorrow at 3pm".',
    )
    draft_parser.add_argument(
        "--interactive",
        action="store_true",
        default=False,
        help="Ask clarification questions on stdin until the draft is complete.",
    )
    draft_parser.add_argument(
        "--prefer-local",
        action="store_true",
        default=False,
        help="Try the local Ollama model before Gemini.",
    )
    draft_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug-level logging.",
    )

    # --- "benchmark" subcommand ---------------------------------------
    bench_parser = subparsers.add_parser(
        "benchmark",
        help="Check whether the local model is fast and accurate enough.",
    )
    bench_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug-level logging.",
    )

    # --- "sanitize" subcommand ----------------------------------------
    sanitize_parser = subparsers.add_parser(
        "sanitize",
        help="Strip control tokens from LLM output.",
    )
    sanitize_parser.add_argument(
        "output",
        type=str,
        help="The LLM output to clean.",
    )
    sanitize_parser.add_argument(
        "--input",
        type=str,
        default="",
        help="The user input that produced the output.",
    )
    sanitize_parser.add_argument(
        "--verbose-math",
        action="store_true",
        default=False,
        help='Show the expression after a computed result, e.g. "4 (from 2+2)".',
    )

    return parser


def _resolve_command(
    parser: argparse.ArgumentParser,
    argv: list[str],
) -> argparse.Namespace:
    """Parse *argv* with an implicit ``draft`` subcommand.

    If the first token is not a known subcommand, ``draft`` is prepended
    so that ``python -m cal_draft "lunch at noon"`` works.

    Args:
        parser: The top-level argument parser.
        argv: Command-line arguments.

    Returns:
        Parsed :class:`argparse.Namespace`.
    """
    known_subcommands = {"draft", "benchmark", "sanitize"}
    if not argv:
        argv = ["draft"]
    elif argv[0] in {"-h", "--help"}:
        pass
    elif argv[0] not in known_subcommands:
        argv = ["draft", *argv]

    return parser.parse_args(argv)


def _load_settings(args: argparse.Namespace) -> Settings | None:
    """Load settings, re-applying the configured log level unless verbose."""
    try:
        settings = load_settings()
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return None

    if not args.verbose:
        setup_logging(settings.log_level)
    return settings


def _build_local_parser(settings: Settings, prefer_local: bool) -> OllamaEventParser:
    return OllamaEventParser(
        host=settings.ollama_host,
        model=settings.ollama_model,
        prefer_local=prefer_local,
        timeout=settings.parser_timeout_seconds,
        timezone=settings.timezone,
    )


def build_pipeline(settings: Settings, prefer_local: bool = False) -> DraftPipeline:
    """Compose a :class:`DraftPipeline` from *settings*.

    The local model is loaded only when it is preferred or Gemini is not
    configured.
    """
    gemini = GeminiEventParser(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        timezone=settings.timezone,
    )
    local = _build_local_parser(settings, settings.prefer_local or prefer_local)
    if local.get_prefer_local() or not gemini.is_initialized:
        local.load()

    return DraftPipeline(
        gemini_service=gemini,
        local_brain_service=local,
        timeout_seconds=settings.parser_timeout_seconds,
    )


def _handle_draft(args: argparse.Namespace) -> int:
    """Execute the ``draft`` subcommand.

    Returns:
        Exit code: ``0`` on success, ``1`` on error.
    """
    settings = _load_settings(args)
    if settings is None:
        return 1

    pipeline = build_pipeline(settings, prefer_local=args.prefer_local)
    attach_event_logging(pipeline.emitter)

    now = datetime.now(ZoneInfo(settings.timezone))
    result = asyncio.run(pipeline.process(args.text, now))
    print_draft_result(result, args.text)

    if not args.interactive:
        return 0

    state = ClarificationState.from_result(result, args.text)
    while not state.is_complete:
        print(state.prompt())
        answer = sys.stdin.readline()
        if not answer or answer.strip().lower() in _CANCEL_WORDS:
            print("Cancelled.")
            return 0
        state = state.answer(answer.strip(), now)

    final = finalize_draft(state.draft)
    print("")
    print("--- FINAL EVENT ---")
    for line in format_draft_lines(final):
        print(line)
    for problem in validate_event_input(final, now):
        print(f"  Warning: {problem}")
    return 0


def _handle_benchmark(args: argparse.Namespace) -> int:
    """Execute the ``benchmark`` subcommand.

    Returns:
        Exit code: ``0`` when the benchmark ran, ``1`` when the local model
        is unavailable or the configuration is invalid.
    """
    settings = _load_settings(args)
    if settings is None:
        return 1

    local = _build_local_parser(settings, prefer_local=True)
    loaded = local.load()

    evaluator = BenchmarkEvaluator()
    result = asyncio.run(evaluator.evaluate(local.parse_event if loaded else None))
    print(format_benchmark_report(result, model=settings.ollama_model))
    return 0 if loaded else 1


def _handle_sanitize(args: argparse.Namespace) -> int:
    """Execute the ``sanitize`` subcommand."""
    print(sanitize_ai_output(args.output, user_input=args.input, verbose=args.verbose_math))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the cal-draft CLI.

    Args:
        argv: Command-line arguments.  Defaults to ``sys.argv[1:]``
            when ``None`` (the normal case).

    Returns:
        Exit code: ``0`` on success, ``1`` on error.
    """
    parser = build_parser()
    args = _resolve_command(parser, argv if argv is not None else sys.argv[1:])

    # --- Configure logging --------------------------------------------
    log_level = "DEBUG" if getattr(args, "verbose", False) else "INFO"
    setup_logging(log_level)

    # --- Dispatch to subcommand handler -------------------------------
    if args.command == "benchmark":
        return _handle_benchmark(args)
    if args.command == "sanitize":
        return _handle_sanitize(args)

    return _handle_draft(args)


if __name__ == "__main__":
    raise SystemExit(main())
