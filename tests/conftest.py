"""Shared fixtures for cal-draft tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from datetime import datetime

import pytest

_CONFIG_VARS = (
    "GEMINI_API_KEY",
    "GEMINI_MODEL",
    "OLLAMA_HOST",
    "OLLAMA_MODEL",
    "PREFER_LOCAL",
    "PARSER_TIMEOUT_SECONDS",
    "LOG_LEVEL",
    "TIMEZONE",
)

# Monday 2 March 2026, 10:00 local (naive).
MONDAY = datetime(2026, 3, 2, 10, 0, 0)
# Wednesday 4 March 2026, 10:00 local (naive).
WEDNESDAY = datetime(2026, 3, 4, 10, 0, 0)


@pytest.fixture()
def monday() -> datetime:
    return MONDAY


@pytest.fixture()
def wednesday() -> datetime:
    return WEDNESDAY


@pytest.fixture()
def monkeypatch_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set every configuration variable to a valid value.

    Also patches ``load_dotenv`` so that a real ``.env`` file on disk does not
    override the test values.

    Returns the dict of variables so tests can inspect or override values.
    """
    monkeypatch.setattr("cal_draft.config.load_dotenv", lambda *_a, **_kw: None)
    env_vars = {
        "GEMINI_API_KEY": "test-gemini-key-12345",
        "GEMINI_MODEL": "gemini-2.0-flash",
        "OLLAMA_HOST": "http://ollama.test:11434",
        "OLLAMA_MODEL": "qwen2.5:0.5b",
        "PREFER_LOCAL": "false",
        "PARSER_TIMEOUT_SECONDS": "12.5",
        "LOG_LEVEL": "INFO",
        "TIMEZONE": "America/Vancouver",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove all cal-draft environment variables.

    Patches ``load_dotenv`` so a real ``.env`` file cannot re-inject values
    that the test explicitly removed.
    """
    monkeypatch.setattr("cal_draft.config.load_dotenv", lambda *_a, **_kw: None)
    for key in _CONFIG_VARS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_root_logger() -> Generator[None, None, None]:
    """Reset the root logger after each test to prevent handler leaks."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
