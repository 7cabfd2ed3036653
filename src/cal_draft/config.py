"""Configuration loading for cal-draft.

Reads settings from environment variables (with .env support via
python-dotenv).  Every setting is optional; invalid values are collected
and reported together.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigError(Exception):
    """Raised when a configuration value is invalid."""


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables.

    Attributes:
        gemini_api_key: API key for Google Gemini; empty disables the cloud
            parser.
        gemini_model: Gemini model identifier.
        ollama_host: Base URL of the local Ollama server.
        ollama_model: Ollama model tag used by the local parser.
        prefer_local: Try the local parser before the cloud parser.
        parser_timeout_seconds: Time limit for each parser attempt.
        log_level: Logging level (default ``"INFO"``).
        timezone: IANA timezone string (default ``"America/Vancouver"``).
    """

    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    ollama_host: str = "http://localhost:11434"
    ollama_model: str = "qwen2.5:0.5b"
    prefer_local: bool = False
    parser_timeout_seconds: float = 30.0
    log_level: str = "INFO"
    timezone: str = "America/Vancouver"

    def __repr__(self) -> str:
        return (
            f"Settings(gemini_api_key={('***' if self.gemini_api_key else '')!r}, "
            f"gemini_model={self.gemini_model!r}, "
            f"ollama_host={self.ollama_host!r}, "
            f"ollama_model={self.ollama_model!r}, "
            f"prefer_local={self.prefer_local!r}, "
            f"parser_timeout_seconds={self.parser_timeout_seconds!r}, "
            f"log_level={self.log_level!r}, "
            f"timezone={self.timezone!r})"
        )


def _env(name: str) -> str:
    return os.environ.get(name, "").strip()


def load_settings() -> Settings:
    """Load and validate settings from environment variables.

    Calls :func:`dotenv.load_dotenv` so a ``.env`` file in the project root
    is picked up automatically.  Unset variables keep their defaults.

    Returns:
        A validated :class:`Settings` instance.

    Raises:
        ConfigError: If any variable holds an invalid value.  The error
            message names **all** invalid variables.
    """
    load_dotenv()

    values: dict[str, object] = {}
    invalid: list[str] = []

    for env_var, field_name in (
        ("GEMINI_API_KEY", "gemini_api_key"),
        ("GEMINI_MODEL", "gemini_model"),
        ("OLLAMA_HOST", "ollama_host"),
        ("OLLAMA_MODEL", "ollama_model"),
    ):
        raw = _env(env_var)
        if raw:
            values[field_name] = raw

    prefer_local = _env("PREFER_LOCAL").lower()
    if prefer_local in _TRUE_VALUES:
        values["prefer_local"] = True
    elif prefer_local in _FALSE_VALUES:
        values["prefer_local"] = False
    elif prefer_local:
        invalid.append("PREFER_LOCAL")

    timeout = _env("PARSER_TIMEOUT_SECONDS")
    if timeout:
        try:
            seconds = float(timeout)
        except ValueError:
            seconds = 0.0
        if seconds > 0:
            values["parser_timeout_seconds"] = seconds
        else:
            invalid.append("PARSER_TIMEOUT_SECONDS")

    log_level = _env("LOG_LEVEL")
    if log_level:
        if isinstance(logging.getLevelName(log_level.upper()), int):
            values["log_level"] = log_level.upper()
        else:
            invalid.append("LOG_LEVEL")

    timezone = _env("TIMEZONE")
    if timezone:
        try:
            ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError):
            invalid.append("TIMEZONE")
        else:
            values["timezone"] = timezone

    if invalid:
        names = ", ".join(invalid)
        raise ConfigError(f"Invalid environment variables: {names}")

    return Settings(**values)
