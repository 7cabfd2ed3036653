"""Tests for cal-draft configuration loading."""

from __future__ import annotations

import pytest

from cal_draft.config import ConfigError, Settings, load_settings


class TestLoadSettingsHappyPath:
    """Tests for successful configuration loading."""

    def test_load_settings_with_all_vars_set(self, monkeypatch_env: dict[str, str]) -> None:
        """All vars present returns correct Settings."""
        settings = load_settings()

        assert settings.gemini_api_key == "test-gemini-key-12345"
        assert settings.gemini_model == "gemini-2.0-flash"
        assert settings.ollama_host == "http://ollama.test:11434"
        assert settings.ollama_model == "qwen2.5:0.5b"
        assert settings.prefer_local is False
        assert settings.parser_timeout_seconds == 12.5
        assert settings.log_level == "INFO"
        assert settings.timezone == "America/Vancouver"

    def test_load_settings_defaults_when_nothing_set(self, clean_env: None) -> None:
        """No variables at all yields the documented defaults."""
        settings = load_settings()

        assert settings == Settings()
        assert settings.gemini_api_key == ""
        assert settings.ollama_host == "http://localhost:11434"
        assert settings.parser_timeout_seconds == 30.0
        assert settings.log_level == "INFO"
        assert settings.timezone == "America/Vancouver"

    def test_load_settings_custom_log_level(
        self, monkeypatch_env: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """LOG_LEVEL=debug is honoured and upper-cased."""
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = load_settings()

        assert settings.log_level == "DEBUG"

    def test_load_settings_custom_timezone(
        self, monkeypatch_env: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """TIMEZONE=US/Eastern is honoured."""
        monkeypatch.setenv("TIMEZONE", "US/Eastern")

        settings = load_settings()

        assert settings.timezone == "US/Eastern"

    @pytest.mark.parametrize("raw", ["1", "true", "YES", "on"])
    def test_prefer_local_truthy_values(
        self, raw: str, monkeypatch_env: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """PREFER_LOCAL accepts the usual spellings of true."""
        monkeypatch.setenv("PREFER_LOCAL", raw)

        assert load_settings().prefer_local is True

    @pytest.mark.parametrize("raw", ["0", "false", "No", "off"])
    def test_prefer_local_falsy_values(
        self, raw: str, monkeypatch_env: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """PREFER_LOCAL accepts the usual spellings of false."""
        monkeypatch.setenv("PREFER_LOCAL", raw)

        assert load_settings().prefer_local is False

    def test_whitespace_is_stripped(
        self, monkeypatch_env: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Surrounding whitespace in values is ignored."""
        monkeypatch.setenv("OLLAMA_MODEL", "  llama3.2  ")

        assert load_settings().ollama_model == "llama3.2"


class TestLoadSettingsInvalidVars:
    """Tests for invalid environment variables."""

    def test_invalid_log_level(
        self, monkeypatch_env: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """LOG_LEVEL=VERBOSE raises ConfigError naming the variable."""
        monkeypatch.setenv("LOG_LEVEL", "VERBOSE")

        with pytest.raises(ConfigError, match="LOG_LEVEL"):
            load_settings()

    def test_invalid_timezone(
        self, monkeypatch_env: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """An unknown IANA zone raises ConfigError naming TIMEZONE."""
        monkeypatch.setenv("TIMEZONE", "Mars/Olympus_Mons")

        with pytest.raises(ConfigError, match="TIMEZONE"):
            load_settings()

    @pytest.mark.parametrize("raw", ["soon", "0", "-5"])
    def test_invalid_timeout(
        self, raw: str, monkeypatch_env: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """PARSER_TIMEOUT_SECONDS must be a positive number."""
        monkeypatch.setenv("PARSER_TIMEOUT_SECONDS", raw)

        with pytest.raises(ConfigError, match="PARSER_TIMEOUT_SECONDS"):
            load_settings()

    def test_invalid_prefer_local(
        self, monkeypatch_env: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """PREFER_LOCAL=maybe raises ConfigError."""
        monkeypatch.setenv("PREFER_LOCAL", "maybe")

        with pytest.raises(ConfigError, match="PREFER_LOCAL"):
            load_settings()

    def test_all_invalid_vars_reported_together(
        self, monkeypatch_env: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Every invalid variable is named in one error message."""
        monkeypatch.setenv("LOG_LEVEL", "LOUD")
        monkeypatch.setenv("TIMEZONE", "Nowhere/Else")

        with pytest.raises(ConfigError) as exc_info:
            load_settings()

        message = str(exc_info.value)
        assert "LOG_LEVEL" in message
        assert "TIMEZONE" in message


class TestSettings:
    """Tests for the Settings dataclass itself."""

    def test_settings_is_frozen(self) -> None:
        """Settings instances are immutable."""
        settings = Settings()

        with pytest.raises(AttributeError):
            settings.log_level = "DEBUG"  # type: ignore[misc]

    def test_repr_masks_api_key(self) -> None:
        """The API key never appears in repr()."""
        settings = Settings(gemini_api_key="super-secret")

        text = repr(settings)

        assert "super-secret" not in text
        assert "'***'" in text

    def test_repr_shows_empty_key_as_empty(self) -> None:
        """An unset key is shown as an empty string, not masked."""
        assert "gemini_api_key=''" in repr(Settings())
