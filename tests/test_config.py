"""
Tests for configuration loading.

Tests cover:
- Defaults and environment variables
- Validation
- TOML files
- Immutability
"""

import pytest
from pydantic import ValidationError

from common.config import (
    CaptureSettings,
    LoggingSettings,
    PollSettings,
    Settings,
    get_settings,
    reload_settings,
)
from common.exceptions import InvalidConfigError, MissingConfigError


# =============================================================================
# Capture Settings Tests
# =============================================================================

class TestCaptureSettings:
    """Tests for CaptureSettings."""

    def test_defaults(self):
        """Test that defaults point at a local MailHog."""
        settings = CaptureSettings()

        assert settings.host == "localhost"
        assert settings.smtp_port == 1025
        assert settings.api_port == 8025
        assert settings.timeout is None
        assert settings.messages_url == "http://localhost:8025/api/v2/messages"

    def test_environment(self, monkeypatch):
        """Test that MAILHOG_ variables override defaults."""
        monkeypatch.setenv("MAILHOG_HOST", "mailhog.internal")
        monkeypatch.setenv("MAILHOG_API_PORT", "18025")
        monkeypatch.setenv("MAILHOG_SMTP_PORT", "11025")
        monkeypatch.setenv("MAILHOG_TIMEOUT", "2.5")

        settings = CaptureSettings()

        assert settings.smtp_port == 11025
        assert settings.messages_url == "http://mailhog.internal:18025/api/v2/messages"
        assert settings.timeout == 2.5

    def test_invalid_port(self):
        """Test that out-of-range ports are rejected."""
        with pytest.raises(ValidationError):
            CaptureSettings(api_port=70000)

    def test_invalid_scheme(self):
        """Test that only HTTP schemes are accepted."""
        with pytest.raises(ValidationError):
            CaptureSettings(scheme="ftp")

    def test_relative_path_is_made_absolute(self):
        """Test that the endpoint path always starts with a slash."""
        settings = CaptureSettings(messages_path="api/v2/messages")

        assert settings.messages_url.endswith(":8025/api/v2/messages")

    def test_settings_are_frozen(self):
        """Test that settings cannot be changed after construction."""
        settings = CaptureSettings()

        with pytest.raises(ValidationError):
            settings.host = "elsewhere"


# =============================================================================
# Other Settings Tests
# =============================================================================

class TestPollAndLoggingSettings:
    """Tests for PollSettings and LoggingSettings."""

    def test_poll_defaults(self):
        """Test polling defaults."""
        settings = PollSettings()

        assert settings.interval == 1.0
        assert settings.timeout == 30.0

    def test_poll_rejects_non_positive(self):
        """Test that zero intervals are rejected."""
        with pytest.raises(ValidationError):
            PollSettings(interval=0)

    def test_log_level_is_normalized(self):
        """Test that log levels are upper-cased."""
        assert LoggingSettings(level="debug").level == "DEBUG"

    def test_unknown_log_level(self):
        """Test that unknown log levels are rejected."""
        with pytest.raises(ValidationError):
            LoggingSettings(level="verbose")


# =============================================================================
# TOML Loading Tests
# =============================================================================

class TestFromToml:
    """Tests for Settings.from_toml."""

    def test_loads_sections(self, tmp_path):
        """Test that each table configures its settings class."""
        config = tmp_path / "mailcapture.toml"
        config.write_text(
            "[capture]\n"
            'host = "mailhog"\n'
            "api_port = 9025\n"
            "\n"
            "[poll]\n"
            "timeout = 5\n"
            "\n"
            "[logging]\n"
            'level = "warning"\n'
        )

        settings = Settings.from_toml(config)

        assert settings.capture.messages_url == "http://mailhog:9025/api/v2/messages"
        assert settings.poll.timeout == 5
        assert settings.logging.level == "WARNING"

    def test_missing_file(self, tmp_path):
        """Test that a missing file is reported."""
        with pytest.raises(MissingConfigError):
            Settings.from_toml(tmp_path / "absent.toml")

    def test_invalid_toml(self, tmp_path):
        """Test that unparsable TOML is reported."""
        config = tmp_path / "broken.toml"
        config.write_text("[capture\nhost = ")

        with pytest.raises(InvalidConfigError, match="Failed to parse TOML"):
            Settings.from_toml(config)

    def test_invalid_value(self, tmp_path):
        """Test that invalid values are reported as configuration errors."""
        config = tmp_path / "bad.toml"
        config.write_text("[capture]\napi_port = 0\n")

        with pytest.raises(InvalidConfigError):
            Settings.from_toml(config)


# =============================================================================
# Cached Settings Tests
# =============================================================================

class TestGetSettings:
    """Tests for get_settings and reload_settings."""

    def test_cached(self):
        """Test that settings are cached."""
        assert get_settings() is get_settings()

    def test_config_file_from_environment(self, tmp_path, monkeypatch):
        """Test that MAILCAPTURE_CONFIG_FILE is honoured."""
        config = tmp_path / "mailcapture.toml"
        config.write_text('[capture]\nhost = "from-file"\n')
        monkeypatch.setenv("MAILCAPTURE_CONFIG_FILE", str(config))

        assert reload_settings().capture.host == "from-file"
