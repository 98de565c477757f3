"""
Configuration management for mailcapture.

This module provides configuration loading from environment variables
and TOML files, with immutable, type-safe settings classes. Settings
objects are frozen so that one instance can be threaded through
concurrent test runs without any of them mutating it.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import tomllib
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import InvalidConfigError, MissingConfigError


class CaptureSettings(BaseSettings):
    """MailHog capture service connection settings."""

    model_config = SettingsConfigDict(
        env_prefix="MAILHOG_",
        extra="ignore",
        frozen=True,
    )

    host: str = Field(default="localhost", description="Capture service host")
    smtp_port: int = Field(
        default=1025, ge=1, le=65535, description="SMTP sink port"
    )
    api_port: int = Field(
        default=8025, ge=1, le=65535, description="HTTP API port"
    )
    scheme: str = Field(default="http", description="HTTP API scheme")
    messages_path: str = Field(
        default="/api/v2/messages", description="Message listing endpoint path"
    )
    timeout: Optional[float] = Field(
        default=None, gt=0, description="HTTP timeout in seconds"
    )

    @field_validator("scheme")
    @classmethod
    def validate_scheme(cls, v: str) -> str:
        """Validate the API scheme."""
        v_lower = v.lower()
        if v_lower not in ("http", "https"):
            raise ValueError("Scheme must be http or https")
        return v_lower

    @field_validator("messages_path")
    @classmethod
    def validate_messages_path(cls, v: str) -> str:
        """Ensure the endpoint path is absolute."""
        if not v.startswith("/"):
            return "/" + v
        return v

    @property
    def api_url(self) -> str:
        """Base URL of the capture service HTTP API."""
        return f"{self.scheme}://{self.host}:{self.api_port}"

    @property
    def messages_url(self) -> str:
        """Full URL of the message listing endpoint."""
        return f"{self.api_url}{self.messages_path}"


class PollSettings(BaseSettings):
    """Defaults for caller-side polling helpers."""

    model_config = SettingsConfigDict(
        env_prefix="MAILCAPTURE_POLL_",
        extra="ignore",
        frozen=True,
    )

    interval: float = Field(
        default=1.0, gt=0, description="Seconds between capture queries"
    )
    timeout: float = Field(
        default=30.0, gt=0, description="Seconds to wait for a message"
    )


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        extra="ignore",
        frozen=True,
    )

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
        return v_upper


class Settings(BaseSettings):
    """Main settings aggregating all configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MAILCAPTURE_",
        extra="ignore",
        frozen=True,
    )

    capture: CaptureSettings = Field(default_factory=CaptureSettings)
    poll: PollSettings = Field(default_factory=PollSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_toml(cls, path: str | Path) -> "Settings":
        """
        Load settings from a TOML configuration file.

        Args:
            path: Path to the TOML configuration file.

        Returns:
            Settings instance with loaded configuration.

        Raises:
            MissingConfigError: If the file does not exist.
            InvalidConfigError: If the file cannot be parsed or validated.
        """
        path = Path(path)
        if not path.exists():
            raise MissingConfigError("config_file", details={"path": str(path)})

        try:
            with open(path, "rb") as f:
                config_data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise InvalidConfigError(
                config_key="config_file",
                value=str(path),
                reason=f"Failed to parse TOML: {e}",
            ) from e

        try:
            return cls._from_dict(config_data)
        except ValidationError as e:
            raise InvalidConfigError(
                config_key="config_file",
                value=str(path),
                reason=str(e),
            ) from e

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Settings":
        """
        Create settings from a dictionary.

        Args:
            data: Configuration dictionary.

        Returns:
            Settings instance.
        """
        settings_kwargs: dict[str, Any] = {}

        if "capture" in data:
            settings_kwargs["capture"] = CaptureSettings(**data["capture"])

        if "poll" in data:
            settings_kwargs["poll"] = PollSettings(**data["poll"])

        if "logging" in data:
            settings_kwargs["logging"] = LoggingSettings(**data["logging"])

        return cls(**settings_kwargs)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings.

    Loads settings from the TOML file named by ``MAILCAPTURE_CONFIG_FILE``
    when it exists, otherwise from environment variables alone.

    Returns:
        Settings instance.
    """
    config_file = os.getenv("MAILCAPTURE_CONFIG_FILE")

    if config_file and Path(config_file).exists():
        settings = Settings.from_toml(config_file)
    else:
        settings = Settings()

    return settings


def reload_settings() -> Settings:
    """
    Reload settings, clearing the cache.

    Returns:
        Fresh Settings instance.
    """
    get_settings.cache_clear()
    return get_settings()
