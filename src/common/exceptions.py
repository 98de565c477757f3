"""
Custom exceptions for mailcapture.

This module defines all custom exceptions raised by the capture client,
the message parser and the match engine. None of them are recovered
internally; they propagate to the calling test, which decides whether to
poll again or fail.
"""

from typing import Any, Optional


class MailCaptureError(Exception):
    """Base exception for all mailcapture errors."""

    def __init__(self, message: str,
                 details: Optional[dict[str, Any]] = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error details.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


# Parsing Exceptions
class MalformedAddressError(MailCaptureError):
    """Raised when an address string is not a valid local-part@domain pair."""

    def __init__(
        self,
        raw: Any,
        reason: str,
        index: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Initialize malformed address error.

        Args:
            raw: The offending address value.
            reason: Why the value was rejected.
            index: Position of the value in the sequence being parsed.
            details: Optional dictionary with additional error details.
        """
        message = f"Malformed address {raw!r}: {reason}"
        if index is not None:
            message = f"Malformed address at index {index} {raw!r}: {reason}"
        super().__init__(message, details)
        self.raw = raw
        self.reason = reason
        self.index = index


class MalformedRecordError(MailCaptureError):
    """Raised when a capture record does not have the expected shape."""

    def __init__(
        self,
        field: str,
        reason: str,
        index: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Initialize malformed record error.

        Args:
            field: Dotted path of the field that could not be read.
            reason: Why the field was rejected.
            index: Position of the record in the fetched batch.
            details: Optional dictionary with additional error details.
        """
        message = f"Malformed record field '{field}': {reason}"
        if index is not None:
            message = f"Malformed record {index} field '{field}': {reason}"
        super().__init__(message, details)
        self.field = field
        self.reason = reason
        self.index = index


# Transport Exceptions
class TransportError(MailCaptureError):
    """Raised when the capture service cannot be queried."""

    def __init__(
        self,
        url: str,
        reason: str,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Initialize transport error.

        Args:
            url: The endpoint that was queried.
            reason: Description of the failure.
            status_code: HTTP status code, when a response was received.
            details: Optional dictionary with additional error details.
        """
        message = f"Failed to fetch messages from '{url}': {reason}"
        if status_code is not None:
            message = (
                f"Failed to fetch messages from '{url}' "
                f"(HTTP {status_code}): {reason}"
            )
        super().__init__(message, details)
        self.url = url
        self.reason = reason
        self.status_code = status_code


# Matching Exceptions
class InvalidFingerprintError(MailCaptureError):
    """Raised when a fingerprint token cannot identify a test run."""

    def __init__(
        self,
        token: Any,
        reason: str,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Initialize invalid fingerprint error.

        Args:
            token: The offending token.
            reason: Why the token was rejected.
            details: Optional dictionary with additional error details.
        """
        super().__init__(f"Invalid fingerprint {token!r}: {reason}", details)
        self.token = token
        self.reason = reason


class AmbiguousMatchError(MailCaptureError):
    """Raised when a single-result query matches more than one message."""

    def __init__(
        self,
        count: int,
        description: str = "query",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Initialize ambiguous match error.

        Args:
            count: Number of messages that satisfied the query.
            description: Human-readable description of the query.
            details: Optional dictionary with additional error details.
        """
        super().__init__(
            f"More than one matching message found for {description}: "
            f"{count} matches",
            details,
        )
        self.count = count
        self.description = description


class MailNotFoundError(MailCaptureError):
    """Raised when no matching message arrived before a polling deadline."""

    def __init__(
        self,
        description: str,
        timeout: float,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Initialize mail not found error.

        Args:
            description: Human-readable description of the query.
            timeout: Seconds spent waiting.
            details: Optional dictionary with additional error details.
        """
        super().__init__(
            f"No message matching {description} arrived within {timeout:g}s",
            details,
        )
        self.description = description
        self.timeout = timeout


class MailAssertionError(MailCaptureError, AssertionError):
    """Raised when a captured message does not meet a test expectation."""


# Configuration Exceptions
class ConfigurationError(MailCaptureError):
    """Base exception for configuration-related errors."""


class MissingConfigError(ConfigurationError):
    """Raised when a required configuration value is missing."""

    def __init__(
        self, config_key: str, details: Optional[dict[str, Any]] = None
    ) -> None:
        """
        Initialize missing config error.

        Args:
            config_key: The missing configuration key.
            details: Optional dictionary with additional error details.
        """
        super().__init__(
            f"Missing required configuration: '{config_key}'", details)
        self.config_key = config_key


class InvalidConfigError(ConfigurationError):
    """Raised when a configuration value is invalid."""

    def __init__(
        self,
        config_key: str,
        value: Any,
        reason: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Initialize invalid config error.

        Args:
            config_key: The configuration key with invalid value.
            value: The invalid value.
            reason: Optional reason why the value is invalid.
            details: Optional dictionary with additional error details.
        """
        message = f"Invalid configuration value for '{config_key}': {value}"
        if reason:
            message += f" - {reason}"
        super().__init__(message, details)
        self.config_key = config_key
        self.value = value
        self.reason = reason
