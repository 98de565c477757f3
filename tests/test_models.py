"""
Tests for the captured mail value types.

Tests cover:
- Fingerprint generation and validation
- Address comparison
- CapturedMessage helpers
"""

import pytest
from pydantic import ValidationError

from capture.addresses import parse_address, parse_addresses
from common.models import CapturedMessage, Fingerprint


# =============================================================================
# Fingerprint Tests
# =============================================================================

class TestFingerprint:
    """Tests for the Fingerprint model."""

    def test_generate(self):
        """Test that generated tokens are hex and unique per run."""
        first = Fingerprint.generate()
        second = Fingerprint.generate()

        assert len(first.token) == 16
        int(first.token, 16)
        assert first.token != second.token

    def test_reply_to(self):
        """Test the reply-to address built from token and domain."""
        fingerprint = Fingerprint(token="abc123", domain="ci.example.org")

        assert fingerprint.reply_to == "abc123@ci.example.org"
        assert str(fingerprint) == "abc123"

    def test_default_domain(self):
        """Test that the domain defaults to localhost."""
        assert Fingerprint(token="abc123").reply_to == "abc123@localhost"

    @pytest.mark.parametrize("token", ["", "abc@123", "abc 123"])
    def test_invalid_token(self, token):
        """Test that tokens unusable as a local part are rejected."""
        with pytest.raises(ValidationError):
            Fingerprint(token=token)

    def test_reply_to_parses_as_address(self):
        """Test that the reply-to address round-trips through the parser."""
        fingerprint = Fingerprint.generate()

        address = parse_address(fingerprint.reply_to)

        assert address.local_part == fingerprint.token


# =============================================================================
# Address Tests
# =============================================================================

class TestAddress:
    """Tests for the Address model."""

    def test_matches_ignores_case_and_display_name(self):
        """Test that comparison uses only the bare address."""
        address = parse_address("Dev Team <Dev@Example.org>")

        assert address.matches("dev@example.org")
        assert address.matches(parse_address("DEV@EXAMPLE.ORG"))
        assert not address.matches("ops@example.org")

    def test_str_is_raw_text(self):
        """Test that str() gives the captured text."""
        address = parse_address("Dev Team <dev@example.org>")

        assert str(address) == "Dev Team <dev@example.org>"
        assert address.address == "dev@example.org"


# =============================================================================
# CapturedMessage Tests
# =============================================================================

class TestCapturedMessage:
    """Tests for the CapturedMessage model."""

    @pytest.fixture
    def captured(self):
        return CapturedMessage(
            reply_to=parse_addresses(["abc123@localhost"]),
            recipients=parse_addresses(["dev@example.org", "ops@example.org"]),
            subject="Build Failed",
            body="Build #42 failed",
            capture_id="first",
        )

    def test_has_recipient(self, captured):
        """Test recipient lookup."""
        assert captured.has_recipient("OPS@example.org")
        assert not captured.has_recipient("qa@example.org")

    def test_summary(self, captured):
        """Test the JSON-friendly summary."""
        assert captured.summary() == {
            "id": "first",
            "subject": "Build Failed",
            "reply_to": ["abc123@localhost"],
            "to": ["dev@example.org", "ops@example.org"],
            "body": "Build #42 failed",
        }

    def test_is_frozen(self, captured):
        """Test that messages cannot be modified."""
        with pytest.raises(ValidationError):
            captured.subject = "Build Fixed"
