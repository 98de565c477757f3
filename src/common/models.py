"""
Pydantic models for captured mail.

This module defines the immutable value types shared by the capture
client, the parser and the match engine. All models are frozen, so two
parses of the same record compare equal and no query can mutate a
message another query is looking at.
"""

import secrets
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# secrets.token_hex produces 2x hex chars
FINGERPRINT_TOKEN_BYTES = 8
DEFAULT_FINGERPRINT_DOMAIN = "localhost"


class FrozenModel(BaseModel):
    """Base model for all immutable value types."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
    )


class Address(FrozenModel):
    """A parsed mail address.

    Built by ``capture.addresses.parse_address``; constructing one directly
    skips syntax validation.
    """

    local_part: str = Field(..., min_length=1, description="Part before the @")
    domain: str = Field(..., min_length=1, description="Part after the @")
    raw: str = Field(..., description="Address text as captured")
    display_name: Optional[str] = Field(None, description="Display name, if any")

    @property
    def address(self) -> str:
        """The bare ``local@domain`` form."""
        return f"{self.local_part}@{self.domain}"

    def matches(self, other: "Address | str") -> bool:
        """
        Compare the bare address, ignoring case and display name.

        Args:
            other: Address or ``local@domain`` string.

        Returns:
            True if both denote the same mailbox.
        """
        text = other.address if isinstance(other, Address) else other.strip()
        return self.address.lower() == text.lower()

    def __str__(self) -> str:
        return self.raw


class CapturedMessage(FrozenModel):
    """Canonical view of one message held by the capture service."""

    reply_to: tuple[Address, ...] = Field(
        default=(), description="Reply-To addresses, in header order"
    )
    recipients: tuple[Address, ...] = Field(
        default=(), description="To addresses, in header order"
    )
    subject: str = Field(..., description="First Subject header value")
    body: str = Field(..., description="Text of the first MIME part")
    capture_id: Optional[str] = Field(
        None, description="Capture service record ID"
    )

    def has_recipient(self, address: "Address | str") -> bool:
        """Check whether ``address`` is among the To recipients."""
        return any(recipient.matches(address) for recipient in self.recipients)

    def summary(self) -> dict[str, object]:
        """Return a JSON-friendly summary for logging and the CLI."""
        return {
            "id": self.capture_id,
            "subject": self.subject,
            "reply_to": [str(a) for a in self.reply_to],
            "to": [str(a) for a in self.recipients],
            "body": self.body,
        }


class Fingerprint(FrozenModel):
    """Per-run correlation token.

    The mail transport of the application under test is configured with
    ``reply_to`` as its reply-to address, so every message sent during the
    run carries the token.
    """

    token: str = Field(..., min_length=1, description="Opaque run token")
    domain: str = Field(
        default=DEFAULT_FINGERPRINT_DOMAIN,
        min_length=1,
        description="Domain of the reply-to address",
    )

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        """Reject tokens that cannot be an address local part."""
        if "@" in v or any(ch.isspace() for ch in v):
            raise ValueError("Token must not contain '@' or whitespace")
        return v

    @classmethod
    def generate(
        cls,
        domain: str = DEFAULT_FINGERPRINT_DOMAIN,
        nbytes: int = FINGERPRINT_TOKEN_BYTES,
    ) -> "Fingerprint":
        """
        Create a fingerprint with a random token.

        Args:
            domain: Domain used for the reply-to address.
            nbytes: Random bytes in the token.

        Returns:
            A new Fingerprint.
        """
        return cls(token=secrets.token_hex(nbytes), domain=domain)

    @property
    def reply_to(self) -> str:
        """Reply-to address to configure on the mail transport under test."""
        return f"{self.token}@{self.domain}"

    def __str__(self) -> str:
        return self.token
