"""
Per-run message correlation.

Several test runs commonly share one capture service. Each run configures
the mail transport under test with its fingerprint as reply-to address;
filtering on that address is the only thing separating one run's mail
from another's.
"""

import logging
from enum import Enum
from typing import Iterable, Union

from common.exceptions import InvalidFingerprintError
from common.models import Address, CapturedMessage, Fingerprint

logger = logging.getLogger(__name__)


class FingerprintMatch(str, Enum):
    """How a reply-to address is compared with the fingerprint token."""

    # Raw address text contains the token anywhere
    SUBSTRING = "substring"
    # Local part equals the token, ignoring case
    EXACT = "exact"


def _token(fingerprint: Union[Fingerprint, str]) -> str:
    if isinstance(fingerprint, Fingerprint):
        return fingerprint.token
    token = str(fingerprint)
    if not token:
        raise InvalidFingerprintError(fingerprint, "token must not be empty")
    return token


def address_matches(
    address: Address,
    fingerprint: Union[Fingerprint, str],
    mode: FingerprintMatch = FingerprintMatch.SUBSTRING,
) -> bool:
    """
    Check a single reply-to address against a fingerprint.

    Args:
        address: Reply-to address of a captured message.
        fingerprint: Fingerprint or bare token.
        mode: Comparison mode.

    Returns:
        True if the address carries the fingerprint.
    """
    token = _token(fingerprint)
    if mode == FingerprintMatch.EXACT:
        return address.local_part.lower() == token.lower()
    return token in address.raw


def is_ours(
    message: CapturedMessage,
    fingerprint: Union[Fingerprint, str],
    mode: FingerprintMatch = FingerprintMatch.SUBSTRING,
) -> bool:
    """Whether ``message`` was sent during the run owning ``fingerprint``."""
    return any(address_matches(a, fingerprint, mode) for a in message.reply_to)


def filter_by_fingerprint(
    messages: Iterable[CapturedMessage],
    fingerprint: Union[Fingerprint, str],
    mode: FingerprintMatch = FingerprintMatch.SUBSTRING,
) -> list[CapturedMessage]:
    """
    Keep only the messages belonging to one test run.

    Messages without any reply-to address never match.

    Args:
        messages: Parsed messages from one fetch.
        fingerprint: The run's fingerprint or bare token.
        mode: Comparison mode, substring containment by default.

    Returns:
        Matching messages in their original order.

    Raises:
        InvalidFingerprintError: If the token is empty.
    """
    token = _token(fingerprint)
    messages = list(messages)
    ours = [m for m in messages if is_ours(m, token, mode)]
    logger.debug(
        "Fingerprint %s (%s) kept %d of %d messages",
        token,
        mode.value,
        len(ours),
        len(messages),
    )
    return ours
