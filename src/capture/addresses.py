"""
Address parsing for captured mail headers.

Header values from the capture service are plain strings such as
``build@example.org`` or ``Jenkins <build@example.org>``. This module turns
them into ``Address`` values and rejects anything that does not carry
exactly one syntactically valid local-part/domain pair.
"""

import email.errors
import email.header
import email.utils
import logging
import re
from typing import Any, Iterable

from common.exceptions import MalformedAddressError
from common.models import Address

logger = logging.getLogger(__name__)

_ATOM = r"[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]+"
_LOCAL_PART_RE = re.compile(
    rf"^(?:{_ATOM}(?:\.{_ATOM})*|\"(?:[^\"\\\r\n]|\\.)*\")$"
)

_LABEL = r"[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
# Single-label hosts such as "localhost" are accepted
_DOMAIN_RE = re.compile(rf"^(?:{_LABEL}(?:\.{_LABEL})*|\[[^\[\]\\\s]+\])$")

# Display name: quoted strings, or text free of address specials
_PHRASE_RE = re.compile(r'^(?:"(?:[^"\\]|\\.)*"|[^"<>,;:@\[\]\\])*$')


def decode_header_text(value: str) -> str:
    """
    Decode RFC 2047 encoded words in a header value.

    Args:
        value: Header text as captured.

    Returns:
        The decoded text; values without encoded words are returned as is.

    Raises:
        ValueError: If an encoded word cannot be decoded.
    """
    if "=?" not in value:
        return value
    try:
        return str(email.header.make_header(email.header.decode_header(value)))
    except (LookupError, UnicodeError, email.errors.HeaderParseError) as e:
        raise ValueError(f"undecodable encoded word: {e}") from e


def _split_angle_addr(text: str) -> tuple[str, str]:
    """Split ``Name <addr>`` into display part and address text."""
    if not text.endswith(">"):
        return "", text
    start = text.rfind("<")
    if start < 0:
        return "", text
    return text[:start].strip(), text[start + 1:-1].strip()


def parse_address(raw: Any) -> Address:
    """
    Parse one address header value.

    Args:
        raw: Address text, optionally with a display name.

    Returns:
        The parsed Address.

    Raises:
        MalformedAddressError: If the value is not exactly one valid
            local-part@domain pair, optionally with a display name.
    """
    if not isinstance(raw, str):
        raise MalformedAddressError(raw, f"expected a string, got {type(raw).__name__}")

    text = raw.strip()
    if not text:
        raise MalformedAddressError(raw, "empty address")

    parsed = email.utils.getaddresses([text])
    if len(parsed) != 1:
        raise MalformedAddressError(raw, f"expected one address, found {len(parsed)}")
    display_name, addr_spec = parsed[0]
    if not addr_spec:
        raise MalformedAddressError(raw, "no address found")

    phrase, addr_text = _split_angle_addr(text)
    if addr_spec != addr_text or not _PHRASE_RE.match(phrase):
        raise MalformedAddressError(raw, "unexpected text around the address")

    local_part, sep, domain = addr_spec.rpartition("@")
    if not sep:
        raise MalformedAddressError(raw, "missing '@'")
    if not local_part:
        raise MalformedAddressError(raw, "empty local part")
    if not domain:
        raise MalformedAddressError(raw, "empty domain")
    if not _LOCAL_PART_RE.match(local_part):
        raise MalformedAddressError(raw, f"invalid local part {local_part!r}")
    if not _DOMAIN_RE.match(domain):
        raise MalformedAddressError(raw, f"invalid domain {domain!r}")

    try:
        display_name = decode_header_text(display_name)
    except ValueError as e:
        raise MalformedAddressError(raw, f"display name: {e}") from e

    return Address(
        local_part=local_part,
        domain=domain,
        raw=text,
        display_name=display_name or None,
    )


def parse_addresses(raws: Iterable[Any]) -> tuple[Address, ...]:
    """
    Parse a sequence of address header values, failing on the first bad one.

    Args:
        raws: Address texts in header order.

    Returns:
        Parsed addresses in the same order.

    Raises:
        MalformedAddressError: Naming the index of the first invalid value.
    """
    addresses = []
    for index, raw in enumerate(raws):
        try:
            addresses.append(parse_address(raw))
        except MalformedAddressError as e:
            logger.debug("Rejected address %d: %s", index, e.reason)
            raise MalformedAddressError(raw, e.reason, index=index) from e
    return tuple(addresses)


def format_address(address: Address) -> str:
    """
    Serialize an Address back to header form.

    Args:
        address: The address to format.

    Returns:
        ``Name <local@domain>`` when a display name is set, else ``local@domain``.
    """
    if address.display_name:
        return email.utils.formataddr((address.display_name, address.address))
    return address.address
