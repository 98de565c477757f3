"""
Capture record parser for mailcapture.

This module converts the JSON records returned by the MailHog message
listing into canonical ``CapturedMessage`` values. A record that lacks
any of the consumed fields is rejected outright instead of being filled
with empty defaults, so callers can tell "no Reply-To" apart from "the
record did not have the expected shape".

Consumed fields::

    Content.Headers.Reply-To   list of address strings
    Content.Headers.To         list of address strings
    Content.Headers.Subject    list of strings, first one is used (RFC 2047
                               encoded words are decoded)
    MIME.Parts[0].Body         string
"""

import logging
from typing import Any, Iterable, Optional

from common.exceptions import MalformedAddressError, MalformedRecordError
from common.models import CapturedMessage

from .addresses import decode_header_text, parse_addresses

logger = logging.getLogger(__name__)

REPLY_TO_HEADER = "Reply-To"
TO_HEADER = "To"
SUBJECT_HEADER = "Subject"


class MessageParser:
    """
    Parser for MailHog message records.

    The parser is stateless; a single instance can be shared freely.
    """

    def parse(self, record: Any) -> CapturedMessage:
        """
        Parse one capture record.

        Args:
            record: One element of the listing's ``items`` array.

        Returns:
            CapturedMessage built from the record.

        Raises:
            MalformedRecordError: If a consumed field is missing or mistyped.
        """
        headers = self._headers(record)

        reply_to = self._address_header(headers, REPLY_TO_HEADER)
        recipients = self._address_header(headers, TO_HEADER)
        subject = self._subject(headers)
        body = self._body(record)

        capture_id = record.get("ID")
        message = CapturedMessage(
            reply_to=reply_to,
            recipients=recipients,
            subject=subject,
            body=body,
            capture_id=capture_id if isinstance(capture_id, str) else None,
        )

        logger.debug(
            "Parsed capture record: id=%s, subject=%r, reply_to=%d, to=%d",
            message.capture_id,
            message.subject,
            len(message.reply_to),
            len(message.recipients),
        )
        return message

    def parse_all(self, records: Iterable[Any]) -> list[CapturedMessage]:
        """
        Parse a fetched batch, aborting on the first malformed record.

        Args:
            records: The listing's ``items`` array.

        Returns:
            Parsed messages in listing order.

        Raises:
            MalformedRecordError: Carrying the index of the failing record.
        """
        messages = []
        for index, record in enumerate(records):
            try:
                messages.append(self.parse(record))
            except MalformedRecordError as e:
                raise MalformedRecordError(
                    e.field, e.reason, index=index, details=e.details
                ) from e
        return messages

    def _headers(self, record: Any) -> dict[str, Any]:
        """Return ``Content.Headers`` or fail."""
        if not isinstance(record, dict):
            raise MalformedRecordError(
                "<record>", f"expected an object, got {type(record).__name__}"
            )
        content = _require(record, "Content", dict, "Content")
        return _require(content, "Headers", dict, "Content.Headers")

    def _address_header(self, headers: dict[str, Any], name: str) -> tuple:
        """Parse an address list header."""
        path = f"Content.Headers.{name}"
        values = _require(headers, name, list, path)
        try:
            return parse_addresses(values)
        except MalformedAddressError as e:
            raise MalformedRecordError(
                f"{path}[{e.index}]", e.reason, details={"value": e.raw}
            ) from e

    def _subject(self, headers: dict[str, Any]) -> str:
        """Return the first Subject header value."""
        path = f"Content.Headers.{SUBJECT_HEADER}"
        values = _require(headers, SUBJECT_HEADER, list, path)
        if not values:
            raise MalformedRecordError(path, "header has no values")
        subject = values[0]
        if not isinstance(subject, str):
            raise MalformedRecordError(
                f"{path}[0]", f"expected a string, got {type(subject).__name__}"
            )
        try:
            return decode_header_text(subject)
        except ValueError as e:
            raise MalformedRecordError(f"{path}[0]", str(e)) from e

    def _body(self, record: dict[str, Any]) -> str:
        """Return the text of the first MIME part."""
        mime = _require(record, "MIME", dict, "MIME")
        parts = _require(mime, "Parts", list, "MIME.Parts")
        if not parts:
            raise MalformedRecordError("MIME.Parts", "no MIME parts")
        first = parts[0]
        if not isinstance(first, dict):
            raise MalformedRecordError(
                "MIME.Parts[0]", f"expected an object, got {type(first).__name__}"
            )
        return _require(first, "Body", str, "MIME.Parts[0].Body")


def _require(node: dict[str, Any], key: str, kind: type, path: str) -> Any:
    """Fetch ``node[key]`` and check its JSON type."""
    if key not in node:
        raise MalformedRecordError(path, "field is missing")
    value = node[key]
    if not isinstance(value, kind):
        raise MalformedRecordError(
            path,
            f"expected {_json_type(kind)}, got {_json_type(type(value))}",
        )
    return value


def _json_type(kind: Optional[type]) -> str:
    """Name a Python type the way it appears in JSON."""
    return {
        dict: "object",
        list: "array",
        str: "string",
        type(None): "null",
        bool: "boolean",
        int: "number",
        float: "number",
    }.get(kind, getattr(kind, "__name__", str(kind)))


_default_parser = MessageParser()


def parse_record(record: Any) -> CapturedMessage:
    """Parse one capture record with a shared parser instance."""
    return _default_parser.parse(record)


def parse_records(records: Iterable[Any]) -> list[CapturedMessage]:
    """Parse a fetched batch with a shared parser instance."""
    return _default_parser.parse_all(records)
