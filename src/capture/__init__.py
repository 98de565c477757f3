"""
Mail capture verification for acceptance tests.

This package queries a mail-capture service (MailHog), rebuilds captured
messages from its JSON listing, keeps the messages that belong to the
current test run and answers single- and multi-result queries over them.
"""

from .addresses import (
    decode_header_text,
    format_address,
    parse_address,
    parse_addresses,
)
from .client import CaptureClient
from .fingerprint import (
    FingerprintMatch,
    address_matches,
    filter_by_fingerprint,
    is_ours,
)
from .matching import (
    MatchResult,
    MatchStatus,
    Query,
    all_of,
    body_matches,
    find_all,
    find_one,
    recipient_is,
    resolve_one,
    subject_matches,
)
from .parser import MessageParser, parse_record, parse_records
from .polling import assert_mail, wait_for_mail
from .service import MailHogService, MailService

__all__ = [
    "CaptureClient",
    "FingerprintMatch",
    "MailHogService",
    "MailService",
    "MatchResult",
    "MatchStatus",
    "MessageParser",
    "Query",
    "address_matches",
    "all_of",
    "assert_mail",
    "body_matches",
    "decode_header_text",
    "filter_by_fingerprint",
    "find_all",
    "find_one",
    "format_address",
    "is_ours",
    "parse_address",
    "parse_addresses",
    "parse_record",
    "parse_records",
    "recipient_is",
    "resolve_one",
    "subject_matches",
    "wait_for_mail",
]
