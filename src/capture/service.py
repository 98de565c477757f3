"""
Mail service capability for acceptance tests.

A test harness needs one thing from a mail backend: the messages that
belong to the current run. ``MailService`` is that capability;
``MailHogService`` implements it on top of a MailHog capture service by
composing the capture client, the record parser and the fingerprint
filter. Other backends implement the same protocol instead of
subclassing.

Example:
    >>> service = MailHogService(CaptureSettings(host="mailhog"))
    >>> fingerprint = Fingerprint.generate()
    >>> # configure the application's mailer with fingerprint.reply_to,
    >>> # trigger the email, then:
    >>> service.get_mail(fingerprint, "Build failed")
"""

from typing import Optional, Protocol, Union, runtime_checkable

from common.config import CaptureSettings
from common.models import CapturedMessage, Fingerprint

from .client import CaptureClient
from .fingerprint import FingerprintMatch, filter_by_fingerprint
from .matching import (
    MatchResult,
    PatternLike,
    Predicate,
    Query,
    find_all,
    resolve_one,
    subject_matches,
)
from .parser import MessageParser

FingerprintLike = Union[Fingerprint, str]


@runtime_checkable
class MailService(Protocol):
    """Anything that can list the captured messages of one test run."""

    def fetch_messages_for_fingerprint(
        self, fingerprint: FingerprintLike
    ) -> list[CapturedMessage]:
        ...


class MailHogService:
    """
    ``MailService`` backed by a MailHog capture service.

    Every call performs its own fetch, parse and filter; nothing is cached
    and the instance holds only immutable collaborators, so one service can
    serve concurrent test runs that pass different fingerprints.
    """

    def __init__(
        self,
        settings: Optional[CaptureSettings] = None,
        client: Optional[CaptureClient] = None,
        parser: Optional[MessageParser] = None,
        match_mode: FingerprintMatch = FingerprintMatch.SUBSTRING,
    ) -> None:
        """
        Initialize the service.

        Args:
            settings: Capture service settings, used when no client is given.
            client: Pre-built capture client.
            parser: Record parser.
            match_mode: How reply-to addresses are compared with fingerprints.
        """
        self.client = client or CaptureClient(settings)
        self.parser = parser or MessageParser()
        self.match_mode = match_mode

    @property
    def settings(self) -> CaptureSettings:
        """Settings of the underlying capture client."""
        return self.client.settings

    def fetch_messages_for_fingerprint(
        self, fingerprint: FingerprintLike
    ) -> list[CapturedMessage]:
        """
        Fetch the current snapshot and keep the run's messages.

        Args:
            fingerprint: The run's fingerprint or bare token.

        Returns:
            Messages whose reply-to carries the fingerprint.

        Raises:
            TransportError: If the capture service cannot be queried.
            MalformedRecordError: If any fetched record is malformed.
        """
        records = self.client.fetch_all()
        messages = self.parser.parse_all(records)
        return filter_by_fingerprint(messages, fingerprint, self.match_mode)

    def get_all_mails(self, fingerprint: FingerprintLike) -> list[CapturedMessage]:
        """Alias of ``fetch_messages_for_fingerprint``."""
        return self.fetch_messages_for_fingerprint(fingerprint)

    def find_mail(
        self,
        fingerprint: FingerprintLike,
        query: Union[Query, Predicate],
    ) -> MatchResult:
        """
        Evaluate a single-result query against the run's messages.

        Args:
            fingerprint: The run's fingerprint or bare token.
            query: Query or plain predicate.

        Returns:
            MatchResult describing FOUND, NOT_FOUND or AMBIGUOUS.
        """
        return resolve_one(self.fetch_messages_for_fingerprint(fingerprint), query)

    def find_mails(
        self,
        fingerprint: FingerprintLike,
        query: Union[Query, Predicate],
    ) -> list[CapturedMessage]:
        """Return every run message satisfying ``query``."""
        return find_all(self.fetch_messages_for_fingerprint(fingerprint), query)

    def get_mail(
        self, fingerprint: FingerprintLike, subject: PatternLike
    ) -> Optional[CapturedMessage]:
        """
        Return the run's message whose subject matches ``subject``.

        Args:
            fingerprint: The run's fingerprint or bare token.
            subject: Regular expression searched in the subject.

        Returns:
            The message, or None if nothing matched yet.

        Raises:
            AmbiguousMatchError: If more than one message matches.
        """
        return self.find_mail(fingerprint, subject_matches(subject)).unwrap()
