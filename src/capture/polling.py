"""
Caller-side waiting and assertions for captured mail.

Mail delivery is asynchronous: right after the application under test
sends a message, the capture service may not have it yet. The core never
hides that; these helpers are the polling loop a test would otherwise
write by hand. Only "not found yet" is retried. Ambiguous matches,
transport failures and malformed records end the wait immediately.
"""

import logging
import time
from typing import Callable, Optional, Union

from common.config import PollSettings
from common.exceptions import MailAssertionError, MailNotFoundError
from common.models import Address, CapturedMessage

from .matching import (
    PatternLike,
    Predicate,
    Query,
    body_matches,
    resolve_one,
    subject_matches,
)
from .service import FingerprintLike, MailService

logger = logging.getLogger(__name__)


def wait_for_mail(
    service: MailService,
    fingerprint: FingerprintLike,
    query: Union[Query, Predicate],
    timeout: Optional[float] = None,
    interval: Optional[float] = None,
    settings: Optional[PollSettings] = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> CapturedMessage:
    """
    Poll ``service`` until exactly one run message satisfies ``query``.

    Args:
        service: Mail backend to query.
        fingerprint: The run's fingerprint or bare token.
        query: Query or plain predicate.
        timeout: Seconds to wait; defaults to ``settings.timeout``.
        interval: Seconds between queries; defaults to ``settings.interval``.
        settings: Polling defaults.
        clock: Monotonic clock, replaceable in tests.
        sleep: Sleep function, replaceable in tests.

    Returns:
        The matching message.

    Raises:
        MailNotFoundError: If nothing matched before the deadline.
        AmbiguousMatchError: As soon as more than one message matches.
        TransportError: If the capture service cannot be queried.
        MalformedRecordError: If a fetched record is malformed.
    """
    settings = settings or PollSettings()
    timeout = settings.timeout if timeout is None else timeout
    interval = settings.interval if interval is None else interval
    query = Query.of(query)

    deadline = clock() + timeout
    attempts = 0
    while True:
        attempts += 1
        result = resolve_one(service.fetch_messages_for_fingerprint(fingerprint), query)
        if result.found:
            logger.debug(
                "Found message for %s after %d attempt(s)", query.description, attempts
            )
            return result.message
        # raises on ambiguity, never retried
        result.unwrap()

        remaining = deadline - clock()
        if remaining <= 0:
            raise MailNotFoundError(
                query.description, timeout, details={"attempts": attempts}
            )
        logger.debug(
            "No message for %s yet, retrying in %.2fs", query.description, interval
        )
        sleep(min(interval, remaining))


def assert_mail(
    service: MailService,
    fingerprint: FingerprintLike,
    subject: PatternLike,
    recipient: Optional[Union[Address, str]] = None,
    body: Optional[PatternLike] = None,
    timeout: Optional[float] = None,
    interval: Optional[float] = None,
    settings: Optional[PollSettings] = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> CapturedMessage:
    """
    Assert that the run sent one message with ``subject``, and check it.

    Args:
        service: Mail backend to query.
        fingerprint: The run's fingerprint or bare token.
        subject: Regular expression searched in the subject.
        recipient: Address expected among the To recipients.
        body: Regular expression expected in the body.
        timeout: Seconds to wait for the message.
        interval: Seconds between queries.
        settings: Polling defaults.
        clock: Monotonic clock, replaceable in tests.
        sleep: Sleep function, replaceable in tests.

    Returns:
        The verified message.

    Raises:
        MailAssertionError: If the message never arrived or does not match.
        AmbiguousMatchError: If more than one message has the subject.
    """
    subject_query = subject_matches(subject)
    try:
        message = wait_for_mail(
            service,
            fingerprint,
            subject_query,
            timeout=timeout,
            interval=interval,
            settings=settings,
            clock=clock,
            sleep=sleep,
        )
    except MailNotFoundError as e:
        raise MailAssertionError(e.message, details=e.details) from e

    if recipient is not None and not message.has_recipient(recipient):
        raise MailAssertionError(
            f"Message with {subject_query.description} was not sent to {recipient}",
            details={"recipients": [str(a) for a in message.recipients]},
        )

    if body is not None:
        body_query = body_matches(body)
        if not body_query(message):
            raise MailAssertionError(
                f"Message with {subject_query.description} does not match "
                f"{body_query.description}",
                details={"body": message.body},
            )

    return message
