"""
Query matching over captured messages.

Two verification idioms are supported:

- single-result queries (``resolve_one``/``find_one``), where more than one
  match is an error: a test asserting "exactly one email with subject X"
  must not pass when two were sent;
- multi-result queries (``find_all``), with no uniqueness constraint.

Matching looks at one snapshot only. Waiting for a message to arrive is
the caller's job (see ``capture.polling``).
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from re import Pattern
from typing import Callable, Iterable, Optional, Union

from common.exceptions import AmbiguousMatchError
from common.models import Address, CapturedMessage

logger = logging.getLogger(__name__)

Predicate = Callable[[CapturedMessage], bool]
PatternLike = Union[str, Pattern[str]]


@dataclass(frozen=True)
class Query:
    """A reusable, stateless message predicate with a readable description."""

    predicate: Predicate
    description: str = "query"

    def __call__(self, message: CapturedMessage) -> bool:
        return bool(self.predicate(message))

    def __str__(self) -> str:
        return self.description

    @classmethod
    def of(cls, predicate: Union["Query", Predicate]) -> "Query":
        """Wrap a plain callable, leaving Query instances untouched."""
        if isinstance(predicate, Query):
            return predicate
        name = getattr(predicate, "__name__", None) or repr(predicate)
        return cls(predicate, description=name)


def _compile(pattern: PatternLike) -> Pattern[str]:
    if isinstance(pattern, str):
        return re.compile(pattern)
    return pattern


def subject_matches(pattern: PatternLike) -> Query:
    """Messages whose subject contains a match for ``pattern``."""
    compiled = _compile(pattern)
    return Query(
        lambda m: compiled.search(m.subject) is not None,
        description=f"subject ~ {compiled.pattern!r}",
    )


def body_matches(pattern: PatternLike) -> Query:
    """Messages whose body contains a match for ``pattern``."""
    compiled = _compile(pattern)
    return Query(
        lambda m: compiled.search(m.body) is not None,
        description=f"body ~ {compiled.pattern!r}",
    )


def recipient_is(address: Union[Address, str]) -> Query:
    """Messages addressed (To) to ``address``."""
    text = address.address if isinstance(address, Address) else address
    return Query(
        lambda m: m.has_recipient(address),
        description=f"to = {text!r}",
    )


def all_of(*queries: Union[Query, Predicate]) -> Query:
    """Messages satisfying every query."""
    wrapped = [Query.of(q) for q in queries]
    return Query(
        lambda m: all(q(m) for q in wrapped),
        description=" and ".join(q.description for q in wrapped) or "any message",
    )


class MatchStatus(str, Enum):
    """Outcome of a single-result query."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class MatchResult:
    """Result of a single-result query against one snapshot."""

    status: MatchStatus
    matches: tuple[CapturedMessage, ...] = ()
    description: str = "query"

    @property
    def found(self) -> bool:
        """True if exactly one message matched."""
        return self.status == MatchStatus.FOUND

    @property
    def ambiguous(self) -> bool:
        """True if more than one message matched."""
        return self.status == MatchStatus.AMBIGUOUS

    @property
    def message(self) -> Optional[CapturedMessage]:
        """The matching message, only when the status is FOUND."""
        return self.matches[0] if self.found else None

    def unwrap(self) -> Optional[CapturedMessage]:
        """
        Collapse the result to the raising convention.

        Returns:
            The message, or None if nothing matched.

        Raises:
            AmbiguousMatchError: If more than one message matched.
        """
        if self.ambiguous:
            raise AmbiguousMatchError(len(self.matches), self.description)
        return self.message


def find_all(
    messages: Iterable[CapturedMessage],
    predicate: Union[Query, Predicate],
) -> list[CapturedMessage]:
    """
    Return every message satisfying ``predicate``, order preserved.

    Args:
        messages: Messages from one snapshot.
        predicate: Query or plain callable.

    Returns:
        All matching messages.
    """
    query = Query.of(predicate)
    matches = [m for m in messages if query(m)]
    logger.debug("%s matched %d messages", query.description, len(matches))
    return matches


def resolve_one(
    messages: Iterable[CapturedMessage],
    predicate: Union[Query, Predicate],
) -> MatchResult:
    """
    Evaluate a single-result query.

    Args:
        messages: Messages from one snapshot.
        predicate: Query or plain callable.

    Returns:
        MatchResult with status FOUND, NOT_FOUND or AMBIGUOUS.
    """
    query = Query.of(predicate)
    matches = tuple(find_all(messages, query))

    if not matches:
        status = MatchStatus.NOT_FOUND
    elif len(matches) == 1:
        status = MatchStatus.FOUND
    else:
        status = MatchStatus.AMBIGUOUS
        logger.warning(
            "%s matched %d messages where one was expected",
            query.description,
            len(matches),
        )

    return MatchResult(status=status, matches=matches, description=query.description)


def find_one(
    messages: Iterable[CapturedMessage],
    predicate: Union[Query, Predicate],
) -> Optional[CapturedMessage]:
    """
    Return the single message satisfying ``predicate``.

    Args:
        messages: Messages from one snapshot.
        predicate: Query or plain callable.

    Returns:
        The matching message, or None if there is none.

    Raises:
        AmbiguousMatchError: If more than one message matches.
    """
    return resolve_one(messages, predicate).unwrap()
