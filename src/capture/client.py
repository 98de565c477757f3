"""
HTTP client for the MailHog message listing.

``CaptureClient`` performs exactly one GET per call and returns the raw
``items`` array. It never retries and never caches: every call observes
the capture service's current snapshot, and every failure surfaces as a
``TransportError`` so that an unreachable service is never mistaken for
"no mail yet".
"""

import logging
from typing import Any, Optional

import requests

from common.config import CaptureSettings
from common.exceptions import TransportError

logger = logging.getLogger(__name__)


class CaptureClient:
    """
    Client for a capture service's message listing endpoint.

    Holds only its immutable settings, so one instance may be used from
    several threads at once.
    """

    def __init__(self, settings: Optional[CaptureSettings] = None) -> None:
        """
        Initialize the client.

        Args:
            settings: Capture service connection settings. Defaults are
                loaded from the environment when omitted.
        """
        self.settings = settings or CaptureSettings()

    @property
    def url(self) -> str:
        """The message listing URL queried by ``fetch_all``."""
        return self.settings.messages_url

    def fetch_all(self) -> list[Any]:
        """
        Fetch every message record currently held by the capture service.

        Returns:
            The ``items`` array of the listing, unparsed.

        Raises:
            TransportError: On connection failure, a non-success HTTP
                status, an undecodable body, or a body without ``items``.
        """
        url = self.url
        logger.debug("Fetching captured messages from %s", url)

        try:
            response = requests.get(
                url,
                headers={"Accept": "application/json"},
                timeout=self.settings.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(url, f"request failed: {e}") from e

        if not response.ok:
            raise TransportError(
                url,
                response.reason or "unsuccessful response",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise TransportError(
                url,
                f"response body is not valid JSON: {e}",
                status_code=response.status_code,
            ) from e

        if not isinstance(payload, dict):
            raise TransportError(url, "response body is not a JSON object")

        items = payload.get("items")
        if not isinstance(items, list):
            raise TransportError(url, "response body has no 'items' array")

        logger.debug("Fetched %d captured messages from %s", len(items), url)
        return items
