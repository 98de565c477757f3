"""
Tests for the capture service HTTP client.

Tests cover:
- Endpoint construction from settings
- Successful listing fetches
- Transport, status and decoding failures
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from capture.client import CaptureClient
from common.config import CaptureSettings
from common.exceptions import TransportError


def make_response(status_code=200, payload=None, json_error=None, reason="OK"):
    """Build a stand-in for requests.Response."""
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.ok = status_code < 400
    response.reason = reason
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def client():
    """Client pointed at a MailHog on mailhog:8025."""
    return CaptureClient(CaptureSettings(host="mailhog", api_port=8025, timeout=5))


# =============================================================================
# Successful Fetch Tests
# =============================================================================

class TestFetchAll:
    """Tests for successful fetches."""

    def test_default_url(self):
        """Test that defaults point at a local MailHog."""
        assert CaptureClient().url == "http://localhost:8025/api/v2/messages"

    def test_returns_items(self, client, build_failed_items):
        """Test that the items array is returned unparsed."""
        payload = {"total": 2, "count": 2, "start": 0, "items": build_failed_items}

        with patch("capture.client.requests.get",
                   return_value=make_response(payload=payload)) as mock_get:
            items = client.fetch_all()

        assert items == build_failed_items
        mock_get.assert_called_once()
        args, kwargs = mock_get.call_args
        assert args[0] == "http://mailhog:8025/api/v2/messages"
        assert kwargs["timeout"] == 5

    def test_every_call_refetches(self, client):
        """Test that nothing is cached between calls."""
        responses = [
            make_response(payload={"items": []}),
            make_response(payload={"items": [{"ID": "new"}]}),
        ]

        with patch("capture.client.requests.get", side_effect=responses) as mock_get:
            first = client.fetch_all()
            second = client.fetch_all()

        assert first == []
        assert second == [{"ID": "new"}]
        assert mock_get.call_count == 2


# =============================================================================
# Failure Tests
# =============================================================================

class TestFetchFailures:
    """Tests for failures surfacing as TransportError."""

    def test_connection_failure(self, client):
        """Test that a connection error is not mistaken for no mail."""
        with patch("capture.client.requests.get",
                   side_effect=requests.ConnectionError("refused")):
            with pytest.raises(TransportError) as exc_info:
                client.fetch_all()

        assert exc_info.value.url == client.url
        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)

    def test_timeout(self, client):
        """Test that a timeout surfaces as a transport error."""
        with patch("capture.client.requests.get",
                   side_effect=requests.Timeout("slow")):
            with pytest.raises(TransportError):
                client.fetch_all()

    def test_error_status(self, client):
        """Test that a non-success status is reported with its code."""
        response = make_response(status_code=503, reason="Service Unavailable")

        with patch("capture.client.requests.get", return_value=response):
            with pytest.raises(TransportError) as exc_info:
                client.fetch_all()

        assert exc_info.value.status_code == 503
        assert "503" in str(exc_info.value)

    def test_invalid_json(self, client):
        """Test that an undecodable body is a transport error."""
        response = make_response(json_error=ValueError("Expecting value"))

        with patch("capture.client.requests.get", return_value=response):
            with pytest.raises(TransportError, match="not valid JSON"):
                client.fetch_all()

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            {"total": 0},
            {"items": None},
            {"items": {"not": "a list"}},
        ],
    )
    def test_missing_items(self, client, payload):
        """Test that a body without an items array is rejected."""
        with patch("capture.client.requests.get",
                   return_value=make_response(payload=payload)):
            with pytest.raises(TransportError):
                client.fetch_all()
