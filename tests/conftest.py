"""
Pytest fixtures for mailcapture tests.

This module provides common fixtures used across test modules: builders
for MailHog listing records and isolation from the developer's
environment variables.
"""

import os
import sys
from typing import Any, Optional

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from common.config import get_settings  # noqa: E402

CONFIG_ENV_PREFIXES = ("MAILHOG_", "MAILCAPTURE_", "LOG_")


def build_record(
    reply_to: Optional[list[Any]] = None,
    to: Optional[list[Any]] = None,
    subject: Any = "Build Failed",
    body: Any = "Build #42 failed",
    record_id: Optional[str] = None,
) -> dict[str, Any]:
    """Build a MailHog listing record with the fields the parser consumes."""
    record: dict[str, Any] = {
        "Content": {
            "Headers": {
                "Reply-To": ["run@localhost"] if reply_to is None else reply_to,
                "To": ["dev@example.org"] if to is None else to,
                "Subject": [subject],
            },
            "Body": body,
        },
        "MIME": {"Parts": [{"Headers": {}, "Body": body}]},
    }
    if record_id is not None:
        record["ID"] = record_id
    return record


@pytest.fixture
def make_record():
    """Provide the record builder to tests."""
    return build_record


@pytest.fixture
def build_failed_items():
    """Two 'Build Failed' records from two concurrent runs."""
    return [
        build_record(reply_to=["abc123@localhost"], subject="Build Failed",
                     record_id="first"),
        build_record(reply_to=["xyz999@localhost"], subject="Build Failed",
                     record_id="second"),
    ]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep configuration environment variables out of the tests."""
    for name in list(os.environ):
        if name.startswith(CONFIG_ENV_PREFIXES):
            monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
