"""Version information for mailcapture."""

__version__ = "0.1.0"

# Release information
__title__ = "mailcapture"
__description__ = "Mail capture verification for acceptance tests"
__author__ = "mailcapture contributors"
__license__ = "MIT"
__copyright__ = "Copyright 2026 mailcapture contributors"


def get_version() -> str:
    """Return the version string reported by the command-line tool."""
    return __version__
