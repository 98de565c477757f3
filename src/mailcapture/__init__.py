"""mailcapture - Mail capture verification for acceptance tests."""

from mailcapture.__version__ import (
    __author__,
    __copyright__,
    __description__,
    __license__,
    __title__,
    __version__,
    get_version,
)

__all__ = [
    "__version__",
    "__title__",
    "__description__",
    "__author__",
    "__license__",
    "__copyright__",
    "get_version",
]
