#!/usr/bin/env python3
"""
Allow running mailcapture as a module: python -m mailcapture

This enables the following usage:
    python -m mailcapture [OPTIONS] COMMAND

Which is equivalent to:
    mailcapture [OPTIONS] COMMAND
"""

from mailcapture.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
