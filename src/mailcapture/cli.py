#!/usr/bin/env python3
"""
Command-line interface for mailcapture.

This module provides a small diagnostic entry point for inspecting what a
capture service holds for one test run.

Usage:
    mailcapture [OPTIONS] fingerprint [--domain DOMAIN]
    mailcapture [OPTIONS] messages --fingerprint TOKEN [--subject REGEX]
                                   [--exact] [--one]

Options:
    --host HOST         Capture service host
    --api-port PORT     Capture service HTTP API port
    --config FILE       TOML configuration file
    --debug             Enable debug logging
    --version           Show version and exit
    --help              Show this message and exit
"""

import argparse
import json
import logging
import re
import sys
from typing import Optional, Sequence

from pydantic import ValidationError

from capture.fingerprint import FingerprintMatch
from capture.matching import MatchStatus, Query, find_all, resolve_one, subject_matches
from capture.service import MailHogService
from common.config import CaptureSettings, Settings, get_settings
from common.exceptions import MailCaptureError
from common.models import Fingerprint

from mailcapture import get_version

EXIT_OK = 0
EXIT_NO_MATCH = 1
EXIT_ERROR = 2


def setup_logging(level: str = "INFO", log_format: Optional[str] = None) -> None:
    """
    Configure logging for the command-line tool.

    Records go to stderr so that stdout carries only command output.

    Args:
        level: Log level name.
        log_format: Log record format.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=log_format or "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr),
        ],
    )

    if level.upper() != "DEBUG":
        logging.getLogger("urllib3").setLevel(logging.WARNING)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        argv: Arguments to parse, ``sys.argv[1:]`` when omitted.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog="mailcapture",
        description="mailcapture - inspect captured mail for a test run",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Generate a reply-to address for a new run:
        mailcapture fingerprint

    List the messages of a run:
        mailcapture messages --fingerprint 3f9a0c2e71d4b865

    Require exactly one "Build failed" message:
        mailcapture messages --fingerprint 3f9a0c2e71d4b865 \\
            --subject "Build failed" --one

Environment Variables:
    MAILHOG_HOST              Capture service host (default: localhost)
    MAILHOG_API_PORT          Capture service HTTP API port (default: 8025)
    MAILHOG_TIMEOUT           HTTP timeout in seconds
    MAILCAPTURE_CONFIG_FILE   TOML configuration file
    LOG_LEVEL                 Log level (default: INFO)
        """,
    )

    parser.add_argument("--host", help="Capture service host")
    parser.add_argument("--api-port", type=int, help="Capture service HTTP API port")
    parser.add_argument("--config", help="TOML configuration file")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"mailcapture {get_version()}",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    fingerprint_cmd = commands.add_parser(
        "fingerprint", help="Print a fresh reply-to address for a test run"
    )
    fingerprint_cmd.add_argument(
        "--domain", default="localhost", help="Domain of the reply-to address"
    )

    messages_cmd = commands.add_parser(
        "messages", help="List captured messages belonging to a test run"
    )
    messages_cmd.add_argument(
        "--fingerprint", required=True, help="Fingerprint token of the run"
    )
    messages_cmd.add_argument("--subject", help="Regular expression for the subject")
    messages_cmd.add_argument(
        "--exact",
        action="store_true",
        help="Require the reply-to local part to equal the token",
    )
    messages_cmd.add_argument(
        "--one",
        action="store_true",
        help="Require exactly one matching message",
    )

    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> Settings:
    """
    Build settings from the config file, environment and flags.

    Args:
        args: Parsed arguments.

    Returns:
        Settings with command-line overrides applied.
    """
    settings = Settings.from_toml(args.config) if args.config else get_settings()

    overrides = {}
    if args.host is not None:
        overrides["host"] = args.host
    if args.api_port is not None:
        overrides["api_port"] = args.api_port
    if overrides:
        capture = CaptureSettings(**{**settings.capture.model_dump(), **overrides})
        settings = settings.model_copy(update={"capture": capture})
    return settings


def run_fingerprint(args: argparse.Namespace) -> int:
    """Print a new fingerprint's reply-to address."""
    print(Fingerprint.generate(domain=args.domain).reply_to)
    return EXIT_OK


def run_messages(args: argparse.Namespace, settings: Settings) -> int:
    """List or resolve the run's captured messages."""
    logger = logging.getLogger(__name__)

    mode = FingerprintMatch.EXACT if args.exact else FingerprintMatch.SUBSTRING
    service = MailHogService(settings.capture, match_mode=mode)
    messages = service.fetch_messages_for_fingerprint(args.fingerprint)

    query = subject_matches(args.subject) if args.subject else Query(
        lambda m: True, description="any message"
    )

    if args.one:
        result = resolve_one(messages, query)
        if result.status != MatchStatus.FOUND:
            logger.error(
                "Expected one message for %s, got %d",
                query.description,
                len(result.matches),
            )
            print(json.dumps([m.summary() for m in result.matches], indent=2))
            return EXIT_NO_MATCH
        print(json.dumps(result.message.summary(), indent=2))
        return EXIT_OK

    matches = find_all(messages, query)
    print(json.dumps([m.summary() for m in matches], indent=2))
    return EXIT_OK if matches else EXIT_NO_MATCH


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point for the mailcapture command.

    Args:
        argv: Arguments to parse, ``sys.argv[1:]`` when omitted.

    Returns:
        Exit code (0 for success, 1 when nothing matched, 2 on errors).
    """
    args = parse_args(argv)
    logger = logging.getLogger(__name__)

    try:
        settings = load_settings(args)
    except (MailCaptureError, ValidationError) as e:
        setup_logging("DEBUG" if args.debug else "INFO")
        logger.error("Invalid configuration: %s", e)
        return EXIT_ERROR

    setup_logging(
        "DEBUG" if args.debug else settings.logging.level,
        settings.logging.format,
    )
    logger.debug("mailcapture v%s", get_version())

    if args.command == "fingerprint":
        return run_fingerprint(args)

    try:
        return run_messages(args, settings)
    except re.error as e:
        logger.error("Invalid subject pattern: %s", e)
        return EXIT_ERROR
    except MailCaptureError as e:
        logger.error("%s", e)
        return EXIT_ERROR
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
