"""Shared CLI helpers."""

import logging
import os
import sys

from gantry.constants import BOLD, RED, RESET


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(name)s %(levelname)s: %(message)s",
    )


def supports_color() -> bool:
    """Return whether ANSI color output should be used on stderr."""
    if os.getenv("NO_COLOR") is not None:
        return False
    if os.getenv("TERM", "").lower() == "dumb":
        return False
    return sys.stderr.isatty()


def print_error(message: str) -> None:
    """Print a fatal error line to stderr."""
    if supports_color():
        print(f"{BOLD}{RED}Error:{RESET} {message}", file=sys.stderr)
    else:
        print(f"Error: {message}", file=sys.stderr)
