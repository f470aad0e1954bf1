"""Console output helpers."""

import os
import sys

# Colors for output
GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
CYAN = "\033[96m"
GREY = "\033[90m"
WHITE = "\033[97m"
RESET = "\033[0m"
CHECK = "✓"
WARN = "⚠"

RULE_WIDTH = 80


def _use_color(stream) -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    return hasattr(stream, "isatty") and stream.isatty()


def paint(text: str, color: str, stream=None) -> str:
    """Wrap text in an ANSI color when writing to a terminal."""
    if not _use_color(stream or sys.stdout):
        return text
    return f"{color}{text}{RESET}"


def line(text: str = "", color: str = WHITE) -> None:
    print(paint(text, color))


def field(label: str, value: object, color: str = WHITE) -> None:
    """Print ``Label: value`` with a colored value."""
    print(f"{paint(label + ':', WHITE)} {paint(str(value), color)}")


def rule() -> None:
    print(paint("─" * RULE_WIDTH, GREY))


def error(message: str) -> None:
    print(f"{paint('Error:', RED, sys.stderr)} {message}", file=sys.stderr)


def hint(text: str, color: str = YELLOW) -> None:
    print(paint(text, color, sys.stderr), file=sys.stderr)


STATUS_COLORS = {
    "SUCCESS": GREEN,
    "PENDING": YELLOW,
    "PENDING_DEPOSIT": YELLOW,
    "PROCESSING": YELLOW,
    "FAILED": RED,
    "ERROR": RED,
}


def status_color(status: str) -> str:
    return STATUS_COLORS.get(status.upper(), GREY)
