"""Small helpers shared across the server."""

from __future__ import annotations

import re

RESET = "\033[0m"
BOLD = "\033[1m"
GREEN = "\033[32m"
CYAN = "\033[36m"
RED = "\033[31m"

_LONG_MIN = -(2**63)
_LONG_MAX = 2**63 - 1
_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1

_LEADING_INTEGER = re.compile(r"[ \t\n\v\f\r]*([+-]?[0-9]+)")


class WebservError(Exception):
    """A fatal server error with a message meant for the operator."""


def fail(message: str) -> None:
    """Raise a :class:`WebservError` carrying the server prefix."""
    raise WebservError(f"Webserv : {message}")


def is_all_digits(text: str) -> bool:
    """True when every character is an ASCII digit (also for an empty string)."""
    return all("0" <= char <= "9" for char in text)


def is_space(char: str) -> bool:
    """True for a space or a character from tab to carriage return."""
    return char == " " or "\t" <= char <= "\r"


def is_all_whitespace(text: str) -> bool:
    """True when the text holds nothing but whitespace."""
    return all(char.isspace() for char in text)


def _parse_leading_integer(text: str, low: int, high: int) -> int:
    match = _LEADING_INTEGER.match(text)
    if match is None:
        return 0
    return max(low, min(high, int(match.group(1))))


def parse_long(text: str) -> int:
    """Read a leading signed integer, clamped to 64 bits; 0 when there is none."""
    return _parse_leading_integer(text, _LONG_MIN, _LONG_MAX)


def parse_int(text: str) -> int:
    """Read a leading signed integer, clamped to 32 bits; 0 when there is none."""
    return _parse_leading_integer(text, _INT_MIN, _INT_MAX)