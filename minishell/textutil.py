"""Small text helpers shared by the shell: name characters, blank checks, error output."""

from __future__ import annotations

import sys

_WHITESPACE = frozenset(" \t\n\v\f\r")
_ERROR_PREFIX = "minishell: "


def is_name_char(c: str) -> bool:
    """Return True if ``c`` may appear in a variable name (ASCII letter, digit or '_')."""
    return len(c) == 1 and (c == "_" or (c.isascii() and c.isalnum()))


def only_spaces(text: str | None) -> bool:
    """Return True if ``text`` is non-empty and consists only of whitespace."""
    if not text:
        return False
    return all(ch in _WHITESPACE for ch in text)


def format_error(msg: str, cmd: str | None = None) -> str:
    """Build an error message, prefixed with the shell and command names when given."""
    if cmd is not None:
        return f"{_ERROR_PREFIX}{cmd}: {msg}"
    return msg


def print_error(msg: str, cmd: str | None = None) -> None:
    """Write an error message to standard error."""
    sys.stderr.write(format_error(msg, cmd))
    sys.stderr.flush()