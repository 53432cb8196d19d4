"""Expansion of ``$NAME`` and ``$?`` references in a command line."""

from __future__ import annotations

from collections.abc import Iterable

from .textutil import is_name_char


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def skip_to_dollar(command: str, i: int) -> int:
    """Return the index of the next ``$`` that may be expanded, starting at ``i``.

    Text inside single quotes is skipped until a double quote has been seen;
    from then on single quotes no longer protect anything. The end of the text
    is returned when no such ``$`` remains.
    """
    n = len(command)
    in_double = False
    while i < n and command[i] != "$":
        if command[i] == '"':
            in_double = True
        if command[i] == "'" and not in_double:
            i += 1
            while i < n and command[i] != "'":
                i += 1
        i = min(i + 1, n)
        if i < n and command[i] == '"' and in_double:
            i += 1
            while i < n and command[i] != '"':
                i += 1
    return i


def extract_var_name(command: str, i: int) -> tuple[str, int]:
    """Read the variable name starting at ``i``, just after a ``$``.

    Returns the name and the index following it. A name starting with a digit
    yields an empty name and does not advance. When no name character follows,
    the ``$`` and the next character are returned as a pseudo-name (``"$"``
    alone at the end of the text).
    """
    n = len(command)
    start = i
    while i < n and (is_name_char(command[i]) or command[i] == "?"):
        if _is_digit(command[start]):
            return "", start
        i += 1
    if i == start:
        following = min(start + 1, n)
        if start + 1 < n:
            return "$" + command[start], following
        return "$", following
    return command[start:i], i


def get_variable(name: str, env: Iterable[str]) -> str | None:
    """Return the value of ``name`` in ``env`` entries, or None if it is unset.

    The pseudo-names ``"$"`` and ``"$ "`` stand for themselves.
    """
    if name in ("$", "$ "):
        return name
    prefix = name + "="
    for entry in env:
        if entry.startswith(prefix):
            return entry[len(prefix):]
    return None


def _replace_var(name: str, env: list[str], status: int) -> str:
    if name.startswith("?"):
        return f"{status}{name[1:]}"
    value = get_variable(name, env)
    return value if value is not None else ""


def _literal_run(command: str, i: int) -> tuple[str, int]:
    """Take the text from ``i`` up to the next expandable ``$``."""
    n = len(command)
    origin = i
    start = i
    if i > 0 and command[i - 1] == "$" and (_is_digit(command[i]) or command[i] == "@"):
        start += 1
    i = skip_to_dollar(command, i)
    if i < n and command[i] == "$" and i + 1 >= n:
        i += 1
    if i == origin and i < n:
        # An escaped '$' is kept as a literal character.
        i += 1
    return command[start:i], i


def expand_variables(command: str, env: Iterable[str], status: int = 0) -> str:
    """Replace variable references in ``command`` with their values.

    ``$?`` becomes ``status``; unset variables vanish; a ``$`` preceded by a
    backslash is kept. Expanding a command resets the shell's exit status to
    0, which callers are expected to apply.
    """
    entries = list(env)
    n = len(command)
    parts: list[str] = []
    i = 0
    while i < n:
        if command[0] == "$" or (command[i] == "$" and i > 0 and command[i - 1] != "\\"):
            name, i = extract_var_name(command, i + 1)
            parts.append(_replace_var(name, entries, status))
        else:
            text, i = _literal_run(command, i)
            parts.append(text)
    return "".join(parts)