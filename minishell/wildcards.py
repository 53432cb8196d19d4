"""Filename wildcard expansion of the words of a command."""

from __future__ import annotations

import os
from collections.abc import Iterator
from enum import IntEnum
from itertools import islice

from .textutil import print_error

_QUOTES = "\"'"

StrPath = "str | os.PathLike[str]"


class MatchPosition(IntEnum):
    """Where a pattern must occur inside a file name."""

    SUFFIX = 1
    PREFIX = 2
    CONTAINS = 3


def contains_wildcard(text: str | None) -> bool:
    """Return True if ``text`` holds a ``*``."""
    return bool(text) and "*" in text


def is_quoted(token: str | None) -> bool:
    """Return True if a quote in ``token`` follows a character other than a backslash."""
    if not token:
        return False
    return any(a != "\\" and b in _QUOTES for a, b in zip(token, token[1:]))


def is_dot_entry(name: str | None) -> bool:
    """Return True for the directory entries ``.`` and ``..``."""
    return name in (".", "..")


def _token_end(text: str, i: int, delims: str) -> int | None:
    n = len(text)
    while i < n:
        if text[i] in _QUOTES:
            i += 1
            while i < n and text[i] not in _QUOTES:
                i += 1
            if i >= n:
                return None
        if text[i] in delims:
            return i
        i += 1
    return None


def tokenize(text: str, delims: str) -> Iterator[str]:
    """Yield the tokens of ``text`` separated by any of ``delims``.

    Runs of delimiters are skipped, and a delimiter inside quotes does not end a
    token. An unterminated quote makes the rest of the text one token.
    """
    n = len(text)
    i = 0
    while True:
        while i < n and text[i] in delims:
            i += 1
        if i >= n:
            return
        start = i
        end = _token_end(text, i, delims)
        if end is None:
            yield text[start:]
            return
        yield text[start:end]
        i = end + 1


def has_pattern(name: str, prefix: str, suffix: str) -> bool:
    """Return True if ``name`` starts with ``prefix`` and ends with ``suffix`` without overlap."""
    return (
        len(name) >= len(prefix) + len(suffix)
        and name.startswith(prefix)
        and name.endswith(suffix)
    )


def matches_position(position: int, pattern: str, name: str) -> bool:
    """Return True if ``pattern`` occurs in ``name`` at the given position."""
    if position == MatchPosition.SUFFIX:
        return name.endswith(pattern)
    if position == MatchPosition.PREFIX:
        return name.startswith(pattern)
    if position == MatchPosition.CONTAINS:
        return pattern in name
    return False


def match_pattern(pattern: str, position: int, directory: "StrPath" = ".") -> list[str]:
    """Return the entries of ``directory`` matching ``pattern`` at ``position``.

    ``.`` and ``..`` take part only when the pattern itself starts with a dot;
    other hidden entries always take part.
    """
    include_dots = pattern.startswith(".")
    entries = [".", "..", *os.listdir(directory)]
    return [
        name
        for name in entries
        if (include_dots or not is_dot_entry(name))
        and matches_position(position, pattern, name)
    ]


def _match_middle(token: str, directory: "StrPath") -> list[str]:
    body = token[1:] if token.startswith("*") else token
    parts = list(islice(tokenize(body, "*"), 2))
    if len(parts) < 2:
        return []
    prefix, suffix = parts
    return [
        name
        for name in os.listdir(directory)
        if not is_dot_entry(name) and has_pattern(name, prefix, suffix)
    ]


def _matches(token: str, directory: "StrPath") -> list[str]:
    if token == "*":
        return [name for name in os.listdir(directory) if not name.startswith(".")]
    if token.startswith("*") and token.endswith("*"):
        pattern = token[1:].split("*", 1)[0]
        return match_pattern(pattern, MatchPosition.CONTAINS, directory)
    if token.startswith("*") and "*" not in token[1:]:
        return match_pattern(token[1:], MatchPosition.SUFFIX, directory)
    if token.endswith("*"):
        return match_pattern(token[:-1], MatchPosition.PREFIX, directory)
    return _match_middle(token, directory)


def expand_wildcard(token: str, directory: "StrPath" = ".") -> str:
    """Expand one word holding ``*`` into the sorted, space-joined matching names.

    A word without ``*``, or one that matches nothing, is returned unchanged.
    """
    if not contains_wildcard(token):
        return token
    try:
        matches = _matches(token, directory)
    except OSError as exc:
        print_error(f"opendir: {exc.strerror}\n")
        return token
    if not matches:
        return token
    return " ".join(sorted(matches))


def expand_wildcards(command: str, directory: "StrPath" = ".") -> str:
    """Expand every unquoted wildcard word of ``command``.

    A command made only of spaces is returned unchanged.
    """
    if not command.strip(" "):
        return command
    words = [
        expand_wildcard(token, directory)
        if contains_wildcard(token) and not is_quoted(token)
        else token
        for token in tokenize(command, " ")
    ]
    return " ".join(words)