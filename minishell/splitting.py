"""Splitting of command lines into pipeline segments and of segments into words."""

from __future__ import annotations

_QUOTES = "\"'"
_REDIRECTS = "<>"
_DOUBLE_REDIRECTS = (">>", "<<")


def skip_quote(text: str, i: int, quote: str) -> int:
    """Return the index just past the quoted run opening at ``i``.

    A quote preceded by a backslash does not close the run. An unterminated run
    extends to the end of ``text``.
    """
    i += 1
    n = len(text)
    while i < n and (text[i] != quote or text[i - 1] == "\\"):
        i += 1
    if i < n and text[i] == quote:
        i += 1
    return i


def _skip_to_separator(text: str, sep: str, i: int) -> int:
    n = len(text)
    while i < n and text[i] != sep:
        if text[i] in _QUOTES:
            i = skip_quote(text, i, text[i])
        else:
            i += 1
    return i


def split_commands(line: str, sep: str = "|") -> list[str]:
    """Split ``line`` on ``sep`` outside quotes, keeping each segment's raw text."""
    segments: list[str] = []
    n = len(line)
    i = 0
    while i < n:
        while i < n and line[i] == sep:
            i += 1
        if i >= n:
            break
        start = i
        while i < n and line[i] != sep and line[i] in _QUOTES:
            i += 1
        if i < n and line[i] in _QUOTES:
            i = skip_quote(line, i, line[i])
        else:
            i = _skip_to_separator(line, sep, i)
        segments.append(line[start:i])
    return segments


def unquote(text: str) -> str:
    """Remove quoting and backslash escapes of quotes and backslashes."""
    out: list[str] = []
    n = len(text)
    i = 0
    while i < n:
        ch = text[i]
        if ch in _QUOTES and (i == 0 or text[i - 1] != "\\"):
            quote = ch
            i += 1
            while i < n and (text[i] != quote or text[i - 1] == "\\"):
                if text[i] == "\\" and i + 1 < n and text[i + 1] in (quote, "\\"):
                    i += 1
                out.append(text[i])
                i += 1
            if i < n and text[i] == quote:
                i += 1
        else:
            if ch == "\\" and i + 1 < n and text[i + 1] in "\"'\\":
                i += 1
            out.append(text[i])
            i += 1
    return "".join(out)


def _skip_word(text: str, i: int, sep: str) -> int:
    n = len(text)
    while i < n and text[i] != sep and text[i] not in _REDIRECTS:
        if text[i] in _QUOTES:
            i = skip_quote(text, i, text[i])
        else:
            i += 1
    return i


def split_words(text: str, sep: str = " ") -> list[str]:
    """Split ``text`` into unquoted words, making redirection operators separate words.

    A text made only of separators (or empty) yields itself as the single word.
    """
    n = len(text)
    if all(ch == sep for ch in text):
        return [text]
    words: list[str] = []
    i = 0
    while i < n:
        while i < n and text[i] == sep:
            i += 1
        if i >= n:
            break
        start = i
        if text[i] in _REDIRECTS:
            i += 2 if text[i : i + 2] in _DOUBLE_REDIRECTS else 1
        else:
            i = _skip_word(text, i, sep)
        words.append(unquote(text[start:i]))
    return words