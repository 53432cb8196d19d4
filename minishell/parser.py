"""Turning pipeline segments into commands with words, redirections and heredocs."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from .expansion import expand_variables
from .splitting import split_words
from .textutil import only_spaces
from .wildcards import expand_wildcards

_REDIRECTIONS = ("<", ">", ">>")
_HEREDOC = "<<"
_OPERATORS = (*_REDIRECTIONS, _HEREDOC)
MISSING_FILE = "\n"


class ShellSyntaxError(Exception):
    """A command line that cannot be run; the shell's status becomes 258."""

    status = 258

    def __init__(self, message: str = "syntax error") -> None:
        super().__init__(message)


@dataclass
class Command:
    """One command of a pipeline, split into its parts.

    ``command`` holds every word after expansion; ``words`` are the arguments,
    ``tokens`` the operators in order, ``files`` the redirection targets (a
    missing target is ``"\\n"``) and ``limiters`` the unexpanded heredoc
    delimiters. ``status`` is the exit status seen when it was parsed.
    """

    command: list[str]
    words: list[str] = field(default_factory=list)
    tokens: list[str] = field(default_factory=list)
    files: list[str] = field(default_factory=list)
    limiters: list[str] = field(default_factory=list)
    not_expanded: list[str] = field(default_factory=list)
    status: int = 0
    heredoc_fds: list[int] = field(default_factory=list)


def is_redirection(item: str) -> bool:
    """Return True for the file redirection operators ``<``, ``>`` and ``>>``."""
    return item in _REDIRECTIONS


def is_heredoc(item: str) -> bool:
    """Return True for the heredoc operator ``<<``."""
    return item == _HEREDOC


def count_heredocs(items: Iterable[str] | None) -> int:
    """Count the heredoc operators in ``items``."""
    return sum(1 for item in items or () if is_heredoc(item))


def count_tokens(items: Iterable[str] | None) -> int:
    """Count the redirection and heredoc operators in ``items``."""
    return sum(1 for item in items or () if item in _OPERATORS)


def count_words(items: Iterable[str] | None) -> int:
    """Count the items of ``items`` that are not operators."""
    return sum(1 for item in items or () if item not in _OPERATORS)


def _count_unescaped(segments: Iterable[str], quote: str) -> int:
    return sum(
        1
        for segment in segments
        for j, ch in enumerate(segment)
        if ch == quote and (j == 0 or segment[j - 1] != "\\")
    )


def validate_line(segments: list[str], line: str) -> None:
    """Raise ShellSyntaxError if the line or its pipeline segments are malformed.

    A line may not start or end with ``|``, quotes must be balanced, and in a
    pipeline no segment may be blank.
    """
    if line and (line[0] == "|" or line[-1] == "|"):
        raise ShellSyntaxError()
    if _count_unescaped(segments, '"') % 2 or _count_unescaped(segments, "'") % 2:
        raise ShellSyntaxError()
    if len(segments) > 1 and any(not s or only_spaces(s) for s in segments):
        raise ShellSyntaxError()


def parse_command(
    segment: str,
    env: Iterable[str],
    status: int = 0,
    directory: str = ".",
) -> Command:
    """Expand and split one pipeline segment into a Command."""
    not_expanded = split_words(segment)
    expanded = expand_wildcards(expand_variables(segment, env, status), directory)
    items = split_words(expanded)

    words: list[str] = []
    tokens: list[str] = []
    files: list[str] = []
    limiters: list[str] = []
    n = len(items)
    i = 0
    while i < n:
        item = items[i]
        i += 1
        if is_redirection(item):
            tokens.append(item)
            if i < n:
                files.append(items[i])
                i += 1
            else:
                files.append(MISSING_FILE)
        elif is_heredoc(item):
            tokens.append(item)
            if i < n:
                limiters.append(not_expanded[i] if i < len(not_expanded) else items[i])
                i += 1
        else:
            words.append(item)

    return Command(
        command=items,
        words=words,
        tokens=tokens,
        files=files,
        limiters=limiters,
        not_expanded=not_expanded,
        status=status,
    )


def parse_commands(
    segments: Iterable[str],
    env: Iterable[str],
    status: int = 0,
    directory: str = ".",
) -> list[Command]:
    """Parse every segment of a pipeline.

    Expanding a segment resets the exit status, so only the first command sees
    ``status``; the ones after it see 0.
    """
    entries = list(env)
    commands: list[Command] = []
    for segment in segments:
        commands.append(parse_command(segment, entries, status, directory))
        status = 0
    return commands