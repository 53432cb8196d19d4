"""File redirections and heredocs for the commands of a pipeline."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable, Iterable

from .expansion import expand_variables
from .parser import MISSING_FILE, Command

HEREDOC_PATH = "/tmp/heredoc"
_OPERATORS = ("<", ">", ">>", "<<")
_FILE_MODES = {
    "<": (os.O_RDONLY, 0),
    ">": (os.O_CREAT | os.O_WRONLY | os.O_TRUNC, 1),
    ">>": (os.O_CREAT | os.O_WRONLY | os.O_APPEND, 1),
}

Reader = Callable[[str], "str | None"]


class RedirectionError(Exception):
    """A redirection or heredoc that could not be set up."""

    def __init__(self, message: str = "", status: int = 1) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


def count_redirect_files(files: Iterable[str] | None) -> int:
    """Count the redirection targets that are present (not the missing-file marker)."""
    return sum(1 for name in files or () if name != MISSING_FILE)


def count_redirect_tokens(tokens: Iterable[str] | None) -> int:
    """Count the operators that need a file, i.e. every one but ``<<``."""
    return sum(1 for token in tokens or () if token != "<<")


def has_misplaced_operator(commands: Iterable[Command]) -> bool:
    """Return True if an operator stands where a redirection target belongs."""
    return any(name in _OPERATORS for command in commands for name in command.files)


def _flush_stdio() -> None:
    for stream in (sys.stdout, sys.stderr):
        try:
            stream.flush()
        except (OSError, ValueError):
            pass


def apply_redirections(command: Command) -> bool:
    """Point standard input and output at the command's files and heredocs.

    Returns False when the command has no operators. Raises RedirectionError
    when the files do not match the operators or one cannot be opened.
    """
    tokens = command.tokens
    if not tokens:
        return False
    if count_redirect_tokens(tokens) != count_redirect_files(command.files):
        raise RedirectionError("Error with the file")
    _flush_stdio()
    files = iter(command.files)
    heredocs = iter(command.heredoc_fds)
    for token in tokens:
        if token in _FILE_MODES:
            flags, target_fd = _FILE_MODES[token]
            try:
                fd = os.open(next(files), flags, 0o644)
            except OSError as exc:
                raise RedirectionError(f"open: {exc.strerror}") from exc
            try:
                os.dup2(fd, target_fd)
            except OSError as exc:
                raise RedirectionError(f"dup2: {exc.strerror}") from exc
            finally:
                os.close(fd)
        elif token == "<<":
            fd = next(heredocs, None)
            if fd is not None:
                os.dup2(fd, 0)
    return True


def _prompt_reader(prompt: str) -> str | None:
    try:
        return input(prompt)
    except EOFError:
        return None


def read_heredoc(
    limiter: str | None,
    env: Iterable[str],
    status: int = 0,
    reader: Reader | None = None,
    path: str | os.PathLike[str] = HEREDOC_PATH,
) -> int:
    """Read lines up to ``limiter`` into ``path`` and return a descriptor to read them.

    Each line has its variables expanded. End of input also ends the heredoc.
    An interrupt raises RedirectionError with status 1; a missing limiter, with
    status 258.
    """
    if not limiter:
        raise RedirectionError("syntax error", status=258)
    read_line = reader if reader is not None else _prompt_reader
    entries = list(env)
    try:
        fd = os.open(path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, 0o644)
    except OSError as exc:
        raise RedirectionError(f"open: {exc.strerror}") from exc
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        while True:
            try:
                line = read_line("> ")
            except KeyboardInterrupt:
                sys.stdout.write("\n")
                sys.stdout.flush()
                raise RedirectionError("", status=1) from None
            if line is None or line == limiter:
                break
            handle.write(expand_variables(line, entries, status))
            handle.write("\n")
    try:
        return os.open(path, os.O_RDONLY)
    except OSError as exc:
        raise RedirectionError(f"open: {exc.strerror}") from exc


def preprocess_heredocs(
    commands: Iterable[Command],
    env: Iterable[str],
    status: int = 0,
    reader: Reader | None = None,
    path: str | os.PathLike[str] = HEREDOC_PATH,
) -> int:
    """Read every heredoc of the pipeline before anything runs.

    The descriptors are stored in each command's ``heredoc_fds``. Returns the
    exit status afterwards: 0 once a heredoc was read, else ``status``. Any
    failure raises RedirectionError with status 1.
    """
    entries = list(env)
    result = status
    for command in commands:
        count = sum(1 for token in command.tokens if token == "<<")
        if not count:
            continue
        result = 0
        limiters = iter(command.limiters)
        for _ in range(count):
            try:
                fd = read_heredoc(next(limiters, None), entries, result, reader, path)
            except RedirectionError as exc:
                raise RedirectionError(exc.message, status=1) from exc
            command.heredoc_fds.append(fd)
    return result