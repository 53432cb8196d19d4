"""Running parsed commands: builtins in the shell, everything else in child processes."""

from __future__ import annotations

import os
import signal
import stat
import sys
import threading
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from typing import NoReturn, TextIO

from .builtins import ShellExit, is_builtin, run_builtin
from .env import ShellState
from .parser import Command, ShellSyntaxError
from .redirection import (
    RedirectionError,
    apply_redirections,
    has_misplaced_operator,
    preprocess_heredocs,
)
from .splitting import split_words
from .textutil import format_error, only_spaces, print_error


class CommandError(Exception):
    """A command that cannot be started; ``status`` is the exit status it yields."""

    def __init__(self, message: str, command: str | None = None, status: int = 127) -> None:
        super().__init__(format_error(message, command))
        self.message = message
        self.command = command
        self.status = status


def path_variable(env: Iterable[str]) -> list[str] | None:
    """Return the directories listed in the first ``PATH`` entry, or None."""
    for entry in env:
        if entry.startswith("PATH"):
            return split_words(entry[5:], ":")
    return None


def find_command_path(command: str | None, env: Iterable[str]) -> str | None:
    """Locate ``command``: as given when it starts with ``/`` or ``./``, else on PATH.

    Raises CommandError when an explicit path does not exist.
    """
    if not command:
        return None
    if command.startswith("/") or command.startswith("./"):
        if os.access(command, os.F_OK):
            return command
        raise CommandError("No such file or directory", command, 127)
    directories = path_variable(env)
    if directories is None:
        return None
    for directory in directories:
        candidate = f"{directory}/{command}"
        if os.access(candidate, os.F_OK):
            return candidate
    return None


def check_executable(word: str | None) -> None:
    """Reject a path-like command word that is missing (127) or a directory (126)."""
    if not word:
        return
    if word.startswith("/") or word.endswith("/"):
        try:
            info = os.stat(word)
        except OSError:
            raise CommandError("No such file or directory", word, 127) from None
        if stat.S_ISDIR(info.st_mode):
            raise CommandError("is a directory", word, 126)


def _flush_stdio() -> None:
    for stream in (sys.stdout, sys.stderr):
        try:
            stream.flush()
        except (OSError, ValueError):
            pass


@contextmanager
def _stdout() -> Iterator[TextIO]:
    """Yield a writer on descriptor 1, wherever it currently points."""
    _flush_stdio()
    with open(1, "w", closefd=False) as out:
        yield out


def _run_builtin(command: Command, state: ShellState) -> None:
    if command.words[0] == "exit":
        state.status = command.status
    with _stdout() as out:
        run_builtin(command.words, state, out)


def _report(exc: RedirectionError) -> None:
    if exc.message:
        print_error(exc.message + "\n")


def _exec_env(entries: Sequence[str]) -> dict[str, str]:
    result: dict[str, str] = {}
    for entry in entries:
        name, sep, value = entry.partition("=")
        if sep and name:
            result[name] = value
    return result


def execute_command(command: Command, state: ShellState) -> int:
    """Run one command of a pipeline in the current (child) process.

    Builtins run here and give 0; other commands replace the process. Returns
    the status to exit with, and raises CommandError when the command cannot
    be found or started.
    """
    words = command.words
    if words and only_spaces(words[0]):
        return state.status
    try:
        apply_redirections(command)
    except RedirectionError as exc:
        _report(exc)
        state.status = exc.status
        return exc.status
    if words and is_builtin(words[0]):
        _run_builtin(command, state)
        return 0
    if not words:
        return 0
    check_executable(words[0])
    entries = state.env.snapshot()
    path = find_command_path(words[0], entries)
    if path is None and os.access(words[0], os.F_OK):
        path = words[0]
    if path is None:
        raise CommandError("Command not found", words[0], 127)
    _flush_stdio()
    try:
        os.execve(path, list(words), _exec_env(entries))
    except OSError as exc:
        raise CommandError(f"execve: {exc.strerror}", None, 127) from exc
    return 0


@contextmanager
def _ignore_interrupts() -> Iterator[None]:
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = {sig: signal.getsignal(sig) for sig in (signal.SIGINT, signal.SIGQUIT)}
    for sig in previous:
        signal.signal(sig, signal.SIG_IGN)
    try:
        yield
    finally:
        for sig, handler in previous.items():
            if handler is not None:
                signal.signal(sig, handler)


def _run_child(
    command: Command,
    state: ShellState,
    input_fd: int | None,
    read_fd: int | None,
    write_fd: int | None,
) -> NoReturn:
    status = 1
    try:
        signal.signal(signal.SIGINT, signal.SIG_DFL)
        signal.signal(signal.SIGQUIT, signal.SIG_DFL)
        if input_fd is not None:
            os.dup2(input_fd, 0)
            os.close(input_fd)
        if write_fd is not None:
            os.dup2(write_fd, 1)
            os.close(write_fd)
        if read_fd is not None:
            os.close(read_fd)
        status = execute_command(command, state)
    except CommandError as exc:
        print_error(exc.message + "\n", exc.command)
        status = exc.status
    except ShellExit as exc:
        status = exc.status
    except OSError as exc:
        print_error(f"dup2: {exc.strerror}\n")
        status = 1
    except BaseException:
        status = 1
    finally:
        _flush_stdio()
        os._exit(status)


def _wait_status(pid: int) -> int:
    _, raw = os.waitpid(pid, 0)
    code = os.waitstatus_to_exitcode(raw)
    return 128 - code if code < 0 else code


def _close_heredocs(commands: Iterable[Command]) -> None:
    for command in commands:
        for fd in command.heredoc_fds:
            try:
                os.close(fd)
            except OSError:
                pass
        command.heredoc_fds.clear()


def _run_in_shell(command: Command, state: ShellState) -> None:
    saved_in, saved_out = os.dup(0), os.dup(1)
    try:
        try:
            apply_redirections(command)
        except RedirectionError as exc:
            _report(exc)
            state.status = exc.status
            return
        _run_builtin(command, state)
    finally:
        _flush_stdio()
        os.dup2(saved_in, 0)
        os.dup2(saved_out, 1)
        os.close(saved_in)
        os.close(saved_out)


def _run_forked(commands: list[Command], state: ShellState) -> None:
    pids: list[int] = []
    input_fd: int | None = None
    failed = False
    with _ignore_interrupts():
        try:
            for index, command in enumerate(commands):
                read_fd = write_fd = None
                if index < len(commands) - 1:
                    try:
                        read_fd, write_fd = os.pipe()
                    except OSError as exc:
                        print_error(f"pipe: {exc.strerror}\n")
                        failed = True
                        break
                _flush_stdio()
                try:
                    pid = os.fork()
                except OSError as exc:
                    print_error(f"fork: {exc.strerror}\n")
                    for fd in (read_fd, write_fd):
                        if fd is not None:
                            os.close(fd)
                    failed = True
                    break
                if pid == 0:
                    _run_child(command, state, input_fd, read_fd, write_fd)
                pids.append(pid)
                if write_fd is not None:
                    os.close(write_fd)
                if input_fd is not None:
                    os.close(input_fd)
                input_fd = read_fd
                _close_heredocs([command])
        finally:
            if input_fd is not None:
                os.close(input_fd)
            for pid in pids:
                state.status = _wait_status(pid)
    if failed:
        state.status = 1


def execute_pipeline(commands: Iterable[Command], state: ShellState) -> int:
    """Run a parsed pipeline and return its exit status, also left in ``state.status``.

    A lone builtin runs in the shell itself, so it can change the environment
    and directory; anything else runs in child processes joined by pipes.
    """
    commands = list(commands)
    if not commands:
        return state.status
    # Expanding the line already reset the status.
    state.status = 0
    misplaced = has_misplaced_operator(commands)
    if misplaced:
        print_error("minishell: syntax error\n")
    try:
        try:
            state.status = preprocess_heredocs(commands, state.env.snapshot(), state.status)
        except RedirectionError as exc:
            _report(exc)
            state.status = exc.status
            return state.status
        if misplaced:
            state.status = ShellSyntaxError.status
            return state.status
        first = commands[0]
        if len(commands) == 1 and first.words and is_builtin(first.words[0]):
            _run_in_shell(first, state)
        else:
            _run_forked(commands, state)
        return state.status
    finally:
        _close_heredocs(commands)