"""The interactive shell: prompt, signal handling, the read-eval loop and the entry point."""

from __future__ import annotations

import signal
import sys
import threading
from collections.abc import Callable, Iterable, Sequence
from enum import IntEnum
from typing import Any

from .builtins import ShellExit
from .env import Environment, ShellState
from .executor import execute_pipeline
from .parser import ShellSyntaxError, parse_commands, validate_line
from .splitting import split_commands
from .textutil import print_error

try:
    import readline as _readline
except ImportError:  # pragma: no cover - platforms without GNU readline
    _readline = None

Reader = Callable[[str], "str | None"]

_HANDLED_SIGNALS = (signal.SIGINT, signal.SIGQUIT)


class SignalMode(IntEnum):
    """How the shell reacts to interrupt and quit signals."""

    INTERACTIVE = 0
    IGNORE = 1
    HEREDOC = 2


def install_signal_handlers(mode: SignalMode | int) -> dict[int, Any]:
    """Install the handlers for ``mode`` and return the ones they replaced.

    At the prompt and while reading a heredoc an interrupt raises
    KeyboardInterrupt, which the reader turns into a fresh line; while
    commands run both signals are ignored. Quit is always ignored. Outside the
    main thread nothing is changed and an empty mapping is returned.
    """
    if threading.current_thread() is not threading.main_thread():
        return {}
    mode = SignalMode(mode)
    previous = {sig: signal.getsignal(sig) for sig in _HANDLED_SIGNALS}
    if mode is SignalMode.IGNORE:
        signal.signal(signal.SIGINT, signal.SIG_IGN)
    else:
        signal.signal(signal.SIGINT, signal.default_int_handler)
    signal.signal(signal.SIGQUIT, signal.SIG_IGN)
    return previous


def _restore_signal_handlers(previous: dict[int, Any]) -> None:
    for sig, handler in previous.items():
        if handler is not None:
            signal.signal(sig, handler)


def build_prompt(env: Iterable[str]) -> str:
    """Return ``"<user> $ "`` from the first ``USER=`` entry, else ``"$ "``."""
    for entry in env:
        if entry.startswith("USER="):
            return f"{entry[5:]} $ "
    return "$ "


def _default_reader(prompt: str) -> str | None:
    try:
        line = input(prompt)
    except EOFError:
        return None
    if line and _readline is not None:
        _readline.add_history(line)
    return line


def read_input(env: Iterable[str], reader: Reader | None = None) -> str | None:
    """Prompt for one line and return it, or None at end of input.

    An interrupt while reading propagates as KeyboardInterrupt.
    """
    read_line = reader if reader is not None else _default_reader
    try:
        return read_line(build_prompt(env))
    except EOFError:
        return None


def run_line(line: str, state: ShellState) -> int:
    """Parse and run one command line; return the resulting exit status.

    A malformed line is reported and gives status 258. ShellExit raised by the
    ``exit`` builtin propagates to the caller.
    """
    segments = split_commands(line, "|")
    try:
        validate_line(segments, line)
    except ShellSyntaxError as exc:
        print_error(f"minishell: {exc}\n")
        state.status = exc.status
        return state.status
    commands = parse_commands(segments, state.env.snapshot(), state.status)
    return execute_pipeline(commands, state)


def repl(state: ShellState, reader: Reader | None = None) -> int:
    """Read and run lines until end of input or ``exit``; return the final status.

    End of input ends the shell with status 0. An interrupt at the prompt
    starts a new line and sets the status to 1.
    """
    original: dict[int, Any] | None = None
    try:
        while True:
            previous = install_signal_handlers(SignalMode.INTERACTIVE)
            if original is None:
                original = previous
            try:
                line = read_input(state.env.snapshot(), reader)
            except KeyboardInterrupt:
                sys.stdout.write("\n")
                sys.stdout.flush()
                state.status = 1
                continue
            if line is None:
                state.status = 0
                return 0
            try:
                run_line(line, state)
            except ShellExit as exc:
                state.status = exc.status
                return exc.status
    finally:
        if original:
            _restore_signal_handlers(original)


def main(argv: Sequence[str] | None = None) -> int:
    """Start the interactive shell; arguments are refused."""
    args = list(sys.argv[1:] if argv is None else argv)
    if args:
        print_error("you must not enter an argument\n")
        return 1
    state = ShellState(env=Environment.from_environ())
    return repl(state)


if __name__ == "__main__":
    raise SystemExit(main())