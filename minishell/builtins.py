"""The commands the shell runs itself: echo, pwd, env, cd, export, unset and exit."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable, Sequence
from typing import TextIO

from .env import Environment, ShellState
from .textutil import is_name_char, print_error

_LLONG_MAX = 9223372036854775807
_ULLONG_MOD = 1 << 64
_C_WHITESPACE = " \t\n\v\f\r"


class ShellExit(Exception):
    """Raised by ``exit`` to end the shell with ``status`` (0-255)."""

    def __init__(self, status: int) -> None:
        self.status = status & 0xFF
        super().__init__(self.status)


def is_builtin(name: str | None) -> bool:
    """Return True if ``name`` is one of the shell's own commands."""
    return name in _BUILTINS


def run_builtin(
    words: Sequence[str] | None,
    state: ShellState,
    out: TextIO | None = None,
) -> bool:
    """Run ``words`` if its first word names a builtin; return True if one ran.

    The builtin's outcome is left in ``state.status``.
    """
    if not words:
        return False
    handler = _BUILTINS.get(words[0])
    if handler is None:
        return False
    handler(list(words), state, out if out is not None else sys.stdout)
    return True


def echo(args: Sequence[str], state: ShellState, out: TextIO | None = None) -> int:
    """Print the arguments separated by spaces; ``-n`` (or ``-nnn``) drops the newline."""
    out = out if out is not None else sys.stdout
    rest = list(args[1:])
    newline = True
    skipped = 0
    for arg in rest:
        if arg.startswith("-n") and arg[1:] == "n" * (len(arg) - 1):
            newline = False
            skipped += 1
        else:
            break
    out.write(" ".join(rest[skipped:]))
    if newline:
        out.write("\n")
    state.status = 0
    return 0


def pwd(args: Sequence[str], state: ShellState, out: TextIO | None = None) -> int:
    """Print the current working directory."""
    out = out if out is not None else sys.stdout
    try:
        cwd = os.getcwd()
    except OSError:
        print_error("pwd: error retrieving current directory: getcwd: failed \n")
        state.status = 1
        return 1
    out.write(f"{cwd}\n")
    state.status = 0
    return 0


def print_env(args: Sequence[str], state: ShellState, out: TextIO | None = None) -> int:
    """Print every environment entry that carries a value."""
    out = out if out is not None else sys.stdout
    if not len(state.env):
        state.status = 1
        return 1
    for entry in state.env:
        if "=" in entry:
            out.write(f"{entry}\n")
    state.status = 0
    return 0


def _record_oldpwd(env: Environment) -> None:
    try:
        cwd = os.getcwd()
    except OSError:
        return
    entries = env.entries
    for index, entry in enumerate(entries):
        if entry.startswith("OLDPWD"):
            entries[index] = f"OLDPWD={cwd}"
            return
    env.append(f"OLDPWD={cwd}")


def _update_pwd(env: Environment) -> None:
    try:
        cwd = os.getcwd()
    except OSError:
        return
    entries = env.entries
    for index, entry in enumerate(entries):
        if entry.startswith("PWD"):
            entries[index] = f"PWD={cwd}"
            return


def cd(args: Sequence[str], state: ShellState, out: TextIO | None = None) -> int:
    """Change directory; no argument or one starting with ``~`` goes to ``HOME``."""
    out = out if out is not None else sys.stdout
    env = state.env
    _record_oldpwd(env)
    if len(args) < 2 or args[1].startswith("~"):
        home = next((entry for entry in env if entry.startswith("HOME")), None)
        if home is None:
            out.write("no home variable is set\n")
            state.status = 1
            return 1
        path = home[5:]
    else:
        path = args[1]
    try:
        os.chdir(path)
    except OSError:
        out.write(f"cd: {path}: NO such file or directory\n")
        state.status = 1
        return 1
    _update_pwd(env)
    state.status = 0
    return 0


def check_var_name(arg: str | None, name: str, out: TextIO | None = None) -> bool:
    """Return True if ``arg`` is a valid identifier (optionally followed by ``=value``).

    An invalid identifier is reported on ``out`` under the command ``name``; a
    missing one is rejected silently.
    """
    if arg is None:
        return False
    out = out if out is not None else sys.stdout
    ident = arg.split("=", 1)[0]
    if (arg and ("0" <= arg[0] <= "9" or arg[0] == "=")) or not all(
        is_name_char(ch) for ch in ident
    ):
        out.write(f"minishell: {name}: `{arg}': not a valid identifier\n")
        return False
    return True


def _print_declarations(env: Environment, out: TextIO) -> None:
    for entry in env:
        ident, sep, value = entry.partition("=")
        if sep:
            out.write(f'declare -x {ident}="{value}"\n')
        else:
            out.write(f"declare -x {ident}\n")


def export(args: Sequence[str], state: ShellState, out: TextIO | None = None) -> int:
    """Set or declare variables; without arguments, list every entry."""
    out = out if out is not None else sys.stdout
    env = state.env
    if len(args) < 2:
        _print_declarations(env, out)
        return 0
    for arg in args[1:]:
        if not check_var_name(arg, "export", out):
            state.status = 1
            return 1
        ident, sep, _ = arg.partition("=")
        entries = env.entries
        if sep:
            index = next(
                (k for k, entry in enumerate(entries) if entry.startswith(ident)), None
            )
            if index is None:
                env.append(arg)
            else:
                entries[index] = arg
        elif not any(entry.startswith(arg) for entry in entries):
            env.append(arg)
    return 0


def _name_length(entry: str) -> int:
    index = entry.find("=")
    return len(entry) if index < 0 else index


def unset(args: Sequence[str], state: ShellState, out: TextIO | None = None) -> int:
    """Remove the entries whose names the arguments start with."""
    out = out if out is not None else sys.stdout
    env = state.env
    if not len(env):
        out.write("Error\n")
        state.status = 1
        return 1
    first = args[1] if len(args) > 1 else None
    if not check_var_name(first, "unset", out):
        if first is not None:
            state.status = 1
        return 1
    for word in args[1:]:
        env.entries[:] = [
            entry for entry in env.entries if not word.startswith(entry[: _name_length(entry)])
        ]
    return 0


def is_numeric(text: str | None) -> bool:
    """Return True if ``text`` is an optional sign followed only by digits."""
    if text is None:
        return False
    body = text[1:] if text[:1] in ("-", "+") else text
    return all("0" <= ch <= "9" for ch in body)


def parse_exit_code(text: str) -> int:
    """Convert ``text`` to a 32-bit signed integer the way the shell reads exit codes.

    Leading whitespace and one sign are accepted and reading stops at the first
    non-digit. A magnitude beyond the 64-bit signed range gives -1, or 0 when
    negative.
    """
    n = len(text)
    i = 0
    while i < n and text[i] in _C_WHITESPACE:
        i += 1
    sign = 1
    if i < n and text[i] in "+-":
        if text[i] == "-":
            sign = -1
        i += 1
    number = 0
    while i < n and "0" <= text[i] <= "9":
        number = (number * 10 + ord(text[i]) - ord("0")) % _ULLONG_MOD
        if number > _LLONG_MAX:
            return -1 if sign == 1 else 0
        i += 1
    value = (number * sign) & 0xFFFFFFFF
    return value - (1 << 32) if value >= (1 << 31) else value


def exit_builtin(args: Sequence[str], state: ShellState, out: TextIO | None = None) -> int:
    """Leave the shell by raising ShellExit.

    Without an argument the current ``state.status`` is used. With more than one
    numeric argument nothing happens except an error and status 1.
    """
    out = out if out is not None else sys.stdout
    if len(args) < 2:
        raise ShellExit(state.status)
    if is_numeric(args[1]) and len(args) == 2:
        raise ShellExit(parse_exit_code(args[1]))
    if not is_numeric(args[1]):
        out.write("Error: Non-numeric argument\n")
        raise ShellExit(255)
    out.write("Error: Too many arguments\n")
    state.status = 1
    return 1


_Builtin = Callable[[Sequence[str], ShellState, "TextIO | None"], int]

_BUILTINS: dict[str, _Builtin] = {
    "echo": echo,
    "pwd": pwd,
    "env": print_env,
    "cd": cd,
    "export": export,
    "unset": unset,
    "exit": exit_builtin,
}