"""The shell's ordered environment and its mutable run state."""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field


class Environment:
    """An ordered list of ``NAME=value`` (or bare ``NAME``) entries."""

    def __init__(self, entries: Iterable[str] = ()) -> None:
        self.entries: list[str] = list(entries)

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> "Environment":
        """Build an environment from a mapping, by default the process environment."""
        source = os.environ if environ is None else environ
        return cls(f"{name}={value}" for name, value in source.items())

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self) -> str:
        return f"Environment({self.entries!r})"

    def snapshot(self) -> list[str]:
        """Return an independent copy of the entries, in order."""
        return list(self.entries)

    def append(self, entry: str) -> None:
        """Add an entry at the end."""
        self.entries.append(entry)

    def prepend(self, entry: str) -> None:
        """Add an entry at the front."""
        self.entries.insert(0, entry)

    def clear(self) -> None:
        """Remove every entry."""
        self.entries.clear()


@dataclass
class ShellState:
    """What persists between command lines: the environment and the last exit status."""

    env: Environment = field(default_factory=Environment)
    status: int = 0