"""A small interactive shell with pipes, redirections, here-documents and expansion."""

__version__ = "0.1.0"

__all__ = [
    "builtins",
    "env",
    "executor",
    "expansion",
    "parser",
    "redirection",
    "shell",
    "splitting",
    "textutil",
    "wildcards",
]