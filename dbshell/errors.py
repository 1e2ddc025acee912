"""Base exception shared by the dbshell error kinds."""

from __future__ import annotations


class DbShellError(RuntimeError):
    """Base class for errors surfaced to the command-line entry point."""


__all__ = ["DbShellError"]
