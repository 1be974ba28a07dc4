"""Exceptions raised by tmux-relay."""

from __future__ import annotations


class RelayError(Exception):
    """Base exception for all relay operations."""


class TmuxError(RelayError):
    """Raised when a tmux invocation fails or tmux cannot be started."""

    def __init__(self, message: str, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr


class DuplicateCommandError(RelayError):
    """Raised when a command id is registered twice."""
