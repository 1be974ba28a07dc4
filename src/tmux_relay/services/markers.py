"""Start/end markers that delimit a command's output in pane text.

A wrapped command looks like::

    echo "TMUX_MCP_START_<id>"; <command>; echo "TMUX_MCP_DONE_<id>_$?"

The shell prints the start marker, the command's output, then the end marker
with the command's exit status appended. The pane also shows the typed input
line, which contains both marker texts but no digits after the end prefix, so
only the last occurrence of each marker is trusted.
"""

from __future__ import annotations

import logging
import re
from enum import Enum

from tmux_relay.storage.models import CommandStatus, Completion

logger = logging.getLogger(__name__)

START_TAG = "TMUX_MCP_START"
END_TAG = "TMUX_MCP_DONE"


class ShellDialect(str, Enum):
    BASH = "bash"
    ZSH = "zsh"
    FISH = "fish"

    @property
    def exit_status_expr(self) -> str:
        return "$status" if self is ShellDialect.FISH else "$?"

    @classmethod
    def parse(cls, name: str) -> ShellDialect:
        """Resolve a configured shell name, falling back to bash."""
        try:
            return cls(name.strip().lower())
        except ValueError:
            logger.warning("Unknown shell type %r, using bash", name)
            return cls.BASH


def start_marker(command_id: str) -> str:
    return f"{START_TAG}_{command_id}"


def end_marker_prefix(command_id: str) -> str:
    return f"{END_TAG}_{command_id}_"


def end_marker(command_id: str, dialect: ShellDialect = ShellDialect.BASH) -> str:
    return end_marker_prefix(command_id) + dialect.exit_status_expr


def wrap_command(command_id: str, command: str, dialect: ShellDialect = ShellDialect.BASH) -> str:
    return f'echo "{start_marker(command_id)}"; {command}; echo "{end_marker(command_id, dialect)}"'


def detect_completion(buffer_text: str, command_id: str) -> Completion:
    """Decide from pane text whether a wrapped command has finished."""
    start = start_marker(command_id)
    prefix = end_marker_prefix(command_id)

    start_index = buffer_text.rfind(start)
    end_index = buffer_text.rfind(prefix)
    if start_index == -1 or end_index == -1 or end_index <= start_index:
        return Completion()

    end_line = buffer_text[end_index:].split("\n", 1)[0]
    match = re.match(re.escape(prefix) + r"(\d+)", end_line)
    if not match:
        # Wrapped or not yet expanded; looks the same as still running.
        return Completion()

    exit_code = int(match.group(1))
    output = buffer_text[start_index + len(start):end_index].strip()
    status = CommandStatus.COMPLETED if exit_code == 0 else CommandStatus.ERROR
    return Completion(status=status, exit_code=exit_code, output=output)
