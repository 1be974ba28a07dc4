"""Data models for tmux-relay."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class CommandStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    ERROR = "error"


class CommandMode(str, Enum):
    NORMAL = "normal"
    RAW = "raw"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CommandRecord:
    """A tracked command.

    Records are immutable; the tracker publishes a new version with
    ``dataclasses.replace`` whenever status, result or exit code change.
    """

    id: str
    pane_id: str
    command: str
    mode: CommandMode = CommandMode.NORMAL
    started_at: datetime = field(default_factory=_utcnow)
    status: CommandStatus = CommandStatus.PENDING
    result: str | None = None
    exit_code: int | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status is not CommandStatus.PENDING

    @property
    def is_raw(self) -> bool:
        return self.mode is CommandMode.RAW

    def age_minutes(self, now: datetime | None = None) -> float:
        now = now or _utcnow()
        return (now - self.started_at).total_seconds() / 60


@dataclass
class CaptureResult:
    """Lines captured from a pane plus their position in the full scrollback."""

    lines: list[str] = field(default_factory=list)
    start_line: int = 0
    end_line: int = 0
    total_lines: int = 0

    @property
    def content(self) -> str:
        return "\n".join(self.lines)


@dataclass(frozen=True)
class Completion:
    """Outcome of scanning a pane buffer for a command's markers."""

    status: CommandStatus = CommandStatus.PENDING
    exit_code: int | None = None
    output: str = ""

    @property
    def finished(self) -> bool:
        return self.status is not CommandStatus.PENDING


@dataclass
class PollResult:
    """Latest known record after waiting, and whether the wait ran out."""

    record: CommandRecord
    timed_out: bool = False


@dataclass
class CommandSummary:
    """Short description of a tracked command for listings."""

    id: str
    label: str
    status: CommandStatus
