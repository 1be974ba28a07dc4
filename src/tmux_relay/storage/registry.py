"""In-memory registry of tracked commands."""

from __future__ import annotations

import asyncio
import logging

from tmux_relay.errors import DuplicateCommandError
from tmux_relay.storage.models import CommandRecord

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Map of command id to the latest version of its record.

    One registry is built per process and handed to the tracker and the
    injector. Callers serialize read-modify-write sequences with ``lock``.
    """

    def __init__(self) -> None:
        self._records: dict[str, CommandRecord] = {}
        self.lock = asyncio.Lock()

    def add(self, record: CommandRecord) -> None:
        """Insert a new record. Ids are never overwritten."""
        if record.id in self._records:
            raise DuplicateCommandError(f"Command id already registered: {record.id}")
        self._records[record.id] = record

    def get(self, command_id: str) -> CommandRecord | None:
        return self._records.get(command_id)

    def put(self, record: CommandRecord) -> None:
        """Replace the stored version of an existing record."""
        if record.id not in self._records:
            logger.warning("Dropping update for unknown command %s", record.id)
            return
        self._records[record.id] = record

    def remove(self, command_id: str) -> None:
        self._records.pop(command_id, None)

    def ids(self) -> list[str]:
        return list(self._records)

    def records(self) -> list[CommandRecord]:
        return list(self._records.values())

    def __contains__(self, command_id: object) -> bool:
        return command_id in self._records

    def __len__(self) -> int:
        return len(self._records)
