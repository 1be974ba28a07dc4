"""Command completion tracking."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import time

from tmux_relay.services.markers import detect_completion
from tmux_relay.services.pane_reader import PaneReader
from tmux_relay.storage.models import CommandRecord, PollResult
from tmux_relay.storage.registry import CommandRegistry

logger = logging.getLogger(__name__)

RAW_MODE_MESSAGE = (
    "Status tracking unavailable for raw mode commands. "
    "Capture the pane to monitor interactive apps instead."
)
INCOMPLETE_CAPTURE_MESSAGE = "Command output could not be captured properly"

DEFAULT_TAIL_LINES = 1000


class CommandTracker:
    """Track submitted commands by scanning their pane for markers."""

    def __init__(
        self,
        registry: CommandRegistry,
        reader: PaneReader,
        tail_lines: int = DEFAULT_TAIL_LINES,
    ) -> None:
        self.registry = registry
        self.reader = reader
        self.tail_lines = tail_lines

    async def register(self, record: CommandRecord) -> None:
        """Start tracking a new pending record."""
        async with self.registry.lock:
            self.registry.add(record)
        logger.debug("Registered command %s on pane %s", record.id, record.pane_id)

    def get(self, command_id: str) -> CommandRecord | None:
        """Return the stored record without reading the pane."""
        return self.registry.get(command_id)

    def list_ids(self) -> list[str]:
        return self.registry.ids()

    async def refresh(self, command_id: str) -> CommandRecord | None:
        """Re-read the pane and update the record if the command finished.

        Returns None for unknown ids. Terminal records are returned as they
        are. Raw mode records stay pending and never trigger a pane read.
        """
        record = self.registry.get(command_id)
        if record is None or record.is_terminal:
            return record

        if record.is_raw:
            return await self._store_pending(record, RAW_MODE_MESSAGE)

        capture = await self.reader.read_tail(record.pane_id, self.tail_lines)
        completion = detect_completion(capture.content, command_id)
        if not completion.finished:
            return await self._store_pending(record, INCOMPLETE_CAPTURE_MESSAGE)

        async with self.registry.lock:
            current = self.registry.get(command_id)
            if current is None or current.is_terminal:
                return current
            updated = dataclasses.replace(
                current,
                status=completion.status,
                exit_code=completion.exit_code,
                result=completion.output,
            )
            self.registry.put(updated)

        logger.info("Command %s finished with exit code %s", command_id, completion.exit_code)
        return updated

    async def _store_pending(self, record: CommandRecord, message: str) -> CommandRecord | None:
        async with self.registry.lock:
            current = self.registry.get(record.id)
            if current is None or current.is_terminal or current.result == message:
                return current
            updated = dataclasses.replace(current, result=message)
            self.registry.put(updated)
            return updated

    async def wait(
        self,
        command_id: str,
        timeout: float,
        interval: float = 1.0,
    ) -> PollResult | None:
        """Refresh until the command finishes or ``timeout`` seconds pass.

        The deadline is checked against the clock, so slow pane reads do not
        stretch the wait. On timeout the record is left pending.
        """
        deadline = time.monotonic() + timeout
        while True:
            record = await self.refresh(command_id)
            if record is None:
                return None
            if record.is_terminal:
                return PollResult(record=record)

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            await asyncio.sleep(min(interval, remaining))

        current = self.registry.get(command_id)
        if current is None:
            return None
        logger.debug("Timed out waiting for command %s", command_id)
        return PollResult(record=current, timed_out=not current.is_terminal)

    async def evict(self, max_age_minutes: float = 60) -> int:
        """Drop finished records older than ``max_age_minutes``. Pending ones stay."""
        removed = 0
        async with self.registry.lock:
            for record in self.registry.records():
                if record.is_terminal and record.age_minutes() > max_age_minutes:
                    self.registry.remove(record.id)
                    removed += 1
        if removed:
            logger.info("Evicted %d finished commands", removed)
        return removed
