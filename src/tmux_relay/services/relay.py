"""Relay service: submit, poll, capture and sweep tracked commands.

The one-shot CLI only submits and polls within a single invocation.
``result``, ``fetch``, ``list_commands``, ``sweep`` and the janitor are the
embedding API for long-lived callers that keep one relay across many commands.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from tmux_relay.config import AppConfig, get_config
from tmux_relay.services.injector import CommandInjector
from tmux_relay.services.markers import ShellDialect
from tmux_relay.services.pane_reader import PaneReader
from tmux_relay.services.tmux import TmuxClient
from tmux_relay.services.tracker import CommandTracker
from tmux_relay.storage.models import (
    CaptureResult,
    CommandMode,
    CommandRecord,
    CommandSummary,
    PollResult,
)
from tmux_relay.storage.registry import CommandRegistry
from tmux_relay.utils.formatting import truncate_command

logger = logging.getLogger(__name__)


@dataclass
class ExecutionOutcome:
    """What ``CommandRelay.execute`` knows when it returns."""

    command_id: str
    raw: bool = False
    send_enter: bool = True
    poll: PollResult | None = None


class CommandRelay:
    """Wire the tmux client, reader, tracker and injector around one registry."""

    def __init__(
        self,
        config: AppConfig | None = None,
        client: TmuxClient | None = None,
        registry: CommandRegistry | None = None,
    ) -> None:
        self.config = config or get_config()
        self.client = client or TmuxClient(self.config.tmux.binary)
        self.registry = registry or CommandRegistry()
        self.dialect = ShellDialect.parse(self.config.tmux.shell)
        self.reader = PaneReader(self.client)
        self.tracker = CommandTracker(self.registry, self.reader, self.config.tracker.tail_lines)
        self.injector = CommandInjector(self.client, self.tracker, self.dialect)
        self._janitor: asyncio.Task[None] | None = None

    async def submit(
        self,
        pane_id: str,
        command: str,
        raw: bool = False,
        send_enter: bool = True,
    ) -> str:
        mode = CommandMode.RAW if raw else CommandMode.NORMAL
        return await self.injector.inject(pane_id, command, mode=mode, send_enter=send_enter)

    async def execute(
        self,
        pane_id: str,
        command: str,
        timeout: float | None = None,
        raw: bool = False,
        send_enter: bool = True,
    ) -> ExecutionOutcome:
        """Submit a command and, for tracked commands, wait up to ``timeout`` seconds."""
        command_id = await self.submit(pane_id, command, raw=raw, send_enter=send_enter)
        outcome = ExecutionOutcome(command_id=command_id, raw=raw or not send_enter, send_enter=send_enter)
        if outcome.raw or timeout is None:
            return outcome

        outcome.poll = await self.poll(command_id, timeout)
        return outcome

    async def poll(self, command_id: str, timeout: float | None = None) -> PollResult | None:
        if timeout is None:
            timeout = self.config.polling.timeout
        return await self.tracker.wait(command_id, timeout, self.config.polling.interval)

    async def result(self, command_id: str) -> CommandRecord | None:
        """Refresh and return a command's record."""
        return await self.tracker.refresh(command_id)

    def fetch(self, command_id: str) -> CommandRecord | None:
        """Return a command's record without reading its pane."""
        return self.tracker.get(command_id)

    async def capture(
        self,
        pane_id: str,
        lines: int = 100,
        start: int | None = None,
        end: int | None = None,
        colors: bool = False,
    ) -> CaptureResult:
        if (start is None) != (end is None):
            raise ValueError("Both start and end must be provided for line-based capture.")
        if start is not None and end is not None:
            return await self.reader.read_range(pane_id, start, end, colors)
        return await self.reader.read_tail(pane_id, lines, colors)

    async def list_commands(self) -> list[CommandSummary]:
        """Summaries of live commands, after dropping old finished ones."""
        await self.sweep(self.config.tracker.list_max_age_minutes)

        summaries: list[CommandSummary] = []
        for command_id in self.tracker.list_ids():
            record = self.tracker.get(command_id)
            if record is None:
                continue
            summaries.append(
                CommandSummary(
                    id=command_id,
                    label=f"Command: {truncate_command(record.command)}",
                    status=record.status,
                )
            )
        return summaries

    async def sweep(self, max_age_minutes: float | None = None) -> int:
        if max_age_minutes is None:
            max_age_minutes = self.config.tracker.max_age_minutes
        return await self.tracker.evict(max_age_minutes)

    # --- Janitor ---

    def start_janitor(self, interval: float | None = None) -> asyncio.Task[None]:
        """Sweep finished commands periodically until ``stop_janitor``."""
        if self._janitor is not None and not self._janitor.done():
            return self._janitor
        if interval is None:
            interval = self.config.tracker.janitor_interval
        self._janitor = asyncio.create_task(self._run_janitor(interval))
        return self._janitor

    async def stop_janitor(self) -> None:
        if self._janitor is None:
            return
        self._janitor.cancel()
        try:
            await self._janitor
        except asyncio.CancelledError:
            pass
        self._janitor = None

    async def _run_janitor(self, interval: float) -> None:
        logger.info("Janitor started (every %ss)", interval)
        while True:
            await asyncio.sleep(interval)
            try:
                await self.sweep()
            except Exception:
                logger.exception("Janitor sweep failed")
