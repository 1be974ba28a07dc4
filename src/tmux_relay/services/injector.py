"""Command injection into tmux panes."""

from __future__ import annotations

import logging
import uuid

from tmux_relay.errors import TmuxError
from tmux_relay.services.markers import ShellDialect, wrap_command
from tmux_relay.services.tmux import TmuxClient
from tmux_relay.services.tracker import CommandTracker
from tmux_relay.storage.models import CommandMode, CommandRecord

logger = logging.getLogger(__name__)

# tmux key names sent as a single key event in keystroke mode
SPECIAL_KEYS: frozenset[str] = frozenset(
    [
        "Up", "Down", "Left", "Right",
        "Escape", "Tab", "Enter", "Space", "BSpace", "Delete",
        "Home", "End", "PageUp", "PageDown",
        *(f"F{n}" for n in range(1, 13)),
    ]
)


class CommandInjector:
    """Send commands into panes and register them with the tracker."""

    def __init__(
        self,
        client: TmuxClient,
        tracker: CommandTracker,
        dialect: ShellDialect = ShellDialect.BASH,
    ) -> None:
        self.client = client
        self.tracker = tracker
        self.dialect = dialect

    async def inject(
        self,
        pane_id: str,
        command: str,
        mode: CommandMode = CommandMode.NORMAL,
        send_enter: bool = True,
    ) -> str:
        """Submit ``command`` to a pane and return its tracking id.

        Keystroke mode (``send_enter=False``) always sends the text as is.
        The record is registered before anything is sent so that a refresh
        racing the send finds it.
        """
        if not send_enter:
            mode = CommandMode.RAW

        command_id = str(uuid.uuid4())
        if mode is CommandMode.NORMAL:
            payload = wrap_command(command_id, command, self.dialect)
        else:
            payload = command

        await self.tracker.register(
            CommandRecord(id=command_id, pane_id=pane_id, command=command, mode=mode)
        )

        try:
            if send_enter:
                await self.client.send_line(pane_id, payload)
            else:
                await self._send_keystrokes(pane_id, payload)
        except TmuxError:
            logger.error("Failed to send command %s to pane %s", command_id, pane_id)
            raise

        logger.info("Sent command %s to pane %s (%s)", command_id, pane_id, mode.value)
        return command_id

    async def _send_keystrokes(self, pane_id: str, payload: str) -> None:
        if payload in SPECIAL_KEYS:
            await self.client.send_key(pane_id, payload)
            return
        # One event per character so filtering UIs see incremental input.
        for char in payload:
            await self.client.send_key(pane_id, char, literal=True)
