"""Async tmux command runner."""

from __future__ import annotations

import asyncio
import logging

from tmux_relay.errors import TmuxError

logger = logging.getLogger(__name__)


def escape_argument(text: str) -> str:
    """Keep tmux from reading a trailing ``;`` as a command separator.

    tmux strips one backslash before a trailing ``;``, so text already
    ending in ``\\;`` gets another one and arrives unchanged.
    """
    if text.endswith(";"):
        return text[:-1] + "\\;"
    return text


class TmuxClient:
    """Run tmux subcommands without going through a shell."""

    def __init__(self, binary: str = "tmux") -> None:
        self.binary = binary

    async def run(self, *args: str) -> str:
        """Run ``tmux <args>`` and return its stdout."""
        try:
            proc = await asyncio.create_subprocess_exec(
                self.binary,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout_bytes, stderr_bytes = await proc.communicate()
        except FileNotFoundError:
            raise TmuxError(f"tmux binary not found: {self.binary}") from None
        except OSError as e:
            logger.exception("Failed to start tmux")
            raise TmuxError(f"Failed to start tmux: {e}") from e

        stderr = stderr_bytes.decode("utf-8", errors="replace").strip()
        if proc.returncode:
            logger.debug("tmux %s failed (%s): %s", args[0] if args else "", proc.returncode, stderr)
            raise TmuxError(f"Failed to execute tmux command: {stderr or f'exit status {proc.returncode}'}", stderr)
        return stdout_bytes.decode("utf-8", errors="replace")

    async def send_line(self, pane_id: str, text: str) -> None:
        """Type ``text`` literally into a pane and press Enter, in one invocation."""
        await self.run(
            "send-keys", "-t", pane_id, "-l", "--", escape_argument(text),
            ";",
            "send-keys", "-t", pane_id, "Enter",
        )

    async def send_key(self, pane_id: str, key: str, literal: bool = False) -> None:
        """Send one named key (``Escape``, ``F5``) or one literal string."""
        if literal:
            await self.run("send-keys", "-t", pane_id, "-l", "--", escape_argument(key))
        else:
            await self.run("send-keys", "-t", pane_id, key)
